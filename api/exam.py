from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from api.errors import ApiError
from core.exam_generator import GenerationError, InvalidRequestError, build_request, generate_test_series
from core.llm import LLMError, LLMNotConfigured

router = APIRouter()


class GenerateTestSeriesRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    topic: Optional[str] = None
    question_count: Optional[int] = None
    difficulty: Optional[str] = None
    exam_type: Optional[str] = None
    reference_papers: Optional[str] = None


@router.post("/api/generate-test-series")
def generate(body: GenerateTestSeriesRequest):
    try:
        request = build_request(
            body.topic,
            body.question_count,
            difficulty=body.difficulty,
            exam_type=body.exam_type,
            reference_papers=body.reference_papers
        )
    except InvalidRequestError as e:
        raise ApiError(400, str(e))

    try:
        return generate_test_series(request)
    except LLMNotConfigured as e:
        raise ApiError(500, "API key not configured", str(e))
    except (GenerationError, LLMError) as e:
        raise ApiError(500, "Failed to generate test series", str(e))
