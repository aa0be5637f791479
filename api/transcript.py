from typing import Optional

import structlog
from fastapi import APIRouter
from pydantic import BaseModel

from api.errors import ApiError
from core.resolver import InvalidInputError
from core.transcript import TranscriptError, fetch_transcript

logger = structlog.get_logger(__name__)

router = APIRouter()


class TranscriptRequest(BaseModel):
    url: Optional[str] = None


@router.post("/api/transcript")
def transcript(body: TranscriptRequest):
    if not body.url:
        raise ApiError(400, "URL is required")

    logger.info("Transcript requested", url=body.url)

    try:
        result = fetch_transcript(body.url)
    except InvalidInputError as e:
        raise ApiError(400, "Invalid YouTube URL", str(e))
    except TranscriptError as e:
        raise ApiError(500, "Failed to fetch transcript", str(e))

    return result.to_response()
