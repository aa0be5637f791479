from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from api.errors import ApiError
from config import TASK_TYPES, config
from core.llm import LLMError, LLMNotConfigured
from core.summarize import ChunkTask, process_document

router = APIRouter()


class PDFProcessRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Text already extracted from the PDF by the client
    pdf_content: Optional[str] = None
    task_type: Optional[str] = None
    chunk_size: Optional[int] = None


@router.post("/api/pdf-process")
def pdf_process(body: PDFProcessRequest):
    if not body.pdf_content or not body.pdf_content.strip():
        raise ApiError(400, "PDF content is required")

    task_type = body.task_type or config.pdf.default_task_type
    if task_type not in TASK_TYPES:
        raise ApiError(400, "Invalid task type", f"Task type must be one of {TASK_TYPES}")

    chunk_size = config.pdf.default_chunk_size if body.chunk_size is None else body.chunk_size
    if chunk_size <= 0 or chunk_size > config.pdf.max_chunk_size:
        raise ApiError(400, "Invalid chunk size",
                       f"Chunk size must be between 1 and {config.pdf.max_chunk_size}")

    task = ChunkTask(source_text=body.pdf_content, chunk_size=chunk_size, task_type=task_type)

    try:
        result = process_document(task)
    except LLMNotConfigured as e:
        raise ApiError(500, "API key not configured", str(e))
    except LLMError as e:
        raise ApiError(500, "Failed to process PDF", str(e))

    return {"result": result.result, "chunksProcessed": result.chunks_processed}
