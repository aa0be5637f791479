"""
Document Summarization Module

Single responsibility: long document text → one task-specific answer.
The text is cut into fixed-size windows, each window is sent to the LLM on its own,
and the partial answers are merged by one final consolidation call.
Chunks run strictly one after another; the first failure aborts the whole run.
"""

import time
from typing import Any, Dict, List

import structlog
from pydantic import BaseModel, Field, validator

from config import TASK_TYPES
from core.llm import chat_completion

# Configure structured logger
logger = structlog.get_logger(__name__)


SYSTEM_ROLE = (
    "You are an expert academic assistant helping students study from their documents. "
    "Write clear, accurate, well-structured Markdown and never invent facts that are "
    "not supported by the provided text."
)

CHUNK_TEMPLATES: Dict[str, str] = {
    "summary": (
        "Summarize the following text in a concise paragraph or two, "
        "keeping the main ideas and conclusions.\n\nTEXT:\n{text}"
    ),
    "detailed-summary": (
        "Write a detailed, well-organized summary of the following text. "
        "Use headings and cover every important concept, definition and example.\n\nTEXT:\n{text}"
    ),
    "key-points": (
        "Extract the key points from the following text as a bulleted list. "
        "Each bullet should be one self-contained fact or idea.\n\nTEXT:\n{text}"
    ),
    "questions": (
        "Write study questions with short answers that test understanding of the "
        "following text. Number them and put each answer right below its question.\n\nTEXT:\n{text}"
    ),
}

CONSOLIDATION_TEMPLATES: Dict[str, str] = {
    "summary": (
        "The sections below are summaries of consecutive parts of one document. "
        "Merge them into a single concise summary of the whole document.\n\n{sections}"
    ),
    "detailed-summary": (
        "The sections below are detailed summaries of consecutive parts of one document. "
        "Combine them into one coherent detailed summary with headings, removing "
        "repetition while keeping every important point.\n\n{sections}"
    ),
    "key-points": (
        "The sections below are key-point lists from consecutive parts of one document. "
        "Merge them into one deduplicated bulleted list ordered as in the document.\n\n{sections}"
    ),
    "questions": (
        "The sections below are study questions from consecutive parts of one document. "
        "Combine them into one numbered set, dropping duplicates and keeping each answer "
        "below its question.\n\n{sections}"
    ),
}


class ChunkingError(Exception):
    """Text chunking errors"""
    pass


class ChunkTask(BaseModel):
    """One document-processing request"""

    source_text: str = Field(description="Full document text")
    chunk_size: int = Field(description="Characters per chunk", gt=0)
    task_type: str = Field(default="summary", description="What to produce")

    @validator('task_type')
    def validate_task_type(cls, v):
        if v not in TASK_TYPES:
            raise ValueError(f"Task type must be one of {TASK_TYPES}")
        return v


class TextChunk(BaseModel):
    """Individual text chunk for processing"""

    text: str = Field(description="Chunk text content")
    chunk_index: int = Field(description="Chunk number (0-based)", ge=0)

    @property
    def char_count(self) -> int:
        return len(self.text)


class IntermediateResult(BaseModel):
    """LLM output for one chunk"""

    chunk_index: int = Field(description="Ordinal of the source chunk (0-based)", ge=0)
    text: str = Field(description="Provider response for the chunk")


class ConsolidatedResult(BaseModel):
    """Final answer for a document"""

    result: str = Field(description="Final answer text")
    chunks_processed: int = Field(description="Number of chunks summarized", ge=1)
    consolidated: bool = Field(description="Whether a consolidation call was made")
    processing_time: float = Field(default=0.0, description="Total processing time in seconds")


def split_text(text: str, chunk_size: int) -> List[TextChunk]:
    """Split text into consecutive windows of exactly chunk_size characters (last may be shorter)"""

    if chunk_size <= 0:
        raise ChunkingError(f"Chunk size must be positive, got {chunk_size}")

    if len(text) <= chunk_size:
        return [TextChunk(text=text, chunk_index=0)]

    chunks = [
        TextChunk(text=text[start:start + chunk_size], chunk_index=index)
        for index, start in enumerate(range(0, len(text), chunk_size))
    ]

    logger.debug("Text chunking completed",
                 text_length=len(text),
                 chunk_size=chunk_size,
                 total_chunks=len(chunks))
    return chunks


def build_chunk_messages(chunk: TextChunk, task_type: str, total_chunks: int) -> List[Dict[str, str]]:
    system_prompt = SYSTEM_ROLE
    if total_chunks > 1:
        system_prompt = (
            f"{SYSTEM_ROLE}\n\n"
            f"Note: This is part {chunk.chunk_index + 1} of {total_chunks} "
            f"of a larger document. Focus only on this part."
        )
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": CHUNK_TEMPLATES[task_type].format(text=chunk.text)},
    ]


def format_sections(results: List[IntermediateResult]) -> str:
    """Label partial results as SECTION 1, SECTION 2, ... in chunk order"""
    ordered = sorted(results, key=lambda r: r.chunk_index)
    return "\n\n".join(
        f"SECTION {position}:\n{result.text}"
        for position, result in enumerate(ordered, start=1)
    )


def build_consolidation_messages(results: List[IntermediateResult], task_type: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_ROLE},
        {"role": "user", "content": CONSOLIDATION_TEMPLATES[task_type].format(
            sections=format_sections(results))},
    ]


def summarize_chunk(chunk: TextChunk, task_type: str, total_chunks: int, client: Any = None) -> IntermediateResult:
    """Run one chunk through the LLM; provider errors propagate unchanged"""

    logger.info("Processing chunk",
                chunk_index=chunk.chunk_index,
                total_chunks=total_chunks,
                char_count=chunk.char_count)

    text = chat_completion(build_chunk_messages(chunk, task_type, total_chunks), client=client)
    return IntermediateResult(chunk_index=chunk.chunk_index, text=text)


def consolidate(results: List[IntermediateResult], task_type: str, client: Any = None) -> str:
    """Merge partial results into one answer; a single result is returned as is"""

    if len(results) == 1:
        return results[0].text

    logger.info("Consolidating chunk results", chunk_count=len(results))
    return chat_completion(build_consolidation_messages(results, task_type), client=client)


def process_document(task: ChunkTask, client: Any = None) -> ConsolidatedResult:
    """Main processing function - split, summarize each chunk in order, consolidate"""

    start_time = time.monotonic()

    chunks = split_text(task.source_text, task.chunk_size)

    logger.info("Starting document processing",
                char_count=len(task.source_text),
                chunk_size=task.chunk_size,
                chunk_count=len(chunks),
                task_type=task.task_type)

    results = [
        summarize_chunk(chunk, task.task_type, len(chunks), client=client)
        for chunk in chunks
    ]

    final_text = consolidate(results, task.task_type, client=client)

    result = ConsolidatedResult(
        result=final_text,
        chunks_processed=len(chunks),
        consolidated=len(chunks) > 1,
        processing_time=time.monotonic() - start_time
    )

    logger.info("Document processing completed",
                chunks_processed=result.chunks_processed,
                consolidated=result.consolidated,
                final_char_count=len(result.result),
                processing_time=result.processing_time)

    return result
