from typing import Optional

import structlog
from fastapi import APIRouter
from pydantic import BaseModel

from api.errors import ApiError
from core.fallback import ProviderError
from core.resolver import InvalidInputError, resolve

logger = structlog.get_logger(__name__)

router = APIRouter()


class VideoRequest(BaseModel):
    # A playlist URL, a video URL or a free-text search query
    url: Optional[str] = None


@router.post("/api/video")
def video(body: VideoRequest):
    if not body.url or not body.url.strip():
        raise ApiError(400, "URL is required")

    try:
        result = resolve(body.url)
    except InvalidInputError as e:
        raise ApiError(400, "Invalid YouTube URL", str(e), extra={"providedUrl": body.url})
    except ProviderError as e:
        raise ApiError(500, "Failed to fetch video/playlist", str(e))

    logger.info("Resolved input",
                type=result.type.value,
                source=result.source,
                item_count=len(result.items))
    return result.to_response()
