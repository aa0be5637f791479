"""Legacy playlist route: the reply keeps the YouTube Data API playlistItems shape."""

from typing import Optional

import structlog
from fastapi import APIRouter
from pydantic import BaseModel

from api.errors import ApiError
from core.fallback import ProviderError
from core.resolver import InvalidInputError, fetch_playlist_snippets

logger = structlog.get_logger(__name__)

router = APIRouter()


class PlaylistRequest(BaseModel):
    url: Optional[str] = None


@router.post("/api/playlist")
def playlist(body: PlaylistRequest):
    if not body.url:
        raise ApiError(400, "URL is required")

    try:
        items = fetch_playlist_snippets(body.url)
    except InvalidInputError as e:
        raise ApiError(400, "Invalid Playlist URL", str(e))
    except ProviderError as e:
        raise ApiError(500, "Failed to fetch playlist", str(e))

    logger.info("Playlist fetched", item_count=len(items))
    return {"items": items}
