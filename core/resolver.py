"""
YouTube Resolver Module

Single responsibility: URL or free text → normalized list of video items.
Input is classified as playlist, single video or search query (in that priority),
then resolved through the YouTube Data API v3 with yt-dlp as fallback.
Each provider has its own mapping function into the shared MediaItem record.
"""

import os
import re
from enum import Enum
from functools import partial
from typing import Any, Dict, List, Optional

import yt_dlp
import structlog
from googleapiclient.discovery import build
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from config import config
from core.fallback import ProviderError, ProviderUnavailable, run_with_fallback

# Configure structured logger
logger = structlog.get_logger(__name__)


PLAYLIST_ID_RE = re.compile(r"[?&]list=([^#&?]+)")
VIDEO_ID_PATTERNS = [
    re.compile(
        r"(?:youtu\.be/|youtube\.com/(?:embed/|v/|shorts/|live/|watch\?v=|"
        r"user/\S+/|ytscreeningroom\?v=))([\w-]{10,12})\b"
    ),
    re.compile(r"[?&]v=([\w-]{10,12})\b"),
]
_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_YOUTUBE_SUFFIX_RE = re.compile(r"\s*[-–]\s*YouTube\s*$")
_ISO_DURATION_RE = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")

DEFAULT_DURATION = "15 min"
DESCRIPTION_LIMIT = 150
COOKIE_FILE = "youtube_cookies.txt"


class ResolverError(Exception):
    """Custom exception for resolver failures"""
    pass


class InvalidInputError(ResolverError):
    """The input is neither a usable YouTube URL nor a search query"""
    pass


class InputKind(str, Enum):
    PLAYLIST = "playlist"
    VIDEO = "video"
    SEARCH = "search"


class Classification(BaseModel):
    """Result of classifying raw user input"""

    kind: InputKind
    value: str = Field(description="Playlist id, video id or search query")
    original: str = Field(description="Input as received")


class MediaItem(BaseModel):
    """Canonical video record returned for every provider"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    description: str
    duration: str = DEFAULT_DURATION
    status: str = "pending"
    video_url: str
    thumbnail: str
    video_id: Optional[str] = None
    is_live: bool = False
    is_upcoming: bool = False
    is_completed: bool = False
    live_streaming_details: Optional[Dict[str, Any]] = None


class ResolveResult(BaseModel):
    """Normalized resolver response"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: InputKind
    items: List[MediaItem]
    original_url: str
    playlist_id: Optional[str] = None
    video_id: Optional[str] = None
    query: Optional[str] = None
    source: str = Field(description="Provider that satisfied the request")

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def extract_playlist_id(url: str) -> Optional[str]:
    match = PLAYLIST_ID_RE.search(url)
    return match.group(1) if match else None


def extract_video_id(url: str) -> Optional[str]:
    """Extract YouTube video ID from various URL formats"""
    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def classify_input(raw: str) -> Classification:
    """Classify input as playlist, video or search; a list id always wins over a video id"""

    text = (raw or "").strip()
    if not text:
        raise InvalidInputError("URL is required")

    playlist_id = extract_playlist_id(text)
    if playlist_id:
        return Classification(kind=InputKind.PLAYLIST, value=playlist_id, original=text)

    video_id = extract_video_id(text)
    if video_id:
        return Classification(kind=InputKind.VIDEO, value=video_id, original=text)

    if _URL_RE.match(text):
        raise InvalidInputError("Please provide a valid YouTube video or playlist URL.")

    return Classification(kind=InputKind.SEARCH, value=text, original=text)


# --- Field helpers ---

def clean_title(title: Optional[str]) -> str:
    cleaned = _YOUTUBE_SUFFIX_RE.sub("", title or "").strip()
    return cleaned or "Untitled Video"


def clean_description(description: Optional[str]) -> str:
    if not description:
        return "No description available"
    return description[:DESCRIPTION_LIMIT]


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def fallback_thumbnail(video_id: Optional[str]) -> str:
    if video_id:
        return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"
    return "https://placehold.co/1280x720/1e1e2e/FFF?text=Video"


def format_seconds(seconds: Optional[float]) -> str:
    """Format a second count as M:SS or H:MM:SS"""
    if seconds is None:
        return DEFAULT_DURATION
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def parse_duration(duration_iso: Optional[str]) -> str:
    """Parse ISO 8601 duration format (PT4M13S) to readable format"""
    if not duration_iso:
        return DEFAULT_DURATION

    match = _ISO_DURATION_RE.match(duration_iso)
    if not match:
        return DEFAULT_DURATION

    days, hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return format_seconds(((days * 24 + hours) * 60 + minutes) * 60 + seconds)


# --- Provider mappings ---

def map_data_api_playlist_item(item: Dict[str, Any], original_url: str) -> MediaItem:
    snippet = item.get("snippet") or {}
    video_id = (snippet.get("resourceId") or {}).get("videoId")
    medium = ((snippet.get("thumbnails") or {}).get("medium") or {}).get("url")
    return MediaItem(
        id=item.get("id") or f"vid-{video_id}",
        title=clean_title(snippet.get("title")),
        description=clean_description(snippet.get("description")),
        video_url=watch_url(video_id) if video_id else original_url,
        thumbnail=medium or fallback_thumbnail(video_id),
        video_id=video_id,
    )


def map_data_api_video(video: Dict[str, Any], original_url: str) -> MediaItem:
    snippet = video.get("snippet") or {}
    content = video.get("contentDetails") or {}
    thumbnails = snippet.get("thumbnails") or {}
    video_id = video.get("id")
    broadcast = snippet.get("liveBroadcastContent")

    duration = parse_duration(content.get("duration"))
    status = "pending"
    is_live = broadcast == "live"
    is_upcoming = broadcast == "upcoming"
    is_completed = broadcast == "completed"

    if is_live:
        duration, status = "Live Stream", "live"
    elif is_upcoming:
        duration, status = "Scheduled Live", "upcoming"
    elif is_completed:
        duration = parse_duration(content.get("duration")) if content.get("duration") else "Recorded Live"
        status = "completed"

    if is_live or is_upcoming:
        thumbnail = ((thumbnails.get("high") or {}).get("url")
                     or (thumbnails.get("medium") or {}).get("url"))
    else:
        thumbnail = (thumbnails.get("medium") or {}).get("url")

    return MediaItem(
        id=f"vid-{video_id}",
        title=clean_title(snippet.get("title")),
        description=clean_description(snippet.get("description")),
        duration=duration,
        status=status,
        video_url=original_url,
        thumbnail=thumbnail or fallback_thumbnail(video_id),
        video_id=video_id,
        is_live=is_live,
        is_upcoming=is_upcoming,
        is_completed=is_completed,
        live_streaming_details=video.get("liveStreamingDetails"),
    )


def map_data_api_search_item(item: Dict[str, Any]) -> MediaItem:
    snippet = item.get("snippet") or {}
    video_id = (item.get("id") or {}).get("videoId")
    medium = ((snippet.get("thumbnails") or {}).get("medium") or {}).get("url")
    broadcast = snippet.get("liveBroadcastContent")
    return MediaItem(
        id=f"vid-{video_id}",
        title=clean_title(snippet.get("title")),
        description=clean_description(snippet.get("description")),
        status="live" if broadcast == "live" else "pending",
        video_url=watch_url(video_id),
        thumbnail=medium or fallback_thumbnail(video_id),
        video_id=video_id,
        is_live=broadcast == "live",
        is_upcoming=broadcast == "upcoming",
    )


def _ytdlp_thumbnail(entry: Dict[str, Any]) -> Optional[str]:
    if entry.get("thumbnail"):
        return entry["thumbnail"]
    thumbnails = [t for t in entry.get("thumbnails") or [] if t.get("url")]
    return thumbnails[-1]["url"] if thumbnails else None


def map_ytdlp_entry(entry: Dict[str, Any], original_url: Optional[str] = None) -> MediaItem:
    video_id = entry.get("id")
    live_status = entry.get("live_status")
    is_live = live_status == "is_live" or bool(entry.get("is_live"))
    is_upcoming = live_status == "is_upcoming"
    is_completed = live_status in ("was_live", "post_live")

    duration = format_seconds(entry.get("duration")) if entry.get("duration") else DEFAULT_DURATION
    status = "pending"
    if is_live:
        duration, status = "Live Stream", "live"
    elif is_upcoming:
        duration, status = "Scheduled Live", "upcoming"
    elif is_completed:
        status = "completed"

    return MediaItem(
        id=f"vid-{video_id}",
        title=clean_title(entry.get("title")),
        description=clean_description(entry.get("description")),
        duration=duration,
        status=status,
        video_url=original_url or watch_url(video_id),
        thumbnail=_ytdlp_thumbnail(entry) or fallback_thumbnail(video_id),
        video_id=video_id,
        is_live=is_live,
        is_upcoming=is_upcoming,
        is_completed=is_completed,
    )


def ytdlp_entry_to_snippet(entry: Dict[str, Any]) -> Dict[str, Any]:
    """Map a yt-dlp playlist entry into the Data API playlistItem shape"""
    duration = format_seconds(entry.get("duration")) if entry.get("duration") else "Unknown"
    author = entry.get("channel") or entry.get("uploader") or "Unknown"
    return {
        "snippet": {
            "title": entry.get("title") or "Untitled Video",
            "description": f"Duration: {duration} | Author: {author}",
            "resourceId": {"videoId": entry.get("id")},
            "thumbnails": {"medium": {"url": _ytdlp_thumbnail(entry) or ""}},
        }
    }


# --- Providers ---

class YouTubeDataAPIProvider:
    """YouTube Data API v3 through google-api-python-client"""

    name = "youtube_data_api"

    def __init__(self, api_key: Optional[str] = None, service: Any = None):
        self.api_key = api_key
        self._client = service

    def _service(self):
        if self._client is None:
            if not self.api_key:
                raise ProviderUnavailable("YOUTUBE_API_KEY not configured on server")
            self._client = build("youtube", "v3", developerKey=self.api_key, cache_discovery=False)
        return self._client

    def playlist_items_raw(self, playlist_id: str) -> List[Dict[str, Any]]:
        """Fetch every playlistItem, following nextPageToken until the API stops returning one"""

        service = self._service()
        items: List[Dict[str, Any]] = []
        page_token = None
        pages = 0

        while True:
            params = {
                "part": "snippet",
                "playlistId": playlist_id,
                "maxResults": config.youtube.page_size,
            }
            if page_token:
                params["pageToken"] = page_token

            response = service.playlistItems().list(**params).execute()
            items.extend(response.get("items") or [])
            pages += 1

            page_token = response.get("nextPageToken")
            if not page_token:
                break

        logger.info("Fetched playlist via Data API",
                    playlist_id=playlist_id,
                    pages=pages,
                    item_count=len(items))

        if not items:
            raise ProviderError("Playlist not found or empty")
        return items

    def playlist(self, playlist_id: str, original_url: str) -> List[MediaItem]:
        return [map_data_api_playlist_item(item, original_url)
                for item in self.playlist_items_raw(playlist_id)]

    def video(self, video_id: str, original_url: str) -> MediaItem:
        response = self._service().videos().list(
            part="snippet,contentDetails,liveStreamingDetails",
            id=video_id
        ).execute()

        videos = response.get("items") or []
        if not videos:
            raise ProviderError("The video ID does not correspond to a valid YouTube video.")
        return map_data_api_video(videos[0], original_url)

    def search(self, query: str) -> List[MediaItem]:
        response = self._service().search().list(
            part="snippet",
            q=query,
            type="video",
            maxResults=config.youtube.search_results
        ).execute()

        items = [item for item in response.get("items") or []
                 if (item.get("id") or {}).get("videoId")]
        if not items:
            raise ProviderError(f"No videos found for '{query}'")
        return [map_data_api_search_item(item) for item in items]


class YtDlpProvider:
    """Key-less metadata extraction through yt-dlp"""

    name = "yt_dlp"

    def _options(self, flat: bool) -> Dict[str, Any]:
        ydl_opts = {
            'quiet': True,
            'no_warnings': True,
            'skip_download': True,
            'socket_timeout': config.youtube.socket_timeout,
        }
        if flat:
            ydl_opts['extract_flat'] = 'in_playlist'

        # Check for manual cookies
        if os.path.exists(COOKIE_FILE):
            ydl_opts['cookiefile'] = COOKIE_FILE
        return ydl_opts

    def _extract(self, target: str, flat: bool) -> Dict[str, Any]:
        with yt_dlp.YoutubeDL(self._options(flat)) as ydl:
            info = ydl.extract_info(target, download=False)
        if not info:
            raise ProviderError(f"yt-dlp returned no info for {target}")
        return info

    def _entries(self, target: str) -> List[Dict[str, Any]]:
        info = self._extract(target, flat=True)
        return [entry for entry in info.get("entries") or [] if entry and entry.get("id")]

    def playlist_entries(self, playlist_id: str) -> List[Dict[str, Any]]:
        entries = self._entries(f"https://www.youtube.com/playlist?list={playlist_id}")
        if not entries:
            raise ProviderError("Playlist not found or empty")
        logger.info("Fetched playlist via yt-dlp", playlist_id=playlist_id, item_count=len(entries))
        return entries

    def playlist(self, playlist_id: str, original_url: str) -> List[MediaItem]:
        return [map_ytdlp_entry(entry) for entry in self.playlist_entries(playlist_id)]

    def video(self, video_id: str, original_url: str) -> MediaItem:
        info = self._extract(watch_url(video_id), flat=False)
        info.setdefault("id", video_id)
        return map_ytdlp_entry(info, original_url)

    def search(self, query: str) -> List[MediaItem]:
        entries = self._entries(f"ytsearch{config.youtube.search_results}:{query}")
        if not entries:
            raise ProviderError(f"No videos found for '{query}'")
        return [map_ytdlp_entry(entry) for entry in entries]


def default_providers() -> list:
    """Primary first, fallback second"""
    return [YouTubeDataAPIProvider(api_key=config.youtube.api_key), YtDlpProvider()]


def resolve(raw_input: str, providers: Optional[list] = None) -> ResolveResult:
    """Main resolver function - classify the input and resolve it through the provider chain"""

    classification = classify_input(raw_input)
    providers = providers if providers is not None else default_providers()
    original = classification.original

    logger.info("Resolving input",
                kind=classification.kind.value,
                value=classification.value)

    if classification.kind == InputKind.PLAYLIST:
        source, items = run_with_fallback(
            "playlist",
            [(p.name, partial(p.playlist, classification.value, original)) for p in providers],
            failure_message="Failed to fetch playlist via all methods"
        )
        return ResolveResult(type=InputKind.PLAYLIST, items=items, original_url=original,
                             playlist_id=classification.value, source=source)

    if classification.kind == InputKind.VIDEO:
        source, item = run_with_fallback(
            "video",
            [(p.name, partial(p.video, classification.value, original)) for p in providers],
            failure_message="Failed to fetch video via all methods: {error}"
        )
        return ResolveResult(type=InputKind.VIDEO, items=[item], original_url=original,
                             video_id=classification.value, source=source)

    source, items = run_with_fallback(
        "search",
        [(p.name, partial(p.search, classification.value)) for p in providers],
        failure_message="Failed to search videos via all methods: {error}"
    )
    return ResolveResult(type=InputKind.SEARCH, items=items, original_url=original,
                         query=classification.value, source=source)


def fetch_playlist_snippets(url: str,
                            api_provider: Optional[YouTubeDataAPIProvider] = None,
                            ytdlp_provider: Optional[YtDlpProvider] = None) -> List[Dict[str, Any]]:
    """Playlist items in the Data API playlistItem shape, whichever provider answered"""

    playlist_id = extract_playlist_id(url or "")
    if not playlist_id:
        raise InvalidInputError("Invalid Playlist URL")

    api_provider = api_provider or YouTubeDataAPIProvider(api_key=config.youtube.api_key)
    ytdlp_provider = ytdlp_provider or YtDlpProvider()

    def from_ytdlp() -> List[Dict[str, Any]]:
        return [ytdlp_entry_to_snippet(entry) for entry in ytdlp_provider.playlist_entries(playlist_id)]

    _, items = run_with_fallback(
        "playlist",
        [
            (api_provider.name, partial(api_provider.playlist_items_raw, playlist_id)),
            (ytdlp_provider.name, from_ytdlp),
        ],
        failure_message="Failed to fetch playlist via all methods"
    )
    return items
