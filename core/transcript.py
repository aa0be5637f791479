"""
Transcript Module

Single responsibility: YouTube URL → timestamped caption segments.
Primary source is the video's json3 caption track read through yt-dlp (millisecond offsets);
youtube-transcript-api (second offsets) is the fallback. Both are normalized to milliseconds.
"""

import json
import os
from functools import partial
from typing import Any, Dict, List, Optional, Tuple

import yt_dlp
import structlog
from pydantic import BaseModel, Field
from youtube_transcript_api import YouTubeTranscriptApi

from config import config
from core.fallback import AllProvidersFailed, ProviderError, run_with_fallback
from core.resolver import COOKIE_FILE, InvalidInputError, extract_video_id, watch_url

# Configure structured logger
logger = structlog.get_logger(__name__)


NO_TRANSCRIPT_MESSAGE = "No transcript available for this video using any method"


class TranscriptError(Exception):
    """Custom exception for transcript failures"""
    pass


class TranscriptUnavailable(TranscriptError):
    """Every caption provider failed"""
    pass


class TranscriptSegment(BaseModel):
    """One caption line; offset and duration are in milliseconds"""

    text: str = Field(description="Caption text")
    offset: int = Field(description="Start time in milliseconds", ge=0)
    duration: int = Field(description="Duration in milliseconds", ge=0)


class Transcript(BaseModel):
    """Complete transcript with metadata"""

    video_id: str = Field(description="YouTube video ID")
    segments: List[TranscriptSegment] = Field(description="Caption segments in order")
    source: str = Field(description="Provider that produced the transcript")
    language: Optional[str] = Field(None, description="Caption language code")

    @property
    def text(self) -> str:
        return " ".join(segment.text for segment in self.segments)

    def to_response(self) -> Dict[str, Any]:
        return {
            "transcript": self.text,
            "items": [segment.model_dump() for segment in self.segments],
            "source": self.source,
        }


def select_caption_track(info: Dict[str, Any], languages: List[str]) -> Tuple[str, str]:
    """Pick a json3 caption track: manual subtitles first, then automatic captions"""

    def json3_url(formats: List[Dict[str, Any]]) -> Optional[str]:
        for fmt in formats or []:
            if fmt.get("ext") == "json3" and fmt.get("url"):
                return fmt["url"]
        return None

    for key in ("subtitles", "automatic_captions"):
        tracks = info.get(key) or {}
        for lang in languages:
            for track_lang, formats in tracks.items():
                if track_lang == lang or track_lang.startswith(f"{lang}-"):
                    url = json3_url(formats)
                    if url:
                        return track_lang, url

    # Any manual track is better than nothing
    for track_lang, formats in (info.get("subtitles") or {}).items():
        url = json3_url(formats)
        if url:
            return track_lang, url

    raise ProviderError("No caption track found")


def parse_json3(raw: str) -> List[TranscriptSegment]:
    """Convert a json3 caption document into segments"""

    data = json.loads(raw)
    segments = []
    for event in data.get("events") or []:
        segs = event.get("segs")
        if not segs:
            continue
        text = "".join(seg.get("utf8", "") for seg in segs).replace("\n", " ").strip()
        if not text:
            continue
        segments.append(TranscriptSegment(
            text=text,
            offset=int(event.get("tStartMs", 0)),
            duration=int(event.get("dDurationMs", 0))
        ))
    return segments


class YtDlpCaptionProvider:
    """Caption tracks exposed by yt-dlp, millisecond timestamps"""

    name = "yt_dlp"

    def fetch(self, video_id: str, languages: List[str]) -> Transcript:
        ydl_opts = {
            'quiet': True,
            'no_warnings': True,
            'skip_download': True,
            'writesubtitles': True,
            'writeautomaticsub': True,
            'subtitleslangs': languages,
            'subtitlesformat': 'json3',
            'socket_timeout': config.youtube.socket_timeout,
        }
        if os.path.exists(COOKIE_FILE):
            ydl_opts['cookiefile'] = COOKIE_FILE

        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            info = ydl.extract_info(watch_url(video_id), download=False)
            if not info:
                raise ProviderError("yt-dlp returned no info")
            language, track_url = select_caption_track(info, languages)
            with ydl.urlopen(track_url) as response:
                raw = response.read().decode("utf-8")

        segments = parse_json3(raw)
        if not segments:
            raise ProviderError("Caption track is empty")

        return Transcript(video_id=video_id, segments=segments, source=self.name, language=language)


class TranscriptApiProvider:
    """youtube-transcript-api, second-based timestamps"""

    name = "youtube_transcript_api"

    def __init__(self, api: Any = None):
        self._api = api

    def fetch(self, video_id: str, languages: List[str]) -> Transcript:
        api = self._api or YouTubeTranscriptApi()
        fetched = api.fetch(video_id, languages=languages)

        segments = [
            TranscriptSegment(
                text=snippet.text.replace("\n", " ").strip(),
                offset=round(snippet.start * 1000),
                duration=round(snippet.duration * 1000)
            )
            for snippet in fetched
            if snippet.text and snippet.text.strip()
        ]
        if not segments:
            raise ProviderError("Transcript is empty")

        return Transcript(video_id=video_id, segments=segments, source=self.name,
                          language=getattr(fetched, "language_code", None))


def default_providers() -> list:
    return [YtDlpCaptionProvider(), TranscriptApiProvider()]


def fetch_transcript(url: str, providers: Optional[list] = None) -> Transcript:
    """Main transcript function - primary provider, one fallback, no caching"""

    video_id = extract_video_id(url or "")
    if not video_id:
        raise InvalidInputError("Invalid YouTube URL")

    providers = providers if providers is not None else default_providers()
    languages = config.transcript.languages

    logger.info("Fetching transcript", video_id=video_id, languages=languages)

    try:
        _, transcript = run_with_fallback(
            "transcript",
            [(p.name, partial(p.fetch, video_id, languages)) for p in providers],
            failure_message=NO_TRANSCRIPT_MESSAGE
        )
    except AllProvidersFailed as e:
        raise TranscriptUnavailable(NO_TRANSCRIPT_MESSAGE) from e

    logger.info("Transcript fetched",
                video_id=video_id,
                source=transcript.source,
                segment_count=len(transcript.segments),
                char_count=len(transcript.text))
    return transcript
