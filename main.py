#!/usr/bin/env python3
"""
StudySync AI Backend - command line entry point

Starts the HTTP server or runs a single capability from the terminal:
  serve                                  → HTTP server on the configured port
  transcript <youtube_url>               → caption segments as JSON
  video <url_or_query>                   → normalized playlist/video/search items
  summarize <text_file> [task] [size]    → chunked document summary
"""

import json
import sys
from pathlib import Path

import structlog
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from config import config, configure_logging, TASK_TYPES
from core.fallback import ProviderError
from core.llm import LLMError
from core.resolver import ResolverError, resolve
from core.summarize import ChunkTask, ChunkingError, process_document
from core.transcript import TranscriptError, fetch_transcript

logger = structlog.get_logger(__name__)


USAGE = """Usage: python main.py <command> [args]

Commands:
  serve                                   Run the HTTP server
  transcript <youtube_url>                Print the transcript of a video
  video <url_or_query>                    Resolve a playlist, video or search query
  summarize <text_file> [task] [size]     Summarize a text file in chunks

Examples:
  python main.py serve
  python main.py transcript https://youtu.be/dQw4w9WgXcQ
  python main.py video "https://www.youtube.com/playlist?list=PL123"
  python main.py summarize notes.txt key-points 2000"""


def print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def run_server() -> int:
    import uvicorn

    print(f"✅ Backend Server running on http://{config.server.host}:{config.server.port}")
    print(f"   - YouTube API Key configured: {bool(config.youtube.api_key)}")
    print(f"   - Groq API Key configured: {bool(config.llm.groq_api_key)}")
    uvicorn.run("server:app", host=config.server.host, port=config.server.port,
                log_level="debug" if config.debug else "info")
    return 0


def run_transcript(url: str) -> int:
    transcript = fetch_transcript(url)
    print_json(transcript.to_response())
    print(f"\n📝 {len(transcript.segments)} segments via {transcript.source}", file=sys.stderr)
    return 0


def run_video(query: str) -> int:
    result = resolve(query)
    print_json(result.to_response())
    print(f"\n📺 {len(result.items)} {result.type.value} item(s) via {result.source}", file=sys.stderr)
    return 0


def run_summarize(path: str, task_type: str = None, chunk_size: str = None) -> int:
    source = Path(path)
    if not source.exists():
        print(f"❌ Error: File not found: {path}")
        return 1

    task_type = task_type or config.pdf.default_task_type
    if task_type not in TASK_TYPES:
        print(f"❌ Error: Task type must be one of {TASK_TYPES}")
        return 1

    try:
        size = int(chunk_size) if chunk_size else config.pdf.default_chunk_size
    except ValueError:
        print(f"❌ Error: Chunk size must be an integer, got {chunk_size}")
        return 1
    if size <= 0 or size > config.pdf.max_chunk_size:
        print(f"❌ Error: Chunk size must be between 1 and {config.pdf.max_chunk_size}")
        return 1

    text = source.read_text(encoding="utf-8")
    if not text.strip():
        print("❌ Error: File is empty")
        return 1

    result = process_document(ChunkTask(source_text=text, chunk_size=size, task_type=task_type))
    print(result.result)
    print(f"\n🧩 Chunks processed: {result.chunks_processed}", file=sys.stderr)
    return 0


def main() -> int:
    """Main entry point with argument parsing"""

    args = sys.argv[1:]
    if not args or args[0] in ("-h", "--help"):
        print(USAGE)
        return 1

    configure_logging(config.debug)
    command, rest = args[0], args[1:]

    if config.debug:
        print(f"🔧 Debug mode enabled")
        print(f"🤖 AI Model: {config.llm.model}")
        print()

    try:
        if command == "serve":
            return run_server()
        if command == "transcript" and len(rest) == 1:
            return run_transcript(rest[0])
        if command == "video" and len(rest) >= 1:
            return run_video(" ".join(rest))
        if command == "summarize" and 1 <= len(rest) <= 3:
            return run_summarize(*rest)
    except (ResolverError, TranscriptError, ProviderError) as e:
        logger.error("YouTube request failed", error=str(e))
        print(f"\n❌ {e}")
        return 1
    except (ChunkingError, LLMError) as e:
        logger.error("AI processing failed", error=str(e))
        print(f"\n❌ AI processing error: {e}")
        return 1

    print(USAGE)
    return 1


if __name__ == "__main__":
    sys.exit(main())
