"""
Configuration management for the StudySync AI backend

Using pydantic-settings for type-safe configuration with environment variable support.
All settings can be overridden via environment variables with the SSA_ prefix.
Keeps the original environment variable names (YOUTUBE_API_KEY, GROQ_API_KEY,
VITE_GROQ_API_KEY) working as fallbacks.
"""

import logging
import sys
from typing import List, Optional

import structlog
from pydantic import AliasChoices, Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict


TASK_TYPES = ["summary", "detailed-summary", "key-points", "questions"]


class YouTubeConfig(BaseSettings):
    """Configuration for YouTube metadata lookups"""

    model_config = SettingsConfigDict(
        env_prefix='SSA_YOUTUBE_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # YouTube Data API configuration
    api_key: Optional[str] = Field(
        default=None,
        description="YouTube Data API v3 key; without it only yt-dlp is used",
        validation_alias=AliasChoices('SSA_YOUTUBE_API_KEY', 'YOUTUBE_API_KEY')
    )

    page_size: int = Field(
        default=50,
        description="Playlist items requested per Data API page",
        ge=1,
        le=50
    )

    search_results: int = Field(
        default=10,
        description="Number of videos returned for a free-text search",
        ge=1,
        le=50
    )

    socket_timeout: int = Field(
        default=30,
        description="yt-dlp socket timeout in seconds",
        ge=5,
        le=600
    )


class TranscriptConfig(BaseSettings):
    """Configuration for caption extraction"""

    model_config = SettingsConfigDict(
        env_prefix='SSA_TRANSCRIPT_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    languages: List[str] = Field(
        default_factory=lambda: ["en"],
        description="Preferred caption languages, most preferred first"
    )


class LLMConfig(BaseSettings):
    """Configuration for the Groq chat-completions endpoint"""

    model_config = SettingsConfigDict(
        env_prefix='SSA_LLM_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    groq_api_key: Optional[str] = Field(
        default=None,
        description="Groq API key",
        validation_alias=AliasChoices('SSA_LLM_GROQ_API_KEY', 'GROQ_API_KEY', 'VITE_GROQ_API_KEY')
    )

    base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="OpenAI-compatible base URL of the Groq API"
    )

    model: str = Field(
        default="llama-3.3-70b-versatile",
        description="Groq model used for generation"
    )

    api_timeout: int = Field(
        default=120,
        description="LLM API timeout in seconds",
        ge=10,
        le=600
    )

    temperature: float = Field(
        default=0.7,
        description="Sampling temperature for summarization calls",
        ge=0.0,
        le=2.0
    )

    max_tokens: int = Field(
        default=4096,
        description="Maximum completion tokens for summarization calls",
        ge=256,
        le=32768
    )

    # 1 means a single attempt: failures surface to the caller immediately
    max_retries: int = Field(
        default=1,
        description="Maximum attempts for rate-limited API calls",
        ge=1,
        le=10
    )

    retry_delay: int = Field(
        default=1,
        description="Initial retry delay in seconds",
        ge=1,
        le=60
    )


class PDFConfig(BaseSettings):
    """Configuration for chunked document processing"""

    model_config = SettingsConfigDict(
        env_prefix='SSA_PDF_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    default_chunk_size: int = Field(
        default=4000,
        description="Characters per chunk when the request does not specify one",
        ge=100,
        le=100000
    )

    max_chunk_size: int = Field(
        default=100000,
        description="Largest chunk size a request may ask for",
        ge=100,
        le=1000000
    )

    default_task_type: str = Field(
        default="summary",
        description="Task type used when the request does not specify one"
    )

    @validator('default_task_type')
    def validate_default_task_type(cls, v):
        if v not in TASK_TYPES:
            raise ValueError(f"Task type must be one of {TASK_TYPES}")
        return v


class ServerConfig(BaseSettings):
    """Configuration for the HTTP server"""

    model_config = SettingsConfigDict(
        env_prefix='SSA_SERVER_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    host: str = Field(default="0.0.0.0", description="Bind address")

    port: int = Field(
        default=3001,
        description="Bind port",
        ge=1,
        le=65535
    )

    cors_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed by the CORS middleware"
    )


class AppConfig(BaseSettings):
    """Main application configuration"""

    model_config = SettingsConfigDict(
        env_prefix='SSA_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'  # Ignore unknown environment variables
    )

    # Sub-configurations
    youtube: YouTubeConfig = Field(default_factory=YouTubeConfig)
    transcript: TranscriptConfig = Field(default_factory=TranscriptConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    pdf: PDFConfig = Field(default_factory=PDFConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    # Global settings
    debug: bool = Field(
        default=False,
        description="Enable debug logging"
    )

    environment: str = Field(
        default="development",
        description="Deployment environment reported by the health route"
    )


# Global configuration instance
config = AppConfig()


def configure_logging(debug: bool = False) -> None:
    """Configure structured logging"""

    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
