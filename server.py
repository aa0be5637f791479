"""
StudySync AI Backend - HTTP application

Composes the per-endpoint routers into one FastAPI app with CORS enabled.
Run with: python main.py serve   (or: uvicorn server:app --port 3001)
"""

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import config, configure_logging
from api import exam, health, pdf_process, playlist, transcript, video
from api.errors import register_error_handlers


configure_logging(config.debug)

logger = structlog.get_logger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="StudySync AI Backend")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for module in (health, transcript, video, playlist, exam, pdf_process):
        app.include_router(module.router)

    register_error_handlers(app)

    logger.info("Application created",
                youtube_api_key_configured=bool(config.youtube.api_key),
                groq_api_key_configured=bool(config.llm.groq_api_key),
                model=config.llm.model)
    return app


app = create_app()
