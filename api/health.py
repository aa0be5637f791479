from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from config import config

router = APIRouter()


class EchoRequest(BaseModel):
    url: Optional[str] = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "StudySync AI Backend is Running"


@router.get("/api/test")
def test_status():
    return {
        "status": "success",
        "message": "StudySync AI API is working",
        "timestamp": _now(),
        "environment": config.environment,
    }


@router.post("/api/test")
def test_echo(body: EchoRequest):
    return {
        "status": "success",
        "message": "Test endpoint received your request",
        "receivedUrl": body.url,
        "timestamp": _now(),
    }
