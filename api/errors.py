"""Translation of failures into JSON error replies of the form {error, details}."""

from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class ApiError(Exception):
    """Raised by route handlers; rendered as {error, details} with the given status"""

    def __init__(self, status_code: int, error: str, details: Optional[str] = None,
                 extra: Optional[Dict[str, Any]] = None):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details
        self.extra = extra or {}

    def payload(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error, "details": self.details or self.error}
        body.update(self.extra)
        return body


def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log("Request failed",
            path=request.url.path,
            status_code=exc.status_code,
            error=exc.error,
            details=exc.details)
        return JSONResponse(status_code=exc.status_code, content=exc.payload())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()) if part != 'body')}: {err.get('msg')}"
            for err in exc.errors()
        )
        logger.warning("Invalid request body", path=request.url.path, details=messages)
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": messages})
