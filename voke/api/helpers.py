from __future__ import annotations
import time
import uuid
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from voke.errors import VokeError
from voke.logger import get_logger

logger = get_logger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no"  # Disable nginx buffering
}


def new_request_id() -> str:
    return str(uuid.uuid4())[:8]


def validation_error_message(exc: RequestValidationError) -> str:
    """
    Short caller-facing description of the first invalid body field,
    e.g. "Missing 'messages' parameter".
    """
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    loc = [part for part in first.get("loc", ()) if part != "body"]
    if not loc:
        return "Invalid request body"
    field = loc[0]
    if first.get("type") == "missing" and len(loc) == 1:
        return f"Missing '{field}' parameter"
    return f"Missing or invalid '{field}' parameter"


def error_response(error: VokeError, request_id: str = "unknown", start_time: float | None = None) -> JSONResponse:
    """Log a handled error and convert it to the JSON error envelope."""
    duration = (time.perf_counter() - start_time) * 1000 if start_time is not None else 0.0
    logger.error(
        f"[API] REQUEST FAILED | id={request_id} | kind={type(error).__name__} "
        f"| status={error.status_code} | duration={duration:.0f}ms | error={error.message}"
    )
    logger.info("[API] " + "="*60)
    return JSONResponse(status_code=error.status_code, content={"error": error.message})


def unexpected_error_response(error: Exception, request_id: str = "unknown", start_time: float | None = None) -> JSONResponse:
    duration = (time.perf_counter() - start_time) * 1000 if start_time is not None else 0.0
    logger.exception(f"[API] REQUEST FAILED | id={request_id} | duration={duration:.0f}ms | error={error}")
    logger.info("[API] " + "="*60)
    return JSONResponse(status_code=500, content={"error": str(error) or "Unknown error"})
