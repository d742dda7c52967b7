# app/routers/_responses.py — shared API response envelopes

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel

RETRY_LATER_MESSAGE = "Search is temporarily unavailable. Please try again later."

_FAILURE_STATUS_CODES = {
    "missing_provider_credentials": 400,
    "invalid_scoring_strategy": 400,
    "fetch_failed": 502,
}


class DataEnvelope(BaseModel):
    data: Any


class ErrorEnvelope(BaseModel):
    error: str
    code: str | None = None


def error_response(message: str, status_code: int, code: str | None = None) -> JSONResponse:
    content: dict[str, Any] = {"error": message}
    if code:
        content["code"] = code
    return JSONResponse(status_code=status_code, content=content)


def search_failure_response(result: dict[str, Any]) -> JSONResponse:
    error = result.get("error") if isinstance(result.get("error"), dict) else {}
    code = error.get("code") or "search_failed"
    status_code = _FAILURE_STATUS_CODES.get(code, 500)
    message = error.get("message") if status_code == 400 else RETRY_LATER_MESSAGE
    return error_response(message or RETRY_LATER_MESSAGE, status_code, code)
