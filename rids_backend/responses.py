"""
responses.py — JSON envelope shared by every RIDS endpoint.

    success: {"success": true,  "data": ..., "message"?: str, ...extra}
    failure: {"success": false, "error": str}

Failures are produced only by the exception handlers in main.py; routes raise
errors.RidsError subclasses and return ok(...) on success.
"""
from typing import Any, Optional

from fastapi.responses import JSONResponse


def ok(data: Any = None, message: Optional[str] = None, **extra: Any) -> dict:
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    body.update(extra)
    return body


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})
