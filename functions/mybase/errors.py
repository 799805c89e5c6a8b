"""
API error type and its JSON rendering.

Handlers answer failures with `{"error": ..., "details": ...}` bodies rather
than FastAPI's `{"detail": ...}`, since the web client reads those keys.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class ApiError(Exception):
    def __init__(self, status_code: int, error: str, details: Optional[str] = None):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    content = {"error": exc.error}
    if exc.details is not None:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)
