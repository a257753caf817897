from __future__ import annotations

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Refuses submission bodies above `max_bytes` with the API's error envelope."""

    def __init__(self, app, *, max_bytes: int, methods: tuple[str, ...] = ("POST", "PUT", "PATCH")) -> None:
        super().__init__(app)
        self._max_bytes = max(1, max_bytes)
        self._methods = methods

    def _declared_length(self, request: Request) -> int:
        try:
            return int(request.headers.get("content-length") or 0)
        except ValueError:
            return 0

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method in self._methods:
            length = self._declared_length(request)
            if length > self._max_bytes:
                return JSONResponse(
                    status_code=413,
                    content={
                        "success": False,
                        "message": "Request body too large",
                        "details": {"received": length, "limit": self._max_bytes},
                    },
                )
        return await call_next(request)
