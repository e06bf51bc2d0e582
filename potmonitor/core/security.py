from __future__ import annotations

import time
import uuid
from collections import defaultdict, deque
from threading import Lock

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from potmonitor.core.config import settings


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class InMemoryRateLimiterMiddleware(BaseHTTPMiddleware):
    """Sliding-window limit per client address and path."""

    def __init__(self, app, *, requests: int | None = None, window_seconds: int | None = None):
        super().__init__(app)
        self.limit = requests if requests is not None else settings.rate_limit_requests
        self.window = window_seconds if window_seconds is not None else settings.rate_limit_window_seconds
        self._events: dict[str, deque[float]] = defaultdict(deque)
        self._lock = Lock()

    def _client_key(self, request: Request) -> str:
        ip = request.client.host if request.client else "unknown"
        return f"{ip}:{request.url.path}"

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in {"/health"}:
            return await call_next(request)

        now = time.time()
        key = self._client_key(request)

        with self._lock:
            q = self._events[key]
            cutoff = now - self.window
            while q and q[0] < cutoff:
                q.popleft()

            if len(q) >= self.limit:
                retry_after = max(1, int(self.window - (now - q[0])))
                return JSONResponse(
                    status_code=429,
                    content={
                        "error": {
                            "code": "rate_limit_exceeded",
                            "message": "Too many requests. Retry later.",
                            "retry_after_seconds": retry_after,
                            "request_id": getattr(request.state, "request_id", None),
                        }
                    },
                    headers={"Retry-After": str(retry_after)},
                )

            q.append(now)

        return await call_next(request)
