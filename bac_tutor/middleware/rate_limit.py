# FILE: bac_tutor/middleware/rate_limit.py
"""
Per-client rate limiting for the completion proxy (in-memory, sliding minute)
"""
import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Iterable, Tuple
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Limits requests per client to the given path prefixes only"""

    def __init__(self, app, rpm: int = 30, paths: Iterable[str] = ("/gemini-chat",)):
        super().__init__(app)
        self.rpm = rpm
        self.paths: Tuple[str, ...] = tuple(paths)
        self.requests: Dict[str, Deque[float]] = defaultdict(deque)

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or not request.url.path.startswith(self.paths):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        now = time.monotonic()

        self._forget_idle(now)
        window = self.requests[client]
        while window and now - window[0] >= WINDOW_SECONDS:
            window.popleft()

        if len(window) >= self.rpm:
            logger.warning(f"Rate limit exceeded for {client} on {request.url.path}")
            return JSONResponse(status_code=429, content={"error": "Rate limit exceeded"})

        window.append(now)
        return await call_next(request)

    def _forget_idle(self, now: float):
        """Drop clients with no request inside the window"""
        idle = [
            client for client, window in self.requests.items()
            if not window or now - window[-1] >= WINDOW_SECONDS
        ]
        for client in idle:
            del self.requests[client]
