# ===== app/api/middleware/rate_limit_middleware.py =====
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
import time

WINDOW_SECONDS = 1.0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-client rate limiting for the public booking endpoints.

    Sliding one-second window keyed on the client address. State is
    per-process; run behind a shared limiter when scaling out.
    """

    def __init__(self, app, requests_per_second: int = 10, path_prefix: str = "/api/v1/"):
        super().__init__(app)
        self.requests_per_second = requests_per_second
        self.path_prefix = path_prefix
        self.request_times = {}
        self._last_sweep = 0.0

    def _sweep(self, current_time: float):
        """Forget clients with no request inside the window"""
        stale = [
            key for key, times in self.request_times.items()
            if not times or current_time - times[-1] >= WINDOW_SECONDS
        ]
        for key in stale:
            del self.request_times[key]
        self._last_sweep = current_time

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_key = request.client.host if request.client else "unknown"
        current_time = time.time()

        if current_time - self._last_sweep >= WINDOW_SECONDS:
            self._sweep(current_time)

        # Drop timestamps older than the window
        window = [
            t for t in self.request_times.get(client_key, [])
            if current_time - t < WINDOW_SECONDS
        ]

        if len(window) >= self.requests_per_second:
            self.request_times[client_key] = window
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Rate limit exceeded. Too many requests per second.",
                    "retry_after": 1
                },
                headers={"Retry-After": "1"}
            )

        window.append(current_time)
        self.request_times[client_key] = window

        return await call_next(request)
