# ===== app/api/middleware/rate_limit_middleware.py =====
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
import time

PUBLIC_PREFIX = "/api/v1/public/"
WINDOW_SECONDS = 60.0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-client-IP limit on public write endpoints (booking, cancel, reschedule, lookup).

    Token lookups are the brute-force surface, so every public POST counts.
    Reads are not limited.
    """

    def __init__(self, app, requests_per_minute: int = 20):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.request_times = {}  # In production, use Redis
        self._last_prune = time.time()

    def _prune(self, current_time: float):
        """Forget clients with no request inside the window"""
        self.request_times = {
            ip: times for ip, times in self.request_times.items()
            if times and current_time - times[-1] < WINDOW_SECONDS
        }
        self._last_prune = current_time

    async def dispatch(self, request: Request, call_next):
        if request.method != "POST" or not request.url.path.startswith(PUBLIC_PREFIX):
            return await call_next(request)

        if self.requests_per_minute <= 0:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        current_time = time.time()
        if current_time - self._last_prune >= WINDOW_SECONDS:
            self._prune(current_time)

        # Simple sliding window
        recent = [
            t for t in self.request_times.get(client_ip, [])
            if current_time - t < WINDOW_SECONDS
        ]

        if len(recent) >= self.requests_per_minute:
            self.request_times[client_ip] = recent
            retry_after = max(int(WINDOW_SECONDS - (current_time - recent[0])) + 1, 1)
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Too many requests. Please try again shortly.",
                    "retry_after": retry_after
                },
                headers={"Retry-After": str(retry_after)}
            )

        recent.append(current_time)
        self.request_times[client_ip] = recent

        return await call_next(request)
