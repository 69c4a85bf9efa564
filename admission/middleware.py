"""Rate limit middleware for Starlette and FastAPI.

Runs every HTTP request through a RateLimiter. It handles:
- HTTP 429 JSON responses carrying the limiter's message on reject
- X-Rate-Limit-Limit / -Remaining / -Duration headers on every processed
  response, admitted or rejected
- Store failures according to the limiter's FailurePolicy; with PROPAGATE
  the StoreError reaches the app's exception handling

Usage:
    ```python
    from fastapi import FastAPI

    from admission.keys import client_ip
    from admission.middleware import RateLimitMiddleware

    app = FastAPI()
    limiter = create_rate_limiter(
        window_length=60, max=10, key_fn=client_ip, algorithm="sliding-window"
    )
    app.add_middleware(RateLimitMiddleware, limiter=limiter)
    ```
"""

from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from admission.errors import ErrorCode
from admission.models import Decision
from admission.service import RateLimiter


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Starlette middleware applying one RateLimiter to HTTP requests.

    Args:
        app: The ASGI application to wrap.
        limiter: Limiter whose ``key_fn`` accepts a Starlette Request.
        exclude_paths: Path prefixes that bypass rate limiting (no headers).
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        limiter: RateLimiter,
        exclude_paths: tuple[str, ...] = (),
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.exclude_paths = exclude_paths

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Decide on the request, then reject it or pass it downstream.

        Args:
            request: Incoming HTTP request.
            call_next: Next handler in middleware chain.

        Returns:
            Response: Either the 429 rejection or the downstream response,
                both carrying the quota headers.
        """
        if self.exclude_paths and request.url.path.startswith(self.exclude_paths):
            return await call_next(request)

        decision = await self.limiter.evaluate(request)
        if not decision.allowed:
            return self._build_429_response(decision)

        response = await call_next(request)
        response.headers.update(decision.headers())
        return response

    def _build_429_response(self, decision: Decision) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content={
                "error": ErrorCode.RATE_LIMIT_EXCEEDED.value,
                "message": self.limiter.config.message,
            },
            headers=decision.headers(),
        )
