"""Client key functions for Starlette/FastAPI requests.

Pass one of these as ``keyFn`` when building a RateLimiter that sits in
front of an ASGI app:

    limiter = RateLimiter(keyFn=client_ip, ...)        # one quota per IP
    limiter = RateLimiter(keyFn=route_scoped, ...)     # one quota per IP and route
"""

from starlette.requests import Request

UNKNOWN_CLIENT = "unknown"


def client_ip(request: Request) -> str:
    """Extract client IP address from request.

    Handles the X-Forwarded-For header from a reverse proxy: the first
    address is the client, the rest are the proxy chain.

    Args:
        request: HTTP request.

    Returns:
        Client IP address, or "unknown" when none is available.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host

    return UNKNOWN_CLIENT


def route_scoped(request: Request) -> str:
    """Client key scoped to one route: ``"<ip>:<METHOD> <path>"``."""
    return f"{client_ip(request)}:{request.method} {request.url.path}"
