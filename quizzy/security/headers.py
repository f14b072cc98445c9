"""
Response headers for the blog API.

Caching follows what each route returns:
- the published listing is the same for every reader and may be cached briefly
- a single blog read depends on the reader's view marker and is private
- everything else (admin reads, writes, errors) is never stored
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

PUBLIC_LISTING = "public, max-age=60"
PER_READER = "private, no-store"
NO_STORE = "no-store"

CACHEABLE_ROUTES = {
    "/api/blogs": PUBLIC_LISTING,
    "/api/blogs/{slug}": PER_READER,
}


def cache_policy(method: str, route_path: str | None, status_code: int) -> str:
    if method != "GET" or status_code != 200:
        return NO_STORE
    return CACHEABLE_ROUTES.get(route_path, NO_STORE)


class BlogHeadersMiddleware(BaseHTTPMiddleware):
    """Sets caching per blog route, plus the hardening headers every response gets."""

    def __init__(self, app, enable_hsts: bool = False):
        super().__init__(app)
        self.enable_hsts = enable_hsts

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        route = request.scope.get("route")
        policy = cache_policy(request.method, getattr(route, "path", None), response.status_code)
        response.headers["Cache-Control"] = policy
        if policy == PER_READER:
            response.headers["Vary"] = "Cookie"

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cross-Origin-Resource-Policy"] = "same-origin"
        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
