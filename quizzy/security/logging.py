"""
Request logging for the blog API.

Each request produces one log line and one Axiom event tagged with the
matched route, the blog it touched, whether a read was counted as a view,
and the admin behind any write.
"""

import logging
import re
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from quizzy.security.axiom import AxiomClient, get_axiom_client, create_event

logger = logging.getLogger("quizzy.requests")

# Scanners probing for files this service never serves
PROBE_PATTERN = re.compile(
    r"(\.\./)|(%2e%2e)|(/\.env)|(/\.git)|(/wp-(admin|login))|(<script)|(%3cscript)",
    re.IGNORECASE,
)


def find_probe(path: str, query: str) -> str | None:
    match = PROBE_PATTERN.search(f"{path}?{query}" if query else path)
    return match.group(0) if match else None


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def route_template(request: Request) -> str:
    """The path pattern that handled the request, e.g. ``/api/blogs/{slug}``."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def blog_fields(request: Request) -> dict:
    state = request.state
    fields = {
        "blog_slug": request.path_params.get("slug"),
        "blog_id": request.path_params.get("blog_id") or getattr(state, "blog_id", None),
        "view_counted": getattr(state, "view_counted", None),
        "admin_id": getattr(state, "admin_id", None),
    }
    return {key: value for key, value in fields.items() if value is not None}


class RequestLogMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, axiom: AxiomClient | None = None):
        super().__init__(app)
        self.axiom = axiom or get_axiom_client()

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        route = route_template(request)
        fields = blog_fields(request)
        probe = find_probe(request.url.path, str(request.query_params))
        if probe:
            fields["suspicious"] = probe
            logger.warning(f"Probe on {request.url.path}: {probe!r}")

        counted = " view" if fields.get("view_counted") else ""
        logger.info(f"{request.method} {route} {response.status_code} {duration_ms}ms{counted}")

        user_agent = request.headers.get("User-Agent", "")
        await self.axiom.log_event(create_event(
            method=request.method,
            route=route,
            path=request.url.path,
            status=response.status_code,
            duration_ms=duration_ms,
            ip=get_client_ip(request),
            user_agent=user_agent[:500],
            **fields,
        ))
        return response
