"""Security and request logging modules for Quizzy."""

from quizzy.security.headers import BlogHeadersMiddleware
from quizzy.security.logging import RequestLogMiddleware
from quizzy.security.axiom import get_axiom_client, AxiomClient, RequestEvent

__all__ = [
    "BlogHeadersMiddleware",
    "RequestLogMiddleware",
    "get_axiom_client",
    "AxiomClient",
    "RequestEvent",
]
