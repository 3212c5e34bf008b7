"""
Request latency middleware.

Logs method/path/status/elapsed_ms for every request and records
Prometheus observations. Adds ``X-Request-ID`` and ``X-Response-Time-Ms``
headers.

Pure ASGI middleware (not BaseHTTPMiddleware) so response bodies are never
buffered.
"""

from __future__ import annotations

import re
import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from artisanhub.api.metrics import observe_duration, record_request
from artisanhub.config import get_logger

logger = get_logger(__name__)

# Paths excluded from per-request logging (still measured by Prometheus)
_QUIET_PATHS = {"/metrics", "/health"}

# Map raw paths to route labels so ids never become Prometheus label values.
_KNOWN_ROUTES = {
    "/health": "/health",
    "/metrics": "/metrics",
    "/api/recommendations": "/api/recommendations",
    "/api/recommendations/feed": "/api/recommendations/feed",
    "/api/recommendations/trending": "/api/recommendations/trending",
    "/api/recommendations/top-artists": "/api/recommendations/top-artists",
    "/api/recommendations/insights": "/api/recommendations/insights",
    "/api/products": "/api/products",
    "/api/products/featured": "/api/products/featured",
    "/api/products/artist/my-products": "/api/products/artist/my-products",
    "/api/orders": "/api/orders",
    "/api/orders/user": "/api/orders/user",
    "/api/orders/artisan": "/api/orders/artisan",
    "/api/posts": "/api/posts",
}

_ROUTE_PATTERNS = [
    (re.compile(r"^/api/recommendations/similar/[^/]+$"), "/api/recommendations/similar/{id}"),
    (re.compile(r"^/api/products/[^/]+/like$"), "/api/products/{id}/like"),
    (re.compile(r"^/api/products/[^/]+/favorite$"), "/api/products/{id}/favorite"),
    (re.compile(r"^/api/products/[^/]+$"), "/api/products/{id}"),
    (re.compile(r"^/api/users/[^/]+/follow$"), "/api/users/{id}/follow"),
    (re.compile(r"^/api/posts/[^/]+/like$"), "/api/posts/{id}/like"),
    (re.compile(r"^/api/posts/[^/]+/comments$"), "/api/posts/{id}/comments"),
    (re.compile(r"^/api/posts/[^/]+$"), "/api/posts/{id}"),
    (re.compile(r"^/api/comments/[^/]+/like$"), "/api/comments/{id}/like"),
    (re.compile(r"^/api/comments/[^/]+$"), "/api/comments/{id}"),
]


def _normalize_path(path: str) -> str:
    """Map a raw URL path to a known route label, or 'unknown'."""
    clean = path.rstrip("/") or "/"
    if clean in _KNOWN_ROUTES:
        return _KNOWN_ROUTES[clean]
    for pattern, label in _ROUTE_PATTERNS:
        if pattern.match(clean):
            return label
    return "unknown"


class LatencyMiddleware:
    """Pure ASGI middleware for latency measurement and request ids."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = _normalize_path(scope["path"])
        method = scope["method"]
        start = time.perf_counter()
        request_id = uuid.uuid4().hex[:12]
        status = 500  # default until we see http.response.start

        async def send_wrapper(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
                elapsed_ms = (time.perf_counter() - start) * 1000
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", f"{elapsed_ms:.1f}".encode()))
                headers.append((b"x-request-id", request_id.encode()))
                message = {**message, "headers": headers}
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            logger.exception("%s %s [%s] failed", method, path, request_id)
            raise
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            record_request(path, method, status)
            observe_duration(path, elapsed_ms)
            if path not in _QUIET_PATHS:
                logger.info(
                    "%s %s %d %.1fms [%s]",
                    method,
                    scope["path"],
                    status,
                    elapsed_ms,
                    request_id,
                )
