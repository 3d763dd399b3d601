"""CORS, rate limiting, and security headers middleware."""

import time
from collections import defaultdict
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from worktrack_api.core.config import Settings

_DEFAULT_TRUSTED_HEADERS = ["CF-Connecting-IP", "X-Forwarded-For", "X-Real-IP"]
_WINDOW_SECONDS = 60.0


def get_client_ip(request: Request, trusted_headers: list[str] | None = None) -> str:
    """Extract the real client IP from proxy headers or direct connection.

    Headers are checked in priority order; for X-Forwarded-For the leftmost
    address wins.  Falls back to ``request.client.host``.

    Returns:
        The client IP address string, or "unknown" if not determinable.
    """
    headers = trusted_headers if trusted_headers is not None else _DEFAULT_TRUSTED_HEADERS

    for header in headers:
        value = request.headers.get(header, "").strip()
        if not value:
            continue
        if header.lower() == "x-forwarded-for":
            return value.split(",")[0].strip()
        return value

    if request.client:
        return request.client.host
    return "unknown"


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Configure CORS middleware on the FastAPI app.

    Credentials are allowed so browsers send the session cookie.
    """
    kwargs: dict[str, Any] = {
        "allow_credentials": True,
        "allow_methods": ["*"],
        "allow_headers": ["*"],
    }
    if settings.cors_origin_list:
        kwargs["allow_origins"] = settings.cors_origin_list
    if settings.cors_origin_regex.strip():
        kwargs["allow_origin_regex"] = settings.cors_origin_regex.strip()
    app.add_middleware(CORSMiddleware, **kwargs)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses.

    Responses may carry one-time credentials, so nothing is cacheable.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cache-Control"] = "no-store"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory per-IP sliding-window rate limiting.

    Requests whose path ends in one of ``credential_paths`` (login and
    invitation redemption) are counted in a separate, tighter window.
    """

    def __init__(
        self,
        app: ASGIApp,
        requests_per_minute: int = 60,
        credential_requests_per_minute: int = 10,
        credential_paths: tuple[str, ...] = ("/login",),
        trusted_proxy_headers: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.credential_requests_per_minute = credential_requests_per_minute
        self.credential_paths = credential_paths
        self.trusted_proxy_headers = trusted_proxy_headers
        self._request_counts: dict[tuple[str, str], list[float]] = defaultdict(list)

    def _is_credential_request(self, request: Request) -> bool:
        if request.method != "POST":
            return False
        path = request.url.path.rstrip("/")
        return path.endswith(self.credential_paths) or "/invitation/" in path

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        client_ip = get_client_ip(request, self.trusted_proxy_headers)
        if self._is_credential_request(request):
            key, limit = (client_ip, "credentials"), self.credential_requests_per_minute
        else:
            key, limit = (client_ip, "general"), self.requests_per_minute

        now = time.time()
        window_start = now - _WINDOW_SECONDS
        self._request_counts[key] = [t for t in self._request_counts[key] if t > window_start]

        if len(self._request_counts[key]) >= limit:
            return Response(
                content='{"detail":"Rate limit exceeded"}',
                status_code=429,
                media_type="application/json",
            )

        self._request_counts[key].append(now)
        return await call_next(request)
