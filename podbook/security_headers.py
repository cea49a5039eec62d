"""
Security and CORS middleware.

SecurityHeadersMiddleware adds the usual hardening headers to every response.
The JSON API gets a locked-down Content-Security-Policy; the guest booking page
carries its own inline style and script, so its policy allows those and
nothing external.

PublicCORSMiddleware opens the guest-facing paths to any origin. It must be
the outermost middleware so it answers preflight requests before the
host-only CORS middleware rejects them.
"""

import logging
import os
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

IS_PRODUCTION = os.getenv("ENVIRONMENT", "development").lower() == "production"

BOOKING_PATH_PREFIX = "/guest-booking/"
PUBLIC_PATH_PREFIXES = (BOOKING_PATH_PREFIX, "/send-invitation")

PUBLIC_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


def get_csp_policy(path: str = "") -> str:
    """Content-Security-Policy for a response path"""
    if path.startswith(BOOKING_PATH_PREFIX):
        directives = [
            "default-src 'self'",
            "script-src 'self' 'unsafe-inline'",
            "style-src 'self' 'unsafe-inline'",
            "img-src 'self' data:",
            "connect-src 'self'",
            "frame-ancestors 'none'",
            "base-uri 'none'",
            "form-action 'self'",
        ]
    else:
        directives = [
            "default-src 'none'",
            "frame-ancestors 'none'",
            "base-uri 'none'",
        ]
    return "; ".join(directives)


def get_permissions_policy() -> str:
    features = [
        "accelerometer=()",
        "camera=()",
        "geolocation=()",
        "gyroscope=()",
        "magnetometer=()",
        "microphone=()",
        "payment=()",
        "usb=()",
        "interest-cohort=()",
    ]
    return ", ".join(features)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security headers to all responses except excluded paths"""

    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or []

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        path = request.url.path
        if any(path.startswith(excluded) for excluded in self.exclude_paths):
            return response

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = get_csp_policy(path)
        response.headers["Permissions-Policy"] = get_permissions_policy()
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"

        # HSTS only behind TLS
        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )

        if "Cache-Control" not in response.headers:
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"

        return response


def is_public_path(path: str) -> bool:
    return any(path.startswith(prefix) for prefix in PUBLIC_PATH_PREFIXES)


class PublicCORSMiddleware(BaseHTTPMiddleware):
    """Wildcard CORS for the guest booking link and the invitation trigger"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not is_public_path(request.url.path):
            return await call_next(request)

        if request.method == "OPTIONS":
            return Response(status_code=200, content="ok", headers=PUBLIC_CORS_HEADERS)

        response = await call_next(request)
        # Credentials cannot be combined with a wildcard origin
        if "access-control-allow-credentials" in response.headers:
            del response.headers["access-control-allow-credentials"]
        for name, value in PUBLIC_CORS_HEADERS.items():
            response.headers[name] = value
        return response
