"""
Security Headers Middleware - Add security headers to all API responses.

The API only serves JSON and event streams, so the policy is restrictive:
nothing may be framed, sniffed or loaded from a response. HSTS is only sent
outside development, where the API sits behind HTTPS.

Usage:
    from academy.middleware.security_headers import SecurityHeadersMiddleware

    app.add_middleware(SecurityHeadersMiddleware, enforce_https=True)
"""

from starlette.middleware.base import BaseHTTPMiddleware

from academy.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

STATIC_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'none'; frame-ancestors 'none'; base-uri 'none'; form-action 'none'"
    ),
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=(), payment=()",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to every HTTP response."""

    def __init__(self, app, enforce_https: bool = False):
        super().__init__(app)
        self.enforce_https = enforce_https

        logger.info("Security headers middleware initialized", enforce_https=self.enforce_https)

    async def dispatch(self, request, call_next):
        response = await call_next(request)

        for name, value in STATIC_HEADERS.items():
            response.headers.setdefault(name, value)

        if self.enforce_https:
            response.headers["Strict-Transport-Security"] = HSTS_VALUE

        return response
