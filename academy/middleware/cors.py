"""
CORS Middleware - Cross-Origin Resource Sharing for the academy website.

The React frontend is served from a different origin than the API (Vite dev
server on http://localhost:5173 by default), so the browser needs CORS headers
on every response and an answer to preflight OPTIONS requests.

Allowed origins come from CORS_ORIGIN (comma-separated).

Usage:
    from academy.middleware.cors import CORSMiddleware

    app.add_middleware(
        CORSMiddleware,
        allowed_origins=settings.cors_origins(),
        allow_credentials=True,
    )
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from academy.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class CORSMiddleware(BaseHTTPMiddleware):
    """
    Handles preflight OPTIONS requests and adds CORS headers to responses.
    """

    def __init__(
        self,
        app,
        allowed_origins: list[str] | None = None,
        allow_credentials: bool = True,
        allow_methods: list[str] | None = None,
        allow_headers: list[str] | None = None,
        max_age: int = 600,
    ):
        """
        Args:
            app: ASGI application
            allowed_origins: Exact origins allowed to call the API
            allow_credentials: Whether to allow cookies/credentials
            allow_methods: Allowed HTTP methods
            allow_headers: Allowed request headers
            max_age: How long (seconds) browsers may cache preflight responses
        """
        super().__init__(app)
        self.allowed_origins = allowed_origins or []
        self.allow_credentials = allow_credentials
        self.allow_methods = allow_methods or ["GET", "POST", "OPTIONS"]
        self.allow_headers = allow_headers or [
            "Accept",
            "Content-Type",
            "Authorization",
            "X-Request-ID",
            "X-Requested-With",
        ]
        self.max_age = max_age

        logger.info(
            "CORS middleware initialized",
            allowed_origins=self.allowed_origins,
            allow_credentials=self.allow_credentials,
        )

    def is_allowed(self, origin: str | None) -> bool:
        return bool(origin) and origin in self.allowed_origins

    async def dispatch(self, request, call_next):
        origin = request.headers.get("origin")
        is_allowed_origin = self.is_allowed(origin)

        # Preflight
        if request.method == "OPTIONS" and request.headers.get("access-control-request-method"):
            if is_allowed_origin:
                return self._preflight_response(origin)

            logger.warning("CORS preflight rejected - origin not allowed", origin=origin)
            return Response(status_code=403, content="Origin not allowed")

        try:
            response = await call_next(request)
        except Exception as e:
            # Rendered here, not by the app-level handler, so the browser can read it
            logger.error("Unhandled server error", path=request.url.path, error=str(e))
            response = JSONResponse(status_code=500, content={"error": "Internal server error"})

        if is_allowed_origin:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            if self.allow_credentials:
                response.headers["Access-Control-Allow-Credentials"] = "true"
        elif origin:
            logger.warning(
                "CORS request from disallowed origin",
                origin=origin,
                path=request.url.path,
            )

        return response

    def _preflight_response(self, origin: str) -> Response:
        headers = {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Methods": ", ".join(self.allow_methods),
            "Access-Control-Allow-Headers": ", ".join(self.allow_headers),
            "Access-Control-Max-Age": str(self.max_age),
            "Vary": "Origin",
            # Preflight never reaches SecurityHeadersMiddleware
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
        }

        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"

        logger.debug("CORS preflight request handled", origin=origin)

        return Response(status_code=204, headers=headers)
