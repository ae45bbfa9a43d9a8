"""
Middleware components for request processing.

This package contains middleware for:
- Request context (request ID, client address)
- Security (CORS, security headers)
"""

from academy.middleware.cors import CORSMiddleware
from academy.middleware.request_context import RequestContextMiddleware
from academy.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "RequestContextMiddleware",
    "SecurityHeadersMiddleware",
    "CORSMiddleware",
]
