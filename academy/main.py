"""
English Academy API
FastAPI application: trial booking, placement-test evaluation, advisor chat and
listening-test audio, with database pool and HTTP client lifecycle management.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from academy.config import settings
from academy.db.pool import db_pool
from academy.dependencies import tts_service
from academy.errors import AcademyError
from academy.infrastructure.observability.logging import get_logger, log_request, setup_logging
from academy.middleware import CORSMiddleware, RequestContextMiddleware, SecurityHeadersMiddleware
from academy.routes import audio, booking, chat, evaluation, health
from academy.services.ai_provider import ai_clients

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown with proper resource management."""

    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
        ai_provider=settings.ai_provider(),
    )

    if settings.DATABASE_URL:
        logger.info("Initializing database pool")
        await db_pool.initialize()
    else:
        logger.warning("DATABASE_URL not set - booking and test storage are unavailable")

    yield

    # Shutdown sequence (reverse order)
    logger.info("Application shutting down")

    shutdown_errors = []

    try:
        await ai_clients.close()
    except Exception as e:
        logger.error("Error closing AI client", error=str(e))
        shutdown_errors.append(f"AI: {e}")

    try:
        await tts_service.close()
    except Exception as e:
        logger.error("Error closing ElevenLabs client", error=str(e))
        shutdown_errors.append(f"TTS: {e}")

    try:
        logger.info("Closing database pool")
        await db_pool.close()
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))
        shutdown_errors.append(f"Database: {e}")

    if shutdown_errors:
        logger.warning("Some services had shutdown errors", errors=shutdown_errors)
    else:
        logger.info("All services closed successfully")


app = FastAPI(
    title="English Academy API",
    description="Trial booking, placement test evaluation, advisor chat and listening audio",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(SecurityHeadersMiddleware, enforce_https=settings.environment != "development")
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allowed_origins=settings.cors_origins(),
    allow_credentials=True,
)

# Include routers
app.include_router(health.router, prefix=settings.API_PREFIX)
app.include_router(booking.router, prefix=settings.API_PREFIX)
app.include_router(evaluation.router, prefix=settings.API_PREFIX)
app.include_router(chat.router, prefix=settings.API_PREFIX)
app.include_router(audio.router, prefix=settings.API_PREFIX)


@app.exception_handler(AcademyError)
async def academy_error_handler(request: Request, exc: AcademyError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": "API endpoint not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled server error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
        request_id=getattr(request.state, "request_id", None),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
