"""
Health check endpoints.
/health reports configuration presence (never secrets); /readyz probes the database.
"""

import time
from datetime import UTC, datetime

from fastapi import APIRouter

from academy.config import settings
from academy.db.pool import db_health_check

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    """Liveness plus which integrations are configured."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "env": {
            "ai_provider": settings.ai_provider(),
            "has_ai_key": bool(settings.ai_api_key()),
            "has_elevenlabs": bool(settings.ELEVENLABS_API_KEY),
            "has_database": bool(settings.DATABASE_URL),
        },
    }


@router.get("/readyz")
async def readyz():
    """
    Readiness check including the database pool.
    """
    checks = {}
    overall_ok = True

    # 1) Database pool
    t0 = time.time()
    try:
        db_health = await db_health_check()

        is_healthy = db_health.get("healthy", False)
        checks["database"] = {
            "ok": is_healthy,
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }

        if "pool_stats" in db_health:
            pool_stats = db_health["pool_stats"]
            checks["database"].update(
                {
                    "pool_size": pool_stats.get("pool_size", 0),
                    "pool_available": pool_stats.get("pool_available", 0),
                    "pool_utilization_percent": pool_stats.get("pool_utilization_percent", 0),
                    "connection_time_ms": db_health.get("connection_time_ms", 0),
                }
            )

        if not is_healthy:
            checks["database"]["error"] = db_health.get("error", "Database unhealthy")

        overall_ok = overall_ok and is_healthy

    except Exception as e:
        checks["database"] = {
            "ok": False,
            "error": f"{type(e).__name__}: {e}",
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
        overall_ok = False

    # 2) Configuration
    config_issues = []

    if not settings.DATABASE_URL:
        config_issues.append("DATABASE_URL not set")

    if not settings.ai_api_key():
        config_issues.append(f"{settings.ai_provider().upper()}_API_KEY not set")

    if not settings.ELEVENLABS_API_KEY:
        config_issues.append("ELEVENLABS_API_KEY not set")

    checks["configuration"] = {
        "ok": not config_issues,
        "issues": config_issues or None,
        "environment": settings.environment,
    }
    overall_ok = overall_ok and not config_issues

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
