# app/api/v1/routers/health.py
import time
import subprocess
from fastapi import APIRouter, Depends, Request

from app.api.deps import app_settings, redis_dep
from app.core.config import Settings

router = APIRouter(tags=["health"])
START_TIME = time.time()


def _git_sha(short: bool = True) -> str:
    try:
        cmd = ["git", "rev-parse", "--short" if short else "HEAD"]
        return subprocess.check_output(cmd, stderr=subprocess.DEVNULL).decode().strip()
    except Exception:
        return "unknown"


@router.get("/health")
async def health(
    request: Request,
    settings: Settings = Depends(app_settings),
    redis=Depends(redis_dep),
):
    """
    Tolerant health check:
    - ping Mongo via Motor
    - Redis 'skipped' when not configured
    - basic build/runtime info plus an overall status
    """
    checks: dict[str, object] = {
        "app_name": settings.APP_NAME,
        "env": settings.APP_ENV,
        "debug": settings.DEBUG,
        "version": settings.GIT_SHA if settings.GIT_SHA != "unknown" else _git_sha(),
        "uptime_seconds": int(time.time() - START_TIME),
    }

    # --- Mongo ---
    db = getattr(request.app.state, "db", None)
    if db is None:
        checks["mongodb"] = "error: not connected"
    else:
        try:
            await db.command("ping")
            checks["mongodb"] = "ok"
        except Exception as e:
            checks["mongodb"] = f"error: {e}"

    # --- Redis (optional) ---
    try:
        if redis:
            await redis.ping()
            checks["redis"] = "ok"
        else:
            checks["redis"] = "skipped"
    except Exception as e:
        checks["redis"] = f"error: {e}"

    health_keys = ("mongodb", "redis")
    status = "ok" if all(checks.get(k) in ("ok", "skipped") for k in health_keys) else "error"

    return {"status": status, "checks": checks, "timestamp": int(time.time())}
