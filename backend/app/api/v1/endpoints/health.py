"""
Health Check Endpoints

Endpoints:
- /health/live  - Basic liveness (app is running)
- /health/ready - Readiness (browser and Claude configuration)
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.modules.sandbox import sandbox_manager


router = APIRouter(prefix="/health", tags=["Health Checks"])


def check_browser_config() -> Dict[str, Any]:
    """Report which Chromium launch strategy this process will use"""
    mode = "serverless" if settings.use_serverless_browser else "local"
    return {
        "status": "healthy",
        "mode": mode,
        "executable": settings.SERVERLESS_CHROMIUM_PATH if mode == "serverless" else "bundled",
    }


def check_claude_config() -> Dict[str, Any]:
    """Auto-fix needs an API key; monitoring works without one"""
    if not settings.ANTHROPIC_API_KEY:
        return {
            "status": "degraded",
            "message": "ANTHROPIC_API_KEY not set - auto-fix disabled",
        }
    return {"status": "healthy", "model": settings.AUTOFIX_MODEL}


@router.get("/live")
async def liveness():
    """Liveness probe - the process is up"""
    return {"status": "alive", "timestamp": datetime.utcnow().isoformat()}


@router.get("/ready")
async def readiness():
    """Readiness probe - configuration needed to serve requests"""
    checks = {
        "browser": check_browser_config(),
        "claude": check_claude_config(),
    }
    status = "ready" if all(c["status"] == "healthy" for c in checks.values()) else "degraded"
    return JSONResponse(
        status_code=200,
        content={
            "status": status,
            "environment": settings.ENVIRONMENT,
            "sandboxes": len(sandbox_manager.list_sandboxes()),
            "checks": checks,
            "timestamp": datetime.utcnow().isoformat(),
        },
    )
