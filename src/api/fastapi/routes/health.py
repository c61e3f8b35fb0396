import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from src.api.fastapi.dependencies import get_settings_from_app
from src.core.config import Settings
from src.models.schemas.responses import utc_timestamp
from src.models.schemas.review import HealthStatus, ScriptDependency, ScriptHealth, ServerInfo
from src.services.review.command_runner import check_script_health
from src.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])

NO_CACHE = {"cache-control": "no-cache"}


def build_health_status(settings: Settings, script: ScriptHealth, started_at: float) -> HealthStatus:
    """ok when the script is runnable, degraded when present but not executable, error when missing."""
    if not script.exists:
        overall = "error"
    elif not script.executable:
        overall = "degraded"
    else:
        overall = "ok"

    return HealthStatus(
        status=overall,
        timestamp=utc_timestamp(),
        server=ServerInfo(
            port=settings.PORT,
            uptime=int((time.monotonic() - started_at) * 1000),
            version=settings.VERSION,
        ),
        dependencies={
            "script": ScriptDependency(
                path=settings.SCRIPT_PATH,
                exists=script.exists,
                executable=script.executable,
            )
        },
    )


@router.get("")
def health_check(request: Request, settings: Settings = Depends(get_settings_from_app)):
    script = check_script_health(settings.SCRIPT_PATH)
    health = build_health_status(settings, script, request.app.state.started_at)

    logger.debug(
        "Health check completed",
        extra={
            "health_status": health.status,
            "script_exists": script.exists,
            "script_executable": script.executable,
        },
    )

    status_code = 503 if health.status == "error" else 200
    return JSONResponse(status_code=status_code, content=health.model_dump(), headers=NO_CACHE)


@router.get("/live")
def liveness():
    return {"status": "alive"}


@router.get("/ready")
def readiness(settings: Settings = Depends(get_settings_from_app)):
    script = check_script_health(settings.SCRIPT_PATH)
    ready = script.exists and script.executable
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "not_ready", "checks": {"script": ready}},
    )
