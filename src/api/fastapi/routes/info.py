from fastapi import APIRouter, Depends

from src.api.fastapi.dependencies import get_settings_from_app
from src.core.config import Settings
from src.models.schemas.responses import utc_timestamp

router = APIRouter(tags=["Info"])


@router.get("/")
def api_info(settings: Settings = Depends(get_settings_from_app)):
    return {
        "status": "success",
        "timestamp": utc_timestamp(),
        "name": "CodeReview API",
        "version": settings.VERSION,
        "description": "AI-powered code review service supporting Claude, Gemini, and Codex",
        "endpoints": {
            "health": {
                "GET /health": "Comprehensive health check with dependency status",
                "GET /health/live": "Simple liveness probe",
                "GET /health/ready": "Readiness probe for load balancer",
            },
            "review": {
                "POST /review": "Submit structured review request",
                "POST /review/nl": "Submit natural language review request",
            },
            "monitoring": {
                "GET /metrics": "Prometheus-format metrics",
                "GET /metrics.json": "JSON-format metrics",
            },
        },
        "server": {
            "environment": settings.ENV,
            "log_level": settings.LOG_LEVEL,
        },
    }
