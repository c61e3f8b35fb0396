from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from src.api.fastapi.dependencies import get_metrics
from src.models.schemas.responses import utc_timestamp
from src.services.metrics.metrics_store import MetricsRecorder
from src.services.metrics.prometheus import render_prometheus

router = APIRouter(tags=["Monitoring"])


@router.get("/metrics", response_class=PlainTextResponse)
def prometheus_metrics(recorder: MetricsRecorder = Depends(get_metrics)):
    return PlainTextResponse(render_prometheus(recorder.store))


@router.get("/metrics.json")
def json_metrics(recorder: MetricsRecorder = Depends(get_metrics)):
    return {
        "status": "success",
        "timestamp": utc_timestamp(),
        "metrics": recorder.store.get_all_metrics(),
    }
