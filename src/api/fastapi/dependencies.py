from fastapi import Request

from src.core.config import Settings
from src.services.metrics.metrics_store import MetricsRecorder
from src.services.review.review_service import ReviewService


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_metrics(request: Request) -> MetricsRecorder:
    return request.app.state.metrics


def get_review_service(request: Request) -> ReviewService:
    return request.app.state.review_service


def get_request_id(request: Request) -> str:
    return getattr(request.state, "id", "")
