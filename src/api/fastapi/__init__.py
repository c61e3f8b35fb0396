import time
from typing import Optional

from fastapi import FastAPI

from src.api.fastapi.middlewares.cors import CORSPolicyMiddleware
from src.api.fastapi.middlewares.logging import LogMiddleware
from src.api.fastapi.middlewares.rate_limit import RateLimitMiddleware
from src.api.fastapi.middlewares.security import SecurityHeadersMiddleware
from src.core.config import Settings, get_settings
from src.services.metrics.metrics_store import MetricsRecorder, MetricsStore
from src.services.ratelimit.rate_limiter import FixedWindowRateLimiter
from src.services.review.command_runner import CommandRunner
from src.services.review.review_service import ReviewService
from src.utils.exception import add_exception_handlers
from src.utils.logging import get_logger
from .routes import register_routes


class FastAPIApp:
    """
    Builds the API application and owns its per-process state: settings,
    metrics, rate-limit windows and the review service, all reachable from
    handlers through ``app.state``.
    """

    def __init__(self, settings: Optional[Settings] = None, lifespan=None):
        self.settings = settings or get_settings()
        self.app = FastAPI(
            title="CodeReview API",
            version=self.settings.VERSION,
            lifespan=lifespan,
        )
        self.__init_state()
        self.__register_routes()
        self.__register_middlewares()
        add_exception_handlers(self.app, get_logger("FastAPIApp"))

    def get_app(self):
        return self.app

    def __init_state(self):
        settings = self.settings
        state = self.app.state

        state.settings = settings
        state.started_at = time.monotonic()
        state.metrics = MetricsRecorder(MetricsStore())
        state.rate_limiter = FixedWindowRateLimiter(
            settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_WINDOW_MS
        )
        state.review_service = ReviewService(
            runner=CommandRunner(settings.SCRIPT_PATH, settings.TIMEOUT_MS),
            recorder=state.metrics,
            max_urls=settings.MAX_URLS,
        )

    def __register_routes(self):
        register_routes(self.app)

    def __register_middlewares(self):
        # Starlette runs the last-added middleware first.
        self.app.add_middleware(RateLimitMiddleware)
        self.app.add_middleware(CORSPolicyMiddleware, allowed_origins=self.settings.CORS_ORIGINS)
        self.app.add_middleware(SecurityHeadersMiddleware)
        self.app.add_middleware(LogMiddleware)


def create_app(settings: Optional[Settings] = None, lifespan=None) -> FastAPI:
    return FastAPIApp(settings=settings, lifespan=lifespan).get_app()
