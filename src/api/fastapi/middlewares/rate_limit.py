from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from src.exceptions.api_exceptions import RateLimitExceededError
from src.services.ratelimit.rate_limiter import client_identifier
from src.utils.exception import ExceptionHandler
from src.utils.logging import get_logger

logger = get_logger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        limiter = request.app.state.rate_limiter
        client_id = client_identifier(request.headers)

        decision = limiter.check(client_id)
        if not decision.allowed:
            exc = RateLimitExceededError(client_id, decision.retry_after)
            return ExceptionHandler(logger).handle_exception(exc, getattr(request.state, "id", None))

        return await call_next(request)
