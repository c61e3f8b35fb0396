import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from src.api.fastapi.middlewares.security import apply_security_headers
from src.exceptions.api_exceptions import InternalServerError
from src.utils.exception import ExceptionHandler
from src.utils.logging import Logger, get_logger


class LogMiddleware(BaseHTTPMiddleware):
    """
    Outermost middleware: tags the request with an id, turns any unhandled
    exception into a 500 response, records request metrics and logs the
    completed request. Runs for every response, including short-circuited
    ones.
    """

    async def dispatch(self, request: Request, call_next):
        LOGGER = Logger("FastAPIApp")

        request_id = str(uuid.uuid4())
        request.state.id = request_id
        start_time = time.monotonic()

        extra = {
            "method": request.method,
            "url": str(request.url),
            "request_id": request_id,
            "user_agent": request.headers.get("user-agent"),
        }
        LOGGER.debug("Incoming request", extra)

        try:
            response = await call_next(request)
        except Exception as e:
            extra.update({"error": str(e)})
            LOGGER.error("Unhandled request error", extra=extra, exc_info=e)
            response = ExceptionHandler(get_logger("FastAPIApp")).handle_exception(
                InternalServerError(cause=e), request_id
            )
            apply_security_headers(response)

        duration_ms = int((time.monotonic() - start_time) * 1000)
        request.app.state.metrics.record_request(
            request.method, request.url.path, response.status_code, duration_ms
        )

        extra.update({"status": response.status_code, "duration_ms": duration_ms})
        LOGGER.info("HTTP Request", extra=extra)

        return response
