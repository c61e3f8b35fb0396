import traceback
from logging import Logger
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.exceptions.api_exceptions import (
    CodeReviewAPIError,
    InternalServerError,
    RateLimitExceededError,
    RequestValidationError,
    RouteNotFoundError,
)
from src.models.schemas.responses import ErrorResponse

AVAILABLE_ENDPOINTS: Dict[str, str] = {
    "GET /": "API information",
    "GET /health": "Health check with dependencies",
    "GET /health/live": "Liveness probe",
    "GET /health/ready": "Readiness probe",
    "GET /metrics": "Prometheus metrics",
    "GET /metrics.json": "JSON metrics",
    "POST /review": "Structured review request",
    "POST /review/nl": "Natural language review request",
}


class ExceptionHandler:
    def __init__(self, logger: Logger):
        self.logger = logger

    def handle_exception(self, e: Exception, request_id: Optional[str] = None) -> JSONResponse:
        extra = {"request_id": request_id}

        if isinstance(e, RequestValidationError):
            self.logger.warning("Request validation error", extra={**extra, "error_message": e.message})
            return self._respond(e, ErrorResponse(error=e.message))

        if isinstance(e, RouteNotFoundError):
            return self._respond(
                e,
                ErrorResponse(
                    error="Not Found",
                    message=e.message,
                    available_endpoints=AVAILABLE_ENDPOINTS,
                ),
            )

        if isinstance(e, RateLimitExceededError):
            response = self._respond(e, ErrorResponse(error=e.message, retry_after=e.retry_after))
            response.headers["Retry-After"] = str(e.retry_after)
            return response

        if isinstance(e, CodeReviewAPIError) and not isinstance(e, InternalServerError):
            self.logger.error(f"API error: {e}", extra=extra)
            return self._respond(e, ErrorResponse(error=e.message))

        cause = e.cause if isinstance(e, InternalServerError) and e.cause else e
        tb_str = "".join(traceback.format_exception(type(cause), cause, cause.__traceback__))
        self.logger.error(
            f"Internal error - Type: {type(cause).__name__}, Message: {str(cause)}\nTraceback:\n{tb_str}",
            extra=extra,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Internal server error").to_content(),
        )

    @staticmethod
    def _respond(e: CodeReviewAPIError, body: ErrorResponse) -> JSONResponse:
        return JSONResponse(status_code=e.status_code, content=body.to_content())


def add_exception_handlers(app: FastAPI, logger: Logger) -> None:
    handler = ExceptionHandler(logger)

    def _request_id(request: Request) -> Optional[str]:
        return getattr(request.state, "id", None)

    @app.exception_handler(CodeReviewAPIError)
    async def api_error_handler(request: Request, exc: CodeReviewAPIError):
        return handler.handle_exception(exc, _request_id(request))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            exc = RouteNotFoundError(request.method, request.url.path)
            return handler.handle_exception(exc, _request_id(request))
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=str(exc.detail)).to_content(),
        )
