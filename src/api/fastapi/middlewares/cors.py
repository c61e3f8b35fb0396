from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

CORS_BASE_HEADERS = {
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "86400",
}


def cors_headers(origin: Optional[str], allowed_origins: List[str]) -> Dict[str, str]:
    """CORS headers for ``origin``; Allow-Origin only when the origin is allowed."""
    headers = dict(CORS_BASE_HEADERS)
    if "*" in allowed_origins or (origin and origin in allowed_origins):
        headers["Access-Control-Allow-Origin"] = origin or "*"
    return headers


class CORSPolicyMiddleware(BaseHTTPMiddleware):
    """
    Answers preflight requests directly and decorates every other response
    with the CORS headers for the request origin.
    """

    def __init__(self, app: ASGIApp, allowed_origins: List[str]):
        super().__init__(app)
        self.allowed_origins = allowed_origins

    async def dispatch(self, request: Request, call_next):
        headers = cors_headers(request.headers.get("origin"), self.allowed_origins)

        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response
