from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class BaseResponse(BaseModel):
    """Envelope fields carried by every JSON response"""

    status: Literal["success", "error"] = "success"
    timestamp: str = Field(default_factory=utc_timestamp)


class ErrorResponse(BaseResponse):
    """Error response model for 4xx and 5xx responses"""

    status: Literal["success", "error"] = "error"
    error: str
    message: Optional[str] = None
    retry_after: Optional[int] = None
    available_endpoints: Optional[Dict[str, str]] = None

    def to_content(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
