"""
Request Validation Utilities

Schema-checks parsed JSON bodies against the review request shapes and turns
pydantic errors into a single human-readable message naming every failing
field.
"""

import json
from typing import Any, Dict, Optional

from pydantic import ValidationError

from src.exceptions.api_exceptions import RequestValidationError
from src.models.schemas.review import DEFAULT_MAX_URLS, NLRequest, ReviewRequest
from src.utils.logging import get_logger

logger = get_logger(__name__)


def format_validation_error(error: ValidationError) -> str:
    """Join every pydantic issue as ``path: reason`` separated by ``; ``."""
    issues = "; ".join(
        f"{'.'.join(str(part) for part in issue['loc'])}: {issue['msg']}"
        for issue in error.errors()
    )
    return f"Validation failed: {issues}"


def parse_json_body(body: bytes) -> Any:
    """Decode a raw request body.

    Raises:
        RequestValidationError: If the body is not valid JSON
    """
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        logger.error("Invalid JSON in request body", extra={"error": str(e)})
        raise RequestValidationError("Invalid JSON format")


def validate_review_args(data: Any, max_urls: Optional[int] = None) -> ReviewRequest:
    """Validate a structured review request.

    Args:
        data: Parsed JSON body
        max_urls: Ceiling on the number of PR URLs

    Returns:
        ReviewRequest with defaults applied

    Raises:
        RequestValidationError: Listing every failing field
    """
    context = {"max_urls": max_urls or DEFAULT_MAX_URLS}
    try:
        return ReviewRequest.model_validate(data, context=context)
    except ValidationError as e:
        raise RequestValidationError(format_validation_error(e), details={"errors": e.error_count()})


def validate_nl_request(data: Any) -> NLRequest:
    """Validate a natural-language review request.

    Raises:
        RequestValidationError: Listing every failing field
    """
    try:
        return NLRequest.model_validate(data)
    except ValidationError as e:
        raise RequestValidationError(format_validation_error(e), details={"errors": e.error_count()})


def validation_summary(request: ReviewRequest) -> Dict[str, Any]:
    return {
        "urls_count": len(request.urls),
        "context_file": request.context_file,
        "prefer_cli": request.prefer_cli,
        "debug": request.debug,
    }
