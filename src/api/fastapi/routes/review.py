from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from src.api.fastapi.dependencies import get_request_id, get_review_service
from src.models.schemas.responses import utc_timestamp
from src.services.review.review_service import ReviewOutcome, ReviewService
from src.utils.validation import parse_json_body

router = APIRouter(prefix="/review", tags=["Review"])


def _render(outcome: ReviewOutcome) -> JSONResponse:
    content = {
        "status": "error" if outcome.status_code >= 400 else "success",
        "timestamp": utc_timestamp(),
        **outcome.payload,
    }
    return JSONResponse(status_code=outcome.status_code, content=content)


@router.post("")
async def review(
    request: Request,
    request_id: str = Depends(get_request_id),
    service: ReviewService = Depends(get_review_service),
):
    """
    Structured review request.
    Responds 200 when the review script exits 0, otherwise 500 with the
    captured output.
    """
    data = parse_json_body(await request.body())
    return _render(await service.review(data, request_id))


@router.post("/nl")
async def review_nl(
    request: Request,
    request_id: str = Depends(get_request_id),
    service: ReviewService = Depends(get_review_service),
):
    """
    Natural language review request, e.g.
    ``{"query": "Review PRs 1, 2 from acme/widgets using claude"}``.
    """
    data = parse_json_body(await request.body())
    return _render(await service.review_nl(data, request_id))
