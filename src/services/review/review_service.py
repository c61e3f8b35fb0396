"""
Review Service

Validates review requests, runs the review script and shapes the response
payload. Structured requests are validated directly; natural-language
requests are first turned into arguments by the NL parser and then
validated the same way.
"""

from dataclasses import dataclass
from typing import Any, Dict

from src.exceptions.api_exceptions import RequestValidationError
from src.models.schemas.review import ReviewRequest, RunResult
from src.services.metrics.metrics_store import MetricsRecorder
from src.services.review.command_runner import CommandRunner
from src.services.review.nl_parser import assess_query_quality, extract_repo_info, parse_nl
from src.utils.logging import Logger
from src.utils.validation import validate_nl_request, validate_review_args, validation_summary


@dataclass
class ReviewOutcome:
    """Response payload and HTTP status for a completed review run."""

    payload: Dict[str, Any]
    status_code: int


class ReviewService:
    def __init__(self, runner: CommandRunner, recorder: MetricsRecorder, max_urls: int):
        self.runner = runner
        self.recorder = recorder
        self.max_urls = max_urls

    async def review(self, data: Any, request_id: str) -> ReviewOutcome:
        """Handle a structured review request body."""
        log = Logger(__name__, {"request_id": request_id})
        log.info("Processing review request")

        args = validate_review_args(data, max_urls=self.max_urls)
        log.info("Review request validated", validation_summary(args))

        result = await self._run(args, log)
        log.info("Review completed", self._result_summary(result))

        return self._outcome({"request_id": request_id}, result)

    async def review_nl(self, data: Any, request_id: str) -> ReviewOutcome:
        """Handle a natural-language review request body."""
        log = Logger(__name__, {"request_id": request_id})
        log.info("Processing NL review request")

        nl_request = validate_nl_request(data)
        log.info("NL request validated", {"query_length": len(nl_request.query)})

        quality = assess_query_quality(nl_request.query)
        if not quality.is_valid:
            log.warning(
                "Low quality NL query",
                {"quality_score": quality.score, "issues": quality.issues},
            )

        parsed = parse_nl(nl_request.query)
        try:
            args = validate_review_args(parsed.to_request_data(), max_urls=self.max_urls)
        except RequestValidationError as e:
            raise RequestValidationError(
                f"Could not extract valid PR information from query: {e.message}",
                details=e.details,
            )

        log.info(
            "NL parsing successful",
            {
                "urls_found": len(args.urls),
                "context_file": args.context_file,
                "prefer_cli": args.prefer_cli,
            },
        )

        result = await self._run(args, log)
        log.info("NL review completed", self._result_summary(result))

        return self._outcome(
            {
                "request_id": request_id,
                "query": nl_request.query,
                "parsed_args": args.model_dump(exclude_none=True),
            },
            result,
        )

    async def _run(self, args: ReviewRequest, log: Logger) -> RunResult:
        repos = sorted(
            {f"{info.owner}/{info.repo}" for info in map(extract_repo_info, args.urls) if info}
        )
        log.debug("Review targets", {"repositories": repos})

        result = await self.runner.run(args)
        self.recorder.record_review(result.ok, result.duration_ms, len(args.urls))
        return result

    @staticmethod
    def _result_summary(result: RunResult) -> Dict[str, Any]:
        return {
            "success": result.ok,
            "exit_code": result.code,
            "duration_ms": result.duration_ms,
        }

    @staticmethod
    def _outcome(base: Dict[str, Any], result: RunResult) -> ReviewOutcome:
        status_code = 200 if result.ok else 500
        return ReviewOutcome(payload={**base, **result.to_payload()}, status_code=status_code)
