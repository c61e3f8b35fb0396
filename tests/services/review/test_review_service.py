"""
Tests for ReviewService with a mocked command runner.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.exceptions.api_exceptions import RequestValidationError
from src.models.schemas.review import RunResult
from src.services.metrics.metrics_store import MetricsRecorder, MetricsStore
from src.services.review.review_service import ReviewService


@pytest.fixture
def runner():
    mock_runner = MagicMock()
    mock_runner.run = AsyncMock(return_value=RunResult(ok=True, code=0, out="looks good", duration_ms=12))
    return mock_runner


@pytest.fixture
def recorder():
    return MetricsRecorder(MetricsStore())


@pytest.fixture
def service(runner, recorder):
    return ReviewService(runner=runner, recorder=recorder, max_urls=10)


class TestReviewService:
    @pytest.mark.asyncio
    async def test_review_success(self, service, runner, recorder, sample_urls):
        outcome = await service.review({"urls": sample_urls}, request_id="req-1")

        assert outcome.status_code == 200
        assert outcome.payload == {
            "request_id": "req-1",
            "ok": True,
            "code": 0,
            "out": "looks good",
            "duration_ms": 12,
        }
        args = runner.run.await_args.args[0]
        assert args.urls == sample_urls
        assert args.context_file == "review.md"
        assert recorder.store.get_counter("reviews_success") == 1

    @pytest.mark.asyncio
    async def test_review_failure_maps_to_500(self, service, runner, recorder, sample_urls):
        runner.run.return_value = RunResult(ok=False, code=3, out="", err="bad", duration_ms=5)

        outcome = await service.review({"urls": sample_urls}, request_id="req-2")

        assert outcome.status_code == 500
        assert outcome.payload["err"] == "bad"
        assert recorder.store.get_counter("reviews_error") == 1

    @pytest.mark.asyncio
    async def test_invalid_request_never_runs_script(self, service, runner):
        with pytest.raises(RequestValidationError):
            await service.review({"urls": ["not a url"]}, request_id="req-3")

        runner.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_max_urls_is_enforced(self, runner, recorder):
        service = ReviewService(runner=runner, recorder=recorder, max_urls=1)
        urls = [f"https://github.com/a/b/pull/{n}" for n in (1, 2)]

        with pytest.raises(RequestValidationError) as exc_info:
            await service.review({"urls": urls}, request_id="req-4")

        assert "Maximum 1 URLs allowed" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_review_nl(self, service, runner):
        query = "review prs 4 5 of acme/widgets with codex"

        outcome = await service.review_nl({"query": query}, request_id="req-5")

        assert outcome.status_code == 200
        assert outcome.payload["query"] == query
        assert outcome.payload["parsed_args"]["urls"] == [
            "https://github.com/acme/widgets/pull/4",
            "https://github.com/acme/widgets/pull/5",
        ]
        assert outcome.payload["parsed_args"]["prefer_cli"] == "codex"
        assert runner.run.await_args.args[0].prefer_cli == "codex"

    @pytest.mark.asyncio
    async def test_review_nl_without_urls(self, service, runner):
        with pytest.raises(RequestValidationError) as exc_info:
            await service.review_nl({"query": "nothing useful here"}, request_id="req-6")

        assert exc_info.value.message.startswith("Could not extract valid PR information from query:")
        runner.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_low_quality_query_is_logged(self, service):
        with patch("src.services.review.review_service.Logger") as mock_logger_cls:
            log = mock_logger_cls.return_value
            await service.review_nl({"query": "pr 9 a/b"}, request_id="req-7")

        log.warning.assert_called_once()
        assert log.warning.call_args.args[0] == "Low quality NL query"
