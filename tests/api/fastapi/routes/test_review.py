"""
Tests for the review endpoints, running a real throwaway review script.
"""

import pytest


class TestReviewEndpoint:
    def test_success(self, client, sample_urls):
        response = client.post("/review", json={"urls": sample_urls, "prefer_cli": "gemini"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["ok"] is True
        assert body["code"] == 0
        assert "err" not in body
        assert "cli: gemini" in body["out"]
        assert body["request_id"]
        assert body["timestamp"].endswith("Z")
        assert isinstance(body["duration_ms"], int)

    def test_script_failure_returns_500_with_output(self, client_for, failing_script, sample_urls):
        response = client_for(SCRIPT_PATH=failing_script).post("/review", json={"urls": sample_urls})

        assert response.status_code == 500
        body = response.json()
        assert body["status"] == "error"
        assert body["ok"] is False
        assert body["code"] == 2
        assert "review failed" in body["err"]
        assert "partial output" in body["out"]

    def test_validation_error(self, client):
        response = client.post("/review", json={"urls": []})

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "error"
        assert body["error"].startswith("Validation failed: urls")
        assert "timestamp" in body

    def test_invalid_json(self, client):
        response = client.post(
            "/review", content=b"{not json", headers={"content-type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON format"

    def test_review_metrics_recorded(self, client, sample_urls):
        client.post("/review", json={"urls": sample_urls})

        counters = client.get("/metrics.json").json()["metrics"]["counters"]
        assert counters["reviews_total"] == 1
        assert counters["reviews_success"] == 1
        assert counters["urls_processed_total"] == 2


class TestReviewNLEndpoint:
    def test_success(self, client):
        query = "Review PRs 1, 2 from acme/widgets using claude"

        response = client.post("/review/nl", json={"query": query})

        assert response.status_code == 200
        body = response.json()
        assert body["query"] == query
        assert body["parsed_args"] == {
            "context_file": "review.md",
            "urls": [
                "https://github.com/acme/widgets/pull/1",
                "https://github.com/acme/widgets/pull/2",
            ],
            "prefer_cli": "claude",
            "debug": False,
        }
        assert "cli: claude" in body["out"]

    def test_debug_flag_reaches_script(self, client):
        response = client.post(
            "/review/nl", json={"query": "check https://github.com/acme/widgets/pull/7 verbose"}
        )

        assert response.status_code == 200
        assert "args: --debug review.md https://github.com/acme/widgets/pull/7" in response.json()["out"]

    def test_no_urls_extracted(self, client):
        response = client.post("/review/nl", json={"query": "please do a code review"})

        assert response.status_code == 400
        assert response.json()["error"].startswith(
            "Could not extract valid PR information from query: Validation failed: urls"
        )

    @pytest.mark.parametrize("body", [{}, {"query": "hey"}, {"query": 5}])
    def test_invalid_body(self, client, body):
        response = client.post("/review/nl", json=body)

        assert response.status_code == 400
        assert "query" in response.json()["error"]
