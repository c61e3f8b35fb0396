"""
Tests for CommandRunner

Runs real throwaway shell scripts for the exit-code and timeout paths and
mocks process creation for spawn failures.
"""

import asyncio
import os
import time
from unittest.mock import patch

import pytest

from src.models.schemas.review import ReviewRequest
from src.services.review.command_runner import (
    CommandRunner,
    build_args,
    build_env,
    check_script_health,
)


class TestBuildArgs:
    def test_default_args(self, sample_urls):
        request = ReviewRequest(urls=sample_urls)

        assert build_args(request) == ["review.md", *sample_urls]

    def test_debug_flag_comes_first(self, sample_urls):
        request = ReviewRequest(urls=sample_urls, context_file="custom.txt", debug=True)

        assert build_args(request) == ["--debug", "custom.txt", *sample_urls]


class TestBuildEnv:
    def test_inherits_environment(self, sample_urls):
        with patch.dict(os.environ, {"CODEREVIEW_TEST_VAR": "1"}):
            env = build_env(ReviewRequest(urls=sample_urls))
            inherited_cli = os.environ.get("PREFERRED_CLI")

        assert env["CODEREVIEW_TEST_VAR"] == "1"
        assert env.get("PREFERRED_CLI") == inherited_cli

    def test_sets_preferred_cli(self, sample_urls):
        env = build_env(ReviewRequest(urls=sample_urls, prefer_cli="codex"))

        assert env["PREFERRED_CLI"] == "codex"


class TestCheckScriptHealth:
    def test_executable_script(self, echo_script):
        health = check_script_health(echo_script)

        assert health.exists is True
        assert health.executable is True

    def test_non_executable_script(self, make_script):
        path = make_script("exit 0", name="plain.sh", executable=False)

        health = check_script_health(path)

        assert health.exists is True
        assert health.executable is False

    def test_missing_script(self, tmp_path):
        health = check_script_health(str(tmp_path / "missing.sh"))

        assert health.exists is False
        assert health.error == "File not found"

    def test_directory_is_not_a_script(self, tmp_path):
        health = check_script_health(str(tmp_path))

        assert health.exists is False
        assert health.error == "Path is not a file"


class TestCommandRunner:
    """Test suite for CommandRunner.run."""

    @pytest.mark.asyncio
    async def test_success(self, echo_script, sample_review_request, sample_urls):
        runner = CommandRunner(echo_script, timeout_ms=5000)

        result = await runner.run(sample_review_request)

        assert result.ok is True
        assert result.code == 0
        assert result.err is None
        assert f"args: review.md {' '.join(sample_urls)}" in result.out
        assert "cli: claude" in result.out
        assert result.duration_ms >= 0
        assert "err" not in result.to_payload()

    @pytest.mark.asyncio
    async def test_nonzero_exit(self, failing_script, sample_review_request):
        runner = CommandRunner(failing_script, timeout_ms=5000)

        result = await runner.run(sample_review_request)

        assert result.ok is False
        assert result.code == 2
        assert "partial output" in result.out
        assert "review failed" in result.err

    @pytest.mark.asyncio
    async def test_stderr_is_returned_in_full(self, make_script, sample_review_request):
        script = make_script("i=0\nwhile [ $i -lt 100 ]; do printf 'xxxxxxxxxx' >&2; i=$((i+1)); done\nexit 1")
        runner = CommandRunner(script, timeout_ms=5000)

        result = await runner.run(sample_review_request)

        assert result.ok is False
        assert len(result.err) == 1000

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, make_script, tmp_path, sample_review_request):
        pid_file = tmp_path / "child.pid"
        script = make_script(f"echo $$ > {pid_file}\nexec sleep 30")
        runner = CommandRunner(script, timeout_ms=1000)

        start = time.monotonic()
        result = await runner.run(sample_review_request)
        elapsed = time.monotonic() - start

        assert result.ok is False
        assert result.code == -1
        assert result.out == ""
        assert "1000ms" in result.err
        assert "timed out" in result.err
        assert elapsed < 10

        pid = int(pid_file.read_text().strip())
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)

    @pytest.mark.asyncio
    async def test_timeout_override(self, make_script, sample_review_request):
        script = make_script("exec sleep 30")
        runner = CommandRunner(script, timeout_ms=60_000)

        result = await runner.run(sample_review_request, timeout_ms=1000)

        assert result.code == -1
        assert result.err == "Command timed out after 1000ms"

    @pytest.mark.asyncio
    async def test_missing_script_is_execution_error(self, tmp_path, sample_review_request):
        runner = CommandRunner(str(tmp_path / "missing.sh"), timeout_ms=5000)

        result = await runner.run(sample_review_request)

        assert result.ok is False
        assert result.code == -2
        assert result.err.startswith("Command execution error:")

    @pytest.mark.asyncio
    async def test_spawn_failure_message_is_embedded(self, echo_script, sample_review_request):
        runner = CommandRunner(echo_script, timeout_ms=5000)

        with patch("asyncio.create_subprocess_exec", side_effect=PermissionError("denied")):
            result = await runner.run(sample_review_request)

        assert result.code == -2
        assert result.err == "Command execution error: denied"

    @pytest.mark.asyncio
    async def test_cancellation_propagates_and_kills_child(self, make_script, tmp_path, sample_review_request):
        pid_file = tmp_path / "cancel.pid"
        script = make_script(f"echo $$ > {pid_file}\nexec sleep 30")
        runner = CommandRunner(script, timeout_ms=60_000)

        task = asyncio.create_task(runner.run(sample_review_request))
        for _ in range(100):
            if pid_file.exists() and pid_file.read_text().strip():
                break
            await asyncio.sleep(0.05)
        await asyncio.sleep(0.1)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        pid = int(pid_file.read_text().strip())
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)
