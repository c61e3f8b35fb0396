"""
Review Script Runner

Invokes the external review script with arguments and environment derived
from a ReviewRequest, enforcing a timeout. All failure modes are folded into
a RunResult; callers never see an exception.
"""

import asyncio
import os
import signal
import stat
import time
from typing import Dict, List, Optional

from src.exceptions.api_exceptions import CommandTimeoutError
from src.models.schemas.review import DEFAULT_CONTEXT_FILE, ReviewRequest, RunResult, ScriptHealth
from src.utils.logging import get_logger

logger = get_logger(__name__)

STDERR_LOG_LIMIT = 500


def build_args(request: ReviewRequest) -> List[str]:
    """Positional arguments: ``[--debug] <context_file> <url>...``"""
    cmd_args: List[str] = []
    if request.debug:
        cmd_args.append("--debug")
    cmd_args.append(request.context_file or DEFAULT_CONTEXT_FILE)
    cmd_args.extend(request.urls)
    return cmd_args


def build_env(request: ReviewRequest) -> Dict[str, str]:
    """Inherit the process environment, adding PREFERRED_CLI when requested."""
    env = dict(os.environ)
    if request.prefer_cli:
        env["PREFERRED_CLI"] = request.prefer_cli
        logger.debug("Setting PREFERRED_CLI environment variable", extra={"prefer_cli": request.prefer_cli})
    return env


def check_script_health(script_path: str) -> ScriptHealth:
    """Check that the review script exists and has an execute bit set."""
    try:
        st = os.stat(script_path)
    except FileNotFoundError:
        return ScriptHealth(exists=False, executable=False, error="File not found")
    except OSError as e:
        return ScriptHealth(exists=False, executable=False, error=str(e))

    if not stat.S_ISREG(st.st_mode):
        return ScriptHealth(exists=False, executable=False, error="Path is not a file")

    executable = bool(st.st_mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))
    return ScriptHealth(exists=True, executable=executable)


def _elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)


class CommandRunner:
    """
    Runs the review script as a child process.

    Each call races process completion against a deadline scoped to the
    ``asyncio.wait_for`` call, so the deadline is released on every exit
    path. On timeout, or if the awaiting task is cancelled, the child is
    killed and reaped before returning.
    """

    def __init__(self, script_path: str, timeout_ms: int):
        self.script_path = script_path
        self.timeout_ms = timeout_ms

    async def run(self, request: ReviewRequest, timeout_ms: Optional[int] = None) -> RunResult:
        """
        Run the review script for ``request``.

        Args:
            request: Validated review request
            timeout_ms: Optional override of the configured timeout

        Returns:
            RunResult; ``code`` is -1 on timeout and -2 on any other
            execution failure
        """
        timeout_ms = timeout_ms or self.timeout_ms
        start_time = time.monotonic()

        logger.info(
            "Starting review command",
            extra={
                "script": self.script_path,
                "urls_count": len(request.urls),
                "debug": request.debug,
                "prefer_cli": request.prefer_cli,
            },
        )

        try:
            code, out, err = await self._execute(request, timeout_ms)
        except CommandTimeoutError as e:
            duration = _elapsed_ms(start_time)
            logger.error(
                "Review command timed out",
                extra={"timeout_ms": timeout_ms, "duration_ms": duration},
            )
            return RunResult(ok=False, code=e.code, out="", err=e.message, duration_ms=duration)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            duration = _elapsed_ms(start_time)
            logger.error("Review command error", extra={"duration_ms": duration}, exc_info=e)
            return RunResult(
                ok=False,
                code=-2,
                out="",
                err=f"Command execution error: {e}",
                duration_ms=duration,
            )

        duration = _elapsed_ms(start_time)
        logger.info(
            "Review command completed",
            extra={
                "exit_code": code,
                "duration_ms": duration,
                "stdout_length": len(out),
                "stderr_length": len(err),
            },
        )

        if code == 0:
            return RunResult(ok=True, code=code, out=out, duration_ms=duration)

        logger.error(
            "Review command failed",
            extra={"exit_code": code, "stderr": err[:STDERR_LOG_LIMIT]},
        )
        return RunResult(ok=False, code=code, out=out, err=err, duration_ms=duration)

    async def _execute(self, request: ReviewRequest, timeout_ms: int):
        cmd_args = build_args(request)
        env = build_env(request)

        logger.debug(
            "Command execution details",
            extra={
                "cmd_args": cmd_args,
                "env_preferred_cli": env.get("PREFERRED_CLI"),
                "script_path": self.script_path,
            },
        )

        process = await asyncio.create_subprocess_exec(
            self.script_path,
            *cmd_args,
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout_ms / 1000
            )
        except asyncio.TimeoutError:
            logger.warning("Command timeout", extra={"timeout_ms": timeout_ms, "cmd_args": cmd_args})
            await self._terminate(process)
            raise CommandTimeoutError(timeout_ms)
        except asyncio.CancelledError:
            await self._terminate(process)
            raise

        out = stdout.decode("utf-8", errors="replace")
        err = stderr.decode("utf-8", errors="replace")
        return process.returncode, out, err

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        # The script runs in its own session; kill the whole group so
        # grandchildren do not outlive it.
        if process.returncode is None:
            try:
                os.killpg(process.pid, signal.SIGKILL)
            except ProcessLookupError:
                pass
            except OSError:
                process.kill()
        await process.wait()
