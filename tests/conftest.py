"""
Global test configuration and fixtures.

Provides settings pointing at throwaway review scripts and a TestClient for
the assembled application.
"""

import os
import stat
from pathlib import Path
from typing import Callable

import pytest
from fastapi.testclient import TestClient

from src.api.fastapi import create_app
from src.core.config import Settings
from src.models.schemas.review import ReviewRequest


@pytest.fixture
def make_script(tmp_path: Path) -> Callable[..., str]:
    """Write an executable shell script and return its path."""

    def _make(body: str, name: str = "codereview.sh", executable: bool = True) -> str:
        path = tmp_path / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        mode = os.stat(path).st_mode
        if executable:
            path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        else:
            path.chmod(mode & ~(stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))
        return str(path)

    return _make


@pytest.fixture
def echo_script(make_script) -> str:
    """Script that echoes its arguments and preferred CLI, then exits 0."""
    return make_script('echo "args: $*"\necho "cli: ${PREFERRED_CLI:-none}"')


@pytest.fixture
def failing_script(make_script) -> str:
    return make_script('echo "partial output"\necho "review failed" >&2\nexit 2')


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides) -> Settings:
        values = {
            "SCRIPT_PATH": "./does-not-exist.sh",
            "RATE_LIMIT_REQUESTS": 1000,
            "RATE_LIMIT_WINDOW_MS": 60_000,
            "TIMEOUT_MS": 5_000,
            "CORS_ORIGINS": ["*"],
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def client_for(make_settings) -> Callable[..., TestClient]:
    def _client(**overrides) -> TestClient:
        return TestClient(create_app(make_settings(**overrides)))

    return _client


@pytest.fixture
def client(client_for, echo_script) -> TestClient:
    return client_for(SCRIPT_PATH=echo_script)


@pytest.fixture
def sample_urls() -> list:
    return [
        "https://github.com/acme/widgets/pull/1",
        "https://github.com/acme/widgets/pull/2",
    ]


@pytest.fixture
def sample_review_request(sample_urls) -> ReviewRequest:
    return ReviewRequest(urls=sample_urls, prefer_cli="claude")
