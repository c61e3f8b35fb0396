"""
Review Request/Result Models

Pydantic schemas for structured and natural-language review requests, the
captured result of a review script run, and the health snapshot.
"""

import re
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)
from pydantic_core import PydanticCustomError

DEFAULT_CONTEXT_FILE = "review.md"
DEFAULT_MAX_URLS = 10

PR_URL_PATTERN = re.compile(r"^https://github\.com/[\w.-]+/[\w.-]+/pull/\d+$")
CONTEXT_FILE_PATTERN = re.compile(r"\.(md|txt)$", re.IGNORECASE)

PreferredCLI = Literal["claude", "gemini", "codex"]


def _check_pr_url(url: str) -> str:
    if not PR_URL_PATTERN.match(url):
        raise PydanticCustomError(
            "pr_url",
            "Must be a valid GitHub PR URL (https://github.com/owner/repo/pull/123)",
        )
    return url


PullRequestURL = Annotated[str, AfterValidator(_check_pr_url)]


class ReviewRequest(BaseModel):
    """Validated input for one run of the review script."""

    model_config = ConfigDict(
        strict=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "context_file": "review.md",
                "urls": [
                    "https://github.com/owner/repo/pull/123",
                    "https://github.com/owner/repo/pull/124",
                ],
                "prefer_cli": "claude",
                "debug": False,
            }
        },
    )

    context_file: str = Field(
        DEFAULT_CONTEXT_FILE,
        description="Template/instructions file passed to the review script",
    )
    urls: List[PullRequestURL] = Field(..., description="GitHub pull request URLs")
    prefer_cli: Optional[PreferredCLI] = Field(None, description="Preferred AI review backend")
    debug: bool = False

    @field_validator("context_file")
    @classmethod
    def validate_context_file(cls, v: str) -> str:
        if not v:
            raise PydanticCustomError("context_file", "Context file cannot be empty")
        if not CONTEXT_FILE_PATTERN.search(v):
            raise PydanticCustomError("context_file", "Context file must be .md or .txt")
        return v

    @field_validator("urls")
    @classmethod
    def validate_url_count(cls, v: List[str], info: ValidationInfo) -> List[str]:
        max_urls = (info.context or {}).get("max_urls", DEFAULT_MAX_URLS)
        if len(v) < 1:
            raise PydanticCustomError("url_count", "At least one URL is required")
        if len(v) > max_urls:
            raise PydanticCustomError(
                "url_count", "Maximum {max_urls} URLs allowed", {"max_urls": max_urls}
            )
        return v


class ParsedReviewArgs(BaseModel):
    """Unvalidated arguments extracted from free text; ``urls`` may be empty."""

    context_file: str = DEFAULT_CONTEXT_FILE
    urls: List[str] = Field(default_factory=list)
    prefer_cli: Optional[PreferredCLI] = None
    debug: bool = False

    def to_request_data(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class NLRequest(BaseModel):
    """Natural-language review request."""

    model_config = ConfigDict(strict=True, extra="ignore")

    query: str = Field(..., min_length=5, max_length=1000)


class RunResult(BaseModel):
    """Captured outcome of a single review script invocation."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    code: int
    out: str = ""
    err: Optional[str] = None
    duration_ms: int = 0

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class RepoInfo(BaseModel):
    owner: str
    repo: str
    pr: int
    url: str


class QueryQuality(BaseModel):
    is_valid: bool
    score: int
    issues: List[str] = Field(default_factory=list)


class ScriptHealth(BaseModel):
    exists: bool
    executable: bool
    error: Optional[str] = None


class ServerInfo(BaseModel):
    port: int
    uptime: int
    version: str


class ScriptDependency(BaseModel):
    path: str
    exists: bool
    executable: bool


class HealthStatus(BaseModel):
    status: Literal["ok", "degraded", "error"]
    timestamp: str
    server: ServerInfo
    dependencies: Dict[str, ScriptDependency]
