"""
Natural Language Review Request Parser

Turns free text such as "review PRs 1, 2 from acme/widgets using claude" into
review arguments. Every rule table below is evaluated in declaration order and
the first match wins; the order is part of the behaviour.
"""

import re
from typing import Callable, List, Optional, Pattern, Tuple

from src.models.schemas.review import ParsedReviewArgs, QueryQuality, RepoInfo
from src.utils.logging import get_logger

logger = get_logger(__name__)

OWNER_REPO_PATTERN = re.compile(r"([\w-]+)/([\w.-]+)")

BATCH_PR_PATTERNS: List[Pattern] = [
    re.compile(r"\bprs?\b\s+([#\d,\s]+)", re.IGNORECASE),
    re.compile(r"pull\s*requests?\s+([#\d,\s]+)", re.IGNORECASE),
    re.compile(r"revisar\s+prs?\s+([#\d,\s]+)", re.IGNORECASE),
    re.compile(r"review\s+prs?\s+([#\d,\s]+)", re.IGNORECASE),
    re.compile(r"check\s+prs?\s+([#\d,\s]+)", re.IGNORECASE),
]

PR_URL_PATTERN = re.compile(r"https://github\.com/[\w.-]+/[\w.-]+/pull/\d+", re.IGNORECASE)

CONTEXT_FILE_PATTERNS: List[Pattern] = [
    re.compile(r"\b(?:plantilla|template)\s+(\S+)", re.IGNORECASE),
    re.compile(r"\b(?:contexto|context)\s+(\S+)", re.IGNORECASE),
    re.compile(r"\b(?:usando|using|con|with)\s+(\S+\.md)\b", re.IGNORECASE),
    re.compile(r"\b(?:archivo|file)\s+(\S+\.(?:md|txt))\b", re.IGNORECASE),
    re.compile(r"-(?:f|file|template)\s+(\S+)", re.IGNORECASE),
]

CLI_PATTERNS: List[Tuple[str, List[Pattern]]] = [
    ("claude", [
        re.compile(r"\b(?:claude|anthropic)\b", re.IGNORECASE),
        re.compile(r"\buse\s+claude\b", re.IGNORECASE),
        re.compile(r"\bcon\s+claude\b", re.IGNORECASE),
    ]),
    ("gemini", [
        re.compile(r"\b(?:gemini|google|bard)\b", re.IGNORECASE),
        re.compile(r"\buse\s+gemini\b", re.IGNORECASE),
        re.compile(r"\bcon\s+gemini\b", re.IGNORECASE),
    ]),
    ("codex", [
        re.compile(r"\b(?:codex|openai|gpt)\b", re.IGNORECASE),
        re.compile(r"\buse\s+codex\b", re.IGNORECASE),
        re.compile(r"\bcon\s+codex\b", re.IGNORECASE),
    ]),
]

DEBUG_PATTERNS: List[Pattern] = [
    re.compile(r"\b(?:debug|verbose|--debug|-v)\b", re.IGNORECASE),
    re.compile(r"\bcon\s+debug\b", re.IGNORECASE),
    re.compile(r"\bmodo\s+debug\b", re.IGNORECASE),
]

REPO_MENTION_PATTERN = re.compile(r"github\.com/([\w.-]+)/([\w.-]+)", re.IGNORECASE)
REPO_INFO_PATTERN = re.compile(r"github\.com/([\w.-]+)/([\w.-]+)/pull/(\d+)")


def _split_pr_numbers(raw: str) -> List[str]:
    tokens = (token.lstrip("#") for token in re.split(r"[,\s]+", raw) if token)
    return [token for token in tokens if token.isdigit()]


def _batch_urls(text: str) -> List[str]:
    owner_repo = OWNER_REPO_PATTERN.search(text)
    if not owner_repo:
        return []

    owner, repo = owner_repo.group(1), owner_repo.group(2)
    for pattern in BATCH_PR_PATTERNS:
        match = pattern.search(text)
        if match:
            numbers = _split_pr_numbers(match.group(1))
            logger.debug("Found batch PR pattern", extra={"owner": owner, "repo": repo, "prs": numbers})
            return [f"https://github.com/{owner}/{repo}/pull/{n}" for n in numbers]
    return []


def _explicit_urls(text: str) -> List[str]:
    urls = PR_URL_PATTERN.findall(text)
    if urls:
        logger.debug("Found explicit URLs", extra={"count": len(urls)})
    return urls


def _context_file(text: str) -> Optional[str]:
    for pattern in CONTEXT_FILE_PATTERNS:
        match = pattern.search(text)
        if match:
            logger.debug("Found context file pattern", extra={"file": match.group(1)})
            return match.group(1)
    return None


def _preferred_cli(text: str) -> Optional[str]:
    for cli, patterns in CLI_PATTERNS:
        if any(pattern.search(text) for pattern in patterns):
            logger.debug("Found CLI preference", extra={"cli": cli})
            return cli
    return None


def _debug_requested(text: str) -> bool:
    return any(pattern.search(text) for pattern in DEBUG_PATTERNS)


def _dedupe(urls: List[str]) -> List[str]:
    return list(dict.fromkeys(urls))


def parse_nl(text: str) -> ParsedReviewArgs:
    """
    Extract review arguments from natural-language text.

    Never raises. Text with no recognisable PR references produces an empty
    ``urls`` list, which request validation rejects downstream.

    Args:
        text: Free-text review request (English or Spanish)

    Returns:
        ParsedReviewArgs with batch-derived URLs first, then explicit URLs,
        de-duplicated in first-seen order
    """
    logger.debug("Parsing natural language input", extra={"text_length": len(text)})

    result = ParsedReviewArgs()
    result.urls = _dedupe(_batch_urls(text) + _explicit_urls(text))

    context_file = _context_file(text)
    if context_file:
        result.context_file = context_file

    result.prefer_cli = _preferred_cli(text)

    if _debug_requested(text):
        result.debug = True
        logger.debug("Debug mode enabled from NL input")

    repo_mentions = REPO_MENTION_PATTERN.findall(text)
    if len(repo_mentions) > 1:
        logger.debug(
            "Found multiple repositories",
            extra={"repos": [f"{owner}/{repo}" for owner, repo in repo_mentions]},
        )

    if not result.urls:
        logger.warning("No valid GitHub PR URLs found in input", extra={"text": text[:100] + "..."})

    logger.debug(
        "NL parsing complete",
        extra={
            "urls_found": len(result.urls),
            "context_file": result.context_file,
            "prefer_cli": result.prefer_cli,
            "debug": result.debug,
        },
    )
    return result


def extract_repo_info(url: str) -> Optional[RepoInfo]:
    """Split a PR URL into owner, repository and PR number."""
    match = REPO_INFO_PATTERN.search(url)
    if not match:
        return None
    return RepoInfo(owner=match.group(1), repo=match.group(2), pr=int(match.group(3)), url=url)


# (predicate, points) pairs scored additively by assess_query_quality
_QUALITY_SIGNALS: List[Tuple[Callable[[str], bool], int]] = [
    (lambda t: re.search(r"github", t, re.IGNORECASE) is not None, 3),
    (lambda t: re.search(r"pull\s*request|pr\b", t, re.IGNORECASE) is not None, 3),
    (lambda t: re.search(r"review|revisar|analyze|check", t, re.IGNORECASE) is not None, 2),
    (lambda t: re.search(r"https?://", t) is not None, 2),
    (lambda t: re.search(r"[\w-]+/[\w.-]+", t) is not None, 2),
]


def assess_query_quality(text: str) -> QueryQuality:
    """
    Score how likely a query is to describe a reviewable request.

    A query is considered valid when it scores at least 5 and has no length
    issues.
    """
    issues: List[str] = []
    score = 0

    if len(text) < 10:
        issues.append("Input is too short")
    elif len(text) > 1000:
        issues.append("Input is too long")
    else:
        score += 2

    score += sum(points for predicate, points in _QUALITY_SIGNALS if predicate(text))

    return QueryQuality(is_valid=score >= 5 and not issues, score=score, issues=issues)
