"""Validate and sanitize incoming request envelopes."""

import logging
import re
from dataclasses import dataclass
from typing import Any

from fuzzhead.errors import ValidationError

logger = logging.getLogger(__name__)

MIN_CODE_LENGTH = 10
MAX_CODE_LENGTH = 100_000

MODES = ("code", "repo")
REPO_URL_PATTERN = re.compile(r"^https://github\.com/[^/]+/[^/]+$")
BRANCH_PATTERN = re.compile(r"^[a-zA-Z0-9/\-_]+$")
FILE_PATH_PATTERN = re.compile(r"^[a-zA-Z0-9/\-_.]+$")

IMPORT_PATTERN = re.compile(r"^\s*(?:import\s+\w|from\s+[\w.]+\s+import\s)", re.MULTILINE)
CLASS_PATTERN = re.compile(r"^\s*class\s+\w+", re.MULTILINE)

SCRIPT_TAG_PATTERN = re.compile(
    r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE
)
JAVASCRIPT_URL_PATTERN = re.compile(r"javascript:", re.IGNORECASE)
EVENT_HANDLER_PATTERN = re.compile(r"on\w+\s*=", re.IGNORECASE)


@dataclass(frozen=True)
class FuzzRequest:
    """A validated request."""

    mode: str
    code: str | None = None
    repo_url: str | None = None
    branch: str | None = None
    file_path: str | None = None


def sanitize(value: Any) -> Any:
    """Strip script injection fragments from string values."""
    if not isinstance(value, str):
        return value
    value = SCRIPT_TAG_PATTERN.sub("", value)
    value = JAVASCRIPT_URL_PATTERN.sub("", value)
    value = EVENT_HANDLER_PATTERN.sub("", value)
    return value.strip()


def validate_code(code: Any) -> str:
    if code is None or code == "":
        raise ValidationError("code is required", "code", code)
    if not isinstance(code, str):
        raise ValidationError("Code must be a string", "code", type(code).__name__)
    if len(code) < MIN_CODE_LENGTH:
        raise ValidationError(
            f"Code must be at least {MIN_CODE_LENGTH} characters long", "code", len(code)
        )
    if len(code) > MAX_CODE_LENGTH:
        raise ValidationError(
            f"Code must be less than {MAX_CODE_LENGTH:,} characters", "code", len(code)
        )
    if not IMPORT_PATTERN.search(code) and not CLASS_PATTERN.search(code):
        raise ValidationError(
            "Code must contain imports or class definitions",
            "code",
            "No imports or classes found",
        )
    return code


def validate_repo_url(url: Any) -> str:
    if not url:
        raise ValidationError("repoUrl is required", "repoUrl", url)
    if not isinstance(url, str) or not REPO_URL_PATTERN.match(url):
        raise ValidationError(
            "Invalid GitHub repository URL. Must be in format: "
            "https://github.com/username/repo",
            "repoUrl",
            url,
        )
    if ".." in url:
        raise ValidationError(
            "Repository URL contains invalid path traversal", "repoUrl", url
        )
    return url


def validate_branch(branch: Any) -> str | None:
    if branch is None or branch == "":
        return None
    if not isinstance(branch, str) or not BRANCH_PATTERN.match(branch):
        raise ValidationError("branch format is invalid", "branch", branch)
    return branch


def validate_file_path(file_path: Any) -> str | None:
    if file_path is None or file_path == "":
        return None
    if not isinstance(file_path, str) or not FILE_PATH_PATTERN.match(file_path):
        raise ValidationError(
            "Invalid file path. Must contain only letters, numbers, slashes, "
            "hyphens, underscores, and dots",
            "filePath",
            file_path,
        )
    if ".." in file_path or file_path.startswith(("/", "\\")):
        raise ValidationError(
            "Invalid file path: potential path traversal detected",
            "filePath",
            file_path,
        )
    return file_path


def validate_request(body: Any) -> FuzzRequest:
    """Sanitize and validate a request body.

    Args:
        body: Decoded JSON request body

    Returns:
        FuzzRequest with normalized fields

    Raises:
        ValidationError: On the first invalid field
    """
    if not isinstance(body, dict):
        raise ValidationError(
            "Request body is required and must be an object", "body", body
        )

    # Source text is never rewritten.
    body = {
        key: value if key == "code" else sanitize(value) for key, value in body.items()
    }
    mode = body.get("mode") or "code"
    if mode not in MODES:
        raise ValidationError(
            f"Invalid mode: {mode}. Must be 'code' or 'repo'", "mode", mode
        )

    if mode == "code":
        request = FuzzRequest(mode=mode, code=validate_code(body.get("code")))
    else:
        request = FuzzRequest(
            mode=mode,
            repo_url=validate_repo_url(body.get("repoUrl")),
            branch=validate_branch(body.get("branch")),
            file_path=validate_file_path(body.get("filePath")),
        )
    logger.info(f"Validated {mode} request")
    return request
