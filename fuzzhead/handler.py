"""Request/response boundary: one envelope in, one envelope out."""

import asyncio
import json
import logging
import time
from typing import Any

from fuzzhead.config import FuzzerConfig
from fuzzhead.errors import (
    FuzzTimeoutError,
    ValidationError,
    error_envelope,
    status_for,
)
from fuzzhead.github import GitHubSource
from fuzzhead.models import SourceUnit
from fuzzhead.report import RunReport
from fuzzhead.runner import SourceProvider, fuzz_repository, fuzz_source
from fuzzhead.validation import FuzzRequest, validate_request

logger = logging.getLogger(__name__)

CODE_UNIT_PATH = "fuzz_target.py"

RESPONSE_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
}


async def process(
    body: Any,
    config: FuzzerConfig | None = None,
    source: SourceProvider | None = None,
) -> tuple[int, dict]:
    """Run one request body end to end.

    Args:
        body: Decoded request body
        config: Run configuration (from the environment when omitted)
        source: Repository source; a GitHubSource is opened when omitted

    Returns:
        (status code, response envelope). The envelope always carries the
        transcript accumulated so far, including on failure.
    """
    config = config or FuzzerConfig.from_env()
    report = RunReport()
    started = time.monotonic()

    try:
        request = validate_request(body)
        report.info("Request validated successfully", mode=request.mode)
        try:
            await asyncio.wait_for(
                _dispatch(request, report, config, source),
                timeout=config.timeout_seconds,
            )
        except TimeoutError as e:
            elapsed = round(time.monotonic() - started, 3)
            raise FuzzTimeoutError(
                f"Fuzzing timed out after {config.timeout_seconds}s", elapsed
            ) from e
    except Exception as e:
        report.error("Fuzzing failed", error=str(e), type=type(e).__name__)
        return status_for(e), error_envelope(e, report.transcript())

    summary = report.summary()
    logger.info(f"Fuzzing completed successfully: {summary.to_dict()}")
    return 200, {
        "success": True,
        "message": "Fuzzing complete.",
        "output": report.transcript(),
        "summary": summary.to_dict(),
    }


async def _dispatch(
    request: FuzzRequest,
    report: RunReport,
    config: FuzzerConfig,
    source: SourceProvider | None,
) -> None:
    if request.mode == "code":
        report.line(f"Received {len(request.code)} characters of source")
        await fuzz_source(SourceUnit(CODE_UNIT_PATH, request.code), report, config)
        return

    if config.github_token:
        report.line("🔑 Using GitHub authentication")
    else:
        report.line("⚠️  No GitHub token found - using unauthenticated API (rate limited)")

    if source is not None:
        await fuzz_repository(
            source, request.repo_url, report, request.branch, request.file_path, config
        )
        return
    async with GitHubSource(config) as github:
        await fuzz_repository(
            github, request.repo_url, report, request.branch, request.file_path, config
        )


async def handle(
    event: dict,
    config: FuzzerConfig | None = None,
    source: SourceProvider | None = None,
) -> dict:
    """Serverless-style entry point.

    Args:
        event: Event whose ``body`` is the JSON request
        config: Run configuration
        source: Repository source override

    Returns:
        {statusCode, headers, body} with a JSON-encoded body
    """
    request_id = (event.get("requestContext") or {}).get("requestId")
    logger.info(f"Handler started (request {request_id})")

    raw = event.get("body")
    try:
        body = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    except ValueError:
        error = ValidationError("Invalid JSON in request body", "body", raw)
        status, envelope = status_for(error), error_envelope(error)
    else:
        status, envelope = await process(body, config, source)

    return {
        "statusCode": status,
        "headers": dict(RESPONSE_HEADERS),
        "body": json.dumps(envelope, default=str),
    }
