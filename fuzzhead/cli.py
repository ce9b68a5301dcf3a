"""Command-line interface for fuzzhead."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from fuzzhead.config import FuzzerConfig
from fuzzhead.handler import process

logger = logging.getLogger(__name__)

COMMANDS = ("code", "repo")

# Global options that consume the following argument
VALUE_OPTIONS = ("--timeout",)


def setup_logging(verbose: bool = False):
    """Configure logging to stderr."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="fuzzhead",
        description="Call fuzzable methods on target classes with synthesized arguments",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Overall time budget in seconds (default: 60 or FUZZHEAD_TIMEOUT)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log progress to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # code subcommand
    code_parser = subparsers.add_parser(
        "code",
        help="Fuzz a local Python file (default)",
    )
    code_parser.add_argument("file", help="Path to a Python source file")

    # repo subcommand
    repo_parser = subparsers.add_parser(
        "repo",
        help="Fuzz Python files from a GitHub repository",
    )
    repo_parser.add_argument(
        "url",
        help="Repository URL (https://github.com/owner/repo)",
    )
    repo_parser.add_argument(
        "--branch",
        "-b",
        default=None,
        help="Branch to read from (default: main)",
    )
    repo_parser.add_argument(
        "--path",
        "-p",
        default=None,
        help="Single file to fuzz (default: first files found by search)",
    )

    return parser


def parse_args(args: list[str]) -> argparse.Namespace:
    """Parse command-line arguments, treating a bare file path as 'code'."""
    parser = create_parser()

    # Bare file path without subcommand, possibly after global options
    index = 0
    while index < len(args):
        arg = args[index]
        if arg in VALUE_OPTIONS:
            index += 2
        elif arg.startswith("-"):
            index += 1
        else:
            if arg not in COMMANDS:
                args = args[:index] + ["code"] + args[index:]
            break

    return parser.parse_args(args)


def build_body(parsed: argparse.Namespace) -> dict:
    """Turn parsed arguments into a request body."""
    if parsed.command == "code":
        return {"mode": "code", "code": Path(parsed.file).read_text()}
    return {
        "mode": "repo",
        "repoUrl": parsed.url,
        "branch": parsed.branch,
        "filePath": parsed.path,
    }


async def run_cli(args: list[str]) -> int:
    """Run the CLI with the given arguments.

    Args:
        args: Command-line arguments (without program name)

    Returns:
        Exit code (0 when the run succeeded, non-zero otherwise)
    """
    try:
        parsed = parse_args(args)
    except SystemExit as e:
        return e.code if e.code else 1

    setup_logging(parsed.verbose)

    if parsed.command is None:
        create_parser().print_help(sys.stderr)
        return 1

    try:
        body = build_body(parsed)
    except OSError as e:
        logger.error(f"Could not read {parsed.file}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    config = FuzzerConfig.from_env(timeout_seconds=parsed.timeout)
    status, envelope = await process(body, config)
    print(json.dumps(envelope, indent=2, default=str))

    if not envelope["success"]:
        print(f"Error ({status}): {envelope['error']['message']}", file=sys.stderr)
        return 1
    return 0


def main():
    """Entry point for the CLI."""
    exit_code = asyncio.run(run_cli(sys.argv[1:]))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
