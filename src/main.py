# src/main.py — v3
"""CLI entry point.

Usage:
    uberbuild [-v] <config_file>

Exit codes: 0 success, 1 usage, 2 configuration, 3 build failure,
130 interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from uberbuild.config.settings import ConfigurationError, Settings, load_settings
from uberbuild.logging.logger import setup_logging
from uberbuild.version import __version__

if TYPE_CHECKING:
    from uberbuild.pipeline.runner import RunResult

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_CONFIG = 2
EXIT_FAILURE = 3
EXIT_INTERRUPTED = 130


class UsageError(Exception):
    """Wrong command-line arguments."""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as exc:
        print(f"Wrong arguments: {exc}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return EXIT_USAGE

    setup_logging("DEBUG" if args.verbose else "INFO")

    config_file: Path = args.config_file
    if not config_file.is_file():
        logger.error("'%s' doesn't exist or is not a file", config_file)
        parser.print_usage(sys.stderr)
        return EXIT_USAGE

    try:
        settings = load_settings(config_file)
    except ConfigurationError as exc:
        logger.error("Fatal error: %s", exc)
        return EXIT_CONFIG
    except ValidationError as exc:
        logger.error("Fatal error: %s", _one_line(exc))
        return EXIT_CONFIG

    _configure_logging(settings, args.verbose)

    from uberbuild.api.facade import run_build

    try:
        result = asyncio.run(run_build(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except ConfigurationError as exc:
        logger.error("Fatal error: %s", exc)
        return EXIT_CONFIG
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_FAILURE

    _print_result_summary(result)
    return EXIT_OK


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = _ArgumentParser(
        prog="uberbuild",
        description=f"uberbuild v{__version__} — cached Scala IDE build pipeline",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "config_file", type=Path,
        help="KEY=value build configuration, read after the packaged defaults",
    )
    return parser


def _configure_logging(settings: Settings, verbose: bool) -> None:
    """Reconfigure logging from the loaded settings."""
    level = "DEBUG" if verbose or settings.debug else settings.log_level
    setup_logging(
        level,
        log_format=settings.log_format,
        log_file=settings.log_file or None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _one_line(exc: ValidationError) -> str:
    return "; ".join(
        f"Bad value for {'.'.join(str(p) for p in err['loc']).upper()}: {err['msg']}"
        for err in exc.errors()
    )


def _print_result_summary(result: RunResult) -> None:
    """Print a human-readable summary of a RunResult."""
    ledger = result.ledger
    print("\nBuild complete:")
    print(f"  Run ID:      {ledger.run_id}")
    print(f"  Operation:   {ledger.operation}")
    print(f"  Cache hits:  {', '.join(result.cache_hits) or '-'}")
    print(f"  Built:       {', '.join(result.cache_misses) or '-'}")
    for name, record in ledger.stages.items():
        if record.location:
            print(f"  {name:<18} {record.location}")
    if ledger.published:
        print(f"  Published:   {len(ledger.published)} archive(s)")
    print(f"  Duration:    {result.duration_ms / 1000:.1f}s")


if __name__ == "__main__":
    sys.exit(main())
