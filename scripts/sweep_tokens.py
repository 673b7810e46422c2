"""Remove expired remember-me triplets from the configured store.

Intended for cron or a scheduled task, so ``REMEMBERME_CLEAN_EXPIRED_TOKENS_ON_LOGIN``
can stay disabled on busy deployments.

Example usages::

    # Sweep everything that has expired by now.
    python -m scripts.sweep_tokens --env-file /opt/rememberme/.env

    # Sweep against an explicit cutoff.
    python -m scripts.sweep_tokens --cutoff 2026-01-01T00:00:00+00:00
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from rememberme.core.config import AppSettings, _load_env_file
from rememberme.core.logging import configure_logging
from rememberme.dependencies import build_triplet_store

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 5

logger = logging.getLogger(__name__)


def _parse_cutoff(value: str) -> datetime:
    try:
        cutoff = datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid ISO-8601 timestamp: {value}") from exc
    if cutoff.tzinfo is None:
        cutoff = cutoff.replace(tzinfo=timezone.utc)
    return cutoff


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Delete expired remember-me triplets from storage."
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the repo root).",
    )
    parser.add_argument(
        "--cutoff",
        type=_parse_cutoff,
        default=None,
        help="Delete triplets expiring at or before this time (default: now).",
    )
    return parser


def _load_settings(env_file: Path) -> AppSettings:
    _load_env_file(str(env_file))
    return AppSettings()


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _load_settings(args.env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    configure_logging(settings.log_level)
    cutoff = args.cutoff or datetime.now(timezone.utc)

    try:
        store = build_triplet_store(settings)
        removed = store.clean_expired_tokens(cutoff)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Expired token sweep failed.")
        print(f"Unexpected error during sweep: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    print(f"Removed {removed} expired triplets (cutoff {cutoff.isoformat()}).")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
