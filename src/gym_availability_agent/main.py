"""Command-line entry point for the gym availability agent."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

import structlog

from .config import Settings
from .scraper import scrape
from .summariser import build_summary


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog + stdlib logging."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


LOGGER = structlog.get_logger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """CLI argument parsing."""
    parser = argparse.ArgumentParser(description="List open badminton slots on the Kariya facility portal.")
    parser.add_argument("--date", type=str, help="ISO date (YYYY-MM-DD); defaults to the configured date.")
    parser.add_argument("--json", action="store_true", help="Print the raw JSON envelope instead of a summary.")
    return parser.parse_args(argv)


def cli(argv: Optional[list[str]] = None) -> int:
    """Console script entrypoint."""
    args = parse_args(argv)

    try:
        settings = Settings()
    except Exception as exc:  # pragma: no cover - startup validation
        configure_logging()
        LOGGER.exception("settings.error", error=str(exc))
        return 2

    configure_logging(getattr(logging, settings.log_level.upper(), logging.INFO))
    response = asyncio.run(scrape(args.date, settings=settings))

    if args.json:
        print(response.model_dump_json(exclude_none=True, indent=2))
    else:
        print(build_summary(response))
    return 0 if response.success else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(cli())
