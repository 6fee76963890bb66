"""Entry point: run one monitoring pass and exit.

Usage:
    site-monitor
    python -m site_monitor

Configuration comes from ``config/site_monitor.yaml`` (or ``SITE_MONITOR_CONFIG``)
and the environment: ``GOOGLE_CREDENTIALS``, ``GOOGLE_SHEET_ID``, ``LOG_LEVEL``,
``RESULTS_DIR``, ``BROWSER_HEADLESS``, ``BROWSER_NO_SANDBOX``, ``CHROMIUM_PATH``.
"""

import asyncio
import logging
import os
import sys

import structlog

from .config import load_config
from .runner import CheckRunner

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO") -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, str(level).upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def main() -> int:
    """Main CLI entry point."""
    # Predictable HOME for Playwright temp files on locked-down runners.
    os.environ.setdefault("HOME", "/tmp")

    try:
        config = load_config()
    except Exception as e:
        logger.exception("Invalid site monitor configuration", error=str(e))
        return 1
    configure_logging(config.log_level)

    try:
        asyncio.run(CheckRunner(config).run())
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        logger.exception("Site monitor crashed", error=str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
