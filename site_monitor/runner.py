"""Runs one monitoring pass against the storefront."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import AsyncIterator, Callable

import structlog

from .browser import BrowserSession
from .checks import check_homepage, check_key_pages, check_links, summarize_console_errors
from .config import MonitorConfig
from .results import FAIL, CheckOutcome, CheckResult, ResultBuffer, utc_now
from .storage import append_to_sheet, save_results

logger = structlog.get_logger(__name__)


class CheckRunner:
    """Launches the browser, runs the checks in order and persists the results.

    ``session_factory`` must return an async context manager whose value has a
    ``page`` and a ``console_errors`` list; ``uploader`` is called in a worker
    thread with the results and the config.
    """

    def __init__(
        self,
        config: MonitorConfig,
        session_factory: Callable = BrowserSession,
        uploader: Callable[[list[CheckResult], MonitorConfig], object] = append_to_sheet,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.session_factory = session_factory
        self.uploader = uploader
        self.clock = clock

    async def run(self) -> ResultBuffer:
        buffer = ResultBuffer(clock=self.clock)
        logger.info("Starting store monitoring", base_url=self.config.base_url, date=buffer.run_date)

        try:
            async with self.session_factory(self.config) as session:
                await self._run_checks(session, buffer)
        except Exception as e:
            logger.error("Monitoring failed", error=str(e))
            buffer.add("Monitor Execution", FAIL, f"Monitoring script failed: {e}")

        save_results(buffer, self.config.results_directory, buffer.run_date)
        await self._upload(buffer.results)

        counts = buffer.counts()
        logger.info("Monitoring completed", total=len(buffer), **{k.lower(): v for k, v in counts.items()})
        return buffer

    async def _run_checks(self, session, buffer: ResultBuffer) -> None:
        page = session.page
        await self._collect("Navigation Check", check_homepage(page, self.config), buffer)
        await self._collect("Key Pages", check_key_pages(page, self.config), buffer)
        await self._collect("Link Check", check_links(page, self.config), buffer)
        buffer.record(summarize_console_errors(session.console_errors))

    async def _collect(self, name: str, outcomes: AsyncIterator[CheckOutcome], buffer: ResultBuffer) -> None:
        try:
            async for outcome in outcomes:
                buffer.record(outcome)
        except Exception as e:
            buffer.add(name, FAIL, f"Error during {name.lower()}: {e}")

    async def _upload(self, results: list[CheckResult]) -> None:
        try:
            await asyncio.to_thread(self.uploader, results, self.config)
        except Exception as e:
            logger.error("Failed to upload to Google Sheets", error=str(e))
