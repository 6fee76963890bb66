"""Check results and the per-run buffer that collects them."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

import structlog


logger = structlog.get_logger(__name__)

PASS = "PASS"
WARN = "WARN"
FAIL = "FAIL"
STATUSES = (PASS, WARN, FAIL)

SHEET_COLUMNS = ["Date", "Test", "Status", "Details", "Timestamp"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CheckOutcome:
    """What a single check reports, before it is stamped into the run."""

    test: str
    status: str
    details: str

    def __post_init__(self) -> None:
        if self.status not in STATUSES:
            raise ValueError(f"Invalid status: {self.status!r}")


@dataclass(frozen=True)
class CheckResult:
    """One recorded row of monitoring output, stamped with the run date and its own time."""

    date: str
    test: str
    status: str
    details: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "test": self.test,
            "status": self.status,
            "details": self.details,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CheckResult:
        return cls(
            date=str(raw["date"]),
            test=str(raw["test"]),
            status=str(raw["status"]),
            details=str(raw["details"]),
            timestamp=str(raw["timestamp"]),
        )

    def as_row(self) -> list[str]:
        # Column order of the results sheet.
        return [self.date, self.test, self.status, self.details, self.timestamp]


class ResultBuffer:
    """Ordered, append-only results of one run."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self.run_date = clock().date().isoformat()
        self._results: list[CheckResult] = []

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self):
        return iter(self._results)

    @property
    def results(self) -> list[CheckResult]:
        return list(self._results)

    def record(self, outcome: CheckOutcome) -> CheckResult:
        result = CheckResult(
            date=self.run_date,
            test=outcome.test,
            status=outcome.status,
            details=outcome.details,
            timestamp=self._clock().isoformat(),
        )
        self._results.append(result)

        line = f"{result.status}: {result.test} - {result.details}"
        if result.status == FAIL:
            logger.error(line, test=result.test, status=result.status)
        elif result.status == WARN:
            logger.warning(line, test=result.test, status=result.status)
        else:
            logger.info(line, test=result.test, status=result.status)
        return result

    def add(self, test: str, status: str, details: str) -> CheckResult:
        return self.record(CheckOutcome(test=test, status=status, details=details))

    def counts(self) -> dict[str, int]:
        counts = {status: 0 for status in STATUSES}
        for result in self._results:
            counts[result.status] = counts.get(result.status, 0) + 1
        return counts
