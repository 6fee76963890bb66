"""Local result files and the Google Sheets results log."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

import structlog
from google.oauth2 import service_account
from googleapiclient.discovery import build

from .config import MonitorConfig
from .results import SHEET_COLUMNS, CheckResult

logger = structlog.get_logger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class SheetUploadError(Exception):
    """The results sheet is not configured or its credentials are unusable."""


def results_path(directory: str | Path, run_date: str) -> Path:
    return Path(directory) / f"results-{run_date}.json"


def save_results(results: Iterable[CheckResult], directory: str | Path, run_date: str) -> Path:
    """Write the run's results as a JSON array, replacing any file for the same day."""
    path = results_path(directory, run_date)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [r.to_dict() for r in results]
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    logger.info("Results saved", path=str(path), count=len(payload))
    return path


def load_results(path: str | Path) -> list[CheckResult]:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"{path} does not contain a list of results")
    return [CheckResult.from_dict(item) for item in raw]


def sheet_rows(results: Iterable[CheckResult], include_header: bool = False) -> list[list[str]]:
    rows = [list(SHEET_COLUMNS)] if include_header else []
    rows.extend(r.as_row() for r in results)
    return rows


def _credentials(config: MonitorConfig):
    if not config.google_credentials:
        raise SheetUploadError("GOOGLE_CREDENTIALS is not set")
    if not config.google_sheet_id:
        raise SheetUploadError("GOOGLE_SHEET_ID is not set")
    try:
        info = json.loads(config.google_credentials)
    except json.JSONDecodeError as e:
        raise SheetUploadError(f"GOOGLE_CREDENTIALS is not valid JSON: {e}") from e
    if not isinstance(info, dict):
        raise SheetUploadError("GOOGLE_CREDENTIALS must be a JSON object")
    try:
        return service_account.Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)
    except ValueError as e:
        raise SheetUploadError(f"Invalid service account credentials: {e}") from e


def append_to_sheet(results: list[CheckResult], config: MonitorConfig) -> int:
    """Append one row per result to the configured sheet. Returns the number of rows sent.

    Every call appends; re-running the same day adds that day's rows again.
    """
    credentials = _credentials(config)
    rows = sheet_rows(results, include_header=config.sheet_include_header)
    if not rows:
        return 0

    service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
    service.spreadsheets().values().append(
        spreadsheetId=config.google_sheet_id,
        range=config.sheet_range,
        valueInputOption="RAW",
        insertDataOption="INSERT_ROWS",
        body={"values": rows},
    ).execute()

    logger.info("Results uploaded to Google Sheets", rows=len(rows))
    return len(rows)
