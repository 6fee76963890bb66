"""Daily health check for a single storefront."""

from .config import MonitorConfig, load_config
from .results import CheckOutcome, CheckResult, ResultBuffer
from .runner import CheckRunner

__all__ = ["CheckRunner", "CheckOutcome", "CheckResult", "MonitorConfig", "ResultBuffer", "load_config"]
