"""Configuration management for the site monitor."""

import os
from typing import Optional

import yaml
from pydantic import BaseModel, Field


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ElementProbe(BaseModel):
    """A page element that should be present on the homepage."""
    name: str = Field(description="Result name for this probe")
    selector: str = Field(description="CSS selector, comma separated alternatives allowed")


class KeyPage(BaseModel):
    """A storefront page that must load on its own."""
    name: str = Field(description="Result name for this page")
    path: str = Field(description="Path relative to the base URL")


def _default_probes() -> list[ElementProbe]:
    return [
        ElementProbe(name="Main Navigation", selector='header nav, nav[role="navigation"], .site-nav, nav'),
        ElementProbe(name="Collections Link", selector='a[href*="collections"]'),
        ElementProbe(name="Cart Link", selector='.cart-link, a[href*="cart"], #cart-icon-bubble'),
        ElementProbe(name="Search Function", selector='input[type="search"], .search, a[href*="search"], [name="q"]'),
    ]


def _default_key_pages() -> list[KeyPage]:
    return [
        KeyPage(name="Collections Page", path="/collections"),
        KeyPage(name="About Page", path="/pages/about"),
        KeyPage(name="Contact Page", path="/pages/contact"),
        KeyPage(name="Cart Page", path="/cart"),
        KeyPage(name="Login Page", path="/account/login"),
    ]


class MonitorConfig(BaseModel):
    """Main configuration for a monitoring run."""

    # Target
    base_url: str = Field(default="https://lolovivijewelry.com", description="Storefront root URL")
    element_probes: list[ElementProbe] = Field(default_factory=_default_probes, description="Homepage element probes")
    key_pages: list[KeyPage] = Field(default_factory=_default_key_pages, description="Pages checked individually")
    error_title_markers: list[str] = Field(
        default_factory=lambda: ["404", "Error", "Not Found"],
        description="Title substrings that mark a page as an error page",
    )

    # Browser settings
    browser_headless: bool = Field(default=True, description="Run browser in headless mode")
    browser_no_sandbox: bool = Field(default=False, description="Launch Chromium without its sandbox")
    chromium_path: Optional[str] = Field(default=None, description="Chromium executable, bundled browser if unset")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User agent sent with every request")
    viewport_width: int = Field(default=1280, description="Viewport width in pixels")
    viewport_height: int = Field(default=720, description="Viewport height in pixels")
    block_heavy_resources: bool = Field(default=False, description="Abort image, media and font requests")

    # Timing
    homepage_timeout: float = Field(default=15.0, description="Homepage navigation timeout in seconds")
    page_timeout: float = Field(default=10.0, description="Key page navigation timeout in seconds")
    link_timeout: float = Field(default=5.0, description="Sampled link navigation timeout in seconds")
    settle_delay: float = Field(default=2.0, description="Seconds to wait after the homepage loads")
    link_sample_size: int = Field(default=5, description="Maximum number of internal links to follow")

    # Output settings
    results_directory: str = Field(default=".", description="Directory for daily result files")
    log_level: str = Field(default="INFO", description="Logging level")

    # Google Sheets
    google_credentials: Optional[str] = Field(default=None, description="Service account JSON")
    google_sheet_id: Optional[str] = Field(default=None, description="Target spreadsheet id")
    sheet_range: str = Field(default="Sheet1!A:E", description="A1 range rows are appended to")
    sheet_include_header: bool = Field(default=False, description="Prepend a header row on every append")


def _as_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def load_config(config_path: Optional[str] = None) -> MonitorConfig:
    """Load configuration from file or environment variables."""
    if config_path is None:
        config_path = os.getenv("SITE_MONITOR_CONFIG", "config/site_monitor.yaml")

    config_data = {}

    # Load from file if exists
    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}

    # Override with environment variables
    env_overrides = {
        "google_credentials": os.getenv("GOOGLE_CREDENTIALS"),
        "google_sheet_id": os.getenv("GOOGLE_SHEET_ID"),
        "log_level": os.getenv("LOG_LEVEL"),
        "results_directory": os.getenv("RESULTS_DIR"),
        "browser_headless": os.getenv("BROWSER_HEADLESS"),
        "browser_no_sandbox": os.getenv("BROWSER_NO_SANDBOX"),
        "chromium_path": os.getenv("CHROMIUM_PATH"),
    }

    for key, value in env_overrides.items():
        if value is not None:
            if key in ["browser_headless", "browser_no_sandbox"]:
                value = _as_bool(value)
            config_data[key] = value

    return MonitorConfig(**config_data)
