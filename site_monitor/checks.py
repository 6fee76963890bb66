"""The storefront checks.

Every check takes the shared page and yields :class:`CheckOutcome` objects as
it goes, so the caller can record and narrate each one as soon as it is known.
Checks never raise for problems with the site itself; those become WARN or
FAIL outcomes for the check concerned.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Iterable
from urllib.parse import urldefrag, urljoin, urlsplit

from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from .config import MonitorConfig
from .results import FAIL, PASS, WARN, CheckOutcome

_SKIPPED_PREFIXES = ("mailto:", "tel:", "javascript:")

_ANCHOR_HREFS_JS = "anchors => anchors.map(a => a.getAttribute('href'))"


def _ms(seconds: float) -> int:
    return int(max(0.0, float(seconds)) * 1000)


def _truncate(s: str, max_len: int = 50) -> str:
    return s if len(s) <= max_len else s[:max_len] + "..."


def title_indicates_error(title: str, markers: Iterable[str]) -> bool:
    return any(marker and marker in (title or "") for marker in markers)


def is_timeout_error(exc: BaseException) -> bool:
    if isinstance(exc, (PlaywrightTimeoutError, asyncio.TimeoutError)):
        return True
    return "timeout" in str(exc).lower()


def _site_domain(url: str) -> str:
    host = (urlsplit(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def is_internal_host(host: str, domain: str) -> bool:
    host = (host or "").lower()
    if not host or not domain:
        return False
    return host == domain or host.endswith("." + domain)


def filter_internal_links(hrefs: Iterable[str | None], base_url: str, page_url: str, limit: int) -> list[str]:
    """First ``limit`` distinct internal http(s) links, resolved against ``page_url``.

    The host ``page_url`` ended up on counts as internal too, so a root that
    redirects to another domain keeps its relative links.
    """
    domains = {d for d in (_site_domain(base_url), _site_domain(page_url or "")) if d}
    links: list[str] = []
    seen: set[str] = set()
    for raw in hrefs:
        href = (raw or "").strip()
        if not href or href.startswith("#"):
            continue
        if href.lower().startswith(_SKIPPED_PREFIXES):
            continue

        absolute, _ = urldefrag(urljoin(page_url or base_url, href))
        parts = urlsplit(absolute)
        if parts.scheme not in ("http", "https"):
            continue
        if not any(is_internal_host(parts.hostname or "", domain) for domain in domains):
            continue
        if absolute in seen:
            continue

        seen.add(absolute)
        links.append(absolute)
        if len(links) >= limit:
            break
    return links


async def check_homepage(page: Page, config: MonitorConfig) -> AsyncIterator[CheckOutcome]:
    """Load the root URL, then probe for the main storefront elements."""
    try:
        response = await page.goto(
            config.base_url,
            wait_until="domcontentloaded",
            timeout=_ms(config.homepage_timeout),
        )
    except Exception as e:
        yield CheckOutcome("Homepage Load", FAIL, f"Failed to load homepage: {e}")
        return

    if response is None:
        yield CheckOutcome("Homepage Load", FAIL, "No response received")
    elif response.status != 200:
        yield CheckOutcome("Homepage Load", FAIL, f"HTTP {response.status}")
    else:
        title = await page.title()
        if title_indicates_error(title, config.error_title_markers):
            yield CheckOutcome("Homepage Load", FAIL, f"Page title suggests error: {title}")
            return
        yield CheckOutcome("Homepage Load", PASS, f"Loaded successfully ({response.status}) - {title}")

    await asyncio.sleep(config.settle_delay)

    for probe in config.element_probes:
        try:
            element = await page.query_selector(probe.selector)
        except Exception as e:
            yield CheckOutcome(probe.name, WARN, f"Could not check element: {e}")
            continue
        if element is not None:
            yield CheckOutcome(probe.name, PASS, "Element found and accessible")
        else:
            yield CheckOutcome(probe.name, WARN, f"Element not found: {probe.selector}")


async def check_key_pages(page: Page, config: MonitorConfig) -> AsyncIterator[CheckOutcome]:
    for key_page in config.key_pages:
        url = urljoin(config.base_url, key_page.path)
        try:
            response = await page.goto(url, wait_until="domcontentloaded", timeout=_ms(config.page_timeout))
            if response is None:
                yield CheckOutcome(key_page.name, FAIL, "No response received")
                continue

            status = response.status
            if status == 200:
                title = await page.title()
                if title_indicates_error(title, config.error_title_markers):
                    yield CheckOutcome(key_page.name, FAIL, f"Page title suggests error: {_truncate(title)}")
                else:
                    yield CheckOutcome(key_page.name, PASS, f"Loaded successfully ({status}) - {_truncate(title)}")
            elif status == 404:
                yield CheckOutcome(key_page.name, WARN, "Page not found (404) - page may not exist yet")
            else:
                yield CheckOutcome(key_page.name, FAIL, f"HTTP {status}")
        except Exception as e:
            if is_timeout_error(e):
                yield CheckOutcome(
                    key_page.name,
                    WARN,
                    f"Page loading slowly (no load within {config.page_timeout:g}s)",
                )
            else:
                yield CheckOutcome(key_page.name, FAIL, f"Failed to load: {e}")


async def check_links(page: Page, config: MonitorConfig) -> AsyncIterator[CheckOutcome]:
    """Follow a small sample of internal homepage links and count the broken ones."""
    await page.goto(config.base_url, wait_until="domcontentloaded", timeout=_ms(config.homepage_timeout))
    await asyncio.sleep(config.settle_delay)

    hrefs = await page.eval_on_selector_all("a[href]", _ANCHOR_HREFS_JS)
    links = filter_internal_links(hrefs or [], config.base_url, page.url, config.link_sample_size)
    if not links:
        yield CheckOutcome("Link Check", WARN, "No internal links found to test")
        return

    broken = 0
    for link in links:
        try:
            response = await page.goto(link, wait_until="domcontentloaded", timeout=_ms(config.link_timeout))
        except Exception:
            broken += 1
            continue
        if response is not None and response.status >= 400:
            broken += 1

    if broken:
        yield CheckOutcome("Link Check", WARN, f"Found {broken} broken links out of {len(links)} tested")
    else:
        yield CheckOutcome("Link Check", PASS, f"All {len(links)} tested links working properly")


def summarize_console_errors(errors: list[str]) -> CheckOutcome:
    if errors:
        sample = ", ".join(_truncate(e, 200) for e in errors[:2])
        return CheckOutcome("JavaScript Errors", WARN, f"Found {len(errors)} console errors: {sample}")
    return CheckOutcome("JavaScript Errors", PASS, "No JavaScript errors detected")
