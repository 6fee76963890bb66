from __future__ import annotations

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from site_monitor.browser import find_chromium_executable
from site_monitor.config import MonitorConfig
from site_monitor.runner import CheckRunner
from site_monitor.storage import load_results, results_path


HOME_HTML = """<!doctype html><html><head><title>Home – Local Store</title></head>
<body>
<img src="/x.png" alt="hero">
<header><nav><a href="/collections">Shop</a> <a href="/cart" class="cart-link">Cart</a></nav></header>
<input type="search" name="q">
<a href="/products/ring">Ring</a>
<a href="/missing">Old sale</a>
<a href="mailto:hello@example.com">Mail</a>
<a href="https://example.org/elsewhere">Elsewhere</a>
<script>console.error("boom from homepage")</script>
</body></html>"""


def _page(title: str) -> bytes:
    return f"<!doctype html><html><head><title>{title}</title></head><body><h1>{title}</h1></body></html>".encode("utf-8")


class _Handler(BaseHTTPRequestHandler):
    def log_message(self, format: str, *args) -> None:  # noqa: A002
        return

    def _send(self, status: int, body: bytes) -> None:
        try:
            self.send_response(status)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def do_GET(self) -> None:  # noqa: N802
        if self.path == "/x.png":
            self._send(200, b"\x89PNG\r\n\x1a\n")
            return
        if self.path == "/favicon.ico":
            self._send(204, b"")
            return
        if self.path == "/":
            self._send(200, HOME_HTML.encode("utf-8"))
            return
        if self.path in ("/collections", "/account/login", "/products/ring"):
            self._send(200, _page("Local Store"))
            return
        if self.path == "/pages/contact":
            self._send(200, _page("Page Not Found"))
            return
        if self.path == "/cart":
            time.sleep(2.0)
            self._send(200, _page("Cart"))
            return
        self._send(404, _page("Not here"))


@pytest.fixture(scope="module")
def local_store_url() -> str:
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    httpd.daemon_threads = True
    host, port = httpd.server_address
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://{host}:{port}"
    finally:
        httpd.shutdown()
        thread.join(timeout=5)
        httpd.server_close()


@pytest.mark.asyncio
async def test_full_run_against_local_store(local_store_url: str, tmp_path) -> None:
    chromium_path = find_chromium_executable()
    if not chromium_path:
        pytest.skip("No chromium/chrome available for Playwright")

    uploads = []
    config = MonitorConfig(
        base_url=local_store_url,
        chromium_path=chromium_path,
        browser_no_sandbox=True,
        block_heavy_resources=True,
        settle_delay=0,
        homepage_timeout=10,
        page_timeout=1,
        link_timeout=5,
        results_directory=str(tmp_path),
    )
    runner = CheckRunner(config, uploader=lambda results, cfg: uploads.append(results))

    buffer = await runner.run()
    by_test = {r.test: r for r in buffer.results}

    assert by_test["Homepage Load"].status == "PASS"
    assert by_test["Main Navigation"].status == "PASS"
    assert by_test["Collections Link"].status == "PASS"
    assert by_test["Cart Link"].status == "PASS"
    assert by_test["Search Function"].status == "PASS"

    assert by_test["Collections Page"].status == "PASS"
    assert by_test["About Page"].status == "WARN"
    assert by_test["Contact Page"].status == "FAIL"
    assert by_test["Cart Page"].status == "WARN"
    assert "loading slowly" in by_test["Cart Page"].details
    assert by_test["Login Page"].status == "PASS"

    # /collections, /cart, /products/ring, /missing
    assert by_test["Link Check"].status == "WARN"
    assert by_test["Link Check"].details == "Found 1 broken links out of 4 tested"

    # The aborted hero image is not reported as a page error.
    assert by_test["JavaScript Errors"].status == "WARN"
    assert by_test["JavaScript Errors"].details.startswith("Found")
    assert "boom from homepage" in by_test["JavaScript Errors"].details
    assert "ERR_FAILED" not in by_test["JavaScript Errors"].details
    assert "Monitor Execution" not in by_test

    assert load_results(results_path(tmp_path, buffer.run_date)) == buffer.results
    assert uploads == [buffer.results]
