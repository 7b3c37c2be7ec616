from __future__ import annotations

import logging
from typing import Mapping, Optional, Protocol

from bs4 import BeautifulSoup, Tag
from playwright.sync_api import sync_playwright

from ..util.files import ensure_private_dir, write_private_bytes, write_private_text


logger = logging.getLogger(__name__)


_SUBMIT_FORM_JS = """
(form, values) => {
  for (const [name, value] of Object.entries(values)) {
    let field = form.elements.namedItem(name);
    if (!field) {
      // e.g. the JS-enabled flag, which the portal normally adds from script
      field = document.createElement('input');
      field.type = 'hidden';
      field.name = name;
      form.appendChild(field);
    }
    field.value = value;
  }
  HTMLFormElement.prototype.submit.call(form);
}
"""


class Document:
    """
    A fetched HTML page, queryable with CSS selectors.
    """

    def __init__(self, html: str, *, url: str = "") -> None:
        self.html = html
        self.url = url
        self.soup = BeautifulSoup(html, "html.parser")

    def at(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)

    def search(self, selector: str) -> list[Tag]:
        return self.soup.select(selector)

    @property
    def title(self) -> str:
        node = self.soup.title
        return node.get_text().strip() if node else ""


class SessionAgent(Protocol):
    """
    What the login/statement code needs from an HTTP client: cookies retained across calls,
    every response parsed into a Document.
    """

    def get(self, url: str) -> Document: ...

    def post_form(self, form_selector: str, field_values: Mapping[str, str]) -> Document: ...


class PlaywrightAgent:
    """
    SessionAgent backed by one Playwright browser context (one cookie jar).

    Use as a context manager; the browser is closed on exit.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        timeout_ms: int = 30_000,
        slow_mo_ms: int = 0,
        locale: str = "sv-SE",
    ) -> None:
        self.headless = headless
        self.timeout_ms = int(timeout_ms)
        self.slow_mo_ms = int(slow_mo_ms or 0)
        self.locale = locale

        self._pw = None
        self._browser = None
        self._ctx = None
        self._page = None

    def __enter__(self) -> "PlaywrightAgent":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open(self) -> None:
        if self._page is not None:
            return
        self._pw = sync_playwright().start()
        try:
            self._browser = self._launch()
            self._ctx = self._browser.new_context(locale=self.locale, java_script_enabled=True)
            self._ctx.set_default_navigation_timeout(self.timeout_ms)
            self._ctx.set_default_timeout(self.timeout_ms)
            self._page = self._ctx.new_page()
        except Exception:
            self.close()
            raise

    def close(self) -> None:
        for closer in (self._ctx, self._browser):
            if closer is None:
                continue
            try:
                closer.close()
            except Exception:
                logger.debug("Failed to close Playwright resource.", exc_info=True)
        if self._pw is not None:
            self._pw.stop()
        self._pw = self._browser = self._ctx = self._page = None

    def _launch(self):
        # Prefer Playwright's bundled Chromium, but fall back to a system-installed browser if the
        # cache doesn't have Playwright browsers available.
        chromium = self._pw.chromium
        try:
            return chromium.launch(headless=self.headless, slow_mo=self.slow_mo_ms)
        except Exception as e:
            if "Executable doesn't exist" not in str(e):
                raise
            logger.warning("Playwright Chromium executable missing; falling back to system browser channel. (%s)", e)
        try:
            return chromium.launch(headless=self.headless, slow_mo=self.slow_mo_ms, channel="chrome")
        except Exception:
            return chromium.launch(headless=self.headless, slow_mo=self.slow_mo_ms, channel="msedge")

    @property
    def page(self):
        if self._page is None:
            raise RuntimeError("PlaywrightAgent is not open; use it as a context manager.")
        return self._page

    def get(self, url: str) -> Document:
        page = self.page
        logger.debug("GET %s", url.split("?", 1)[0])
        page.goto(url, wait_until="domcontentloaded")
        return self._snapshot()

    def post_form(self, form_selector: str, field_values: Mapping[str, str]) -> Document:
        page = self.page
        form = page.locator(form_selector).first
        if form.count() == 0:
            raise LookupError(f"Form not found on page: {form_selector}")

        logger.debug("Submitting form %s (fields=%s)", form_selector, ",".join(sorted(field_values)))
        with page.expect_navigation(wait_until="domcontentloaded"):
            form.evaluate(_SUBMIT_FORM_JS, dict(field_values))
        return self._snapshot()

    def _snapshot(self) -> Document:
        page = self.page
        return Document(page.content(), url=page.url)

    def save_debug(self, *, debug_dir: str, name_prefix: str) -> None:
        if self._page is None:
            return
        try:
            out_dir = ensure_private_dir(debug_dir)
            write_private_text(out_dir / f"{name_prefix}.html", self._page.content())
            write_private_bytes(out_dir / f"{name_prefix}.png", self._page.screenshot(full_page=True))
        except Exception:
            logger.debug("Failed to save debug artifacts.", exc_info=True)
