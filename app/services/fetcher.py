import logging

import httpx
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from app.exceptions.custom import BrowserLaunchError, FetchError
from app.schemas.fetch import FetchMethod, FetchResult

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_TIMEOUT = 30.0
_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
]
_VIEWPORT = {"width": 1920, "height": 1080}


class FetchService:
    """Fetch page HTML, escalating from a plain GET to headless rendering."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        min_html_chars: int = 1000,
        navigation_timeout: float = 30.0,
        settle_delay: float = 2.0,
    ):
        self._client = client
        self._min_html_chars = min_html_chars
        self._navigation_timeout = navigation_timeout
        self._settle_delay = settle_delay

    async def fetch(self, url: str) -> FetchResult:
        html = await self._fetch_direct(url)
        if html is not None:
            return FetchResult(html=html, method=FetchMethod.direct)

        logger.info("Direct fetch insufficient for %s, rendering with browser", url)
        html = await self._fetch_rendered(url)
        return FetchResult(html=html, method=FetchMethod.rendered)

    async def _fetch_direct(self, url: str) -> str | None:
        """Return server-rendered HTML, or None when it is missing or too short."""
        try:
            resp = await self._client.get(
                url,
                follow_redirects=True,
                timeout=_TIMEOUT,
                headers={"User-Agent": USER_AGENT},
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.debug("Direct fetch failed for %s: %s", url, exc)
            return None

        html = resp.text
        if len(html) < self._min_html_chars:
            logger.debug(
                "HTML too short for %s (%d chars), likely a JavaScript shell", url, len(html)
            )
            return None
        return html

    async def _fetch_rendered(self, url: str) -> str:
        try:
            playwright = await async_playwright().start()
        except Exception as exc:
            raise BrowserLaunchError(f"Could not start the Playwright driver: {exc}") from exc

        try:
            try:
                browser = await playwright.chromium.launch(headless=True, args=_BROWSER_ARGS)
            except PlaywrightError as exc:
                raise BrowserLaunchError(
                    f"Could not launch headless Chromium: {exc.message}"
                ) from exc

            try:
                page = await browser.new_page(user_agent=USER_AGENT, viewport=_VIEWPORT)
                await page.goto(
                    url,
                    wait_until="networkidle",
                    timeout=self._navigation_timeout * 1000,
                )
                await page.wait_for_timeout(self._settle_delay * 1000)
                return await page.content()
            except PlaywrightError as exc:
                raise FetchError(f"Browser rendering failed for {url}: {exc.message}") from exc
            finally:
                await browser.close()
        finally:
            await playwright.stop()
