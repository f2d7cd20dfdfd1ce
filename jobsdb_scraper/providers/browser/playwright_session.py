"""In-process headless Chromium sessions via Playwright.

:class:`PlaywrightBrowserCore` owns the Playwright driver and one Chromium
browser; each :class:`PlaywrightBrowserSession` is an isolated browser
context with a single tab on top of it.  Page discovery opens one core and
two sessions; a worker node opens one core and one session for its whole
lifetime.
"""

from __future__ import annotations

from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route, async_playwright
from playwright.async_api import Error as PlaywrightError

from jobsdb_scraper.interfaces.browser_session import IBrowserSession
from jobsdb_scraper.models.job import PageContent, PageResult
from jobsdb_scraper.providers.browser.job_parser import JOB_CARD_SELECTOR, parse_job_cards
from jobsdb_scraper.services.urls import get_page_url
from jobsdb_scraper.utils.logging import get_logger

# Chromium flags for containerized hosts: no sandbox, no /dev/shm, no GPU.
LAUNCH_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--headless=new",
]

# Resource types skipped when a session only needs the DOM.
_BLOCKED_RESOURCE_TYPES = frozenset({"image", "media", "font", "stylesheet"})

_DEFAULT_TIMEOUT = 60.0


class PlaywrightBrowserSession(IBrowserSession):
    """One browser context + tab driving the job board.

    Parameters
    ----------
    context:
        The Playwright browser context this session owns.
    timeout:
        Navigation timeout in seconds.
    """

    def __init__(self, context: BrowserContext, timeout: float = _DEFAULT_TIMEOUT) -> None:
        self._context = context
        self._timeout_ms = timeout * 1000
        self._page: Page | None = None
        self._closed = False
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # IBrowserSession implementation
    # ------------------------------------------------------------------

    async def is_zero_results(self, page: int, region: str) -> bool | None:
        """Navigate to *page* and check for the absence of job cards."""
        tab = await self._load(page, region)
        try:
            card_count = await tab.locator(JOB_CARD_SELECTOR).count()
        except PlaywrightError as exc:
            self._logger.warning("zero_results_check_failed", page=page, region=region, error=str(exc))
            return None
        return card_count == 0

    async def scrape_page(
        self, page: int, region: str, keywords: list[str] | None = None
    ) -> PageResult:
        """Navigate to *page* and parse its job cards."""
        tab = await self._load(page, region)
        url = get_page_url(page, region)
        html = await tab.content()
        jobs = parse_job_cards(html, url)
        if keywords:
            jobs = [job for job in jobs if job.matches_any(keywords)]

        self._logger.debug("page_scraped", page=page, region=region, jobs=len(jobs))
        return PageResult(page=PageContent(number=page, url=url, jobs=jobs))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._context.close()

    def get_provider_name(self) -> str:
        return "playwright"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _load(self, page: int, region: str) -> Page:
        if self._page is None:
            self._page = await self._context.new_page()
        await self._page.goto(
            get_page_url(page, region),
            wait_until="domcontentloaded",
            timeout=self._timeout_ms,
        )
        return self._page


class PlaywrightBrowserCore:
    """Owns the Playwright driver and a headless Chromium browser.

    Use as an async context manager, or call :meth:`start` / :meth:`close`
    explicitly.
    """

    def __init__(self, timeout: float = _DEFAULT_TIMEOUT) -> None:
        self._timeout = timeout
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._logger = get_logger(__name__)

    async def start(self) -> PlaywrightBrowserCore:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=True, args=LAUNCH_ARGS)
        self._logger.info("browser_started", version=self._browser.version)
        return self

    async def new_session(self, block_resources: bool = False) -> PlaywrightBrowserSession:
        """Open a fresh, non-persistent browser context.

        Parameters
        ----------
        block_resources:
            Abort image, media, font and stylesheet requests.  Page
            discovery only needs the DOM.
        """
        if self._browser is None:
            raise RuntimeError("PlaywrightBrowserCore.start() has not been called")
        context = await self._browser.new_context()
        if block_resources:
            await context.route("**/*", _abort_heavy_resources)
        return PlaywrightBrowserSession(context, timeout=self._timeout)

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        self._logger.info("browser_closed")

    async def __aenter__(self) -> PlaywrightBrowserCore:
        return await self.start()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


async def _abort_heavy_resources(route: Route) -> None:
    if route.request.resource_type in _BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()
