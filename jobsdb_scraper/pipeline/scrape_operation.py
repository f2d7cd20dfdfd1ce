"""Per-worker scrape driver.

One :class:`ScrapeOperation` is bound to one worker port, one page range
and one output :class:`TempFile`; no two operations share either.  Pages are
scraped strictly in increasing order and each result is appended as a
pretty-printed JSON object followed by ``",\\n"``.
"""

from __future__ import annotations

import json

import structlog

from jobsdb_scraper.interfaces.browser_session import IBrowserSession
from jobsdb_scraper.models.job import PageResult, parse_keywords
from jobsdb_scraper.models.scrape import PageRange
from jobsdb_scraper.providers.browser.worker_client import WorkerClient
from jobsdb_scraper.utils.errors import ScrapeStepFailure
from jobsdb_scraper.utils.logging import get_logger
from jobsdb_scraper.utils.temp_file import TempFile

RECORD_SEPARATOR = ",\n"


def serialize_page(result: PageResult) -> str:
    """Render one page result the way it is stored in a worker file."""
    return json.dumps(result.to_json_dict(), indent=2, ensure_ascii=False) + RECORD_SEPARATOR


class ScrapeOperation:
    """Scrapes a page range through one worker and records its progress.

    Parameters
    ----------
    page_range:
        Pages assigned to this worker.
    port:
        Port the worker announced; used when no *session* is injected.
    output_file:
        This operation's private temp file.
    region:
        Two-letter region code.
    keywords:
        Optional comma-separated filter terms.
    session:
        Injected browser session (tests, or in-process scraping).  When
        omitted a :class:`WorkerClient` for *port* is opened and closed here.
    worker_index:
        Index of the worker, attached to logs and errors.
    host / timeout:
        Passed to the :class:`WorkerClient`.
    """

    def __init__(
        self,
        page_range: PageRange,
        port: int,
        output_file: TempFile,
        region: str,
        keywords: str | None = None,
        session: IBrowserSession | None = None,
        worker_index: int = 0,
        host: str = "127.0.0.1",
        timeout: float = 90.0,
    ) -> None:
        self.page_range = page_range
        self.port = port
        self.output_file = output_file
        self.region = region
        self.keywords = keywords or None
        self.worker_index = worker_index
        # Single writer (this operation), read without locking by the
        # coordinator's poll loop.
        self.pages_scraped = 0
        self.done = False
        self._session = session
        self._host = host
        self._timeout = timeout
        self._logger: structlog.BoundLogger = get_logger(__name__).bind(
            worker=worker_index, pages=str(page_range)
        )

    @property
    def total_pages(self) -> int:
        return self.page_range.page_count

    async def run(self) -> int:
        """Scrape every page in the range; return the number scraped.

        Raises
        ------
        ScrapeStepFailure
            A page could not be scraped or written.  The operation stops at
            that page.
        """
        owns_session = self._session is None
        session = self._session or WorkerClient(
            self.port, host=self._host, timeout=self._timeout, worker_index=self.worker_index
        )
        terms = parse_keywords(self.keywords)
        self._logger.info("scrape_operation_started", port=self.port, keywords=terms)

        try:
            for page in self.page_range.pages():
                await self._scrape_one(session, page, terms)
        finally:
            self.done = True
            if owns_session:
                await session.close()

        self._logger.info("scrape_operation_finished", pages_scraped=self.pages_scraped)
        return self.pages_scraped

    async def __call__(self) -> int:
        return await self.run()

    async def _scrape_one(self, session: IBrowserSession, page: int, terms: list[str]) -> None:
        try:
            result = await session.scrape_page(page, self.region, terms)
        except ScrapeStepFailure:
            raise
        except Exception as exc:
            raise ScrapeStepFailure(
                message=f"Page {page}: {exc}", worker_index=self.worker_index, page=page
            ) from exc

        if not await self.output_file.append(serialize_page(result)):
            raise ScrapeStepFailure(
                message=f"Page {page}: could not write to {self.output_file!r}",
                worker_index=self.worker_index,
                page=page,
            )

        self.pages_scraped += 1
        self._logger.debug("page_written", page=page, jobs=len(result.page.jobs))
