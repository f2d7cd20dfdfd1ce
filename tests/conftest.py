"""Shared pytest fixtures for the jobsdb-scraper test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from jobsdb_scraper.config.settings import Settings
from jobsdb_scraper.interfaces.browser_session import IBrowserSession
from jobsdb_scraper.models.job import JobRecord, PageContent, PageResult
from jobsdb_scraper.pipeline.worker_supervisor import WorkerHandle
from jobsdb_scraper.services.urls import get_page_url
from jobsdb_scraper.utils.errors import PortDiscoveryFailure


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_page_result(
    page: int,
    region: str = "hk",
    titles: Iterable[str] = ("Data Engineer", "Backend Developer"),
) -> PageResult:
    """Build a PageResult with one job per title."""
    jobs = [
        JobRecord(
            job_id=f"{page}-{i}",
            title=title,
            company="Acme Ltd",
            location="Central",
            url=f"https://{region}.jobsdb.com/job/{page}{i}",
        )
        for i, title in enumerate(titles)
    ]
    return PageResult(page=PageContent(number=page, url=get_page_url(page, region), jobs=jobs))


# ---------------------------------------------------------------------------
# Fake browser session
# ---------------------------------------------------------------------------


class FakeBrowserSession(IBrowserSession):
    """In-memory job board with *last_page* pages of results.

    Pages in *fail_pages* raise on any access; pages in
    *indeterminate_pages* answer the zero-results check with ``None``.
    """

    def __init__(
        self,
        last_page: int = 10,
        fail_pages: Iterable[int] = (),
        indeterminate_pages: Iterable[int] = (),
        delay: float = 0.0,
    ) -> None:
        self.last_page = last_page
        self.fail_pages = set(fail_pages)
        self.indeterminate_pages = set(indeterminate_pages)
        self.delay = delay
        self.probed: list[int] = []
        self.scraped: list[int] = []
        self.keywords_seen: list[list[str] | None] = []
        self.closed = False

    async def is_zero_results(self, page: int, region: str) -> bool | None:
        self.probed.append(page)
        if self.delay:
            await asyncio.sleep(self.delay)
        if page in self.fail_pages:
            raise RuntimeError(f"navigation to page {page} failed")
        if page in self.indeterminate_pages:
            return None
        return page > self.last_page

    async def scrape_page(
        self, page: int, region: str, keywords: list[str] | None = None
    ) -> PageResult:
        if self.delay:
            await asyncio.sleep(self.delay)
        if page in self.fail_pages:
            raise RuntimeError(f"navigation to page {page} failed")
        self.scraped.append(page)
        self.keywords_seen.append(keywords)
        result = make_page_result(page, region)
        if keywords:
            jobs = [job for job in result.page.jobs if job.matches_any(keywords)]
            result = PageResult(page=result.page.model_copy(update={"jobs": jobs}))
        return result

    async def close(self) -> None:
        self.closed = True

    def get_provider_name(self) -> str:
        return "fake"


# ---------------------------------------------------------------------------
# Fake worker supervisor
# ---------------------------------------------------------------------------


class FakeSupervisor:
    """Stands in for WorkerSupervisor without starting processes.

    Worker *i* announces port ``9000 + i`` unless *i* is in
    *port_failures*, in which case port discovery fails for it.
    """

    def __init__(self, port_failures: Iterable[int] = ()) -> None:
        self.port_failures = set(port_failures)
        self.spawned: list[int] = []
        self.port_reads: list[int] = []
        self.shut_down: list[int] = []
        self.reaped: list[int] = []
        self.logging_flags: list[bool] = []

    async def spawn(self, index: int, logging_enabled: bool = False) -> WorkerHandle:
        self.spawned.append(index)
        self.logging_flags.append(logging_enabled)
        process = MagicMock()
        process.pid = 4000 + index
        process.returncode = None
        return WorkerHandle(index=index, process=process)

    async def wait_for_port(self, handle: WorkerHandle, timeout: float | None = None) -> int:
        self.port_reads.append(handle.index)
        if handle.index in self.port_failures:
            raise PortDiscoveryFailure(
                message="Worker exited before announcing a port", worker_index=handle.index
            )
        handle.port = 9000 + handle.index
        return handle.port

    def shutdown(self, handle: WorkerHandle) -> bool:
        self.shut_down.append(handle.index)
        handle.process.returncode = 0
        return True

    async def wait_closed(self, handle: WorkerHandle, timeout: float = 10.0) -> int | None:
        self.reaped.append(handle.index)
        return handle.process.returncode


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def test_settings() -> Settings:
    """Settings with fast polling and logging disabled."""
    return Settings(
        log_enabled=False,
        progress_interval=0.01,
        port_timeout=1.0,
        shutdown_timeout=1.0,
        max_workers=2,
        split_threshold=10,
    )


@pytest.fixture
def fake_session() -> FakeBrowserSession:
    return FakeBrowserSession(last_page=37)


@pytest.fixture
def fake_supervisor() -> FakeSupervisor:
    return FakeSupervisor()


@pytest.fixture
def sample_listing_html() -> str:
    """A trimmed JobsDB listing page with two job cards and one broken card."""
    return """
    <html><body>
      <div data-automation="searchResults">
        <article data-testid="job-card" data-job-id="81234567">
          <h3><a data-automation="jobTitle" href="/job/81234567?ref=search">Senior Python Engineer</a></h3>
          <a data-automation="jobCompany">Harbour Analytics Ltd</a>
          <span data-automation="jobLocation">Kwun Tong, Kowloon</span>
          <span data-automation="jobSalary">HK$45,000 - HK$60,000 per month</span>
          <span data-automation="jobClassification">Information &amp; Communication Technology</span>
          <span data-automation="jobShortDescription">Build data pipelines for our trading desk.</span>
          <span data-automation="jobListingDate">2d ago</span>
        </article>
        <article data-testid="job-card" data-job-id="81234999">
          <h3><a data-automation="jobTitle" href="https://hk.jobsdb.com/job/81234999">Accounts Clerk</a></h3>
          <a data-automation="jobCompany">Victoria Trading Co.</a>
          <span data-automation="jobLocation">Central</span>
        </article>
        <article data-testid="job-card">
          <span data-automation="jobCompany">No title here</span>
        </article>
      </div>
    </body></html>
    """
