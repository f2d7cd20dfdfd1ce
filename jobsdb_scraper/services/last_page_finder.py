"""Binary search for the last listing page that still has results.

# ─── HOW PAGE DISCOVERY WORKS ─────────────────────────────────────────
#
# The job board does not publish a page count.  We search [1, upper_bound]
# for the page P where P has results and P+1 does not.  Each step probes
# the midpoint M and M+1 at the same time on two browser sessions:
#
#   M has results, M+1 empty  → ON     → P = M, done
#   M empty                   → AFTER  → P lies before M: end = M - 1
#   M and M+1 have results    → BEFORE → P lies after M:  start = M + 1
#
# The loop ends at start > end with -1 when no boundary exists (page 1 is
# already empty, or every page up to upper_bound + 1 has results).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from typing import Protocol

import structlog

from jobsdb_scraper.interfaces.browser_session import IBrowserSession
from jobsdb_scraper.models.scrape import ProbePosition
from jobsdb_scraper.providers.browser.playwright_session import PlaywrightBrowserCore
from jobsdb_scraper.services.page_prober import PageProber
from jobsdb_scraper.utils.logging import get_logger

NOT_FOUND = -1
DEFAULT_UPPER_BOUND = 1000


class BrowserCore(Protocol):
    """What the finder needs from a browser engine it owns itself."""

    async def start(self) -> object: ...

    async def new_session(self, block_resources: bool = False) -> IBrowserSession: ...

    async def close(self) -> None: ...


def classify(current_has_no_results: bool, next_has_no_results: bool) -> ProbePosition:
    """Classify a probed pair (M, M+1) relative to the last results page."""
    if not current_has_no_results and next_has_no_results:
        return ProbePosition.ON
    if current_has_no_results:
        return ProbePosition.AFTER
    return ProbePosition.BEFORE


class LastPageFinder:
    """Finds the last non-empty listing page for a region.

    Parameters
    ----------
    upper_bound:
        Highest page number the search considers.
    core_factory:
        Builds the browser core used when :meth:`find_last_page` is not
        given probers.  Defaults to a headless Playwright Chromium.
    """

    def __init__(
        self,
        upper_bound: int = DEFAULT_UPPER_BOUND,
        core_factory: Callable[[], BrowserCore] | None = None,
    ) -> None:
        self._upper_bound = upper_bound
        self._core_factory = core_factory or PlaywrightBrowserCore
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def position_from_last_page(
        self, probers: Sequence[PageProber], page: int, region: str
    ) -> ProbePosition:
        """Probe *page* and *page* + 1 concurrently and classify the pair."""
        current, following = await asyncio.gather(
            probers[0].probe(page, region),
            probers[1].probe(page + 1, region),
        )
        return classify(current, following)

    async def find_last_page(
        self, region: str, probers: Sequence[PageProber] | None = None
    ) -> int:
        """Return the last page of *region* with results, or ``-1``.

        Parameters
        ----------
        region:
            Two-letter region code.
        probers:
            Two externally owned probers.  When omitted, a browser core and
            two sessions are opened here and closed again on every exit
            path, including :class:`ProbeFailure`.

        Raises
        ------
        ProbeFailure
            A probe could not tell whether a page was empty.
        """
        if probers is not None:
            if len(probers) < 2:
                raise ValueError("find_last_page needs two probers")
            return await self._search(region, probers)

        core = self._core_factory()
        sessions: list[IBrowserSession] = []
        try:
            await core.start()
            for _ in range(2):
                sessions.append(await core.new_session(block_resources=True))
            return await self._search(region, [PageProber(s) for s in sessions])
        finally:
            for session in sessions:
                try:
                    await session.close()
                except Exception as exc:
                    self._logger.warning("probe_session_close_failed", error=str(exc))
            await core.close()

    async def _search(self, region: str, probers: Sequence[PageProber]) -> int:
        start = 1
        end = self._upper_bound
        found = NOT_FOUND
        probes = 0

        while start <= end:
            mid = (start + end) // 2
            position = await self.position_from_last_page(probers, mid, region)
            probes += 1
            self._logger.debug("last_page_probe", region=region, page=mid, position=position.value)

            if position is ProbePosition.BEFORE:
                start = mid + 1
            elif position is ProbePosition.ON:
                found = mid
                break
            else:
                end = mid - 1

        if found < 1:
            found = NOT_FOUND

        self._logger.info("last_page_search_done", region=region, last_page=found, probes=probes)
        return found
