"""Single-page emptiness probe, the primitive step of page discovery."""

from __future__ import annotations

from jobsdb_scraper.interfaces.browser_session import IBrowserSession
from jobsdb_scraper.utils.errors import ProbeFailure


class PageProber:
    """Asks one browser session whether a listing page has zero results.

    An indeterminate answer from the session (anything other than a
    ``bool``) or an error while loading the page raises
    :class:`ProbeFailure`.  Treating such a page as empty would steer the
    binary search to a wrong answer without any sign of trouble.
    """

    def __init__(self, session: IBrowserSession) -> None:
        self._session = session

    @property
    def session(self) -> IBrowserSession:
        return self._session

    async def probe(self, page: int, region: str) -> bool:
        """Return ``True`` when *page* of *region* has no job cards."""
        try:
            result = await self._session.is_zero_results(page, region)
        except ProbeFailure:
            raise
        except Exception as exc:
            raise ProbeFailure(message=f"Probe of page {page} failed: {exc}") from exc

        if not isinstance(result, bool):
            raise ProbeFailure(message=f"Couldn't parse zero result section on page {page}")
        return result
