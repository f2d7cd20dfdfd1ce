"""Abstract base class for browser-automation sessions.

A session is one handle onto a browser engine that can load a listing page
of the job board.  The coordinator and page discovery only ever talk to this
contract; the engine itself may run in-process (Playwright) or inside a
worker node reached over HTTP.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from jobsdb_scraper.models.job import PageResult


class IBrowserSession(ABC):
    """Contract for a browser-automation session."""

    @abstractmethod
    async def is_zero_results(self, page: int, region: str) -> bool | None:
        """Load listing *page* for *region* and report whether it is empty.

        Parameters
        ----------
        page:
            1-indexed listing page number.
        region:
            Two-letter region code (``"hk"`` or ``"th"``).

        Returns
        -------
        bool or None
            ``True`` when the page has no job cards, ``False`` when it has
            some, ``None`` when the check was indeterminate.
        """

    @abstractmethod
    async def scrape_page(
        self, page: int, region: str, keywords: list[str] | None = None
    ) -> PageResult:
        """Load listing *page* and return its job cards.

        Parameters
        ----------
        page:
            1-indexed listing page number.
        region:
            Two-letter region code.
        keywords:
            Lower-cased filter terms; when non-empty only matching jobs are
            returned.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the session's resources.  Safe to call more than once."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for logs, e.g. ``"playwright"``."""
