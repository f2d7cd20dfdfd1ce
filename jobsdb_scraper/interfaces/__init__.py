"""Public interface definitions for external collaborators.

The browser engine is accessed exclusively through :class:`IBrowserSession`.
Concrete adapters live in ``jobsdb_scraper/providers/browser``:

    Interface          →  Concrete implementations
    ───────────────────────────────────────────────────────
    IBrowserSession    →  PlaywrightBrowserSession (in-process Chromium),
                          WorkerClient (HTTP client to a worker node)

Unit tests inject ``MagicMock(spec=IBrowserSession)`` in place of either.
"""

from jobsdb_scraper.interfaces.browser_session import IBrowserSession

__all__ = ["IBrowserSession"]
