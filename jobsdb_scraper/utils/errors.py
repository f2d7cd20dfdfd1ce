"""Custom exception hierarchy for jobsdb-scraper.

All application exceptions inherit from :class:`JobsDBScraperError`, which
carries an optional ``worker_index`` so error handlers can tell which worker
node (if any) the failure came from.

The hierarchy is organized by the stage of a scrape run:

    JobsDBScraperError  (base -- catch-all for any scraper error)
    +-- ConfigurationError      (invalid CLI arguments / settings)
    +-- ProbeFailure            (page discovery: indeterminate page check)
    +-- PageDiscoveryError      (page discovery: no last page found)
    +-- PortDiscoveryFailure    (worker never announced a usable port)
    +-- ScrapeStepFailure       (one page fetch inside a scrape operation)
    +-- TempFileNotCreated      (temp file used before it existed)
    +-- MergeFailure            (final placement of the merged result)
    +-- WorkerShutdownFailure   (worker did not terminate cleanly)

Page-level and shutdown-level failures are caught and logged where they
happen; discovery and merge-placement failures propagate to the top and
mark the run failed.
"""


class JobsDBScraperError(Exception):
    """Base exception for all jobsdb-scraper errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``worker_index``.  ``__str__`` prefixes the worker in brackets for log
    output, e.g. ``[worker 1] Page 12 failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        worker_index: int | None = None,
    ) -> None:
        self._message = message
        self._worker_index = worker_index
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def worker_index(self) -> int | None:
        return self._worker_index

    def __str__(self) -> str:
        if self._worker_index is not None:
            return f"[worker {self._worker_index}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Startup / configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(JobsDBScraperError):
    """Raised when CLI arguments or settings are invalid."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        worker_index: int | None = None,
    ) -> None:
        super().__init__(message=message, worker_index=worker_index)


# ---------------------------------------------------------------------------
# Page discovery errors
# ---------------------------------------------------------------------------

class ProbeFailure(JobsDBScraperError):
    """Raised when a page-existence check cannot produce a definitive answer.

    Aborts the surrounding binary search.  An indeterminate probe is never
    treated as an empty page.
    """

    def __init__(
        self,
        message: str = "Couldn't parse zero result section",
        worker_index: int | None = None,
    ) -> None:
        super().__init__(message=message, worker_index=worker_index)


class PageDiscoveryError(JobsDBScraperError):
    """Raised when the binary search ends without locating the last page."""

    def __init__(
        self,
        message: str = "Couldn't find the pages available to scrape",
        worker_index: int | None = None,
    ) -> None:
        super().__init__(message=message, worker_index=worker_index)


# ---------------------------------------------------------------------------
# Worker errors
# ---------------------------------------------------------------------------

class PortDiscoveryFailure(JobsDBScraperError):
    """Raised when a worker never emits a usable port on its stdout."""

    def __init__(
        self,
        message: str = "Worker did not announce a port",
        worker_index: int | None = None,
    ) -> None:
        super().__init__(message=message, worker_index=worker_index)


class ScrapeStepFailure(JobsDBScraperError):
    """Raised when a single page fetch inside a scrape operation fails.

    Ends that operation; sibling operations keep running.
    """

    def __init__(
        self,
        message: str = "Page scrape failed",
        worker_index: int | None = None,
        page: int | None = None,
    ) -> None:
        self.page = page
        super().__init__(message=message, worker_index=worker_index)


class WorkerShutdownFailure(JobsDBScraperError):
    """Recorded when a worker process does not terminate cleanly.

    Logged, never raised across the cleanup loop.
    """

    def __init__(
        self,
        message: str = "Worker shutdown failed",
        worker_index: int | None = None,
    ) -> None:
        super().__init__(message=message, worker_index=worker_index)


# ---------------------------------------------------------------------------
# Temp file / merge errors
# ---------------------------------------------------------------------------

class TempFileNotCreated(JobsDBScraperError):
    """Raised when a temp file operation runs before its backing file exists."""

    def __init__(
        self,
        message: str = "Temporary file is not created.",
        worker_index: int | None = None,
    ) -> None:
        super().__init__(message=message, worker_index=worker_index)


class MergeFailure(JobsDBScraperError):
    """Raised when the merged result cannot be moved to its final path."""

    def __init__(
        self,
        message: str = "Could not place the merged result file",
        worker_index: int | None = None,
    ) -> None:
        super().__init__(message=message, worker_index=worker_index)
