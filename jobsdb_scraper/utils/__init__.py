"""Utility modules for jobsdb-scraper.

Available utility modules (all re-exported here for convenience):

- **errors** -- Domain-specific exception hierarchy rooted at
  JobsDBScraperError; each stage of a scrape run raises its own subclass so
  callers can tell fatal failures from ones that are only logged.
- **file_io** -- Cross-device detection, streamed file append, and working
  directory cleanup used by the merge step.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production and in
  per-process log files.
- **temp_file** -- The lock-protected append/pop/rename file abstraction
  behind every worker output and the merged result.
"""

# -- Domain exception hierarchy --------------------------------------------
from jobsdb_scraper.utils.errors import (
    ConfigurationError,
    JobsDBScraperError,
    MergeFailure,
    PageDiscoveryError,
    PortDiscoveryFailure,
    ProbeFailure,
    ScrapeStepFailure,
    TempFileNotCreated,
    WorkerShutdownFailure,
)

# -- File helpers ----------------------------------------------------------
from jobsdb_scraper.utils.file_io import (
    append_file_content,
    are_paths_on_different_devices,
    clean_dir,
)

# -- Structured logging setup ----------------------------------------------
from jobsdb_scraper.utils.logging import configure_logging, get_logger

# -- Lock-protected temp file ----------------------------------------------
from jobsdb_scraper.utils.temp_file import TempFile

__all__ = [
    "ConfigurationError",
    "JobsDBScraperError",
    "MergeFailure",
    "PageDiscoveryError",
    "PortDiscoveryFailure",
    "ProbeFailure",
    "ScrapeStepFailure",
    "TempFile",
    "TempFileNotCreated",
    "WorkerShutdownFailure",
    "append_file_content",
    "are_paths_on_different_devices",
    "clean_dir",
    "configure_logging",
    "get_logger",
]
