"""jobsdb-scraper domain models: re-exports all public model classes."""

from jobsdb_scraper.models.job import (
    JobRecord,
    PageContent,
    PageResult,
    parse_keywords,
)
from jobsdb_scraper.models.scrape import (
    CoordinatorPhase,
    PageRange,
    ProbePosition,
    ScrapeRunResult,
)

__all__ = [
    "CoordinatorPhase",
    "JobRecord",
    "PageContent",
    "PageRange",
    "PageResult",
    "ProbePosition",
    "ScrapeRunResult",
    "parse_keywords",
]
