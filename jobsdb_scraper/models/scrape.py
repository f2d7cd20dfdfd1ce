"""Pydantic v2 models for scrape-run coordination.

Page ranges and run results are frozen (immutable): the coordinator
computes them once per run and hands them to workers and callers without
further mutation.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CoordinatorPhase(str, Enum):  # noqa: UP042  StrEnum requires Python 3.11+
    """Phases of one scrape run.

    PARTITIONING → SPAWNING_WORKERS → AWAITING_PORTS → SCRAPING → MERGING →
    DONE, or FAILED entered from any phase.
    """

    IDLE = "IDLE"
    PARTITIONING = "PARTITIONING"
    SPAWNING_WORKERS = "SPAWNING_WORKERS"
    AWAITING_PORTS = "AWAITING_PORTS"
    SCRAPING = "SCRAPING"
    MERGING = "MERGING"
    DONE = "DONE"
    FAILED = "FAILED"


class ProbePosition(str, Enum):  # noqa: UP042
    """Where a probed page sits relative to the last results page."""

    BEFORE = "before"  # page and the one after it both have results
    ON = "on"          # page has results, the next one does not
    AFTER = "after"    # page already has no results


class PageRange(BaseModel):
    """A contiguous, inclusive, 1-indexed range of listing pages."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=1)
    end: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_order(self) -> PageRange:
        if self.start > self.end:
            raise ValueError(f"start ({self.start}) must be <= end ({self.end})")
        return self

    @property
    def page_count(self) -> int:
        return self.end - self.start + 1

    def pages(self) -> range:
        """Page numbers in increasing order."""
        return range(self.start, self.end + 1)

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


class ScrapeRunResult(BaseModel):
    """Outcome of a successful scrape run."""

    model_config = ConfigDict(frozen=True)

    result_path: Path = Field(description="Absolute path of the written JSON array.")
    region: str
    num_pages: int
    worker_count: int
    elapsed_seconds: float
