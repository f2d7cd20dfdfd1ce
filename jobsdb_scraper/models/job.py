"""Pydantic v2 models for scraped job listings.

A :class:`PageResult` is one element of the result file's JSON array::

    {"page": {"number": 3, "url": "https://hk.jobsdb.com/jobs?page=3", "jobs": [...]}}

Job records hold whatever the listing card exposes; every field except the
title may be missing on a given card.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JobRecord(BaseModel):
    """A single job card from a listing page."""

    model_config = ConfigDict(frozen=True)

    job_id: str | None = Field(default=None, description="Site job ID (data-job-id).")
    title: str = Field(description="Job title as shown on the card.")
    company: str | None = None
    location: str | None = None
    salary: str | None = None
    classification: str | None = None
    teaser: str | None = Field(default=None, description="Short description snippet.")
    posted: str | None = Field(default=None, description="Relative listing date, e.g. '2d ago'.")
    url: str | None = None

    def matches_any(self, keywords: list[str]) -> bool:
        """Return ``True`` when any lower-cased keyword appears in the card text."""
        if not keywords:
            return True
        haystack = " ".join(
            part for part in (self.title, self.company, self.teaser) if part
        ).lower()
        return any(keyword in haystack for keyword in keywords)


class PageContent(BaseModel):
    """The jobs found on one listing page."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(ge=1)
    url: str
    jobs: list[JobRecord] = Field(default_factory=list)


class PageResult(BaseModel):
    """One scraped page, as written to the result file."""

    model_config = ConfigDict(frozen=True)

    page: PageContent

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def parse_keywords(raw: str | None) -> list[str]:
    """Split a comma-separated keyword string into trimmed, lower-cased terms."""
    if not raw:
        return []
    return [term.strip().lower() for term in raw.split(",") if term.strip()]
