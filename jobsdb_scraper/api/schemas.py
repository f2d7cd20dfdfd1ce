"""Pydantic response schemas for the worker node API.

Page scrapes are returned as :class:`~jobsdb_scraper.models.job.PageResult`
directly; the schemas below cover the remaining endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness answer from a worker node."""

    status: str = "ok"
    index: int = Field(description="Worker index the node was started with.")
    provider: str = Field(description="Browser session backing the node.")


class ZeroResultsResponse(BaseModel):
    """Whether a listing page has zero job cards."""

    page: int = Field(ge=1)
    region: str
    zero_results: bool | None = Field(
        description="True when the page is empty; null when the check was indeterminate."
    )


class ErrorResponse(BaseModel):
    """Body of a failed request."""

    detail: str
