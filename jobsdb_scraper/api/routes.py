"""FastAPI routes served by each worker node.

# ─── ROUTE MAP ────────────────────────────────────────────────────────
#
# Endpoint                          Method  Description
# ─────────────────────────────────────────────────────────────────────
# /health                           GET     Liveness + worker index
# /pages/{page}/zero-results        GET     Is the listing page empty?
# /pages/{page}                     GET     Scrape job cards of one page
#
# The browser session and a lock serializing access to its single tab are
# read from ``app.state`` (populated in jobsdb_scraper.node.create_app).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request

from jobsdb_scraper.api.schemas import ErrorResponse, HealthResponse, ZeroResultsResponse
from jobsdb_scraper.interfaces.browser_session import IBrowserSession
from jobsdb_scraper.models.job import PageResult, parse_keywords
from jobsdb_scraper.utils.logging import get_logger

router = APIRouter()

_logger: structlog.BoundLogger = get_logger(__name__)

_REGION_PATTERN = "^(hk|th)$"


def _get_session(request: Request) -> IBrowserSession:
    return request.app.state.session


def _get_lock(request: Request) -> asyncio.Lock:
    return request.app.state.session_lock


SessionDep = Annotated[IBrowserSession, Depends(_get_session)]
LockDep = Annotated[asyncio.Lock, Depends(_get_lock)]
PageParam = Annotated[int, Path(ge=1, description="1-indexed listing page.")]
RegionParam = Annotated[str, Query(pattern=_REGION_PATTERN, description="hk or th")]


@router.get("/health", response_model=HealthResponse)
async def health(request: Request, session: SessionDep) -> HealthResponse:
    return HealthResponse(index=request.app.state.index, provider=session.get_provider_name())


@router.get(
    "/pages/{page}/zero-results",
    response_model=ZeroResultsResponse,
    responses={502: {"model": ErrorResponse}},
)
async def zero_results(
    page: PageParam, region: RegionParam, session: SessionDep, lock: LockDep
) -> ZeroResultsResponse:
    """Load the page and report whether it has zero job cards."""
    async with lock:
        try:
            empty = await session.is_zero_results(page, region)
        except Exception as exc:
            _logger.error("zero_results_failed", page=page, region=region, error=str(exc))
            raise HTTPException(status_code=502, detail=str(exc)) from exc
    return ZeroResultsResponse(page=page, region=region, zero_results=empty)


@router.get(
    "/pages/{page}",
    response_model=PageResult,
    responses={502: {"model": ErrorResponse}},
)
async def scrape_page(
    page: PageParam,
    region: RegionParam,
    session: SessionDep,
    lock: LockDep,
    keywords: Annotated[str | None, Query(description="Comma-separated filter terms")] = None,
) -> PageResult:
    """Scrape the job cards on one listing page."""
    async with lock:
        try:
            result = await session.scrape_page(page, region, parse_keywords(keywords))
        except Exception as exc:
            _logger.error("scrape_page_failed", page=page, region=region, error=str(exc))
            raise HTTPException(status_code=502, detail=str(exc)) from exc

    _logger.info("scrape_page_served", page=page, region=region, jobs=len(result.page.jobs))
    return result
