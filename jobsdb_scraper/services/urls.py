"""URL helpers for the JobsDB listing pages of each supported region."""

from __future__ import annotations

REGIONS: tuple[str, ...] = ("hk", "th")

REGION_NAMES: dict[str, str] = {
    "hk": "Hong Kong",
    "th": "Thailand",
}


def get_base_url(region: str) -> str:
    """Base listing URL for *region*, e.g. ``https://hk.jobsdb.com/jobs``."""
    return f"https://{region}.jobsdb.com/jobs"


def get_page_url(page: int, region: str) -> str:
    """Paginated listing URL for *region*."""
    return f"{get_base_url(region)}?page={page}"
