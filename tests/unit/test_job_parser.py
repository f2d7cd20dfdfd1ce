"""Unit tests for job-card extraction and listing URL helpers."""

from __future__ import annotations

import pytest

from jobsdb_scraper.providers.browser.job_parser import parse_job_cards
from jobsdb_scraper.services.urls import REGION_NAMES, REGIONS, get_base_url, get_page_url


class TestParseJobCards:
    def test_extracts_all_fields(self, sample_listing_html: str) -> None:
        jobs = parse_job_cards(sample_listing_html, "https://hk.jobsdb.com/jobs?page=1")

        first = jobs[0]
        assert first.job_id == "81234567"
        assert first.title == "Senior Python Engineer"
        assert first.company == "Harbour Analytics Ltd"
        assert first.location == "Kwun Tong, Kowloon"
        assert first.salary == "HK$45,000 - HK$60,000 per month"
        assert first.classification == "Information & Communication Technology"
        assert first.teaser == "Build data pipelines for our trading desk."
        assert first.posted == "2d ago"
        assert first.url == "https://hk.jobsdb.com/job/81234567?ref=search"

    def test_missing_fields_are_none(self, sample_listing_html: str) -> None:
        jobs = parse_job_cards(sample_listing_html, "https://hk.jobsdb.com/jobs?page=1")

        second = jobs[1]
        assert second.title == "Accounts Clerk"
        assert second.salary is None
        assert second.teaser is None
        assert second.url == "https://hk.jobsdb.com/job/81234999"

    def test_cards_without_title_are_skipped(self, sample_listing_html: str) -> None:
        jobs = parse_job_cards(sample_listing_html, "https://hk.jobsdb.com/jobs?page=1")
        assert [job.title for job in jobs] == ["Senior Python Engineer", "Accounts Clerk"]

    def test_page_without_cards(self) -> None:
        html = "<html><body><h2>No matching search results</h2></body></html>"
        assert parse_job_cards(html, "https://th.jobsdb.com/jobs?page=900") == []


class TestUrls:
    def test_regions(self) -> None:
        assert REGIONS == ("hk", "th")
        assert set(REGION_NAMES) == set(REGIONS)

    @pytest.mark.parametrize("region", ["hk", "th"])
    def test_base_url(self, region: str) -> None:
        assert get_base_url(region) == f"https://{region}.jobsdb.com/jobs"

    def test_page_url(self) -> None:
        assert get_page_url(12, "th") == "https://th.jobsdb.com/jobs?page=12"
