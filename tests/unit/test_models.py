"""Unit tests for the pydantic models in jobsdb_scraper.models."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from jobsdb_scraper.models import (
    CoordinatorPhase,
    JobRecord,
    PageRange,
    PageResult,
    ProbePosition,
    ScrapeRunResult,
    parse_keywords,
)
from tests.conftest import make_page_result


# ======================================================================
# PageRange
# ======================================================================


class TestPageRange:
    def test_page_count_and_pages(self) -> None:
        page_range = PageRange(start=7, end=12)
        assert page_range.page_count == 6
        assert list(page_range.pages()) == [7, 8, 9, 10, 11, 12]
        assert str(page_range) == "7-12"

    def test_single_page_range(self) -> None:
        page_range = PageRange(start=1, end=1)
        assert page_range.page_count == 1
        assert list(page_range.pages()) == [1]

    def test_start_after_end_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PageRange(start=5, end=4)

    def test_zero_page_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PageRange(start=0, end=3)

    def test_frozen(self) -> None:
        page_range = PageRange(start=1, end=3)
        with pytest.raises(ValidationError):
            page_range.start = 2  # type: ignore[misc]


# ======================================================================
# Enums
# ======================================================================


class TestEnums:
    def test_probe_position_values(self) -> None:
        assert {p.value for p in ProbePosition} == {"before", "on", "after"}

    def test_coordinator_phase_is_str(self) -> None:
        assert CoordinatorPhase.MERGING == "MERGING"
        assert CoordinatorPhase("DONE") is CoordinatorPhase.DONE


# ======================================================================
# Jobs and pages
# ======================================================================


class TestJobRecord:
    def test_matches_any_checks_title_company_teaser(self) -> None:
        job = JobRecord(
            title="Senior Python Engineer",
            company="Harbour Analytics",
            teaser="Build data pipelines",
        )
        assert job.matches_any(["python"]) is True
        assert job.matches_any(["harbour"]) is True
        assert job.matches_any(["pipelines"]) is True
        assert job.matches_any(["java", "golang"]) is False

    def test_matches_any_ignores_classification(self) -> None:
        job = JobRecord(title="Accounts Clerk", classification="Information & Communication Technology")
        assert job.matches_any(["technology"]) is False
        assert job.matches_any(["clerk"]) is True

    def test_matches_any_with_no_keywords(self) -> None:
        assert JobRecord(title="Clerk").matches_any([]) is True

    def test_optional_fields_default_to_none(self) -> None:
        job = JobRecord(title="Clerk")
        assert job.company is None
        assert job.salary is None
        assert job.url is None


class TestPageResult:
    def test_json_shape(self) -> None:
        result = make_page_result(3, region="th")
        data = result.to_json_dict()

        assert set(data) == {"page"}
        assert data["page"]["number"] == 3
        assert data["page"]["url"] == "https://th.jobsdb.com/jobs?page=3"
        assert isinstance(data["page"]["jobs"], list)
        assert data["page"]["jobs"][0]["title"] == "Data Engineer"
        json.dumps(data)  # serializable

    def test_round_trips_through_validation(self) -> None:
        result = make_page_result(2)
        assert PageResult.model_validate(result.to_json_dict()) == result


class TestParseKeywords:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (None, []),
            ("", []),
            ("Python", ["python"]),
            (" python , Data Engineer ,, ", ["python", "data engineer"]),
        ],
    )
    def test_parse_keywords(self, raw: str | None, expected: list[str]) -> None:
        assert parse_keywords(raw) == expected


class TestScrapeRunResult:
    def test_fields(self, tmp_path: Path) -> None:
        result = ScrapeRunResult(
            result_path=tmp_path / "out.json",
            region="hk",
            num_pages=12,
            worker_count=2,
            elapsed_seconds=3.5,
        )
        assert result.result_path.name == "out.json"
        assert result.worker_count == 2
