"""Unit tests for progress bar rendering, ProgressReporter and line parsing."""

from __future__ import annotations

import io

import pytest

from jobsdb_scraper.pipeline.progress import (
    ProgressReporter,
    parse_progress_line,
    progress_fraction,
    render_progress_bar,
)


class _TTYBuffer(io.StringIO):
    def isatty(self) -> bool:
        return True


# ======================================================================
# Rendering
# ======================================================================


class TestRenderProgressBar:
    def test_empty_bar(self) -> None:
        assert render_progress_bar(0, 10) == "Progress: [" + "-" * 40 + "] 0.00%"

    def test_half_bar(self) -> None:
        assert render_progress_bar(5, 10) == "Progress: [" + "█" * 20 + "-" * 20 + "] 50.00%"

    def test_full_bar(self) -> None:
        assert render_progress_bar(12, 12) == "Progress: [" + "█" * 40 + "] 100.00%"

    def test_clamped_above_total(self) -> None:
        assert render_progress_bar(15, 12).endswith("] 100.00%")

    def test_zero_total_counts_as_complete(self) -> None:
        assert progress_fraction(0, 0) == 1.0
        assert render_progress_bar(0, 0).endswith("100.00%")

    def test_custom_length_and_decimals(self) -> None:
        line = render_progress_bar(1, 3, bar_length=10)
        assert line == "Progress: [" + "█" * 3 + "-" * 7 + "] 33.33%"


# ======================================================================
# ProgressReporter
# ======================================================================


class TestProgressReporter:
    @pytest.mark.asyncio
    async def test_non_tty_writes_one_line_per_report(self) -> None:
        sink = io.StringIO()
        reporter = ProgressReporter(sink=sink)

        await reporter.report(0, 4)
        await reporter.report(2, 4)
        await reporter.report(4, 4)

        lines = sink.getvalue().splitlines()
        assert len(lines) == 3
        assert lines[0].endswith("0.00%")
        assert lines[1].endswith("50.00%")
        assert lines[2].endswith("100.00%")
        assert reporter.last_report == (4, 4)

    @pytest.mark.asyncio
    async def test_tty_rewrites_in_place(self) -> None:
        sink = _TTYBuffer()
        reporter = ProgressReporter(sink=sink)

        await reporter.report(1, 2)
        await reporter.report(2, 2)

        output = sink.getvalue()
        assert output.count("\r\x1b[2K") == 2
        assert output.count("\n") == 1
        assert output.endswith("100.00%\n")

    @pytest.mark.asyncio
    async def test_message_breaks_an_open_tty_bar(self) -> None:
        sink = _TTYBuffer()
        reporter = ProgressReporter(sink=sink)

        await reporter.report(1, 2)
        reporter.message("Result file saved")

        assert sink.getvalue().endswith("50.00%\nResult file saved\n")

    def test_message_writes_line(self) -> None:
        sink = io.StringIO()
        ProgressReporter(sink=sink).message("Scraping 2/2 available pages")
        assert sink.getvalue() == "Scraping 2/2 available pages\n"

    @pytest.mark.asyncio
    async def test_sync_and_async_listeners(self) -> None:
        received: list[tuple] = []

        def sync_listener(completed: int, total: int, percent: float) -> None:
            received.append(("sync", completed, total, percent))

        async def async_listener(completed: int, total: int, percent: float) -> None:
            received.append(("async", completed, total, percent))

        reporter = ProgressReporter(sink=io.StringIO())
        reporter.register_listener(sync_listener)
        reporter.register_listener(async_listener)
        reporter.register_listener(sync_listener)  # duplicate ignored

        await reporter.report(3, 4)

        assert received == [("sync", 3, 4, 75.0), ("async", 3, 4, 75.0)]

    @pytest.mark.asyncio
    async def test_unregister_listener(self) -> None:
        calls: list[int] = []

        def listener(completed: int, total: int, percent: float) -> None:
            calls.append(completed)

        reporter = ProgressReporter(sink=io.StringIO())
        reporter.register_listener(listener)
        reporter.unregister_listener(listener)
        reporter.unregister_listener(listener)  # should not raise

        await reporter.report(1, 2)
        assert calls == []

    @pytest.mark.asyncio
    async def test_listener_error_does_not_propagate(self) -> None:
        calls: list[int] = []

        def broken(completed: int, total: int, percent: float) -> None:
            raise RuntimeError("listener broke")

        def healthy(completed: int, total: int, percent: float) -> None:
            calls.append(completed)

        reporter = ProgressReporter(sink=io.StringIO())
        reporter.register_listener(broken)
        reporter.register_listener(healthy)

        await reporter.report(1, 2)

        assert calls == [1]


# ======================================================================
# parse_progress_line
# ======================================================================


class TestParseProgressLine:
    @pytest.mark.parametrize(
        ("text", "kind", "percent"),
        [
            ("Progress: [████----] 45.00%", "progress", 45),
            ("Downloading 45%", "progress", 45),
            ("done 150 %", "progress", 100),
            ("Scraping page 3 of 4", "progress", 75),
            ("page: 2 / 8", "progress", 25),
            ("worker finished 3/12", "progress", 25),
            ("Result file saved", "log", None),
            ("0/0 pages", "log", None),
        ],
    )
    def test_classifies_line(self, text: str, kind: str, percent: int | None) -> None:
        event = parse_progress_line(text)
        assert event.kind == kind
        assert event.percent == percent
        assert event.text == text
