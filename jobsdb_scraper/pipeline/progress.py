"""Scrape progress rendering and callback-based listener notification.

# ─── HOW PROGRESS REPORTING WORKS ─────────────────────────────────────
#
#   Coordinator poll loop ──report()──→ ProgressReporter ──write()──→ console sink
#                                                        ──callback()──→ listeners
#
#   1. Once per poll interval the coordinator sums pages_scraped across
#      its scrape operations and calls reporter.report(completed, total).
#   2. The reporter renders "Progress: [bar] NN.NN%" to its sink: in place
#      (carriage return) on a TTY, one line per report otherwise.
#   3. Registered listeners receive (completed, total, percent).  A wrapper
#      that reads the console stream instead can turn lines back into
#      events with parse_progress_line().
#
# Listener errors are caught and logged so one broken listener cannot
# stall the run.  Both sync and async callbacks are supported.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import re
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import TextIO

import structlog

from jobsdb_scraper.utils.logging import get_logger

_FILL = "█"
_EMPTY = "-"

_PERCENT_RE = re.compile(r"(\d{1,3}(?:\.\d+)?)\s*%")
_PAGE_OF_RE = re.compile(r"page\s*(?:[:#])?\s*(\d+)\s*(?:of|/)\s*(\d+)", re.IGNORECASE)
_FRACTION_RE = re.compile(r"(\d+)\s*/\s*(\d+)")


def progress_fraction(completed: int, total: int) -> float:
    """Completed share in ``[0, 1]``; an empty total counts as complete."""
    if total <= 0:
        return 1.0
    return max(0.0, min(completed / total, 1.0))


def render_progress_bar(completed: int, total: int, bar_length: int = 40) -> str:
    """Return ``"Progress: [████----] NN.NN%"`` for *completed* of *total*."""
    progress = progress_fraction(completed, total)
    filled = round(progress * bar_length)
    bar = _FILL * filled + _EMPTY * (bar_length - filled)
    return f"Progress: [{bar}] {progress * 100:.2f}%"


@dataclass(frozen=True)
class ProgressEvent:
    """A console line classified for a progress consumer."""

    kind: str  # "progress" or "log"
    text: str
    percent: int | None = None


def parse_progress_line(text: str) -> ProgressEvent:
    """Turn one console line into a progress or log event.

    ``NN%`` wins; otherwise ``page X of Y`` / ``X/Y`` is converted to a
    percentage; anything else is a plain log line.
    """
    match = _PERCENT_RE.search(text)
    if match:
        percent = max(0, min(100, round(float(match.group(1)))))
        return ProgressEvent(kind="progress", text=text, percent=percent)

    match = _PAGE_OF_RE.search(text) or _FRACTION_RE.search(text)
    if match:
        current, total = int(match.group(1)), int(match.group(2))
        if total > 0:
            percent = max(0, min(100, round(current / total * 100)))
            return ProgressEvent(kind="progress", text=text, percent=percent)

    return ProgressEvent(kind="log", text=text)


class ProgressReporter:
    """Writes the textual progress bar and notifies listeners.

    Parameters
    ----------
    sink:
        Console-like stream; defaults to ``sys.stdout``.
    bar_length:
        Width of the bar in characters.
    """

    def __init__(self, sink: TextIO | None = None, bar_length: int = 40) -> None:
        self._sink = sink if sink is not None else sys.stdout
        self._bar_length = bar_length
        self._listeners: list[Callable] = []
        self._last: tuple[int, int] | None = None
        self._finished = False
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def last_report(self) -> tuple[int, int] | None:
        return self._last

    def register_listener(self, callback: Callable) -> None:
        """Register a sync or async ``callback(completed, total, percent)``."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unregister_listener(self, callback: Callable) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def message(self, text: str) -> None:
        """Write a plain line to the sink."""
        if self._is_tty() and self._last is not None and not self._finished:
            self._sink.write("\n")
        self._sink.write(f"{text}\n")
        self._sink.flush()

    async def report(self, completed: int, total: int) -> None:
        """Render one progress update and notify listeners."""
        self._last = (completed, total)
        line = render_progress_bar(completed, total, self._bar_length)
        done = progress_fraction(completed, total) >= 1.0

        if self._is_tty():
            self._sink.write(f"\r\x1b[2K{line}")
            if done and not self._finished:
                self._sink.write("\n")
        else:
            self._sink.write(f"{line}\n")
        self._sink.flush()
        self._finished = done

        await self._notify_listeners(completed, total, progress_fraction(completed, total) * 100)

    def _is_tty(self) -> bool:
        isatty = getattr(self._sink, "isatty", None)
        return bool(isatty and isatty())

    async def _notify_listeners(self, completed: int, total: int, percent: float) -> None:
        for callback in list(self._listeners):
            try:
                result = callback(completed, total, percent)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "progress_listener_error",
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
