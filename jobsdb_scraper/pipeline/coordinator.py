"""Root coordinator for one multi-worker scrape run.

ARCHITECTURE NOTE:
    One :class:`ScrapeCoordinator` instance owns everything a run creates:
    the private temp directory, one :class:`TempFile` per worker plus the
    merged file, the worker handles, and the scrape operations.  Nothing
    lives in module globals, so independent runs can share a process.

    Phases (``CoordinatorPhase``):

        PARTITIONING      split [1, num_pages] into one range per worker
        SPAWNING_WORKERS  start worker nodes one after another
        AWAITING_PORTS    read each worker's port, worker 0 first
        SCRAPING          run all operations as tasks; poll progress
        MERGING           always runs (success or failure): concatenate
                          worker files into one JSON array, stop workers
        DONE / FAILED     terminal

    The merged array is only moved to its final name
    ``jobsdb-<region>-<num_pages>-<timestamp>.json`` when no error occurred
    anywhere in the run.  Otherwise the partial merge stays in the temp
    directory, which is kept for inspection only when logging is enabled.
"""

from __future__ import annotations

import asyncio
import tempfile
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import structlog

from jobsdb_scraper.config.settings import Settings
from jobsdb_scraper.models.scrape import CoordinatorPhase, PageRange, ScrapeRunResult
from jobsdb_scraper.pipeline.progress import ProgressReporter
from jobsdb_scraper.pipeline.scrape_operation import ScrapeOperation
from jobsdb_scraper.pipeline.worker_supervisor import WorkerHandle, WorkerSupervisor
from jobsdb_scraper.services.urls import get_base_url
from jobsdb_scraper.utils.errors import JobsDBScraperError, MergeFailure
from jobsdb_scraper.utils.file_io import clean_dir
from jobsdb_scraper.utils.logging import get_logger
from jobsdb_scraper.utils.temp_file import TempFile

OperationFactory = Callable[[PageRange, int, TempFile, str, "str | None", int], ScrapeOperation]

WRITE_PERMISSION_MESSAGE = "The specified result directory does not have write permissions."


def partition_pages(
    num_pages: int, max_workers: int = 2, split_threshold: int = 10
) -> list[PageRange]:
    """Split ``[1, num_pages]`` into contiguous ranges, one per worker.

    Up to *split_threshold* pages use a single worker.  Above it, the pages
    are spread over ``min(max_workers, num_pages)`` workers; every range
    but the last gets ``num_pages // workers`` pages and the last takes the
    remainder, so with two workers the split is ``[1, n//2]`` and
    ``[n//2 + 1, n]``.
    """
    if num_pages < 1:
        raise ValueError(f"num_pages must be >= 1, got {num_pages}")
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")

    if num_pages <= split_threshold:
        return [PageRange(start=1, end=num_pages)]

    workers = min(max_workers, num_pages)
    size = num_pages // workers
    ranges: list[PageRange] = []
    start = 1
    for index in range(workers):
        end = num_pages if index == workers - 1 else start + size - 1
        ranges.append(PageRange(start=start, end=end))
        start = end + 1
    return ranges


def result_file_name(region: str, num_pages: int, now: datetime) -> str:
    """``jobsdb-<region>-<num_pages>-YYYY-MM-DD-HH_MM_SS.mmm.json``."""
    stamp = f"{now:%Y-%m-%d-%H_%M_%S}.{now.microsecond // 1000:03d}"
    return f"jobsdb-{region}-{num_pages}-{stamp}.json"


class ScrapeCoordinator:
    """Drives workers and scrape operations for one run at a time.

    Parameters
    ----------
    settings:
        Worker pool, timing and logging configuration.
    supervisor:
        Spawns and stops worker nodes.  Defaults to a
        :class:`WorkerSupervisor` using ``settings.port_timeout``.
    operation_factory:
        ``(page_range, port, output_file, region, keywords, worker_index)
        -> ScrapeOperation``.  Tests inject operations backed by fake
        browser sessions here.
    progress:
        Console sink for progress and status lines.
    clock / now:
        Monotonic clock for elapsed time, wall clock for the file name.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        supervisor: WorkerSupervisor | None = None,
        operation_factory: OperationFactory | None = None,
        progress: ProgressReporter | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings or Settings()
        self._supervisor = supervisor or WorkerSupervisor(port_timeout=self._settings.port_timeout)
        self._operation_factory = operation_factory or self._default_operation
        self._progress = progress or ProgressReporter()
        self._clock = clock
        self._now = now
        self._logger: structlog.BoundLogger = get_logger(__name__)

        self.phase = CoordinatorPhase.IDLE
        self.phase_history: list[CoordinatorPhase] = []
        self._reset()

    # ------------------------------------------------------------------
    # Run state
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self.page_ranges: list[PageRange] = []
        self.handles: list[WorkerHandle] = []
        self.operations: list[ScrapeOperation] = []
        self.output_files: list[TempFile] = []
        self.merged_file: TempFile | None = None
        self.temp_dir: Path | None = None
        self._tasks: list[asyncio.Task] = []
        self.errors: list[BaseException] = []

    def _set_phase(self, phase: CoordinatorPhase) -> None:
        self.phase = phase
        self.phase_history.append(phase)
        self._logger.info("coordinator_phase", phase=phase.value)

    @property
    def pages_scraped(self) -> int:
        """Pages scraped so far across all operations (eventually consistent)."""
        return sum(op.pages_scraped for op in self.operations)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(
        self,
        region: str,
        num_pages: int,
        max_pages: int,
        save_dir: str | Path,
        keywords: str | None = None,
    ) -> ScrapeRunResult:
        """Scrape *num_pages* pages of *region* into one JSON array file.

        Returns
        -------
        ScrapeRunResult
            Carries the absolute path of the result file.

        Raises
        ------
        JobsDBScraperError
            Any failure during the run.  The first recorded error is raised;
            no result file is produced.
        asyncio.CancelledError
            Re-raised after workers are stopped and ``phase`` is FAILED.
        """
        self._reset()
        self.phase_history = []
        started = self._clock()
        self.temp_dir = Path(tempfile.mkdtemp(prefix="jobsdb-scrape-"))
        self.merged_file = TempFile.create(self.temp_dir, prefix="merged-", suffix=".json")
        scraped_all = False
        result_path: Path | None = None

        try:
            await self._execute(region, num_pages, max_pages, keywords)
            scraped_all = not self.errors
        except Exception as exc:
            self._record_error(exc)
        finally:
            try:
                merged_ok = await self._merge_and_shutdown()
                if scraped_all and merged_ok:
                    result_path = await self._place_result(region, num_pages, save_dir)
            finally:
                await self._reap_workers()
                self._cleanup_temp_dir()
                if result_path is None:
                    self._set_phase(CoordinatorPhase.FAILED)

        if result_path is None:
            raise self._run_error()

        elapsed = self._clock() - started
        self._set_phase(CoordinatorPhase.DONE)
        self._progress.message(f"Result file saved to {result_path} in json format.")
        self._progress.message(f"Scrape finished in {int(elapsed)} seconds")
        self._logger.info("scrape_run_done", path=str(result_path), elapsed=round(elapsed, 2))
        return ScrapeRunResult(
            result_path=result_path,
            region=region,
            num_pages=num_pages,
            worker_count=len(self.page_ranges),
            elapsed_seconds=elapsed,
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _execute(
        self, region: str, num_pages: int, max_pages: int, keywords: str | None
    ) -> None:
        settings = self._settings

        self._set_phase(CoordinatorPhase.PARTITIONING)
        self.page_ranges = partition_pages(num_pages, settings.max_workers, settings.split_threshold)
        self.output_files = [
            TempFile.create(self.temp_dir, prefix=f"worker-{i}-", suffix=".json")
            for i in range(len(self.page_ranges))
        ]

        self._set_phase(CoordinatorPhase.SPAWNING_WORKERS)
        for index in range(len(self.page_ranges)):
            self._logger.info("worker_starting", index=index)
            self.handles.append(await self._supervisor.spawn(index, settings.log_enabled))

        # Sequential on purpose: worker 1's port is read after worker 0's.
        self._set_phase(CoordinatorPhase.AWAITING_PORTS)
        for handle in self.handles:
            await self._supervisor.wait_for_port(handle)

        self._set_phase(CoordinatorPhase.SCRAPING)
        for index, (page_range, handle) in enumerate(zip(self.page_ranges, self.handles)):
            if not handle.is_ready:
                raise JobsDBScraperError(message="Worker has no port", worker_index=index)
            operation = self._operation_factory(
                page_range, handle.port, self.output_files[index], region, keywords, index
            )
            self.operations.append(operation)
            self._logger.info("scrape_operation_initialized", index=index, pages=str(page_range))

        self._progress.message(
            f"Scraping {num_pages}/{max_pages} available pages of jobs on {get_base_url(region)}."
        )
        self._tasks = [
            asyncio.create_task(op.run(), name=f"scrape-op-{i}")
            for i, op in enumerate(self.operations)
        ]
        await self._poll_progress(num_pages)

        for task in self._tasks:
            exc = task.exception()
            if exc is not None:
                self._record_error(exc)
        self._logger.info("scrape_operations_settled", pages_scraped=self.pages_scraped)

    async def _poll_progress(self, total: int) -> None:
        """Report progress every interval until every operation has settled."""
        while True:
            await self._progress.report(self.pages_scraped, total)
            if all(task.done() for task in self._tasks):
                return
            await asyncio.wait(self._tasks, timeout=self._settings.progress_interval)

    async def _merge_and_shutdown(self) -> bool:
        """Build the merged JSON array and stop every worker.

        Returns ``True`` when the merged file is complete and well formed.
        """
        self._set_phase(CoordinatorPhase.MERGING)
        for task in self._tasks:
            if not task.done():
                task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        merged = self.merged_file
        ok = await merged.append("[\n")
        merged_bytes = 0

        for index, output in enumerate(self.output_files):
            try:
                merged_bytes += await merged.append_from(output.path)
            except (OSError, JobsDBScraperError) as exc:
                ok = False
                self._logger.error("merge_worker_output_failed", index=index, error=str(exc))
            if index < len(self.handles):
                self._supervisor.shutdown(self.handles[index])

        for handle in self.handles[len(self.output_files):]:
            self._supervisor.shutdown(handle)

        try:
            if merged_bytes:
                await merged.pop_last_line()
                ok = await merged.append("}\n]") and ok
            else:
                ok = await merged.append("]") and ok
        except (OSError, JobsDBScraperError) as exc:
            ok = False
            self._record_error(MergeFailure(message=f"Could not close the merged array: {exc}"))

        if not ok:
            self._logger.error("merged_file_incomplete", file=repr(merged))
        return ok

    async def _place_result(self, region: str, num_pages: int, save_dir: str | Path) -> Path | None:
        destination = Path(save_dir).resolve() / result_file_name(region, num_pages, self._now())
        try:
            return await self.merged_file.rename_or_copy(destination)
        except PermissionError as exc:
            self._record_error(MergeFailure(message=WRITE_PERMISSION_MESSAGE))
            self._logger.error("result_placement_denied", destination=str(destination), error=str(exc))
        except (OSError, JobsDBScraperError) as exc:
            self._record_error(MergeFailure(message=f"Could not write {destination}: {exc}"))
        return None

    async def _reap_workers(self) -> None:
        for handle in self.handles:
            code = await self._supervisor.wait_closed(handle, self._settings.shutdown_timeout)
            self._logger.info("worker_stopped", index=handle.index, returncode=code)

    def _cleanup_temp_dir(self) -> None:
        if self.temp_dir is None:
            return
        if self._settings.log_enabled:
            self._logger.info("temp_dir_preserved", path=str(self.temp_dir))
            return
        clean_dir(self.temp_dir)

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def _record_error(self, exc: BaseException) -> None:
        self.errors.append(exc)
        if isinstance(exc, PermissionError):
            self._logger.error("scrape_run_error", error=WRITE_PERMISSION_MESSAGE)
        else:
            self._logger.error("scrape_run_error", error=str(exc), error_type=type(exc).__name__)

    def _run_error(self) -> JobsDBScraperError:
        if not self.errors:
            return JobsDBScraperError(message="Scrape did not produce a result file")
        first = self.errors[0]
        if isinstance(first, JobsDBScraperError):
            return first
        if isinstance(first, PermissionError):
            return JobsDBScraperError(message=WRITE_PERMISSION_MESSAGE)
        return JobsDBScraperError(message=str(first) or type(first).__name__)

    def _default_operation(
        self,
        page_range: PageRange,
        port: int,
        output_file: TempFile,
        region: str,
        keywords: str | None,
        worker_index: int,
    ) -> ScrapeOperation:
        return ScrapeOperation(
            page_range=page_range,
            port=port,
            output_file=output_file,
            region=region,
            keywords=keywords,
            worker_index=worker_index,
            host=self._settings.node_host,
            timeout=self._settings.request_timeout,
        )
