"""Scrape pipeline: worker supervision, per-worker operations, merge and progress."""

from jobsdb_scraper.pipeline.coordinator import ScrapeCoordinator, partition_pages, result_file_name
from jobsdb_scraper.pipeline.progress import ProgressReporter, render_progress_bar
from jobsdb_scraper.pipeline.scrape_operation import ScrapeOperation
from jobsdb_scraper.pipeline.worker_supervisor import WorkerHandle, WorkerSupervisor

__all__ = [
    "ProgressReporter",
    "ScrapeCoordinator",
    "ScrapeOperation",
    "WorkerHandle",
    "WorkerSupervisor",
    "partition_pages",
    "render_progress_bar",
    "result_file_name",
]
