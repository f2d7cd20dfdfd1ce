"""jobsdb-scraper: multi-worker JobsDB listing scraper."""

__version__ = "0.1.0"
