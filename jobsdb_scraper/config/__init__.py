"""Configuration module: exports Settings and a module-level singleton."""

from jobsdb_scraper.config.settings import Settings

settings = Settings()

__all__ = ["Settings", "settings"]
