"""Scraper settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from two sources, in priority
# order:
#
#   1. **Environment variables**, e.g. LOG_ENABLED=true
#   2. **.env file**: key=value lines in the working directory
#
# Field ``log_enabled`` maps to env var ``LOG_ENABLED`` and so on.
# Defaults below apply when neither source sets a value.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """jobsdb-scraper settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Logging ===
    # LOG_ENABLED=true keeps temp directories for post-mortem inspection and
    # writes structured logs to log_dir.
    log_enabled: bool = False
    log_dir: str = "./jobsdb_scrape_logs"
    log_level: str = "INFO"
    app_env: str = "development"

    # === Results ===
    results_dir: str = "./jobsdb_scrape_results"

    # === Worker pool ===
    max_workers: int = Field(default=2, ge=1)
    split_threshold: int = Field(default=10, ge=1)  # page counts above this use >1 worker
    node_host: str = "127.0.0.1"
    port_timeout: float = 60.0  # seconds to wait for a worker to announce its port
    shutdown_timeout: float = 10.0

    # === Scraping ===
    search_upper_bound: int = Field(default=1000, ge=1)
    page_timeout: float = 60.0  # browser navigation, per page on the node
    request_timeout: float = 90.0  # coordinator wait for one node response, above page_timeout
    progress_interval: float = 1.0
