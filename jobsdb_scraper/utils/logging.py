"""structlog setup shared by the CLI process and every worker node.

One processor chain (context vars, level, ISO timestamp, stack info) ends
in one of two renderers: a ConsoleRenderer while developing, or a
JSONRenderer when ``APP_ENV=production``, when ``json_output`` is passed,
or when writing to a log file.

Nothing is ever logged to stdout.  The coordinator prints progress there
and a worker node prints its port there, so console logs go to stderr.

With ``LOG_ENABLED=true`` each process appends JSON lines to its own file
(see :func:`log_file_path`); otherwise only warnings and errors reach the
console.  Stdlib ``logging`` records from uvicorn and httpx pass through
the same renderer.
"""

import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TextIO

import structlog

_log_stream: TextIO | None = None


def log_file_path(log_dir: str, name: str) -> Path:
    """Return ``<log_dir>/<name>-<timestamp>.log``, creating *log_dir* if needed.

    *name* identifies the process, e.g. ``"client"`` or ``"node-0"``.
    """
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(tz=timezone.utc).isoformat().replace(":", "-").replace(".", "-")
    return directory / f"{name}-{stamp}.log"


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    log_file: Path | None = None,
) -> structlog.BoundLogger:
    """Install the structlog pipeline for this process.

    Args:
        log_level: Minimum level name, e.g. ``"INFO"`` or ``"WARNING"``.
        json_output: Render JSON even outside production.
        log_file: Append JSON lines to this file instead of stderr.  Calling
                  again closes the previously opened file.

    Returns:
        The root structlog logger.
    """
    global _log_stream

    app_env = os.environ.get("APP_ENV", "development")
    use_json = json_output or app_env == "production" or log_file is not None

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    if _log_stream is not None:
        _log_stream.close()
        _log_stream = None

    if log_file is not None:
        _log_stream = open(log_file, "a", encoding="utf-8")  # noqa: SIM115
        stream: TextIO = _log_stream
    else:
        stream = sys.stderr

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )

    # uvicorn and httpx log through stdlib logging.
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=processors,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level.upper())

    return structlog.get_logger()


def configure_from_settings(enable_logging: bool, name: str, log_dir: str, log_level: str = "INFO") -> None:
    """Apply the ``LOG_ENABLED`` toggle for one process.

    Enabled: JSON logs at *log_level* go to a timestamped file named after
    *name*.  Disabled: only warnings and errors reach stderr.
    """
    if enable_logging:
        configure_logging(log_level=log_level, log_file=log_file_path(log_dir, name))
    else:
        configure_logging(log_level="WARNING")


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound to *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
