"""File system helpers for temp-file handling and result merging.

Covers the three operations the merge step needs outside of
:class:`~jobsdb_scraper.utils.temp_file.TempFile` itself: detecting
cross-device paths, streaming one file onto the end of another, and
removing a working directory wholesale.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

import structlog

logger = structlog.get_logger(logger_name=__name__)

_COPY_CHUNK_SIZE = 64 * 1024


def are_paths_on_different_devices(path1: str | Path, path2: str | Path) -> bool:
    """Return ``True`` when *path1* and *path2* live on different devices.

    Both paths must exist; ``os.stat`` errors propagate.
    """
    return os.stat(path1).st_dev != os.stat(path2).st_dev


def append_file_content(input_file: str | Path, output_file: str | Path) -> int:
    """Append the bytes of *input_file* to *output_file*.

    Creates *output_file* when it does not exist.  The copy is streamed in
    chunks so large worker outputs never sit in memory at once.

    Returns
    -------
    int
        Number of bytes appended.
    """
    written = 0
    with open(input_file, "rb") as src, open(output_file, "ab") as dst:
        while True:
            chunk = src.read(_COPY_CHUNK_SIZE)
            if not chunk:
                break
            dst.write(chunk)
            written += len(chunk)
    return written


def clean_dir(path: str | Path) -> None:
    """Remove *path* and everything under it, if it exists.

    Errors are logged and swallowed: directory cleanup runs on exit paths
    that must not raise.
    """
    target = Path(path)
    if not target.exists():
        return
    try:
        shutil.rmtree(target)
    except OSError as exc:
        logger.error("clean_dir_failed", path=str(target), error=str(exc))
