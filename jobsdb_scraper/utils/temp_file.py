"""Lock-protected append-only temp file used for worker output and merging.

Every mutating operation (append, pop-last-line, rename, copy) holds the
instance's :class:`asyncio.Lock` for its full duration, so concurrent
coroutines sharing one :class:`TempFile` never interleave partial writes.

# ─── HOW THE MERGED RESULT IS BUILT ───────────────────────────────────
#
#   merged.append("[\n")
#   for each worker file:      merged.append_from(worker.path)
#   merged.pop_last_line()     # drops the dangling "}," of the last object
#   merged.append("}\n]")      # re-closes that object and the array
#   merged.rename_or_copy(final_path)
#
# Worker files hold pretty-printed JSON objects each followed by ",\n",
# so the last line of the merged file is always "},".
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
from pathlib import Path

import structlog

from jobsdb_scraper.utils.errors import TempFileNotCreated
from jobsdb_scraper.utils.file_io import append_file_content, are_paths_on_different_devices

logger = structlog.get_logger(logger_name=__name__)


class TempFile:
    """A filesystem path guarded by an asyncio mutex.

    Parameters
    ----------
    path:
        Location of the backing file.  The file must exist before any
        operation runs; use :meth:`create` to make one.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @classmethod
    def create(cls, directory: str | Path, prefix: str = "tmp-", suffix: str = "") -> TempFile:
        """Create an empty file inside *directory* and wrap it."""
        fd, name = tempfile.mkstemp(dir=directory, prefix=prefix, suffix=suffix)
        os.close(fd)
        return cls(name)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        """Current location of the file; raises if it does not exist."""
        self._ensure_exists()
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    # ------------------------------------------------------------------
    # Locked operations
    # ------------------------------------------------------------------

    async def append(self, content: str) -> bool:
        """Append *content* as UTF-8 text.

        Filesystem errors (including a missing backing file) are logged and
        swallowed so that one failed write does not abort a merge.

        Returns
        -------
        bool
            ``True`` when the content was written.
        """
        async with self._lock:
            try:
                self._ensure_exists()
                with open(self._path, "a", encoding="utf-8") as fh:
                    fh.write(content)
                return True
            except (OSError, TempFileNotCreated) as exc:
                logger.error("temp_file_append_failed", path=str(self._path), error=str(exc))
                return False

    async def append_from(self, source: str | Path) -> int:
        """Append the full contents of *source*; return the bytes written.

        Unlike :meth:`append`, errors propagate: the merge step needs to know
        when a worker's output did not make it in.
        """
        async with self._lock:
            self._ensure_exists()
            return append_file_content(source, self._path)

    async def pop_last_line(self) -> str | None:
        """Remove the last line of the file and return it, trimmed.

        Scans backward from end-of-file one byte at a time.  Newlines at the
        very end belong to the popped line; the newline that precedes it is
        kept, so the rest of the file is left byte-identical.

        Returns ``None`` on an empty file.
        """
        async with self._lock:
            self._ensure_exists()
            with open(self._path, "r+b") as fh:
                fh.seek(0, os.SEEK_END)
                size = fh.tell()
                if size == 0:
                    return None

                position = size - 1
                collected = bytearray()
                while position >= 0:
                    fh.seek(position)
                    char = fh.read(1)
                    if char == b"\n" and collected:
                        break
                    collected += char
                    position -= 1

                fh.truncate(position + 1)

            collected.reverse()
            return collected.decode("utf-8", errors="replace").strip()

    async def rename_or_copy(self, destination: str | Path) -> Path:
        """Move the file to *destination*, copying when devices differ.

        Creates the destination's parent directory if needed.  A rename
        across devices is impossible, so in that case the file is copied and
        the source is left in place.  Errors propagate.

        Returns
        -------
        Path
            The new location, which also becomes :attr:`path`.
        """
        destination = Path(destination)
        async with self._lock:
            self._ensure_exists()
            destination.parent.mkdir(parents=True, exist_ok=True)
            if are_paths_on_different_devices(self._path.resolve(), destination.parent.resolve()):
                self._copy_unlocked(destination)
                logger.debug("temp_file_copied", source=str(self._path), destination=str(destination))
            else:
                os.replace(self._path, destination)
                logger.debug("temp_file_renamed", source=str(self._path), destination=str(destination))
            self._path = destination
            return destination

    async def copy(self, destination: str | Path) -> Path:
        """Copy the file to *destination* while holding the lock."""
        async with self._lock:
            return self._copy_unlocked(Path(destination))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _copy_unlocked(self, destination: Path) -> Path:
        """Copy without taking the lock; the caller must already hold it."""
        self._ensure_exists()
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(self._path, destination)
        return destination

    def _ensure_exists(self) -> None:
        if not self._path.exists():
            raise TempFileNotCreated()

    def __repr__(self) -> str:
        return f"TempFile({str(self._path)!r})"
