"""Starts and stops worker node processes.

Each worker is an independent OS process running one headless browser
behind a local HTTP port (see :mod:`jobsdb_scraper.node`).  The
supervisor keeps no handle list; callers hold the handles that
:meth:`WorkerSupervisor.spawn` returns.

# ─── PORT DISCOVERY ───────────────────────────────────────────────────
#
# A worker announces its port exactly once, as the first line on stdout.
# wait_for_port() reads stdout line by line, skips anything that is not a
# positive integer, and stops at the first one.  It never reads further
# output after that.  EOF (the worker died), a line longer than the
# stream buffer, or the timeout raises PortDiscoveryFailure instead of
# hanging the run.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass, field

import structlog

from jobsdb_scraper.utils.errors import PortDiscoveryFailure, WorkerShutdownFailure
from jobsdb_scraper.utils.logging import get_logger

NODE_MODULE = "jobsdb_scraper.node"


@dataclass
class WorkerHandle:
    """A spawned worker process and, once read, the port it listens on."""

    index: int
    process: asyncio.subprocess.Process
    port: int | None = None
    shutdown_errors: list[WorkerShutdownFailure] = field(default_factory=list)

    @property
    def is_ready(self) -> bool:
        """``True`` once the port is known; only then may work be sent."""
        return self.port is not None

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> int | None:
        return self.process.returncode


def parse_port(line: bytes | str) -> int | None:
    """Return the positive integer on *line*, or ``None``."""
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    text = line.strip()
    if not text.isdigit():
        return None
    port = int(text)
    return port if 0 < port < 65536 else None


class WorkerSupervisor:
    """Spawns worker nodes and shuts them down again.

    Parameters
    ----------
    python:
        Interpreter used to run the node module.  Defaults to the current one.
    port_timeout:
        Seconds :meth:`wait_for_port` waits before giving up.
    """

    def __init__(self, python: str | None = None, port_timeout: float = 60.0) -> None:
        self._python = python or sys.executable
        self._port_timeout = port_timeout
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def node_command(self, index: int, logging_enabled: bool) -> list[str]:
        return [self._python, "-m", NODE_MODULE, str(index), "true" if logging_enabled else "false"]

    async def spawn(self, index: int, logging_enabled: bool = False) -> WorkerHandle:
        """Start worker *index* and return its (not yet ready) handle."""
        process = await asyncio.create_subprocess_exec(
            *self.node_command(index, logging_enabled),
            stdout=asyncio.subprocess.PIPE,
        )
        handle = WorkerHandle(index=index, process=process)
        self._logger.info("worker_spawned", index=index, pid=process.pid)
        return handle

    async def wait_for_port(self, handle: WorkerHandle, timeout: float | None = None) -> int:
        """Block until *handle*'s worker announces its port.

        Raises
        ------
        PortDiscoveryFailure
            The worker exited, closed stdout, or stayed silent past *timeout*.
        """
        if handle.port is not None:
            return handle.port

        stdout = handle.process.stdout
        if stdout is None:
            raise PortDiscoveryFailure(message="Worker stdout is not piped", worker_index=handle.index)

        limit = self._port_timeout if timeout is None else timeout
        try:
            port = await asyncio.wait_for(self._read_port(stdout), timeout=limit)
        except asyncio.TimeoutError as exc:
            raise PortDiscoveryFailure(
                message=f"No port announced within {limit:g}s", worker_index=handle.index
            ) from exc
        except ValueError as exc:
            # readline() overran the stream buffer without seeing a newline.
            raise PortDiscoveryFailure(
                message=f"Unreadable worker output: {exc}", worker_index=handle.index
            ) from exc

        if port is None:
            raise PortDiscoveryFailure(
                message=f"Worker exited before announcing a port (exit code {handle.process.returncode})",
                worker_index=handle.index,
            )

        handle.port = port
        self._logger.info("worker_port_read", index=handle.index, port=port)
        return port

    def shutdown(self, handle: WorkerHandle) -> bool:
        """Send SIGTERM to *handle*'s process.

        Failure is logged and recorded on the handle, never raised, so
        cleanup can continue with the other workers.
        """
        if handle.process.returncode is not None:
            return True
        self._logger.info("worker_shutting_down", index=handle.index, port=handle.port)
        try:
            handle.process.terminate()
        except (ProcessLookupError, OSError) as exc:
            failure = WorkerShutdownFailure(
                message=f"Could not terminate worker: {exc}", worker_index=handle.index
            )
            handle.shutdown_errors.append(failure)
            self._logger.error("worker_shutdown_failed", index=handle.index, error=str(failure))
            return False
        return True

    async def wait_closed(self, handle: WorkerHandle, timeout: float = 10.0) -> int | None:
        """Reap *handle*'s process, killing it if it outlives *timeout*."""
        try:
            return await asyncio.wait_for(handle.process.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            self._logger.warning("worker_kill", index=handle.index, timeout=timeout)
            try:
                handle.process.kill()
            except ProcessLookupError:
                return handle.process.returncode
            return await handle.process.wait()

    @staticmethod
    async def _read_port(stdout: asyncio.StreamReader) -> int | None:
        while True:
            line = await stdout.readline()
            if not line:
                return None
            port = parse_port(line)
            if port is not None:
                return port
