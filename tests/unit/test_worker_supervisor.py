"""Unit tests for WorkerSupervisor: spawning, port discovery and shutdown."""

from __future__ import annotations

import asyncio
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from jobsdb_scraper.pipeline.worker_supervisor import (
    NODE_MODULE,
    WorkerHandle,
    WorkerSupervisor,
    parse_port,
)
from jobsdb_scraper.utils.errors import PortDiscoveryFailure


def _process_with_stdout(data: bytes, eof: bool = True) -> MagicMock:
    """A fake subprocess whose stdout yields *data*."""
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    if eof:
        reader.feed_eof()
    process = MagicMock()
    process.stdout = reader
    process.pid = 4242
    process.returncode = None
    return process


# ======================================================================
# parse_port
# ======================================================================


class TestParsePort:
    @pytest.mark.parametrize(
        ("line", "expected"),
        [
            (b"54321\n", 54321),
            ("  8080  \n", 8080),
            (b"1", 1),
            (b"65535", 65535),
            (b"0", None),
            (b"65536", None),
            (b"-12", None),
            (b"listening on 8080", None),
            (b"", None),
            (b"\xff\xfe", None),
        ],
    )
    def test_parse_port(self, line: bytes | str, expected: int | None) -> None:
        assert parse_port(line) == expected


# ======================================================================
# Spawning
# ======================================================================


class TestSpawn:
    def test_node_command(self) -> None:
        supervisor = WorkerSupervisor(python="/usr/bin/python3")
        assert supervisor.node_command(1, True) == ["/usr/bin/python3", "-m", NODE_MODULE, "1", "true"]
        assert supervisor.node_command(0, False)[-1] == "false"

    def test_defaults_to_current_interpreter(self) -> None:
        assert WorkerSupervisor().node_command(0, False)[0] == sys.executable

    @pytest.mark.asyncio
    async def test_spawn_pipes_stdout(self) -> None:
        process = MagicMock(pid=777)
        create = AsyncMock(return_value=process)
        supervisor = WorkerSupervisor(python="py")

        with patch("asyncio.create_subprocess_exec", create):
            handle = await supervisor.spawn(1, logging_enabled=True)

        args, kwargs = create.call_args
        assert list(args) == ["py", "-m", NODE_MODULE, "1", "true"]
        assert kwargs["stdout"] == asyncio.subprocess.PIPE
        assert handle.index == 1
        assert handle.pid == 777
        assert handle.is_ready is False


# ======================================================================
# Port discovery
# ======================================================================


class TestWaitForPort:
    @pytest.mark.asyncio
    async def test_reads_first_integer_line(self) -> None:
        handle = WorkerHandle(index=0, process=_process_with_stdout(b"booting\n41234\n55555\n"))

        port = await WorkerSupervisor().wait_for_port(handle)

        assert port == 41234
        assert handle.port == 41234
        assert handle.is_ready is True

    @pytest.mark.asyncio
    async def test_reads_only_once(self) -> None:
        handle = WorkerHandle(index=0, process=_process_with_stdout(b"41234\n"))
        supervisor = WorkerSupervisor()

        await supervisor.wait_for_port(handle)
        assert await supervisor.wait_for_port(handle) == 41234

    @pytest.mark.asyncio
    async def test_eof_before_port_raises(self) -> None:
        process = _process_with_stdout(b"Traceback: chromium missing\n")
        process.returncode = 1
        handle = WorkerHandle(index=1, process=process)

        with pytest.raises(PortDiscoveryFailure) as exc_info:
            await WorkerSupervisor().wait_for_port(handle)

        assert exc_info.value.worker_index == 1
        assert "exit code 1" in str(exc_info.value)
        assert handle.is_ready is False

    @pytest.mark.asyncio
    async def test_silence_times_out(self) -> None:
        handle = WorkerHandle(index=0, process=_process_with_stdout(b"", eof=False))

        with pytest.raises(PortDiscoveryFailure, match="No port announced"):
            await WorkerSupervisor().wait_for_port(handle, timeout=0.05)

    @pytest.mark.asyncio
    async def test_unpiped_stdout_raises(self) -> None:
        process = MagicMock()
        process.stdout = None
        with pytest.raises(PortDiscoveryFailure, match="not piped"):
            await WorkerSupervisor().wait_for_port(WorkerHandle(index=0, process=process))

    @pytest.mark.asyncio
    async def test_overlong_line_raises_port_failure(self) -> None:
        reader = asyncio.StreamReader(limit=16)
        reader.feed_data(b"x" * 100)
        process = MagicMock()
        process.stdout = reader
        handle = WorkerHandle(index=1, process=process)

        with pytest.raises(PortDiscoveryFailure, match="Unreadable worker output") as exc_info:
            await WorkerSupervisor().wait_for_port(handle, timeout=1.0)

        assert exc_info.value.worker_index == 1
        assert handle.is_ready is False


# ======================================================================
# Shutdown
# ======================================================================


class TestShutdown:
    def test_shutdown_sends_sigterm(self) -> None:
        process = MagicMock(returncode=None)
        handle = WorkerHandle(index=0, process=process, port=5000)

        assert WorkerSupervisor().shutdown(handle) is True
        process.terminate.assert_called_once()

    def test_shutdown_of_exited_process_is_noop(self) -> None:
        process = MagicMock(returncode=0)

        assert WorkerSupervisor().shutdown(WorkerHandle(index=0, process=process)) is True
        process.terminate.assert_not_called()

    def test_shutdown_failure_is_recorded_not_raised(self) -> None:
        process = MagicMock(returncode=None)
        process.terminate.side_effect = ProcessLookupError("gone")
        handle = WorkerHandle(index=1, process=process)

        assert WorkerSupervisor().shutdown(handle) is False
        assert len(handle.shutdown_errors) == 1
        assert handle.shutdown_errors[0].worker_index == 1

    @pytest.mark.asyncio
    async def test_wait_closed_returns_exit_code(self) -> None:
        process = MagicMock()
        process.wait = AsyncMock(return_value=0)

        assert await WorkerSupervisor().wait_closed(WorkerHandle(index=0, process=process)) == 0
        process.kill.assert_not_called()

    @pytest.mark.asyncio
    async def test_wait_closed_kills_after_timeout(self) -> None:
        killed = asyncio.Event()

        async def wait() -> int:
            await killed.wait()
            return -9

        process = MagicMock()
        process.wait = wait
        process.kill.side_effect = lambda: killed.set()

        code = await WorkerSupervisor().wait_closed(WorkerHandle(index=0, process=process), timeout=0.05)

        assert code == -9
        process.kill.assert_called_once()

