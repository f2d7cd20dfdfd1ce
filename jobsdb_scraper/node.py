"""Worker node process: one headless browser served over a local HTTP port.

Started by :class:`~jobsdb_scraper.pipeline.worker_supervisor.WorkerSupervisor`
as::

    python -m jobsdb_scraper.node <index> <true|false>

Lifecycle:
    1. Launch headless Chromium (Playwright) and open one session.
    2. Bind an ephemeral port on the loopback interface.
    3. Print the port number as the first line on stdout.  The supervisor
       reads exactly that line; nothing else is ever written to stdout.
    4. Serve the FastAPI app with uvicorn until SIGTERM / SIGINT.
    5. Close the browser and exit 0, or 1 if startup or shutdown failed.
"""

from __future__ import annotations

import asyncio
import signal
import socket
import sys
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from jobsdb_scraper.api.routes import router
from jobsdb_scraper.config.settings import Settings
from jobsdb_scraper.interfaces.browser_session import IBrowserSession
from jobsdb_scraper.providers.browser.playwright_session import PlaywrightBrowserCore
from jobsdb_scraper.utils.logging import configure_from_settings, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def create_app(session: IBrowserSession, index: int = 0) -> FastAPI:
    """Build the worker API around an already-open browser session."""
    app = FastAPI(title=f"jobsdb-scraper node {index}", docs_url=None, redoc_url=None)
    app.state.session = session
    app.state.session_lock = asyncio.Lock()
    app.state.index = index
    app.include_router(router)
    return app


def bind_socket(host: str = "127.0.0.1") -> socket.socket:
    """Bind a listening TCP socket on an OS-assigned port."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.bind((host, 0))
    sock.listen(128)
    sock.set_inheritable(True)
    return sock


def announce_port(port: int) -> None:
    """Write the port as the first (and only) stdout line."""
    sys.stdout.write(f"{port}\n")
    sys.stdout.flush()


_stop_requested = False


def _record_signal(signum: int, frame: Any) -> None:
    # uvicorn re-raises captured signals once it has stopped; by then the
    # node is already shutting down, so the signal only needs recording.
    global _stop_requested
    _stop_requested = True
    _logger.info("node_signal_received", signal=signal.Signals(signum).name)


async def run_node(index: int, settings: Settings) -> int:
    """Run one worker node to completion and return its exit status."""
    core = PlaywrightBrowserCore(timeout=settings.page_timeout)
    try:
        await core.start()
        session = await core.new_session()
    except Exception as exc:
        _logger.error("node_start_failed", index=index, error=str(exc))
        await core.close()
        return 1

    sock = bind_socket(settings.node_host)
    port = sock.getsockname()[1]
    _logger.info("node_listening", index=index, port=port)
    announce_port(port)

    config = uvicorn.Config(
        create_app(session, index),
        log_config=None,
        access_log=False,
        lifespan="off",
    )
    server = uvicorn.Server(config)

    exit_code = 0
    try:
        if not _stop_requested:
            await server.serve(sockets=[sock])
    except Exception as exc:
        _logger.error("node_serve_failed", index=index, error=str(exc))
        exit_code = 1
    finally:
        try:
            await session.close()
            await core.close()
            _logger.info("node_shutdown", index=index)
        except Exception as exc:
            _logger.error("node_shutdown_failed", index=index, error=str(exc))
            exit_code = 1
        sock.close()

    return exit_code


def main(argv: list[str] | None = None) -> None:
    """Entry point: ``python -m jobsdb_scraper.node <index> <true|false>``."""
    args = sys.argv[1:] if argv is None else argv
    index = int(args[0]) if args else 0
    enable_logging = len(args) > 1 and args[1].lower() == "true"

    settings = Settings()
    configure_from_settings(enable_logging, f"node-{index}", settings.log_dir, settings.log_level)

    signal.signal(signal.SIGTERM, _record_signal)
    signal.signal(signal.SIGINT, _record_signal)

    sys.exit(asyncio.run(run_node(index, settings)))


if __name__ == "__main__":
    main()
