"""HTTP client for a worker node's browser-automation API.

A worker node (``python -m jobsdb_scraper.node``) serves its Chromium
session on a local port.  :class:`WorkerClient` implements
:class:`IBrowserSession` on top of that port so scrape operations never need
to know whether the browser runs in-process or in another process.
"""

from __future__ import annotations

import httpx
import structlog

from jobsdb_scraper.interfaces.browser_session import IBrowserSession
from jobsdb_scraper.models.job import PageResult
from jobsdb_scraper.utils.errors import ProbeFailure, ScrapeStepFailure

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 90.0


class WorkerClient(IBrowserSession):
    """Browser session backed by a worker node listening on *port*.

    Parameters
    ----------
    port:
        The port the worker announced on its stdout.
    host:
        Interface the worker listens on.
    timeout:
        Per-request timeout in seconds; one request covers one page load.
    http_client:
        Injected ``httpx.AsyncClient`` for testability.  When omitted the
        client is created here and closed by :meth:`close`.
    worker_index:
        Index of the worker, attached to raised errors.
    """

    def __init__(
        self,
        port: int,
        host: str = "127.0.0.1",
        timeout: float = _DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
        worker_index: int | None = None,
    ) -> None:
        self._port = port
        self._worker_index = worker_index
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=f"http://{host}:{port}",
            timeout=httpx.Timeout(timeout),
        )

    @property
    def port(self) -> int:
        return self._port

    # ------------------------------------------------------------------
    # IBrowserSession implementation
    # ------------------------------------------------------------------

    async def is_zero_results(self, page: int, region: str) -> bool | None:
        try:
            response = await self._client.get(
                f"/pages/{page}/zero-results", params={"region": region}
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProbeFailure(
                message=f"Zero-results check for page {page} failed: {exc}",
                worker_index=self._worker_index,
            ) from exc
        return response.json().get("zero_results")

    async def scrape_page(
        self, page: int, region: str, keywords: list[str] | None = None
    ) -> PageResult:
        params = {"region": region}
        if keywords:
            params["keywords"] = ",".join(keywords)

        try:
            response = await self._client.get(f"/pages/{page}", params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = _error_detail(exc.response)
            raise ScrapeStepFailure(
                message=f"Page {page}: HTTP {exc.response.status_code} {detail}".rstrip(),
                worker_index=self._worker_index,
                page=page,
            ) from exc
        except httpx.HTTPError as exc:
            raise ScrapeStepFailure(
                message=f"Page {page}: {type(exc).__name__} {exc}".rstrip(),
                worker_index=self._worker_index,
                page=page,
            ) from exc

        return PageResult.model_validate(response.json())

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def get_provider_name(self) -> str:
        return f"worker:{self._port}"

    async def health(self) -> bool:
        """Return ``True`` when the worker answers its health endpoint."""
        try:
            response = await self._client.get("/health")
            return response.status_code == 200
        except httpx.HTTPError:
            logger.debug("worker_health_unreachable", port=self._port)
            return False


def _error_detail(response: httpx.Response) -> str:
    try:
        return str(response.json().get("detail", ""))
    except ValueError:
        return response.text[:200]
