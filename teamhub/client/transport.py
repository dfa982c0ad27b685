"""
httpx transport that routes every request through a CacheWorker.

    storage = CacheStorage()
    transport = OfflineCacheTransport(storage=storage, base_url="http://localhost:3001")
    async with httpx.AsyncClient(transport=transport, base_url="http://localhost:3001") as client:
        await transport.worker.install()
        await transport.worker.activate()
        response = await client.get("/api/events")
"""

import logging
from typing import Optional

import httpx

from teamhub.client.storage import CacheStorage
from teamhub.client.worker import CacheWorker, WorkerHost
from teamhub.utils.constants import CACHE_NAME

logger = logging.getLogger(__name__)


class OfflineCacheTransport(httpx.AsyncBaseTransport):
    """
    Args:
        network: Transport used for real network access (default: httpx.AsyncHTTPTransport)
        storage: Cache buckets shared with the worker
        host: Worker environment hooks
        cache_name: Current cache bucket name
        base_url: Origin the worker's shell assets resolve against
    """

    def __init__(
        self,
        network: Optional[httpx.AsyncBaseTransport] = None,
        storage: Optional[CacheStorage] = None,
        host: Optional[WorkerHost] = None,
        cache_name: str = CACHE_NAME,
        base_url: str = "http://localhost:3001/",
    ):
        self.network = network or httpx.AsyncHTTPTransport()
        self.storage = storage or CacheStorage()
        self.worker = CacheWorker(
            storage=self.storage,
            fetch=self._fetch,
            host=host,
            cache_name=cache_name,
            scope=base_url,
        )

    async def _fetch(self, request: httpx.Request) -> httpx.Response:
        response = await self.network.handle_async_request(request)
        # Responses are cached as copies, so the body must be read up front
        try:
            await response.aread()
        finally:
            await response.aclose()
        return response

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self.worker.handle_fetch(request)

    async def aclose(self) -> None:
        await self.network.aclose()
