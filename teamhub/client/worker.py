"""
Offline cache worker.

Intercepts the client's outgoing requests and answers them network-first
(API calls) or cache-first (static assets), with offline fallbacks. Also
handles the worker lifecycle (install/activate), background sync, push
notifications, notification clicks and control messages.

Every handler that awaits cache or network work registers it on its event
with ``wait_until``; the worker settles those extensions before the event
is considered finished, so no cache write outlives its handler.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, List, Optional, Sequence, Union

import httpx

from teamhub.client.policy import CachePolicy, classify_request, is_document_request
from teamhub.client.storage import CacheStorage, Fetch
from teamhub.utils.constants import CACHE_NAME, SHELL_PAGE, SYNC_CONFIRMATIONS_TAG, TEAM_NAME

logger = logging.getLogger(__name__)

SHELL_ASSETS = (
    "/",
    "/app.html",
    "/index.html",
    "/manifest.json",
)

OFFLINE_ERROR_MESSAGE = "No network connection"
DEFAULT_PUSH_BODY = f"New message from {TEAM_NAME}"


@dataclass
class NotificationOptions:
    body: str
    icon: str = "/icons/icon-192x192.png"
    badge: str = "/icons/icon-72x72.png"
    vibrate: List[int] = field(default_factory=lambda: [200, 100, 200])
    tag: str = "teamhub-notification"
    require_interaction: bool = False
    actions: List[Dict[str, str]] = field(
        default_factory=lambda: [
            {"action": "open", "title": "Open"},
            {"action": "close", "title": "Close"},
        ]
    )


class WorkerHost:
    """
    The environment a worker runs in.

    The default implementation only logs; embed the worker by overriding
    these hooks.
    """

    async def skip_waiting(self) -> None:
        logger.info("[CacheWorker] skip waiting")

    async def claim_clients(self) -> None:
        logger.info("[CacheWorker] claiming clients")

    async def show_notification(self, title: str, options: NotificationOptions) -> None:
        logger.info(f"[CacheWorker] notification: {title} - {options.body}")

    async def open_window(self, url: str) -> None:
        logger.info(f"[CacheWorker] open window: {url}")


class ExtendableEvent:
    """An event whose lifetime can be extended by pending work."""

    def __init__(self, type: str):
        self.type = type
        self._pending: List[asyncio.Future] = []

    def wait_until(self, work: Awaitable) -> asyncio.Future:
        """Keep the event alive until ``work`` completes."""
        future = asyncio.ensure_future(work)
        self._pending.append(future)
        return future

    async def settle(self, raise_errors: bool = True) -> None:
        """Wait for every extension, including ones added while waiting."""
        errors = []
        while self._pending:
            pending, self._pending = self._pending, []
            results = await asyncio.gather(*pending, return_exceptions=True)
            errors.extend(result for result in results if isinstance(result, Exception))
        for error in errors:
            logger.warning(f"[CacheWorker] {self.type} extension failed: {error!r}")
        if errors and raise_errors:
            raise errors[0]


class FetchEvent(ExtendableEvent):
    """A single intercepted request."""

    def __init__(self, request: httpx.Request):
        super().__init__("fetch")
        self.request = request
        self._response: Optional[asyncio.Future] = None

    def respond_with(self, response: Awaitable[httpx.Response]) -> None:
        if self._response is not None:
            raise RuntimeError("respond_with() already called for this fetch event")
        self._response = asyncio.ensure_future(response)

    @property
    def handled(self) -> bool:
        return self._response is not None

    async def response(self) -> httpx.Response:
        return await self._response


class CacheWorker:
    """
    Cache-aware request interceptor.

    Args:
        storage: Cache buckets of the origin
        fetch: Network fetch; raises httpx.TransportError when offline
        host: Environment hooks (activation, notifications, windows)
        cache_name: Name of the current cache bucket (the worker version)
        shell_assets: Paths precached at install time
        scope: Origin the shell asset paths are resolved against
    """

    def __init__(
        self,
        storage: CacheStorage,
        fetch: Fetch,
        host: Optional[WorkerHost] = None,
        cache_name: str = CACHE_NAME,
        shell_assets: Sequence[str] = SHELL_ASSETS,
        scope: Union[str, httpx.URL] = "http://localhost:3001/",
    ):
        self.storage = storage
        self.fetch = fetch
        self.host = host or WorkerHost()
        self.cache_name = cache_name
        self.shell_assets = tuple(shell_assets)
        self.scope = httpx.URL(scope)

    def resolve(self, path: str) -> httpx.URL:
        return self.scope.join(path)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def install(self) -> None:
        """Precache the shell assets, then activate without waiting for old workers."""
        logger.info("[CacheWorker] installing...")
        event = ExtendableEvent("install")
        event.wait_until(self._precache())
        await event.settle()

    async def _precache(self) -> None:
        cache = await self.storage.open(self.cache_name)
        logger.info("[CacheWorker] caching app shell")
        await cache.add_all([self.resolve(path) for path in self.shell_assets], self.fetch)
        await self.host.skip_waiting()

    async def activate(self) -> None:
        """Delete buckets from older versions, then take control of open clients."""
        logger.info("[CacheWorker] activating...")
        event = ExtendableEvent("activate")
        event.wait_until(self._cleanup())
        await event.settle()

    async def _cleanup(self) -> None:
        for name in await self.storage.keys():
            if name != self.cache_name:
                logger.info(f"[CacheWorker] deleting old cache: {name}")
                await self.storage.delete(name)
        await self.host.claim_clients()

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    async def handle_fetch(self, request: httpx.Request) -> httpx.Response:
        """
        Answer one outgoing request.

        Raises:
            httpx.TransportError: Static asset unavailable from both cache and network
        """
        return await self.dispatch(FetchEvent(request))

    async def dispatch(self, event: FetchEvent) -> httpx.Response:
        """Run the fetch handler, then wait for its response and every extension."""
        self.on_fetch(event)
        try:
            if not event.handled:
                return await self.fetch(event.request)
            return await event.response()
        finally:
            # Cache writes are best effort; they never fail the response
            await event.settle(raise_errors=False)

    def on_fetch(self, event: FetchEvent) -> None:
        if classify_request(event.request) is CachePolicy.NETWORK_FIRST:
            event.respond_with(self._network_first(event))
        else:
            event.respond_with(self._cache_first(event))

    async def _network_first(self, event: FetchEvent) -> httpx.Response:
        request = event.request
        try:
            response = await self.fetch(request)
        except httpx.TransportError as e:
            logger.info(f"[CacheWorker] offline, trying cache for {request.url}: {e!r}")
            cached = await self.storage.match(request)
            if cached is not None:
                return cached
            return self._offline_response(request)

        if request.method.upper() == "GET":
            event.wait_until(self._store(request, response))
        return response

    async def _cache_first(self, event: FetchEvent) -> httpx.Response:
        request = event.request
        cached = await self.storage.match(request)
        if cached is not None:
            return cached

        try:
            response = await self.fetch(request)
        except httpx.TransportError:
            if is_document_request(request):
                shell = await self.storage.match(self.resolve(SHELL_PAGE))
                if shell is not None:
                    return shell
            raise

        # Only plain successful responses are worth keeping
        if response.status_code == 200 and request.method.upper() == "GET":
            event.wait_until(self._store(request, response))
        return response

    async def _store(self, request: httpx.Request, response: httpx.Response) -> None:
        cache = await self.storage.open(self.cache_name)
        await cache.put(request, response)

    @staticmethod
    def _offline_response(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=503,
            json={"error": OFFLINE_ERROR_MESSAGE, "offline": True},
            request=request,
        )

    # ------------------------------------------------------------------
    # Sync, push, notifications, messages
    # ------------------------------------------------------------------

    async def handle_sync(self, tag: str) -> None:
        logger.info(f"[CacheWorker] background sync: {tag}")
        event = ExtendableEvent("sync")
        if tag == SYNC_CONFIRMATIONS_TAG:
            # Offline confirmations are not queued yet; nothing to replay
            event.wait_until(asyncio.sleep(0))
        await event.settle()

    async def handle_push(self, data: Optional[Union[bytes, str]] = None) -> NotificationOptions:
        logger.info("[CacheWorker] push received")
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")
        options = NotificationOptions(body=data if data else DEFAULT_PUSH_BODY)

        event = ExtendableEvent("push")
        event.wait_until(self.host.show_notification(TEAM_NAME, options))
        await event.settle()
        return options

    async def handle_notification_click(self, notification: Any, action: Optional[str] = None) -> None:
        logger.info(f"[CacheWorker] notification click: {action}")
        notification.close()

        event = ExtendableEvent("notificationclick")
        if action == "open":
            event.wait_until(self.host.open_window(str(self.resolve(SHELL_PAGE))))
        await event.settle()

    async def handle_message(self, data: Any, ports: Sequence[Any] = ()) -> None:
        """
        Control messages from pages.

        ``{"type": "SKIP_WAITING"}`` activates a waiting update immediately;
        ``{"type": "GET_VERSION"}`` replies ``{"version": cache_name}`` on the first port.
        """
        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except ValueError:
                return
        if not isinstance(data, dict):
            return

        message_type = data.get("type")
        if message_type == "SKIP_WAITING":
            await self.host.skip_waiting()
        elif message_type == "GET_VERSION" and ports:
            ports[0].post_message({"version": self.cache_name})
