"""
Named cache buckets holding detached copies of responses.
"""

import logging
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

import httpx

logger = logging.getLogger(__name__)

Fetch = Callable[[httpx.Request], Awaitable[httpx.Response]]

# Headers that describe the wire encoding, not the stored body
_TRANSPORT_HEADERS = {"content-encoding", "content-length", "transfer-encoding"}


class CacheError(Exception):
    """A cache operation was rejected (non-GET put, failed precache)."""


def detach_response(response: httpx.Response, request: Optional[httpx.Request] = None) -> httpx.Response:
    """
    Copy a fully read response into a standalone in-memory response.

    The copy can be read any number of times and outlives the connection
    the original came from.
    """
    headers = [
        (name, value)
        for name, value in response.headers.multi_items()
        if name.lower() not in _TRANSPORT_HEADERS
    ]
    if request is None:
        try:
            request = response.request
        except RuntimeError:
            request = None
    return httpx.Response(
        status_code=response.status_code,
        headers=headers,
        content=response.content,
        request=request,
    )


def _as_request(request_or_url: Union[httpx.Request, str, httpx.URL]) -> httpx.Request:
    if isinstance(request_or_url, httpx.Request):
        return request_or_url
    return httpx.Request("GET", request_or_url)


class CacheBucket:
    """One named cache, keyed by request method and URL."""

    def __init__(self, name: str):
        self.name = name
        self._entries: Dict[Tuple[str, str], httpx.Response] = {}

    @staticmethod
    def _key(request: httpx.Request) -> Tuple[str, str]:
        return request.method.upper(), str(request.url)

    def __len__(self) -> int:
        return len(self._entries)

    async def match(self, request_or_url) -> Optional[httpx.Response]:
        """Return a fresh copy of the stored response, or None."""
        request = _as_request(request_or_url)
        stored = self._entries.get(self._key(request))
        if stored is None:
            return None
        return detach_response(stored, request)

    async def put(self, request: httpx.Request, response: httpx.Response) -> None:
        """Store a copy of the response. Only GET requests can be cached."""
        if request.method.upper() != "GET":
            raise CacheError(f"Cannot cache {request.method} request to {request.url}")
        self._entries[self._key(request)] = detach_response(response, request)

    async def add_all(self, urls: Iterable[Union[str, httpx.URL]], fetch: Fetch) -> None:
        """
        Fetch and store every URL, or nothing at all.

        Raises:
            CacheError: If any response is not successful
        """
        fetched = []
        for url in urls:
            request = _as_request(url)
            response = await fetch(request)
            if not response.is_success:
                raise CacheError(f"Precache of {request.url} failed with status {response.status_code}")
            fetched.append((request, response))
        for request, response in fetched:
            await self.put(request, response)

    async def delete(self, request_or_url) -> bool:
        return self._entries.pop(self._key(_as_request(request_or_url)), None) is not None

    async def keys(self) -> List[Tuple[str, str]]:
        return list(self._entries)


class CacheStorage:
    """All cache buckets of one origin."""

    def __init__(self):
        self._buckets: Dict[str, CacheBucket] = {}

    async def open(self, name: str) -> CacheBucket:
        if name not in self._buckets:
            self._buckets[name] = CacheBucket(name)
        return self._buckets[name]

    async def has(self, name: str) -> bool:
        return name in self._buckets

    async def keys(self) -> List[str]:
        return list(self._buckets)

    async def delete(self, name: str) -> bool:
        return self._buckets.pop(name, None) is not None

    async def match(self, request_or_url) -> Optional[httpx.Response]:
        """Search every bucket, oldest first."""
        for bucket in list(self._buckets.values()):
            response = await bucket.match(request_or_url)
            if response is not None:
                return response
        return None
