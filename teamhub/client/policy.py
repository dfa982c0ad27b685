"""
Request classification for the offline cache worker.

Pure functions of the request; no cache or network access.
"""

import enum

import httpx

from teamhub.utils.constants import API_PREFIX


class CachePolicy(str, enum.Enum):
    """How a request is answered."""

    NETWORK_FIRST = "network_first"
    CACHE_FIRST = "cache_first"


def classify_request(request: httpx.Request) -> CachePolicy:
    """
    API calls go to the network first; everything else is a static asset
    served from the cache first.
    """
    if request.url.path.startswith(API_PREFIX):
        return CachePolicy.NETWORK_FIRST
    return CachePolicy.CACHE_FIRST


def is_document_request(request: httpx.Request) -> bool:
    """
    True for top-level page loads.

    Callers may tag a request with ``extensions={"destination": "document"}``;
    otherwise a GET that accepts HTML counts as a document.
    """
    destination = request.extensions.get("destination")
    if destination is not None:
        return destination == "document"
    return request.method == "GET" and "text/html" in request.headers.get("accept", "")
