"""Client-side offline cache worker."""

from teamhub.client.policy import CachePolicy, classify_request, is_document_request
from teamhub.client.storage import CacheBucket, CacheError, CacheStorage, detach_response
from teamhub.client.transport import OfflineCacheTransport
from teamhub.client.worker import (
    CacheWorker,
    ExtendableEvent,
    FetchEvent,
    NotificationOptions,
    WorkerHost,
)

__all__ = [
    "CacheBucket",
    "CacheError",
    "CachePolicy",
    "CacheStorage",
    "CacheWorker",
    "ExtendableEvent",
    "FetchEvent",
    "NotificationOptions",
    "OfflineCacheTransport",
    "WorkerHost",
    "classify_request",
    "detach_response",
    "is_document_request",
]
