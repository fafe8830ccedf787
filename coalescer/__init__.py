"""
Coalescer - de-duplicates concurrent HTTP requests for the same method and URL.
"""

from coalescer.services import (
    CoalescingStats,
    HttpClient,
    HttpxTransport,
    InFlightRecord,
    RequestManager,
    RequestTimeoutError,
    ServiceClient,
    ServiceConfig,
    ServiceError,
    TransportError,
    make_request_key,
)
from coalescer.settings import Settings

__all__ = [
    "RequestManager",
    "InFlightRecord",
    "CoalescingStats",
    "HttpClient",
    "make_request_key",
    "HttpxTransport",
    "ServiceClient",
    "ServiceConfig",
    "ServiceError",
    "TransportError",
    "RequestTimeoutError",
    "Settings",
]
