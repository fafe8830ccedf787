"""
Service layer - coalesced HTTP requests.

Provides:
- RequestManager: Shares one in-flight request between identical concurrent callers
- HttpxTransport: Executes requests over httpx, mapping failures to TransportError
- ServiceClient: Composition root owning one transport and one RequestManager
"""

from coalescer.services.errors import (
    ServiceError,
    TransportError,
    RequestTimeoutError,
)
from coalescer.services.request_manager import (
    CoalescingStats,
    HttpClient,
    InFlightRecord,
    RequestManager,
    make_request_key,
)
from coalescer.services.client import HttpxTransport, ServiceClient, ServiceConfig

__all__ = [
    # Errors
    "ServiceError",
    "TransportError",
    "RequestTimeoutError",
    # Request manager
    "RequestManager",
    "InFlightRecord",
    "CoalescingStats",
    "HttpClient",
    "make_request_key",
    # Client
    "HttpxTransport",
    "ServiceClient",
    "ServiceConfig",
]
