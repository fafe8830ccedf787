"""
ServiceClient - Async HTTP client with request coalescing.

Combines:
- HttpxTransport, which performs requests over httpx
- RequestManager, which coalesces concurrent identical requests
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable

import httpx
from loguru import logger

from coalescer.services.errors import RequestTimeoutError, TransportError
from coalescer.services.request_manager import RequestManager
from coalescer.settings import Settings


class HttpxTransport:
    """
    Performs a single request described by an options dict.

    ``method``, ``url`` and ``data`` are taken from the options. ``data`` is
    left out when it is ``None`` or ``{}``, sent as-is when it is ``str`` or
    ``bytes``, and JSON-encoded otherwise. Every other key is handed to
    ``httpx.AsyncClient.request`` as a keyword argument (headers, params,
    cookies, timeout, follow_redirects, ...).
    """

    def __init__(self, http_client: httpx.AsyncClient, service_id: str | None = None):
        self._http_client = http_client
        self._service_id = service_id

    async def request(self, options: dict[str, Any]) -> httpx.Response:
        """
        Execute the request.

        Raises:
            RequestTimeoutError: If the request times out
            TransportError: For connection errors and non-2xx responses
        """
        kwargs = dict(options)
        method = kwargs.pop("method")
        url = kwargs.pop("url")
        data = kwargs.pop("data", None)
        if isinstance(data, (str, bytes)):
            kwargs["content"] = data
        elif data is not None and data != {}:
            kwargs["json"] = data

        try:
            response = await self._http_client.request(method, url, **kwargs)
            response.raise_for_status()
            return response

        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                url, _timeout_seconds(kwargs.get("timeout")), service_id=self._service_id
            ) from e

        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"HTTP {e.response.status_code}: {e.response.text[:200]}",
                url=url,
                status_code=e.response.status_code,
                service_id=self._service_id,
            ) from e

        except httpx.RequestError as e:
            raise TransportError(str(e), url=url, service_id=self._service_id) from e


def _timeout_seconds(timeout: Any) -> float | None:
    if isinstance(timeout, (int, float)):
        return float(timeout)
    return None


@dataclass
class ServiceConfig:
    """Configuration for a ServiceClient."""

    service_id: str = "default"
    base_url: str = ""
    timeout: float = 30.0
    headers: dict[str, str] | None = None
    follow_redirects: bool = True
    debug: bool = False


class ServiceClient:
    """
    HTTP client whose concurrent identical requests share one network call.

    Each instance owns its own RequestManager, so coalescing happens per
    client, never across clients.

    Usage:
        async with ServiceClient(ServiceConfig(base_url="https://api.example.com")) as client:
            response = await client.call("GET", "/status")

            # Transform the response for every caller joined to this request
            payload = await client.call(
                "GET",
                "/users",
                on_success=lambda response: response.json(),
            )
    """

    def __init__(
        self,
        config: ServiceConfig | None = None,
        manager: RequestManager | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config or ServiceConfig()
        self.manager = manager or RequestManager(debug=self.config.debug)

        # HTTP client (lazy initialization)
        self._http_client: httpx.AsyncClient | None = http_client
        self._owns_http_client = http_client is None
        self._transport: HttpxTransport | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceClient":
        """Build a client from environment settings."""
        return cls(
            ServiceConfig(
                base_url=settings.http_base_url,
                timeout=settings.http_timeout,
                follow_redirects=settings.http_follow_redirects,
                debug=settings.coalescer_debug,
            )
        )

    def _get_transport(self) -> HttpxTransport:
        """Get or create the transport and its HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers=self.config.headers,
                timeout=httpx.Timeout(self.config.timeout),
                follow_redirects=self.config.follow_redirects,
            )
            logger.debug(f"Created HTTP client for service: {self.config.service_id}")
        if self._transport is None:
            self._transport = HttpxTransport(
                self._http_client, service_id=self.config.service_id
            )
        return self._transport

    def call(
        self,
        method: str,
        url: str,
        data: Any = None,
        config: dict[str, Any] | None = None,
        on_success: Callable[[httpx.Response], Any] | None = None,
        on_error: Callable[[Exception], Any] | None = None,
    ) -> "asyncio.Future[Any]":
        """
        Make a coalesced request.

        See ``RequestManager.call`` for the sharing and callback rules.
        Must be called from a running event loop; await the returned future.
        """
        return self.manager.call(
            self._get_transport(),
            method,
            url,
            data,
            config,
            on_success=on_success,
            on_error=on_error,
        )

    def get_health_status(self) -> dict[str, Any]:
        """Get coalescing statistics for this client."""
        return {
            "service_id": self.config.service_id,
            "deduplicator": self.manager.get_stats().to_dict(),
        }

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None
            self._transport = None
            logger.debug(f"ServiceClient '{self.config.service_id}' closed")

    async def __aenter__(self) -> "ServiceClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
