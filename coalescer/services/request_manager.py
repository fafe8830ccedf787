"""
RequestManager - Coalesces concurrent HTTP requests for the same method and URL.

When a request for a given method and URL is already in flight, later
callers join it and receive the same outcome instead of issuing another
network call. Payload and per-request config do not take part in matching.
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

from loguru import logger

RequestKey = str


class HttpClient(Protocol):
    """Anything exposing ``request(options)`` that eventually yields a response."""

    def request(self, options: dict[str, Any]) -> Awaitable[Any]: ...


def make_request_key(method: str, url: str) -> RequestKey:
    """Build the coalescing key: lowercased method plus the exact URL."""
    return f"{method.lower()}:{url}"


@dataclass
class InFlightRecord:
    """Shared outcomes of one in-flight operation."""

    original: "asyncio.Future[Any]"  # raw client outcome
    processed: "asyncio.Future[Any]"  # outcome after the first caller's callbacks


class RequestManager:
    """
    Manages in-flight HTTP requests so identical ones share a single call.

    ``call`` is a plain method returning a future. The registry lookup and
    insert both happen before it returns, with no suspension in between, so
    it has to be invoked while an event loop is running.

    Every caller gets its own shielded view of the shared processed future:
    a caller that stops waiting (timeout, cancellation) leaves the operation
    running for the others.

    Only the callbacks of the caller that starts an operation are used.
    Joiners share the processed outcome, so if the first caller swallowed
    an error with ``on_error`` every joiner resolves to ``None`` as well.

    Usage:
        manager = RequestManager()

        response = await manager.call(transport, "GET", "https://example.com")
    """

    def __init__(self, debug: bool = False):
        self.active_requests: dict[RequestKey, InFlightRecord] = {}
        self._debug = debug
        self._stats = CoalescingStats()

    def call(
        self,
        client: HttpClient,
        method: str,
        url: str,
        data: Any = None,
        config: dict[str, Any] | None = None,
        on_success: Callable[[Any], Any] | None = None,
        on_error: Callable[[Exception], Any] | None = None,
    ) -> "asyncio.Future[Any]":
        """
        Start a request or join the one already in flight for method + URL.

        Args:
            client: Object whose ``request(options)`` performs the HTTP call
            method: HTTP verb, passed to the client unmodified
            url: Request URL, matched exactly
            data: Request payload, defaults to an empty dict
            config: Extra request options merged into the client call
            on_success: Called with the response; a non-None return value
                replaces the response. May be a coroutine function.
            on_error: Called with the error; the error is then swallowed and
                the result is None. May be a coroutine function.

        Returns:
            Future resolving to the (possibly transformed) response

        Raises:
            RuntimeError: If no event loop is running
        """
        loop = asyncio.get_running_loop()

        if data is None:
            data = {}
        if config is None:
            config = {}

        key = make_request_key(method, url)
        existing = self.active_requests.get(key)
        if existing is not None:
            self._stats.deduplicated += 1
            self._log(f"JOIN: Waiting for in-flight request: {key[:50]}...")
            return asyncio.shield(existing.processed)

        self._stats.total += 1
        self._log(f"NEW: Starting request: {key[:50]}...")

        options = {**config, "method": method, "url": url, "data": data}
        original = loop.create_task(self._execute_and_cleanup(key, client, options))
        processed = loop.create_task(self._process(original, on_success, on_error))
        self.active_requests[key] = InFlightRecord(original=original, processed=processed)
        return asyncio.shield(processed)

    async def _process(
        self,
        original: "asyncio.Future[Any]",
        on_success: Callable[[Any], Any] | None,
        on_error: Callable[[Exception], Any] | None,
    ) -> Any:
        """Apply the starting caller's callbacks to the raw outcome."""
        try:
            response = await original
        except Exception as e:
            self._stats.failed += 1
            if callable(on_error):
                outcome = on_error(e)
                if inspect.isawaitable(outcome):
                    await outcome
                self._stats.swallowed += 1
                return None
            raise

        result = on_success(response) if callable(on_success) else None
        if inspect.isawaitable(result):
            result = await result
        return result if result is not None else response

    async def _execute_and_cleanup(
        self,
        key: RequestKey,
        client: HttpClient,
        options: dict[str, Any],
    ) -> Any:
        """Run the client call, dropping the registry entry as it settles."""
        try:
            return await client.request(options)
        finally:
            record = self.active_requests.get(key)
            if record is not None and record.original is asyncio.current_task():
                del self.active_requests[key]
                self._log(f"DONE: Request completed: {key[:50]}...")

    def has_in_flight(self, method: str, url: str) -> bool:
        """Check whether a request for method + URL is currently in flight."""
        return make_request_key(method, url) in self.active_requests

    def in_flight_count(self) -> int:
        """Get number of in-flight requests."""
        return len(self.active_requests)

    def in_flight_keys(self) -> list[RequestKey]:
        """Get keys of all in-flight requests."""
        return list(self.active_requests.keys())

    def clear(self) -> None:
        """
        Forget every in-flight record.

        Futures already handed out keep running and still resolve; only the
        registry is emptied, so the next call for any key starts afresh.
        """
        self.active_requests.clear()

    def get_stats(self) -> "CoalescingStats":
        """Get coalescing statistics."""
        self._stats.in_flight = len(self.active_requests)
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[RequestManager] {message}")


class CoalescingStats:
    """Counters for one RequestManager."""

    def __init__(self):
        self.total: int = 0  # operations sent to the client
        self.deduplicated: int = 0  # calls that joined one of them
        self.failed: int = 0  # operations whose client call raised
        self.swallowed: int = 0  # of those, failures absorbed by on_error
        self.in_flight: int = 0

    @property
    def dedup_rate(self) -> float:
        """Share of calls served by an operation already in flight."""
        calls = self.total + self.deduplicated
        return self.deduplicated / calls if calls else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "operations": self.total,
            "joined": self.deduplicated,
            "failed": self.failed,
            "swallowed_errors": self.swallowed,
            "in_flight": self.in_flight,
            "dedup_rate": f"{self.dedup_rate:.2%}",
        }
