"""
Service layer exceptions.
"""


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, service_id: str | None = None):
        self.service_id = service_id
        super().__init__(message)


class TransportError(ServiceError):
    """Network or HTTP failure raised by the transport."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        service_id: str | None = None,
    ):
        self.url = url
        self.status_code = status_code
        super().__init__(message, service_id=service_id)


class RequestTimeoutError(TransportError):
    """Request timed out."""

    def __init__(self, url: str, timeout: float | None, service_id: str | None = None):
        self.timeout = timeout
        message = f"Request to '{url}' timed out"
        if timeout is not None:
            message += f" after {timeout}s"
        super().__init__(message, url=url, service_id=service_id)
