"""Error definitions for s3direct."""


class S3DirectError(Exception):
    """Base error carrying a short code and a human-readable message.

    Attributes:
        code: Machine-readable error code (e.g. "InvalidRequest").
        message: Human-readable error description.
    """

    def __init__(self, code: str, message: str) -> None:
        """Initialize the error.

        Args:
            code: Error code.
            message: Error description.
        """
        super().__init__(message)
        self.code = code
        self.message = message


class ConfigurationError(S3DirectError):
    """The store configuration is missing or invalid."""

    def __init__(self, message: str = "Invalid configuration") -> None:
        super().__init__(code="ConfigurationError", message=message)


class InvalidRequest(S3DirectError):
    """Signing input violates the caller contract (bad path, method, body...)."""

    def __init__(self, message: str = "Invalid request") -> None:
        super().__init__(code="InvalidRequest", message=message)


class StoreRequestFailed(S3DirectError):
    """The object store answered a direct request with a non-2xx status.

    Attributes:
        method: HTTP method of the failed request.
        url: Target URL of the failed request.
        http_status: Status code returned by the store.
        body: Leading part of the response body, for diagnostics.
    """

    def __init__(self, method: str, url: str, http_status: int, body: str = "") -> None:
        super().__init__(
            code="StoreRequestFailed",
            message=f"{method} {url} failed with HTTP {http_status}",
        )
        self.method = method
        self.url = url
        self.http_status = http_status
        self.body = body
