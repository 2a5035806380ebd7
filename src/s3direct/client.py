"""Async client for direct, header-signed requests to the object store.

The client is the only part of s3direct that performs I/O. Each call is a
single request: no retries, no backoff. Timeouts come from the underlying
``httpx.AsyncClient``; cancellation is left to the caller's task.
"""

import logging

import httpx

from s3direct import metrics
from s3direct.authorizer import Request, authorize
from s3direct.config import S3Config
from s3direct.errors import StoreRequestFailed
from s3direct.policy import UploadPolicy, generate_upload_policy
from s3direct.presign import readable_url
from s3direct.signing import uri_encode_path
from s3direct.urls import s3_host

logger = logging.getLogger(__name__)

# Response body bytes kept on StoreRequestFailed for diagnostics
_ERROR_BODY_LIMIT = 1024


class S3Client:
    """Signs and sends requests to one bucket.

    Attributes:
        config: The store configuration used for every request.
    """

    def __init__(
        self,
        config: S3Config,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Store configuration.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``).
        """
        self.config = config
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> "S3Client":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    def readable_url(self, expires: int, path: str) -> str:
        """Presigned GET URL for ``path``; see :func:`s3direct.presign.readable_url`."""
        return readable_url(self.config, expires, path)

    def upload_policy(self, starts_with: str) -> UploadPolicy | None:
        """Upload policy for keys under ``starts_with``; None if uploads are disabled."""
        return generate_upload_policy(self.config, starts_with)

    def _url(self, request: Request) -> str:
        url = f"https://{s3_host(self.config)}{uri_encode_path(request.path)}"
        if request.query_string:
            url += "?" + request.query_string
        return url

    async def send(self, request: Request) -> httpx.Response:
        """Authorize and send ``request``.

        Returns:
            The store's response, guaranteed to have a 2xx status.

        Raises:
            StoreRequestFailed: If the store answers with a non-2xx status.
            httpx.HTTPError: On connection failures and timeouts.
        """
        signed = authorize(self.config, request)
        url = self._url(signed)

        try:
            response = await self._http.request(
                signed.method,
                url,
                headers=dict(signed.headers),
                content=signed.body,
            )
        except httpx.HTTPError as exc:
            metrics.record_store_request(signed.method, "error")
            logger.warning("%s %s failed: %s", signed.method, url, exc)
            raise

        metrics.record_store_request(signed.method, response.status_code)
        if not response.is_success:
            logger.warning("%s %s returned HTTP %d", signed.method, url, response.status_code)
            raise StoreRequestFailed(
                method=signed.method,
                url=url,
                http_status=response.status_code,
                body=response.text[:_ERROR_BODY_LIMIT],
            )

        logger.debug("%s %s -> %d", signed.method, url, response.status_code)
        return response

    async def delete_file(self, path: str) -> None:
        """Delete the object at ``path``.

        The store answers 204 whether or not the object existed, so a missing
        object is not an error.

        Raises:
            StoreRequestFailed: If the store answers with a non-2xx status.
            httpx.HTTPError: On connection failures and timeouts.
        """
        await self.send(Request(method="DELETE", path=path, body=b""))
        logger.info(
            "Deleted %s from bucket %s",
            path,
            self.config.bucket,
            extra={"method": "DELETE", "path": path, "bucket": self.config.bucket},
        )
