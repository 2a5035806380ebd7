"""Header-based SigV4 authorization for direct server-to-store requests."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime

from s3direct import metrics
from s3direct.config import S3Config
from s3direct.errors import ConfigurationError
from s3direct.signing import (
    ALGORITHM,
    CanonicalRequest,
    credential_scope,
    hex_hash,
    sign_canonical_request,
)
from s3direct.timeutil import basic_date, basic_date_time, utc_now
from s3direct.urls import HTTPS_PORT, s3_host

logger = logging.getLogger(__name__)

# Headers this module sets itself; caller-supplied copies are dropped.
_MANAGED_HEADERS = frozenset({"authorization", "host", "x-amz-date", "x-amz-content-sha256"})


@dataclass(frozen=True)
class Request:
    """An HTTP request addressed to the store.

    Attributes:
        method: HTTP method, e.g. "DELETE".
        path: Raw object path starting with '/'.
        query_string: Raw query string without the leading '?'.
        headers: Header name -> value.
        body: Request body, or None for no body.
    """

    method: str
    path: str
    query_string: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | None = None


def authorization_header(access_key: str, scope: str, signed_headers: str, signature: str) -> str:
    """Format the ``Authorization`` header value."""
    return (
        f"{ALGORITHM} Credential={access_key}/{scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )


def authorize(config: S3Config, request: Request, now: datetime | None = None) -> Request:
    """Sign ``request`` for the store described by ``config``.

    Adds ``x-amz-date``, ``x-amz-content-sha256``, ``Host`` (with the explicit
    https port) and ``Authorization``. All headers present on the result are
    signed. The input request is not modified.

    Args:
        config: Store configuration.
        request: Request to sign.
        now: Signing instant. Defaults to a single read of the UTC clock.

    Returns:
        A copy of ``request`` carrying the authentication headers.

    Raises:
        ConfigurationError: If no secret key is configured.
        InvalidRequest: If the request is malformed.
    """
    if not config.has_secret:
        raise ConfigurationError("A secret key is required to authorize requests.")
    now = utc_now() if now is None else now

    headers = {
        name: value
        for name, value in request.headers.items()
        if name.lower() not in _MANAGED_HEADERS
    }
    headers["x-amz-date"] = basic_date_time(now)
    headers["x-amz-content-sha256"] = hex_hash(request.body)
    headers["Host"] = f"{s3_host(config)}:{HTTPS_PORT}"

    canonical = CanonicalRequest.build(
        method=request.method,
        path=request.path,
        query_string=request.query_string,
        headers=headers,
        payload_hash=headers["x-amz-content-sha256"],
    )
    signature = sign_canonical_request(
        config.secret_key, config.region, now, canonical.render()
    )
    scope = credential_scope(basic_date(now), config.region)
    headers["Authorization"] = authorization_header(
        config.access_key, scope, canonical.signed_headers, signature
    )

    metrics.record_signing("authorize")
    logger.debug(
        "Authorized %s %s (signed headers: %s)",
        request.method,
        request.path,
        canonical.signed_headers,
    )
    return replace(request, headers=headers)
