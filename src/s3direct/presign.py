"""Presigned GET URLs (query-string authentication).

A presigned URL carries its own credential, date, expiry and signature in
the query string, so anyone holding it can fetch the object until it
expires without further authentication.
"""

import hmac
import logging
import urllib.parse
from datetime import datetime

from s3direct import metrics
from s3direct.config import S3Config
from s3direct.errors import ConfigurationError, InvalidRequest
from s3direct.signing import (
    ALGORITHM,
    UNSIGNED_PAYLOAD,
    CanonicalRequest,
    credential_scope,
    sign_canonical_request,
    uri_encode,
    uri_encode_path,
)
from s3direct.timeutil import basic_date, basic_date_time, parse_basic_date_time, utc_now
from s3direct.urls import s3_host

logger = logging.getLogger(__name__)

MAX_PRESIGNED_EXPIRES = 604800  # 7 days in seconds
CLOCK_SKEW_TOLERANCE = 900  # 15 minutes in seconds
SIGNED_HEADERS = "host"


def _object_path(path: str) -> str:
    return path if path.startswith("/") else "/" + path


def _presign_query(config: S3Config, now: datetime, expires: int) -> str:
    """Build the encoded query string, minus the signature, in canonical order."""
    scope = credential_scope(basic_date(now), config.region)
    params = [
        ("X-Amz-Algorithm", ALGORITHM),
        ("X-Amz-Credential", f"{config.access_key}/{scope}"),
        ("X-Amz-Date", basic_date_time(now)),
        ("X-Amz-Expires", str(expires)),
        ("X-Amz-SignedHeaders", SIGNED_HEADERS),
    ]
    return "&".join(f"{name}={uri_encode(value)}" for name, value in params)


def _presign_signature(config: S3Config, now: datetime, path: str, query: str) -> str:
    canonical = CanonicalRequest.build(
        method="GET",
        path=path,
        query_string=query,
        headers={"host": s3_host(config)},
        payload_hash=UNSIGNED_PAYLOAD,
    )
    return sign_canonical_request(config.secret_key, config.region, now, canonical.render())


def readable_url(
    config: S3Config,
    expires: int,
    path: str,
    now: datetime | None = None,
) -> str:
    """Generate a presigned GET URL for the object at ``path``.

    Args:
        config: Store configuration.
        expires: Validity in seconds, counted from ``now``.
        path: Object path, with or without the leading '/'.
        now: Signing instant. Defaults to a single read of the UTC clock.

    Returns:
        ``https://<host>/<path>?X-Amz-Algorithm=...&X-Amz-Signature=<hex>``

    Raises:
        ConfigurationError: If no secret key is configured.
        InvalidRequest: If ``expires`` is out of range or ``path`` is invalid.
    """
    if not config.has_secret:
        raise ConfigurationError("A secret key is required to presign URLs.")
    if isinstance(expires, bool) or not isinstance(expires, int):
        raise InvalidRequest(f"Expiry must be an integer number of seconds: {expires!r}")
    if expires < 1 or expires > MAX_PRESIGNED_EXPIRES:
        raise InvalidRequest(f"Expiry must be between 1 and {MAX_PRESIGNED_EXPIRES} seconds.")

    now = utc_now() if now is None else now
    path = _object_path(path)
    query = _presign_query(config, now, expires)
    signature = _presign_signature(config, now, path, query)

    metrics.record_signing("presign")
    logger.debug("Presigned GET %s (expires=%ds)", path, expires)
    return f"https://{s3_host(config)}{uri_encode_path(path)}?{query}&X-Amz-Signature={signature}"


def verify_readable_url(config: S3Config, url: str, now: datetime | None = None) -> bool:
    """Check a presigned URL produced for ``config``.

    Recomputes the signature from the URL's own query parameters (all but
    ``X-Amz-Signature``) and checks that the URL has not expired at ``now``.
    A signing date more than ``CLOCK_SKEW_TOLERANCE`` seconds after ``now``
    is rejected.

    Returns:
        True if the signature matches and the URL is still valid.

    Raises:
        ConfigurationError: If no secret key is configured.
    """
    if not config.has_secret:
        raise ConfigurationError("A secret key is required to verify URLs.")
    parsed = urllib.parse.urlsplit(url)
    params = dict(urllib.parse.parse_qsl(parsed.query, keep_blank_values=True))
    provided = params.get("X-Amz-Signature")
    if parsed.hostname != s3_host(config).split(":")[0]:
        return False
    if not provided or not provided.isascii():
        return False

    try:
        signed_at = parse_basic_date_time(params["X-Amz-Date"])
        expires = int(params["X-Amz-Expires"])
    except (KeyError, ValueError):
        return False

    now = utc_now() if now is None else now
    elapsed = (now - signed_at).total_seconds()
    if elapsed > expires:
        logger.debug("Presigned URL expired: signed at %s, expires %ds", signed_at, expires)
        return False
    if elapsed < -CLOCK_SKEW_TOLERANCE:
        logger.debug("Presigned URL signed in the future: %s", signed_at)
        return False

    unsigned_query = "&".join(
        pair for pair in parsed.query.split("&") if not pair.startswith("X-Amz-Signature=")
    )
    expected = _presign_signature(
        config, signed_at, urllib.parse.unquote(parsed.path), unsigned_query
    )
    return hmac.compare_digest(expected, provided)
