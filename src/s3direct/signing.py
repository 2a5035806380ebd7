"""AWS Signature Version 4 primitives for s3direct.

Implements the three building blocks every signed artifact is made of:

- the canonical request (a deterministic serialization of method, path,
  query, headers and payload hash),
- the signing key (a four-step HMAC-SHA256 chain scoped to one day, region
  and service),
- the signature over the string to sign.

Everything here is pure: no clock reads, no caching, no I/O.

References:
    - https://docs.aws.amazon.com/AmazonS3/latest/API/sig-v4-header-based-auth.html
"""

from __future__ import annotations

import hashlib
import hmac
import re
import urllib.parse
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from s3direct.errors import InvalidRequest
from s3direct.timeutil import basic_date, basic_date_time

# Constants
ALGORITHM = "AWS4-HMAC-SHA256"
KEY_PREFIX = "AWS4"
SCOPE_TERMINATOR = "aws4_request"
SERVICE_NAME = "s3"
EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"

# RFC 7230 token, the only legal shape for an HTTP method
_METHOD_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


# ---------------------------------------------------------------------------
# Payload hashing
# ---------------------------------------------------------------------------


def hex_hash(body: bytes | None) -> str:
    """Return the lowercase hex SHA-256 of ``body``.

    An absent body hashes exactly like an empty one.

    Raises:
        InvalidRequest: If ``body`` is not a bytes-like value.
    """
    if body is None:
        return EMPTY_SHA256
    if not isinstance(body, (bytes, bytearray, memoryview)):
        raise InvalidRequest(f"Request body must be bytes, got {type(body).__name__}.")
    return hashlib.sha256(body).hexdigest()


# ---------------------------------------------------------------------------
# URI encoding
# ---------------------------------------------------------------------------


def uri_encode(s: str, encode_slash: bool = True) -> str:
    """S3-compatible URI encoding.

    Characters A-Z, a-z, 0-9, '-', '_', '.', '~' are not encoded.
    All other characters are percent-encoded as UTF-8 with uppercase hex.
    Spaces become %20 (not +).

    Args:
        s: The string to encode.
        encode_slash: If True (default), '/' is encoded as %2F.

    Raises:
        InvalidRequest: If ``s`` cannot be encoded as UTF-8.
    """
    safe = "-_.~" if encode_slash else "-_.~/"
    try:
        return urllib.parse.quote(s, safe=safe)
    except UnicodeEncodeError as exc:
        raise InvalidRequest(f"Value is not valid UTF-8: {s!r}") from exc


def uri_encode_path(path: str) -> str:
    """URI-encode an object path once, preserving forward slashes.

    Raises:
        InvalidRequest: If ``path`` does not start with '/'.
    """
    if not path:
        return "/"
    if not path.startswith("/"):
        raise InvalidRequest(f"Request path must start with '/': {path!r}")
    return "/".join(uri_encode(segment, encode_slash=False) for segment in path.split("/"))


def canonical_query_string(query_string: str) -> str:
    """Build the canonical query string from a raw query string.

    Parameters are decoded, sorted by name then value, and re-encoded with
    :func:`uri_encode`. Parameters without '=' get an empty value.

    Args:
        query_string: The raw query string (without leading '?').
    """
    if not query_string:
        return ""

    params: list[tuple[str, str]] = []
    for pair in query_string.split("&"):
        if not pair:
            continue
        name, _, value = pair.partition("=")
        params.append((urllib.parse.unquote_plus(name), urllib.parse.unquote_plus(value)))

    params.sort()
    return "&".join(f"{uri_encode(name)}={uri_encode(value)}" for name, value in params)


def _trim_header_value(value: str) -> str:
    """Strip surrounding whitespace and collapse runs of spaces."""
    return re.sub(r" +", " ", value.strip())


def _canonical_header_map(headers: Mapping[str, str]) -> dict[str, str]:
    lower_headers: dict[str, str] = {}
    for name, value in headers.items():
        if not isinstance(name, str) or not isinstance(value, str):
            raise InvalidRequest(f"Header names and values must be str: {name!r}={value!r}")
        if "\r" in value or "\n" in value:
            raise InvalidRequest(f"Header value must not contain CR or LF: {name!r}")
        lower_name = name.lower()
        if lower_name in lower_headers:
            # Multiple same headers: join with comma
            lower_headers[lower_name] += "," + _trim_header_value(value)
        else:
            lower_headers[lower_name] = _trim_header_value(value)
    return lower_headers


# ---------------------------------------------------------------------------
# Canonical request
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CanonicalRequest:
    """The six components of a SigV4 canonical request, in protocol order.

    Use :meth:`build` to derive one from raw request parts; :meth:`render`
    produces the newline-joined string that gets hashed.
    """

    method: str
    uri: str
    query: str
    headers: str
    signed_headers: str
    payload_hash: str

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        query_string: str = "",
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        payload_hash: str | None = None,
    ) -> CanonicalRequest:
        """Canonicalize a request.

        Every supplied header is signed. Header names are lowercased and
        sorted, values trimmed, duplicates joined with ','.

        Args:
            method: HTTP method.
            path: Raw (not yet percent-encoded) object path starting with '/'.
            query_string: Raw query string.
            headers: Headers to sign.
            body: Request body; ignored when ``payload_hash`` is given.
            payload_hash: Precomputed payload hash.

        Raises:
            InvalidRequest: On a malformed method, path, header or body.
        """
        if not method or not _METHOD_RE.fullmatch(method):
            raise InvalidRequest(f"Invalid HTTP method: {method!r}")

        lower_headers = _canonical_header_map(headers or {})
        names = sorted(lower_headers)

        return cls(
            method=method.upper(),
            uri=uri_encode_path(path),
            query=canonical_query_string(query_string),
            headers="".join(f"{name}:{lower_headers[name]}\n" for name in names),
            signed_headers=";".join(names),
            payload_hash=payload_hash if payload_hash is not None else hex_hash(body),
        )

    def render(self) -> str:
        """Return the canonical request string."""
        return "\n".join(
            [
                self.method,
                self.uri,
                self.query,
                self.headers,
                self.signed_headers,
                self.payload_hash,
            ]
        )


# ---------------------------------------------------------------------------
# Key derivation and signature
# ---------------------------------------------------------------------------


def credential_scope(day: str, region: str, service: str = SERVICE_NAME) -> str:
    """Return ``day/region/service/aws4_request``."""
    return "/".join([day, region, service, SCOPE_TERMINATOR])


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(
    secret_key: str, day: str, region: str, service: str = SERVICE_NAME
) -> bytes:
    """Derive the SigV4 signing key via the HMAC-SHA256 chain.

    The key is only valid for the exact (day, region, service) it was
    derived for; callers derive a fresh one per signing operation.

    Args:
        secret_key: The secret access key.
        day: Date string (YYYYMMDD).
        region: AWS region.
        service: AWS service name.

    Returns:
        The 32-byte signing key.
    """
    k_date = _hmac_sha256((KEY_PREFIX + secret_key).encode("utf-8"), day)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, service)
    return _hmac_sha256(k_service, SCOPE_TERMINATOR)


def build_string_to_sign(date_time: str, scope: str, canonical_request: str) -> str:
    """Build the string to sign.

    Args:
        date_time: Timestamp (YYYYMMDDTHHMMSSZ).
        scope: Credential scope (YYYYMMDD/region/s3/aws4_request).
        canonical_request: The rendered canonical request.
    """
    canonical_hash = hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()
    return f"{ALGORITHM}\n{date_time}\n{scope}\n{canonical_hash}"


def compute_signature(signing_key: bytes, string_to_sign: str) -> str:
    """Compute the final HMAC-SHA256 signature as 64 lowercase hex characters."""
    return hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()


def sign_canonical_request(
    secret_key: str,
    region: str,
    now: datetime,
    canonical_request: str,
    service: str = SERVICE_NAME,
) -> str:
    """Run key derivation and signature computation for one captured instant.

    The scope day and the string-to-sign timestamp both come from ``now``.
    """
    day = basic_date(now)
    string_to_sign = build_string_to_sign(
        basic_date_time(now), credential_scope(day, region, service), canonical_request
    )
    return compute_signature(derive_signing_key(secret_key, day, region, service), string_to_sign)
