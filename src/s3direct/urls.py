"""Store host names, object URLs and path extraction from stored URLs."""

import re

from s3direct.config import S3Config
from s3direct.signing import uri_encode_path

HTTPS_PORT = 443

# Legacy path-style: bucket is the first path segment after the domain
_PATH_STYLE_RE = re.compile(r"https://s3\.amazonaws\.com/[^/]+(/.*)")
# Virtual-hosted style: bucket is part of the host name
_VIRTUAL_HOSTED_RE = re.compile(r"https://.+\.amazonaws\.com(/.*)")


def s3_host(config: S3Config) -> str:
    """Return the virtual-hosted host name, ``<bucket>.s3.<region>.amazonaws.com``."""
    if config.endpoint_host:
        return config.endpoint_host
    return f"{config.bucket}.s3.{config.region}.amazonaws.com"


def object_url(config: S3Config, path: str) -> str:
    """Return the unsigned https URL of the object at ``path``."""
    return f"https://{s3_host(config)}{uri_encode_path(path)}"


def upload_url_path(url: str | None) -> str | None:
    """Extract the object path from a stored S3 URL.

    Both ``https://s3.amazonaws.com/<bucket>/<path>`` and
    ``https://<bucket>.s3.<region>.amazonaws.com/<path>`` are recognised.

    Returns:
        The path including its leading '/', or None when ``url`` is None
        or is not an S3 URL.
    """
    if url is None:
        return None
    for pattern in (_PATH_STYLE_RE, _VIRTUAL_HOSTED_RE):
        match = pattern.fullmatch(url)
        if match:
            return match.group(1)
    return None
