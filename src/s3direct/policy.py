"""Signed POST policies for browser-direct uploads.

The browser sends the returned fields as multipart form data straight to
the bucket. The store itself enforces the signed conditions (key prefix,
private ACL, size limit), so nothing here re-validates them.

References:
    - https://docs.aws.amazon.com/AmazonS3/latest/API/sigv4-HTTPPOSTConstructPolicy.html
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from s3direct import metrics
from s3direct.config import S3Config
from s3direct.signing import ALGORITHM, compute_signature, credential_scope, derive_signing_key
from s3direct.timeutil import basic_date, basic_date_time, iso_date_time, utc_now

logger = logging.getLogger(__name__)

POLICY_TTL = timedelta(minutes=5)
UPLOAD_ACL = "private"
MAX_UPLOAD_BYTES = 500 * 1024 * 1024  # 524288000


@dataclass(frozen=True)
class UploadAuth:
    """The signed part of an upload policy."""

    policy: str
    key: str
    signature: str
    credential: str
    date: str


@dataclass(frozen=True)
class UploadPolicy:
    """Everything a browser needs to POST a file to the bucket."""

    bucket: str
    region: str
    auth: UploadAuth

    def as_dict(self) -> dict[str, Any]:
        """Return ``{bucket, region, auth: {policy, key, signature, credential, date}}``."""
        return {
            "bucket": self.bucket,
            "region": self.region,
            "auth": {
                "policy": self.auth.policy,
                "key": self.auth.key,
                "signature": self.auth.signature,
                "credential": self.auth.credential,
                "date": self.auth.date,
            },
        }

    def form_fields(self, key: str) -> dict[str, str]:
        """Multipart form fields for uploading to ``key``.

        ``key`` must satisfy the policy's starts-with condition. The file
        field and ``Content-Type`` are added by the uploader.
        """
        return {
            "key": key,
            "acl": UPLOAD_ACL,
            "policy": self.auth.policy,
            "x-amz-algorithm": ALGORITHM,
            "x-amz-credential": self.auth.credential,
            "x-amz-date": self.auth.date,
            "x-amz-signature": self.auth.signature,
        }


def policy_document(
    bucket: str, starts_with: str, credential: str, now: datetime
) -> dict[str, Any]:
    """Build the policy JSON document, expiring :data:`POLICY_TTL` after ``now``."""
    return {
        "expiration": iso_date_time(now + POLICY_TTL),
        "conditions": [
            {"bucket": bucket},
            ["starts-with", "$key", starts_with],
            {"acl": UPLOAD_ACL},
            ["starts-with", "$Content-Type", ""],
            ["content-length-range", 0, MAX_UPLOAD_BYTES],
            {"x-amz-algorithm": ALGORITHM},
            {"x-amz-credential": credential},
            {"x-amz-date": basic_date_time(now)},
        ],
    }


def generate_upload_policy(
    config: S3Config, starts_with: str, now: datetime | None = None
) -> UploadPolicy | None:
    """Generate a signed upload policy restricted to keys under ``starts_with``.

    Args:
        config: Store configuration.
        starts_with: Prefix every uploaded key must start with.
        now: Signing instant. Defaults to a single read of the UTC clock.

    Returns:
        The policy bundle, or None when no secret key is configured
        (direct uploads disabled).
    """
    if not config.has_secret:
        logger.debug("No secret key configured; upload policies disabled")
        return None

    now = utc_now() if now is None else now
    day = basic_date(now)
    credential = f"{config.access_key}/{credential_scope(day, config.region)}"

    document = policy_document(config.bucket, starts_with, credential, now)
    encoded = base64.b64encode(
        json.dumps(document, separators=(",", ":")).encode("utf-8")
    ).decode("ascii")

    # The signature covers the base64 text, not the JSON.
    signing_key = derive_signing_key(config.secret_key, day, config.region)
    signature = compute_signature(signing_key, encoded)

    metrics.record_signing("policy")
    logger.debug("Generated upload policy for prefix %r", starts_with)
    return UploadPolicy(
        bucket=config.bucket,
        region=config.region,
        auth=UploadAuth(
            policy=encoded,
            key=config.access_key,
            signature=signature,
            credential=credential,
            date=basic_date_time(now),
        ),
    )
