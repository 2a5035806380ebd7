"""UTC clock access and the fixed date formats used by SigV4.

Every signing operation reads the clock once through :func:`utc_now` and
passes that value to the formatters below, so the credential scope day, the
``X-Amz-Date`` value and any policy expiration always agree.
"""

from datetime import datetime, timezone

BASIC_DATE_FORMAT = "%Y%m%d"
BASIC_DATE_TIME_FORMAT = "%Y%m%dT%H%M%SZ"
ISO_DATE_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.000Z"


def utc_now() -> datetime:
    """Return the current instant as an aware UTC datetime (whole seconds)."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def _as_utc(now: datetime) -> datetime:
    if now.tzinfo is None:
        raise ValueError("naive datetime given; signing requires an aware UTC instant")
    return now.astimezone(timezone.utc)


def basic_date(now: datetime) -> str:
    """Render ``now`` as ``YYYYMMDD`` (credential scope day)."""
    return _as_utc(now).strftime(BASIC_DATE_FORMAT)


def basic_date_time(now: datetime) -> str:
    """Render ``now`` as ``YYYYMMDDTHHMMSSZ`` (``X-Amz-Date``)."""
    return _as_utc(now).strftime(BASIC_DATE_TIME_FORMAT)


def iso_date_time(now: datetime) -> str:
    """Render ``now`` as ISO-8601 UTC with milliseconds, e.g. ``2024-01-15T12:00:00.000Z``."""
    return _as_utc(now).strftime(ISO_DATE_TIME_FORMAT)


def parse_basic_date_time(value: str) -> datetime:
    """Parse an ``X-Amz-Date`` value back into an aware UTC datetime.

    Raises:
        ValueError: If ``value`` is not in ``YYYYMMDDTHHMMSSZ`` form.
    """
    return datetime.strptime(value, BASIC_DATE_TIME_FORMAT).replace(tzinfo=timezone.utc)
