"""Log output setup for s3direct: text or single-line JSON on stderr.

Signed URLs and Authorization headers end up in log messages at DEBUG
level; :class:`SignatureRedactor` masks the signature part so a log line is
never a usable credential.
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Record attributes copied into JSON output when a caller passes them via extra=
CONTEXT_FIELDS = ("operation", "method", "path", "status", "bucket")

_SIGNATURE_RE = re.compile(r"((?:X-Amz-)?Signature=)[0-9a-f]{64}")


def redact(text: str) -> str:
    """Replace 64-hex-digit SigV4 signatures in ``text`` with ``<redacted>``."""
    return _SIGNATURE_RE.sub(r"\1<redacted>", text)


class SignatureRedactor(logging.Filter):
    """Rewrites a record's message with signatures masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = redact(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, context."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}
        )
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", fmt: str = "text") -> logging.Handler:
    """Route all logging to stderr in the requested format.

    Replaces any handlers already on the root logger.

    Args:
        level: Log level name; unknown names fall back to INFO.
        fmt: 'text' or 'json'.

    Returns:
        The installed handler.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.addFilter(SignatureRedactor())
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.setLevel(numeric_level)
    root.addHandler(handler)
    return handler
