"""Prometheus metrics definitions for s3direct.

All metrics use the ``s3direct_`` prefix for namespace isolation. They are
registered lazily by :func:`init_metrics`; until then the recording helpers
are no-ops and nothing is added to the global registry.
"""

from __future__ import annotations

from prometheus_client import Counter

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

# ---------------------------------------------------------------------------
# Signing counter  (labels: operation)
# ---------------------------------------------------------------------------
signing_operations_total: Counter | None = None

# ---------------------------------------------------------------------------
# Direct store requests  (labels: method, status)
# ---------------------------------------------------------------------------
store_requests_total: Counter | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics.

    Safe to call more than once; only the first call registers collectors.
    """
    global _initialized
    global signing_operations_total, store_requests_total

    if _initialized:
        return

    signing_operations_total = Counter(
        "s3direct_signing_operations_total",
        "Total signed artifacts produced, by operation",
        ["operation"],
    )

    store_requests_total = Counter(
        "s3direct_store_requests_total",
        "Total direct requests sent to the object store, by method and status",
        ["method", "status"],
    )

    _initialized = True


def record_signing(operation: str) -> None:
    """Count one signing operation (presign, authorize, policy)."""
    if signing_operations_total is not None:
        signing_operations_total.labels(operation=operation).inc()


def record_store_request(method: str, status: int | str) -> None:
    """Count one direct store request by its outcome."""
    if store_requests_total is not None:
        store_requests_total.labels(method=method, status=str(status)).inc()
