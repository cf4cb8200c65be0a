"""Prometheus metrics for the score archive service.

Counts how uploads and downloads end, so a dashboard can tell "users keep
picking the wrong file" (``payload_not_mxl_zip``) apart from "the storage
layer changed shape" (``unsupported_encoding``).

Metrics:
    mxl_ingest_total                    Counter of uploads by status (stored / error code)
    mxl_retrieval_total                 Counter of downloads by status (served / error code)
    mxl_artifact_bytes                  Histogram of archive sizes by direction (ingest/retrieval)
    mxl_zip_integrity_failures_total    Archives failing the EOCD check, by stage
    mxl_request_latency_seconds         Histogram of route latency by operation

Usage::

    from infrastructure.metrics import LatencyTimer, record_ingest

    with LatencyTimer() as t:
        result = ingest_base64(text)
    record_ingest(status="stored", size_bytes=result.byte_length, latency_seconds=t.elapsed)
"""

from __future__ import annotations

import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_REGISTRY = CollectorRegistry()

# 1 KiB .. 16 MiB, score archives cluster around 10-500 KiB
_SIZE_BUCKETS = [1024.0 * 2**i for i in range(0, 15, 2)]

ingest_total = Counter(
    "mxl_ingest_total",
    "Archive uploads by outcome",
    ["status"],
    registry=_REGISTRY,
)

retrieval_total = Counter(
    "mxl_retrieval_total",
    "Archive downloads by outcome",
    ["status"],
    registry=_REGISTRY,
)

artifact_bytes = Histogram(
    "mxl_artifact_bytes",
    "Decoded archive size in bytes",
    ["direction"],
    buckets=_SIZE_BUCKETS,
    registry=_REGISTRY,
)

zip_integrity_failures_total = Counter(
    "mxl_zip_integrity_failures_total",
    "Archives whose EOCD record is missing or truncated",
    ["stage"],
    registry=_REGISTRY,
)

request_latency_seconds = Histogram(
    "mxl_request_latency_seconds",
    "Route latency in seconds",
    ["operation"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
    registry=_REGISTRY,
)


def record_ingest(
    *,
    status: str,
    size_bytes: int | None = None,
    latency_seconds: float | None = None,
) -> None:
    """Record a finished upload.

    Args:
        status: ``"stored"`` or the error code returned to the client.
        size_bytes: Decoded archive size, when decoding got that far.
        latency_seconds: Wall-clock time of the request.
    """
    ingest_total.labels(status=status).inc()
    if size_bytes is not None:
        artifact_bytes.labels(direction="ingest").observe(size_bytes)
    if latency_seconds is not None:
        request_latency_seconds.labels(operation="ingest").observe(latency_seconds)


def record_retrieval(
    *,
    status: str,
    size_bytes: int | None = None,
    latency_seconds: float | None = None,
) -> None:
    """Record a finished download.

    Args:
        status: ``"served"`` or the error code returned to the client.
        size_bytes: Served archive size.
        latency_seconds: Wall-clock time of the request.
    """
    retrieval_total.labels(status=status).inc()
    if size_bytes is not None:
        artifact_bytes.labels(direction="retrieval").observe(size_bytes)
    if latency_seconds is not None:
        request_latency_seconds.labels(operation="retrieval").observe(latency_seconds)


def record_integrity_failure(stage: str) -> None:
    """Increment the EOCD failure counter.

    Args:
        stage: ``"ingest"`` or ``"retrieval"``.
    """
    zip_integrity_failures_total.labels(stage=stage).inc()


def get_metrics_response() -> tuple[bytes, str]:
    """Generate Prometheus text exposition format.

    Returns:
        Tuple of (body_bytes, content_type_string).
    """
    return generate_latest(_REGISTRY), CONTENT_TYPE_LATEST


class LatencyTimer:
    """Context manager for measuring latency.

    Usage::

        with LatencyTimer() as t:
            result = retrieve(stored.song_mxl, stored.song_title)
        record_retrieval(status="served", latency_seconds=t.elapsed)
    """

    def __init__(self) -> None:
        """Initialize timer."""
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> LatencyTimer:
        """Start timing."""
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_: object) -> None:
        """Stop timing and record elapsed."""
        self.elapsed = time.perf_counter() - self._start
