"""Prometheus metrics collection for vector record stores.

Record operations (get, upsert, delete and their batch variants) and
collection operations (create, delete, exists, list) are counted per backend,
and record operations are timed. All collectors live in the default registry.
"""

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from prometheus_client import REGISTRY, Counter, Histogram

# Record operation metrics
vector_record_operations_total = Counter(
    "vector_record_operations_total",
    "Total number of vector record operations by status",
    ["backend", "collection", "operation", "status"],
)

vector_record_operation_duration_seconds = Histogram(
    "vector_record_operation_duration_seconds",
    "Time taken by vector record operations",
    ["backend", "operation"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10],
)

vector_records_processed_total = Counter(
    "vector_records_processed_total",
    "Total number of records read, written or deleted",
    ["backend", "operation"],
)

# Collection operation metrics
vector_collection_operations_total = Counter(
    "vector_collection_operations_total",
    "Total number of vector collection operations by status",
    ["backend", "operation", "status"],
)


def record_record_operation(
    backend: str,
    collection: str,
    operation: str,
    duration_seconds: float,
    success: bool = True,
    record_count: int = 0,
) -> None:
    """Record metrics for a single record operation.

    Args:
        backend: Vector store backend name
        collection: Collection name
        operation: Operation name (get, get_batch, upsert, ...)
        duration_seconds: Operation duration
        success: Whether the operation succeeded
        record_count: Number of records the operation touched
    """
    status = "success" if success else "error"
    vector_record_operations_total.labels(
        backend=backend, collection=collection, operation=operation, status=status
    ).inc()
    vector_record_operation_duration_seconds.labels(
        backend=backend, operation=operation
    ).observe(duration_seconds)
    if success and record_count:
        vector_records_processed_total.labels(
            backend=backend, operation=operation
        ).inc(record_count)


def record_collection_operation(
    backend: str, operation: str, success: bool = True, status: Optional[str] = None
) -> None:
    """Record a collection level operation (create, delete, exists, list).

    ``status`` overrides the success/error label, e.g. "exists" for a create
    that found the collection already present.
    """
    if status is None:
        status = "success" if success else "error"
    vector_collection_operations_total.labels(
        backend=backend, operation=operation, status=status
    ).inc()


@contextmanager
def track_record_operation(
    backend: str, collection: str, operation: str, record_count: int = 0
) -> Iterator[None]:
    """Time the enclosed block and record it as a record operation.

    Example:
        with track_record_operation("redis", "hotels", "upsert_batch", 10):
            await client.json().mset(...)
    """
    start_time = time.time()
    try:
        yield
    except BaseException:
        record_record_operation(
            backend, collection, operation, time.time() - start_time, success=False
        )
        raise
    record_record_operation(
        backend,
        collection,
        operation,
        time.time() - start_time,
        success=True,
        record_count=record_count,
    )


def get_metrics_summary() -> Dict[str, Any]:
    """Get a summary of current vector store metrics for debugging/monitoring.

    Returns:
        Dictionary containing current metric values
    """
    summary = {}

    for metric_family in REGISTRY.collect():
        metric_name = metric_family.name
        if metric_name.startswith("vector_record") or metric_name.startswith(
            "vector_collection"
        ):
            summary[metric_name] = {
                "type": metric_family.type,
                "help": metric_family.documentation,
                "samples": [],
            }
            for sample in metric_family.samples:
                summary[metric_name]["samples"].append(
                    {
                        "name": sample.name,
                        "labels": sample.labels,
                        "value": sample.value,
                    }
                )

    return summary


def reset_metrics() -> None:
    """Reset all vector store metrics.

    WARNING: This should only be used in testing environments.
    """
    for collector in (
        vector_record_operations_total,
        vector_record_operation_duration_seconds,
        vector_records_processed_total,
        vector_collection_operations_total,
    ):
        collector.clear()
