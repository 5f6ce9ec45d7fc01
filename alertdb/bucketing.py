"""
Priority bucketing of alerts.

Uncleared High and Critical alerts are sorted oldest first, numbered from 1
and cut into fixed-size buckets. Each bucket becomes one dashboard document::

    {"_id": "priority_bucket_0", "values": [...], "count": 5000}

Every function here works on in-memory sequences; writing the documents is
left to alertdb.store.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from itertools import groupby
from typing import Any

from alertdb.config import PRIORITY_BUCKET_PREFIX, PRIORITY_BUCKET_SIZE
from alertdb.models import DASHBOARD_PRIORITIES, Alert


def is_priority_alert(alert: Alert) -> bool:
    return not alert.cleared and alert.priority in DASHBOARD_PRIORITIES


def filter_alerts(alerts: Iterable[Alert]) -> list[Alert]:
    return [alert for alert in alerts if is_priority_alert(alert)]


def sort_alerts(alerts: Iterable[Alert]) -> list[Alert]:
    """Sort by createdAt ascending. Equal timestamps keep their input order."""
    return sorted(alerts, key=lambda alert: alert.created_at)


def rank_alerts(alerts: Iterable[Alert]) -> Iterator[tuple[int, Alert]]:
    return enumerate(alerts, start=1)


def check_bucket_size(bucket_size: int) -> None:
    if bucket_size < 1:
        raise ValueError(f"bucket_size must be positive, got {bucket_size}")


def bucket_number(rank: int, bucket_size: int = PRIORITY_BUCKET_SIZE) -> int:
    """Map a 1-based rank to its bucket: ranks 1..size go to 0, and so on."""
    check_bucket_size(bucket_size)
    if rank < 1:
        raise ValueError(f"rank must be 1 or greater, got {rank}")
    return (rank - 1) // bucket_size


def bucket_id(number: int) -> str:
    return f"{PRIORITY_BUCKET_PREFIX}{number}"


def project_alert(alert: Alert) -> dict[str, Any]:
    return alert.to_document()


def group_buckets(
    ranked: Iterable[tuple[int, Alert]],
    bucket_size: int = PRIORITY_BUCKET_SIZE,
) -> list[dict[str, Any]]:
    """
    Group ranked alerts into bucket documents.

    The ranks must arrive in increasing order, which rank_alerts guarantees.
    """
    buckets = []
    keyed = ((bucket_number(rank, bucket_size), alert) for rank, alert in ranked)
    for number, members in groupby(keyed, key=lambda item: item[0]):
        values = [project_alert(alert) for _, alert in members]
        buckets.append({"_id": bucket_id(number), "values": values, "count": len(values)})
    return buckets


def build_buckets(
    alerts: Iterable[Alert],
    bucket_size: int = PRIORITY_BUCKET_SIZE,
) -> list[dict[str, Any]]:
    """Filter, sort, rank and group alerts into bucket documents."""
    check_bucket_size(bucket_size)
    ordered = sort_alerts(filter_alerts(alerts))
    return group_buckets(rank_alerts(ordered), bucket_size)
