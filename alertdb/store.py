"""Writing priority buckets and the recent-alerts document to the dashboard collection."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from pymongo import ASCENDING, DESCENDING, ReplaceOne
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from alertdb.bucketing import build_buckets, check_bucket_size
from alertdb.config import PRIORITY_BUCKET_PREFIX, PRIORITY_BUCKET_SIZE, RECENT_LIMIT
from alertdb.dashboard import build_recent
from alertdb.db import alerts_collection, dashboard_collection
from alertdb.exceptions import MalformedAlertError, StoreError
from alertdb.models import DASHBOARD_PRIORITIES, Alert

logger = logging.getLogger(__name__)

PRIORITY_FILTER = {
    "cleared": False,
    "priority": {"$in": list(DASHBOARD_PRIORITIES)},
}


@dataclass
class RefreshResult:
    alerts_read: int = 0
    skipped: int = 0
    buckets: int = 0
    upserted: int = 0
    replaced: int = 0
    pruned: int = 0


def upsert_buckets(collection: Collection, buckets: Iterable[dict[str, Any]]) -> tuple[int, int]:
    """
    Replace each bucket document by ``_id``, inserting it when absent.

    Returns ``(matched, upserted)``. Nothing is written for an empty input.
    """
    requests = [ReplaceOne({"_id": bucket["_id"]}, bucket, upsert=True) for bucket in buckets]
    if not requests:
        return 0, 0
    result = collection.bulk_write(requests, ordered=True)
    return result.matched_count, result.upserted_count


def delete_bucket(collection: Collection, bucket_id: str) -> bool:
    return collection.delete_one({"_id": bucket_id}).deleted_count == 1


def prune_buckets(collection: Collection, keep: int) -> int:
    """Delete priority buckets numbered ``keep`` or higher."""
    stale = []
    cursor = collection.find({"_id": {"$regex": f"^{re.escape(PRIORITY_BUCKET_PREFIX)}"}}, {"_id": 1})
    for doc in cursor:
        suffix = doc["_id"][len(PRIORITY_BUCKET_PREFIX):]
        if suffix.isdigit() and int(suffix) >= keep:
            stale.append(doc["_id"])
    if not stale:
        return 0
    return collection.delete_many({"_id": {"$in": stale}}).deleted_count


def load_priority_alerts(collection: Collection, result: RefreshResult | None = None) -> list[Alert]:
    """
    Read uncleared High/Critical alerts oldest first.

    Ties on createdAt are broken by ``_id`` so repeated reads return the same
    order. Malformed documents are logged and skipped.
    """
    alerts = []
    cursor = collection.find(PRIORITY_FILTER).sort([("createdAt", ASCENDING), ("_id", ASCENDING)])
    for doc in cursor:
        try:
            alerts.append(Alert.from_document(doc))
        except MalformedAlertError as e:
            logger.warning("Skipping alert %s: %s", e.details.get("_id"), e.message)
            if result is not None:
                result.skipped += 1
    if result is not None:
        result.alerts_read = len(alerts)
    return alerts


def refresh_priority_buckets(
    db: Database,
    bucket_size: int = PRIORITY_BUCKET_SIZE,
    prune: bool = True,
) -> RefreshResult:
    """
    Rebuild the ``priority_bucket_<n>`` documents from the alerts collection.

    Each bucket write is an idempotent replace, so rerunning after a failure
    is safe. With ``prune`` buckets beyond the new last one are deleted.
    """
    check_bucket_size(bucket_size)
    result = RefreshResult()
    try:
        alerts = load_priority_alerts(alerts_collection(db), result)
        buckets = build_buckets(alerts, bucket_size)
        dashboard = dashboard_collection(db)
        result.buckets = len(buckets)
        result.replaced, result.upserted = upsert_buckets(dashboard, buckets)
        if prune:
            result.pruned = prune_buckets(dashboard, keep=len(buckets))
    except PyMongoError as e:
        raise StoreError(f"Refreshing priority buckets failed: {e}") from e

    logger.info(
        "Priority buckets refreshed: %d alerts, %d buckets (%d replaced, %d inserted, %d pruned, %d skipped)",
        result.alerts_read,
        result.buckets,
        result.replaced,
        result.upserted,
        result.pruned,
        result.skipped,
    )
    return result


def refresh_recent_alerts(db: Database, limit: int = RECENT_LIMIT) -> int:
    """
    Rebuild the ``top25`` document in Python instead of with the top25 pipeline.

    Returns the number of alerts stored. Malformed documents are skipped.
    """
    if limit < 1:
        raise ValueError(f"limit must be positive, got {limit}")
    alerts = []
    try:
        cursor = alerts_collection(db).find({"cleared": False}).sort(
            [("createdAt", DESCENDING), ("_id", ASCENDING)]
        ).limit(limit)
        for doc in cursor:
            try:
                alerts.append(Alert.from_document(doc))
            except MalformedAlertError as e:
                logger.warning("Skipping alert %s: %s", e.details.get("_id"), e.message)
        doc = build_recent(alerts, limit)
        dashboard_collection(db).replace_one({"_id": doc["_id"]}, doc, upsert=True)
    except PyMongoError as e:
        raise StoreError(f"Refreshing recent alerts failed: {e}") from e

    logger.info("Recent alerts refreshed: %d alerts", len(doc["values"]))
    return len(doc["values"])
