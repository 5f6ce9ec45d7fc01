"""Reading precomputed documents from the dashboard collection."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Any

from pymongo.database import Database

from alertdb.bucketing import bucket_id
from alertdb.config import PRIORITY_BUCKET_PREFIX, RECENT_DOCUMENT_ID, RECENT_LIMIT
from alertdb.db import dashboard_collection
from alertdb.models import Alert

logger = logging.getLogger(__name__)


def build_recent(alerts: Iterable[Alert], limit: int = RECENT_LIMIT) -> dict[str, Any]:
    """In-memory counterpart of the top25 pipeline: uncleared alerts, newest first."""
    uncleared = [alert for alert in alerts if not alert.cleared]
    newest = sorted(uncleared, key=lambda alert: alert.created_at, reverse=True)[:limit]
    return {"_id": RECENT_DOCUMENT_ID, "values": [alert.to_document() for alert in newest]}


def get_recent_alerts(db: Database) -> list[dict[str, Any]]:
    doc = dashboard_collection(db).find_one({"_id": RECENT_DOCUMENT_ID})
    if doc is None:
        return []
    return doc.get("values", [])


def get_priority_alerts(db: Database, bucket_index: int) -> tuple[list[dict[str, Any]], int]:
    """Return the values and count of one priority bucket, or ``([], 0)`` if it does not exist."""
    doc = dashboard_collection(db).find_one({"_id": bucket_id(bucket_index)})
    if doc is None:
        logger.debug("No priority bucket %d", bucket_index)
        return [], 0
    return doc.get("values", []), doc.get("count", 0)


def get_priority_alerts_count(db: Database) -> int:
    """Number of priority bucket documents."""
    query = {"_id": {"$regex": f"^{re.escape(PRIORITY_BUCKET_PREFIX)}"}}
    return dashboard_collection(db).count_documents(query)


def get_latest_priority_alerts(db: Database) -> tuple[list[dict[str, Any]], int]:
    """
    Values of the newest bucket, newest alert first.

    Buckets are stored oldest first, so the initial dashboard view reads the
    last bucket and flips it.
    """
    bucket_count = get_priority_alerts_count(db)
    if bucket_count == 0:
        return [], 0
    values, count = get_priority_alerts(db, bucket_count - 1)
    return list(reversed(values)), count
