"""
Synthetic alert generator.

Priorities are drawn with Low 70%, Medium 20%, High 9.9% and Critical 0.1%;
80% of alerts are cleared; createdAt is uniform over the 365 days before
``now``. The clock and the random source are injectable so runs can be
reproduced.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterable, Iterator
from datetime import datetime, timedelta, timezone
from itertools import islice

from pymongo.collection import Collection
from pymongo.database import Database

from alertdb.config import ALERTS_COLLECTION, GENERATOR_BATCH_SIZE
from alertdb.db import alerts_collection
from alertdb.models import CRITICAL, HIGH, LOW, MEDIUM, Alert

logger = logging.getLogger(__name__)

CLEARED_PROBABILITY = 0.8
LOOKBACK = timedelta(days=365)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def random_priority(rng: random.Random) -> str:
    rand = rng.random()
    if rand < 0.70:
        return LOW
    elif rand < 0.90:
        return MEDIUM
    elif rand < 0.999:
        return HIGH
    return CRITICAL


def random_cleared(rng: random.Random) -> bool:
    return rng.random() < CLEARED_PROBABILITY


def random_created_at(rng: random.Random, now: datetime) -> datetime:
    past = now - LOOKBACK
    return past + (now - past) * rng.random()


def generate_alerts(
    count: int,
    rng: random.Random | None = None,
    now: Callable[[], datetime] = utcnow,
) -> Iterator[Alert]:
    """Yield ``count`` random alerts named "Alert 1", "Alert 2", ..."""
    rng = rng or random.Random()
    run_time = now()
    for i in range(count):
        yield Alert(
            name=f"Alert {i + 1}",
            priority=random_priority(rng),
            created_at=random_created_at(rng, run_time),
            cleared=random_cleared(rng),
        )


def insert_alerts(
    collection: Collection,
    alerts: Iterable[Alert],
    batch_size: int = GENERATOR_BATCH_SIZE,
) -> int:
    """Insert alerts in unordered batches of ``batch_size``. Returns the number inserted."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    total = 0
    alerts = iter(alerts)
    while True:
        batch = [alert.to_document() for alert in islice(alerts, batch_size)]
        if not batch:
            break
        result = collection.insert_many(batch, ordered=False)
        total += len(result.inserted_ids)
        logger.debug("Inserted batch of %d alerts (%d total)", len(batch), total)
    return total


def reset_alerts(db: Database, name: str = ALERTS_COLLECTION) -> None:
    """Drop the alerts collection so a fresh sample can be generated."""
    logger.info("Dropping collection %s", name)
    db.drop_collection(name)


def seed_alerts(
    db: Database,
    count: int,
    rng: random.Random | None = None,
    now: Callable[[], datetime] = utcnow,
    batch_size: int = GENERATOR_BATCH_SIZE,
    drop: bool = True,
) -> int:
    if count < 0:
        raise ValueError(f"count must not be negative, got {count}")
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    if drop:
        reset_alerts(db)
    inserted = insert_alerts(alerts_collection(db), generate_alerts(count, rng, now), batch_size)
    logger.info("Inserted %d sample documents into the '%s' collection.", inserted, ALERTS_COLLECTION)
    return inserted
