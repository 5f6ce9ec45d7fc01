from datetime import datetime, timedelta

import mongomock
import pytest

from alertdb.models import Alert

BASE_TIME = datetime(2024, 6, 1, 12, 0, 0)


@pytest.fixture
def mongo_db():
    client = mongomock.MongoClient()
    return client["alertdb_test"]


def make_alert(
    i: int,
    priority: str = "High",
    cleared: bool = False,
    created_at: datetime | None = None,
) -> Alert:
    return Alert(
        name=f"Alert {i}",
        priority=priority,
        created_at=created_at or BASE_TIME + timedelta(seconds=i),
        cleared=cleared,
    )
