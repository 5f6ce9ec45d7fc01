from datetime import timedelta

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from alertdb.exceptions import StoreError
from alertdb.store import (
    delete_bucket,
    load_priority_alerts,
    prune_buckets,
    refresh_priority_buckets,
    RefreshResult,
    refresh_recent_alerts,
    upsert_buckets,
)
from conftest import BASE_TIME, make_alert


def _seed(db, alerts) -> None:
    db["alerts"].insert_many([alert.to_document() for alert in alerts])


def _dashboard_state(db):
    return sorted(db["dashboard"].find({}), key=lambda doc: doc["_id"])


def test_upsert_inserts_then_replaces(mongo_db) -> None:
    dashboard = mongo_db["dashboard"]
    first = {"_id": "priority_bucket_0", "values": [{"name": "a"}], "count": 1}

    assert upsert_buckets(dashboard, [first]) == (0, 1)

    second = {"_id": "priority_bucket_0", "values": [], "count": 0}
    assert upsert_buckets(dashboard, [second]) == (1, 0)
    assert list(dashboard.find({})) == [second]


def test_upsert_of_nothing_writes_nothing() -> None:
    class NoWrites:
        def bulk_write(self, *args, **kwargs):
            raise AssertionError("bulk_write should not be called")

    assert upsert_buckets(NoWrites(), []) == (0, 0)


def test_delete_bucket(mongo_db) -> None:
    dashboard = mongo_db["dashboard"]
    dashboard.insert_one({"_id": "priority_bucket_0"})
    assert delete_bucket(dashboard, "priority_bucket_0") is True
    assert delete_bucket(dashboard, "priority_bucket_0") is False


def test_prune_only_removes_higher_buckets(mongo_db) -> None:
    dashboard = mongo_db["dashboard"]
    dashboard.insert_many(
        [{"_id": f"priority_bucket_{n}"} for n in range(4)]
        + [{"_id": "top25"}, {"_id": "priority"}]
    )

    assert prune_buckets(dashboard, keep=2) == 2
    assert sorted(doc["_id"] for doc in dashboard.find({})) == [
        "priority",
        "priority_bucket_0",
        "priority_bucket_1",
        "top25",
    ]


def test_load_skips_malformed_documents(mongo_db) -> None:
    _seed(mongo_db, [make_alert(1), make_alert(2, "Critical")])
    mongo_db["alerts"].insert_one({"name": "broken", "priority": "High", "cleared": False})

    result = RefreshResult()
    alerts = load_priority_alerts(mongo_db["alerts"], result)

    assert [a.name for a in alerts] == ["Alert 1", "Alert 2"]
    assert result.alerts_read == 2
    assert result.skipped == 1


def test_load_orders_by_created_at(mongo_db) -> None:
    _seed(mongo_db, [make_alert(3), make_alert(1), make_alert(2), make_alert(4, "Low")])
    assert [a.name for a in load_priority_alerts(mongo_db["alerts"])] == ["Alert 1", "Alert 2", "Alert 3"]


def test_refresh_writes_buckets(mongo_db) -> None:
    _seed(mongo_db, [make_alert(i) for i in range(12)] + [make_alert(99, cleared=True)])

    result = refresh_priority_buckets(mongo_db, bucket_size=5)

    assert result.alerts_read == 12
    assert result.buckets == 3
    assert result.upserted == 3
    state = _dashboard_state(mongo_db)
    assert [doc["_id"] for doc in state] == ["priority_bucket_0", "priority_bucket_1", "priority_bucket_2"]
    assert [doc["count"] for doc in state] == [5, 5, 2]
    assert state[0]["values"][0] == make_alert(0).to_document()


def test_refresh_is_idempotent(mongo_db) -> None:
    _seed(mongo_db, [make_alert(i, "Critical" if i % 2 else "High") for i in range(9)])

    refresh_priority_buckets(mongo_db, bucket_size=4)
    first = _dashboard_state(mongo_db)
    result = refresh_priority_buckets(mongo_db, bucket_size=4)

    assert _dashboard_state(mongo_db) == first
    assert result.replaced == 3
    assert result.upserted == 0
    assert result.pruned == 0


def test_refresh_prunes_stale_buckets(mongo_db) -> None:
    _seed(mongo_db, [make_alert(i) for i in range(10)])
    refresh_priority_buckets(mongo_db, bucket_size=5)

    mongo_db["alerts"].delete_many({"name": {"$in": [f"Alert {i}" for i in range(5, 10)]}})
    result = refresh_priority_buckets(mongo_db, bucket_size=5)

    assert result.pruned == 1
    assert [doc["_id"] for doc in _dashboard_state(mongo_db)] == ["priority_bucket_0"]


def test_refresh_of_empty_input_writes_nothing(mongo_db) -> None:
    _seed(mongo_db, [make_alert(1, "Low"), make_alert(2, "Medium", created_at=BASE_TIME - timedelta(days=1))])

    result = refresh_priority_buckets(mongo_db)

    assert result.buckets == 0
    assert mongo_db["dashboard"].count_documents({}) == 0


def test_refresh_wraps_connection_errors() -> None:
    class Unreachable:
        def find(self, *args, **kwargs):
            raise ServerSelectionTimeoutError("no servers")

    class FakeDatabase:
        def __getitem__(self, name):
            return Unreachable()

    with pytest.raises(StoreError, match="no servers"):
        refresh_priority_buckets(FakeDatabase())


def test_equal_timestamps_are_ordered_by_id(mongo_db) -> None:
    same_time = BASE_TIME + timedelta(hours=1)
    docs = [
        {"_id": 3, **make_alert(3, created_at=same_time).to_document()},
        {"_id": 1, **make_alert(1, created_at=same_time).to_document()},
        {"_id": 4, **make_alert(4, created_at=same_time).to_document()},
        {"_id": 2, **make_alert(2, created_at=same_time).to_document()},
        {"_id": 0, **make_alert(0).to_document()},
    ]
    mongo_db["alerts"].insert_many(docs)

    names = [a.name for a in load_priority_alerts(mongo_db["alerts"])]
    assert names == ["Alert 0", "Alert 1", "Alert 2", "Alert 3", "Alert 4"]

    refresh_priority_buckets(mongo_db, bucket_size=2)
    state = _dashboard_state(mongo_db)
    assert [[v["name"] for v in doc["values"]] for doc in state] == [
        ["Alert 0", "Alert 1"],
        ["Alert 2", "Alert 3"],
        ["Alert 4"],
    ]


def test_bad_bucket_size_leaves_dashboard_alone(mongo_db) -> None:
    mongo_db["dashboard"].insert_one({"_id": "priority_bucket_0", "values": [], "count": 0})

    with pytest.raises(ValueError):
        refresh_priority_buckets(mongo_db, bucket_size=0)

    assert mongo_db["dashboard"].count_documents({}) == 1


def test_refresh_recent_alerts(mongo_db) -> None:
    _seed(mongo_db, [make_alert(i, "Low", cleared=i == 5) for i in range(6)])
    mongo_db["dashboard"].insert_one({"_id": "top25", "values": [{"name": "stale"}]})

    assert refresh_recent_alerts(mongo_db, limit=3) == 3

    doc = mongo_db["dashboard"].find_one({"_id": "top25"})
    assert [v["name"] for v in doc["values"]] == ["Alert 4", "Alert 3", "Alert 2"]
    assert mongo_db["dashboard"].count_documents({}) == 1
