"""Server-side aggregation pipelines that fill the dashboard collection."""

from __future__ import annotations

import pprint

from pymongo.database import Database

from alertdb.config import (
    DASHBOARD_COLLECTION,
    PRIORITY_BUCKET_PREFIX,
    PRIORITY_BUCKET_SIZE,
    PRIORITY_DOCUMENT_ID,
    RECENT_DOCUMENT_ID,
    RECENT_LIMIT,
)
from alertdb.models import DASHBOARD_PRIORITIES


# Function to execute and print query results
def execute_query(db: Database, query_name: str, collection_name: str, pipeline: list[dict]) -> list[dict]:
    print(f"\n{'=' * 50}")
    print(f"QUERY {query_name}: {collection_name}")
    print(f"{'=' * 50}")

    print(f"Pipeline: {pprint.pformat(pipeline)}")
    print("\nResults:")

    results = list(db[collection_name].aggregate(pipeline))
    if not results:
        print("No results found.")
    else:
        for result in results[:5]:  # Limit to first 5 results for readability
            pprint.pprint(result)

        if len(results) > 5:
            print(f"... and {len(results) - 5} more results.")

    print(f"Total results: {len(results)}")
    return results


# QUERY top25: The most recent uncleared alerts in a single document
# Uses: $match, $sort, $limit, $group, $merge
def top25_pipeline(limit=RECENT_LIMIT, into=DASHBOARD_COLLECTION):
    return [
        {"$match": {"cleared": False}},
        {"$sort": {"createdAt": -1}},
        {"$limit": limit},
        {"$group": {
            "_id": RECENT_DOCUMENT_ID,
            "values": {"$push": {
                "name": "$name",
                "priority": "$priority",
                "createdAt": "$createdAt",
                "cleared": "$cleared"
            }}
        }},
        {"$merge": {
            "into": into,
            "whenMatched": "replace",
            "whenNotMatched": "insert"
        }}
    ]


# QUERY priority: Every uncleared Critical and High alert, newest first, in one document
# Uses: $match, $sort, $group, $merge
def priority_all_pipeline(into=DASHBOARD_COLLECTION):
    return [
        {"$match": {
            "cleared": False,
            "priority": {"$in": list(DASHBOARD_PRIORITIES)}
        }},
        {"$sort": {"createdAt": -1}},
        {"$group": {
            "_id": PRIORITY_DOCUMENT_ID,
            "count": {"$sum": 1},
            "values": {"$push": {
                "name": "$name",
                "priority": "$priority",
                "createdAt": "$createdAt",
                "cleared": "$cleared"
            }}
        }},
        {"$merge": {
            "into": into,
            "whenMatched": "replace",
            "whenNotMatched": "insert"
        }}
    ]


# QUERY priority buckets: Critical and High alerts cut into fixed-size buckets by age
# Uses: $match, $setWindowFields, $addFields, $group, $project, $merge
def priority_buckets_pipeline(bucket_size=PRIORITY_BUCKET_SIZE, into=DASHBOARD_COLLECTION):
    if bucket_size < 1:
        raise ValueError(f"bucket_size must be positive, got {bucket_size}")
    return [
        {"$match": {
            "cleared": False,
            "priority": {"$in": list(DASHBOARD_PRIORITIES)}
        }},
        {"$setWindowFields": {
            "sortBy": {"createdAt": 1, "_id": 1},
            "output": {
                "index": {"$documentNumber": {}}
            }
        }},
        {"$addFields": {
            "bucket": {"$floor": {"$divide": [{"$subtract": ["$index", 1]}, bucket_size]}}
        }},
        {"$sort": {"index": 1}},
        {"$group": {
            "_id": "$bucket",
            "values": {"$push": {
                "name": "$name",
                "priority": "$priority",
                "createdAt": "$createdAt",
                "cleared": "$cleared"
            }},
            "count": {"$sum": 1}
        }},
        {"$project": {
            "_id": {"$concat": [PRIORITY_BUCKET_PREFIX, {"$toString": "$_id"}]},
            "values": 1,
            "count": 1
        }},
        {"$merge": {
            "into": into,
            "whenMatched": "replace",
            "whenNotMatched": "insert"
        }}
    ]
