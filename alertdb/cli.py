#!/usr/bin/env python3
"""Command-line entry point: seed alerts and refresh the dashboard documents."""

from __future__ import annotations

import argparse
import logging
import pprint
import random
import sys

from pymongo.errors import PyMongoError

from alertdb import config
from alertdb.dashboard import get_latest_priority_alerts, get_priority_alerts_count, get_recent_alerts
from alertdb.db import get_client, get_database
from alertdb.exceptions import AlertDBError
from alertdb.generator import seed_alerts
from alertdb.pipelines import execute_query, priority_all_pipeline, priority_buckets_pipeline, top25_pipeline
from alertdb.store import refresh_priority_buckets, refresh_recent_alerts

logger = logging.getLogger(__name__)


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return number


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="alertdb", description=__doc__)
    parser.add_argument("--uri", default=config.MONGODB_URI, help="MongoDB connection string")
    parser.add_argument("--database", default=config.DATABASE_NAME, help="database name")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="logging level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="drop the alerts collection and insert random alerts")
    generate.add_argument("-n", "--count", type=non_negative_int, default=5_000_000, help="number of alerts")
    generate.add_argument("--seed", type=int, default=None, help="random seed")
    generate.add_argument("--batch-size", type=positive_int, default=config.GENERATOR_BATCH_SIZE)
    generate.add_argument("--append", action="store_true", help="keep existing alerts")

    buckets = subparsers.add_parser("buckets", help="rebuild priority buckets in Python and upsert them")
    buckets.add_argument("--bucket-size", type=positive_int, default=config.PRIORITY_BUCKET_SIZE)
    buckets.add_argument("--no-prune", action="store_true", help="keep buckets beyond the last rebuilt one")

    pipeline_buckets = subparsers.add_parser(
        "pipeline-buckets", help="rebuild priority buckets with a server-side aggregation"
    )
    pipeline_buckets.add_argument("--bucket-size", type=positive_int, default=config.PRIORITY_BUCKET_SIZE)

    top25 = subparsers.add_parser("top25", help="store the most recent uncleared alerts")
    top25.add_argument("--limit", type=positive_int, default=config.RECENT_LIMIT)
    top25.add_argument("--in-memory", action="store_true", help="build the document in Python instead of with a pipeline")

    subparsers.add_parser("priority", help="store all uncleared priority alerts in one document")
    subparsers.add_parser("show", help="print the dashboard documents")

    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> None:
    with get_client(args.uri) as client:
        db = get_database(client, args.database)

        if args.command == "generate":
            rng = random.Random(args.seed)
            seed_alerts(db, args.count, rng=rng, batch_size=args.batch_size, drop=not args.append)
        elif args.command == "buckets":
            result = refresh_priority_buckets(db, args.bucket_size, prune=not args.no_prune)
            pprint.pprint(vars(result))
        elif args.command == "pipeline-buckets":
            execute_query(db, "priority buckets", config.ALERTS_COLLECTION,
                          priority_buckets_pipeline(args.bucket_size))
        elif args.command == "top25" and args.in_memory:
            stored = refresh_recent_alerts(db, args.limit)
            print(f"Stored {stored} recent alerts")
        elif args.command == "top25":
            execute_query(db, "top25", config.ALERTS_COLLECTION, top25_pipeline(args.limit))
        elif args.command == "priority":
            execute_query(db, "priority", config.ALERTS_COLLECTION, priority_all_pipeline())
        elif args.command == "show":
            recent = get_recent_alerts(db)
            bucket_count = get_priority_alerts_count(db)
            latest, count = get_latest_priority_alerts(db)
            print(f"Recent alerts: {len(recent)}")
            for alert in recent[:5]:
                pprint.pprint(alert)
            print(f"Priority buckets: {bucket_count}")
            print(f"Latest bucket: {count} alerts")
            for alert in latest[:5]:
                pprint.pprint(alert)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    try:
        run(args)
    except (AlertDBError, PyMongoError, ValueError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
