"""MongoDB client and collection handles."""

from __future__ import annotations

import logging

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from alertdb import config

logger = logging.getLogger(__name__)


def get_client(uri: str | None = None, **kwargs) -> MongoClient:
    """Create a client for ``uri`` (MONGODB_URI when omitted). The caller closes it."""
    uri = uri or config.MONGODB_URI
    logger.debug("Connecting to MongoDB at %s", uri)
    return MongoClient(uri, **kwargs)


def get_database(client: MongoClient, name: str | None = None) -> Database:
    return client[name or config.DATABASE_NAME]


def alerts_collection(db: Database) -> Collection:
    return db[config.ALERTS_COLLECTION]


def dashboard_collection(db: Database) -> Collection:
    return db[config.DASHBOARD_COLLECTION]
