"""Configuration read from environment variables.

Import constants from here rather than calling os.getenv in several places.
A ``.env`` file in the working directory is loaded if present.
"""

from __future__ import annotations

import os
from typing import Final

from dotenv import load_dotenv

load_dotenv()


# --- MongoDB ---
MONGODB_URI: Final[str] = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
DATABASE_NAME: Final[str] = os.getenv("ALERTDB_DATABASE", "alertdb")
ALERTS_COLLECTION: Final[str] = os.getenv("ALERTS_COLLECTION", "alerts")
DASHBOARD_COLLECTION: Final[str] = os.getenv("DASHBOARD_COLLECTION", "dashboard")

# --- Dashboard documents ---
PRIORITY_BUCKET_SIZE: Final[int] = int(os.getenv("PRIORITY_BUCKET_SIZE", "5000"))
RECENT_LIMIT: Final[int] = int(os.getenv("RECENT_LIMIT", "25"))
PRIORITY_BUCKET_PREFIX: Final[str] = "priority_bucket_"
RECENT_DOCUMENT_ID: Final[str] = "top25"
PRIORITY_DOCUMENT_ID: Final[str] = "priority"

# --- Generator ---
GENERATOR_BATCH_SIZE: Final[int] = int(os.getenv("GENERATOR_BATCH_SIZE", "50000"))

LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO")


__all__ = [
    "MONGODB_URI",
    "DATABASE_NAME",
    "ALERTS_COLLECTION",
    "DASHBOARD_COLLECTION",
    "PRIORITY_BUCKET_SIZE",
    "RECENT_LIMIT",
    "PRIORITY_BUCKET_PREFIX",
    "RECENT_DOCUMENT_ID",
    "PRIORITY_DOCUMENT_ID",
    "GENERATOR_BATCH_SIZE",
    "LOG_LEVEL",
]
