"""
Database Configuration

This module opens the MongoDB connection used by every route module
and provides small helpers for shaping stored documents.
"""

import logging
import uuid
from typing import Optional

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from config import Settings

# Set up logger
logger = logging.getLogger(__name__)

# Server selection timeout for the startup ping (milliseconds)
SERVER_SELECTION_TIMEOUT_MS = 5000


class DatabaseConnectionError(RuntimeError):
    """Raised when MongoDB cannot be reached at startup."""


async def connect_db(settings: Settings, client: Optional[AsyncMongoClient] = None) -> AsyncDatabase:
    """
    Connect to MongoDB and verify the server is reachable.

    The caller treats a failure here as fatal; there is no retry.

    Args:
        settings: Application settings with the connection string and db name
        client: Pre-built client (optional, mostly for tests)

    Returns:
        Database handle for the configured database

    Raises:
        DatabaseConnectionError: If the ping fails
    """
    if client is None:
        client = AsyncMongoClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
        )

    try:
        await client.admin.command("ping")
    except PyMongoError as e:
        logger.critical(f"MongoDB connection failed: {e}")
        await client.close()
        raise DatabaseConnectionError(str(e)) from e

    logger.info(f"MongoDB connected: {settings.mongodb_db}")
    return client[settings.mongodb_db]


def new_id() -> str:
    """Generate a new document id."""
    return uuid.uuid4().hex


def public_doc(doc: Optional[dict], hidden: tuple[str, ...] = ()) -> Optional[dict]:
    """
    Format a stored document for an API response.

    Args:
        doc: Document as read from MongoDB
        hidden: Field names to drop (e.g. password hashes)

    Returns:
        Copy of the document with `_id` exposed as `id`, or None
    """
    if doc is None:
        return None

    result = {key: value for key, value in doc.items() if key != "_id" and key not in hidden}
    result["id"] = doc["_id"]
    return result
