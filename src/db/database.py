from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from pymongo import MongoClient
from pymongo.database import Database

from config import Settings, get_settings


def create_client(settings: Settings | None = None) -> MongoClient:
    """Create a new MongoClient from settings (no connection is made until first use)."""
    settings = settings or get_settings()
    return MongoClient(settings.mongodb_uri, **settings.get_mongo_client_options())


@contextmanager
def database_scope(settings: Settings | None = None) -> Generator[Database, None, None]:
    """Provide a database handle backed by a dedicated client, closed on exit."""
    settings = settings or get_settings()
    client = create_client(settings)
    logger.debug(f"Opened MongoDB client for database '{settings.mongodb_database}'")
    try:
        yield client[settings.mongodb_database]
    finally:
        client.close()
