from __future__ import annotations

import logging
import os
from typing import List

import aiosqlite

from .services.base import BaseService

log = logging.getLogger("keeper.database")


async def initialize_database(sqlite_path: str, stores: List[BaseService]) -> None:
    """Initialize the database with all stores."""
    directory = os.path.dirname(sqlite_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    try:
        async with aiosqlite.connect(sqlite_path) as db:
            await db.execute("PRAGMA journal_mode=WAL")
            await db.execute("PRAGMA synchronous=NORMAL")
            await db.commit()

        for store in stores:
            await store.init()
            log.info(f"Initialized {store.__class__.__name__}")

        log.info("Database initialization completed")

    except Exception as e:
        log.error(f"Failed to initialize database: {e}")
        raise
