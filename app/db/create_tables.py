"""
Create all tables for the configured DATABASE_URL.

    python -m app.db.create_tables

Existing tables are left alone; there are no migrations.
"""
import asyncio
import logging

import app.auth.models  # noqa: F401
import app.core.models  # noqa: F401
from app.core.logging import configure_logging
from app.db.session import Base, engine

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))


async def main() -> None:
    configure_logging()
    try:
        await create_tables()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
