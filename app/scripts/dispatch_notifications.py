"""
Drain the notification outbox into the ledger.

    python -m app.scripts.dispatch_notifications

Safe to run repeatedly (e.g. from cron); rows that fail stay PENDING until they run out of attempts.
"""
import asyncio
import logging

from app.core.logging import configure_logging
from app.db.session import AsyncSessionLocal, engine
from app.notifications.outbox import dispatch_pending

logger = logging.getLogger(__name__)


async def main() -> None:
    configure_logging()
    try:
        async with AsyncSessionLocal() as db:
            while True:
                summary = await dispatch_pending(db)
                if summary.dispatched == 0:
                    break
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
