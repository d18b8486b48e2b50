"""Recompute every author's cached total_earnings from the earnings ledger.

Run after restoring data or whenever the cached totals drift:

    python -m scripts.backfill_total_earnings
"""

import asyncio
import logging

from app.config import settings
from app.database import build_engine, build_sessionmaker
from app.logging_config import setup_logging
from app.services.earnings import backfill_total_earnings

logger = logging.getLogger(__name__)


async def _run():
    engine = build_engine(settings.DATABASE_URL)
    try:
        async with build_sessionmaker(engine)() as session:
            result = await backfill_total_earnings(session)
        logger.info(f"Backfill complete: {result['updated']} authors updated")
    finally:
        await engine.dispose()


def main():
    setup_logging(settings.LOG_LEVEL)
    asyncio.run(_run())


if __name__ == "__main__":
    main()
