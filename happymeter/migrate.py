#!/usr/bin/env python3
"""Create the feedback schema in the configured database."""
import asyncio
import logging
import sys

from config import config
from database import build_engine, init_db

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def run_migrations(database_url: str = None) -> bool:
    """Create all tables, returning False if the store rejected it."""
    engine = build_engine(database_url)
    logger.info("Running migrations...")
    try:
        await init_db(engine)
        logger.info("Migrations completed successfully!")
        return True
    except Exception as e:
        logger.error(f"Migration failed: {e}")
        return False
    finally:
        await engine.dispose()


def main() -> int:
    return 0 if asyncio.run(run_migrations()) else 1


if __name__ == "__main__":
    sys.exit(main())
