"""
create_tables.py
----------------
One-shot script to create all database tables.
Use this for quick setup. For production migrations, use Alembic instead.

Usage:
    python create_tables.py
"""

import asyncio

from promptdepot.core.config import settings
from promptdepot.core.logging import configure_logging, get_logger
from promptdepot.db.session import Database

logger = get_logger(__name__)


async def create_all_tables() -> None:
    database = Database(settings.DATABASE_URL, echo=True)
    try:
        await database.create_all()
    finally:
        await database.dispose()
    logger.info("All tables created", database=database.engine.url.render_as_string())


if __name__ == "__main__":
    configure_logging()
    asyncio.run(create_all_tables())
