"""Create tables and seed levels: ``python -m app.seed``."""
import asyncio

import structlog

from app.core.config import get_settings
from app.core.logging_config import configure_logging
from app.db.base import Base
from app.db.session import AsyncSessionLocal, engine
from app.services.seeding import seed_levels

logger = structlog.get_logger(__name__)


async def run() -> int:
    settings = get_settings()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as db:
        created = await seed_levels(db, seed=settings.seed_random_seed)
    await engine.dispose()
    return created


def main() -> None:
    configure_logging(get_settings().debug)
    created = asyncio.run(run())
    logger.info("seed_finished", levels_created=created)


if __name__ == "__main__":
    main()
