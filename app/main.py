"""Math Adventure - FastAPI app entry point."""
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.core.config import APP_DIR, get_settings
from app.core.logging_config import configure_logging
from app.db.base import Base
from app.db.session import engine, AsyncSessionLocal
from app.routers import web, api
from app.services.seeding import seed_levels

settings = get_settings()
configure_logging(settings.debug)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.seed_on_startup:
        async with AsyncSessionLocal() as db:
            await seed_levels(db, seed=settings.seed_random_seed)

    logger.info("app_started", database_url=settings.database_url)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Elementary-school math practice",
    debug=settings.debug,
    lifespan=lifespan,
)

app.mount("/static", StaticFiles(directory=str(APP_DIR / "static")), name="static")

app.include_router(web.router)
app.include_router(api.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
