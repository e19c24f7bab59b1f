from app.core.config import settings
from app.core.database import engine, Base, SessionLocal
from app.core.logger import logger
import app.models  # noqa: F401  registers every table on Base.metadata
from app.services.feedback.category_service import seed_default_categories


async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")

    if settings.SEED_CATEGORIES:
        async with SessionLocal() as session:
            await seed_default_categories(session)
