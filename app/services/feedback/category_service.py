from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List

from app.core.logger import logger
from app.models.feedback.feedback_model import FeedbackCategory

DEFAULT_CATEGORIES = [
    {"name": "Bug Report", "description": "Report issues, errors, or unexpected behavior", "color": "#DC2626"},
    {"name": "Feature Request", "description": "Suggest new features or functionality", "color": "#059669"},
    {"name": "Improvement", "description": "Suggest enhancements to existing features", "color": "#2563EB"},
    {"name": "UI/UX", "description": "Feedback about user interface and experience", "color": "#7C3AED"},
    {"name": "Performance", "description": "Report performance issues or optimization suggestions", "color": "#EA580C"},
    {"name": "General", "description": "General feedback and suggestions", "color": "#6B7280"},
]


async def list_active_categories(session: AsyncSession) -> List[FeedbackCategory]:
    result = await session.execute(
        select(FeedbackCategory)
        .where(FeedbackCategory.is_active.is_(True))
        .order_by(FeedbackCategory.name.asc())
    )
    return result.scalars().all()


async def seed_default_categories(session: AsyncSession) -> int:
    """Insert the default categories that are missing, matched by name."""
    result = await session.execute(select(FeedbackCategory.name))
    existing = set(result.scalars().all())

    created = 0
    for category in DEFAULT_CATEGORIES:
        if category["name"] in existing:
            continue
        session.add(FeedbackCategory(is_active=True, **category))
        created += 1

    await session.commit()
    if created:
        logger.info(f"Seeded {created} feedback categories")
    return created
