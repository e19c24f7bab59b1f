from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List

from app.core.config import settings
from app.models.user.user import User


class UserSearchService:
    @staticmethod
    async def search_mention_candidates(query: str, db: AsyncSession) -> List[User]:
        """Users whose name contains ``query`` (case-insensitive), for @mention autocomplete.

        Queries shorter than the configured minimum return nothing without
        touching the database.
        """
        query = query or ""
        if len(query) < settings.MENTION_SEARCH_MIN_LENGTH:
            return []

        result = await db.execute(
            select(User)
            .where(User.is_active.is_(True), User.name.icontains(query, autoescape=True))
            .order_by(User.name.asc(), User.id.asc())
            .limit(settings.MENTION_SEARCH_LIMIT)
        )
        return result.scalars().all()
