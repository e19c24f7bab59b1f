import re
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user.user import User

# "@" followed by a maximal run of ASCII letters, digits and underscores
MENTION_PATTERN = re.compile(r"@(\w+)", re.ASCII)


def find_mention_tokens(content: str) -> List[str]:
    """Distinct mention tokens in the order they first appear."""
    return list(dict.fromkeys(MENTION_PATTERN.findall(content or "")))


async def extract_mentions(session: AsyncSession, content: str) -> List[int]:
    """Resolve ``@name`` tokens to user ids.

    Names are matched exactly (case-sensitive) against ``User.name``; names
    with no matching user are dropped. The order of the returned ids is not
    meaningful, but each id appears once.
    """
    usernames = find_mention_tokens(content)
    if not usernames:
        return []

    result = await session.execute(
        select(User.id).where(User.name.in_(usernames))
    )
    return list(dict.fromkeys(result.scalars().all()))
