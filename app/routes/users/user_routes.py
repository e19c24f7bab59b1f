from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.dependencies.auth import get_current_user
from app.models.user.user import User
from app.schemas.user.user import UserOut
from app.services.users.user_search_service import UserSearchService

router = APIRouter(tags=["users"])


@router.get("/users/search", response_model=List[UserOut])
async def search_users(
    q: str = Query(""),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mention autocomplete: up to 10 users whose name contains ``q``"""
    return await UserSearchService.search_mention_candidates(q, db)


@router.get("/me", response_model=UserOut)
async def get_my_profile(current_user: User = Depends(get_current_user)):
    return current_user
