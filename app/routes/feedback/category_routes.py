from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.schemas.feedback.category_schema import CategoryResponse
from app.services.feedback.category_service import list_active_categories

router = APIRouter(
    prefix="/feedback-categories",
    tags=["feedback categories"]
)


@router.get("", response_model=List[CategoryResponse])
async def list_categories(session: AsyncSession = Depends(get_db)):
    """Active categories, sorted by name"""
    return await list_active_categories(session)
