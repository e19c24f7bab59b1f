from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.database import get_db
from app.dependencies.auth import get_current_user
from app.models.feedback.feedback_model import FeedbackStatus
from app.models.user.user import User
from app.schemas.feedback.comment_schema import CommentListResponse
from app.schemas.feedback.feedback_schema import (
    FeedbackCreate,
    FeedbackUpdate,
    FeedbackDetailResponse,
    FeedbackListResponse,
    FeedbackMutationResponse,
    VoteResponse,
)
from app.schemas.pagination import MessageResponse, last_page_for
from app.services.comments.comment_service import list_comments
from app.services.feedback.feedback_service import (
    create_feedback,
    get_feedback_detail,
    list_feedback,
    update_feedback,
    delete_feedback,
    upvote_feedback,
    downvote_feedback,
)
from typing import Optional

router = APIRouter(
    prefix="/feedback",
    tags=["feedback"]
)


@router.get("", response_model=FeedbackListResponse)
async def list_all_feedback(
    category_id: Optional[int] = Query(None, gt=0),
    status: Optional[FeedbackStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=255),
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.FEEDBACK_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE),
    session: AsyncSession = Depends(get_db)
):
    """Newest feedback first, filtered by category, status and free-text search"""
    feedback, total = await list_feedback(session, category_id, status, search, page, per_page)
    return FeedbackListResponse(
        data=feedback,
        current_page=page,
        per_page=per_page,
        total=total,
        last_page=last_page_for(total, per_page),
    )


@router.post("", response_model=FeedbackMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_new_feedback(
    feedback_data: FeedbackCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db)
):
    """Create a new feedback"""
    feedback = await create_feedback(session, current_user.id, feedback_data)
    return {"message": "Feedback created successfully", "feedback": feedback}


@router.get("/{feedback_id}", response_model=FeedbackDetailResponse)
async def get_single_feedback(
    feedback_id: int,
    session: AsyncSession = Depends(get_db)
):
    """Feedback with author, category and threaded comments"""
    return await get_feedback_detail(session, feedback_id)


@router.put("/{feedback_id}", response_model=FeedbackMutationResponse)
async def update_existing_feedback(
    feedback_id: int,
    feedback_data: FeedbackUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db)
):
    """Update a feedback (owner only)"""
    feedback = await update_feedback(session, feedback_id, feedback_data, current_user.id)
    return {"message": "Feedback updated successfully", "feedback": feedback}


@router.delete("/{feedback_id}", response_model=MessageResponse)
async def delete_existing_feedback(
    feedback_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db)
):
    """Delete a feedback and its comments (owner only)"""
    await delete_feedback(session, feedback_id, current_user.id)
    return {"message": "Feedback deleted successfully"}


@router.post("/{feedback_id}/upvote", response_model=VoteResponse)
async def upvote(
    feedback_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db)
):
    upvotes, downvotes = await upvote_feedback(session, feedback_id)
    return VoteResponse(
        message="Feedback upvoted",
        upvotes=upvotes,
        downvotes=downvotes,
        net_score=upvotes - downvotes,
    )


@router.post("/{feedback_id}/downvote", response_model=VoteResponse)
async def downvote(
    feedback_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db)
):
    upvotes, downvotes = await downvote_feedback(session, feedback_id)
    return VoteResponse(
        message="Feedback downvoted",
        upvotes=upvotes,
        downvotes=downvotes,
        net_score=upvotes - downvotes,
    )


@router.get("/{feedback_id}/comments", response_model=CommentListResponse)
async def list_feedback_comments(
    feedback_id: int,
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.COMMENTS_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE),
    session: AsyncSession = Depends(get_db)
):
    """Top-level comments, oldest first, with their nested replies"""
    comments, total = await list_comments(session, feedback_id, page, per_page)
    return CommentListResponse(
        data=comments,
        current_page=page,
        per_page=per_page,
        total=total,
        last_page=last_page_for(total, per_page),
    )
