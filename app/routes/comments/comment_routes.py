from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.dependencies.auth import get_current_user
from app.models.user.user import User
from app.schemas.feedback.comment_schema import (
    CommentCreate,
    CommentUpdate,
    CommentDetailResponse,
    CommentMutationResponse,
    CommentDeleteResponse,
)
from app.services.comments.comment_service import (
    create_comment,
    get_comment_detail,
    update_comment,
    delete_comment,
)

router = APIRouter(prefix="/comments", tags=["comments"])


@router.post("", response_model=CommentMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_new_comment(
    comment_data: CommentCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db)
):
    """Comment on a feedback item or reply to a comment"""
    comment = await create_comment(session, comment_data, current_user.id)
    return CommentMutationResponse(message="Comment created successfully", comment=comment)


@router.get("/{comment_id}", response_model=CommentDetailResponse)
async def get_single_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db)
):
    """A comment with its reply subtree and the feedback item it belongs to"""
    return await get_comment_detail(session, comment_id)


@router.put("/{comment_id}", response_model=CommentMutationResponse)
async def update_existing_comment(
    comment_id: int,
    comment_data: CommentUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db)
):
    """Edit a comment (owner only)"""
    comment = await update_comment(session, comment_id, comment_data.content, current_user.id)
    return CommentMutationResponse(message="Comment updated successfully", comment=comment)


@router.delete("/{comment_id}", response_model=CommentDeleteResponse)
async def delete_existing_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db)
):
    """Delete a comment and every reply below it (owner only)"""
    deleted = await delete_comment(session, comment_id, current_user.id)
    return CommentDeleteResponse(message="Comment deleted successfully", deleted=deleted)
