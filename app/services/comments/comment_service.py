from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete
from sqlalchemy.orm import joinedload
from typing import Dict, Iterable, List, Optional, Tuple

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.core.logger import logger
from app.models.feedback.comment_model import FeedbackComment
from app.models.feedback.feedback_model import Feedback
from app.models.user.user import User
from app.schemas.feedback.comment_schema import (
    CommentCreate,
    CommentDetailResponse,
    CommentResponse,
    FeedbackSummary,
)
from app.schemas.user.user import UserOut
from app.services.comments.mentions import extract_mentions
from app.services.comments.renderer import render_content
from app.services.comments.tree_builder import build_comment_tree, materialize_comment_tree


def comment_to_response(comment: FeedbackComment, replies: List[CommentResponse]) -> CommentResponse:
    response = CommentResponse.model_validate(comment)
    response.replies = replies
    return response


async def _mentioned_users(session: AsyncSession, comments: Iterable[FeedbackComment]) -> Dict[int, User]:
    """Every user mentioned by ``comments``, keyed by id, in one query."""
    user_ids = {user_id for comment in comments for user_id in (comment.mentioned_users or [])}
    if not user_ids:
        return {}
    result = await session.execute(select(User).where(User.id.in_(user_ids)))
    return {user.id: user for user in result.scalars().all()}


async def _materialize(session: AsyncSession, comments: List[FeedbackComment]) -> List[CommentResponse]:
    users = await _mentioned_users(session, comments)

    def to_response(comment: FeedbackComment, replies: List[CommentResponse]) -> CommentResponse:
        response = comment_to_response(comment, replies)
        response.mentioned = [
            UserOut.model_validate(users[user_id])
            for user_id in (comment.mentioned_users or [])
            if user_id in users
        ]
        return response

    return materialize_comment_tree(build_comment_tree(comments), to_response)


def _require_content(content: Optional[str]) -> str:
    if content is None or not content.strip():
        raise ValidationError.for_field("content", "The content field is required.")
    return content


def _ordered(query):
    return query.order_by(FeedbackComment.created_at.asc(), FeedbackComment.id.asc())


def _select_with_author():
    # populate_existing so rows already in the session still get their author loaded
    return (
        select(FeedbackComment)
        .options(joinedload(FeedbackComment.user))
        .execution_options(populate_existing=True)
    )


async def _load_comment(session: AsyncSession, comment_id: int) -> FeedbackComment:
    result = await session.execute(
        _select_with_author()
        .where(FeedbackComment.id == comment_id)
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        raise NotFoundError("Comment", comment_id)
    return comment


async def _ensure_feedback_exists(session: AsyncSession, feedback_id: int) -> None:
    exists = await session.scalar(select(Feedback.id).where(Feedback.id == feedback_id))
    if exists is None:
        raise NotFoundError("Feedback", feedback_id)


async def _subtree_levels(session: AsyncSession, root_ids: List[int]) -> List[List[int]]:
    """Comment ids of the subtrees under ``root_ids``, one list per depth."""
    levels = [list(root_ids)]
    frontier = list(root_ids)
    while frontier:
        result = await session.execute(
            select(FeedbackComment.id).where(FeedbackComment.parent_id.in_(frontier))
        )
        frontier = list(result.scalars().all())
        if frontier:
            levels.append(frontier)
    return levels


async def _load_descendants(session: AsyncSession, roots: List[FeedbackComment]) -> List[FeedbackComment]:
    """All replies below ``roots``, loaded breadth-first with their authors."""
    descendants: List[FeedbackComment] = []
    frontier = [comment.id for comment in roots]
    while frontier:
        result = await session.execute(
            _ordered(
                _select_with_author()
                .where(FeedbackComment.parent_id.in_(frontier))
            )
        )
        level = list(result.scalars().all())
        descendants.extend(level)
        frontier = [comment.id for comment in level]
    return descendants


async def _with_subtrees(session: AsyncSession, roots: List[FeedbackComment]) -> List[CommentResponse]:
    if not roots:
        return []
    rows = list(roots) + await _load_descendants(session, roots)
    return await _materialize(session, rows)


# Reads
async def get_comment(session: AsyncSession, comment_id: int) -> CommentResponse:
    """A single comment with its author and full reply subtree."""
    comment = await _load_comment(session, comment_id)
    return (await _with_subtrees(session, [comment]))[0]


async def get_comment_detail(session: AsyncSession, comment_id: int) -> CommentDetailResponse:
    """``get_comment`` plus a summary of the feedback item it belongs to."""
    comment = await get_comment(session, comment_id)
    feedback = await session.get(Feedback, comment.feedback_id)
    return CommentDetailResponse(
        **comment.model_dump(),
        feedback=FeedbackSummary.model_validate(feedback),
    )


async def list_comments(
    session: AsyncSession,
    feedback_id: int,
    page: int = 1,
    per_page: int = 20
) -> Tuple[List[CommentResponse], int]:
    """One page of top-level comments, oldest first, each with every reply below it.

    Only top-level comments count towards ``per_page``.
    """
    await _ensure_feedback_exists(session, feedback_id)

    top_level = (FeedbackComment.feedback_id == feedback_id, FeedbackComment.parent_id.is_(None))
    total = await session.scalar(
        select(func.count()).select_from(FeedbackComment).where(*top_level)
    )

    result = await session.execute(
        _ordered(
            _select_with_author()
            .where(*top_level)
        )
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    roots = list(result.scalars().all())
    return await _with_subtrees(session, roots), total


async def get_comment_thread(session: AsyncSession, feedback_id: int) -> List[CommentResponse]:
    """Every comment of a feedback item as a forest of top-level comments."""
    result = await session.execute(
        _ordered(
            _select_with_author()
            .where(FeedbackComment.feedback_id == feedback_id)
        )
    )
    comments = list(result.scalars().all())
    return await _materialize(session, comments)


# Writes
async def create_comment(
    session: AsyncSession,
    comment_data: CommentCreate,
    author_id: int
) -> CommentResponse:
    content = _require_content(comment_data.content)
    await _ensure_feedback_exists(session, comment_data.feedback_id)

    if comment_data.parent_id is not None:
        parent = await session.get(FeedbackComment, comment_data.parent_id)
        if parent is None:
            raise NotFoundError("Parent comment", comment_data.parent_id)
        if parent.feedback_id != comment_data.feedback_id:
            raise ValidationError.for_field(
                "parent_id", "The parent comment belongs to a different feedback item."
            )

    comment = FeedbackComment(
        content=content,
        content_html=render_content(content),
        user_id=author_id,
        feedback_id=comment_data.feedback_id,
        parent_id=comment_data.parent_id,
        mentioned_users=await extract_mentions(session, content),
    )
    session.add(comment)
    await session.commit()

    logger.info(
        f"Comment {comment.id} created on feedback {comment.feedback_id} by user {author_id} "
        f"(parent={comment.parent_id}, mentions={comment.mentioned_users})"
    )
    return await get_comment(session, comment.id)


async def update_comment(
    session: AsyncSession,
    comment_id: int,
    content: Optional[str],
    user_id: int
) -> CommentResponse:
    comment = await _load_comment(session, comment_id)
    if comment.user_id != user_id:
        logger.warning(f"Unauthorized update attempt on comment {comment_id} by user {user_id}")
        raise AuthorizationError()

    content = _require_content(content)
    comment.content = content
    comment.content_html = render_content(content)
    comment.mentioned_users = await extract_mentions(session, content)

    await session.commit()
    logger.info(f"Comment {comment_id} updated by user {user_id}")
    return await get_comment(session, comment_id)


async def delete_comment(
    session: AsyncSession,
    comment_id: int,
    user_id: int
) -> int:
    """Delete a comment and all of its replies; returns the number of rows removed."""
    comment = await _load_comment(session, comment_id)
    if comment.user_id != user_id:
        logger.warning(f"Unauthorized delete attempt on comment {comment_id} by user {user_id}")
        raise AuthorizationError()

    deleted = 0
    try:
        levels = await _subtree_levels(session, [comment.id])
        # Deepest replies first so no statement relies on FK cascades
        for ids in reversed(levels):
            result = await session.execute(
                delete(FeedbackComment)
                .where(FeedbackComment.id.in_(ids))
                .execution_options(synchronize_session=False)
            )
            deleted += result.rowcount
        await session.commit()
    except Exception:
        await session.rollback()
        logger.error(f"Deleting comment {comment_id} failed, subtree delete rolled back")
        raise

    session.expunge(comment)
    logger.info(f"Comment {comment_id} and {deleted - 1} replies deleted by user {user_id}")
    return deleted
