from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update, delete, or_
from sqlalchemy.orm import joinedload
from typing import Optional, Tuple, List

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.core.logger import logger
from app.models.feedback.comment_model import FeedbackComment
from app.models.feedback.feedback_model import Feedback, FeedbackCategory, FeedbackStatus
from app.schemas.feedback.feedback_schema import FeedbackCreate, FeedbackDetailResponse, FeedbackUpdate
from app.services.comments.comment_service import get_comment_thread


async def _ensure_category_exists(session: AsyncSession, category_id: int) -> None:
    exists = await session.scalar(select(FeedbackCategory.id).where(FeedbackCategory.id == category_id))
    if exists is None:
        raise ValidationError.for_field(
            "feedback_category_id", "The selected feedback category id is invalid."
        )


async def _get_owned_feedback(session: AsyncSession, feedback_id: int, user_id: int, action: str) -> Feedback:
    feedback = await session.get(Feedback, feedback_id)
    if not feedback:
        raise NotFoundError("Feedback", feedback_id)
    if feedback.user_id != user_id:
        logger.warning(f"Unauthorized {action} attempt on feedback {feedback_id} by user {user_id}")
        raise AuthorizationError()
    return feedback


async def get_feedback(
    session: AsyncSession,
    feedback_id: int
) -> Feedback:
    result = await session.execute(
        select(Feedback)
        .options(joinedload(Feedback.user), joinedload(Feedback.category))
        .where(Feedback.id == feedback_id)
        .execution_options(populate_existing=True)
    )
    feedback = result.scalar_one_or_none()
    if not feedback:
        raise NotFoundError("Feedback", feedback_id)
    return feedback


async def get_feedback_detail(
    session: AsyncSession,
    feedback_id: int
) -> FeedbackDetailResponse:
    """Feedback with author, category and the whole comment forest."""
    feedback = await get_feedback(session, feedback_id)
    detail = FeedbackDetailResponse.model_validate(feedback)
    detail.top_level_comments = await get_comment_thread(session, feedback_id)
    return detail


async def list_feedback(
    session: AsyncSession,
    category_id: Optional[int] = None,
    status: Optional[FeedbackStatus] = None,
    search: Optional[str] = None,
    page: int = 1,
    per_page: int = 15
) -> Tuple[List[Feedback], int]:
    filters = []
    if category_id is not None:
        filters.append(Feedback.feedback_category_id == category_id)
    if status is not None:
        filters.append(Feedback.status == status)
    if search:
        filters.append(or_(
            Feedback.title.icontains(search, autoescape=True),
            Feedback.description.icontains(search, autoescape=True),
        ))

    total = await session.scalar(
        select(func.count()).select_from(Feedback).where(*filters)
    )

    query = (
        select(Feedback)
        .options(joinedload(Feedback.user), joinedload(Feedback.category))
        .where(*filters)
        .order_by(Feedback.created_at.desc(), Feedback.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(query)
    return result.scalars().all(), total


async def create_feedback(
    session: AsyncSession,
    user_id: int,
    feedback_data: FeedbackCreate
) -> Feedback:
    await _ensure_category_exists(session, feedback_data.feedback_category_id)

    feedback = Feedback(
        user_id=user_id,
        **feedback_data.model_dump()
    )
    session.add(feedback)
    await session.commit()

    logger.info(f"Feedback {feedback.id} created by user {user_id}")
    return await get_feedback(session, feedback.id)


async def update_feedback(
    session: AsyncSession,
    feedback_id: int,
    feedback_data: FeedbackUpdate,
    user_id: int
) -> Feedback:
    feedback = await _get_owned_feedback(session, feedback_id, user_id, "update")

    update_data = feedback_data.model_dump(exclude_unset=True)
    if update_data.get("feedback_category_id") is not None:
        await _ensure_category_exists(session, update_data["feedback_category_id"])

    for field, value in update_data.items():
        if value is not None:
            setattr(feedback, field, value)

    await session.commit()
    logger.info(f"Feedback {feedback_id} updated by user {user_id}: {sorted(update_data)}")
    return await get_feedback(session, feedback_id)


async def delete_feedback(
    session: AsyncSession,
    feedback_id: int,
    user_id: int
) -> None:
    feedback = await _get_owned_feedback(session, feedback_id, user_id, "delete")

    try:
        await session.execute(
            delete(FeedbackComment)
            .where(FeedbackComment.feedback_id == feedback_id)
            .execution_options(synchronize_session=False)
        )
        await session.delete(feedback)
        await session.commit()
    except Exception:
        await session.rollback()
        logger.error(f"Deleting feedback {feedback_id} failed, rolled back")
        raise

    logger.info(f"Feedback {feedback_id} deleted by user {user_id}")


async def _increment_counter(session: AsyncSession, feedback_id: int, column) -> Tuple[int, int]:
    # Single UPDATE ... SET col = col + 1 so concurrent votes are never lost
    result = await session.execute(
        update(Feedback)
        .where(Feedback.id == feedback_id)
        .values({column.key: column + 1})
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await session.rollback()
        raise NotFoundError("Feedback", feedback_id)
    await session.commit()

    counters = await session.execute(
        select(Feedback.upvotes, Feedback.downvotes).where(Feedback.id == feedback_id)
    )
    upvotes, downvotes = counters.one()
    return upvotes, downvotes


async def upvote_feedback(session: AsyncSession, feedback_id: int) -> Tuple[int, int]:
    """Returns the new ``(upvotes, downvotes)``. Votes are not tracked per user."""
    counters = await _increment_counter(session, feedback_id, Feedback.upvotes)
    logger.info(f"Feedback {feedback_id} upvoted, counters now {counters}")
    return counters


async def downvote_feedback(session: AsyncSession, feedback_id: int) -> Tuple[int, int]:
    counters = await _increment_counter(session, feedback_id, Feedback.downvotes)
    logger.info(f"Feedback {feedback_id} downvoted, counters now {counters}")
    return counters
