from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from app.models.feedback.feedback_model import FeedbackStatus
from app.schemas.feedback.category_schema import CategoryResponse
from app.schemas.feedback.comment_schema import CommentResponse
from app.schemas.pagination import PaginatedResponse
from app.schemas.user.user import UserOut


class FeedbackBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    feedback_category_id: int = Field(..., gt=0)

    class Config:
        # Trimmed before the length checks run
        str_strip_whitespace = True


class FeedbackCreate(FeedbackBase):
    pass


class FeedbackUpdate(BaseModel):
    """Fields the owner may change. Status is not one of them."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    feedback_category_id: Optional[int] = Field(None, gt=0)

    class Config:
        str_strip_whitespace = True


class FeedbackResponse(FeedbackBase):
    id: int
    status: FeedbackStatus
    upvotes: int
    downvotes: int
    net_score: int
    user_id: int
    created_at: datetime
    updated_at: datetime
    user: Optional[UserOut] = None
    category: Optional[CategoryResponse] = None

    class Config:
        from_attributes = True


class FeedbackDetailResponse(FeedbackResponse):
    top_level_comments: List[CommentResponse] = []


class FeedbackListResponse(PaginatedResponse):
    data: List[FeedbackResponse]


class FeedbackMutationResponse(BaseModel):
    message: str
    feedback: FeedbackResponse


class VoteResponse(BaseModel):
    message: str
    upvotes: int
    downvotes: int
    net_score: int
