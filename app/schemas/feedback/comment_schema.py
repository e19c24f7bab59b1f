from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from app.models.feedback.feedback_model import FeedbackStatus
from app.schemas.pagination import PaginatedResponse
from app.schemas.user.user import UserOut


class CommentCreate(BaseModel):
    # Blank content is rejected by the service so every caller gets the same check
    content: str = Field(..., max_length=10000)
    feedback_id: int = Field(..., gt=0)
    parent_id: Optional[int] = Field(None, gt=0)


class CommentUpdate(BaseModel):
    content: str = Field(..., max_length=10000)


class CommentResponse(BaseModel):
    id: int
    content: str
    content_html: Optional[str] = None
    user_id: int
    feedback_id: int
    parent_id: Optional[int] = None
    mentioned_users: List[int] = []
    # Resolved users behind mentioned_users, filled by the service
    mentioned: List[UserOut] = []
    created_at: datetime
    updated_at: datetime
    user: Optional[UserOut] = None
    replies: List["CommentResponse"] = []

    class Config:
        from_attributes = True


CommentResponse.model_rebuild()


class FeedbackSummary(BaseModel):
    id: int
    title: str
    status: FeedbackStatus

    class Config:
        from_attributes = True


class CommentDetailResponse(CommentResponse):
    feedback: FeedbackSummary


class CommentListResponse(PaginatedResponse):
    data: List[CommentResponse]


class CommentMutationResponse(BaseModel):
    message: str
    comment: CommentResponse


class CommentDeleteResponse(BaseModel):
    message: str
    deleted: int
