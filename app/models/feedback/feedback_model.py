from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, Enum, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base
import enum


class FeedbackStatus(str, enum.Enum):
    open = "open"
    in_progress = "in_progress"
    completed = "completed"
    rejected = "rejected"


class FeedbackCategory(Base):
    __tablename__ = "feedback_categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(String, nullable=True)
    color = Column(String(7), nullable=False, default="#6B7280")  # hex color for UI
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    feedback_category_id = Column(
        Integer, ForeignKey("feedback_categories.id", ondelete="CASCADE"), nullable=False
    )
    status = Column(Enum(FeedbackStatus), nullable=False, default=FeedbackStatus.open)
    upvotes = Column(Integer, nullable=False, default=0)
    downvotes = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User")
    category = relationship("FeedbackCategory")

    __table_args__ = (
        Index("ix_feedback_status_created_at", "status", "created_at"),
        Index("ix_feedback_category_created_at", "feedback_category_id", "created_at"),
    )

    @property
    def net_score(self) -> int:
        return (self.upvotes or 0) - (self.downvotes or 0)
