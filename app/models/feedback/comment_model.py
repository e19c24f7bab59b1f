from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base


class FeedbackComment(Base):
    __tablename__ = "feedback_comments"

    id = Column(Integer, primary_key=True)
    content = Column(Text, nullable=False)
    content_html = Column(Text, nullable=True)  # rendered from content, never edited directly
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    feedback_id = Column(Integer, ForeignKey("feedback.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(Integer, ForeignKey("feedback_comments.id", ondelete="CASCADE"), nullable=True)
    mentioned_users = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User")

    __table_args__ = (
        Index("ix_feedback_comments_feedback_created_at", "feedback_id", "created_at"),
        Index("ix_feedback_comments_parent_created_at", "parent_id", "created_at"),
    )
