from sqlalchemy import Column, String, Boolean, Integer, DateTime
from sqlalchemy.sql import func
from app.core.database import Base


class User(Base):
    """Identity record mirrored from the identity provider; read-only here."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Display name; @mentions match against it exactly
    name = Column(String, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
