import os

# Settings are read at import time, so these must be set before importing app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["AUTO_CREATE_TABLES"] = "false"

from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.core.database import Base, enable_sqlite_foreign_keys, get_db
from app.core.security import create_access_token
from app.main import app
from app.models import Feedback, FeedbackCategory, FeedbackComment, FeedbackStatus, User
from app.services.comments.renderer import render_content


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh SQLite database file per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def _get_test_db():
        async with session_factory() as db:
            yield db

    app.dependency_overrides[get_db] = _get_test_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def make_user(session):
    async def _make(name: str, email: str = None, is_active: bool = True) -> User:
        user = User(name=name, email=email or f"{name.lower()}@example.com", is_active=is_active)
        session.add(user)
        await session.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def alice(make_user):
    return await make_user("alice")


@pytest_asyncio.fixture
async def bob(make_user):
    return await make_user("bob")


@pytest_asyncio.fixture
async def category(session):
    category = FeedbackCategory(name="Bug Report", description="Report issues", color="#DC2626")
    session.add(category)
    await session.commit()
    return category


@pytest.fixture
def make_feedback(session, category):
    async def _make(
        owner: User,
        title: str = "Sample feedback",
        description: str = "Something worth discussing",
        status: FeedbackStatus = FeedbackStatus.open,
        upvotes: int = 0,
        downvotes: int = 0,
        category_id: int = None,
        created_at: datetime = None,
    ) -> Feedback:
        feedback = Feedback(
            title=title,
            description=description,
            user_id=owner.id,
            feedback_category_id=category_id or category.id,
            status=status,
            upvotes=upvotes,
            downvotes=downvotes,
        )
        if created_at is not None:
            feedback.created_at = created_at
        session.add(feedback)
        await session.commit()
        return feedback

    return _make


@pytest.fixture
def make_comment(session):
    """Insert comment rows directly, bypassing the service."""
    base_time = datetime(2025, 1, 1, 12, 0, 0)
    counter = {"n": 0}

    async def _make(
        author: User,
        feedback: Feedback,
        content: str = "A comment",
        parent: FeedbackComment = None,
    ) -> FeedbackComment:
        counter["n"] += 1
        comment = FeedbackComment(
            content=content,
            content_html=render_content(content),
            user_id=author.id,
            feedback_id=feedback.id,
            parent_id=parent.id if parent else None,
            mentioned_users=[],
            created_at=base_time + timedelta(minutes=counter["n"]),
        )
        session.add(comment)
        await session.commit()
        return comment

    return _make
