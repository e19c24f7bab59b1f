"""Tests for the comment store gateway."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import Delete, func, select

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models import FeedbackComment
from app.schemas.feedback.comment_schema import CommentCreate
from app.services.comments.comment_service import (
    create_comment,
    delete_comment,
    get_comment,
    get_comment_detail,
    get_comment_thread,
    list_comments,
    update_comment,
)


async def count_comments(session) -> int:
    return await session.scalar(select(func.count()).select_from(FeedbackComment))


async def reload(session, comment_id):
    result = await session.execute(
        select(FeedbackComment)
        .where(FeedbackComment.id == comment_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def flat_ids(nodes):
    ids, stack = [], list(nodes)
    while stack:
        node = stack.pop()
        ids.append(node.id)
        stack.extend(node.replies)
    return ids


class TestCreateComment:
    @pytest.mark.asyncio
    async def test_renders_and_resolves_mentions(self, session, alice, bob, make_feedback):
        feedback = await make_feedback(alice)

        comment = await create_comment(
            session,
            CommentCreate(content="Thanks @bob! **agreed** @bob @ghost", feedback_id=feedback.id),
            alice.id,
        )

        assert comment.user_id == alice.id
        assert comment.user.name == "alice"
        assert comment.parent_id is None
        assert comment.mentioned_users == [bob.id]
        assert [user.name for user in comment.mentioned] == ["bob"]
        assert '<a href="#user/bob">@bob</a>' in comment.content_html
        assert '<a href="#user/ghost">@ghost</a>' in comment.content_html
        assert "<strong>agreed</strong>" in comment.content_html
        assert comment.replies == []

    @pytest.mark.asyncio
    async def test_reply_to_comment(self, session, alice, bob, make_feedback, make_comment):
        feedback = await make_feedback(alice)
        parent = await make_comment(alice, feedback)

        reply = await create_comment(
            session,
            CommentCreate(content="reply", feedback_id=feedback.id, parent_id=parent.id),
            bob.id,
        )
        assert reply.parent_id == parent.id

        thread = await get_comment(session, parent.id)
        assert [r.id for r in thread.replies] == [reply.id]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    async def test_blank_content_rejected(self, session, alice, make_feedback, content):
        feedback = await make_feedback(alice)
        with pytest.raises(ValidationError) as exc_info:
            await create_comment(session, CommentCreate(content=content, feedback_id=feedback.id), alice.id)
        assert "content" in exc_info.value.errors
        assert await count_comments(session) == 0

    @pytest.mark.asyncio
    async def test_missing_feedback(self, session, alice):
        with pytest.raises(NotFoundError):
            await create_comment(session, CommentCreate(content="hello", feedback_id=999), alice.id)

    @pytest.mark.asyncio
    async def test_missing_parent(self, session, alice, make_feedback):
        feedback = await make_feedback(alice)
        with pytest.raises(NotFoundError):
            await create_comment(
                session,
                CommentCreate(content="hello", feedback_id=feedback.id, parent_id=999),
                alice.id,
            )

    @pytest.mark.asyncio
    async def test_parent_must_belong_to_same_feedback(self, session, alice, make_feedback, make_comment):
        first = await make_feedback(alice, title="first")
        second = await make_feedback(alice, title="second")
        parent = await make_comment(alice, first)

        with pytest.raises(ValidationError) as exc_info:
            await create_comment(
                session,
                CommentCreate(content="hello", feedback_id=second.id, parent_id=parent.id),
                alice.id,
            )
        assert "parent_id" in exc_info.value.errors


class TestUpdateComment:
    @pytest.mark.asyncio
    async def test_owner_update_recomputes_mentions_and_html(self, session, alice, bob, make_feedback, make_comment):
        feedback = await make_feedback(alice)
        comment = await make_comment(alice, feedback, content="first draft")

        updated = await update_comment(session, comment.id, "now with @bob and _style_", alice.id)

        assert updated.content == "now with @bob and _style_"
        assert updated.mentioned_users == [bob.id]
        assert "<em>style</em>" in updated.content_html

    @pytest.mark.asyncio
    async def test_non_owner_cannot_update(self, session, alice, bob, make_feedback, make_comment):
        feedback = await make_feedback(alice)
        comment = await make_comment(alice, feedback, content="original")

        with pytest.raises(AuthorizationError):
            await update_comment(session, comment.id, "hijacked", bob.id)

        stored = await reload(session, comment.id)
        assert stored.content == "original"

    @pytest.mark.asyncio
    async def test_blank_update_rejected(self, session, alice, make_feedback, make_comment):
        feedback = await make_feedback(alice)
        comment = await make_comment(alice, feedback, content="original")

        with pytest.raises(ValidationError):
            await update_comment(session, comment.id, "  ", alice.id)

        stored = await reload(session, comment.id)
        assert stored.content == "original"

    @pytest.mark.asyncio
    async def test_missing_comment(self, session, alice):
        with pytest.raises(NotFoundError):
            await update_comment(session, 404, "text", alice.id)


class TestDeleteComment:
    @pytest.mark.asyncio
    async def test_deletes_whole_subtree(self, session, alice, bob, make_feedback, make_comment):
        feedback = await make_feedback(alice)
        root = await make_comment(alice, feedback)
        child = await make_comment(bob, feedback, parent=root)
        await make_comment(alice, feedback, parent=child)
        await make_comment(bob, feedback, parent=root)
        sibling = await make_comment(bob, feedback)
        assert await count_comments(session) == 5

        deleted = await delete_comment(session, root.id, alice.id)

        assert deleted == 4
        assert await count_comments(session) == 1
        assert await reload(session, sibling.id) is not None

    @pytest.mark.asyncio
    async def test_leaf_delete_removes_one_row(self, session, alice, make_feedback, make_comment):
        feedback = await make_feedback(alice)
        root = await make_comment(alice, feedback)
        leaf = await make_comment(alice, feedback, parent=root)

        assert await delete_comment(session, leaf.id, alice.id) == 1
        assert await count_comments(session) == 1

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(self, session, alice, bob, make_feedback, make_comment):
        feedback = await make_feedback(alice)
        root = await make_comment(alice, feedback)
        await make_comment(bob, feedback, parent=root)

        with pytest.raises(AuthorizationError):
            await delete_comment(session, root.id, bob.id)
        assert await count_comments(session) == 2

    @pytest.mark.asyncio
    async def test_failure_midway_rolls_back_whole_subtree(
        self, session, alice, bob, make_feedback, make_comment, monkeypatch
    ):
        feedback = await make_feedback(alice)
        root = await make_comment(alice, feedback)
        child = await make_comment(bob, feedback, parent=root)
        await make_comment(alice, feedback, parent=child)

        execute = session.execute
        deletes = []

        async def fail_on_second_delete(statement, *args, **kwargs):
            if isinstance(statement, Delete):
                deletes.append(statement)
                if len(deletes) == 2:
                    raise RuntimeError("connection lost")
            return await execute(statement, *args, **kwargs)

        monkeypatch.setattr(session, "execute", AsyncMock(side_effect=fail_on_second_delete))

        with pytest.raises(RuntimeError, match="connection lost"):
            await delete_comment(session, root.id, alice.id)

        monkeypatch.undo()
        assert len(deletes) == 2
        assert await count_comments(session) == 3


class TestGetComment:
    @pytest.mark.asyncio
    async def test_detail_includes_feedback_summary(self, session, alice, bob, make_feedback, make_comment):
        feedback = await make_feedback(alice, title="Export to CSV")
        root = await make_comment(bob, feedback)
        reply = await make_comment(alice, feedback, parent=root)

        detail = await get_comment_detail(session, root.id)

        assert detail.id == root.id
        assert [r.id for r in detail.replies] == [reply.id]
        assert detail.feedback.id == feedback.id
        assert detail.feedback.title == "Export to CSV"
        assert detail.feedback.status == "open"

    @pytest.mark.asyncio
    async def test_missing_comment(self, session):
        with pytest.raises(NotFoundError):
            await get_comment_detail(session, 404)

    @pytest.mark.asyncio
    async def test_mentioned_users_resolved_at_every_depth(self, session, alice, bob, make_feedback):
        feedback = await make_feedback(alice)
        root = await create_comment(
            session, CommentCreate(content="@alice @bob look", feedback_id=feedback.id), bob.id
        )
        await create_comment(
            session,
            CommentCreate(content="on it @bob", feedback_id=feedback.id, parent_id=root.id),
            alice.id,
        )

        thread = await get_comment_thread(session, feedback.id)

        assert sorted(user.name for user in thread[0].mentioned) == ["alice", "bob"]
        assert [user.name for user in thread[0].replies[0].mentioned] == ["bob"]

    @pytest.mark.asyncio
    async def test_no_mentions_means_empty_list(self, session, alice, make_feedback, make_comment):
        feedback = await make_feedback(alice)
        comment = await make_comment(alice, feedback, content="plain")

        assert (await get_comment(session, comment.id)).mentioned == []


class TestListComments:
    @pytest.mark.asyncio
    async def test_paginates_top_level_only(self, session, alice, bob, make_feedback, make_comment):
        feedback = await make_feedback(alice)
        first = await make_comment(alice, feedback, content="first")
        second = await make_comment(bob, feedback, content="second")
        third = await make_comment(alice, feedback, content="third")
        replies = [await make_comment(bob, feedback, parent=first) for _ in range(3)]
        nested = await make_comment(alice, feedback, parent=replies[0])

        page_one, total = await list_comments(session, feedback.id, page=1, per_page=2)
        assert total == 3
        assert [c.id for c in page_one] == [first.id, second.id]
        # every reply is attached regardless of page size
        assert [r.id for r in page_one[0].replies] == [r.id for r in replies]
        assert [r.id for r in page_one[0].replies[0].replies] == [nested.id]
        assert page_one[0].replies[0].user.name == "bob"

        page_two, _ = await list_comments(session, feedback.id, page=2, per_page=2)
        assert [c.id for c in page_two] == [third.id]

    @pytest.mark.asyncio
    async def test_missing_feedback(self, session):
        with pytest.raises(NotFoundError):
            await list_comments(session, 123)

    @pytest.mark.asyncio
    async def test_empty_feedback_has_no_comments(self, session, alice, make_feedback):
        feedback = await make_feedback(alice)
        comments, total = await list_comments(session, feedback.id)
        assert comments == []
        assert total == 0


@pytest.mark.asyncio
async def test_thread_contains_every_comment_once(session, alice, bob, make_feedback, make_comment):
    feedback = await make_feedback(alice)
    other = await make_feedback(bob, title="other")
    root = await make_comment(alice, feedback)
    reply = await make_comment(bob, feedback, parent=root)
    await make_comment(alice, feedback, parent=reply)
    await make_comment(bob, feedback)
    await make_comment(bob, other)

    thread = await get_comment_thread(session, feedback.id)

    ids = flat_ids(thread)
    assert len(ids) == 4
    assert len(set(ids)) == 4
    assert [c.id for c in thread][0] == root.id
