"""Assemble flat comment rows into reply trees.

Everything here is iterative so arbitrarily deep threads never hit the
interpreter recursion limit. Rows only need ``id``, ``parent_id`` and
``created_at`` attributes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, TypeVar

T = TypeVar("T")


@dataclass
class CommentNode:
    comment: Any
    replies: List["CommentNode"] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.comment.id


def _sort_key(node: CommentNode):
    # created_at can be None on rows built in memory before a flush
    return (node.comment.created_at or datetime.min, node.comment.id)


def build_comment_tree(comments: Iterable[Any]) -> List[CommentNode]:
    """Build a forest from flat comment rows.

    A row is a root when it has no parent or when its parent is not part of
    the input, which lets callers assemble a single comment's subtree or one
    page of top-level comments. Roots and every sibling list are ordered by
    creation time, then id.
    """
    nodes: Dict[int, CommentNode] = {}
    for comment in comments:
        nodes.setdefault(comment.id, CommentNode(comment))

    roots: List[CommentNode] = []
    for node in nodes.values():
        parent_id = node.comment.parent_id
        parent = nodes.get(parent_id) if parent_id is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent.replies.append(node)

    for node in nodes.values():
        node.replies.sort(key=_sort_key)
    roots.sort(key=_sort_key)
    return roots


def flatten_comment_tree(roots: List[CommentNode]) -> List[CommentNode]:
    """Pre-order walk of the forest."""
    ordered: List[CommentNode] = []
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        ordered.append(node)
        stack.extend(reversed(node.replies))
    return ordered


def materialize_comment_tree(
    roots: List[CommentNode],
    factory: Callable[[Any, List[T]], T],
) -> List[T]:
    """Convert the forest bottom-up with ``factory(comment, built_replies)``."""
    built: Dict[int, T] = {}
    stack = [(node, False) for node in reversed(roots)]
    while stack:
        node, children_done = stack.pop()
        if children_done:
            built[node.id] = factory(node.comment, [built.pop(child.id) for child in node.replies])
        else:
            stack.append((node, True))
            stack.extend((child, False) for child in node.replies)
    return [built.pop(root.id) for root in roots]
