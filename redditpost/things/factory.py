"""Decode Reddit JSON fragments into comment tree nodes."""

import logging
from typing import Optional

from redditpost.core.exceptions import RequestFailedError
from redditpost.core.types import Comment, CommentNode, MorePlaceholder

logger = logging.getLogger("redditpost")

COMMENT_KIND = "t1"
MORE_KIND = "more"


def parse_node(item: dict, post=None) -> CommentNode:
    """Decode one listing child into a Comment or MorePlaceholder.

    Replies are decoded recursively. post, when given, is attached to every
    decoded comment as a non-owning back reference.

    Raises:
        RequestFailedError: fragment is not a dict or its kind is not t1/more
    """
    if not isinstance(item, dict):
        raise RequestFailedError(f"Unexpected comment fragment: {type(item).__name__}")

    kind = item.get("kind")
    data = item.get("data")
    if not isinstance(data, dict):
        raise RequestFailedError(f"Comment fragment of kind {kind!r} has no data")

    if kind == MORE_KIND:
        return MorePlaceholder(
            id=data.get("id", ""),
            parent_id=data.get("parent_id", ""),
            depth=data.get("depth", 0),
            count=data.get("count", 0),
            children=list(data.get("children") or []),
        )
    if kind != COMMENT_KIND:
        raise RequestFailedError(f"Unrecognized thing kind in comment listing: {kind!r}")

    replies = []
    raw_replies = data.get("replies")
    # replies is empty string "" when no children, dict when children exist
    if isinstance(raw_replies, dict):
        for child in raw_replies.get("data", {}).get("children", []):
            replies.append(parse_node(child, post))

    comment = Comment(
        id=data["id"],
        author=data.get("author") or "[deleted]",
        body=data.get("body", ""),
        body_html=data.get("body_html") or "",
        score=data.get("score", 0),
        created_utc=data.get("created_utc", 0.0),
        depth=data.get("depth", 0),
        parent_id=data.get("parent_id", ""),
        link_id=data.get("link_id", ""),
        replies=replies,
    )
    if post is not None:
        comment.attach_post(post)
    return comment


def listing_children(response, what: str = "comment listing") -> list:
    """Return data.children of the last listing in a /comments response.

    Raises:
        RequestFailedError: response is not a non-empty list of listings
    """
    if not isinstance(response, list) or not response:
        raise RequestFailedError(f"Unexpected {what} response format")
    last = response[-1]
    if not isinstance(last, dict):
        raise RequestFailedError(f"Unexpected {what} response format")
    children = last.get("data", {}).get("children")
    if not isinstance(children, list):
        raise RequestFailedError(f"Missing children in {what}")
    return children


def nest_things(things: list, post=None) -> list[CommentNode]:
    """Rebuild a flat /api/morechildren result into trees.

    Things whose parent is in the same batch become replies of that parent;
    the others are returned as roots, in response order.
    """
    nodes = [parse_node(thing, post) for thing in things]
    by_fullname: dict[str, Comment] = {
        node.fullname: node for node in nodes if isinstance(node, Comment)
    }
    roots = []
    for node in nodes:
        parent: Optional[Comment] = by_fullname.get(node.parent_id)
        if parent is not None and parent is not node:
            parent.replies.append(node)
        else:
            roots.append(node)
    logger.debug(f"Nested {len(nodes)} expanded things into {len(roots)} roots")
    return roots
