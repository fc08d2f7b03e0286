"""Comment tree retrieval: one-shot fetches and lazy paginated enumeration."""

import logging
import threading
from collections import deque
from typing import Iterator, Optional

from redditpost.adapters.transport import Transport
from redditpost.core.exceptions import RequestFailedError
from redditpost.core.types import Comment, CommentNode, MorePlaceholder
from redditpost.things.factory import listing_children, nest_things, parse_node

logger = logging.getLogger("redditpost")

GET_COMMENTS_PATH = "/comments/{post_id}.json"
CONTINUE_THREAD_PATH = "/comments/{post_id}/_/{comment_id}.json"
MORE_CHILDREN_PATH = "/api/morechildren"

# Reddit refuses more ids than this in one morechildren call
MORE_CHILDREN_BATCH = 100


def _strip_prefix(fullname: str) -> str:
    return fullname.split("_", 1)[1] if "_" in fullname else fullname


def _with_limit(path: str, limit: int) -> str:
    if limit > 0:
        return f"{path}?limit={limit}"
    return path


def _shift_depth(node: CommentNode, offset: int) -> None:
    node.depth += offset
    if isinstance(node, Comment):
        for reply in node.replies:
            _shift_depth(reply, offset)


class CommentTreeFetcher:
    """Fetches a post's comments through a Transport.

    Responsibilities:
    - Build /comments/{id}.json requests
    - Decode listing children into Comment / MorePlaceholder nodes
    - Hand out lazy enumerators that expand placeholders on demand

    Nothing here catches or retries; transport errors reach the caller as-is.
    """

    def __init__(self, transport: Transport):
        self._transport = transport

    def fetch_comments(self, post_id: str, limit: int = 0, post=None) -> list[Comment]:
        """Fetch top-level comments, dropping "more" placeholders.

        Args:
            post_id: Reddit post ID (e.g., "8xwlg")
            limit: Maximum number of comments, 0 for server default
            post: Post to attach to the comments as a weak back reference

        Returns:
            List of Comment in server order

        Raises:
            RequestFailedError: Transport failure or unexpected response shape
            RateLimitError: 429 Too Many Requests
        """
        nodes = self.fetch_comments_with_placeholders(post_id, limit, post)
        comments = [node for node in nodes if isinstance(node, Comment)]
        logger.info(f"Fetched {len(comments)} comments for post {post_id}")
        return comments

    def fetch_comments_with_placeholders(self, post_id: str, limit: int = 0,
                                         post=None) -> list[CommentNode]:
        """Fetch top-level comments, keeping "more" placeholders.

        The result has exactly one node per child in the server response.
        """
        path = self._comments_path(post_id, limit)
        response = self._transport.get(path)
        return [parse_node(child, post) for child in listing_children(response)]

    def enumerate_all_comments(self, post_id: str, limit_per_request: int = 0,
                               post=None,
                               cancel_event: Optional[threading.Event] = None,
                               ) -> "CommentTreeEnumerator":
        """Lazily walk every comment of a post, expanding placeholders as needed.

        No request is sent until the first item is pulled. Each call starts
        a fresh walk from the top-level listing.
        """
        self._comments_path(post_id, limit_per_request)
        return CommentTreeEnumerator(self._transport, post_id, limit_per_request,
                                     post=post, cancel_event=cancel_event)

    @staticmethod
    def _comments_path(post_id: str, limit: int) -> str:
        if not post_id:
            raise ValueError("post_id must be a non-empty string")
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        return _with_limit(GET_COMMENTS_PATH.format(post_id=post_id), limit)


class CommentTreeEnumerator:
    """Pull-based, depth-first walk over a post's full comment tree.

    Each next() either pops a buffered node or issues exactly one request
    to refill the buffer. Cancellation is checked before every request.
    Single-pass: once exhausted, cancelled or failed it stays finished.
    """

    def __init__(self, transport: Transport, post_id: str, limit_per_request: int = 0,
                 post=None, cancel_event: Optional[threading.Event] = None):
        self._transport = transport
        self._post_id = post_id
        self._link_id = f"t3_{post_id}"
        self._limit = limit_per_request
        self._post = post
        self._cancel_event = cancel_event or threading.Event()
        self._requests_made = 0
        self._walk = self._generate()

    def __iter__(self) -> "CommentTreeEnumerator":
        return self

    def __next__(self) -> Comment:
        return next(self._walk)

    @property
    def requests_made(self) -> int:
        return self._requests_made

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Stop before the next network call. Already-yielded comments stay valid."""
        self._cancel_event.set()

    def _generate(self) -> Iterator[Comment]:
        if self.cancelled:
            return
        fetcher = CommentTreeFetcher(self._transport)
        self._requests_made += 1
        pending: deque = deque(
            fetcher.fetch_comments_with_placeholders(self._post_id, self._limit, self._post)
        )

        while pending:
            if self.cancelled:
                logger.info(f"Comment walk of {self._post_id} cancelled after "
                            f"{self._requests_made} requests")
                return
            node = pending.popleft()
            if isinstance(node, Comment):
                # Replies go first to keep depth-first order
                pending.extendleft(reversed(node.replies))
                yield node
                continue

            if not node.children and not node.is_continue_thread:
                logger.debug(f"Skipping empty placeholder {node.id} under {node.parent_id}")
                continue
            pending.extendleft(reversed(self._expand(node)))

        logger.info(f"Comment walk of {self._post_id} finished after "
                    f"{self._requests_made} requests")

    def _expand(self, placeholder: MorePlaceholder) -> list[CommentNode]:
        """Fetch what a placeholder stands for. Exactly one request."""
        self._requests_made += 1
        if placeholder.is_continue_thread:
            return self._continue_thread(placeholder)

        batch = placeholder.children[:MORE_CHILDREN_BATCH]
        rest = placeholder.children[MORE_CHILDREN_BATCH:]
        response = self._transport.post(MORE_CHILDREN_PATH, {
            "api_type": "json",
            "link_id": self._link_id,
            "children": ",".join(batch),
            "limit_children": "false",
        })
        things = self._morechildren_things(response)
        nodes = nest_things(things, self._post)
        logger.debug(f"Expanded {len(batch)} ids of placeholder {placeholder.id} "
                     f"into {len(nodes)} nodes")
        if rest:
            nodes.append(MorePlaceholder(
                id=placeholder.id,
                parent_id=placeholder.parent_id,
                depth=placeholder.depth,
                count=max(placeholder.count - len(batch), len(rest)),
                children=rest,
            ))
        return nodes

    def _continue_thread(self, placeholder: MorePlaceholder) -> list[CommentNode]:
        parent_id = _strip_prefix(placeholder.parent_id)
        path = _with_limit(
            CONTINUE_THREAD_PATH.format(post_id=self._post_id, comment_id=parent_id),
            self._limit,
        )
        response = self._transport.get(path)
        children = listing_children(response, "continued thread")
        if not children:
            return []
        parent = parse_node(children[0], self._post)
        if not isinstance(parent, Comment):
            return []
        # Depths in the response restart at the continued parent
        offset = placeholder.depth - (parent.depth + 1)
        if offset:
            for reply in parent.replies:
                _shift_depth(reply, offset)
        return parent.replies

    @staticmethod
    def _morechildren_things(response) -> list:
        try:
            things = response["json"]["data"]["things"]
        except (KeyError, TypeError):
            raise RequestFailedError("Unexpected morechildren response format")
        if not isinstance(things, list):
            raise RequestFailedError("Unexpected morechildren response format")
        return things
