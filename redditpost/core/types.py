"""Comment tree node types for redditpost."""

import weakref
from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass
class AuthenticatedUser:
    """Logged-in Reddit account as handed over by the login flow."""

    name: str
    modhash: str                     # anti-forgery token sent as "uh"


@dataclass
class MorePlaceholder:
    """Marker for replies that exist but were not included in a response."""

    id: str
    parent_id: str = ""              # t3_* or t1_*
    depth: int = 0
    count: int = 0                   # total replies hidden behind this marker
    children: list[str] = field(default_factory=list)   # unfetched child ids

    @property
    def fullname(self) -> str:
        return f"t1_{self.id}"

    @property
    def is_continue_thread(self) -> bool:
        """True for a "continue this thread" marker.

        Reddit sends these as id "_" with no child ids and usually count 0;
        only the parent comment identifies what to fetch.
        """
        return not self.children and self.parent_id.startswith("t1_")


@dataclass
class Comment:
    """A reply attached to a post or to another comment."""

    id: str
    author: str = "[deleted]"
    body: str = ""                   # Raw markdown
    body_html: str = ""
    score: int = 0
    created_utc: float = 0.0
    depth: int = 0                   # nesting depth (0 = top-level)
    parent_id: str = ""              # t3_* or t1_*
    link_id: str = ""                # fullname of the owning post
    replies: list["CommentNode"] = field(default_factory=list)
    _post_ref: Optional[weakref.ref] = field(default=None, repr=False, compare=False)

    @property
    def fullname(self) -> str:
        return f"t1_{self.id}"

    @property
    def post(self):
        """The Post this comment was fetched through, if it is still alive."""
        if self._post_ref is None:
            return None
        return self._post_ref()

    def attach_post(self, post) -> None:
        """Point this comment and its loaded replies at post without owning it."""
        self._post_ref = weakref.ref(post) if post is not None else None
        for reply in self.replies:
            if isinstance(reply, Comment):
                reply.attach_post(post)


CommentNode = Union[Comment, MorePlaceholder]
