"""Reddit submission model and the actions a user can take on it."""

import logging
import re
import threading
from typing import Optional

from redditpost.core.exceptions import (
    NotModeratorError,
    NotSelfPostError,
    RateLimitError,
    RequestFailedError,
    ValidationFailedError,
)
from redditpost.core.types import Comment, CommentNode
from redditpost.services.comment_tree import CommentTreeEnumerator, CommentTreeFetcher
from redditpost.things.factory import parse_node

logger = logging.getLogger("redditpost")

COMMENT_PATH = "/api/comment"
EDIT_USER_TEXT_PATH = "/api/editusertext"
HIDE_PATH = "/api/hide"
UNHIDE_PATH = "/api/unhide"
MARK_NSFW_PATH = "/api/marknsfw"
UNMARK_NSFW_PATH = "/api/unmarknsfw"
CONTEST_MODE_PATH = "/api/set_contest_mode"
STICKY_PATH = "/api/set_subreddit_sticky"
SET_FLAIR_PATH = "/r/{subreddit}/api/flair"

# JSON key -> attribute name
_FIELDS = {
    "id": "id",
    "author": "author",
    "subreddit": "subreddit",
    "title": "title",
    "url": "url",
    "selftext": "selftext",
    "selftext_html": "selftext_html",
    "is_self": "is_self",
    "over_18": "nsfw",
    "link_flair_css_class": "link_flair_css_class",
    "link_flair_text": "link_flair_text",
    "num_comments": "num_comments",
    "permalink": "permalink",
    "thumbnail": "thumbnail",
    "domain": "domain",
    "score": "score",
    "created_utc": "created_utc",
    "stickied": "stickied",
    "locked": "locked",
    "contest_mode": "contest_mode",
    "hidden": "hidden",
}


_WAIT_PATTERN = re.compile(r"(\d+)\s*(second|minute|hour)s?\b", re.IGNORECASE)
_UNIT_SECONDS = {"second": 1, "minute": 60, "hour": 3600}


def parse_ratelimit_message(message: str) -> Optional[float]:
    """Seconds to wait from text like "try again in 5 minutes.", or None."""
    match = _WAIT_PATTERN.search(message)
    if match is None:
        return None
    return float(int(match.group(1)) * _UNIT_SECONDS[match.group(2).lower()])


def raise_for_api_errors(response) -> None:
    """Inspect an api_type=json response body for error markers.

    Raises:
        RateLimitError: json.ratelimit present, or a RATELIMIT error entry
        ValidationFailedError: json.errors is non-empty
    """
    if not isinstance(response, dict):
        return
    body = response.get("json")
    if not isinstance(body, dict):
        return

    if body.get("ratelimit") is not None:
        try:
            wait = float(body["ratelimit"])
        except (TypeError, ValueError):
            wait = None
        raise RateLimitError(f"Reddit asked to wait {body['ratelimit']}s", wait_seconds=wait)

    errors = body.get("errors") or []
    if not errors:
        return
    for error in errors:
        if isinstance(error, (list, tuple)) and error and error[0] == "RATELIMIT":
            message = str(error[1]) if len(error) > 1 else "RATELIMIT"
            raise RateLimitError(message, wait_seconds=parse_ratelimit_message(message))
    raise ValidationFailedError(f"Reddit rejected the request: {errors}", errors=list(errors))


class Post:
    """Snapshot of a Reddit submission (link or self-post).

    Fields are loaded once from the API's JSON and refreshed in place by
    update(). Action methods talk to Reddit through the owning session and
    need a logged-in user. Instances are not thread-safe.
    """

    def __init__(self, session, data: Optional[dict] = None):
        self._session = session
        self.id = ""
        self.author = "[deleted]"
        self.subreddit = ""
        self.title = ""
        self.url = ""
        self.selftext = ""
        self.selftext_html = ""
        self.is_self = False
        self.nsfw = False
        self.link_flair_css_class = None
        self.link_flair_text = None
        self.num_comments = 0
        self.permalink = ""
        self.thumbnail = ""
        self.domain = ""
        self.score = 0
        self.created_utc = 0.0
        self.stickied = False
        self.locked = False
        self.contest_mode = False
        self.hidden = False
        if data:
            self._apply(data)

    @classmethod
    def from_json(cls, session, data: dict) -> "Post":
        """Build a Post from a t3 thing or its data dict."""
        if "kind" in data and "data" in data:
            if data["kind"] != "t3":
                raise RequestFailedError(f"Expected a t3 thing, got {data['kind']!r}")
            data = data["data"]
        if not data.get("id"):
            raise RequestFailedError("Post data has no id")
        return cls(session, data)

    def _apply(self, data: dict) -> None:
        for key, attr in _FIELDS.items():
            if key in data:
                setattr(self, attr, data[key])
        if self.author is None:
            self.author = "[deleted]"

    def __repr__(self) -> str:
        return f"Post(id={self.id!r}, subreddit={self.subreddit!r}, title={self.title!r})"

    @property
    def fullname(self) -> str:
        return f"t3_{self.id}"

    @property
    def shortlink(self) -> str:
        return f"https://redd.it/{self.id}"

    # --- Comments ---

    def get_comments(self, limit: int = 0) -> list[Comment]:
        """Top-level comments of this post without "more" placeholders.

        Args:
            limit: Maximum number of comments, 0 for server default
        """
        return CommentTreeFetcher(self._session.transport).fetch_comments(self.id, limit, post=self)

    def get_comments_with_placeholders(self, limit: int = 0) -> list[CommentNode]:
        """Top-level comments plus MorePlaceholder markers, in server order.

        The list may hold more entries than limit because of placeholders.
        """
        return CommentTreeFetcher(self._session.transport).fetch_comments_with_placeholders(
            self.id, limit, post=self,
        )

    def enumerate_comment_tree(self, limit_per_request: int = 0,
                               cancel_event: Optional[threading.Event] = None,
                               ) -> CommentTreeEnumerator:
        """Every comment of this post, fetched lazily.

        Larger comment sections cause several requests while iterating.
        """
        return CommentTreeFetcher(self._session.transport).enumerate_all_comments(
            self.id, limit_per_request, post=self, cancel_event=cancel_event,
        )

    def comment(self, text: str) -> Comment:
        """Reply to this post with markdown text and return the new comment."""
        user = self._session.require_user()
        response = self._session.transport.post(COMMENT_PATH, {
            "api_type": "json",
            "text": text,
            "thing_id": self.fullname,
            "uh": user.modhash,
        })
        raise_for_api_errors(response)
        try:
            thing = response["json"]["data"]["things"][0]
        except (KeyError, IndexError, TypeError):
            raise RequestFailedError("Unexpected comment response format")
        new_comment = parse_node(thing, self)
        if not isinstance(new_comment, Comment):
            raise RequestFailedError("Comment response did not contain a comment")
        self.num_comments += 1
        logger.info(f"Commented on {self.fullname} as {new_comment.fullname}")
        return new_comment

    # --- Simple actions ---

    def _simple_action(self, path: str) -> dict | list:
        user = self._session.require_user()
        response = self._session.transport.post(path, {
            "id": self.fullname,
            "uh": user.modhash,
        })
        raise_for_api_errors(response)
        logger.info(f"{path} on {self.fullname}")
        return response

    def _toggle_action(self, path: str, state: bool, requires_mod: bool = False) -> dict | list:
        user = self._session.require_user()
        if requires_mod:
            moderators = self._session.get_moderator_names(self.subreddit)
            if user.name not in moderators:
                raise NotModeratorError(
                    f"User {user.name} is not a moderator of subreddit {self.subreddit}."
                )
        response = self._session.transport.post(path, {
            "api_type": "json",
            "id": self.fullname,
            "state": "true" if state else "false",
            "uh": user.modhash,
        })
        raise_for_api_errors(response)
        logger.info(f"{path} on {self.fullname} -> {state}")
        return response

    def hide(self) -> None:
        self._simple_action(HIDE_PATH)
        self.hidden = True

    def unhide(self) -> None:
        self._simple_action(UNHIDE_PATH)
        self.hidden = False

    def mark_nsfw(self) -> None:
        self._simple_action(MARK_NSFW_PATH)
        self.nsfw = True

    def unmark_nsfw(self) -> None:
        self._simple_action(UNMARK_NSFW_PATH)
        self.nsfw = False

    def set_contest_mode(self, state: bool) -> None:
        """Turn contest mode on or off. Moderators only."""
        self._toggle_action(CONTEST_MODE_PATH, state, requires_mod=True)
        self.contest_mode = state

    def set_sticky(self, state: bool) -> None:
        """Sticky or unsticky this post in its subreddit. Moderators only."""
        self._toggle_action(STICKY_PATH, state, requires_mod=True)
        self.stickied = state

    # --- Edits ---

    def edit_text(self, new_text: str) -> None:
        """Replace the self-text of this post.

        Raises:
            AuthenticationRequiredError: no user logged in
            NotSelfPostError: this is a link post
            ValidationFailedError: Reddit reported errors
        """
        user = self._session.require_user()
        if not self.is_self:
            raise NotSelfPostError()
        response = self._session.transport.post(EDIT_USER_TEXT_PATH, {
            "api_type": "json",
            "text": new_text,
            "thing_id": self.fullname,
            "uh": user.modhash,
        })
        raise_for_api_errors(response)
        self.selftext = new_text
        logger.info(f"Edited self-text of {self.fullname}")

    def set_flair(self, flair_text: str, flair_class: str) -> None:
        """Set the link flair of this post."""
        user = self._session.require_user()
        response = self._session.transport.post(SET_FLAIR_PATH.format(subreddit=self.subreddit), {
            "api_type": "json",
            "css_class": flair_class,
            "link": self.fullname,
            "name": user.name,
            "text": flair_text,
            "uh": user.modhash,
        })
        raise_for_api_errors(response)
        self.link_flair_text = flair_text
        self.link_flair_css_class = flair_class
        logger.info(f"Set flair of {self.fullname} to {flair_text!r}")

    def update(self) -> None:
        """Re-fetch this post and re-apply its fields in place."""
        self._apply(self._session.get_post_data(self.id))
        logger.debug(f"Refreshed {self.fullname}")
