"""Shared test fixtures and Reddit JSON builders for redditpost tests."""

import shutil
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from redditpost.adapters.transport import Transport
from redditpost.core.config_manager import ConfigManager
from redditpost.core.types import AuthenticatedUser
from redditpost.session import RedditSession


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset all singletons after each test."""
    yield
    ConfigManager.reset()


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def transport():
    """A Transport mock; set .get/.post return_value or side_effect per test."""
    return MagicMock(spec=Transport)


@pytest.fixture
def user():
    return AuthenticatedUser(name="alice", modhash="mh123")


@pytest.fixture
def session(transport, user):
    return RedditSession(transport, user)


@pytest.fixture
def anonymous_session(transport):
    return RedditSession(transport)


# --- Helpers: Reddit JSON builders ---

def comment_thing(comment_id, body="test comment", depth=0, parent_id="t3_abc123",
                  replies=None, author="commenter"):
    """A t1 thing. replies is a list of things or None for no replies."""
    return {
        "kind": "t1",
        "data": {
            "id": comment_id,
            "name": f"t1_{comment_id}",
            "author": author,
            "body": body,
            "body_html": f"<p>{body}</p>",
            "score": 10,
            "created_utc": 1700000000.0,
            "depth": depth,
            "parent_id": parent_id,
            "link_id": "t3_abc123",
            "replies": {"kind": "Listing", "data": {"children": replies}} if replies else "",
        },
    }


def more_thing(more_id, children, parent_id="t3_abc123", depth=0, count=None):
    return {
        "kind": "more",
        "data": {
            "id": more_id,
            "name": f"t1_{more_id}",
            "parent_id": parent_id,
            "depth": depth,
            "count": len(children) if count is None else count,
            "children": list(children),
        },
    }


def post_data(post_id="abc123", **overrides):
    data = {
        "id": post_id,
        "name": f"t3_{post_id}",
        "author": "op",
        "subreddit": "python",
        "title": "Test Post",
        "url": f"https://www.reddit.com/r/python/comments/{post_id}/test_post/",
        "selftext": "body",
        "selftext_html": "<p>body</p>",
        "is_self": True,
        "over_18": False,
        "link_flair_css_class": None,
        "link_flair_text": None,
        "num_comments": 3,
        "permalink": f"/r/python/comments/{post_id}/test_post/",
        "thumbnail": "self",
        "domain": "self.python",
        "score": 42,
        "created_utc": 1700000000.0,
    }
    data.update(overrides)
    return data


def make_comment_response(children, post_id="abc123"):
    """A /comments/{id}.json response: [post listing, comment listing]."""
    post_listing = {"kind": "Listing", "data": {"children": [{"kind": "t3", "data": post_data(post_id)}]}}
    comment_listing = {"kind": "Listing", "data": {"children": list(children)}}
    return [post_listing, comment_listing]


def make_morechildren_response(things):
    return {"json": {"errors": [], "data": {"things": list(things)}}}


def make_by_id_response(data):
    return {"kind": "Listing", "data": {"children": [{"kind": "t3", "data": data}]}}
