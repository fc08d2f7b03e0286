"""Tests for Post."""

import pytest

from redditpost.core.exceptions import (
    AuthenticationRequiredError,
    NotModeratorError,
    NotSelfPostError,
    RateLimitError,
    RequestFailedError,
    ValidationFailedError,
)
from redditpost.core.types import Comment
from redditpost.things.post import Post, parse_ratelimit_message, raise_for_api_errors

from conftest import (
    comment_thing,
    make_by_id_response,
    make_comment_response,
    more_thing,
    post_data,
)

OK = {"json": {"errors": []}}


def moderators(*names):
    return {"kind": "UserList", "data": {"children": [{"name": n, "id": f"t2_{n}"} for n in names]}}


class TestPostFromJson:

    def test_maps_fields(self, session):
        post = Post.from_json(session, post_data(over_18=True, link_flair_text="News"))

        assert post.id == "abc123"
        assert post.fullname == "t3_abc123"
        assert post.author == "op"
        assert post.subreddit == "python"
        assert post.nsfw is True
        assert post.is_self is True
        assert post.link_flair_text == "News"
        assert post.num_comments == 3
        assert post.domain == "self.python"
        assert post.selftext_html == "<p>body</p>"

    def test_accepts_wrapped_thing(self, session):
        post = Post.from_json(session, {"kind": "t3", "data": post_data("xyz")})
        assert post.id == "xyz"

    def test_rejects_other_kinds(self, session):
        with pytest.raises(RequestFailedError):
            Post.from_json(session, {"kind": "t1", "data": {"id": "c1"}})

    def test_rejects_missing_id(self, session):
        with pytest.raises(RequestFailedError):
            Post.from_json(session, {"title": "no id"})


class TestPostComments:

    def test_get_comments_links_back_to_post(self, session, transport):
        transport.get.return_value = make_comment_response([
            comment_thing("c1"), more_thing("m1", ["c2"]),
        ])
        post = Post.from_json(session, post_data())
        comments = post.get_comments(limit=10)

        assert [c.id for c in comments] == ["c1"]
        assert comments[0].post is post
        transport.get.assert_called_once_with("/comments/abc123.json?limit=10")

    def test_get_comments_with_placeholders(self, session, transport):
        transport.get.return_value = make_comment_response([
            comment_thing("c1"), more_thing("m1", ["c2"]),
        ])
        post = Post.from_json(session, post_data())
        assert len(post.get_comments_with_placeholders()) == 2

    def test_enumerate_comment_tree(self, session, transport):
        transport.get.return_value = make_comment_response([comment_thing("c1"), comment_thing("c2")])
        post = Post.from_json(session, post_data())
        walked = list(post.enumerate_comment_tree())

        assert [c.id for c in walked] == ["c1", "c2"]
        assert walked[0].post is post


class TestPostComment:

    def test_comment_posts_form_and_returns_comment(self, session, transport):
        transport.post.return_value = {"json": {"errors": [], "data": {"things": [
            comment_thing("new1", "hi there", parent_id="t3_abc123"),
        ]}}}
        post = Post.from_json(session, post_data())
        result = post.comment("hi there")

        assert isinstance(result, Comment)
        assert result.id == "new1"
        assert result.post is post
        assert post.num_comments == 4
        transport.post.assert_called_once_with("/api/comment", {
            "api_type": "json",
            "text": "hi there",
            "thing_id": "t3_abc123",
            "uh": "mh123",
        })

    def test_comment_requires_user(self, anonymous_session, transport):
        post = Post.from_json(anonymous_session, post_data())
        with pytest.raises(AuthenticationRequiredError):
            post.comment("hi")
        transport.post.assert_not_called()

    def test_comment_rate_limited(self, session, transport):
        transport.post.return_value = {"json": {"ratelimit": 540.5, "errors": []}}
        post = Post.from_json(session, post_data())
        with pytest.raises(RateLimitError) as exc_info:
            post.comment("hi")
        assert exc_info.value.wait_seconds == 540.5

    def test_comment_unexpected_body(self, session, transport):
        transport.post.return_value = OK
        post = Post.from_json(session, post_data())
        with pytest.raises(RequestFailedError):
            post.comment("hi")


class TestSimpleActions:

    @pytest.mark.parametrize("method, path, attr, expected", [
        ("hide", "/api/hide", "hidden", True),
        ("unhide", "/api/unhide", "hidden", False),
        ("mark_nsfw", "/api/marknsfw", "nsfw", True),
        ("unmark_nsfw", "/api/unmarknsfw", "nsfw", False),
    ])
    def test_action_posts_id_and_modhash(self, session, transport, method, path, attr, expected):
        transport.post.return_value = {}
        post = Post.from_json(session, post_data(over_18=not expected, hidden=not expected))
        getattr(post, method)()

        transport.post.assert_called_once_with(path, {"id": "t3_abc123", "uh": "mh123"})
        assert getattr(post, attr) is expected

    def test_action_requires_user(self, anonymous_session, transport):
        post = Post.from_json(anonymous_session, post_data())
        with pytest.raises(AuthenticationRequiredError):
            post.hide()


class TestModeratorActions:

    def test_sticky_as_moderator(self, session, transport):
        transport.get.return_value = moderators("bob", "alice")
        transport.post.return_value = OK
        post = Post.from_json(session, post_data())
        post.set_sticky(True)

        transport.get.assert_called_once_with("/r/python/about/moderators.json")
        transport.post.assert_called_once_with("/api/set_subreddit_sticky", {
            "api_type": "json",
            "id": "t3_abc123",
            "state": "true",
            "uh": "mh123",
        })
        assert post.stickied is True

    def test_contest_mode_sends_state(self, session, transport):
        transport.get.return_value = moderators("alice")
        transport.post.return_value = OK
        post = Post.from_json(session, post_data())
        post.set_contest_mode(False)

        form = transport.post.call_args[0][1]
        assert transport.post.call_args[0][0] == "/api/set_contest_mode"
        assert form["state"] == "false"
        assert post.contest_mode is False

    def test_non_moderator_rejected(self, session, transport):
        transport.get.return_value = moderators("bob")
        post = Post.from_json(session, post_data())
        with pytest.raises(NotModeratorError):
            post.set_sticky(True)
        transport.post.assert_not_called()

    def test_not_moderator_is_authentication_error(self):
        assert issubclass(NotModeratorError, AuthenticationRequiredError)


class TestEditText:

    def test_edit_updates_selftext(self, session, transport):
        transport.post.return_value = OK
        post = Post.from_json(session, post_data())
        post.edit_text("new body")

        assert post.selftext == "new body"
        transport.post.assert_called_once_with("/api/editusertext", {
            "api_type": "json",
            "text": "new body",
            "thing_id": "t3_abc123",
            "uh": "mh123",
        })

    def test_edit_link_post_rejected(self, session, transport):
        post = Post.from_json(session, post_data(is_self=False))
        with pytest.raises(NotSelfPostError):
            post.edit_text("x")
        transport.post.assert_not_called()

    def test_edit_errors_leave_text_unchanged(self, session, transport):
        transport.post.return_value = {"json": {"errors": [["TOO_LONG", "this is too long", "text"]]}}
        post = Post.from_json(session, post_data())
        with pytest.raises(ValidationFailedError) as exc_info:
            post.edit_text("x" * 50000)

        assert post.selftext == "body"
        assert exc_info.value.errors[0][0] == "TOO_LONG"


class TestSetFlair:

    def test_set_flair(self, session, transport):
        transport.post.return_value = OK
        post = Post.from_json(session, post_data())
        post.set_flair("Solved", "solved")

        transport.post.assert_called_once_with("/r/python/api/flair", {
            "api_type": "json",
            "css_class": "solved",
            "link": "t3_abc123",
            "name": "alice",
            "text": "Solved",
            "uh": "mh123",
        })
        assert post.link_flair_text == "Solved"
        assert post.link_flair_css_class == "solved"


class TestUpdate:

    def test_update_reapplies_fields(self, session, transport):
        post = Post.from_json(session, post_data())
        transport.get.return_value = make_by_id_response(post_data(title="Edited", num_comments=9))
        post.update()

        transport.get.assert_called_once_with("/by_id/t3_abc123.json")
        assert post.title == "Edited"
        assert post.num_comments == 9

    def test_update_failure_propagates(self, session, transport):
        post = Post.from_json(session, post_data())
        transport.get.side_effect = RequestFailedError("down")
        with pytest.raises(RequestFailedError):
            post.update()
        assert post.title == "Test Post"


class TestRaiseForApiErrors:

    def test_no_errors(self):
        raise_for_api_errors(OK)
        raise_for_api_errors({})
        raise_for_api_errors([])

    def test_ratelimit_entry_in_errors(self):
        with pytest.raises(RateLimitError) as exc_info:
            raise_for_api_errors({"json": {"errors": [
                ["RATELIMIT", "you are doing that too much. try again in 5 minutes.", "ratelimit"],
            ]}})
        assert exc_info.value.wait_seconds == 300.0

    @pytest.mark.parametrize("message, expected", [
        ("try again in 1 minute.", 60.0),
        ("Take a break for 12 seconds before trying again.", 12.0),
        ("try again in 2 hours", 7200.0),
        ("slow down", None),
    ])
    def test_parse_ratelimit_message(self, message, expected):
        assert parse_ratelimit_message(message) == expected
