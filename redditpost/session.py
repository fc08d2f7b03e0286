"""Session wiring: transport, logged-in user and entry points."""

import logging
from typing import Optional

from redditpost.adapters.requests_transport import DEFAULT_USER_AGENT, RequestsTransport
from redditpost.adapters.transport import Transport
from redditpost.core.config_manager import ConfigManager
from redditpost.core.exceptions import AuthenticationRequiredError, RequestFailedError
from redditpost.core.types import AuthenticatedUser
from redditpost.services.comment_tree import CommentTreeFetcher
from redditpost.things.post import Post

logger = logging.getLogger("redditpost")

BY_ID_PATH = "/by_id/{fullname}.json"
MODERATORS_PATH = "/r/{subreddit}/about/moderators.json"


class RedditSession:
    """A transport plus the (optional) logged-in user that owns it."""

    def __init__(self, transport: Transport, user: Optional[AuthenticatedUser] = None):
        self.transport = transport
        self.user = user

    def require_user(self) -> AuthenticatedUser:
        """Return the logged-in user.

        Raises:
            AuthenticationRequiredError: no user is logged in
        """
        if self.user is None:
            raise AuthenticationRequiredError("No user logged in.")
        return self.user

    def comment_tree(self) -> CommentTreeFetcher:
        return CommentTreeFetcher(self.transport)

    def get_post(self, post_id: str) -> Post:
        """Fetch a single post by its short id (e.g., "8xwlg")."""
        return Post.from_json(self, self.get_post_data(post_id))

    def get_post_data(self, post_id: str) -> dict:
        """Fetch the raw data dict of a post by short id or t3_ fullname."""
        fullname = post_id if post_id.startswith("t3_") else f"t3_{post_id}"
        response = self.transport.get(BY_ID_PATH.format(fullname=fullname))
        try:
            children = response["data"]["children"]
        except (KeyError, TypeError):
            raise RequestFailedError(f"Unexpected by_id response for {fullname}")
        if not children or children[0].get("kind") != "t3":
            raise RequestFailedError(f"Post {fullname} not found")
        return children[0]["data"]

    def get_moderator_names(self, subreddit: str) -> list[str]:
        """List moderator account names of a subreddit."""
        response = self.transport.get(MODERATORS_PATH.format(subreddit=subreddit))
        try:
            children = response["data"]["children"]
        except (KeyError, TypeError):
            raise RequestFailedError(f"Unexpected moderator listing for r/{subreddit}")
        names = [child.get("name", "") for child in children if isinstance(child, dict)]
        logger.debug(f"r/{subreddit} has {len(names)} moderators")
        return names


def build_session(config: Optional[ConfigManager] = None,
                  user: Optional[AuthenticatedUser] = None) -> RedditSession:
    """Create a RedditSession from configuration.

    Startup sequence:
    1. ConfigManager (loads or creates settings.yaml)
    2. RequestsTransport from reddit.* settings
    3. RedditSession with the given user
    """
    config = config or ConfigManager()
    transport = RequestsTransport(
        base_url=config.get("reddit.base_url", RequestsTransport.BASE_URL),
        user_agent=config.get("reddit.user_agent", DEFAULT_USER_AGENT),
        request_interval_sec=config.get("reddit.request_interval_sec", 2),
        max_retries=config.get("reddit.max_retries", 3),
        timeout_sec=config.get("reddit.timeout_sec", 30),
    )
    logger.info(f"Session ready for {config.get('reddit.base_url')}"
                f" as {user.name if user else 'anonymous'}")
    return RedditSession(transport, user)
