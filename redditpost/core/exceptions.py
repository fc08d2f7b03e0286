"""Custom exception hierarchy for redditpost."""

from typing import Optional


class RedditPostError(Exception):
    """Base exception for all redditpost errors."""

    def __init__(self, message: str = "An error occurred in redditpost"):
        self.message = message
        super().__init__(self.message)


class AuthenticationRequiredError(RedditPostError):
    """Action needs a logged-in user but the session has none."""

    def __init__(self, message: str = "No user logged in"):
        super().__init__(message)


class NotModeratorError(AuthenticationRequiredError):
    """Logged-in user is not a moderator of the post's subreddit."""

    def __init__(self, message: str = "User is not a moderator of this subreddit"):
        super().__init__(message)


class NetworkError(RedditPostError):
    """Base exception for network-related errors."""

    def __init__(self, message: str = "A network error occurred"):
        super().__init__(message)


class RequestFailedError(NetworkError):
    """Request failed or the response could not be understood."""

    def __init__(self, message: str = "Request to Reddit failed", status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RateLimitError(NetworkError):
    """Reddit reported a rate-limit window.

    wait_seconds is the delay reported by the server, or None when it
    did not say.
    """

    def __init__(self, message: str = "Reddit API rate limit exceeded",
                 wait_seconds: Optional[float] = None):
        self.wait_seconds = wait_seconds
        super().__init__(message)


class ValidationFailedError(RedditPostError):
    """Reddit rejected a submitted action via the errors list in its response."""

    def __init__(self, message: str = "Reddit rejected the request", errors: Optional[list] = None):
        self.errors = errors or []
        super().__init__(message)


class NotSelfPostError(ValidationFailedError):
    """Self-text edit attempted on a link post."""

    def __init__(self, message: str = "Submission to edit is not a self-post"):
        super().__init__(message)


class ConfigError(RedditPostError):
    """Configuration is invalid or missing."""

    def __init__(self, message: str = "Configuration error"):
        super().__init__(message)
