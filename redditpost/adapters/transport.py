"""Abstract base class for talking to the Reddit API."""

from abc import ABC, abstractmethod
from typing import Optional


class Transport(ABC):
    """Abstract interface for Reddit HTTP access."""

    @abstractmethod
    def get(self, path: str, params: Optional[dict] = None) -> dict | list:
        """Fetch JSON from a Reddit path.

        Args:
            path: Path relative to the API root (e.g., "/comments/abc.json?limit=5")
            params: Extra query parameters

        Returns:
            Decoded JSON document

        Raises:
            RequestFailedError: Network error, bad status or undecodable body
            RateLimitError: 429 Too Many Requests after retries
        """
        ...

    @abstractmethod
    def post(self, path: str, form: dict) -> dict | list:
        """Send a form-encoded POST to a Reddit path.

        Args:
            path: Path relative to the API root (e.g., "/api/hide")
            form: Form fields

        Returns:
            Decoded JSON document

        Raises:
            RequestFailedError: Network error, bad status or undecodable body
            RateLimitError: 429 Too Many Requests after retries
        """
        ...
