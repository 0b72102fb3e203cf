"""Base class for URL resolvers."""

from abc import ABC, abstractmethod

from ..models.types import ResolvedURL


class BaseResolver(ABC):
    """Abstract base class for URL resolvers.

    All resolvers must implement the resolve() method which takes a URL
    and returns a ResolvedURL describing where it finally points.
    """

    @abstractmethod
    async def resolve(self, url: str) -> ResolvedURL:
        """Resolve a URL to its final destination.

        Args:
            url: The URL to resolve.

        Returns:
            ResolvedURL with the final URL or error information.
        """
        pass

    @staticmethod
    def is_http_url(url: str) -> bool:
        return url.strip().lower().startswith(("http://", "https://"))
