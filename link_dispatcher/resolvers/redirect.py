"""HTTP redirect resolution for short and tracking links.

Redirects are followed one hop at a time so that a ``Location`` pointing at
the app's custom scheme ends the chain instead of failing the request.
"""

import logging
from typing import Optional
from urllib.parse import urljoin

import httpx

from .base import BaseResolver
from ..models.types import ResolvedURL

logger = logging.getLogger(__name__)

# Browser-like headers; some link shorteners serve interstitials to bots
_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) "
        "AppleWebKit/605.1.15 (KHTML, like Gecko) "
        "Version/17.4 Mobile/15E148 Safari/604.1"
    ),
    "Accept": "text/html,application/xhtml+xml,*/*;q=0.8",
}


class RedirectResolver(BaseResolver):
    """Follows HTTP redirects and reports the final URL.

    Example:
        resolver = RedirectResolver(timeout=10.0)
        result = await resolver.resolve("https://short.example/abc")
        if result.success:
            print(result.final_url)
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_redirects: int = 10,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the resolver.

        Args:
            timeout: Per-request timeout in seconds.
            max_redirects: Maximum number of hops to follow.
            client: Optional shared client; one is created per call otherwise.
        """
        self.timeout = timeout
        self.max_redirects = max_redirects
        self._client = client

    async def resolve(self, url: str) -> ResolvedURL:
        """Follow redirects starting at ``url``.

        Args:
            url: HTTP(S) URL to resolve.

        Returns:
            ResolvedURL; network failures and malformed URLs are reported
            in ``error``.
        """
        if not self.is_http_url(url):
            return ResolvedURL(url=url, success=False, error="Not an HTTP(S) URL")

        logger.info(f"RedirectResolver: resolving {url}")
        try:
            if self._client is not None:
                return await self._follow(self._client, url)
            async with httpx.AsyncClient(
                timeout=self.timeout, headers=_HEADERS
            ) as client:
                return await self._follow(client, url)
        except httpx.TimeoutException:
            logger.warning(f"Timed out resolving {url}")
            return ResolvedURL(
                url=url, success=False, error=f"Timeout ({self.timeout}s)"
            )
        except httpx.HTTPError as e:
            logger.warning(f"Failed to resolve {url}: {e}")
            return ResolvedURL(url=url, success=False, error=f"Connection error: {e}")
        except (httpx.InvalidURL, ValueError) as e:
            logger.warning(f"Invalid URL while resolving {url}: {e}")
            return ResolvedURL(url=url, success=False, error=f"Invalid URL: {e}")

    async def _follow(self, client: httpx.AsyncClient, url: str) -> ResolvedURL:
        current = url
        for hops in range(self.max_redirects + 1):
            response = await client.get(current, follow_redirects=False)
            location = response.headers.get("location")
            if not response.is_redirect or not location:
                logger.debug(f"Resolved {url} -> {current} ({hops} hops)")
                return ResolvedURL(url=url, success=True, final_url=current, hops=hops)

            current = urljoin(str(response.url), location)
            if not self.is_http_url(current):
                # Redirect into an app scheme; nothing more to fetch
                logger.debug(f"Resolved {url} -> {current} ({hops + 1} hops)")
                return ResolvedURL(
                    url=url, success=True, final_url=current, hops=hops + 1
                )

        return ResolvedURL(
            url=url,
            success=False,
            final_url=current,
            hops=self.max_redirects,
            error=f"Too many redirects (>{self.max_redirects})",
        )
