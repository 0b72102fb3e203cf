"""Deep-link classification.

Maps any incoming URL to exactly one ``LinkCategory``. Classification never
raises: malformed or unrecognized input becomes ``LinkCategory.DEFAULT`` with
the raw string preserved.
"""

import logging
import re
from typing import Iterable, Optional
from urllib.parse import parse_qs, unquote, urlsplit

from ..models.types import (
    DEFAULT_CONTEXT,
    ClassifiedLink,
    DispatchContext,
    LinkCategory,
    LinkSource,
    PathTarget,
)
from .quick_actions import classify_quick_action
from .rules import DEFAULT_RULES, LinkParts, LinkRule

logger = logging.getLogger(__name__)

DEFAULT_SCHEME = "mega"
DEFAULT_HOSTS = ("mega.nz", "mega.app", "mega.co.nz")

SCHEME_PATTERN = re.compile(r"^(?P<scheme>[A-Za-z][A-Za-z0-9+.-]*):(?P<rest>.*)$", re.DOTALL)
AUTHORITY_END = re.compile(r"[/?#]")


class LinkClassifier:
    """Classifies deep links into categories and extracts their parameters.

    The rule table is an immutable tuple evaluated in order; the first rule
    that matches decides the category.

    Example:
        classifier = LinkClassifier()
        link = classifier.classify("https://mega.nz/file/abcDEF12#key")
        print(link.category, link.parameters)
    """

    # Known redirect/tracking domains
    REDIRECT_DOMAINS = [
        r"click\.",
        r"track\.",
        r"redirect\.",
        r"link\.",
        r"go\.",
        r"mailchimp\.com",
        r"hubspot\.com",
        r"sendgrid\.net",
    ]

    # Query parameters that carry the wrapped target
    REDIRECT_PARAMS = [
        "url",
        "redirect",
        "target",
        "dest",
        "destination",
        "link",
        "goto",
    ]

    def __init__(
        self,
        scheme: str = DEFAULT_SCHEME,
        hosts: Iterable[str] = DEFAULT_HOSTS,
        rules: tuple[LinkRule, ...] = DEFAULT_RULES,
        unwrap_redirects: bool = True,
        max_redirect_depth: int = 3,
    ):
        """Initialize the classifier.

        Args:
            scheme: The application's custom URL scheme.
            hosts: Hosts whose HTTPS links are universal links for the app.
                A single host may be passed as a string.
            rules: Ordered rule table.
            unwrap_redirects: Whether to unwrap tracking redirect URLs.
            max_redirect_depth: Maximum number of nested redirects to unwrap.
        """
        if isinstance(hosts, str):
            hosts = (hosts,)
        self.scheme = scheme.lower()
        self.hosts = frozenset(h.lower().strip() for h in hosts if h.strip())
        self.rules = tuple(rules)
        self.unwrap_redirects = unwrap_redirects
        self.max_redirect_depth = max(0, max_redirect_depth)
        self._url_pattern = re.compile(
            rf"\b(?:https?://|{re.escape(self.scheme)}:)[^\s<>\"')\]]+",
            re.IGNORECASE,
        )

    @classmethod
    def from_config(cls, config) -> "LinkClassifier":
        """Build a classifier from a ``Config``."""
        return cls(
            scheme=config.link_scheme,
            hosts=config.link_hosts,
            unwrap_redirects=config.unwrap_redirects,
            max_redirect_depth=config.max_redirect_depth,
        )

    def classify(
        self, raw_url: str, context: Optional[DispatchContext] = None
    ) -> ClassifiedLink:
        """Classify a URL.

        Args:
            raw_url: URL exactly as received.
            context: How the URL arrived. Quick action sources are matched
                against shortcut types instead of URL rules.

        Returns:
            ClassifiedLink; DEFAULT with no parameters if nothing matched.
        """
        context = context or DEFAULT_CONTEXT
        if not isinstance(raw_url, str):
            logger.debug(f"Ignoring non-string link input: {type(raw_url).__name__}")
            return ClassifiedLink(LinkCategory.DEFAULT, raw_url="", context=context)

        try:
            return self._classify(raw_url, context)
        except Exception as e:
            logger.warning(f"Failed to classify {raw_url!r}: {e}")
            return ClassifiedLink(
                LinkCategory.DEFAULT, raw_url=raw_url, url=raw_url, context=context
            )

    def _classify(self, raw_url: str, context: DispatchContext) -> ClassifiedLink:
        url = raw_url.strip()
        if not url:
            return self._default(raw_url, url, context)

        if context.source == LinkSource.QUICK_ACTION:
            category = classify_quick_action(url)
            return ClassifiedLink(category, raw_url=raw_url, url=url, context=context)

        if self.unwrap_redirects:
            url = self.unwrap_redirect(url)

        m = SCHEME_PATTERN.match(url)
        if not m:
            return self._default(raw_url, url, context)
        scheme = m.group("scheme").lower()
        rest = m.group("rest")

        if scheme == "file":
            path = unquote(urlsplit(url).path)
            if not path:
                return self._default(raw_url, url, context)
            return ClassifiedLink(
                LinkCategory.OPEN_IN_LINK,
                raw_url=raw_url,
                url=url,
                target=PathTarget(path),
                context=context,
            )

        if scheme == self.scheme:
            body = rest.lstrip("/")
        elif scheme in ("http", "https"):
            body = self._universal_link_body(rest)
        else:
            body = None
        if body is None:
            return self._default(raw_url, url, context)

        parts = LinkParts.split(body)
        for rule in self.rules:
            result = rule.match(parts)
            if result is None or result is False:
                continue
            target = None if result is True else result
            signature = f" ({rule.description})" if rule.description else ""
            logger.debug(f"Classified {url!r} as {rule.category.value}{signature}")
            return ClassifiedLink(
                rule.category, raw_url=raw_url, url=url, target=target, context=context
            )

        logger.debug(f"No rule matched {url!r}")
        return self._default(raw_url, url, context)

    @staticmethod
    def _default(raw_url: str, url: str, context: DispatchContext) -> ClassifiedLink:
        return ClassifiedLink(LinkCategory.DEFAULT, raw_url=raw_url, url=url, context=context)

    def _universal_link_body(self, rest: str) -> Optional[str]:
        """Return the part of an HTTP(S) URL after a recognized host, or None."""
        if not rest.startswith("//"):
            return None
        remainder = rest[2:]
        m = AUTHORITY_END.search(remainder)
        if m:
            authority, body = remainder[:m.start()], remainder[m.start():]
        else:
            authority, body = remainder, ""
        host = authority.rsplit("@", 1)[-1].split(":", 1)[0].lower()
        if host.startswith("www."):
            host = host[4:]
        if host not in self.hosts:
            return None
        return body.lstrip("/")

    def unwrap_redirect(self, url: str) -> str:
        """Replace tracking redirect URLs with the link they wrap.

        Nested wrappers are unwrapped up to ``max_redirect_depth`` times.

        Args:
            url: A potential redirect URL.

        Returns:
            The innermost target URL, or ``url`` unchanged.
        """
        for _ in range(self.max_redirect_depth):
            target = self.extract_url_from_redirect(url)
            if not target:
                break
            logger.debug(f"Unwrapped redirect {url!r} -> {target!r}")
            url = target
        return url

    def extract_url_from_redirect(self, url: str) -> Optional[str]:
        """Extract the target URL from a single redirect/tracking URL.

        Common patterns:
        - https://click.mailchimp.com/...?url=https%3A%2F%2Fmega.nz%2F...
        - https://link.example.com/...?target=mega%3A%2F%2F...

        Args:
            url: A potential redirect URL.

        Returns:
            The extracted target URL, or None if not a redirect.
        """
        try:
            parsed = urlsplit(url)
            if parsed.scheme.lower() not in ("http", "https"):
                return None
            domain = (parsed.hostname or "").lower()

            is_redirect = any(
                re.search(pattern, domain) for pattern in self.REDIRECT_DOMAINS
            )
            if not is_redirect:
                return None

            query_params = parse_qs(parsed.query)
            for param in self.REDIRECT_PARAMS:
                if param in query_params:
                    target_url = query_params[param][0].strip()
                    scheme = target_url.split(":", 1)[0].lower()
                    if scheme in ("http", "https", self.scheme):
                        return target_url

            return None

        except ValueError:
            return None

    def extract_urls(self, text: str) -> list[str]:
        """Extract all candidate link URLs from text.

        Args:
            text: Message text to search.

        Returns:
            URLs in order of appearance, with trailing punctuation removed.
        """
        if not text:
            return []
        return [u.rstrip(".,;:!?") for u in self._url_pattern.findall(text)]

    def detect_links(
        self, text: str, context: Optional[DispatchContext] = None
    ) -> list[ClassifiedLink]:
        """Extract and classify every recognizable link in text.

        Args:
            text: Message text to analyze.
            context: Context applied to every detected link.

        Returns:
            Non-default links in order of first appearance, without duplicates.
        """
        links = []
        seen_urls = set()

        for url in self.extract_urls(text):
            link = self.classify(url, context)
            if link.is_default or link.url in seen_urls:
                continue
            seen_urls.add(link.url)
            links.append(link)

        return links


_default_classifier = LinkClassifier()


def classify(raw_url: str, context: Optional[DispatchContext] = None) -> ClassifiedLink:
    """Classify a URL with the default classifier."""
    return _default_classifier.classify(raw_url, context)
