"""Link Dispatcher - classify incoming deep links and route them to handlers.

This module provides tools to:
1. Classify URLs (custom scheme, universal links, file URLs, quick actions)
   into link categories with their extracted parameters
2. Detect every recognizable link in free text
3. Resolve short/tracking URLs over HTTP before classifying them
4. Dispatch classified links to registered handlers, deferring links that
   need a logged-in session until login or onboarding completes

Example:
    from link_dispatcher import LinkCategory, LinkDispatcher

    dispatcher = LinkDispatcher()
    dispatcher.register(LinkCategory.FILE_LINK, open_file_link)
    dispatcher.set_fallback(show_home)

    result = dispatcher.dispatch("https://mega.nz/file/abcDEF12#key")
    if result.deferred:
        ...  # show login, then dispatcher.flush_pending(logged_in_context)
"""

import logging
import threading
from dataclasses import replace
from typing import Callable, Optional

from .config import Config
from .links import LinkClassifier, classify, classify_quick_action, match_quick_action
from .models import (
    ChatTarget,
    ClassifiedLink,
    DispatchContext,
    DispatchResult,
    LaunchState,
    LinkCategory,
    LinkSource,
    NodeTarget,
    PathTarget,
    PayloadTarget,
    ResolvedURL,
    TokenTarget,
)
from .resolvers import BaseResolver, RedirectResolver

__version__ = "0.1.0"

__all__ = [
    # Main class
    "LinkDispatcher",
    # Models
    "ChatTarget",
    "ClassifiedLink",
    "DispatchContext",
    "DispatchResult",
    "LaunchState",
    "LinkCategory",
    "LinkSource",
    "NodeTarget",
    "PathTarget",
    "PayloadTarget",
    "ResolvedURL",
    "TokenTarget",
    # Standalone use
    "BaseResolver",
    "Config",
    "LinkClassifier",
    "RedirectResolver",
    "classify",
    "classify_quick_action",
    "match_quick_action",
]

logger = logging.getLogger(__name__)

LinkHandler = Callable[[ClassifiedLink], None]


class LinkDispatcher:
    """Routes classified links to the handler registered for their category.

    Classification itself is pure; the dispatcher only adds the handler
    table and a single pending-link slot for links that arrive before the
    user has logged in.

    Example:
        dispatcher = LinkDispatcher(classifier=LinkClassifier(hosts=["mega.nz"]))
        dispatcher.register(LinkCategory.PUBLIC_CHAT_LINK, join_chat)

        result = dispatcher.dispatch(url, DispatchContext(logged_in=False))
        # later, from the onboarding completion callback:
        dispatcher.flush_pending(DispatchContext(logged_in=True))
    """

    def __init__(
        self,
        classifier: Optional[LinkClassifier] = None,
        resolver: Optional[BaseResolver] = None,
    ):
        """Initialize the dispatcher.

        Args:
            classifier: Classifier to use (default: standard rules and hosts).
            resolver: Resolver for classify_resolved() (default: RedirectResolver).
        """
        self.classifier = classifier or LinkClassifier()
        self.resolver = resolver or RedirectResolver()
        self._handlers: dict[LinkCategory, LinkHandler] = {}
        self._fallback: Optional[LinkHandler] = None
        self._pending: Optional[ClassifiedLink] = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Config) -> "LinkDispatcher":
        """Build a dispatcher from a ``Config``."""
        return cls(
            classifier=LinkClassifier.from_config(config),
            resolver=RedirectResolver(timeout=config.resolver_timeout),
        )

    def register(self, category: LinkCategory, handler: LinkHandler) -> None:
        """Register the handler for a category, replacing any previous one."""
        self._handlers[category] = handler

    def set_fallback(self, handler: Optional[LinkHandler]) -> None:
        """Set the handler used for categories without a registered handler."""
        self._fallback = handler

    def classify(
        self, raw_url: str, context: Optional[DispatchContext] = None
    ) -> ClassifiedLink:
        return self.classifier.classify(raw_url, context)

    async def classify_resolved(
        self, raw_url: str, context: Optional[DispatchContext] = None
    ) -> ClassifiedLink:
        """Classify a URL, resolving HTTP redirects if it is not recognized.

        Only unrecognized HTTP(S) URLs cost a network round trip. The result
        keeps the original ``raw_url``.

        Args:
            raw_url: URL exactly as received.
            context: How the URL arrived.

        Returns:
            ClassifiedLink for the final URL, or the direct result if
            resolution failed or did not help.
        """
        link = self.classify(raw_url, context)
        if not link.is_default or not isinstance(raw_url, str):
            return link
        if not self.resolver.is_http_url(link.url):
            return link

        resolved = await self.resolver.resolve(link.url)
        if not resolved.success or not resolved.final_url:
            logger.info(f"Could not resolve {link.url}: {resolved.error}")
            return link
        if resolved.final_url == link.url:
            return link

        final = self.classify(resolved.final_url, context)
        if final.is_default:
            return link

        logger.info(
            f"Resolved {link.url} to {final.category.value} in {resolved.hops} hops"
        )
        return replace(final, raw_url=raw_url)

    def dispatch(
        self, raw_url: str, context: Optional[DispatchContext] = None
    ) -> DispatchResult:
        """Classify a URL and hand it to its handler.

        Args:
            raw_url: URL exactly as received.
            context: How the URL arrived and whether a session exists.

        Returns:
            DispatchResult. Handler exceptions are reported in ``error``.
        """
        return self.dispatch_link(self.classify(raw_url, context))

    def dispatch_link(self, link: ClassifiedLink) -> DispatchResult:
        """Hand an already classified link to its handler."""
        if link.category.requires_login and not link.context.logged_in:
            with self._lock:
                replaced = self._pending
                self._pending = link
            if replaced is not None:
                logger.info(f"Replacing pending {replaced.category.value} link")
            logger.info(f"Deferring {link.category.value} link until login")
            return DispatchResult(link=link, deferred=True)

        handler = self._handlers.get(link.category, self._fallback)
        if handler is None:
            logger.debug(f"No handler for {link.category.value}")
            return DispatchResult(link=link)

        try:
            handler(link)
        except Exception as e:
            logger.exception(f"Handler for {link.category.value} failed: {e}")
            return DispatchResult(link=link, error=str(e))

        return DispatchResult(link=link, handled=True)

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def take_pending(self) -> Optional[ClassifiedLink]:
        """Return and clear the pending link, if any."""
        with self._lock:
            link, self._pending = self._pending, None
        return link

    def flush_pending(
        self, context: Optional[DispatchContext] = None
    ) -> Optional[DispatchResult]:
        """Dispatch the pending link now that a session is available.

        Suitable as the completion callback of onboarding or login.

        Args:
            context: Current context; the pending link's context is kept
                but marked as logged in when omitted.

        Returns:
            DispatchResult, or None if nothing was pending.
        """
        link = self.take_pending()
        if link is None:
            return None

        if context is None:
            context = DispatchContext(
                source=link.context.source,
                launch=link.context.launch,
                logged_in=True,
            )
        link = replace(link, context=context)
        return self.dispatch_link(link)
