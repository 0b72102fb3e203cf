"""URL resolvers for short and tracking links."""

from .base import BaseResolver
from .redirect import RedirectResolver

__all__ = [
    "BaseResolver",
    "RedirectResolver",
]
