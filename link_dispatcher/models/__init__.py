"""Data models for link classification."""

from .types import (
    DEFAULT_CONTEXT,
    ChatTarget,
    ClassifiedLink,
    DispatchContext,
    DispatchResult,
    LaunchState,
    LinkCategory,
    LinkSource,
    LinkTarget,
    NodeTarget,
    PathTarget,
    PayloadTarget,
    ResolvedURL,
    TokenTarget,
)

__all__ = [
    "DEFAULT_CONTEXT",
    "ChatTarget",
    "ClassifiedLink",
    "DispatchContext",
    "DispatchResult",
    "LaunchState",
    "LinkCategory",
    "LinkSource",
    "LinkTarget",
    "NodeTarget",
    "PathTarget",
    "PayloadTarget",
    "ResolvedURL",
    "TokenTarget",
]
