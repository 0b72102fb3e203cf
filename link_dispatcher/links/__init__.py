"""Link classification - pure, no I/O."""

from .classifier import LinkClassifier, classify
from .quick_actions import classify_quick_action, match_quick_action
from .rules import DEFAULT_RULES, LinkParts, LinkRule

__all__ = [
    "DEFAULT_RULES",
    "LinkClassifier",
    "LinkParts",
    "LinkRule",
    "classify",
    "classify_quick_action",
    "match_quick_action",
]
