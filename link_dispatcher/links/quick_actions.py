"""Home-screen quick action matching.

Quick action types look like ``mega.ios.upload`` or, for build variants,
``mega.ios.qa.upload``.
"""

import logging
import re

from ..models.types import LinkCategory

logger = logging.getLogger(__name__)

QUICK_ACTIONS = {
    "upload": LinkCategory.UPLOAD_FILE,
    "scan": LinkCategory.SCAN_DOCUMENT,
    "startconversation": LinkCategory.START_CONVERSATION,
    "addcontact": LinkCategory.ADD_CONTACT,
    "recents": LinkCategory.SHOW_RECENTS,
    "favourites": LinkCategory.SHOW_FAVOURITES,
    "offline": LinkCategory.SHOW_OFFLINE,
}


def match_quick_action(shortcut_type: str, action: str) -> bool:
    """Check whether a shortcut type names the given action.

    Args:
        shortcut_type: Shortcut item type as delivered by the OS.
        action: Action suffix to test for, e.g. ``"upload"``.

    Returns:
        True if ``shortcut_type`` is ``mega.ios[.<variant>].<action>``.
    """
    if not shortcut_type or not action:
        return False
    pattern = rf"mega\.ios(?:\.[a-zA-Z]+)?\.{re.escape(action)}"
    return re.fullmatch(pattern, shortcut_type) is not None


def classify_quick_action(shortcut_type: str) -> LinkCategory:
    """Map a shortcut type to its action category, or DEFAULT."""
    if not isinstance(shortcut_type, str):
        return LinkCategory.DEFAULT
    shortcut_type = shortcut_type.strip()
    for action, category in QUICK_ACTIONS.items():
        if match_quick_action(shortcut_type, action):
            return category
    logger.debug(f"Unrecognized quick action: {shortcut_type!r}")
    return LinkCategory.DEFAULT
