"""Ordered rule table for deep-link classification.

Each rule looks at a ``LinkParts`` split of the link body and either returns
the extracted target (or ``True`` for rules that carry no parameters) or
``None`` when it does not apply. Rules are evaluated in table order and the
first match wins, so specific signatures must come before general ones.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, Union
from urllib.parse import parse_qs, unquote

from ..models.types import (
    ChatTarget,
    LinkCategory,
    LinkTarget,
    NodeTarget,
    PathTarget,
    PayloadTarget,
    TokenTarget,
)

# URL-safe base64 alphabet used by handles, keys and account tokens
HANDLE = r"[A-Za-z0-9_-]+"
NODE_HANDLE = r"[A-Za-z0-9_-]{8}"
KEY = r"[A-Za-z0-9_-]+"
TOKEN = r"[A-Za-z0-9_-]{8,}"

MatchResult = Union[LinkTarget, bool, None]


@dataclass(frozen=True)
class LinkParts:
    """A link body split into path, query and fragment.

    ``route`` is the path without surrounding slashes or, for legacy
    hash-bang links whose path is empty, the fragment.
    """

    path: str
    query: str
    fragment: str

    @classmethod
    def split(cls, body: str) -> "LinkParts":
        body, _, fragment = body.partition("#")
        path, _, query = body.partition("?")
        return cls(path=path, query=query, fragment=fragment)

    @property
    def route(self) -> str:
        path = self.path.strip("/")
        return path if path else self.fragment

    @property
    def is_legacy(self) -> bool:
        return not self.path.strip("/") and bool(self.fragment)

    def query_value(self, name: str) -> Optional[str]:
        values = parse_qs(self.query).get(name)
        if not values or not values[0]:
            return None
        return values[0]


@dataclass(frozen=True)
class LinkRule:
    """A single classification rule."""

    category: LinkCategory
    match: Callable[[LinkParts], MatchResult]
    description: str = ""


def _full(pattern: str, text: str) -> Optional[re.Match]:
    return re.fullmatch(pattern, text)


def _exact(*routes: str) -> Callable[[LinkParts], MatchResult]:
    def match(parts: LinkParts) -> MatchResult:
        return parts.route in routes or None

    return match


def _token_after(keyword: str) -> Callable[[LinkParts], MatchResult]:
    pattern = rf"{keyword}[/=]?(?P<token>{TOKEN})"

    def match(parts: LinkParts) -> MatchResult:
        m = _full(pattern, parts.route)
        return TokenTarget(m.group("token")) if m else None

    return match


def _handle_after(prefix: str) -> Callable[[LinkParts], MatchResult]:
    pattern = rf"{re.escape(prefix)}(?P<handle>{HANDLE})"

    def match(parts: LinkParts) -> MatchResult:
        m = _full(pattern, parts.route)
        return NodeTarget(m.group("handle")) if m else None

    return match


def _chat_peer_options(parts: LinkParts) -> MatchResult:
    if parts.path.strip("/") != "chatPeerOptions":
        return None
    m = _full(HANDLE, parts.fragment)
    return NodeTarget(m.group(0)) if m else None


def _offline_file(parts: LinkParts) -> MatchResult:
    prefix = "widget.quickaccess.offline/"
    if not parts.route.startswith(prefix):
        return None
    path = unquote(parts.route[len(prefix):])
    return PathTarget(path) if path else None


def _file_link(parts: LinkParts) -> MatchResult:
    if parts.is_legacy:
        m = _full(rf"!(?P<handle>{HANDLE})!(?P<key>{KEY})", parts.fragment)
        return NodeTarget(m.group("handle"), m.group("key")) if m else None

    m = _full(rf"file/(?P<handle>{HANDLE})", parts.path.strip("/"))
    key = _full(KEY, parts.fragment)
    if not m or not key:
        return None
    return NodeTarget(m.group("handle"), key.group(0))


def _folder_link(parts: LinkParts) -> MatchResult:
    if parts.is_legacy:
        m = _full(
            rf"F!(?P<handle>{HANDLE})!(?P<key>{KEY})(?:[!?](?P<node>{HANDLE}))?",
            parts.fragment,
        )
        if not m:
            return None
        return NodeTarget(m.group("handle"), m.group("key"), m.group("node"))

    m = _full(rf"folder/(?P<handle>{HANDLE})", parts.path.strip("/"))
    key = _full(rf"(?P<key>{KEY})(?:/(?:folder|file)/(?P<node>{HANDLE}))?", parts.fragment)
    if not m or not key:
        return None
    return NodeTarget(m.group("handle"), key.group("key"), key.group("node"))


def _encrypted_link(parts: LinkParts) -> MatchResult:
    if not parts.is_legacy:
        return None
    m = _full(r"P!(?P<payload>[A-Za-z0-9_-]+)", parts.fragment)
    return PayloadTarget(m.group("payload")) if m else None


_confirm_token = _token_after("confirm")


def _confirmation_link(parts: LinkParts) -> MatchResult:
    token = _confirm_token(parts)
    if token:
        return token
    value = parts.query_value("confirm")
    if not value or not _full(TOKEN, value):
        return None
    return TokenTarget(value)


def _open_chat_section(parts: LinkParts) -> MatchResult:
    m = _full(rf"fm/chat(?:/(?P<chat_id>{HANDLE}))?", parts.route)
    if not m:
        return None
    if m.group("chat_id"):
        return ChatTarget(m.group("chat_id"))
    return True


def _chat_parts(parts: LinkParts) -> Optional[tuple[str, str]]:
    m = _full(rf"chat/(?P<chat_id>{HANDLE})", parts.path.strip("/"))
    key = _full(KEY, parts.fragment)
    if not m or not key:
        return None
    return m.group("chat_id"), key.group(0)


def _schedule_chat_link(parts: LinkParts) -> MatchResult:
    chat = _chat_parts(parts)
    schedule_id = parts.query_value("schedule")
    if not chat or not schedule_id or not _full(HANDLE, schedule_id):
        return None
    return ChatTarget(chat[0], chat[1], schedule_id)


def _public_chat_link(parts: LinkParts) -> MatchResult:
    chat = _chat_parts(parts)
    return ChatTarget(*chat) if chat else None


def _handle_link(parts: LinkParts) -> MatchResult:
    if not parts.is_legacy:
        return None
    m = _full(NODE_HANDLE, parts.fragment)
    return NodeTarget(m.group(0)) if m else None


DEFAULT_RULES: tuple[LinkRule, ...] = (
    LinkRule(LinkCategory.CHAT_PEER_OPTIONS_LINK, _chat_peer_options, "chatPeerOptions#<handle>"),
    LinkRule(LinkCategory.UPLOAD_FILE, _exact("widget.shortcut.uploadFile")),
    LinkRule(LinkCategory.SCAN_DOCUMENT, _exact("widget.shortcut.scanDocument")),
    LinkRule(LinkCategory.START_CONVERSATION, _exact("widget.shortcut.startConversation")),
    LinkRule(LinkCategory.ADD_CONTACT, _exact("widget.shortcut.addContact")),
    LinkRule(LinkCategory.SHOW_RECENTS, _exact("widget.quickaccess.recents")),
    LinkRule(
        LinkCategory.PRESENT_FAVOURITES_NODE,
        _handle_after("widget.quickaccess.favourites/"),
        "widget.quickaccess.favourites/<handle>",
    ),
    LinkRule(LinkCategory.SHOW_FAVOURITES, _exact("widget.quickaccess.favourites")),
    LinkRule(LinkCategory.PRESENT_OFFLINE_FILE, _offline_file, "widget.quickaccess.offline/<path>"),
    LinkRule(LinkCategory.SHOW_OFFLINE, _exact("widget.quickaccess.offline")),
    LinkRule(LinkCategory.PRESENT_NODE, _handle_after("presentNode/"), "presentNode/<handle>"),
    LinkRule(LinkCategory.FILE_LINK, _file_link, "#!<handle>!<key> | file/<handle>#<key>"),
    LinkRule(LinkCategory.FOLDER_LINK, _folder_link, "#F!<handle>!<key> | folder/<handle>#<key>"),
    LinkRule(LinkCategory.ENCRYPTED_LINK, _encrypted_link, "#P!<payload>"),
    LinkRule(LinkCategory.FILE_REQUEST_LINK, _handle_after("filerequest/"), "filerequest/<handle>"),
    LinkRule(LinkCategory.CONFIRMATION_LINK, _confirmation_link, "confirm<token> | ?confirm=<token>"),
    LinkRule(LinkCategory.NEW_SIGN_UP_LINK, _token_after("newsignup")),
    LinkRule(LinkCategory.BACKUP_LINK, _exact("backup")),
    LinkRule(LinkCategory.INCOMING_PENDING_CONTACTS_LINK, _exact("fm/ipc")),
    LinkRule(LinkCategory.CHANGE_EMAIL_LINK, _token_after("verify")),
    LinkRule(LinkCategory.CANCEL_ACCOUNT_LINK, _token_after("cancel")),
    LinkRule(LinkCategory.RECOVER_LINK, _token_after("recover")),
    LinkRule(LinkCategory.CONTACT_LINK, _handle_after("C!"), "C!<handle>"),
    LinkRule(LinkCategory.OPEN_CHAT_SECTION_LINK, _open_chat_section, "fm/chat[/<chat-id>]"),
    LinkRule(
        LinkCategory.SCHEDULE_CHAT_LINK,
        _schedule_chat_link,
        "chat/<chat-id>?schedule=<id>#<key>",
    ),
    LinkRule(LinkCategory.PUBLIC_CHAT_LINK, _public_chat_link, "chat/<chat-id>#<key>"),
    LinkRule(LinkCategory.LOGIN_REQUIRED_LINK, _exact("loginrequired")),
    LinkRule(LinkCategory.ACHIEVEMENTS_LINK, _exact("achievements", "fm/achievements")),
    LinkRule(LinkCategory.NEW_TEXT_FILE, _exact("newText")),
    LinkRule(LinkCategory.PRIVACY_POLICY, _exact("privacy")),
    LinkRule(LinkCategory.COOKIE_POLICY, _exact("cookie")),
    LinkRule(LinkCategory.TERMS_OF_SERVICE, _exact("terms")),
    LinkRule(LinkCategory.APP_SETTINGS, _exact("settings")),
    LinkRule(LinkCategory.HANDLE_LINK, _handle_link, "#<8-char handle>"),
)
