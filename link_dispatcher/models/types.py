"""Data types for link classification and dispatch."""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Optional, Union


class LinkCategory(Enum):
    """Every kind of link the application knows how to act on."""

    DEFAULT = "default"
    FILE_LINK = "file_link"
    FOLDER_LINK = "folder_link"
    ENCRYPTED_LINK = "encrypted_link"
    CONFIRMATION_LINK = "confirmation_link"
    OPEN_IN_LINK = "open_in_link"
    NEW_SIGN_UP_LINK = "new_sign_up_link"
    BACKUP_LINK = "backup_link"
    INCOMING_PENDING_CONTACTS_LINK = "incoming_pending_contacts_link"
    CHANGE_EMAIL_LINK = "change_email_link"
    CANCEL_ACCOUNT_LINK = "cancel_account_link"
    RECOVER_LINK = "recover_link"
    CONTACT_LINK = "contact_link"
    OPEN_CHAT_SECTION_LINK = "open_chat_section_link"
    PUBLIC_CHAT_LINK = "public_chat_link"
    LOGIN_REQUIRED_LINK = "login_required_link"
    HANDLE_LINK = "handle_link"
    ACHIEVEMENTS_LINK = "achievements_link"
    CHAT_PEER_OPTIONS_LINK = "chat_peer_options_link"
    UPLOAD_FILE = "upload_file"
    SCAN_DOCUMENT = "scan_document"
    START_CONVERSATION = "start_conversation"
    ADD_CONTACT = "add_contact"
    SHOW_RECENTS = "show_recents"
    SHOW_FAVOURITES = "show_favourites"
    PRESENT_FAVOURITES_NODE = "present_favourites_node"
    SHOW_OFFLINE = "show_offline"
    PRESENT_NODE = "present_node"
    PRESENT_OFFLINE_FILE = "present_offline_file"
    NEW_TEXT_FILE = "new_text_file"
    PRIVACY_POLICY = "privacy_policy"
    COOKIE_POLICY = "cookie_policy"
    TERMS_OF_SERVICE = "terms_of_service"
    APP_SETTINGS = "app_settings"
    FILE_REQUEST_LINK = "file_request_link"
    SCHEDULE_CHAT_LINK = "schedule_chat_link"

    @property
    def requires_login(self) -> bool:
        """Whether acting on this link needs a logged-in session."""
        return self in _LOGIN_REQUIRED


_LOGIN_REQUIRED = frozenset(
    {
        LinkCategory.BACKUP_LINK,
        LinkCategory.INCOMING_PENDING_CONTACTS_LINK,
        LinkCategory.CHANGE_EMAIL_LINK,
        LinkCategory.CANCEL_ACCOUNT_LINK,
        LinkCategory.CONTACT_LINK,
        LinkCategory.OPEN_CHAT_SECTION_LINK,
        LinkCategory.LOGIN_REQUIRED_LINK,
        LinkCategory.HANDLE_LINK,
        LinkCategory.ACHIEVEMENTS_LINK,
        LinkCategory.CHAT_PEER_OPTIONS_LINK,
        LinkCategory.UPLOAD_FILE,
        LinkCategory.SCAN_DOCUMENT,
        LinkCategory.START_CONVERSATION,
        LinkCategory.ADD_CONTACT,
        LinkCategory.SHOW_RECENTS,
        LinkCategory.SHOW_FAVOURITES,
        LinkCategory.PRESENT_FAVOURITES_NODE,
        LinkCategory.PRESENT_NODE,
        LinkCategory.NEW_TEXT_FILE,
    }
)


class LinkSource(str, Enum):
    """How a link reached the application."""

    UNKNOWN = "unknown"
    CUSTOM_SCHEME = "custom_scheme"
    UNIVERSAL_LINK = "universal_link"
    PUSH_NOTIFICATION = "push_notification"
    QUICK_ACTION = "quick_action"
    WIDGET = "widget"
    OPEN_IN = "open_in"


class LaunchState(str, Enum):
    """Whether the link launched the app or arrived while it was running."""

    COLD_START = "cold_start"
    RUNNING = "running"


@dataclass(frozen=True)
class DispatchContext:
    """Metadata about how a URL arrived."""

    source: LinkSource = LinkSource.UNKNOWN
    launch: LaunchState = LaunchState.RUNNING
    logged_in: bool = True


DEFAULT_CONTEXT = DispatchContext()


# Link targets carry the parameters extracted for a category.


@dataclass(frozen=True)
class NodeTarget:
    """A file or folder node, optionally with its decryption key."""

    handle: str
    key: Optional[str] = None
    node: Optional[str] = None


@dataclass(frozen=True)
class ChatTarget:
    """A chat room, optionally with its invitation key and meeting schedule."""

    chat_id: str
    key: Optional[str] = None
    schedule_id: Optional[str] = None


@dataclass(frozen=True)
class TokenTarget:
    """An account token (confirmation, recovery, email change, ...)."""

    token: str


@dataclass(frozen=True)
class PathTarget:
    """A local file path."""

    path: str


@dataclass(frozen=True)
class PayloadTarget:
    """An opaque encrypted link payload."""

    payload: str


LinkTarget = Union[NodeTarget, ChatTarget, TokenTarget, PathTarget, PayloadTarget]


@dataclass(frozen=True)
class ClassifiedLink:
    """Result of classifying a single URL.

    ``raw_url`` is exactly what was received. ``url`` is what was classified,
    which differs only when a tracking redirect was unwrapped.
    """

    category: LinkCategory
    raw_url: str
    url: str = ""
    target: Optional[LinkTarget] = None
    context: DispatchContext = DEFAULT_CONTEXT

    @property
    def parameters(self) -> dict[str, str]:
        """Extracted parameters by name, omitting empty ones."""
        if self.target is None:
            return {}
        return {
            f.name: getattr(self.target, f.name)
            for f in fields(self.target)
            if getattr(self.target, f.name)
        }

    @property
    def is_default(self) -> bool:
        return self.category is LinkCategory.DEFAULT

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "category": self.category.value,
            "raw_url": self.raw_url,
            "url": self.url,
            "parameters": self.parameters,
            "source": self.context.source.value,
            "launch": self.context.launch.value,
        }


@dataclass
class ResolvedURL:
    """Result of following HTTP redirects for a URL."""

    url: str
    success: bool
    final_url: Optional[str] = None
    hops: int = 0
    error: Optional[str] = None


@dataclass
class DispatchResult:
    """Result from LinkDispatcher.dispatch()."""

    link: ClassifiedLink
    handled: bool = False
    deferred: bool = False
    error: Optional[str] = None
