"""Data models for InboxMaid."""

from __future__ import annotations

from dataclasses import dataclass, field
from email.message import Message
from enum import Enum


@dataclass
class MailMessage:
    """Header view of a single mailbox message."""

    id: str  # IMAP UID, opaque to everything but the gateway
    sender: str  # Full From header value
    subject: str
    headers: Message | None = None

    def header(self, name: str) -> str | None:
        """Look up a header case-insensitively; None when absent."""
        if self.headers is None:
            return None
        value = self.headers.get(name)
        return None if value is None else str(value)


@dataclass(frozen=True)
class LinkSet:
    """Unsubscribe targets parsed from one header value."""

    web_links: list[str] = field(default_factory=list)
    all_links: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class NewsletterCandidate:
    """A deduplicated newsletter message that can be acted upon."""

    id: str
    sender: str
    subject: str
    web_links: list[str]  # Never empty
    all_links: list[str] = field(default_factory=list)

    @property
    def dedup_key(self) -> str:
        return f"{self.subject}|{self.sender}"


@dataclass
class SessionCounters:
    """Running totals for one session. Only the executor and scanner write to it."""

    unsubscribed: int = 0
    deleted: int = 0
    errors: int = 0

    def record_error(self) -> None:
        self.errors += 1


@dataclass
class ScanWindow:
    """Slice of unseen message ids considered by one batch pass."""

    size: int
    offset: int = 0

    def __post_init__(self) -> None:
        if self.size < 1:
            raise ValueError("window size must be positive")
        self.offset = max(self.offset, 0)

    def advance(self, total: int) -> bool:
        """Move to the next window. Returns False (and stays put) past the end."""
        next_offset = self.offset + self.size
        if next_offset >= total:
            return False
        self.offset = next_offset
        return True

    def restart(self) -> None:
        self.offset = 0


class ActionKind(Enum):
    UNSUBSCRIBE = "unsubscribe"
    DELETE_ONLY = "delete"


class ActionErrorKind(Enum):
    LINK_OPEN_FAILED = "link_open_failed"
    FLAG_MUTATION_FAILED = "flag_mutation_failed"


@dataclass(frozen=True)
class ActionError:
    kind: ActionErrorKind
    cause: str


@dataclass(frozen=True)
class ActionOutcome:
    """Tagged result of running one action against one candidate."""

    candidate: NewsletterCandidate
    action: ActionKind
    error: ActionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
