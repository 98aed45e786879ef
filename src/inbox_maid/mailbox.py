"""IMAP mailbox access: listing unseen messages, fetching headers, flagging."""

from __future__ import annotations

import contextlib
import imaplib
from email import message_from_bytes
from email.header import decode_header, make_header
from typing import Protocol

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .constants import (
    DEFAULT_IMAP_PORT,
    DEFAULT_MAILBOX,
    DELETED_FLAG,
    HEADER_FETCH_SPEC,
    IMAP_TIMEOUT,
    RETRY_ATTEMPTS,
    RETRY_WAIT_MAX,
    RETRY_WAIT_MIN,
    UNSEEN_CRITERIA,
)
from .models import MailMessage


class GatewayError(Exception):
    """A mailbox operation on a single message or commit failed."""


class MailboxConnectionError(Exception):
    """The IMAP server could not be reached."""


class MailboxAuthError(Exception):
    """The IMAP server rejected the credentials."""


class MailboxGateway(Protocol):
    def list_unseen_ids(self) -> list[str]: ...

    def fetch(self, message_id: str) -> MailMessage: ...

    def set_deleted_flag(self, message_id: str) -> None: ...

    def commit_deletions(self) -> None: ...

    def message_counts(self) -> tuple[int, int]: ...


def _decode(value: str | None) -> str:
    """Decode RFC 2047 encoded words, e.g. '=?utf-8?q?Caf=C3=A9?=' -> 'Café'."""
    if not value:
        return ""
    try:
        return str(make_header(decode_header(value)))
    except (ValueError, LookupError):
        return value


def _unfold(value: str) -> str:
    return " ".join(value.split())


def parse_header_block(message_id: str, raw: bytes) -> MailMessage:
    """Build a MailMessage from a raw RFC 5322 header block."""
    headers = message_from_bytes(raw)
    return MailMessage(
        id=message_id,
        sender=_unfold(_decode(headers.get("From"))),
        subject=_unfold(_decode(headers.get("Subject"))),
        headers=headers,
    )


def _check(status: str, data, what: str) -> None:
    if status != "OK":
        detail = data[0].decode(errors="replace") if data and isinstance(data[0], bytes) else data
        raise GatewayError(f"{what} failed: {detail}")


def _reconnect(retry_state) -> None:
    retry_state.args[0].reconnect()


# A timed-out command may still be answered later, so each retry runs on a new session.
_retry_on_timeout = retry(
    retry=retry_if_exception_type(TimeoutError),
    before_sleep=_reconnect,
    wait=wait_exponential(multiplier=1, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
    stop=stop_after_attempt(RETRY_ATTEMPTS),
    reraise=True,
)


class ImapMailbox:
    """MailboxGateway over a single IMAP4-over-SSL connection."""

    def __init__(
        self,
        server: str,
        port: int = DEFAULT_IMAP_PORT,
        folder: str = DEFAULT_MAILBOX,
        timeout: float = IMAP_TIMEOUT,
    ) -> None:
        self.server = server
        self.port = port
        self.folder = folder
        self.timeout = timeout
        self._conn: imaplib.IMAP4 | None = None
        self._credentials: tuple[str, str] | None = None

    # --- session ---

    def connect(self, username: str, password: str) -> None:
        """Open the connection, log in and select the folder read-write."""
        try:
            self._conn = imaplib.IMAP4_SSL(self.server, self.port, timeout=self.timeout)
        except (OSError, imaplib.IMAP4.error) as e:
            raise MailboxConnectionError(
                f"Unable to connect to {self.server}:{self.port}: {e}"
            ) from e

        try:
            self._conn.login(username, password)
        except imaplib.IMAP4.error as e:
            self._conn.shutdown()
            self._conn = None
            raise MailboxAuthError(f"Authentication failed for {username}: {e}") from e

        try:
            status, data = self._conn.select(self.folder)
            _check(status, data, f"SELECT {self.folder}")
        except (OSError, imaplib.IMAP4.error, GatewayError) as e:
            self._conn.shutdown()
            self._conn = None
            raise GatewayError(f"Could not open {self.folder}: {e}") from e
        self._credentials = (username, password)

    def reconnect(self) -> None:
        """Drop the current connection and log in again with the same credentials."""
        if self._credentials is None:
            raise GatewayError("Mailbox is not connected")
        if self._conn is not None:
            conn, self._conn = self._conn, None
            with contextlib.suppress(OSError):
                conn.shutdown()
        try:
            self.connect(*self._credentials)
        except (MailboxConnectionError, MailboxAuthError) as e:
            raise GatewayError(f"Reconnect failed: {e}") from e

    def close(self) -> None:
        if self._conn is None:
            return
        self._credentials = None
        conn, self._conn = self._conn, None
        try:
            conn.logout()
        except (OSError, imaplib.IMAP4.error) as e:
            raise GatewayError(f"Logout failed: {e}") from e

    @property
    def conn(self) -> imaplib.IMAP4:
        if self._conn is None:
            raise GatewayError("Mailbox is not connected")
        return self._conn

    # --- gateway operations ---

    def message_counts(self) -> tuple[int, int]:
        """Return (unread, total) for the selected folder."""
        try:
            status, data = self.conn.status(self.folder, "(MESSAGES UNSEEN)")
            _check(status, data, "STATUS")
        except (OSError, imaplib.IMAP4.error) as e:
            raise GatewayError(str(e)) from e
        items = data[0].decode().rsplit("(", 1)[-1].rstrip(")").split()
        values = dict(zip(items[::2], (int(v) for v in items[1::2])))
        return values.get("UNSEEN", 0), values.get("MESSAGES", 0)

    def list_unseen_ids(self) -> list[str]:
        """UIDs of unseen messages, oldest first. Flagged messages keep their place until expunged."""
        try:
            status, data = self.conn.uid("SEARCH", None, UNSEEN_CRITERIA)
            _check(status, data, "SEARCH")
        except (OSError, imaplib.IMAP4.error) as e:
            raise GatewayError(str(e)) from e
        if not data or not data[0]:
            return []
        return [uid.decode() for uid in data[0].split()]

    @_retry_on_timeout
    def _uid_fetch(self, message_id: str):
        return self.conn.uid("FETCH", message_id, HEADER_FETCH_SPEC)

    def fetch(self, message_id: str) -> MailMessage:
        try:
            status, data = self._uid_fetch(message_id)
            _check(status, data, f"FETCH {message_id}")
        except (OSError, imaplib.IMAP4.error) as e:
            raise GatewayError(f"FETCH {message_id} failed: {e}") from e

        for part in data:
            if isinstance(part, tuple) and len(part) == 2:
                return parse_header_block(message_id, part[1])
        raise GatewayError(f"Message {message_id} not found")

    @_retry_on_timeout
    def _uid_store(self, message_id: str):
        return self.conn.uid("STORE", message_id, "+FLAGS", DELETED_FLAG)

    def set_deleted_flag(self, message_id: str) -> None:
        try:
            status, data = self._uid_store(message_id)
            _check(status, data, f"STORE {message_id}")
        except (OSError, imaplib.IMAP4.error) as e:
            raise GatewayError(f"Could not flag {message_id} for deletion: {e}") from e

    def commit_deletions(self) -> None:
        try:
            status, data = self.conn.expunge()
            _check(status, data, "EXPUNGE")
        except (OSError, imaplib.IMAP4.error) as e:
            raise GatewayError(f"Expunge failed: {e}") from e

