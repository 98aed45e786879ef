"""Shared fixtures for tests."""

from __future__ import annotations

from email.message import Message

import pytest

from inbox_maid.executor import ActionExecutor, LinkOpenError
from inbox_maid.mailbox import GatewayError
from inbox_maid.models import MailMessage, NewsletterCandidate, SessionCounters
from inbox_maid.session_log import SessionLog


def make_message(
    message_id: str,
    sender: str = "Newsletter Team <noreply@example-newsletter.com>",
    subject: str = "Weekly Digest",
    unsubscribe: str | None = "<mailto:unsub@example-newsletter.com>, <https://example-newsletter.com/u>",
) -> MailMessage:
    headers = Message()
    headers["From"] = sender
    headers["Subject"] = subject
    if unsubscribe is not None:
        headers["List-Unsubscribe"] = unsubscribe
    return MailMessage(id=message_id, sender=sender, subject=subject, headers=headers)


def make_newsletters(count: int) -> list[MailMessage]:
    """`count` distinct newsletters with ids "1".."count"."""
    return [
        make_message(
            str(i),
            sender=f"Sender {i} <news{i}@example.com>",
            subject=f"Issue #{i}",
            unsubscribe=f"<https://example.com/unsubscribe/{i}>",
        )
        for i in range(1, count + 1)
    ]


def make_candidate(message_id: str, subject: str | None = None) -> NewsletterCandidate:
    link = f"https://example.com/unsubscribe/{message_id}"
    return NewsletterCandidate(
        id=message_id,
        sender=f"Sender {message_id} <news{message_id}@example.com>",
        subject=subject or f"Issue #{message_id}",
        web_links=[link],
        all_links=[f"mailto:unsub{message_id}@example.com", link],
    )


class FakeMailbox:
    """In-memory MailboxGateway. Like IMAP, flagged messages stay listed until expunged."""

    def __init__(
        self,
        messages: list[MailMessage] | None = None,
        fail_fetch: set[str] | None = None,
        fail_flag: set[str] | None = None,
    ) -> None:
        self.messages = {m.id: m for m in messages or []}
        self.order = [m.id for m in messages or []]
        self.fail_fetch = fail_fetch or set()
        self.fail_flag = fail_flag or set()
        self.fetched: list[str] = []
        self.flagged: list[str] = []
        self.commits = 0
        self.closed = False

    # --- session, used by the CLI ---

    def connect(self, username: str, password: str) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    def message_counts(self) -> tuple[int, int]:
        return len(self.order), len(self.order)

    # --- gateway ---

    def list_unseen_ids(self) -> list[str]:
        return list(self.order)

    def fetch(self, message_id: str) -> MailMessage:
        self.fetched.append(message_id)
        if message_id in self.fail_fetch:
            raise GatewayError(f"FETCH {message_id} failed")
        return self.messages[message_id]

    def set_deleted_flag(self, message_id: str) -> None:
        if message_id in self.fail_flag:
            raise GatewayError(f"STORE {message_id} failed")
        self.flagged.append(message_id)

    def commit_deletions(self) -> None:
        self.commits += 1


class FakeOpener:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.opened: list[str] = []

    def open(self, url: str) -> None:
        self.opened.append(url)
        if self.fail:
            raise LinkOpenError("no browser")


class ScriptedPrompt:
    """Replays canned replies; records the prompts it was shown."""

    def __init__(self, *replies: str) -> None:
        self.replies = list(replies)
        self.prompts: list[str] = []

    def __call__(self, text: str) -> str:
        self.prompts.append(text)
        if not self.replies:
            raise AssertionError(f"Unexpected prompt: {text}")
        return self.replies.pop(0)


@pytest.fixture
def counters() -> SessionCounters:
    return SessionCounters()


@pytest.fixture
def opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture
def mailbox() -> FakeMailbox:
    return FakeMailbox(make_newsletters(3))


@pytest.fixture
def executor(mailbox: FakeMailbox, opener: FakeOpener) -> ActionExecutor:
    return ActionExecutor(mailbox, opener=opener, log=SessionLog(enabled=False), echo=False)
