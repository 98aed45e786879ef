"""Unsubscribe / delete actions against a single newsletter candidate."""

from __future__ import annotations

import webbrowser
from typing import Protocol

from .display import console, display_outcome
from .mailbox import GatewayError, MailboxGateway
from .models import (
    ActionError,
    ActionErrorKind,
    ActionKind,
    ActionOutcome,
    NewsletterCandidate,
    SessionCounters,
)
from .session_log import SessionLog


class LinkOpenError(Exception):
    """The unsubscribe link could not be handed to a browser."""


class LinkOpener(Protocol):
    def open(self, url: str) -> None: ...


class BrowserLinkOpener:
    """Opens links with the host's default browser."""

    def open(self, url: str) -> None:
        try:
            opened = webbrowser.open(url)
        except webbrowser.Error as e:
            raise LinkOpenError(str(e)) from e
        if not opened:
            raise LinkOpenError(f"No browser available to open {url}")


class ActionExecutor:
    """Runs one action and turns every failure into a tagged ActionOutcome.

    Side effects are not rolled back: when the link opens but flagging
    fails, the browser has still been launched.
    """

    def __init__(
        self,
        gateway: MailboxGateway,
        opener: LinkOpener | None = None,
        log: SessionLog | None = None,
        echo: bool = True,
    ) -> None:
        self.gateway = gateway
        self.opener = opener or BrowserLinkOpener()
        self.log = log or SessionLog(enabled=False)
        self.echo = echo

    def execute(
        self,
        candidate: NewsletterCandidate,
        action: ActionKind,
        counters: SessionCounters,
    ) -> ActionOutcome:
        if action is ActionKind.UNSUBSCRIBE:
            outcome = self._unsubscribe(candidate)
        else:
            outcome = self._delete(candidate)

        if outcome.ok:
            if action is ActionKind.UNSUBSCRIBE:
                counters.unsubscribed += 1
                self.log.info(f"Unsubscribed from newsletter: {candidate.subject} from {candidate.sender}")
            else:
                counters.deleted += 1
                self.log.info(
                    f"Deleted newsletter without unsubscribing: {candidate.subject} from {candidate.sender}"
                )
        else:
            counters.record_error()
            self.log.error(
                f"{outcome.error.kind.value} for {candidate.subject} from {candidate.sender}: "
                f"{outcome.error.cause}"
            )

        if self.echo:
            display_outcome(outcome)
        return outcome

    def _unsubscribe(self, candidate: NewsletterCandidate) -> ActionOutcome:
        link = candidate.web_links[0]
        if self.echo:
            console.print(f"Opening: {link}", markup=False)
        try:
            self.opener.open(link)
        except LinkOpenError as e:
            return self._failed(
                candidate, ActionKind.UNSUBSCRIBE, ActionErrorKind.LINK_OPEN_FAILED,
                f"Failed to open browser: {e}",
            )
        return self._flag(candidate, ActionKind.UNSUBSCRIBE)

    def _delete(self, candidate: NewsletterCandidate) -> ActionOutcome:
        return self._flag(candidate, ActionKind.DELETE_ONLY)

    def _flag(self, candidate: NewsletterCandidate, action: ActionKind) -> ActionOutcome:
        try:
            self.gateway.set_deleted_flag(candidate.id)
        except GatewayError as e:
            return self._failed(
                candidate, action, ActionErrorKind.FLAG_MUTATION_FAILED,
                f"Failed to mark email for deletion: {e}",
            )
        return ActionOutcome(candidate=candidate, action=action)

    @staticmethod
    def _failed(
        candidate: NewsletterCandidate,
        action: ActionKind,
        kind: ActionErrorKind,
        cause: str,
    ) -> ActionOutcome:
        return ActionOutcome(candidate=candidate, action=action, error=ActionError(kind=kind, cause=cause))
