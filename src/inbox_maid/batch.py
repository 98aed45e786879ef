"""Batch mode - scan the inbox in windows and act on several newsletters at once."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .display import (
    console,
    display_batch_menu,
    display_running_totals,
    display_window,
    show_error,
)
from .executor import ActionExecutor
from .mailbox import GatewayError, MailboxGateway
from .models import ActionKind, NewsletterCandidate, ScanWindow, SessionCounters
from .scanner import scan_with_progress, window_ids

MENU_PROMPT = "Enter your choice (1-6): "
UNSUBSCRIBE_PROMPT = (
    "Enter newsletter numbers separated by commas, "
    "or type 'restart' to restart or 'exit' to exit batch unsubscribing: "
)
DELETE_PROMPT = (
    "Enter newsletter numbers to delete, separated by commas, "
    "or type 'restart' to restart or 'exit' to exit batch unsubscribing: "
)


class BatchCommand(Enum):
    SELECT_SUBSET = "1"
    SELECT_ALL = "2"
    DELETE_SUBSET = "3"
    ADVANCE = "4"
    RESTART = "5"
    EXIT = "6"


class BatchState(Enum):
    SHOWING_WINDOW = "showing_window"
    DONE = "done"


class SelectionKind(Enum):
    INDICES = "indices"
    RESTART = "restart"
    EXIT = "exit"
    INVALID = "invalid"


@dataclass(frozen=True)
class Selection:
    kind: SelectionKind
    indices: tuple[int, ...] = ()  # 1-based, highest first
    rejected: tuple[str, ...] = ()


def parse_menu_choice(text: str | None) -> BatchCommand | None:
    reply = (text or "").strip()
    for command in BatchCommand:
        if reply == command.value:
            return command
    return None


def parse_selection(text: str | None, count: int) -> Selection:
    """Parse a comma-separated list of 1-based numbers against a list of `count` items.

    Out-of-range and non-numeric tokens are rejected, duplicates collapse,
    and the result is ordered highest first. Removing entries in that
    order never shifts an index that is still waiting to be processed.
    """
    reply = (text or "").strip().lower()
    if reply == "restart":
        return Selection(SelectionKind.RESTART)
    if reply == "exit":
        return Selection(SelectionKind.EXIT)

    accepted: set[int] = set()
    rejected: list[str] = []
    for token in reply.split(","):
        token = token.strip()
        if not token:
            continue
        try:
            number = int(token)
        except ValueError:
            rejected.append(token)
            continue
        if 1 <= number <= count:
            accepted.add(number)
        else:
            rejected.append(token)

    if not accepted:
        return Selection(SelectionKind.INVALID, rejected=tuple(rejected))
    return Selection(
        SelectionKind.INDICES,
        indices=tuple(sorted(accepted, reverse=True)),
        rejected=tuple(rejected),
    )


ScanFunc = Callable[..., list[NewsletterCandidate]]


class BatchController:
    """State machine over (window, candidates) driven by menu commands.

    Every time the window moves (start, advance, restart) the unseen ids are
    listed again and the window is scanned fresh; the previous candidate
    list is discarded.

    Messages already flagged this session keep their position in the
    unseen list until expunged, so they are filtered out of rescans.
    """

    def __init__(
        self,
        gateway: MailboxGateway,
        executor: ActionExecutor,
        window_size: int,
        prompt: Callable[[str], str] | None = None,
        scan: ScanFunc = scan_with_progress,
    ) -> None:
        self.gateway = gateway
        self.executor = executor
        self.log = executor.log
        self.window = ScanWindow(size=window_size)
        self.prompt = prompt or console.input
        self.scan = scan
        self.candidates: list[NewsletterCandidate] = []
        self.resolved: set[str] = set()
        self.total_unseen = 0
        self.state = BatchState.SHOWING_WINDOW
        self._stale = True

    # --- window loading ---

    def load_window(self, counters: SessionCounters) -> list[NewsletterCandidate]:
        """List unseen ids and scan the current window."""
        try:
            unseen = self.gateway.list_unseen_ids()
        except GatewayError as e:
            counters.record_error()
            self.log.error(f"Could not list unseen messages: {e}")
            show_error(f"Could not list unseen messages: {e}")
            unseen = []

        self.total_unseen = len(unseen)
        scanned = self.scan(window_ids(unseen, self.window), self.gateway, counters, self.log)
        self.candidates = [c for c in scanned if c.id not in self.resolved]
        self._stale = False
        return self.candidates

    # --- transitions ---

    def handle(
        self,
        command: BatchCommand | None,
        counters: SessionCounters,
        reply: str | None = None,
    ) -> BatchState:
        """Apply one menu command. `reply` answers the follow-up number prompt."""
        if command is None:
            show_error("Invalid choice. Please enter a number between 1 and 6.")
        elif command is BatchCommand.SELECT_SUBSET:
            self._handle_subset(ActionKind.UNSUBSCRIBE, counters, reply, UNSUBSCRIBE_PROMPT)
        elif command is BatchCommand.DELETE_SUBSET:
            self._handle_subset(ActionKind.DELETE_ONLY, counters, reply, DELETE_PROMPT)
        elif command is BatchCommand.SELECT_ALL:
            self._unsubscribe_all(counters)
        elif command is BatchCommand.ADVANCE:
            self._advance()
        elif command is BatchCommand.RESTART:
            self._restart()
        elif command is BatchCommand.EXIT:
            self._exit()
        return self.state

    def _handle_subset(
        self,
        action: ActionKind,
        counters: SessionCounters,
        reply: str | None,
        prompt_text: str,
    ) -> None:
        if reply is None:
            reply = self.prompt(prompt_text)
        selection = parse_selection(reply, len(self.candidates))

        if selection.kind is SelectionKind.RESTART:
            self._restart()
            return
        if selection.kind is SelectionKind.EXIT:
            self._exit()
            return
        if selection.kind is SelectionKind.INVALID:
            show_error("No valid newsletter numbers entered.")
            return
        if selection.rejected:
            show_error(f"Ignoring invalid entries: {', '.join(selection.rejected)}")

        done = 0
        for number in selection.indices:
            outcome = self.executor.execute(self.candidates[number - 1], action, counters)
            if outcome.ok:
                self.resolved.add(outcome.candidate.id)
                del self.candidates[number - 1]
                done += 1

        if action is ActionKind.UNSUBSCRIBE:
            console.print(f"\n[yellow]Successfully unsubscribed from {done} newsletter(s).[/yellow]")
        else:
            console.print(
                f"\n[yellow]Successfully deleted {done} newsletter(s) without unsubscribing.[/yellow]"
            )

    def _unsubscribe_all(self, counters: SessionCounters) -> None:
        remaining: list[NewsletterCandidate] = []
        for candidate in self.candidates:
            outcome = self.executor.execute(candidate, ActionKind.UNSUBSCRIBE, counters)
            if outcome.ok:
                self.resolved.add(candidate.id)
            else:
                remaining.append(candidate)
        done = len(self.candidates) - len(remaining)
        self.candidates = remaining
        console.print(f"\n[yellow]Successfully unsubscribed from all {done} newsletters.[/yellow]")

    def _advance(self) -> None:
        if self.window.advance(self.total_unseen):
            console.print("Loading next batch of newsletters...")
            self._stale = True
        else:
            console.print("Reached the end of your inbox. No more batches.")

    def _restart(self) -> None:
        console.print("Restarting scan...")
        self.log.info("User requested scan restart in batch mode.")
        self.window.restart()
        self._stale = True

    def _exit(self) -> None:
        console.print("Exiting batch unsubscribe mode.")
        self.log.info("User exited batch unsubscribe mode.")
        self.state = BatchState.DONE

    # --- loop ---

    def run(self, counters: SessionCounters) -> SessionCounters:
        self.state = BatchState.SHOWING_WINDOW
        self.window.restart()
        self._stale = True

        while self.state is BatchState.SHOWING_WINDOW:
            if self._stale:
                self.load_window(counters)
            display_window(self.window, self.candidates)
            display_batch_menu()
            self.handle(parse_menu_choice(self.prompt(MENU_PROMPT)), counters)
            display_running_totals(counters)

        return counters
