"""Interactive mode - review newsletters one at a time."""

from __future__ import annotations

from enum import Enum
from typing import Callable

from .display import console, display_candidate, display_running_totals
from .executor import ActionExecutor
from .models import ActionKind, NewsletterCandidate, SessionCounters

REVIEW_PROMPT = "[yellow]Open unsubscribe link (y), delete email (d), skip (n), or exit: [/yellow]"


class InteractiveState(Enum):
    REVIEWING = "reviewing"
    DONE = "done"


class ReviewCommand(Enum):
    UNSUBSCRIBE = "y"
    DELETE = "d"
    SKIP = "n"
    EXIT = "exit"


_ACTIONS = {
    ReviewCommand.UNSUBSCRIBE: ActionKind.UNSUBSCRIBE,
    ReviewCommand.DELETE: ActionKind.DELETE_ONLY,
}


def parse_review_response(text: str | None) -> ReviewCommand:
    """Map a user reply to a command; anything unrecognised skips."""
    reply = (text or "").strip().lower()
    for command in ReviewCommand:
        if reply == command.value:
            return command
    return ReviewCommand.SKIP


class InteractiveController:
    """Walks the candidate list once, asking what to do with each entry."""

    def __init__(
        self,
        executor: ActionExecutor,
        prompt: Callable[[str], str] | None = None,
    ) -> None:
        self.executor = executor
        self.prompt = prompt or console.input
        self.state = InteractiveState.REVIEWING
        self.position = 0

    def step(
        self,
        candidates: list[NewsletterCandidate],
        command: ReviewCommand,
        counters: SessionCounters,
    ) -> InteractiveState:
        """Apply one command to the current candidate and move on."""
        if self.position >= len(candidates):
            self.state = InteractiveState.DONE
        if self.state is InteractiveState.DONE:
            return self.state

        if command is ReviewCommand.EXIT:
            self.executor.log.info("User exited interactive unsubscribe mode.")
            self.state = InteractiveState.DONE
            return self.state

        action = _ACTIONS.get(command)
        if action is not None:
            # Errors are reported by the executor; the walk continues either way.
            self.executor.execute(candidates[self.position], action, counters)

        self.position += 1
        if self.position >= len(candidates):
            self.state = InteractiveState.DONE
        return self.state

    def run(self, candidates: list[NewsletterCandidate], counters: SessionCounters) -> SessionCounters:
        self.state = InteractiveState.DONE if not candidates else InteractiveState.REVIEWING
        self.position = 0

        if not candidates:
            console.print(
                "[green]No newsletters found in your recent emails! "
                "Your inbox is already clean.[/green]"
            )
            self.executor.log.info("No newsletters found to unsubscribe.")
            return counters

        while self.state is InteractiveState.REVIEWING:
            display_candidate(candidates[self.position])
            command = parse_review_response(self.prompt(REVIEW_PROMPT))
            if command is ReviewCommand.EXIT:
                console.print("[yellow]Exiting newsletter review.[/yellow]")
            self.step(candidates, command, counters)

        display_running_totals(counters)
        return counters
