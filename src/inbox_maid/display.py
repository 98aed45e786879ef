"""Rich-based display functions for InboxMaid."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .classifier import link_kind
from .models import ActionKind, ActionOutcome, NewsletterCandidate, ScanWindow, SessionCounters

console = Console()

_LINK_LABELS = {"web": "[Web]  ", "email": "[Email]", "other": "[Other]"}

BATCH_MENU = (
    ("1", "Unsubscribe from newsletters you select by their numbers"),
    ("2", "Unsubscribe from all newsletters"),
    ("3", "Delete selected newsletters without unsubscribing"),
    ("4", "Skip to next batch"),
    ("5", "Restart scan"),
    ("6", "Exit"),
)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def show_error(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]")


def create_progress(description: str) -> Progress:
    """Create a configured Rich Progress bar."""
    return Progress(
        SpinnerColumn(),
        TextColumn(f"[bold blue]{description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    )


def display_welcome() -> None:
    console.print("[bold magenta]Welcome to InboxMaid![/bold magenta]\n")


def display_connected(unread: int, total: int) -> None:
    console.print(
        f"[green]Successfully connected![/green] You have [yellow]{unread}[/yellow] "
        f"unread emails out of [cyan]{total}[/cyan] total emails in your inbox."
    )


def display_candidate(candidate: NewsletterCandidate) -> None:
    """Show one newsletter with every unsubscribe option it advertises."""
    lines = [
        f"[bold]From:[/bold] {escape(candidate.sender)}",
        f"[bold]Subject:[/bold] {escape(candidate.subject)}",
        "[bold]Unsubscribe options:[/bold]",
    ]
    for link in candidate.all_links:
        lines.append(f"  {escape(_LINK_LABELS[link_kind(link)])} {escape(link)}")
    console.print(Panel("\n".join(lines), title="Newsletter", border_style="cyan"))


def display_candidates(candidates: list[NewsletterCandidate], title: str = "Newsletters found") -> None:
    """Numbered (1-based) table of candidates in scan order."""
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("From")
    table.add_column("Subject")
    table.add_column("Links", justify="right")

    for idx, candidate in enumerate(candidates, start=1):
        table.add_row(
            str(idx),
            escape(candidate.sender),
            escape(candidate.subject),
            str(len(candidate.all_links)),
        )

    console.print(table)


def display_window(window: ScanWindow, candidates: list[NewsletterCandidate]) -> None:
    if not candidates:
        console.print("\n[green]No newsletters found in this batch.[/green]")
        return
    first = window.offset + 1
    display_candidates(
        candidates, title=f"Newsletters found (batch starting at message {first})"
    )


def display_batch_menu() -> None:
    console.print("Choose an option:")
    for key, label in BATCH_MENU:
        console.print(f"  {key}) {label}")


def display_outcome(outcome: ActionOutcome) -> None:
    candidate = outcome.candidate
    if not outcome.ok:
        show_error(f"Failed: {outcome.error.cause}")
        return
    if outcome.action is ActionKind.UNSUBSCRIBE:
        console.print("[green]This newsletter email has been marked for deletion.[/green]")
    else:
        console.print(
            f"[green]Marked for deletion (without unsubscribing):[/green] "
            f"{escape(candidate.subject)} from {escape(candidate.sender)}"
        )


def display_running_totals(counters: SessionCounters) -> None:
    console.print(
        f"\nYou unsubscribed from {_plural(counters.unsubscribed, 'newsletter')} and deleted "
        f"{_plural(counters.deleted, 'newsletter')} without unsubscribing in total."
    )


def display_session_summary(counters: SessionCounters) -> None:
    """Display the end-of-session totals."""
    lines = [
        f"[bold]Unsubscribed:[/bold] {counters.unsubscribed}",
        f"[bold]Deleted without unsubscribing:[/bold] {counters.deleted}",
        f"[bold]Errors:[/bold] {counters.errors}",
    ]
    style = "green" if counters.errors == 0 else "yellow"
    console.print(Panel("\n".join(lines), title="Session Summary", border_style=style))
