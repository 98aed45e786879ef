"""CLI entry point for InboxMaid."""

from __future__ import annotations

from pathlib import Path

import click

from .batch import BatchController
from .constants import (
    DEFAULT_IMAP_PORT,
    DEFAULT_IMAP_SERVER,
    DEFAULT_SCAN_COUNT,
    LOG_DIR,
    MODE_BATCH,
    MODE_INTERACTIVE,
)
from .display import (
    console,
    display_candidates,
    display_connected,
    display_session_summary,
    display_welcome,
    show_error,
)
from .executor import ActionExecutor
from .interactive import InteractiveController
from .mailbox import GatewayError, ImapMailbox, MailboxAuthError, MailboxConnectionError
from .models import SessionCounters
from .scanner import recent_ids, scan_with_progress
from .session_log import SessionLog


def _connection_options(func):
    """Options shared by every command that talks to the mailbox."""
    options = [
        click.option(
            "--email", envvar="INBOX_MAID_EMAIL", prompt="Email address", help="Mailbox address."
        ),
        click.option(
            "--password",
            envvar="INBOX_MAID_PASSWORD",
            prompt="App password",
            hide_input=True,
            help="App password (prompted for when omitted).",
        ),
        click.option(
            "--server",
            envvar="INBOX_MAID_SERVER",
            default=DEFAULT_IMAP_SERVER,
            show_default=True,
            prompt="IMAP server",
            help="IMAP server host.",
        ),
        click.option(
            "--port", envvar="INBOX_MAID_PORT", default=DEFAULT_IMAP_PORT, show_default=True, type=int,
            help="IMAP over SSL port.",
        ),
        click.option(
            "-n",
            "--count",
            envvar="INBOX_MAID_COUNT",
            default=DEFAULT_SCAN_COUNT,
            show_default=True,
            type=click.IntRange(min=1),
            prompt="How many recent emails should I scan?",
            help="Number of unseen messages to scan (batch size in batch mode).",
        ),
        click.option(
            "--log-dir",
            envvar="INBOX_MAID_LOG_DIR",
            default=LOG_DIR,
            type=click.Path(file_okay=False, path_type=Path),
            help="Directory for session log files.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _open_mailbox(
    server: str,
    port: int,
    email: str,
    password: str,
    counters: SessionCounters,
    log: SessionLog,
) -> ImapMailbox:
    """Connect and log in; any failure here ends the run with a non-zero status."""
    mailbox = ImapMailbox(server, port)
    console.print("\n[cyan]Connecting to IMAP server...[/cyan]")
    try:
        mailbox.connect(email, password)
    except MailboxConnectionError as e:
        counters.record_error()
        log.error(f"Connection failed: {e}")
        raise click.ClickException(
            "Unable to connect to the email server. "
            "Please check your internet connection and IMAP server address."
        ) from e
    except MailboxAuthError as e:
        counters.record_error()
        log.error(f"Authentication failed: {e}")
        raise click.ClickException(
            "Authentication failed. Please verify your email and app password."
        ) from e
    except GatewayError as e:
        counters.record_error()
        log.error(str(e))
        raise click.ClickException(str(e)) from e

    log.info(f"Connected to IMAP server {server} as {email}")
    return mailbox


def _close_mailbox(mailbox: ImapMailbox, counters: SessionCounters, log: SessionLog, commit: bool) -> None:
    """Expunge flagged messages and log out. Failures are counted, not raised."""
    if commit:
        try:
            mailbox.commit_deletions()
        except GatewayError as e:
            counters.record_error()
            log.warning(f"Exception during expunge: {e}")
    try:
        mailbox.close()
    except GatewayError as e:
        counters.record_error()
        log.warning(f"Exception during logout: {e}")


def _scan_count(mailbox: ImapMailbox, requested: int, counters: SessionCounters, log: SessionLog) -> int:
    try:
        unread, total = mailbox.message_counts()
    except GatewayError as e:
        counters.record_error()
        log.warning(f"Could not read mailbox status: {e}")
        return requested
    display_connected(unread, total)
    return min(requested, total) if total else requested


@click.group()
@click.version_option(version="0.1.0", prog_name="inbox-maid")
def cli() -> None:
    """InboxMaid - find newsletters in your inbox, unsubscribe and clean up."""


@cli.command()
@_connection_options
@click.option(
    "--mode",
    envvar="INBOX_MAID_MODE",
    type=click.Choice([MODE_INTERACTIVE, MODE_BATCH]),
    default=MODE_INTERACTIVE,
    show_default=True,
    prompt="Choose mode: (1) Interactive (one-by-one) or (2) Batch (select multiple at once)",
    help="1 = review one at a time, 2 = batch selection.",
)
def run(
    email: str,
    password: str,
    server: str,
    port: int,
    count: int,
    log_dir: Path,
    mode: str,
) -> None:
    """Review newsletters and unsubscribe or delete them."""
    display_welcome()
    counters = SessionCounters()
    log = SessionLog(log_dir=log_dir)
    log.info("Application started")

    try:
        mailbox = _open_mailbox(server, port, email, password, counters, log)
        try:
            scan_count = _scan_count(mailbox, count, counters, log)
            executor = ActionExecutor(mailbox, log=log)

            console.print(
                "\n[cyan]Scanning your inbox for newsletters with unsubscribe links, please wait...[/cyan]"
            )
            if mode == MODE_BATCH:
                BatchController(mailbox, executor, window_size=scan_count).run(counters)
            else:
                try:
                    ids = recent_ids(mailbox.list_unseen_ids(), scan_count)
                except GatewayError as e:
                    counters.record_error()
                    log.error(f"Could not list unseen messages: {e}")
                    show_error(f"Could not list unseen messages: {e}")
                    ids = []
                candidates = scan_with_progress(ids, mailbox, counters, log)
                InteractiveController(executor).run(candidates, counters)
        finally:
            _close_mailbox(mailbox, counters, log, commit=True)
    finally:
        display_session_summary(counters)
        log.write_summary(counters)
        log.close()


@cli.command()
@_connection_options
def scan(email: str, password: str, server: str, port: int, count: int, log_dir: Path) -> None:
    """List newsletters among recent unseen emails without changing anything."""
    counters = SessionCounters()
    log = SessionLog(log_dir=log_dir)

    try:
        mailbox = _open_mailbox(server, port, email, password, counters, log)
        try:
            scan_count = _scan_count(mailbox, count, counters, log)
            ids = recent_ids(mailbox.list_unseen_ids(), scan_count)
            candidates = scan_with_progress(ids, mailbox, counters, log)
        except GatewayError as e:
            log.error(str(e))
            raise click.ClickException(str(e)) from e
        finally:
            _close_mailbox(mailbox, counters, log, commit=False)
    finally:
        log.close()

    if not candidates:
        console.print("[green]No newsletters found in your recent emails.[/green]")
        return
    display_candidates(candidates)
    if counters.errors:
        console.print(f"[yellow]{counters.errors} message(s) could not be read.[/yellow]")
