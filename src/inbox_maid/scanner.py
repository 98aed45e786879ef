"""Newsletter detection - fetches messages, deduplicates, keeps those with web unsubscribe links."""

from __future__ import annotations

from typing import Callable, Sequence

from .classifier import classify_links
from .constants import UNSUBSCRIBE_HEADER
from .display import create_progress
from .mailbox import GatewayError, MailboxGateway
from .models import NewsletterCandidate, ScanWindow, SessionCounters
from .session_log import SessionLog


def recent_ids(message_ids: Sequence[str], count: int) -> list[str]:
    """The last `count` ids (the most recent messages)."""
    if count <= 0:
        return []
    return list(message_ids[-count:])


def window_ids(message_ids: Sequence[str], window: ScanWindow) -> list[str]:
    return list(message_ids[window.offset : window.offset + window.size])


def scan_candidates(
    message_ids: Sequence[str],
    gateway: MailboxGateway,
    counters: SessionCounters | None = None,
    log: SessionLog | None = None,
    callback: Callable[[int, int], None] | None = None,
) -> list[NewsletterCandidate]:
    """Return one candidate per (subject, sender) pair, in id order.

    The first occurrence of a pair wins; later duplicates are not classified.
    A message without a List-Unsubscribe header, or whose header has no
    http(s) target, is not a candidate. A message that cannot be fetched is
    counted as an error and skipped.
    """
    candidates: list[NewsletterCandidate] = []
    seen: set[str] = set()
    mailto_only = 0
    total = len(message_ids)

    for num, message_id in enumerate(message_ids, start=1):
        try:
            message = gateway.fetch(message_id)
        except GatewayError as e:
            if counters is not None:
                counters.record_error()
            if log is not None:
                log.error(f"Could not fetch message {message_id}: {e}")
            continue
        finally:
            if callback:
                callback(num, total)

        key = f"{message.subject}|{message.sender}"
        if key in seen:
            continue
        seen.add(key)

        header = message.header(UNSUBSCRIBE_HEADER)
        if header is None:
            continue

        links = classify_links(header)
        if not links.web_links:
            if links.all_links:
                mailto_only += 1
            continue

        candidates.append(
            NewsletterCandidate(
                id=message.id,
                sender=message.sender,
                subject=message.subject,
                web_links=links.web_links,
                all_links=links.all_links,
            )
        )

    if log is not None:
        log.info(
            f"Scanned {total} messages: {len(candidates)} newsletters, "
            f"{mailto_only} without a web unsubscribe link"
        )
    return candidates


def scan_with_progress(
    message_ids: Sequence[str],
    gateway: MailboxGateway,
    counters: SessionCounters,
    log: SessionLog | None = None,
) -> list[NewsletterCandidate]:
    """scan_candidates with a progress bar on the shared console."""
    with create_progress("Scanning for newsletters") as progress:
        task = progress.add_task("scanning", total=len(message_ids))

        def on_message(num: int, total: int) -> None:
            progress.update(task, completed=num)

        return scan_candidates(message_ids, gateway, counters=counters, log=log, callback=on_message)
