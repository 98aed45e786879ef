"""Tests for the scanner module."""

import pytest
from conftest import FakeMailbox, make_message, make_newsletters

from inbox_maid.models import ScanWindow, SessionCounters
from inbox_maid.scanner import recent_ids, scan_candidates, window_ids


def test_duplicates_collapse_to_first_occurrence():
    """Three identical subject/sender messages plus one distinct give two candidates."""
    gateway = FakeMailbox(
        [
            make_message("1"),
            make_message("2"),
            make_message("3"),
            make_message("4", subject="Special Offer"),
        ]
    )
    candidates = scan_candidates(gateway.order, gateway)
    assert [c.id for c in candidates] == ["1", "4"]
    assert len({(c.sender, c.subject) for c in candidates}) == len(candidates)


def test_order_follows_input_ids():
    gateway = FakeMailbox(make_newsletters(4))
    candidates = scan_candidates(["3", "1", "4", "2"], gateway)
    assert [c.id for c in candidates] == ["3", "1", "4", "2"]
    assert gateway.fetched == ["3", "1", "4", "2"]


def test_mailto_only_message_is_not_a_candidate():
    gateway = FakeMailbox([make_message("1", unsubscribe="<mailto:x@y.com>")])
    assert scan_candidates(["1"], gateway) == []


def test_web_and_mailto_candidate_links():
    gateway = FakeMailbox([make_message("1", unsubscribe="<mailto:x@y.com>, <https://y.com/u>")])
    [candidate] = scan_candidates(["1"], gateway)
    assert candidate.web_links == ["https://y.com/u"]
    assert candidate.all_links == ["mailto:x@y.com", "https://y.com/u"]


def test_message_without_header_is_skipped():
    gateway = FakeMailbox([make_message("1", unsubscribe=None)])
    assert scan_candidates(["1"], gateway) == []


def test_duplicate_key_is_skipped_even_when_later_copy_has_link():
    """Dedup happens before the header check, so a later copy is never considered."""
    gateway = FakeMailbox(
        [
            make_message("1", unsubscribe=None),
            make_message("2"),
        ]
    )
    assert scan_candidates(["1", "2"], gateway) == []


def test_fetch_error_is_counted_and_scan_continues():
    gateway = FakeMailbox(make_newsletters(3), fail_fetch={"2"})
    counters = SessionCounters()
    candidates = scan_candidates(gateway.order, gateway, counters=counters)
    assert [c.id for c in candidates] == ["1", "3"]
    assert counters.errors == 1


def test_scan_does_not_touch_flags():
    gateway = FakeMailbox(make_newsletters(3))
    scan_candidates(gateway.order, gateway)
    assert gateway.flagged == []
    assert gateway.commits == 0


def test_progress_callback():
    gateway = FakeMailbox(make_newsletters(3))
    calls = []
    scan_candidates(gateway.order, gateway, callback=lambda num, total: calls.append((num, total)))
    assert calls == [(1, 3), (2, 3), (3, 3)]


def test_recent_ids_takes_the_tail():
    ids = [str(i) for i in range(1, 11)]
    assert recent_ids(ids, 3) == ["8", "9", "10"]
    assert recent_ids(ids, 50) == ids
    assert recent_ids(ids, 0) == []


def test_window_ids_slice():
    ids = [str(i) for i in range(1, 16)]
    assert window_ids(ids, ScanWindow(size=10)) == ids[:10]
    assert window_ids(ids, ScanWindow(size=10, offset=10)) == ids[10:]


def test_window_advance_clamps_at_end():
    """size=10 with 15 unseen messages: 0 -> 10, then stays at 10."""
    window = ScanWindow(size=10)
    assert window.advance(15) is True
    assert window.offset == 10
    assert window.advance(15) is False
    assert window.offset == 10
    assert window.advance(15) is False
    assert window.offset == 10


def test_window_restart_and_bounds():
    window = ScanWindow(size=5, offset=-3)
    assert window.offset == 0
    window.advance(20)
    window.restart()
    assert window.offset == 0
    with pytest.raises(ValueError):
        ScanWindow(size=0)
