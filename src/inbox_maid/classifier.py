"""Parsing of List-Unsubscribe header values into typed links."""

from __future__ import annotations

from .constants import MAILTO_PREFIX, WEB_LINK_PREFIX
from .models import LinkSet


def _strip_brackets(segment: str) -> str:
    segment = segment.strip()
    if segment.startswith("<"):
        segment = segment[1:]
    if segment.endswith(">"):
        segment = segment[:-1]
    return segment.strip()


def is_web_link(link: str) -> bool:
    return link.lower().startswith(WEB_LINK_PREFIX)


def classify_links(raw: str | None) -> LinkSet:
    """Split a raw List-Unsubscribe value into all targets and the web subset.

    Handles values like:
      "<mailto:x@y.com>, <https://y.com/u>" -> web ["https://y.com/u"], all both
      "https://y.com/u"                    -> web ["https://y.com/u"]
      ""                                   -> nothing
    Order is preserved in both lists. Never raises.
    """
    if not raw:
        return LinkSet()
    all_links = [link for link in (_strip_brackets(s) for s in raw.split(",")) if link]
    web_links = [link for link in all_links if is_web_link(link)]
    return LinkSet(web_links=web_links, all_links=all_links)


def link_kind(link: str) -> str:
    """Label a link for display: 'web', 'email' or 'other'."""
    if is_web_link(link):
        return "web"
    if link.lower().startswith(MAILTO_PREFIX):
        return "email"
    return "other"
