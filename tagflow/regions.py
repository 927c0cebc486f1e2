"""
Locating and rewriting generated list regions inside note text.

A region looks like::

    <!--tag-list #alpha 1700000000000-->
    - [[X]]
    - [[Y]]
    <!--end-tag-list #alpha 1700000000000-->

Anchors are fully determined by tag and id, so they are found by plain
substring search. All functions here are pure: they take text and return
text.
"""

from typing import NamedTuple, Optional

from .types import end_anchor, start_anchor


class Location(NamedTuple):
    """Offsets of the start and end anchors, -1 when absent."""
    start: int
    end: int

    @property
    def has_start(self) -> bool:
        return self.start >= 0

    @property
    def complete(self) -> bool:
        return self.start >= 0 and self.end >= 0


def locate(text: str, tag: str, id: int) -> Location:
    """Find the anchor pair for (tag, id).

    The end anchor only counts when it follows the start anchor.
    """
    start_text = start_anchor(tag, id)
    start = text.find(start_text)
    if start < 0:
        return Location(-1, -1)
    end = text.find(end_anchor(tag, id), start + len(start_text))
    return Location(start, end)


def current_body(text: str, tag: str, id: int, location: Location) -> Optional[str]:
    """
    Body currently between the anchors, or None unless both are present.

    The newline written after the start anchor and the one before the end
    anchor belong to the framing, not the body.
    """
    if not location.complete:
        return None
    body = text[location.start + len(start_anchor(tag, id)):location.end]
    if body.startswith("\n"):
        body = body[1:]
    if body.endswith("\n"):
        body = body[:-1]
    return body


def write_region(text: str, tag: str, id: int, location: Location, body: str) -> str:
    """
    Return ``text`` with the region for (tag, id) holding ``body``.

    With only the start anchor present, the missing end anchor is written
    after the body. An empty body removes the region.
    """
    if not body:
        return delete_region(text, tag, id, location)
    if not location.has_start:
        return text

    start_text = start_anchor(tag, id)
    end_text = end_anchor(tag, id)
    framed = f"{start_text}\n{body}\n{end_text}"
    if location.end >= 0:
        tail = text[location.end + len(end_text):]
    else:
        tail = text[location.start + len(start_text):]
    return text[:location.start] + framed + tail


def delete_region(text: str, tag: str, id: int, location: Location) -> str:
    """
    Remove the region for (tag, id).

    Without an end anchor only the start anchor's line is removed.
    """
    if not location.has_start:
        return text
    if location.end >= 0:
        cut = location.end + len(end_anchor(tag, id))
    else:
        newline = text.find("\n", location.start)
        cut = len(text) if newline < 0 else newline + 1
    return text[:location.start] + text[cut:]


def insert_anchor_pair(text: str, tag: str, id: int, offset: Optional[int] = None) -> str:
    """Insert an empty anchor pair at ``offset`` (end of text by default).

    The pair always starts on its own line.
    """
    if offset is None or offset > len(text):
        offset = len(text)
    offset = max(offset, 0)
    pair = f"{start_anchor(tag, id)}\n{end_anchor(tag, id)}\n"
    if offset > 0 and text[offset - 1] != "\n":
        pair = "\n" + pair
    return text[:offset] + pair + text[offset:]


def line_offset(text: str, line: int) -> int:
    """Offset of the start of 1-based ``line``; past the end means end of text."""
    if line <= 1:
        return 0
    offset = 0
    for _ in range(line - 1):
        newline = text.find("\n", offset)
        if newline < 0:
            return len(text)
        offset = newline + 1
    return offset
