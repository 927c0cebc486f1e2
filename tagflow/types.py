"""
Data types for tag lists.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePosixPath


# Every stored tag carries this marker
TAG_MARKER = "#"


def utc_now() -> str:
    """Current UTC timestamp in canonical format: YYYY-MM-DDTHH:MM:SS."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def normalize_tag(tag: str) -> str:
    """Return the tag with exactly one leading marker.

    Picker input and list titles arrive without the marker ("alpha");
    stored tags always have it ("#alpha").
    """
    tag = tag.strip()
    return TAG_MARKER + tag.lstrip(TAG_MARKER)


def strip_marker(tag: str) -> str:
    """Drop the leading marker from a stored tag."""
    return tag[1:] if tag.startswith(TAG_MARKER) else tag


def display_name(path: str) -> str:
    """Display name of a note: its file name without extension."""
    return PurePosixPath(path).stem


def render_link(path: str) -> str:
    """One backlink entry for a generated list."""
    return f"- [[{display_name(path)}]]"


@dataclass(frozen=True)
class ListDeclaration:
    """
    A tag list attached to a note.

    Identity is all three fields: two lists for the same tag in the
    same note differ by ``id`` (creation time in milliseconds).
    """
    tag: str
    note_path: str
    id: int

    @property
    def start_anchor(self) -> str:
        return start_anchor(self.tag, self.id)

    @property
    def end_anchor(self) -> str:
        return end_anchor(self.tag, self.id)

    def label(self) -> str:
        return f"{self.tag} (ID: {self.id})"

    def to_dict(self) -> dict:
        return {"tag": self.tag, "notePath": self.note_path, "id": self.id}

    @classmethod
    def from_dict(cls, data: dict) -> "ListDeclaration":
        """Build from a persisted entry.

        Raises:
            KeyError, TypeError, ValueError: on a malformed entry
        """
        tag = data["tag"]
        note_path = data["notePath"]
        if not isinstance(tag, str) or not isinstance(note_path, str):
            raise TypeError(f"Malformed list entry: {data!r}")
        if isinstance(data["id"], bool):
            raise TypeError(f"Malformed list id: {data!r}")
        return cls(tag=tag, note_path=note_path, id=int(data["id"]))


def start_anchor(tag: str, id: int) -> str:
    return f"<!--tag-list {tag} {id}-->"


def end_anchor(tag: str, id: int) -> str:
    return f"<!--end-tag-list {tag} {id}-->"
