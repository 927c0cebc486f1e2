"""
Registry of tag lists, persisted as a single JSON document.

Document format (kept compatible with existing data files)::

    {"lists": [{"tag": "#alpha", "notePath": "Proj.md", "id": 1700000000000}],
     "updated": "2024-01-01T00:00:00"}

The document is rewritten in full after every mutation. A missing or
corrupt document loads as an empty registry.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Iterator

from .types import ListDeclaration, utc_now

logger = logging.getLogger(__name__)


class ListRegistry:
    """Ordered collection of list declarations."""

    def __init__(self, lists: Iterable[ListDeclaration] = ()):
        self._lists: list[ListDeclaration] = list(lists)

    def __iter__(self) -> Iterator[ListDeclaration]:
        return iter(list(self._lists))

    def __len__(self) -> int:
        return len(self._lists)

    def __contains__(self, decl: ListDeclaration) -> bool:
        return decl in self._lists

    def add(self, decl: ListDeclaration) -> None:
        self._lists.append(decl)

    def clear(self) -> None:
        self._lists = []

    def remove(self, decl: ListDeclaration) -> bool:
        """Remove by identity (tag, note and id). Returns True if found."""
        before = len(self._lists)
        self._lists = [d for d in self._lists if d != decl]
        return len(self._lists) != before

    def rename_host(self, old_path: str, new_path: str) -> int:
        """Point every list hosted by ``old_path`` at ``new_path``."""
        moved = 0
        for i, decl in enumerate(self._lists):
            if decl.note_path == old_path:
                self._lists[i] = ListDeclaration(decl.tag, new_path, decl.id)
                moved += 1
        return moved

    def remove_host(self, path: str) -> int:
        """Drop every list hosted by ``path``."""
        before = len(self._lists)
        self._lists = [d for d in self._lists if d.note_path != path]
        return before - len(self._lists)

    def for_note(self, path: str) -> list[ListDeclaration]:
        return [d for d in self._lists if d.note_path == path]

    def has_id(self, tag: str, path: str, id: int) -> bool:
        return ListDeclaration(tag, path, id) in self._lists

    def to_dict(self) -> dict:
        return {
            "lists": [d.to_dict() for d in self._lists],
            "updated": utc_now(),
        }

    def save(self, path: Path) -> None:
        """
        Write the whole registry to ``path``.

        Raises:
            OSError: if the file cannot be written
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(json.dumps(self.to_dict()), encoding="utf-8")
        tmp.replace(path)
        logger.debug("Saved %d lists to %s", len(self._lists), path)


def load_registry(path: Path) -> ListRegistry:
    """
    Load the registry from ``path``.

    Never raises: an unreadable document gives an empty registry, and
    malformed entries are skipped.
    """
    if not path.exists():
        return ListRegistry()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Failed to load list registry %s: %s", path, e)
        return ListRegistry()

    entries = data.get("lists") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        logger.warning("List registry %s has no 'lists' array, starting empty", path)
        return ListRegistry()

    lists = []
    for entry in entries:
        try:
            lists.append(ListDeclaration.from_dict(entry))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed list entry %r: %s", entry, e)
    return ListRegistry(lists)
