"""
In-memory index of note path -> tag set.

The index is a cache: every entry can be rebuilt from the note's text
with extract_tags(), so updates always replace a note's whole set.
"""

import logging
from typing import Iterable, Iterator

from .extractor import extract_tags
from .protocol import NoteStorage
from .types import strip_marker

logger = logging.getLogger(__name__)


class TagIndex:
    """
    Mapping of note path to its current tag set.

    Enumeration order is insertion order; a renamed note moves to the end.
    """

    def __init__(self, entries: Iterable[tuple[str, set[str]]] = ()):
        self._tags: dict[str, set[str]] = {}
        for path, tags in entries:
            self._tags[path] = set(tags)

    def __contains__(self, path: str) -> bool:
        return path in self._tags

    def __len__(self) -> int:
        return len(self._tags)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def tags_for(self, path: str) -> set[str]:
        return set(self._tags.get(path, ()))

    def created(self, path: str) -> None:
        self._tags[path] = set()

    def update(self, path: str, tags: set[str]) -> bool:
        """
        Replace the tag set of ``path``.

        Returns:
            True if the set differs from the indexed one
        """
        old = self._tags.get(path, set())
        self._tags[path] = set(tags)
        return old != set(tags)

    def renamed(self, old_path: str, new_path: str) -> None:
        tags = self._tags.pop(old_path, set())
        self._tags.pop(new_path, None)
        self._tags[new_path] = tags

    def deleted(self, path: str) -> None:
        self._tags.pop(path, None)

    def notes_with(self, tag: str) -> list[str]:
        """Paths whose tag set contains ``tag``, in enumeration order."""
        return [path for path, tags in self._tags.items() if tag in tags]

    def all_tags(self) -> list[str]:
        """Every indexed tag without its marker, first-seen order."""
        seen: dict[str, None] = {}
        for tags in self._tags.values():
            for tag in sorted(tags):
                seen.setdefault(strip_marker(tag), None)
        return list(seen)

    def rebuild(self, storage: NoteStorage) -> int:
        """
        Re-extract every note in ``storage``.

        Notes that cannot be read are left out and logged.

        Returns:
            Number of notes indexed
        """
        fresh: dict[str, set[str]] = {}
        for path in storage.list_notes():
            try:
                fresh[path] = extract_tags(storage.read(path))
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping unreadable note %s: %s", path, e)
        self._tags = fresh
        logger.info("Indexed %d notes", len(fresh))
        return len(fresh)
