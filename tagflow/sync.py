"""
Synchronizer: keeps the tag-list regions of a note in step with the index.

Only the note currently in view is rewritten. For each list it hosts, the
desired body is the rendered membership of the list's tag; the note is
written only when that differs from what the region already holds, so a
second pass over an unchanged index writes nothing.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from . import regions
from .protocol import NoteStorage
from .registry import ListRegistry
from .tag_index import TagIndex
from .types import ListDeclaration, normalize_tag, render_link

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of one pass over a note."""
    written: list[ListDeclaration] = field(default_factory=list)
    retired: list[ListDeclaration] = field(default_factory=list)
    skipped: list[ListDeclaration] = field(default_factory=list)

    @property
    def registry_changed(self) -> bool:
        return bool(self.retired)


def render_body(paths: list[str]) -> str:
    return "\n".join(render_link(p) for p in paths)


class Synchronizer:

    def __init__(self, storage: NoteStorage, index: TagIndex, registry: ListRegistry):
        self._storage = storage
        self._index = index
        self._registry = registry

    def desired_body(self, tag: str) -> str:
        return render_body(self._index.notes_with(tag))

    def sync_note(self, path: Optional[str]) -> SyncResult:
        """
        Bring every list hosted by ``path`` up to date.

        A list whose tag has no members is removed from the note and
        retired from the registry; the caller persists the registry.

        Raises:
            OSError: if writing the note fails
        """
        result = SyncResult()
        if not len(self._registry):
            logger.debug("No lists registered")
            return result
        if not path:
            return result

        for decl in self._registry.for_note(path):
            body = self.desired_body(decl.tag)
            try:
                text = self._storage.read(path)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Cannot read %s for list %s: %s", path, decl.label(), e)
                result.skipped.append(decl)
                continue

            location = regions.locate(text, decl.tag, decl.id)
            if body and regions.current_body(text, decl.tag, decl.id, location) == body:
                continue

            if not body:
                self._write_if_changed(path, text, regions.delete_region(text, decl.tag, decl.id, location))
                self._registry.remove(decl)
                result.retired.append(decl)
                logger.info("Retired list %s in %s: no tagged notes", decl.label(), path)
                continue

            if not location.has_start:
                logger.warning("Anchor for list %s missing from %s", decl.label(), path)
                result.skipped.append(decl)
                continue

            if not location.complete:
                logger.info("Repairing list %s in %s: end anchor missing", decl.label(), path)
            self._storage.write(path, regions.write_region(text, decl.tag, decl.id, location, body))
            result.written.append(decl)
            logger.debug("Updated list %s in %s", decl.label(), path)
        return result

    def _write_if_changed(self, path: str, old: str, new: str) -> None:
        if new != old:
            self._storage.write(path, new)

    def create_list(
        self,
        path: str,
        tag: str,
        offset: Optional[int] = None,
        id: Optional[int] = None,
    ) -> ListDeclaration:
        """
        Insert an empty anchor pair into ``path`` and register the list.

        Raises:
            FileNotFoundError: if the note does not exist
        """
        tag = normalize_tag(tag)
        if id is None:
            id = int(time.time() * 1000)
        while self._registry.has_id(tag, path, id):
            id += 1

        text = self._storage.read(path)
        self._storage.write(path, regions.insert_anchor_pair(text, tag, id, offset))
        decl = ListDeclaration(tag=tag, note_path=path, id=id)
        self._registry.add(decl)
        logger.info("Created list %s in %s", decl.label(), path)
        return decl

    def delete_list(self, decl: ListDeclaration) -> bool:
        """
        Remove a list's region from its note and drop it from the registry.

        Returns:
            True if the list was registered
        """
        try:
            text = self._storage.read(decl.note_path)
        except FileNotFoundError:
            logger.warning("Host note %s of list %s is gone", decl.note_path, decl.label())
        else:
            location = regions.locate(text, decl.tag, decl.id)
            self._write_if_changed(
                decl.note_path, text,
                regions.delete_region(text, decl.tag, decl.id, location),
            )
        removed = self._registry.remove(decl)
        if removed:
            logger.info("Deleted list %s from %s", decl.label(), decl.note_path)
        return removed
