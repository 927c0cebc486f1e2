"""
File-system vault: a directory tree of markdown notes.

Provides the NoteStorage and MetadataCache collaborators over a real
directory, and a watchdog-based watcher that turns directory changes into
engine events.
"""

import logging
import os
import queue
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from .events import Created, Deleted, Event, Modified, Renamed
from .extractor import inline_tags, parse_frontmatter, strip_regions
from .protocol import NoteMetadata

logger = logging.getLogger(__name__)


class FileVault:
    """
    Notes stored as files under ``root``, addressed by POSIX relative path.

    Hidden files and directories (names starting with '.') are not notes.
    Text is read and written without newline translation so that content
    round-trips byte-for-byte.
    """

    def __init__(self, root: Path, suffix: str = ".md"):
        self.root = Path(root)
        self.suffix = suffix
        self._meta: dict[str, tuple[int, NoteMetadata]] = {}

    def _resolve(self, path: str) -> Path:
        full = (self.root / path).resolve()
        if not full.is_relative_to(self.root.resolve()):
            raise ValueError(f"Path escapes the vault: {path!r}")
        return full

    def note_path(self, name: str) -> str:
        """
        Vault-relative path for a note given on the command line.

        Accepts an absolute path inside the vault, a relative path, or a
        bare note name without the suffix.
        """
        candidate = Path(name).expanduser()
        if candidate.is_absolute():
            rel = candidate.resolve().relative_to(self.root.resolve()).as_posix()
        else:
            rel = candidate.as_posix()
        if not rel.endswith(self.suffix):
            rel += self.suffix
        return rel

    def read(self, path: str) -> str:
        with open(self._resolve(path), encoding="utf-8", newline="") as f:
            return f.read()

    def write(self, path: str, text: str) -> None:
        full = self._resolve(path)
        full.parent.mkdir(parents=True, exist_ok=True)
        with open(full, "w", encoding="utf-8", newline="") as f:
            f.write(text)

    def exists(self, path: str) -> bool:
        try:
            return self._resolve(path).is_file()
        except ValueError:
            return False

    def list_notes(self) -> list[str]:
        notes = []
        for full in self.root.rglob(f"*{self.suffix}"):
            rel = full.relative_to(self.root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            if full.is_file():
                notes.append(rel.as_posix())
        return sorted(notes)

    def metadata(self, path: str) -> Optional[NoteMetadata]:
        """
        Parsed front matter and inline tags of a note, cached by mtime.

        Returns None if the note cannot be read.
        """
        try:
            mtime = self._resolve(path).stat().st_mtime_ns
        except (OSError, ValueError):
            self._meta.pop(path, None)
            return None
        cached = self._meta.get(path)
        if cached and cached[0] == mtime:
            return cached[1]
        try:
            text = self.read(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("No metadata for %s: %s", path, e)
            return None
        cleaned = strip_regions(text)
        meta = NoteMetadata(
            frontmatter=parse_frontmatter(cleaned),
            tags=list(dict.fromkeys(inline_tags(cleaned))),
        )
        self._meta[path] = (mtime, meta)
        return meta


class VaultWatcher(FileSystemEventHandler):
    """
    Turns watchdog notifications for a FileVault into engine events.

    The observer thread only queues events; poll() drains the queue on the
    caller's thread, so the engine itself stays single-threaded. Moves are
    reported by the file system as moves and become Renamed events.
    """

    def __init__(self, vault: FileVault):
        super().__init__()
        self.vault = vault
        self._queue: "queue.Queue[Event]" = queue.Queue()
        self._observer: Optional[BaseObserver] = None

    def __enter__(self) -> "VaultWatcher":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()

    def start(self) -> None:
        if self._observer is not None:
            return
        self._observer = Observer()
        self._observer.schedule(self, str(self.vault.root), recursive=True)
        self._observer.start()
        logger.debug("Watching %s", self.vault.root)

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None

    def _note(self, raw) -> Optional[str]:
        """Vault-relative path of a note, or None for anything else."""
        try:
            rel = Path(os.fsdecode(raw)).relative_to(self.vault.root)
        except ValueError:
            return None
        if rel.suffix != self.vault.suffix:
            return None
        if any(part.startswith(".") for part in rel.parts):
            return None
        return rel.as_posix()

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = self._note(event.src_path)
        if path:
            self._queue.put(Created(path))
            self._queue.put(Modified(path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = self._note(event.src_path)
        if path:
            self._queue.put(Modified(path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = self._note(event.src_path)
        if path:
            self._queue.put(Deleted(path))

    def on_moved(self, event: FileSystemEvent) -> None:
        # Directory moves also arrive as one move per contained file
        if event.is_directory:
            return
        old_path = self._note(event.src_path)
        new_path = self._note(event.dest_path)
        if old_path and new_path:
            self._queue.put(Renamed(old_path, new_path))
        elif new_path:
            # Atomic save: a temp file replaced the note
            self._queue.put(Created(new_path))
            self._queue.put(Modified(new_path))
        elif old_path:
            self._queue.put(Deleted(old_path))

    def poll(self) -> list[Event]:
        """Events received since the last call, oldest first."""
        events: list[Event] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                break
        if events:
            logger.debug("Detected %d changes", len(events))
        return events
