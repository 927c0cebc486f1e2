"""
Protocol definitions for the collaborators of the sync engine.

- NoteStorage: read/write/enumerate notes (FileVault, or an in-memory
  store in tests)
- MetadataCache: already-parsed front matter and inline tags, for pickers
- Picker: choose one item out of a list
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Sequence, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class NoteStorage(Protocol):
    """
    Access to note content by vault-relative path.

    Implemented by:
    - FileVault (a directory of markdown files)
    """

    def read(self, path: str) -> str: ...

    def write(self, path: str, text: str) -> None: ...

    def exists(self, path: str) -> bool: ...

    def list_notes(self) -> list[str]: ...


@dataclass
class NoteMetadata:
    """Cached parse of one note."""
    frontmatter: Optional[dict] = None
    tags: list[str] = field(default_factory=list)


@runtime_checkable
class MetadataCache(Protocol):

    def metadata(self, path: str) -> Optional[NoteMetadata]: ...


class Picker(Protocol[T]):
    """Choose one of ``items``; ``on_choose`` receives the selection."""

    items: Sequence[T]
    label: Callable[[T], str]
    on_choose: Callable[[T], None]

    def choose(self, query: str = "") -> Optional[T]: ...

    def prompt(self, query: str = "") -> Optional[T]: ...
