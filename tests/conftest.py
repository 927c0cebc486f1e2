"""
Shared pytest fixtures for tagflow tests.

Provides an in-memory note store so engine tests need no files.
"""

from pathlib import Path

import pytest

from tagflow.app import TagFlow
from tagflow.config import TagFlowConfig


class MemoryStorage:
    """
    In-memory NoteStorage that counts writes.

    Notes enumerate in insertion order.
    """

    def __init__(self, notes: dict[str, str] | None = None):
        self.notes: dict[str, str] = dict(notes or {})
        self.writes: list[str] = []
        self.unreadable: set[str] = set()
        self.fail_writes = False

    def read(self, path: str) -> str:
        if path in self.unreadable:
            raise PermissionError(f"Cannot read {path}")
        if path not in self.notes:
            raise FileNotFoundError(path)
        return self.notes[path]

    def write(self, path: str, text: str) -> None:
        if self.fail_writes:
            raise OSError(f"Disk full writing {path}")
        self.notes[path] = text
        self.writes.append(path)

    def exists(self, path: str) -> bool:
        return path in self.notes

    def list_notes(self) -> list[str]:
        return list(self.notes)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def make_tagflow(tmp_path):
    """Build an opened TagFlow over a MemoryStorage; registry lives in tmp_path."""
    opened = []

    def _make(notes: dict[str, str], registry_json: str | None = None) -> TagFlow:
        if registry_json is not None:
            (tmp_path / "tagFlowData.json").write_text(registry_json)
        config = TagFlowConfig(vault=tmp_path, ops_log=False)
        tf = TagFlow(config=config, storage=MemoryStorage(notes))
        tf.open()
        opened.append(tf)
        return tf

    yield _make
    for tf in opened:
        tf.close()


@pytest.fixture
def vault_dir(tmp_path):
    """Empty vault directory."""
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def write_notes():
    """Create note files under a root directory."""
    def _write(root: Path, notes: dict[str, str]) -> None:
        for rel, text in notes.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8", newline="")
    return _write
