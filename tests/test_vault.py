"""
Tests for the file-system vault and its watchdog watcher.
"""

import json
import time

import pytest
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from tagflow.app import TagFlow
from tagflow.config import TagFlowConfig
from tagflow.events import Created, Deleted, Modified, Renamed, ViewChanged
from tagflow.protocol import MetadataCache, NoteStorage
from tagflow.vault import FileVault, VaultWatcher


class TestFileVault:

    def test_satisfies_protocols(self, vault_dir):
        vault = FileVault(vault_dir)
        assert isinstance(vault, NoteStorage)
        assert isinstance(vault, MetadataCache)

    def test_list_notes_skips_hidden_and_other_files(self, vault_dir, write_notes):
        write_notes(vault_dir, {
            "b.md": "",
            "a.md": "",
            "dir/c.md": "",
            ".obsidian/x.md": "",
            ".hidden.md": "",
            "tagFlowData.json": "{}",
            "notes.txt": "",
        })
        assert FileVault(vault_dir).list_notes() == ["a.md", "b.md", "dir/c.md"]

    def test_read_write_preserve_bytes(self, vault_dir):
        vault = FileVault(vault_dir)
        vault.write("sub/n.md", "a\r\nb\nc")
        assert (vault_dir / "sub" / "n.md").read_bytes() == b"a\r\nb\nc"
        assert vault.read("sub/n.md") == "a\r\nb\nc"

    def test_exists(self, vault_dir, write_notes):
        write_notes(vault_dir, {"a.md": ""})
        vault = FileVault(vault_dir)
        assert vault.exists("a.md")
        assert not vault.exists("b.md")
        assert not vault.exists("../outside.md")

    def test_path_escape_rejected(self, vault_dir):
        with pytest.raises(ValueError):
            FileVault(vault_dir).read("../secret.md")

    def test_read_missing(self, vault_dir):
        with pytest.raises(FileNotFoundError):
            FileVault(vault_dir).read("nope.md")

    @pytest.mark.parametrize("name,expected", [
        ("Proj", "Proj.md"),
        ("Proj.md", "Proj.md"),
        ("dir/Proj", "dir/Proj.md"),
    ])
    def test_note_path(self, vault_dir, name, expected):
        assert FileVault(vault_dir).note_path(name) == expected

    def test_note_path_absolute(self, vault_dir):
        assert FileVault(vault_dir).note_path(str(vault_dir / "dir" / "N.md")) == "dir/N.md"

    def test_metadata(self, vault_dir, write_notes):
        write_notes(vault_dir, {
            "n.md": "---\ntags: [a]\ntitle: T\n---\n#b #b\n<!--tag-list #c 1-->\n#d\n<!--end-tag-list #c 1-->\n",
        })
        vault = FileVault(vault_dir)
        meta = vault.metadata("n.md")
        assert meta.frontmatter == {"tags": ["a"], "title": "T"}
        assert meta.tags == ["#b"]
        assert vault.metadata("n.md") is meta
        assert vault.metadata("missing.md") is None


def note_event(cls, vault_dir, *names):
    return cls(*[str(vault_dir / name) for name in names])


class TestVaultWatcher:

    def test_created_then_indexed(self, vault_dir):
        watcher = VaultWatcher(FileVault(vault_dir))
        watcher.dispatch(note_event(FileCreatedEvent, vault_dir, "new.md"))
        assert watcher.poll() == [Created("new.md"), Modified("new.md")]
        assert watcher.poll() == []

    def test_modified(self, vault_dir):
        watcher = VaultWatcher(FileVault(vault_dir))
        watcher.dispatch(note_event(FileModifiedEvent, vault_dir, "dir/a.md"))
        assert watcher.poll() == [Modified("dir/a.md")]

    def test_deleted(self, vault_dir):
        watcher = VaultWatcher(FileVault(vault_dir))
        watcher.dispatch(note_event(FileDeletedEvent, vault_dir, "a.md"))
        assert watcher.poll() == [Deleted("a.md")]

    def test_moved_is_rename(self, vault_dir):
        watcher = VaultWatcher(FileVault(vault_dir))
        watcher.dispatch(note_event(FileMovedEvent, vault_dir, "a.md", "sub/b.md"))
        assert watcher.poll() == [Renamed("a.md", "sub/b.md")]

    def test_temp_file_replacing_note(self, vault_dir):
        watcher = VaultWatcher(FileVault(vault_dir))
        watcher.dispatch(note_event(FileMovedEvent, vault_dir, ".a.md.swp", "a.md"))
        assert watcher.poll() == [Created("a.md"), Modified("a.md")]

    def test_note_moved_to_non_note(self, vault_dir):
        watcher = VaultWatcher(FileVault(vault_dir))
        watcher.dispatch(note_event(FileMovedEvent, vault_dir, "a.md", "a.txt"))
        assert watcher.poll() == [Deleted("a.md")]

    @pytest.mark.parametrize("name", [".obsidian/x.md", "notes.txt", "tagFlowData.json"])
    def test_ignores_non_notes(self, vault_dir, name):
        watcher = VaultWatcher(FileVault(vault_dir))
        watcher.dispatch(note_event(FileModifiedEvent, vault_dir, name))
        assert watcher.poll() == []

    def test_ignores_directories(self, vault_dir):
        watcher = VaultWatcher(FileVault(vault_dir))
        watcher.dispatch(note_event(DirCreatedEvent, vault_dir, "sub.md"))
        assert watcher.poll() == []

    def test_ignores_paths_outside_vault(self, vault_dir, tmp_path):
        watcher = VaultWatcher(FileVault(vault_dir))
        watcher.dispatch(FileModifiedEvent(str(tmp_path / "elsewhere.md")))
        assert watcher.poll() == []

    def test_observer_reports_rename(self, vault_dir, write_notes):
        write_notes(vault_dir, {"a.md": "#alpha"})
        with VaultWatcher(FileVault(vault_dir)) as watcher:
            (vault_dir / "a.md").rename(vault_dir / "b.md")
            events = []
            deadline = time.monotonic() + 10
            while Renamed("a.md", "b.md") not in events and time.monotonic() < deadline:
                time.sleep(0.05)
                events.extend(watcher.poll())
        assert Renamed("a.md", "b.md") in events


class TestRenameWithEdit:

    def test_lists_follow_renamed_and_edited_host(self, vault_dir, write_notes):
        start, end = "<!--tag-list #alpha 42-->", "<!--end-tag-list #alpha 42-->"
        write_notes(vault_dir, {"A.md": f"{start}\n{end}\n", "X.md": "#alpha"})
        (vault_dir / "tagFlowData.json").write_text(
            json.dumps({"lists": [{"tag": "#alpha", "notePath": "A.md", "id": 42}]})
        )
        with TagFlow(config=TagFlowConfig(vault=vault_dir, ops_log=False)) as tf:
            watcher = VaultWatcher(tf.storage)
            (vault_dir / "A.md").rename(vault_dir / "B.md")
            with open(vault_dir / "B.md", "a", encoding="utf-8") as f:
                f.write("more text\n")
            watcher.dispatch(note_event(FileMovedEvent, vault_dir, "A.md", "B.md"))
            watcher.dispatch(note_event(FileModifiedEvent, vault_dir, "B.md"))
            for event in watcher.poll():
                tf.dispatch(event)

            assert [d.note_path for d in tf.registry] == ["B.md"]
            saved = json.loads((vault_dir / "tagFlowData.json").read_text())
            assert [entry["notePath"] for entry in saved["lists"]] == ["B.md"]

            tf.dispatch(ViewChanged("B.md"))
        assert (vault_dir / "B.md").read_text() == f"{start}\n- [[X]]\n{end}\nmore text\n"
