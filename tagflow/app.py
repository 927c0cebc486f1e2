"""
Application state and event dispatch.

TagFlow owns everything the engine keeps between events: the tag index,
the list registry, and which note is in view. It is constructed at startup,
opened once, fed events, and closed at shutdown.
"""

import logging
from pathlib import Path
from typing import Optional

from .config import TagFlowConfig, load_or_default, resolve_vault
from .events import Event, Modified, TagFlowState, transition
from .extractor import extract_tags
from .protocol import NoteStorage
from .registry import ListRegistry, load_registry
from .sync import Synchronizer, SyncResult
from .tag_index import TagIndex
from .types import ListDeclaration
from .vault import FileVault

logger = logging.getLogger(__name__)


class TagFlow:
    """
    Tag-list engine for one vault.

    Usage::

        with TagFlow(vault_path) as tf:
            tf.dispatch(ViewChanged("Projects/Proj.md"))
    """

    def __init__(
        self,
        vault: Optional[Path] = None,
        *,
        config: Optional[TagFlowConfig] = None,
        storage: Optional[NoteStorage] = None,
    ):
        if config is None:
            config = load_or_default(resolve_vault(vault))
        self.config = config
        self.storage: NoteStorage = storage or FileVault(config.vault, config.note_suffix)
        self.state = TagFlowState(
            index=TagIndex(),
            registry=ListRegistry(),
            data_file=config.data_file,
        )
        self.synchronizer = Synchronizer(self.storage, self.state.index, self.state.registry)
        self._ops_handler: Optional[logging.Handler] = None
        self._opened = False

    def __enter__(self) -> "TagFlow":
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def index(self) -> TagIndex:
        return self.state.index

    @property
    def registry(self) -> ListRegistry:
        return self.state.registry

    def open(self) -> None:
        """Load the registry and index every note."""
        if self._opened:
            return
        if self.config.ops_log and isinstance(self.storage, FileVault):
            from .logging_config import configure_ops_log
            try:
                self._ops_handler = configure_ops_log(self.config.state_dir)
            except OSError as e:
                logger.warning("Operations log unavailable: %s", e)

        loaded = load_registry(self.config.data_path)
        # Synchronizer holds a reference to the registry; refill in place
        self.state.registry.clear()
        for decl in loaded:
            self.state.registry.add(decl)
        self.state.index.rebuild(self.storage)
        self._opened = True
        logger.info(
            "Opened vault %s: %d notes, %d lists",
            self.config.vault, len(self.state.index), len(self.state.registry),
        )

    def close(self) -> None:
        if self._ops_handler is not None:
            logging.getLogger("tagflow").removeHandler(self._ops_handler)
            self._ops_handler.close()
            self._ops_handler = None
        self._opened = False

    def save_registry(self) -> None:
        """
        Persist the registry.

        Raises:
            OSError: if the data file cannot be written
        """
        self.state.registry.save(self.config.data_path)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def dispatch(self, event: Event) -> Optional[SyncResult]:
        """
        Apply one event and perform the I/O it calls for.

        Returns:
            The sync result if a sync pass ran, else None

        Raises:
            OSError: if writing the active note or the registry fails
        """
        tags = None
        if isinstance(event, Modified) and event.path != self.state.data_file:
            try:
                tags = extract_tags(self.storage.read(event.path))
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Cannot read modified note %s: %s", event.path, e)
                return None

        step = transition(self.state, event, tags)
        if step.registry_changed:
            self.save_registry()
        if not step.sync:
            return None
        return self.sync()

    def sync(self) -> SyncResult:
        """
        Sync the lists of the note in view.

        Lists retired before a failed write are still persisted.
        """
        self.state.pending_selection = False
        before = len(self.state.registry)
        try:
            return self.synchronizer.sync_note(self.state.active_note)
        finally:
            if len(self.state.registry) != before:
                self.save_registry()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def all_tags(self) -> list[str]:
        return self.state.index.all_tags()

    def lists_for(self, path: Optional[str] = None) -> list[ListDeclaration]:
        if path is None:
            return list(self.state.registry)
        return self.state.registry.for_note(path)

    def create_list(
        self,
        path: str,
        tag: str,
        offset: Optional[int] = None,
    ) -> ListDeclaration:
        """
        Attach a list for ``tag`` to ``path``.

        The list is filled on the next modification of any note or the
        next sync of ``path``.
        """
        decl = self.synchronizer.create_list(path, tag, offset)
        self.state.pending_selection = True
        self.save_registry()
        return decl

    def create_list_from_title(self, path: str, title: str) -> ListDeclaration:
        """Attach a list whose tag is a note title."""
        title = title.strip()
        if not title:
            raise ValueError("No title given for the list")
        logger.info("Creating list from title %r", title)
        return self.create_list(path, title)

    def delete_list(self, decl: ListDeclaration) -> bool:
        removed = self.synchronizer.delete_list(decl)
        if removed:
            self.save_registry()
        return removed
