"""
Events that drive the engine, and the state transitions they cause.

transition() is pure: it mutates the in-memory state for one event and
reports what the caller must do next (persist the registry, run a sync
pass). Reading notes and writing files happen in TagFlow.dispatch().
"""

from dataclasses import dataclass
from typing import NamedTuple, Optional, Union

from .registry import ListRegistry
from .tag_index import TagIndex


@dataclass(frozen=True)
class Created:
    path: str


@dataclass(frozen=True)
class Modified:
    path: str


@dataclass(frozen=True)
class Renamed:
    old_path: str
    new_path: str


@dataclass(frozen=True)
class Deleted:
    path: str


@dataclass(frozen=True)
class Tick:
    """Periodic resync."""


@dataclass(frozen=True)
class ViewChanged:
    """A note became the one in view (None: nothing in view)."""
    path: Optional[str]


@dataclass(frozen=True)
class LayoutChanged:
    graph_view_open: bool = False


Event = Union[Created, Modified, Renamed, Deleted, Tick, ViewChanged, LayoutChanged]


@dataclass
class TagFlowState:
    """Everything the engine holds in memory between events."""
    index: TagIndex
    registry: ListRegistry
    active_note: Optional[str] = None
    # Set when a list was just created; the next modification syncs
    pending_selection: bool = False
    data_file: str = "tagFlowData.json"


class Transition(NamedTuple):
    sync: bool = False
    registry_changed: bool = False


def transition(state: TagFlowState, event: Event, tags: Optional[set[str]] = None) -> Transition:
    """
    Apply ``event`` to ``state``.

    Args:
        tags: freshly extracted tags of the note, for Modified events

    Returns:
        What the caller should do next
    """
    if isinstance(event, Created):
        state.index.created(event.path)
        return Transition()

    if isinstance(event, Modified):
        if event.path == state.data_file:
            return Transition()
        changed = state.index.update(event.path, tags or set())
        return Transition(sync=changed or state.pending_selection)

    if isinstance(event, Renamed):
        state.index.renamed(event.old_path, event.new_path)
        moved = state.registry.rename_host(event.old_path, event.new_path)
        if state.active_note == event.old_path:
            state.active_note = event.new_path
        return Transition(registry_changed=moved > 0)

    if isinstance(event, Deleted):
        state.index.deleted(event.path)
        removed = state.registry.remove_host(event.path)
        if state.active_note == event.path:
            state.active_note = None
        return Transition(registry_changed=removed > 0)

    if isinstance(event, Tick):
        return Transition(sync=True)

    if isinstance(event, ViewChanged):
        state.active_note = event.path
        return Transition(sync=True)

    if isinstance(event, LayoutChanged):
        return Transition(sync=event.graph_view_open)

    raise TypeError(f"Unknown event: {event!r}")
