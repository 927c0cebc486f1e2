"""
Tag Flow

Backlink lists grouped by tag, kept in sync inside plain markdown notes.

Quick Start:
    from tagflow import TagFlow, ViewChanged

    with TagFlow("~/notes") as tf:
        tf.create_list("Projects/Proj.md", "alpha")
        tf.dispatch(ViewChanged("Projects/Proj.md"))

CLI Usage:
    tagflow create Projects/Proj.md alpha
    tagflow sync Projects/Proj.md
    tagflow watch Projects/Proj.md

In-note markers:
    <!--tag-list #alpha 1700000000000-->
    - [[X]]
    <!--end-tag-list #alpha 1700000000000-->

Environment Variables:
    TAGFLOW_VAULT    - Vault directory (default: current directory)
    TAGFLOW_VERBOSE  - Set to 1 for debug logging

Lists are registered in tagFlowData.json at the vault root.
"""

from .app import TagFlow
from .events import Created, Deleted, LayoutChanged, Modified, Renamed, Tick, ViewChanged
from .extractor import extract_tags
from .registry import ListRegistry, load_registry
from .tag_index import TagIndex
from .types import ListDeclaration

__version__ = "0.1.0"
__all__ = [
    "TagFlow",
    "ListDeclaration",
    "ListRegistry",
    "TagIndex",
    "extract_tags",
    "load_registry",
    "Created",
    "Modified",
    "Renamed",
    "Deleted",
    "Tick",
    "ViewChanged",
    "LayoutChanged",
]
