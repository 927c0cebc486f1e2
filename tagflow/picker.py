"""
Choose-one-of-N picker, shared by the tag picker and the delete picker.
"""

from dataclasses import dataclass
from typing import Callable, Generic, Optional, Sequence, TypeVar

import typer

T = TypeVar("T")


def fuzzy_match(query: str, text: str) -> bool:
    """True if the characters of ``query`` appear in order in ``text``."""
    query = query.casefold()
    text = text.casefold()
    pos = 0
    for ch in query:
        pos = text.find(ch, pos)
        if pos < 0:
            return False
        pos += 1
    return True


@dataclass
class ListPicker(Generic[T]):
    """
    Pick one item by fuzzy query or by number.

    ``on_choose`` is called with the selected item.
    """
    items: Sequence[T]
    label: Callable[[T], str]
    on_choose: Callable[[T], None]

    def matches(self, query: str = "") -> list[T]:
        return [item for item in self.items if fuzzy_match(query, self.label(item))]

    def choose(self, query: str = "") -> Optional[T]:
        """
        Select the single item matching ``query``.

        Returns None (and calls nothing) unless exactly one item matches.
        """
        candidates = self.matches(query)
        if len(candidates) != 1:
            return None
        self.on_choose(candidates[0])
        return candidates[0]

    def prompt(self, query: str = "") -> Optional[T]:
        """Interactive selection on the terminal."""
        candidates = self.matches(query)
        if not candidates:
            return None
        if len(candidates) == 1:
            self.on_choose(candidates[0])
            return candidates[0]
        for i, item in enumerate(candidates, 1):
            typer.echo(f"{i:3d}. {self.label(item)}")
        choice = typer.prompt("Choose", type=int)
        if not 1 <= choice <= len(candidates):
            return None
        selected = candidates[choice - 1]
        self.on_choose(selected)
        return selected
