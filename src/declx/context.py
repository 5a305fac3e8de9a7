"""Context — named cells passed between non-adjacent tree nodes.

The Root holds one Context: a map from identifier to Cell. Providers publish
values into it and Consumers read cells out of it, both during
after_construction, which runs pre-order once the whole native tree exists.

The first registrant for an identifier owns the storage cell. A Provider
arriving after a Consumer pushes into the Consumer's cell instead of
replacing it, so the Consumer's subscribers fire. A Consumer arriving after
a Provider (or after another Consumer) links its own cells to the stored
one, so it receives the present value at once and every later one. The link
runs both ways: a widget bound two-way inside the Consumer writes through
to the stored cell, so every Consumer of the identifier sees the change.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator

from declx.cell import Cell
from declx.component import Component, Phase

if TYPE_CHECKING:
    from textual.widget import Widget

logger = logging.getLogger(__name__)


class Context:
    """Identifier-keyed cell registry owned by a Root."""

    def __init__(self) -> None:
        self._cells: dict[str, Cell] = {}

    def get(self, identifier: str) -> Cell | None:
        return self._cells.get(identifier)

    def claim(self, identifier: str, cell: Cell) -> Cell:
        """Insert cell unless identifier is taken. Returns the stored cell."""
        stored = self._cells.setdefault(identifier, cell)
        logger.debug("Context %r claimed (%s)", identifier, "new" if stored is cell else "existing")
        return stored

    def provide(self, identifier: str, value: Any) -> Cell:
        """Set the stored cell's value, or store a fresh cell holding it."""
        stored = self._cells.get(identifier)
        if stored is not None:
            stored.set(value)
            logger.debug("Context %r updated", identifier)
        else:
            stored = self._cells[identifier] = Cell(value)
            logger.debug("Context %r provided", identifier)
        return stored

    def identifiers(self) -> list[str]:
        return list(self._cells)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._cells))

    def __repr__(self) -> str:
        return f"Context({self._cells!r})"


class Provider(Component):
    """Publishes value under identifier. Contributes no widget."""

    accepts_children = False

    def __init__(self, identifier: str, value: Any) -> None:
        super().__init__(name=f"Provider[{identifier}]")
        self.identifier = identifier
        self.value = value

    def construct(self) -> Widget | None:
        self._phase = Phase.CONSTRUCTION
        return None

    def after_construction(self) -> None:
        self.root.context.provide(self.identifier, self.value)
        super().after_construction()


class Consumer(Component):
    """Builds its subtree from cells that context fills in later.

    One empty cell is allocated per identifier and builder(*cells) is called
    right away, so the subtree is complete before any value exists. The
    cells are registered during after_construction, then the subtree's own
    after_construction runs.
    """

    accepts_children = False

    def __init__(self, *args: str | Callable[..., Component]) -> None:
        *identifiers, builder = args
        self._setup(identifiers, builder)

    def _setup(self, identifiers: Iterable[str], builder: Callable[..., Component]) -> None:
        self.identifiers: tuple[str, ...] = tuple(identifiers)
        if not self.identifiers:
            raise ValueError("Consumer needs at least one identifier")
        self.cells: tuple[Cell, ...] = tuple(Cell() for _ in self.identifiers)
        child = builder(*self.cells)
        super().__init__(child, name=f"{type(self).__name__}[{', '.join(self.identifiers)}]")

    def after_construction(self) -> None:
        context = self.root.context
        for identifier, cell in zip(self.identifiers, self.cells):
            stored = context.claim(identifier, cell)
            if stored is not cell:
                self.own(stored.subscribe(cell.set))
                self.own(cell.subscribe(_write_back(stored)))
        super().after_construction()


class Binding(Consumer):
    """A Consumer taking its identifiers as one iterable."""

    def __init__(self, identifiers: Iterable[str], builder: Callable[..., Component]) -> None:
        self._setup(identifiers, builder)


def _write_back(stored: Cell) -> Callable[[Any], None]:
    """Subscriber copying later values into stored; the replayed one is skipped."""
    replayed = False

    def _push(value: Any) -> None:
        nonlocal replayed
        if not replayed:
            replayed = True
        elif value != stored.get():
            stored.set(value)

    return _push
