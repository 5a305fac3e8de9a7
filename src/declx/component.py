"""Component tree nodes and their construction lifecycle.

A tree is declared top-down as nested constructor calls. Nothing native
exists until the Root drives the lifecycle:

    DECLARED -> BEFORE_CONSTRUCTION -> CONSTRUCTION -> AFTER_CONSTRUCTION -> LIVE
                                                                        -> DESTROYED

before_construction() and after_construction() run pre-order, top-down.
construct() runs depth-first: each node constructs its children, and their
widgets are attached as they return. A node may construct to None (a
Provider, a placeholder); containers skip those.

Children live in a ReactiveList. Mutating it after construction builds the
new children, resynchronizes the native container and tears down the
removed ones.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Callable, Iterable, Iterator

from declx.collection import ListChange, ReactiveList
from declx.errors import LifecycleError

if TYPE_CHECKING:
    from textual.widget import Widget

    from declx.root import Root

logger = logging.getLogger(__name__)


class Phase(enum.Enum):
    DECLARED = "declared"
    BEFORE_CONSTRUCTION = "before_construction"
    CONSTRUCTION = "construction"
    AFTER_CONSTRUCTION = "after_construction"
    LIVE = "live"
    DESTROYED = "destroyed"


_CONSTRUCTED = (Phase.CONSTRUCTION, Phase.AFTER_CONSTRUCTION, Phase.LIVE)


class Component:
    """A node of the component tree.

    The base node is transparent: it constructs its children and stands for
    the single widget they produce. Subclasses wrap a native widget
    (widget.Native), mediate context (context.Provider/Consumer) or drive
    the lifecycle (root.Root).
    """

    accepts_children = True

    def __init__(self, *children: Component | None, name: str | None = None) -> None:
        self._name = name
        self._parent: Component | None = None
        self._native: Widget | None = None
        self._phase = Phase.DECLARED
        self._disposers: list[Callable[[], None]] = []
        self._children: ReactiveList[Component] = ReactiveList(c for c in children if c is not None)
        for child in self._children:
            child.parent = self
        self._children.subscribe(self._on_children_changed)

    # --- Tree ---

    @property
    def parent(self) -> Component | None:
        return self._parent

    @parent.setter
    def parent(self, parent: Component) -> None:
        self._check_adoptable(parent)
        self._parent = parent

    def _check_adoptable(self, parent: Component) -> None:
        if self._parent is not None and self._parent is not parent:
            raise LifecycleError(f"Component '{self}' already belongs to '{self._parent}'.")

    @property
    def root(self) -> Root:
        if self._parent is None:
            raise LifecycleError(f"Component '{self}' should be Root or is missing a parent component.")
        return self._parent.root

    @property
    def children(self) -> ReactiveList[Component]:
        return self._children

    @property
    def native(self) -> Widget | None:
        """The wrapped Textual widget; None until constructed."""
        return self._native

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def is_constructed(self) -> bool:
        return self._phase in _CONSTRUCTED

    @property
    def id(self) -> str | None:
        return None

    @property
    def classes(self) -> frozenset[str]:
        return frozenset()

    def walk(self) -> Iterator[Component]:
        """This node and all its descendants, pre-order."""
        yield self
        for child in self._children:
            yield from child.walk()

    def find(self, id: str) -> Component | None:
        """First component in this subtree carrying id."""
        for component in self.walk():
            if component.id == id:
                return component
        return None

    def find_by_class(self, name: str) -> list[Component]:
        return [component for component in self.walk() if name in component.classes]

    # --- Children ---

    def _check_accepts_children(self) -> None:
        if not self.accepts_children:
            raise LifecycleError(f"Component '{self}' cannot hold child components.")

    def _check_mutable(self, added: Iterable[Component]) -> None:
        """Raise before the child list changes if the change cannot be applied."""
        self._check_accepts_children()
        for child in added:
            child._check_adoptable(self)
        if self.is_constructed:
            self._check_resync()

    def add_child(self, child: Component) -> Component:
        self._check_mutable([child])
        self._children.append(child)
        return self

    def remove_child(self, child: Component) -> Component:
        self._check_mutable([])
        self._children.remove(child)
        return self

    def set_children(self, children: Iterable[Component]) -> Component:
        children = list(children)
        self._check_mutable(children)
        self._children.replace(children)
        return self

    def _on_children_changed(self, change: ListChange) -> None:
        for child in change.added:
            child.parent = self
        if self.is_constructed:
            for child in change.added:
                child.before_construction()
                child.construct()
        self._resync()
        if self.is_constructed:
            for child in change.added:
                child.after_construction()
                if self._phase is Phase.LIVE:
                    for node in child.walk():
                        node._phase = Phase.LIVE
        for child in change.removed:
            if child.is_constructed:
                child.deconstruct()
            child._parent = None

    def _check_resync(self) -> None:
        """Raise if the native children cannot be changed right now."""

    def _resync(self) -> None:
        """Bring the native children in line with the component children."""

    # --- Lifecycle ---

    def before_construction(self) -> None:
        self._phase = Phase.BEFORE_CONSTRUCTION
        for child in self._children:
            child.before_construction()

    def construct(self) -> Widget | None:
        self._phase = Phase.CONSTRUCTION
        widgets = [widget for widget in (child.construct() for child in self._children) if widget is not None]
        self._native = widgets[0] if len(widgets) == 1 else None
        return self._native

    def after_construction(self) -> None:
        self._phase = Phase.AFTER_CONSTRUCTION
        for child in self._children:
            child.after_construction()

    def deconstruct(self) -> None:
        """Tear down this subtree: run every disposer each node registered."""
        for child in self._children:
            child.deconstruct()
        if self._disposers:
            logger.debug("%s: running %d disposers", self, len(self._disposers))
        while self._disposers:
            self._disposers.pop()()
        self._native = None
        self._phase = Phase.DESTROYED

    def own(self, disposer: Callable[[], None]) -> None:
        """Register a teardown callback run by deconstruct()."""
        self._disposers.append(disposer)

    def disown(self, disposer: Callable[[], None]) -> None:
        """Forget a teardown callback that already ran."""
        self._disposers = [d for d in self._disposers if d is not disposer]

    # --- Rendering ---

    def stringify(self) -> str:
        return str(self)

    def stringify_hierarchy(self) -> str:
        lines: list[str] = []
        self._stringify_into(lines, "", "")
        return "\n".join(lines)

    def _stringify_into(self, lines: list[str], prefix: str, child_prefix: str) -> None:
        lines.append(prefix + self.stringify())
        children = list(self._children)
        for index, child in enumerate(children):
            last = index == len(children) - 1
            child._stringify_into(
                lines,
                child_prefix + ("└── " if last else "├── "),
                child_prefix + ("    " if last else "│   "),
            )

    def __str__(self) -> str:
        return self._name or type(self).__name__

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self} phase={self._phase.value}>"
