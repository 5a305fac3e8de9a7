"""Widget components — tree nodes that own one Textual widget.

The widget is created lazily: a component stores the widget class and its
constructor arguments, and instantiates them in construct(). Everything
configured during declaration (set(), bind(), on(), fluent()) is recorded
and applied to the widget once it exists, so declaration order never has to
care about construction order.

Properties are resolved against the widget *class* when they are named, so
a missing property fails at the bind()/set()/on() call, before anything is
subscribed.
"""

from __future__ import annotations

import logging
import weakref
from typing import Any, Callable, Iterable

from textual.message import Message
from textual.widget import Widget

from declx._tracking import count_parameters
from declx.cell import Cell
from declx.collection import ReactiveList
from declx.component import Component, Phase
from declx.errors import BindError, LifecycleError
from declx.properties import Accessor, PropertyRegistry, normalize, registry as default_registry

logger = logging.getLogger(__name__)


class WidgetComponent(Component):
    """Shared machinery of Native and NativeContainer."""

    def __init__(
        self,
        widget_type: type[Widget],
        *children: Component | None,
        name: str | None = None,
        registry: PropertyRegistry | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*children, name=name)
        self._widget_type = widget_type
        self._kwargs = kwargs
        self._registry = registry or default_registry
        self._default_property: str | None = None
        self._style: str | None = None
        self._settings: list[tuple[str, Any]] = []
        self._cells: dict[str, Cell] = {}
        self._pushes: dict[str, Callable[[], None]] = {}
        self._late: list[tuple[str, str, Any]] = []
        self._handlers: list[tuple[type[Message], Callable]] = []
        self._listeners: list[tuple[Accessor, Callable]] = []
        self._configurators: list[Callable[[Widget], None]] = []

    @property
    def widget_type(self) -> type[Widget]:
        return self._widget_type

    # --- Identity ---

    @property
    def id(self) -> str | None:
        if self._native is not None:
            return self._native.id
        return self._kwargs.get("id")

    @property
    def classes(self) -> frozenset[str]:
        if self._native is not None:
            return frozenset(self._native.classes)
        return frozenset((self._kwargs.get("classes") or "").split())

    @property
    def style(self) -> str | None:
        return self._style

    def add_class(self, *names: str) -> WidgetComponent:
        if self._native is not None:
            self._native.add_class(*names)
        else:
            self._kwargs["classes"] = " ".join(sorted(self.classes | set(names)))
        return self

    def remove_class(self, *names: str) -> WidgetComponent:
        if self._native is not None:
            self._native.remove_class(*names)
        else:
            self._kwargs["classes"] = " ".join(sorted(self.classes - set(names)))
        return self

    # --- Properties ---

    @property
    def default_property(self) -> str | None:
        return self._default_property

    def set_default_property(self, name: str) -> WidgetComponent:
        self._default_property = normalize(name)
        return self

    def _require_default(self) -> str:
        if self._default_property is None:
            raise BindError(f"{self} does not provide a default property.")
        return self._default_property

    def accessor(self, name: str) -> Accessor:
        return self._registry.resolve(self._widget_type, name)

    def set(self, name: str, value: Any) -> WidgetComponent:
        """Write a property now, or as soon as the widget exists."""
        name = normalize(name)
        if name == "id":
            if self._native is not None:
                self._native.id = value
            else:
                self._kwargs["id"] = value
            return self
        if name == "classes":
            names = value.split() if isinstance(value, str) else list(value)
            if self._native is not None:
                self._native.set_classes(names)
            else:
                self._kwargs["classes"] = " ".join(names)
            return self
        if name != "style":
            accessor = self.accessor(name)
            if not accessor.writable:
                raise BindError(f"Property {name} of {self._widget_type.__name__} is read-only.")
        if self._native is not None:
            self._apply(name, value)
        else:
            self._settings.append((name, value))
        return self

    def get(self, name: str) -> Any:
        """Read a property straight from the widget."""
        name = normalize(name)
        if name == "style":
            return self._style
        if self._native is None:
            raise LifecycleError(f"Cannot read {name} of '{self}': hierarchy has not been constructed yet.")
        if name == "id":
            return self._native.id
        if name == "classes":
            return frozenset(self._native.classes)
        return self.accessor(name).getter(self._native)

    def _apply(self, name: str, value: Any) -> None:
        if name == "style":
            self._style = value
            self._native.set_styles(value)
        else:
            self.accessor(name).setter(self._native, value)

    # --- Bindings ---

    def binding_for(self, name: str) -> Cell | None:
        """The cell bound to a property, if any."""
        return self._cells.get(normalize(name))

    @property
    def bindings(self) -> dict[str, Cell]:
        return dict(self._cells)

    def bind(self, name_or_target: str | Cell, target: str | Cell | None = None) -> WidgetComponent:
        """Bind a property to a cell, or to a context identifier.

        bind(cell) and bind("identifier") use the default property;
        bind("property", cell) and bind("property", "identifier") name it.
        """
        if target is None:
            name, target = self._require_default(), name_or_target
        else:
            name = normalize(name_or_target)
        accessor = self.accessor(name)
        if not accessor.writable:
            raise BindError(f"Property {name} of {self._widget_type.__name__} is read-only.")
        if isinstance(target, Cell):
            self._cells[name] = target
            if self._native is not None:
                self._wire(accessor, target)
        elif isinstance(target, str):
            self._late.append(("bind", name, target))
            if self._phase in (Phase.AFTER_CONSTRUCTION, Phase.LIVE):
                self._resolve_late(self._late[-1:])
        else:
            raise BindError(f"Cannot bind {name} of '{self}' to {target!r}.")
        return self

    def compute(
        self,
        name_or_dependency: str | Cell | ReactiveList,
        dependency: Cell | ReactiveList | Callable,
        fn: Callable | None = None,
    ) -> WidgetComponent:
        """Derive the cell bound to a property from another cell or a list.

        compute(dependency, fn) uses the default property. With a Cell, the
        property must be bound by the time the hierarchy finishes
        construction. With a ReactiveList, the property is bound to a new cell
        holding fn(items), recomputed on every change of the list.
        """
        if fn is None:
            name, dependency, fn = self._require_default(), name_or_dependency, dependency
        else:
            name = normalize(name_or_dependency)
        if isinstance(dependency, ReactiveList):
            self.bind(name, Cell(fn(dependency)))
            self._late.append(("collect", name, (dependency, fn)))
        else:
            self._late.append(("compute", name, (dependency, fn)))
        if self._phase in (Phase.AFTER_CONSTRUCTION, Phase.LIVE):
            self._resolve_late(self._late[-1:])
        return self

    def _wire(self, accessor: Accessor, cell: Cell) -> None:
        widget = self._native
        previous = self._pushes.pop(accessor.name, None)
        if previous is not None:
            previous()
            self.disown(previous)

        def _push(_value: Any) -> None:
            value = cell.get()
            if value is not None:
                accessor.setter(widget, value)

        unsubscribe = self._pushes[accessor.name] = cell.subscribe(_push)
        self.own(unsubscribe)
        if accessor.watcher is not None:

            def _pull(old: Any, new: Any) -> None:
                if self._native is not widget or self._cells.get(accessor.name) is not cell:
                    return
                if old != new and cell.get() != new:
                    cell.set(new)

            accessor.watcher(widget, _pull)

    def _resolve_late(self, entries: Iterable[tuple[str, str, Any]]) -> None:
        for kind, name, target in entries:
            if kind == "bind":
                cell = self.root.context.claim(target, Cell())
                self._cells[name] = cell
                self._wire(self.accessor(name), cell)
                logger.debug("%s: bound %s to context %r", self, name, target)
            elif kind == "collect":
                items, fn = target
                cell = self._cells[name]
                value = fn(items)
                if value != cell.get():
                    cell.set(value)
                self.own(items.subscribe(lambda _change, cell=cell, items=items, fn=fn: cell.set(fn(items))))
            else:
                dependency, fn = target
                cell = self._cells.get(name)
                if cell is None:
                    raise BindError(f"Cannot compute {name} of '{self}': property is not bound.")
                cell.compute(dependency, fn)
                self.own(lambda cell=cell, dependency=dependency: cell.detach(dependency))

    # --- Listeners ---

    def on(self, target: str | type[Message], handler: Callable) -> WidgetComponent:
        """Listen to a property change or to a message sent by the widget.

        Property listeners take (new) or (old, new). Message handlers take
        (), (message) or (message, component).
        """
        if isinstance(target, str):
            accessor = self.accessor(target)
            if not accessor.observable:
                raise BindError(f"Property {accessor.name} of {self._widget_type.__name__} cannot be observed.")
            self._listeners.append((accessor, handler))
            if self._native is not None:
                self._listen(accessor, handler)
        elif isinstance(target, type) and issubclass(target, Message):
            self._handlers.append((target, handler))
            if self._phase in (Phase.AFTER_CONSTRUCTION, Phase.LIVE):
                self._route()
        else:
            raise BindError(f"Cannot listen to {target!r} on '{self}'.")
        return self

    def _listen(self, accessor: Accessor, handler: Callable) -> None:
        widget = self._native
        two = count_parameters(handler) >= 2

        def _changed(old: Any, new: Any) -> None:
            if self._native is not widget or old == new:
                return
            if two:
                handler(old, new)
            else:
                handler(new)

        accessor.watcher(widget, _changed)

    def _route(self) -> None:
        root = self.root
        widget = self._native
        if root.route(widget, self):
            self.own(lambda: root.unroute(widget))

    def handle(self, message: Message) -> bool:
        """Run the handlers registered for message. Returns whether any ran."""
        handled = False
        for message_type, handler in list(self._handlers):
            if not isinstance(message, message_type):
                continue
            arity = count_parameters(handler)
            if arity >= 2:
                handler(message, self)
            elif arity == 1:
                handler(message)
            else:
                handler()
            handled = True
        return handled

    # --- Escape hatches ---

    def fluent(self, fn: Callable[[Widget], None]) -> WidgetComponent:
        """Call fn with the widget, now or as soon as it exists."""
        self._configurators.append(fn)
        if self._native is not None:
            fn(self._native)
        return self

    def configure(self, fn: Callable[[WidgetComponent], None]) -> WidgetComponent:
        """Call fn with this component right away."""
        fn(self)
        return self

    # --- Lifecycle ---

    def _instantiate(self, children: list[Widget]) -> Widget:
        raise NotImplementedError

    def construct(self) -> Widget:
        self._phase = Phase.CONSTRUCTION
        widgets = [widget for widget in (child.construct() for child in self._children) if widget is not None]
        widget = self._native = self._instantiate(widgets)
        for name, value in self._settings:
            self._apply(name, value)
        for name, cell in self._cells.items():
            self._wire(self.accessor(name), cell)
        for accessor, handler in self._listeners:
            self._listen(accessor, handler)
        for fn in self._configurators:
            fn(widget)
        return widget

    def after_construction(self) -> None:
        self._resolve_late(self._late)
        if self._handlers:
            self._route()
        super().after_construction()

    def deconstruct(self) -> None:
        super().deconstruct()
        self._pushes.clear()
        self._cells = {name: cell for name, cell in self._cells.items() if not self._is_context_cell(name)}

    def _is_context_cell(self, name: str) -> bool:
        return any(kind == "bind" and bound == name for kind, bound, _ in self._late)

    def __str__(self) -> str:
        if self._name:
            return self._name
        widget_id = self.id
        return self._widget_type.__name__ + (f"#{widget_id}" if widget_id else "")


class Native(WidgetComponent):
    """A leaf widget: widget_type(*args, **kwargs)."""

    accepts_children = False

    def __init__(
        self,
        widget_type: type[Widget],
        *args: Any,
        name: str | None = None,
        registry: PropertyRegistry | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(widget_type, name=name, registry=registry, **kwargs)
        self._args = args

    def _instantiate(self, children: list[Widget]) -> Widget:
        return self._widget_type(*self._args, **self._kwargs)


class NativeContainer(WidgetComponent):
    """A container widget: widget_type(*child_widgets, **kwargs)."""

    def __init__(self, widget_type: type[Widget], *children: Component | None, **kwargs: Any) -> None:
        super().__init__(widget_type, *children, **kwargs)
        # Widgets asked to leave; Textual detaches them asynchronously.
        self._removing: weakref.WeakSet[Widget] = weakref.WeakSet()

    def _instantiate(self, children: list[Widget]) -> Widget:
        return self._widget_type(*children, **self._kwargs)

    def _check_resync(self) -> None:
        if self._native is not None and not self._native.is_mounted:
            raise LifecycleError(f"Cannot change the children of '{self}' before its widget is mounted.")

    def _resync(self) -> None:
        container = self._native
        if container is None:
            return
        self._check_resync()
        desired = [child.native for child in self._children if child.native is not None]
        current = [widget for widget in container.children if widget not in self._removing]
        stale = [widget for widget in current if not any(widget is d for d in desired)]
        fresh = [widget for widget in desired if not any(widget is c for c in current)]
        for widget in stale:
            self._removing.add(widget)
            widget.remove()
        if fresh:
            container.mount(*fresh)
        kept = [widget for widget in current if not any(widget is s for s in stale)] + fresh
        if not _same_order(kept, desired):
            for previous, widget in zip(desired, desired[1:]):
                container.move_child(widget, after=previous)
        logger.debug("%s: resynced %d children (%d stale, %d fresh)", self, len(desired), len(stale), len(fresh))


def _same_order(left: list[Widget], right: list[Widget]) -> bool:
    return len(left) == len(right) and all(a is b for a, b in zip(left, right))
