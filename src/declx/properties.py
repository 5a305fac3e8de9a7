"""Property resolution — symbolic property names to native widget accessors.

A component refers to widget properties by name ("value", "disabled",
"text"). The registry turns a (widget class, name) pair into an Accessor:
a getter, an optional setter, and an optional watcher.

Resolution order:
    1. explicit registrations, looked up along the widget class MRO
    2. Textual reactive descriptors (reactive/var) found on the class
    3. plain Python properties (settable when they define a setter)

Results, including misses, are cached per class.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, NamedTuple

from textual.reactive import Reactive
from textual.widget import Widget
from textual.widgets import Static

from declx.errors import BindError

logger = logging.getLogger(__name__)

Getter = Callable[[Widget], Any]
Setter = Callable[[Widget, Any], None]
Watcher = Callable[[Widget, Callable[[Any, Any], None]], None]


class Accessor(NamedTuple):
    """How to read, write and observe one property of a widget class."""

    name: str
    getter: Getter
    setter: Setter | None = None
    watcher: Watcher | None = None

    @property
    def writable(self) -> bool:
        return self.setter is not None

    @property
    def observable(self) -> bool:
        return self.watcher is not None


def normalize(name: str) -> str:
    return name.strip().replace("-", "_")


def _reactive_accessor(name: str) -> Accessor:
    def _get(widget: Widget) -> Any:
        return getattr(widget, name)

    def _set(widget: Widget, value: Any) -> None:
        setattr(widget, name, value)

    def _watch(widget: Widget, callback: Callable[[Any, Any], None]) -> None:
        # Reading initializes the reactive; Textual calls every watcher already
        # registered at that point with (default, default).
        getattr(widget, name)
        widget.watch(widget, name, callback, init=False)

    return Accessor(name, _get, _set, _watch)


def _property_accessor(name: str, prop: property) -> Accessor:
    def _get(widget: Widget) -> Any:
        return getattr(widget, name)

    def _set(widget: Widget, value: Any) -> None:
        setattr(widget, name, value)

    return Accessor(name, _get, _set if prop.fset is not None else None)


class PropertyRegistry:
    """Maps (widget class, property name) to an Accessor."""

    def __init__(self) -> None:
        self._explicit: dict[tuple[type, str], Accessor] = {}
        self._cache: dict[type, dict[str, Accessor | None]] = {}

    def register(
        self,
        widget_type: type[Widget],
        name: str,
        getter: Getter,
        setter: Setter | None = None,
        watcher: Watcher | None = None,
    ) -> Accessor:
        """Declare an accessor explicitly. Applies to subclasses too."""
        name = normalize(name)
        accessor = Accessor(name, getter, setter, watcher)
        self._explicit[(widget_type, name)] = accessor
        self._cache.clear()
        return accessor

    def lookup(self, widget_type: type, name: str) -> Accessor | None:
        """The accessor for name on widget_type, or None."""
        name = normalize(name)
        per_class = self._cache.setdefault(widget_type, {})
        if name not in per_class:
            per_class[name] = self._find(widget_type, name)
        return per_class[name]

    def resolve(self, widget_type: type, name: str) -> Accessor:
        """Like lookup(), but a missing property raises BindError."""
        accessor = self.lookup(widget_type, name)
        if accessor is None:
            raise BindError(f"Property {normalize(name)} does not exist on {widget_type.__name__}.")
        return accessor

    def _find(self, widget_type: type, name: str) -> Accessor | None:
        for klass in widget_type.__mro__:
            explicit = self._explicit.get((klass, name))
            if explicit is not None:
                return explicit
        for klass in widget_type.__mro__:
            attribute = klass.__dict__.get(name)
            if isinstance(attribute, Reactive):
                return _reactive_accessor(name)
            if isinstance(attribute, property):
                return _property_accessor(name, attribute)
        logger.debug("No property %s on %s", name, widget_type.__name__)
        return None

    def names(self, widget_type: type) -> list[str]:
        """Every property name resolvable on widget_type, sorted."""
        found = {name for (klass, name) in self._explicit if issubclass(widget_type, klass)}
        for klass in widget_type.__mro__:
            for name, attribute in vars(klass).items():
                if name.startswith("_"):
                    continue
                if isinstance(attribute, (Reactive, property)):
                    found.add(name)
        return sorted(found)


def _static_text(widget: Static) -> str:
    content = getattr(widget, "content", None)
    if content is None:
        content = getattr(widget, "renderable", "")
    return str(content)


def _set_static_text(widget: Static, value: Any) -> None:
    widget.update("" if value is None else str(value))


registry = PropertyRegistry()
registry.register(Static, "text", _static_text, _set_static_text)
