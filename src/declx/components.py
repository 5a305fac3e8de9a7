"""Declarative factories for common Textual widgets.

Usage:
    count = Cell(0)

    app = Session(
        VBox(
            Text(count, lambda value: f"Value: {value}"),
            Button("Increment", on_press=lambda: count.update(lambda v: v + 1)),
        )
    )

Each factory returns a component whose default property is set, so
bind(cell) works without naming the property.
"""

from __future__ import annotations

from typing import Any, Callable

from textual import containers, widgets

from declx.cell import Cell
from declx.component import Component
from declx.context import Binding, Consumer, Provider
from declx.root import Root
from declx.widget import Native, NativeContainer

__all__ = [
    "Binding",
    "Button",
    "Checkbox",
    "Consumer",
    "Container",
    "Grid",
    "HBox",
    "Input",
    "Label",
    "PasswordInput",
    "Placeholder",
    "ProgressBar",
    "Provider",
    "Root",
    "Scroll",
    "Static",
    "Switch",
    "Text",
    "TextArea",
    "VBox",
]


# ─── Containers ──────────────────────────────────────────────────────────────


def VBox(*components: Component | None, **kwargs: Any) -> NativeContainer:
    return NativeContainer(containers.Vertical, *components, **kwargs)


def HBox(*components: Component | None, **kwargs: Any) -> NativeContainer:
    return NativeContainer(containers.Horizontal, *components, **kwargs)


def Grid(*components: Component | None, **kwargs: Any) -> NativeContainer:
    return NativeContainer(containers.Grid, *components, **kwargs)


def Scroll(*components: Component | None, **kwargs: Any) -> NativeContainer:
    return NativeContainer(containers.VerticalScroll, *components, **kwargs)


def Container(*components: Component | None, **kwargs: Any) -> NativeContainer:
    return NativeContainer(containers.Container, *components, **kwargs)


def Placeholder() -> Component:
    """A node that contributes no widget."""
    return Component(name="Placeholder")


# ─── Text ────────────────────────────────────────────────────────────────────


def Label(text: str | Cell = "", **kwargs: Any) -> Native:
    component = Native(widgets.Label, **kwargs).set_default_property("text")
    return _initial(component, text)


def Static(text: str | Cell = "", **kwargs: Any) -> Native:
    component = Native(widgets.Static, **kwargs).set_default_property("text")
    return _initial(component, text)


def Text(cell: Cell, formatter: Callable[[Any], str] = str, **kwargs: Any) -> Native:
    """A label showing formatter(value) for every value of cell."""

    def _format(source: Cell, _shown: Cell) -> str:
        value = source.get()
        return "" if value is None else formatter(value)

    return Label(Cell().compute(cell, _format), **kwargs)


# ─── Controls ────────────────────────────────────────────────────────────────


def Button(label: str | Cell = "", on_press: Callable | None = None, **kwargs: Any) -> Native:
    component = Native(widgets.Button, **kwargs).set_default_property("label")
    _initial(component, label)
    if on_press is not None:
        component.on(widgets.Button.Pressed, on_press)
    return component


def Input(value: str | Cell | None = None, placeholder: str = "", **kwargs: Any) -> Native:
    component = Native(widgets.Input, placeholder=placeholder, **kwargs).set_default_property("value")
    return _initial(component, value)


def PasswordInput(value: str | Cell | None = None, placeholder: str = "", **kwargs: Any) -> Native:
    return Input(value, placeholder, password=True, **kwargs)


def TextArea(text: str | Cell = "", **kwargs: Any) -> Native:
    component = Native(widgets.TextArea, **kwargs).set_default_property("text")
    return _initial(component, text)


def Checkbox(label: str = "", value: bool | Cell = False, **kwargs: Any) -> Native:
    component = Native(widgets.Checkbox, label, **kwargs).set_default_property("value")
    return _initial(component, value)


def Switch(value: bool | Cell = False, **kwargs: Any) -> Native:
    component = Native(widgets.Switch, **kwargs).set_default_property("value")
    return _initial(component, value)


def ProgressBar(progress: float | Cell = 0.0, total: float | None = None, **kwargs: Any) -> Native:
    component = Native(widgets.ProgressBar, total=total, **kwargs).set_default_property("progress")
    return _initial(component, progress)


def _initial(component: Native, value: Any) -> Native:
    """Bind a cell to the default property, or set a plain starting value."""
    if isinstance(value, Cell):
        component.bind(value)
    elif value is not None and value != "":
        component.set(component.default_property, value)
    return component
