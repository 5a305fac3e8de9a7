"""Root — the lifecycle driver at the top of every component tree.

The Root owns what the tree shares: the Context registry and the message
routes from widgets back to their components. launch() runs the three
construction phases in order, times each one, and refuses to run any phase
twice.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from declx.component import Component, Phase
from declx.context import Context
from declx.errors import ConstructionError, LifecycleError

if TYPE_CHECKING:
    from textual.message import Message
    from textual.widget import Widget

    from declx.widget import WidgetComponent

logger = logging.getLogger(__name__)


class Root(Component):
    """Top of a component tree. Holds exactly one child component."""

    accepts_children = False

    def __init__(self, component: Component) -> None:
        super().__init__(component)
        self._lifecycle: Phase | None = None
        self._measurements: dict[Phase, float] = {}
        self._context = Context()
        self._routes: dict[int, WidgetComponent] = {}

    def _check_adoptable(self, parent: Component) -> None:
        raise LifecycleError("A Root cannot have a parent component.")

    @property
    def root(self) -> Root:
        return self

    @property
    def context(self) -> Context:
        return self._context

    @property
    def component(self) -> Component:
        return self._children[0]

    @property
    def lifecycle(self) -> Phase:
        """The phase the lifecycle reached. Raises before it started."""
        if self._lifecycle is None:
            raise LifecycleError("Lifecycle has not yet started.")
        return self._lifecycle

    @property
    def measurements(self) -> dict[Phase, float]:
        """Seconds spent in each phase that has run."""
        return dict(self._measurements)

    def _enter(self, phase: Phase) -> float:
        if phase in self._measurements:
            raise LifecycleError(f"Phase {phase.value} has already been invoked.")
        self._lifecycle = phase
        return time.perf_counter()

    def _leave(self, phase: Phase, started: float) -> None:
        elapsed = self._measurements[phase] = time.perf_counter() - started
        logger.debug("%s took %.6fs", phase.value, elapsed)

    # --- Lifecycle ---

    def before_construction(self) -> None:
        started = self._enter(Phase.BEFORE_CONSTRUCTION)
        super().before_construction()
        self._leave(Phase.BEFORE_CONSTRUCTION, started)

    def construct(self) -> Widget | None:
        started = self._enter(Phase.CONSTRUCTION)
        widget = super().construct()
        self._leave(Phase.CONSTRUCTION, started)
        return widget

    def after_construction(self) -> None:
        started = self._enter(Phase.AFTER_CONSTRUCTION)
        super().after_construction()
        self._leave(Phase.AFTER_CONSTRUCTION, started)

    def deconstruct(self) -> None:
        started = self._enter(Phase.DESTROYED)
        super().deconstruct()
        self._leave(Phase.DESTROYED, started)
        self._routes.clear()

    def launch(self) -> Widget:
        """Run before_construction, construct and after_construction.

        Returns the native widget tree. A tree that constructs to nothing is
        fatal: ConstructionError.
        """
        self.before_construction()
        tree = self.construct()
        if tree is None:
            raise ConstructionError("Component hierarchy construction failed.")
        self.after_construction()
        return tree

    def mark_live(self) -> None:
        """The widget tree is mounted and reacting."""
        if self._lifecycle is not Phase.AFTER_CONSTRUCTION:
            raise LifecycleError(f"Cannot go live from {self.lifecycle.value}.")
        self._lifecycle = Phase.LIVE
        for component in self.walk():
            if component.is_constructed:
                component._phase = Phase.LIVE

    # --- Message routing ---

    def route(self, widget: Widget, component: WidgetComponent) -> bool:
        """Send messages controlled by widget to component. False if already routed."""
        if self._routes.get(id(widget)) is component:
            return False
        self._routes[id(widget)] = component
        return True

    def unroute(self, widget: Widget) -> None:
        self._routes.pop(id(widget), None)

    def dispatch(self, message: Message) -> bool:
        """Deliver message to the component owning its control widget."""
        control = getattr(message, "control", None)
        if control is None:
            return False
        component = self._routes.get(id(control))
        if component is None:
            return False
        return component.handle(message)

    # --- Rendering ---

    def __str__(self) -> str:
        text = type(self).__name__
        if self._measurements:
            timings = ", ".join(f"{phase.value}: {_format_duration(seconds)}" for phase, seconds in self._measurements.items())
            text += f" ({timings})"
        return text

    def stringify_hierarchy(self) -> str:
        if self._lifecycle is None:
            raise LifecycleError("Cannot stringify a hierarchy whose lifecycle has not started.")
        return super().stringify_hierarchy()


def _format_duration(seconds: float) -> str:
    if seconds >= 0.001:
        return f"{seconds * 1000:.0f}ms"
    return f"{seconds * 1_000_000_000:.0f}ns"
