"""Reactive cells — single-slot values that push to their subscribers.

A Cell holds one current value and an optional fallback. Subscribing replays
the present value immediately, so a subscriber never misses the value that
was current at subscribe time. set() notifies every subscriber synchronously,
in subscription order, before returning. There is no batching and no
deduplication: setting an equal value notifies again.

compute() derives a cell from another one. The edge is one-way and
push-based; wiring an edge that closes a cycle raises CyclicBindingError.

Thread safety: call set_scheduler() once from the UI thread. After that,
any .set() from a background thread is marshaled onto it. UI-thread
.set() remains synchronous.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from declx._tracking import count_parameters, propagating
from declx.errors import CyclicBindingError

if TYPE_CHECKING:
    from declx.testing import BindingAssertion

T = TypeVar("T")

Subscriber = Callable[[Any], None]
Unsubscribe = Callable[[], None]

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler) -> None:
    """Set the global thread scheduler for cross-thread Cell mutations.

    Call from the UI thread:
        declx.set_scheduler(app.call_from_thread)

    After this, any Cell.set() from a background thread is marshaled.
    Pass None to go back to direct, unmarshaled sets.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


class Cell(Generic[T]):
    """A single reactive value with a fallback and ordered subscribers."""

    __slots__ = ("_value", "_fallback", "_subscribers", "_dependencies", "_edges", "__weakref__")

    def __init__(self, value: T | None = None) -> None:
        self._value = value
        self._fallback: T | None = None
        self._subscribers: list[Subscriber] = []
        self._dependencies: list[Cell] = []
        self._edges: list[tuple[Cell, Subscriber]] = []

    def get(self) -> T | None:
        """The current value, or the fallback while no value is set."""
        return self._fallback if self._value is None else self._value

    def get_or(self, default: T) -> T:
        """The current value, or default while no value is set."""
        return default if self._value is None else self._value

    @property
    def fallback(self) -> T | None:
        return self._fallback

    def has_fallback(self) -> bool:
        return self._fallback is not None

    def or_else(self, default: T | Callable[[], T]) -> Cell[T]:
        """Set the fallback. A callable default is called once to produce it."""
        self._fallback = default() if callable(default) else default
        return self

    def set(self, value: T | None) -> None:
        """Write a new value. Auto-marshals from background threads."""
        if _scheduler is not None and threading.current_thread() != _scheduler_thread:
            _scheduler(lambda v=value: self._set_direct(v))
        else:
            self._set_direct(value)

    def _set_direct(self, value: T | None) -> None:
        with propagating(self):
            self._value = value
            for subscriber in list(self._subscribers):
                subscriber(value)

    def update(self, fn: Callable[[T | None], T | None]) -> None:
        """Replace the value with fn(current value)."""
        self.set(fn(self.get()))

    def subscribe(self, fn: Subscriber) -> Unsubscribe:
        """Register fn and call it with the present value right away.

        Returns a function that removes the subscription again.
        """
        self._subscribers.append(fn)
        fn(self.get())

        def _unsubscribe() -> None:
            self.unsubscribe(fn)

        return _unsubscribe

    def unsubscribe(self, fn: Subscriber) -> None:
        try:
            self._subscribers.remove(fn)
        except ValueError:
            pass  # never subscribed, or already removed

    @property
    def subscribers(self) -> tuple[Subscriber, ...]:
        return tuple(self._subscribers)

    def compute(self, dependency: Cell, fn: Callable[..., T]) -> Cell[T]:
        """Recompute this cell from fn whenever dependency changes.

        fn may take (dependency, cell), (cell) or no arguments.
        """
        if dependency is self or dependency.depends_on(self):
            raise CyclicBindingError(f"{self!r} cannot be computed from {dependency!r}: cyclic binding.")
        arity = count_parameters(fn)
        if arity >= 2:
            recompute = lambda _value: self.set(fn(dependency, self))  # noqa: E731
        elif arity == 1:
            recompute = lambda _value: self.set(fn(self))  # noqa: E731
        else:
            recompute = lambda _value: self.set(fn())  # noqa: E731
        self._dependencies.append(dependency)
        self._edges.append((dependency, recompute))
        dependency.subscribe(recompute)
        return self

    def detach(self, dependency: Cell) -> None:
        """Drop every compute() edge from dependency into this cell."""
        for upstream, recompute in list(self._edges):
            if upstream is dependency:
                upstream.unsubscribe(recompute)
                self._edges.remove((upstream, recompute))
        self._dependencies = [cell for cell in self._dependencies if cell is not dependency]

    def depends_on(self, other: Cell) -> bool:
        """Whether other is upstream of this cell through compute() edges."""
        seen: set[int] = set()
        stack = list(self._dependencies)
        while stack:
            cell = stack.pop()
            if cell is other:
                return True
            if id(cell) in seen:
                continue
            seen.add(id(cell))
            stack.extend(cell._dependencies)
        return False

    def assertion(self) -> BindingAssertion:
        """Start recording this cell's transitions for verification."""
        from declx.testing import BindingAssertion

        return BindingAssertion(self)

    def __repr__(self) -> str:
        return f"Cell({self.get()!r})"


def computed(dependency: Cell, fn: Callable[..., T]) -> Cell[T]:
    """Factory: a new cell kept up to date from dependency.

    Usage:
        count = Cell(1)
        label = computed(count, lambda count, _: f"Value: {count.get()}")
        label.get()  # "Value: 1"
        count.set(2)
        label.get()  # "Value: 2"
    """
    return Cell().compute(dependency, fn)
