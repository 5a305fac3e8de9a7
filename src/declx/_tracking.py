"""Propagation tracking — the guard around synchronous notification.

Cell.set() runs its whole subscriber chain before returning, including any
compute() cascades it triggers. A feedback loop in that chain would recurse
until the interpreter gives up. The cells currently notifying are tracked in
a contextvar; a cell that keeps re-entering its own propagation is a cycle
and fails with CyclicBindingError instead. Long acyclic chains are not
limited: each cell in them appears once.

There is no batching: every set() notifies immediately.
"""

from __future__ import annotations

import contextvars
import inspect
from contextlib import contextmanager
from typing import Callable, Iterator

from declx.errors import CyclicBindingError

# Times one cell may re-enter its own propagation before the chain counts as cyclic.
MAX_REENTRY = 64

# The cells currently notifying on this context, outermost first.
_active: contextvars.ContextVar[tuple[object, ...]] = contextvars.ContextVar("propagating", default=())


@contextmanager
def propagating(source: object) -> Iterator[None]:
    """Enter one level of propagation on behalf of source."""
    active = _active.get()
    entries = sum(1 for cell in active if cell is source)
    if entries >= MAX_REENTRY:
        raise CyclicBindingError(
            f"Propagation from {source!r} re-entered itself {entries} times; "
            "the bindings form a cycle."
        )
    token = _active.set(active + (source,))
    try:
        yield
    finally:
        _active.reset(token)


def get_depth() -> int:
    """Current propagation depth. Useful for testing."""
    return len(_active.get())


def count_parameters(fn: Callable) -> int:
    """Number of positional parameters fn accepts (bound self excluded)."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return 1
    count = 0
    for parameter in signature.parameters.values():
        if parameter.kind == parameter.VAR_POSITIONAL:
            return count + 1
        if parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return count
