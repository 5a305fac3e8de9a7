"""Reactive list — an ordered collection that announces its mutations.

Components keep their children in a ReactiveList. Every mutation notifies
subscribers with a ListChange naming what was added and what was removed,
which is what lets a container resynchronize its native children.

Unlike Cell there is no replay on subscribe: a change is an event, not a
value.
"""

from __future__ import annotations

from typing import Callable, Generic, Iterable, Iterator, NamedTuple, TypeVar

T = TypeVar("T")


class ListChange(NamedTuple):
    added: tuple
    removed: tuple


class ReactiveList(Generic[T]):
    """A list that notifies subscribers after every mutation."""

    __slots__ = ("_items", "_subscribers")

    def __init__(self, items: Iterable[T] | None = None) -> None:
        self._items: list[T] = list(items) if items else []
        self._subscribers: list[Callable[[ListChange], None]] = []

    def subscribe(self, fn: Callable[[ListChange], None]) -> Callable[[], None]:
        """Register fn for future changes. Returns a function that removes it."""
        self._subscribers.append(fn)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(fn)
            except ValueError:
                pass  # already removed

        return _unsubscribe

    def _notify(self, added: Iterable[T] = (), removed: Iterable[T] = ()) -> None:
        change = ListChange(tuple(added), tuple(removed))
        for fn in list(self._subscribers):
            fn(change)

    # --- Read operations ---

    def __getitem__(self, index: int) -> T:
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __contains__(self, item: object) -> bool:
        return any(existing is item for existing in self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def index(self, item: T) -> int:
        for position, existing in enumerate(self._items):
            if existing is item:
                return position
        raise ValueError(f"{item!r} is not in list")

    # --- Write operations (notify) ---

    def append(self, item: T) -> None:
        self._items.append(item)
        self._notify(added=(item,))

    def extend(self, items: Iterable[T]) -> None:
        items = list(items)
        self._items.extend(items)
        self._notify(added=items)

    def insert(self, index: int, item: T) -> None:
        self._items.insert(index, item)
        self._notify(added=(item,))

    def remove(self, item: T) -> None:
        del self._items[self.index(item)]
        self._notify(removed=(item,))

    def pop(self, index: int = -1) -> T:
        item = self._items.pop(index)
        self._notify(removed=(item,))
        return item

    def clear(self) -> None:
        removed, self._items = self._items, []
        self._notify(removed=removed)

    def replace(self, items: Iterable[T]) -> None:
        """Swap in a whole new sequence, reporting only what really changed."""
        old, self._items = self._items, list(items)
        added = [item for item in self._items if not any(item is o for o in old)]
        removed = [item for item in old if not any(item is n for n in self._items)]
        self._notify(added=added, removed=removed)

    def __repr__(self) -> str:
        return f"ReactiveList({self._items!r})"
