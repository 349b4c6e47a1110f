"""Lazy, memoised dependency graph with generation counters.

A :class:`Leaf` holds a mutable value. A :class:`Derived` node computes its
value from the values of the nodes it was declared with, and only from
them: the compute function receives those values as positional
arguments.

Every node carries a generation. Writing a different value to a leaf bumps
its generation. Reading a derived node pulls its dependencies first, then
recomputes only if one of their generations differs from the ones seen at
the last computation. Nothing is recomputed on write, so a batch of writes
costs one recomputation at the next read.

If the compute function raises, the exception reaches the reader and the
node keeps its last good value; the next read tries again.

Each derived node refreshes under its own lock, so concurrent readers of a
stale node wait for one recomputation instead of repeating it. Locks are
taken from dependents down to dependencies, never the other way.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, TypeVar

LOG = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET = object()


class Node(Generic[T]):
    name: str

    @property
    def generation(self) -> int:
        raise NotImplementedError

    def refresh(self) -> int:
        """Bring the node up to date and return its generation."""
        raise NotImplementedError

    def get(self) -> T:
        raise NotImplementedError


class Leaf(Node[T]):
    def __init__(self, value: T, name: str = "leaf") -> None:
        self.name = name
        self._value = value
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def refresh(self) -> int:
        return self._generation

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> bool:
        """Store ``value``; return True if it differed from the current one."""
        if value is self._value or value == self._value:
            return False
        self._value = value
        self._generation += 1
        return True

    def __repr__(self) -> str:
        return f"Leaf({self.name}={self._value!r}, gen={self._generation})"


class Derived(Node[T]):
    def __init__(self, fn: Callable[..., T], *deps: Node[Any], name: str = "derived") -> None:
        if not deps:
            raise ValueError(f"derived node {name!r} needs at least one dependency")
        self.name = name
        self._fn = fn
        self._deps = deps
        self._seen: tuple[int, ...] | None = None
        self._value: Any = _UNSET
        self._generation = 0
        self.computations = 0
        self._lock = threading.RLock()

    @property
    def dependencies(self) -> tuple[Node[Any], ...]:
        return self._deps

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_stale(self) -> bool:
        """True if a read would recompute. Does not refresh dependencies."""
        return self._seen != tuple(d.generation for d in self._deps)

    def refresh(self) -> int:
        with self._lock:
            seen = tuple(d.refresh() for d in self._deps)
            if seen != self._seen:
                value = self._fn(*(d.get() for d in self._deps))
                self.computations += 1
                LOG.debug("recomputed %s (computation #%d)", self.name, self.computations)
                self._value = value
                self._seen = seen
                self._generation += 1
            return self._generation

    def get(self) -> T:
        with self._lock:
            self.refresh()
            return self._value

    def last_value(self) -> T | None:
        """Last successfully computed value, without refreshing."""
        return None if self._value is _UNSET else self._value

    def __repr__(self) -> str:
        return f"Derived({self.name}, gen={self._generation})"


__all__ = ["Derived", "Leaf", "Node"]
