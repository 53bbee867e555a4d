"""Atoms: mutable state that tracks its readers.

When an Atom is read inside a derivation, the dependency is registered
automatically. When an Atom is written outside a transaction, the write
commits at once and every reaction depending on it is propagated to before
``set`` returns. Inside a transaction, the write is held by the innermost
transaction frame until the outermost one commits.

The value itself lives in a cell. ``with_validator`` returns a new Atom
handle over the same cell, so both handles read and write one value while
enforcing different validators.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from derivable._anchor import Graph, default_graph
from derivable._errors import ValidationError
from derivable._tracking import Node, ensure_writable, propagate
from derivable.derivable import Derivable, unpack

if TYPE_CHECKING:
    from derivable.lens import Lensed

T = TypeVar("T")
C = TypeVar("C")

Validator = Callable[[Any], bool]


class _Cell(Node):
    """Committed storage for one atom."""

    __slots__ = ("value", "version")

    def __init__(self, value: object, graph: Graph, equals=None) -> None:
        super().__init__(graph, equals)
        self.value = value
        self.version = graph.tick()

    def _current(self) -> tuple[object, int]:
        # Innermost transactional write wins over outer ones and committed state.
        for txn in reversed(self._graph.transactions):
            entry = txn._pending.get(self)
            if entry is not None:
                return entry
        return self.value, self.version

    def _write(self, value: object) -> None:
        graph = self._graph
        current, _ = self._current()
        if self._equals(current, value):
            return
        if graph.transactions:
            graph.transactions[-1]._pending[self] = (value, graph.tick())
            return
        self.value = value
        self.version = graph.tick()
        propagate(graph, [self])


def _both(first: Validator | None, second: Validator) -> Validator:
    if first is None:
        return second
    return lambda value: bool(first(value)) and bool(second(value))


class Atom(Derivable[T]):
    """A single mutable value with automatic dependency tracking."""

    __slots__ = ("_cell", "_validator")

    def __init__(
        self,
        value: T,
        *,
        validator: Validator | None = None,
        equals: Callable[[object, object], bool] | None = None,
        graph: Graph | None = None,
    ) -> None:
        self._validator = validator
        self._check(value)
        self._cell = _Cell(value, graph or default_graph(), equals)

    @property
    def _node(self) -> Node:
        return self._cell

    def set(self, value: T) -> None:
        """Write a new value. Validates first; equal values are ignored."""
        ensure_writable(self._node._graph)
        self._check(value)
        self._write(value)

    def swap(self, fn: Callable[..., T], *args: Any) -> None:
        """Set to ``fn(current, *args)``; derivable args are unpacked."""
        self.set(fn(self.peek(), *(unpack(arg) for arg in args)))

    def _write(self, value: T) -> None:
        self._cell._write(value)

    def _check(self, value: T) -> None:
        if self._validator is not None and not self._validator(value):
            raise ValidationError(f"{value!r} failed validation")

    def validate(self) -> None:
        """Re-check the current value against the validator."""
        self._check(self.peek())

    def with_validator(self, predicate: Validator) -> Atom[T]:
        """A new handle on the same state, additionally requiring ``predicate``.

        The current value is not checked; call validate() for that.
        """
        return self._with(_both(self._validator, predicate))

    def _with(self, validator: Validator) -> Atom[T]:
        clone = Atom.__new__(Atom)
        clone._cell = self._cell
        clone._validator = validator
        return clone

    def lens(self, descriptor, setter: Callable | None = None) -> Lensed:
        """A settable view of part of this atom.

        Accepts a getter and a setter, a Lens, or any object or mapping with
        ``get`` and ``set``.

        Usage:
            user = atom({"name": "ada", "age": 36})
            name = user.lens(lambda u: u["name"], lambda u, n: {**u, "name": n})
            name.set("grace")
            user.get()  # {"name": "grace", "age": 36}
        """
        from derivable.lens import Lens, Lensed

        if setter is not None:
            descriptor = Lens(descriptor, setter)
        elif isinstance(descriptor, Mapping):
            descriptor = Lens(descriptor["get"], descriptor["set"])
        return Lensed(self, descriptor)

    def __repr__(self) -> str:
        return f"Atom({self.peek()!r})"


def atom(
    value: T,
    *,
    validator: Validator | None = None,
    equals: Callable[[object, object], bool] | None = None,
    graph: Graph | None = None,
) -> Atom[T]:
    """Create an Atom holding ``value``.

    Usage:
        counter = atom(0)
        counter.set(1)
        counter.swap(lambda n: n + 1)
        counter.get()  # 2
    """
    return Atom(value, validator=validator, equals=equals, graph=graph)
