"""Lenses: settable views over part of an atom.

A lens is a get/set pair: ``get(parent_value)`` extracts the child value and
``set(parent_value, child_value)`` returns an updated parent value. Reading
a lensed atom is a cached derivation of the parent; writing one writes the
parent, through the parent's own validators. Lensed atoms are atoms in
their own right, so lenses stack to any depth.
"""

from __future__ import annotations

from typing import Callable, Generic, NamedTuple, TypeVar

from derivable._tracking import Node
from derivable.atom import Atom, Validator

P = TypeVar("P")
C = TypeVar("C")


class Lens(NamedTuple):
    get: Callable
    set: Callable


class Lensed(Atom[C], Generic[P, C]):
    """An Atom whose state is a view of its parent's."""

    __slots__ = ("_parent", "_lens", "_view")

    def __init__(self, parent: Atom[P], lens: Lens, *, validator: Validator | None = None) -> None:
        self._parent = parent
        self._lens = lens
        self._view = parent.derive(lens.get)
        self._validator = validator

    @property
    def _node(self) -> Node:
        return self._view

    @property
    def parent(self) -> Atom[P]:
        return self._parent

    def _write(self, value: C) -> None:
        parent = self._parent
        parent.set(self._lens.set(parent.peek(), value))

    def _with(self, validator: Validator) -> Lensed[P, C]:
        clone = Lensed.__new__(Lensed)
        clone._parent = self._parent
        clone._lens = self._lens
        clone._view = self._view
        clone._validator = validator
        return clone

    def __repr__(self) -> str:
        return f"Lensed({self.peek()!r})"
