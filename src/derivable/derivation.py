"""Derivations: derived state with dynamic dependency tracking.

A Derivation wraps a pure function. When evaluated, it records which nodes
the function reads (and their version stamps) and caches the result. The
cache is valid for as long as every recorded dependency still carries the
recorded version stamp.

Derivations are lazy. They only recompute when read, and a single commit
recomputes each of them at most once no matter how many paths lead to it.
The version stamp of a derivation only changes when its recomputed value
differs from the cached one, so unchanged intermediate results cut off
recomputation further downstream.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from derivable._anchor import UNSET, Graph, default_graph, new_id
from derivable._errors import CyclicDerivationError
from derivable._tracking import Node, tracking
from derivable.derivable import Derivable

T = TypeVar("T")


class Derivation(Derivable[T], Node):
    """A lazily computed, cached value that auto-tracks its dependencies."""

    __slots__ = (
        "_compute",
        "_value",
        "_version",
        "_deps",
        "_edges",
        "_verified_at",
        "_computing",
    )

    def __init__(
        self,
        compute: Callable[[], T],
        *,
        equals: Callable[[object, object], bool] | None = None,
        graph: Graph | None = None,
    ) -> None:
        Node.__init__(self, graph or default_graph(), equals)
        self._compute = compute
        self._value = UNSET
        self._version = 0
        self._deps: dict[Node, int] = {}
        self._edges: set[Node] = set()  # nodes this derivation is a dependent of
        self._verified_at = -1
        self._computing = False

    @property
    def _node(self) -> Node:
        return self

    def _current(self) -> tuple[object, int]:
        self._refresh()
        return self._value, self._version

    def _refresh(self) -> None:
        graph = self._graph
        if self._verified_at == graph.epoch:
            return
        if self._computing:
            raise CyclicDerivationError(f"{self!r} depends on itself")
        if self._value is UNSET or self._stale():
            self._recompute()
        elif not graph.transactions and len(self._edges) != len(self._deps):
            # A branch abandoned inside a committed transaction.
            self._prune_edges()
        self._verified_at = graph.epoch

    def _stale(self) -> bool:
        # Recorded in read order, so a condition is re-checked before the
        # branch it guards and an abandoned branch is never refreshed.
        for dep, version in self._deps.items():
            if dep._current()[1] != version:
                return True
        return False

    def _recompute(self) -> None:
        """Re-evaluate the function, re-tracking dependencies."""
        self._computing = True
        try:
            with tracking(self._graph, self) as scope:
                value = self._compute()
        finally:
            self._computing = False

        reads = scope.reads
        for dep in reads.keys() - self._edges:
            dep._add_dependent(self)
            self._edges.add(dep)
        self._deps = reads
        # Inside a transaction the reads may reflect writes that are later
        # aborted or undone, so edges are only pruned against committed state.
        if not self._graph.transactions:
            self._prune_edges()

        if self._value is UNSET or not self._equals(self._value, value):
            self._value = value
            self._version = new_id()

    def _prune_edges(self) -> None:
        for dep in self._edges - self._deps.keys():
            dep._remove_dependent(self)
        self._edges = set(self._deps)

    def __repr__(self) -> str:
        name = getattr(self._compute, "__name__", "derivation")
        if self._value is UNSET or self._verified_at != self._graph.epoch:
            return f"Derivation({name}, stale)"
        return f"Derivation({name}, cached={self._value!r})"


def derivation(
    compute: Callable[[], T],
    *,
    equals: Callable[[object, object], bool] | None = None,
    graph: Graph | None = None,
) -> Derivation[T]:
    """Decorator/factory to create a Derivation from a function.

    Usage:
        counter = atom(0)

        @derivation
        def doubled():
            return counter.get() * 2

        doubled.get()  # 0
        counter.set(5)
        doubled.get()  # 10
    """
    return Derivation(compute, equals=equals, graph=graph)
