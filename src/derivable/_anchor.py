"""Data anchor: the Graph context that holds all engine-wide reactive state.

Atoms, derivations and reactions keep their own per-node state, but anything
shared across the whole dependency graph lives on a Graph: the logical clock,
the stack of tracking scopes, the stack of open transactions, the set of
started reactions and the propagation flag.

A default graph is created at import time. Nodes belonging to different
graphs must not read each other.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from derivable._tracking import TrackingScope
    from derivable.reaction import Reaction
    from derivable.transaction import Transaction


class _Unset:
    """Sentinel for a value that has never been computed or seen."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()

# Version stamps. itertools.count is thread-safe (C-level GIL atomic)
_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)


def default_equals(a: object, b: object) -> bool:
    return a is b or a == b


class Graph:
    """Process-wide dependency graph context.

    ``epoch`` advances whenever the effective state of any atom may have
    changed (a write, a transactional write, an abort or a root commit).
    Derivations remember the epoch at which they last verified their cache,
    so an unchanged epoch means no dependency check is needed at all.
    """

    def __init__(self) -> None:
        self.epoch = 0
        self.scopes: list[TrackingScope] = []
        self.transactions: list[Transaction] = []
        self.reactions: set[Reaction] = set()
        self.propagating = False

    def tick(self) -> int:
        """Advance the clock and return a fresh version stamp."""
        self.epoch += 1
        return new_id()

    def __repr__(self) -> str:
        return (
            f"Graph(epoch={self.epoch}, transactions={len(self.transactions)}, "
            f"reactions={len(self.reactions)})"
        )


_default_graph = Graph()


def default_graph() -> Graph:
    return _default_graph
