"""Dependency tracking engine: the heart of derivable.

Every derivation computes inside an explicit TrackingScope pushed on its
Graph. Any node read while a scope is active is recorded into that scope
together with the node's version stamp, building the dependency record
automatically.

Propagation: a committed write walks forward through the dependents graph,
collects the reactions it can reach and pulls each of them once, ordered by
their distance from the written atoms. Derivations are never recomputed by
the walk itself; they stay lazy and recompute (at most once per commit) when
a reaction pulls through them.
"""

from __future__ import annotations

import logging
import weakref
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterable, Iterator

from derivable._anchor import Graph, default_equals
from derivable._errors import ReactionError, ReentrantWriteError

if TYPE_CHECKING:
    from derivable.reaction import Reaction

logger = logging.getLogger("derivable.propagation")


class Node:
    """A readable vertex of the dependency graph.

    Dependents are held weakly: a derivation nobody references any more
    drops out of the graph on its own. Started reactions are kept alive by
    their Graph.
    """

    __slots__ = ("_graph", "_equals", "_dependents", "__weakref__")

    def __init__(self, graph: Graph, equals: Callable[[object, object], bool] | None = None) -> None:
        self._graph = graph
        self._equals = equals or default_equals
        self._dependents: weakref.WeakSet = weakref.WeakSet()

    def _current(self) -> tuple[object, int]:
        """Bring the node up to date and return ``(value, version)``."""
        raise NotImplementedError

    def _add_dependent(self, dependent) -> None:
        self._dependents.add(dependent)

    def _remove_dependent(self, dependent) -> None:
        self._dependents.discard(dependent)


class TrackingScope:
    """Records every node read while one derivation computes."""

    __slots__ = ("owner", "reads")

    def __init__(self, owner: Node) -> None:
        self.owner = owner
        self.reads: dict[Node, int] = {}


@contextmanager
def tracking(graph: Graph, owner: Node) -> Iterator[TrackingScope]:
    """Push a fresh tracking scope for ``owner`` for the duration of the block."""
    scope = TrackingScope(owner)
    graph.scopes.append(scope)
    try:
        yield scope
    finally:
        graph.scopes.pop()


def record(graph: Graph, node: Node, version: int) -> None:
    """Register a read of ``node`` with the innermost scope, if any."""
    if graph.scopes:
        graph.scopes[-1].reads[node] = version


def ensure_writable(graph: Graph) -> None:
    if graph.scopes:
        raise ReentrantWriteError(
            "atoms cannot be written while a derivation is computing"
        )
    if graph.propagating:
        raise ReentrantWriteError(
            "atoms cannot be written while reactions are being propagated"
        )


def _affected_reactions(nodes: Iterable[Node]) -> list[Reaction]:
    seen: set = set()
    found: list[Reaction] = []
    stack = list(nodes)
    while stack:
        node = stack.pop()
        for dependent in list(node._dependents):
            if dependent in seen:
                continue
            seen.add(dependent)
            if isinstance(dependent, Node):
                stack.append(dependent)
            else:
                found.append(dependent)
    return found


def _height(node: Node, heights: dict[Node, int]) -> int:
    """Longest recorded path from ``node`` down to an atom."""
    height = heights.get(node)
    if height is None:
        deps = getattr(node, "_deps", None)
        if deps is None:
            height = 0  # atom cell
        else:
            height = 1 + max((_height(dep, heights) for dep in deps), default=0)
        heights[node] = height
    return height


def propagate(graph: Graph, nodes: Iterable[Node]) -> None:
    """Run reactions affected by a commit that changed ``nodes``.

    Must be called once per committed write or root transaction. Reactions
    that raise do not stop the pass; once it completes, their errors are
    raised together as a ReactionError.
    """
    reactions = _affected_reactions(nodes)
    if not reactions:
        return

    heights: dict[Node, int] = {}
    reactions.sort(key=lambda r: (_height(r._source._node, heights), r._id))
    logger.debug("propagating to %d reaction(s)", len(reactions))

    errors: list[Exception] = []
    graph.propagating = True
    try:
        for reaction in reactions:
            # An earlier reaction in this pass may have stopped this one.
            if not reaction.started:
                continue
            try:
                reaction._pull()
            except Exception as exc:
                logger.exception("Reaction %r failed during propagation", reaction)
                errors.append(exc)
    finally:
        graph.propagating = False

    if errors:
        raise ReactionError(errors) from errors[0]
