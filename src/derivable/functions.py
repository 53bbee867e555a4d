"""Free functions mirroring the Derivable and Atom methods.

These exist for callers that prefer a functional style, and for the few
operations (``struct``, ``lift``) that work over many derivables at once.
"""

from __future__ import annotations

import functools
from typing import Any, Callable, TypeVar

from derivable._anchor import Graph, default_graph
from derivable.atom import Atom
from derivable.derivable import Derivable, unpack
from derivable.derivation import Derivation
from derivable.lens import Lensed
from derivable.reaction import Reaction

T = TypeVar("T")
U = TypeVar("U")


def _graph_of(values, graph: Graph | None) -> Graph:
    if graph is not None:
        return graph
    for value in values:
        if isinstance(value, Derivable):
            return value._node._graph
    return default_graph()


def derive(source: Derivable[T], fn: Callable[..., U], *args: Any, equals=None) -> Derivation[U]:
    return source.derive(fn, *args, equals=equals)


def swap(target: Atom[T], fn: Callable[..., T], *args: Any) -> None:
    target.swap(fn, *args)


def lens(parent: Atom, descriptor, setter: Callable | None = None) -> Lensed:
    return parent.lens(descriptor, setter)


def _unpack_deep(value: Any) -> Any:
    if isinstance(value, Derivable):
        return value.get()
    if isinstance(value, dict):
        return {key: _unpack_deep(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_unpack_deep(item) for item in value]
    if isinstance(value, tuple):
        return tuple(_unpack_deep(item) for item in value)
    return value


def _leaves(value: Any):
    if isinstance(value, dict):
        for item in value.values():
            yield from _leaves(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _leaves(item)
    else:
        yield value


def struct(value: dict | list | tuple, *, graph: Graph | None = None) -> Derivation:
    """One derivation of a nested dict/list/tuple with every derivable unpacked.

    Usage:
        x, y = atom(1), atom(2)
        point = struct({"x": x, "y": y, "tags": ["p", x]})
        point.get()  # {"x": 1, "y": 2, "tags": ["p", 1]}
    """
    if not isinstance(value, (dict, list, tuple)):
        raise TypeError(f"struct() expects a dict, list or tuple, got {type(value).__name__}")
    return Derivation(lambda: _unpack_deep(value), graph=_graph_of(_leaves(value), graph))


def lift(fn: Callable[..., U]) -> Callable[..., Derivation[U]]:
    """Turn a plain function into one that takes derivables and returns a derivation.

    Usage:
        add = lift(operator.add)
        total = add(atom(1), 2)
        total.get()  # 3
    """

    @functools.wraps(fn)
    def lifted(*args: Any, **kwargs: Any) -> Derivation[U]:
        def compute():
            return fn(
                *(unpack(arg) for arg in args),
                **{key: unpack(arg) for key, arg in kwargs.items()},
            )

        return Derivation(compute, graph=_graph_of([*args, *kwargs.values()], None))

    return lifted


def is_derivable(value: Any) -> bool:
    return isinstance(value, Derivable)


def is_atom(value: Any) -> bool:
    return isinstance(value, Atom)


def is_derivation(value: Any) -> bool:
    return isinstance(value, Derivation)


def is_lensed(value: Any) -> bool:
    return isinstance(value, Lensed)


def is_reaction(value: Any) -> bool:
    return isinstance(value, Reaction)
