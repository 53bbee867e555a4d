"""Derivable: the read-side capability shared by atoms and derivations.

Anything that can be read with dependency tracking is a Derivable. The
combinators defined here (``and_``, ``or_``, ``then``, ``switch``...) all
build new derivations, and the short-circuiting ones never read an operand
whose value cannot affect the result. Because dependencies are re-tracked on
every evaluation, an operand that stops being read also stops being a
dependency.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from derivable._tracking import Node, record

if TYPE_CHECKING:
    from derivable.derivation import Derivation
    from derivable.reaction import Reaction

T = TypeVar("T")
U = TypeVar("U")


def unpack(value: Any) -> Any:
    """Return ``value.get()`` for derivables, ``value`` itself otherwise."""
    if isinstance(value, Derivable):
        return value.get()
    return value


class Derivable(Generic[T]):
    """Common read-side behavior of Atom and Derivation."""

    __slots__ = ()

    @property
    def _node(self) -> Node:
        """The graph node that backs reads of this derivable."""
        raise NotImplementedError

    def get(self) -> T:
        """Read the current value. Inside a derivation, registers the dependency."""
        node = self._node
        value, version = node._current()
        record(node._graph, node, version)
        return value

    def peek(self) -> T:
        """Read the current value without registering a dependency."""
        return self._node._current()[0]

    def _derivation(self, compute: Callable[[], U], equals=None) -> Derivation[U]:
        from derivable.derivation import Derivation

        return Derivation(compute, equals=equals, graph=self._node._graph)

    def derive(self, fn: Callable[..., U], *args: Any, equals=None) -> Derivation[U]:
        """Derive ``fn(self.get(), *args)``; derivable args are unpacked.

        Usage:
            name = atom("world")
            greeting = name.derive(lambda n, p: f"{p}, {n}!", "hello")
            greeting.get()  # "hello, world!"
        """
        return self._derivation(
            lambda: fn(self.get(), *(unpack(arg) for arg in args)), equals
        )

    def reaction(self, reaction: Reaction[T] | Callable[[T], None]) -> Reaction[T]:
        """Attach a reaction (or a plain callback) to this derivable. Not started."""
        from derivable.reaction import Reaction

        if not isinstance(reaction, Reaction):
            reaction = Reaction(reaction)
        reaction._attach(self)
        return reaction

    def react(self, reaction: Reaction[T] | Callable[[T], None]) -> Reaction[T]:
        """Attach, start and force a reaction in one go."""
        return self.reaction(reaction).start().force()

    # --- Combinators ---

    def is_(self, other: Any) -> Derivation[bool]:
        equals = self._node._equals
        return self._derivation(lambda: equals(self.get(), unpack(other)))

    def and_(self, other: Any) -> Derivation:
        """``self and other``; ``other`` is only read when ``self`` is truthy."""
        return self._derivation(lambda: self.get() and unpack(other))

    def or_(self, other: Any) -> Derivation:
        """``self or other``; ``other`` is only read when ``self`` is falsy."""
        return self._derivation(lambda: self.get() or unpack(other))

    def not_(self) -> Derivation[bool]:
        return self._derivation(lambda: not self.get())

    def then(self, when_true: Any, when_false: Any) -> Derivation:
        """Pick ``when_true`` or ``when_false``; only the chosen one is read."""
        return self._derivation(
            lambda: unpack(when_true) if self.get() else unpack(when_false)
        )

    def switch(self, *args: Any) -> Derivation:
        """Match against ``case, value`` pairs with an optional trailing default.

        Cases are read in order until one matches; only the matching value is
        read. With no match and no default the result is None.

        Usage:
            mode = atom("dark")
            color = mode.switch("dark", "#000", "light", "#fff", "#888")
        """
        equals = self._node._equals

        def compute():
            value = self.get()
            for i in range(0, len(args) - 1, 2):
                if equals(value, unpack(args[i])):
                    return unpack(args[i + 1])
            if len(args) % 2:
                return unpack(args[-1])
            return None

        return self._derivation(compute)
