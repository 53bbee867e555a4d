"""Reactions: side effects triggered by state changes.

Unlike a Derivation (which is lazy and only evaluates on read), a started
Reaction is pulled eagerly by every commit that can affect its source.
``react(value)`` only fires when the pulled value differs from the last one
the reaction saw.

Lifecycle:
    CREATED --start()--> STARTED --stop()--> STOPPED --start()--> STARTED ...

start() arms the reaction without firing it; force() pulls and fires right
away if the value changed (and works while stopped). ``source.react(fn)`` is
shorthand for ``source.reaction(fn).start().force()``.

Hooks can be supplied as callbacks or by subclassing:

    class Logger(Reaction):
        def react(self, value):
            print(value)

        def on_start(self):
            print("listening")

    name.react(Logger())
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from derivable._anchor import UNSET, new_id
from derivable._errors import DuplicateAttachmentError, ReactionStateError

if TYPE_CHECKING:
    from derivable.derivable import Derivable

T = TypeVar("T")


class ReactionState(enum.Enum):
    CREATED = "created"
    STARTED = "started"
    STOPPED = "stopped"


class Reaction(Generic[T]):
    """A reactive side effect bound to exactly one source derivable."""

    __slots__ = (
        "_id",
        "_source",
        "_state",
        "_last_seen",
        "_react_fn",
        "_on_start_fn",
        "_on_stop_fn",
        "_equals",
        "__weakref__",
    )

    def __init__(
        self,
        react: Callable[[T], None] | None = None,
        *,
        on_start: Callable[[], None] | None = None,
        on_stop: Callable[[], None] | None = None,
        equals: Callable[[object, object], bool] | None = None,
    ) -> None:
        self._id = new_id()
        self._source: Derivable[T] | None = None
        self._state = ReactionState.CREATED
        self._last_seen = UNSET
        self._react_fn = react
        self._on_start_fn = on_start
        self._on_stop_fn = on_stop
        self._equals = equals

    @property
    def state(self) -> ReactionState:
        return self._state

    @property
    def started(self) -> bool:
        return self._state is ReactionState.STARTED

    @property
    def source(self) -> Derivable[T] | None:
        return self._source

    def _attach(self, source: Derivable[T]) -> None:
        if self._source is not None:
            raise DuplicateAttachmentError(f"{self!r} is already attached to {self._source!r}")
        self._source = source

    def _require_source(self) -> Derivable[T]:
        if self._source is None:
            raise ReactionStateError(f"{self!r} is not attached to a source")
        return self._source

    # --- Hooks ---

    def react(self, value: T) -> None:
        """Called with each new value of the source."""
        if self._react_fn is None:
            raise NotImplementedError("Reaction subclasses must implement react()")
        self._react_fn(value)

    def on_start(self) -> None:
        if self._on_start_fn is not None:
            self._on_start_fn()

    def on_stop(self) -> None:
        if self._on_stop_fn is not None:
            self._on_stop_fn()

    # --- Lifecycle ---

    def start(self) -> Reaction[T]:
        """Subscribe to the source chain. Does not fire react()."""
        node = self._require_source()._node
        if self._state is ReactionState.STARTED:
            return self
        # Evaluate once so the chain's dependency edges exist.
        value, _ = node._current()
        if self._state is ReactionState.STOPPED:
            # Changes missed while stopped are not replayed; later ones
            # compare against the state at restart.
            self._last_seen = value
        node._add_dependent(self)
        node._graph.reactions.add(self)
        self._state = ReactionState.STARTED
        self.on_start()
        return self

    def stop(self) -> Reaction[T]:
        """Unsubscribe. No further writes fire this reaction until restarted."""
        if self._state is not ReactionState.STARTED:
            return self
        node = self._source._node
        node._remove_dependent(self)
        node._graph.reactions.discard(self)
        self._state = ReactionState.STOPPED
        self.on_stop()
        return self

    def force(self) -> Reaction[T]:
        """Pull the source now and fire react() if the value changed."""
        self._require_source()
        self._pull()
        return self

    def _pull(self) -> None:
        source = self._source
        value = source.peek()
        equals = self._equals or source._node._equals
        if self._last_seen is UNSET or not equals(self._last_seen, value):
            self._last_seen = value
            self.react(value)

    def __repr__(self) -> str:
        fn = self._react_fn if self._react_fn is not None else type(self)
        name = getattr(fn, "__name__", type(self).__name__)
        return f"Reaction({name}, {self._state.value})"
