"""Transactions: nestable, abortable batches of atom writes.

Writes made inside a transaction are held by its frame. Reads inside the
transaction see them (innermost frame first) and no reaction runs until the
outermost frame closes. When a nested frame commits, its writes merge into its
parent; when the outermost frame commits, all writes become committed
state at once and a single propagation pass runs for every atom that
changed. Reactions therefore never see half of a batch.

Aborting discards only the aborting frame's writes, including whatever
nested frames merged into it, and unwinds straight out of it. Any other
exception escaping a frame aborts it too and keeps propagating.
"""

from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, NoReturn, ParamSpec, TypeVar

from derivable._anchor import Graph, default_graph
from derivable._errors import InvalidTransactionStateError
from derivable._tracking import propagate

P = ParamSpec("P")
R = TypeVar("R")

logger = logging.getLogger("derivable.transaction")


class _Abort(BaseException):
    """Unwinds out of the frame that raised it.

    A BaseException so that ``except Exception`` in user code cannot swallow it.
    """

    def __init__(self, transaction: Transaction) -> None:
        super().__init__()
        self.transaction = transaction


class Transaction:
    """One frame of the transaction stack."""

    __slots__ = ("_graph", "_parent", "_pending", "_closed")

    def __init__(self, graph: Graph) -> None:
        self._graph = graph
        self._parent: Transaction | None = None
        self._pending: dict[Any, tuple[object, int]] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def abort(self) -> NoReturn:
        """Discard this frame's writes and unwind out of it."""
        if self._closed or self not in self._graph.transactions:
            raise InvalidTransactionStateError("abort() called outside its open transaction")
        raise _Abort(self)

    def _begin(self) -> None:
        graph = self._graph
        self._parent = graph.transactions[-1] if graph.transactions else None
        graph.transactions.append(self)

    def _close(self) -> None:
        transactions = self._graph.transactions
        if not transactions or transactions[-1] is not self:
            raise InvalidTransactionStateError("transaction frames closed out of order")
        transactions.pop()
        self._closed = True

    def _rollback(self) -> None:
        self._close()
        if self._pending:
            self._pending.clear()
            # Reads may have cached aborted values; force re-verification.
            self._graph.epoch += 1
        logger.debug("transaction aborted (depth %d)", len(self._graph.transactions))

    def _commit(self) -> None:
        self._close()
        graph = self._graph
        if self._parent is not None:
            self._parent._pending.update(self._pending)
            return
        if not self._pending:
            return

        changed = []
        for cell, (value, version) in self._pending.items():
            if cell._equals(cell.value, value):
                continue
            cell.value = value
            cell.version = version
            changed.append(cell)
        graph.epoch += 1
        logger.debug(
            "transaction committed: %d write(s), %d changed", len(self._pending), len(changed)
        )
        if changed:
            propagate(graph, changed)


@contextmanager
def transaction(graph: Graph | None = None) -> Iterator[Transaction]:
    """Context manager for batching writes.

    Usage:
        with transaction() as txn:
            counter_a.set(1)
            counter_b.set(2)
            if counter_a.get() > limit:
                txn.abort()  # neither write happens
        # reactions fire here, after both are set
    """
    txn = Transaction(graph or default_graph())
    txn._begin()
    try:
        yield txn
    except _Abort as exc:
        txn._rollback()
        if exc.transaction is not txn:
            raise
        return
    except BaseException:
        txn._rollback()
        raise
    txn._commit()


def transact(fn: Callable[[Callable[[], NoReturn]], R], graph: Graph | None = None) -> R | None:
    """Run ``fn(abort)`` inside a transaction.

    Returns fn's result, or None if it called ``abort()``.

    Usage:
        a = atom("a")

        def body(abort):
            a.set("b")
            abort()

        transact(body)
        a.get()  # "a"
    """
    with transaction(graph) as txn:
        return fn(txn.abort)
    return None


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: run every call of fn inside its own transaction.

    Reactions only fire after fn returns, not during.

    Usage:
        counter_a = atom(0)
        counter_b = atom(0)

        @action
        def swap_counters():
            a, b = counter_a.get(), counter_b.get()
            counter_a.set(b)
            counter_b.set(a)
            # reactions see both changes at once, not one at a time
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with transaction():
            return fn(*args, **kwargs)

    return wrapper


def in_transaction(graph: Graph | None = None) -> bool:
    return bool((graph or default_graph()).transactions)
