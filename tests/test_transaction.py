"""Tests for transactions, transact() and the action decorator."""

import pytest

from derivable import (
    Graph,
    InvalidTransactionStateError,
    action,
    atom,
    in_transaction,
    transact,
    transaction,
)


class TestTransact:
    def test_temporary_values_with_abort(self):
        a = atom("a")

        def outer(abort):
            a.set("b")
            assert a.get() == "b"

            def inner(abort):
                a.set("c")
                assert a.get() == "c"
                abort()

            transact(inner)
            assert a.get() == "b"
            abort()

        transact(outer)
        assert a.get() == "a"

    def test_keeps_values_when_not_aborted(self):
        a = atom("a")

        def outer(abort):
            a.set("b")
            transact(lambda abort: a.set("c"))
            assert a.get() == "c"

        transact(outer)
        assert a.get() == "c"

    def test_inner_abort_keeps_committed_sibling(self):
        a = atom("a")
        b = atom(0)

        def outer(abort):
            transact(lambda abort: a.set("b"))

            def failing(abort):
                a.set("c")
                b.set(1)
                abort()

            transact(failing)
            assert a.get() == "b"
            assert b.get() == 0

        transact(outer)
        assert a.get() == "b"
        assert b.get() == 0

    def test_outer_abort_discards_committed_nested(self):
        a = atom("a")

        def outer(abort):
            transact(lambda abort: a.set("b"))
            abort()

        transact(outer)
        assert a.get() == "a"

    def test_returns_value(self):
        assert transact(lambda abort: 42) == 42

    def test_returns_none_when_aborted(self):
        def body(abort):
            abort()
            return 42

        assert transact(body) is None

    def test_abort_after_close(self):
        captured = []
        transact(lambda abort: captured.append(abort))
        with pytest.raises(InvalidTransactionStateError):
            captured[0]()

    def test_abort_not_swallowed_by_user_code(self):
        a = atom(0)

        def body(abort):
            a.set(1)
            try:
                abort()
            except Exception:
                pass
            a.set(2)

        transact(body)
        assert a.get() == 0

    def test_frames_closed_out_of_order(self):
        g = Graph()
        outer = transaction(g)
        inner = transaction(g)
        outer.__enter__()
        inner.__enter__()
        with pytest.raises(InvalidTransactionStateError):
            outer.__exit__(None, None, None)
        assert len(g.transactions) == 2


class TestBatching:
    def test_single_propagation(self):
        a = atom(0)
        b = atom(0)
        log = []
        a.derive(lambda x, y: (x, y), b).react(log.append)

        with transaction():
            a.set(10)
            b.set(20)
            assert log == [(0, 0)]

        assert log == [(0, 0), (10, 20)]

    def test_nested_propagates_after_outermost(self):
        o = atom(0)
        log = []
        o.react(log.append)

        with transaction():
            o.set(1)
            with transaction():
                o.set(2)
            assert log == [0]
            o.set(3)

        assert log == [0, 3]

    def test_net_unchanged_does_not_propagate(self):
        o = atom(0)
        log = []
        o.react(log.append)
        with transaction():
            o.set(5)
            o.set(0)
        assert log == [0]

    def test_aborted_transaction_does_not_propagate(self):
        o = atom(0)
        log = []
        o.react(log.append)
        with transaction() as txn:
            o.set(5)
            txn.abort()
        assert log == [0]
        assert o.get() == 0

    def test_derivation_sees_pending_then_committed(self):
        a = atom(1)
        d = a.derive(lambda x: x * 10)
        with transaction() as txn:
            a.set(2)
            assert d.get() == 20
            txn.abort()
        assert d.get() == 10

    def test_exception_aborts_and_propagates(self):
        o = atom(0)
        log = []
        o.react(log.append)
        with pytest.raises(RuntimeError):
            with transaction():
                o.set(5)
                raise RuntimeError("nope")
        assert o.get() == 0
        assert log == [0]

    def test_outer_abort_from_inner_frame(self):
        a = atom(0)
        reached = []
        with transaction() as outer:
            a.set(1)
            with transaction():
                a.set(2)
                outer.abort()
            reached.append(True)
        assert reached == []
        assert a.get() == 0

    def test_in_transaction(self):
        assert not in_transaction()
        with transaction():
            assert in_transaction()
        assert not in_transaction()


class TestAction:
    def test_batches_updates(self):
        a = atom(0)
        b = atom(0)
        log = []
        a.derive(lambda x, y: (x, y), b).react(log.append)

        @action
        def update_both():
            a.set(1)
            b.set(2)

        update_both()
        assert log == [(0, 0), (1, 2)]

    def test_preserves_return_value(self):
        @action
        def compute():
            return 42

        assert compute() == 42


class TestRetrackingInTransactions:
    def test_branch_switch_then_abort_keeps_edges(self):
        a, b, c = atom(True), atom("b"), atom("c")
        seen = []
        d = a.then(c, b)
        d.react(seen.append)

        def switch_and_abort(abort):
            a.set(False)
            assert d.get() == "b"
            abort()

        transact(switch_and_abort)
        assert seen == ["c"]
        c.set("c2")
        assert seen == ["c", "c2"]

    def test_branch_switch_undone_before_commit_keeps_edges(self):
        a, b, c = atom(True), atom("b"), atom("c")
        seen = []
        d = a.then(c, b)
        d.react(seen.append)

        def switch_and_restore(abort):
            a.set(False)
            assert d.get() == "b"
            a.set(True)

        transact(switch_and_restore)
        assert seen == ["c"]
        c.set("c2")
        assert seen == ["c", "c2"]

    def test_committed_branch_switch_drops_old_branch(self):
        a, b, c = atom(True), atom("b"), atom("c")
        seen = []
        d = a.then(c, b)
        d.react(seen.append)

        with transaction():
            a.set(False)
            assert d.get() == "b"
        assert seen == ["c", "b"]
        c.set("c2")
        assert seen == ["c", "b"]
        b.set("b2")
        assert seen == ["c", "b", "b2"]
