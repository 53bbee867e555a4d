"""Tests for Reaction lifecycle and hooks."""

import pytest

from derivable import (
    DuplicateAttachmentError,
    Reaction,
    ReactionState,
    ReactionStateError,
    atom,
)


class TestReaction:
    def test_start_does_not_fire(self):
        o = atom("a")
        effects = []
        o.reaction(effects.append).start()
        assert effects == []

    def test_fires_on_change(self):
        o = atom("a")
        effects = []
        o.reaction(effects.append).start()
        o.set("b")
        assert effects == ["b"]

    def test_react_fires_immediately(self):
        o = atom("a")
        effects = []
        r = o.react(effects.append)
        assert effects == ["a"]
        assert r.started

    def test_dedup_effect(self):
        """react() only fires when the source's value actually changes."""
        o = atom(1)
        effects = []
        parity = o.derive(lambda n: "even" if n % 2 == 0 else "odd")
        parity.react(effects.append)
        o.set(3)  # still odd
        assert effects == ["odd"]
        o.set(4)
        assert effects == ["odd", "even"]

    def test_reaction_equality(self):
        o = atom(0)
        effects = []
        o.react(Reaction(effects.append, equals=lambda a, b: abs(a - b) < 5))
        o.set(3)
        assert effects == [0]
        o.set(10)
        assert effects == [0, 10]


class TestLifecycle:
    def test_start_stop_restart(self):
        o = atom("a")
        effects = []
        r = o.reaction(effects.append)
        assert r.state is ReactionState.CREATED

        r.start()
        assert r.state is ReactionState.STARTED
        o.set("b")
        assert effects == ["b"]

        r.stop()
        assert r.state is ReactionState.STOPPED
        o.set("c")
        assert effects == ["b"]

        r.start()
        o.set("d")
        assert effects == ["b", "d"]

    def test_restart_compares_against_state_at_restart(self):
        o = atom(1)
        effects = []
        r = o.react(effects.append)
        r.stop()
        o.set(2)
        r.start()
        assert effects == [1]
        o.set(1)
        assert effects == [1, 1]

    def test_start_and_stop_are_idempotent(self):
        started = []
        o = atom(1)
        r = o.reaction(Reaction(lambda v: None, on_start=lambda: started.append(1)))
        r.stop()  # never started, no-op
        r.start()
        r.start()
        assert started == [1]

    def test_force_while_stopped(self):
        o = atom(1)
        effects = []
        r = o.reaction(effects.append)
        r.force()
        assert effects == [1]
        o.set(2)
        assert effects == [1]  # not started
        r.force()
        assert effects == [1, 2]
        r.force()
        assert effects == [1, 2]  # unchanged value

    def test_hook_callbacks(self):
        events = []
        o = atom(1)
        r = o.reaction(
            Reaction(
                lambda v: events.append(("react", v)),
                on_start=lambda: events.append("start"),
                on_stop=lambda: events.append("stop"),
            )
        )
        r.start().force()
        r.stop()
        assert events == ["start", ("react", 1), "stop"]

    def test_subclass_hooks(self):
        events = []

        class Recorder(Reaction):
            def react(self, value):
                events.append(value)

            def on_start(self):
                events.append("start")

            def on_stop(self):
                events.append("stop")

        o = atom("x")
        r = o.react(Recorder())
        o.set("y")
        r.stop()
        assert events == ["start", "x", "y", "stop"]

    def test_missing_react_hook(self):
        with pytest.raises(NotImplementedError):
            atom(1).react(Reaction())


class TestAttachment:
    def test_duplicate_attachment(self):
        r = Reaction(lambda v: None)
        atom(1).reaction(r)
        with pytest.raises(DuplicateAttachmentError):
            atom(2).reaction(r)

    def test_start_without_source(self):
        with pytest.raises(ReactionStateError):
            Reaction(lambda v: None).start()

    def test_force_without_source(self):
        with pytest.raises(ReactionStateError):
            Reaction(lambda v: None).force()

    def test_source(self):
        o = atom(1)
        r = o.reaction(lambda v: None)
        assert r.source is o
