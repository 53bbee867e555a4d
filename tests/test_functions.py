"""Tests for the free functions."""

import operator

import pytest

from derivable import (
    Reaction,
    atom,
    derivation,
    derive,
    is_atom,
    is_derivable,
    is_derivation,
    is_lensed,
    is_reaction,
    lift,
    struct,
    unpack,
)


class TestStruct:
    def test_nested(self):
        x = atom(1)
        y = atom(2)
        point = struct({"x": x, "y": y, "tags": ["p", x], "pair": (x, "z")})
        assert point.get() == {"x": 1, "y": 2, "tags": ["p", 1], "pair": (1, "z")}
        x.set(5)
        assert point.get() == {"x": 5, "y": 2, "tags": ["p", 5], "pair": (5, "z")}

    def test_reacts_to_leaves(self):
        x = atom(1)
        seen = []
        struct([x, x.derive(lambda v: -v)]).react(seen.append)
        x.set(2)
        assert seen == [[1, -1], [2, -2]]

    def test_rejects_non_container(self):
        with pytest.raises(TypeError):
            struct(atom(1))


class TestUnpack:
    def test_unpack(self):
        assert unpack(3) == 3
        assert unpack(atom(3)) == 3
        assert unpack(atom(3).derive(lambda v: v + 1)) == 4


class TestLift:
    def test_lift(self):
        add = lift(operator.add)
        a = atom(1)
        total = add(a, 2)
        assert is_derivation(total)
        assert total.get() == 3
        a.set(10)
        assert total.get() == 12

    def test_keyword_args(self):
        fmt = lift(lambda value, *, sep: f"{value}{sep}")
        sep = atom("!")
        out = fmt("hi", sep=sep)
        sep.set("?")
        assert out.get() == "hi?"


class TestDerive:
    def test_derive(self):
        a = atom(2)
        assert derive(a, lambda v, m: v * m, atom(3)).get() == 6


class TestPredicates:
    def test_predicates(self):
        a = atom(1)
        d = derivation(lambda: a.get())
        lensed = a.lens(lambda v: v, lambda _, v: v)
        r = a.reaction(lambda v: None)

        assert is_atom(a) and is_derivable(a) and not is_derivation(a)
        assert is_derivation(d) and is_derivable(d) and not is_atom(d)
        assert is_lensed(lensed) and is_atom(lensed)
        assert is_reaction(r) and isinstance(r, Reaction)
        assert not is_derivable(1)
        assert not is_reaction(a)
