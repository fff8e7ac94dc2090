"""Tests for applying a cipher program (core/decipher.py)."""

from __future__ import annotations

import pytest

from ytd_fetch.core.decipher import apply_op, decipher
from ytd_fetch.core.models import CipherProgram, Reverse, Splice, Swap


class TestApplyOp:
    def test_reverse(self) -> None:
        assert apply_op(Reverse(), list("abc")) == list("cba")

    def test_splice_drops_prefix(self) -> None:
        assert apply_op(Splice(2), list("abcd")) == list("cd")

    def test_splice_past_end_empties(self) -> None:
        assert apply_op(Splice(9), list("abc")) == []

    def test_swap_uses_modulus(self) -> None:
        assert apply_op(Swap(7), list("abc")) == list("bac")

    def test_swap_zero_is_identity(self) -> None:
        assert apply_op(Swap(0), list("abc")) == list("abc")

    def test_swap_on_empty(self) -> None:
        assert apply_op(Swap(3), []) == []

    @pytest.mark.parametrize("n", [0, 1, 5, 99])
    def test_swap_on_single_character(self, n: int) -> None:
        assert apply_op(Swap(n), ["x"]) == ["x"]
        assert decipher([Swap(n)], "x") == "x"

    def test_input_is_not_mutated(self) -> None:
        chars = list("abc")
        apply_op(Swap(1), chars)
        assert chars == list("abc")

    def test_unknown_operation(self) -> None:
        with pytest.raises(TypeError):
            apply_op("reverse", list("abc"))  # type: ignore[arg-type]


class TestDecipher:
    def test_empty_program_is_identity(self) -> None:
        assert decipher(CipherProgram(), "abcdef") == "abcdef"

    def test_splice_then_reverse(self) -> None:
        assert decipher([Splice(2), Reverse()], "abcdef") == "fedc"

    def test_double_reverse_is_identity(self) -> None:
        assert decipher([Reverse(), Reverse()], "abcdef") == "abcdef"

    def test_swap_after_splice_uses_current_length(self) -> None:
        assert decipher([Splice(1), Swap(4)], "abcde") == "bcde"

    def test_full_program(self) -> None:
        program = CipherProgram(ops=(Swap(3), Splice(2), Reverse(), Reverse(), Splice(1)))
        assert decipher(program, "abcdefghij") == "aefghij"

    def test_program_is_reusable(self) -> None:
        program = CipherProgram(ops=(Reverse(), Swap(1)))
        first = decipher(program, "abcdef")
        assert decipher(program, "abcdef") == first
        assert decipher(program, "xyz") == "yzx"
