"""Tests for the precedence evaluator."""

from __future__ import annotations

import pytest

from sdb.errors import EvalError, LexError, ParseError
from sdb.evaluator import EvalResult, Evaluator
from sdb.lexer import tokenize
from sdb.word import WordSpec

MASK32 = 0xFFFFFFFF


def value_of(evaluator: Evaluator, text: str) -> int:
    result = evaluator.expr(text)
    assert result.ok, f"{text!r}: {result.error}"
    return result.value


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1+2*3", 7),
        ("(1+2)*3", 9),
        ("8-3-2", 3),
        ("100/10/5", 2),
        ("2*3+4*5", 26),
        ("-1+2", 1),
        ("0x10+1", 17),
        ("0X1f", 31),
        ("((((7))))", 7),
        ("(1)+(2)", 3),
        ("--1", 1),
        ("+5", 5),
        ("3 - -2", 5),
        ("1 + 2 == 3", 1),
        ("1 != 1", 0),
        ("1 || 0 && 0", 1),
        ("(1 || 0) && 0", 0),
        ("2 < 3 == 1", 1),
        ("5 >= 5", 1),
        ("4 <= 3", 0),
        ("0 && 1 || 2", 1),
    ],
)
def test_arithmetic_and_precedence(evaluator, text, expected):
    assert value_of(evaluator, text) == expected


def test_unary_minus_binds_tighter_than_multiply(evaluator):
    assert value_of(evaluator, "2*-1") == MASK32
    assert evaluator.word.signed(value_of(evaluator, "2*-1")) == -1


def test_arithmetic_wraps_to_word(evaluator):
    assert value_of(evaluator, "0xffffffff + 2") == 1
    assert value_of(evaluator, "0 - 1") == MASK32
    assert value_of(evaluator, "0x10000 * 0x10000") == 0
    assert value_of(evaluator, "4294967297") == 1


def test_division_is_signed_and_truncates(evaluator):
    assert evaluator.word.signed(value_of(evaluator, "-7/2")) == -3
    assert evaluator.word.signed(value_of(evaluator, "7/-2")) == -3
    assert value_of(evaluator, "-8/-2") == 4


def test_relational_operators_use_signed_view(evaluator):
    assert value_of(evaluator, "-1 < 0") == 1
    assert value_of(evaluator, "0xffffffff > 1") == 0
    assert value_of(evaluator, "-1 == 0xffffffff") == 1


def test_registers_and_dereference(evaluator):
    assert value_of(evaluator, "$a0 + 1") == 2
    assert value_of(evaluator, "$sp") == 0x80000100
    assert value_of(evaluator, "*$sp") == 0xDEADBEEF
    assert value_of(evaluator, "*($sp + 4)") == 0x80000100
    assert value_of(evaluator, "**($sp + 4)") == 0xDEADBEEF
    assert value_of(evaluator, "$x0") == 0


def test_outer_parentheses_can_be_stripped(evaluator):
    for text in ["1+2*3", "8-3-2", "-1+2", "$a0*(3-1)", "*$sp == 0xdeadbeef"]:
        assert value_of(evaluator, f"({text})") == value_of(evaluator, text)


def test_division_by_zero_fails_without_raising(evaluator):
    result = evaluator.expr("5/0")
    assert result == EvalResult(value=0, ok=False, error=result.error)
    assert isinstance(result.error, EvalError)
    assert "division by zero" in str(result.error)
    assert not evaluator.expr("5/(1-1)").ok


@pytest.mark.parametrize("text", ["(1+2", "(1))", ")1(", "1+(2", "(1))+((2)", "()", "(1)(2)"])
def test_unbalanced_or_malformed_parentheses(evaluator, text):
    result = evaluator.expr(text)
    assert not result.ok
    assert result.value == 0
    assert isinstance(result.error, ParseError)


@pytest.mark.parametrize("text", ["", "   ", "1 2", "1 +", "== 3", "1 * / 2"])
def test_structural_errors(evaluator, text):
    result = evaluator.expr(text)
    assert not result.ok
    assert isinstance(result.error, ParseError)


def test_unknown_register_is_an_eval_error(evaluator):
    result = evaluator.expr("$nope")
    assert not result.ok
    assert isinstance(result.error, EvalError)
    assert "nope" in str(result.error)


def test_failed_left_operand_falls_back_to_unary(evaluator):
    assert value_of(evaluator, "$nope + 1") == 1
    assert value_of(evaluator, "1/0 + 2") == 2
    assert evaluator.word.signed(value_of(evaluator, "(5/0) - 1")) == -1
    assert value_of(evaluator, "$nope * $sp") == 0xDEADBEEF


def test_failed_left_operand_without_unary_form(evaluator):
    result = evaluator.expr("$nope == 1")
    assert not result.ok
    assert isinstance(result.error, ParseError)


def test_lex_errors_surface_through_expr(evaluator):
    result = evaluator.expr("1 # 2")
    assert not result.ok
    assert isinstance(result.error, LexError)


def test_dereference_out_of_range_is_an_eval_error(evaluator):
    result = evaluator.expr("*0")
    assert not result.ok
    assert isinstance(result.error, EvalError)


def test_dereference_without_memory():
    result = Evaluator().expr("*4")
    assert not result.ok
    assert "no memory" in str(result.error)


def test_evaluate_token_ranges_directly(evaluator):
    tokens = tokenize("1 + 2 * 3").tokens
    assert evaluator.evaluate(tokens, 2, 4).value == 6
    assert evaluator.evaluate(tokens, 0, 0).value == 1
    empty = evaluator.evaluate(tokens, 3, 2)
    assert not empty.ok and isinstance(empty.error, ParseError)
    assert not evaluator.evaluate(tokens, 1, 1).ok


def test_sixty_four_bit_words():
    wide = Evaluator(word=WordSpec(64))
    assert wide.expr("0xffffffff + 1").value == 0x100000000
    assert wide.expr("0 - 1").value == 0xFFFFFFFFFFFFFFFF


def test_register_lookup_callback_receives_name_without_sigil():
    seen = []

    def lookup(name):
        seen.append(name)
        return 5, True

    assert Evaluator(lookup_register=lookup).expr("$t0 * 2").value == 10
    assert seen == ["t0"]
