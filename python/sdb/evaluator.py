"""Precedence evaluator over token ranges.

The evaluator never builds a tree.  A range ``[p, q]`` is either a single
operand, a fully parenthesised sub-range, or is split at its dominant
operator (lowest priority at paren depth zero, rightmost on binary ties) and both
halves are evaluated recursively.  Every step returns an ``EvalResult``;
nothing is raised for malformed input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

from .errors import EvalError, ExpressionError, MemoryAccessError, ParseError
from .lexer import Token, TokenKind, tokenize
from .word import WORD32, WordSpec

LOGGER = logging.getLogger("sdb.evaluator")

RegisterLookup = Callable[[str], Tuple[int, bool]]
MemoryReader = Callable[[int, int], int]

DEREF_WIDTH = 4
UNARY_PRIORITY = 7

PRIORITY: Dict[TokenKind, int] = {
    TokenKind.OR: 1,
    TokenKind.AND: 2,
    TokenKind.EQ: 3,
    TokenKind.NE: 3,
    TokenKind.LT: 4,
    TokenKind.LE: 4,
    TokenKind.GT: 4,
    TokenKind.GE: 4,
    TokenKind.ADD: 5,
    TokenKind.SUB: 5,
    TokenKind.MUL: 6,
    TokenKind.DIV: 6,
    TokenKind.POS: UNARY_PRIORITY,
    TokenKind.NEG: UNARY_PRIORITY,
    TokenKind.DEREF: UNARY_PRIORITY,
}

# form applied when the left operand evaluates
_BINARY_FORM = {
    TokenKind.POS: TokenKind.ADD,
    TokenKind.NEG: TokenKind.SUB,
    TokenKind.DEREF: TokenKind.MUL,
}

# form applied when it does not
_UNARY_FORM = {
    TokenKind.ADD: TokenKind.POS,
    TokenKind.SUB: TokenKind.NEG,
    TokenKind.MUL: TokenKind.DEREF,
    TokenKind.POS: TokenKind.POS,
    TokenKind.NEG: TokenKind.NEG,
    TokenKind.DEREF: TokenKind.DEREF,
}

_WRAPPED = "wrapped"
_OPEN = "open"
_UNBALANCED = "unbalanced"


@dataclass(frozen=True)
class EvalResult:
    value: int = 0
    ok: bool = True
    error: Optional[ExpressionError] = None

    @classmethod
    def failure(cls, error: ExpressionError) -> "EvalResult":
        return cls(value=0, ok=False, error=error)


def _no_registers(name: str) -> Tuple[int, bool]:
    return 0, False


class Evaluator:
    """Evaluate expressions against a register lookup and a memory reader."""

    def __init__(
        self,
        *,
        lookup_register: Optional[RegisterLookup] = None,
        read_memory: Optional[MemoryReader] = None,
        word: WordSpec = WORD32,
    ) -> None:
        self.lookup_register: RegisterLookup = lookup_register or _no_registers
        self.read_memory = read_memory
        self.word = word

    def expr(self, text: str) -> EvalResult:
        """Tokenize ``text`` and evaluate the whole token sequence."""
        lexed = tokenize(text)
        if not lexed.ok:
            LOGGER.debug("lex failed for %r: %s", text, lexed.error)
            return EvalResult.failure(lexed.error)
        if not lexed.tokens:
            return EvalResult.failure(ParseError("empty expression"))
        result = self.evaluate(lexed.tokens, 0, len(lexed.tokens) - 1)
        if not result.ok:
            LOGGER.debug("evaluation failed for %r: %s", text, result.error)
        return result

    def evaluate(self, tokens: Sequence[Token], p: int, q: int) -> EvalResult:
        if p > q:
            return EvalResult.failure(ParseError("missing operand"))
        if p < 0 or q >= len(tokens):
            return EvalResult.failure(ParseError(f"token range [{p}, {q}] out of bounds"))
        if p == q:
            return self._operand(tokens[p])

        shape = self._paren_shape(tokens, p, q)
        if shape == _UNBALANCED:
            return EvalResult.failure(ParseError("unbalanced parentheses"))
        if shape == _WRAPPED:
            return self.evaluate(tokens, p + 1, q - 1)

        op, error = self._dominant_operator(tokens, p, q)
        if error is not None:
            return EvalResult.failure(error)
        kind = tokens[op].kind

        left = self.evaluate(tokens, p, op - 1)
        right = self.evaluate(tokens, op + 1, q)
        if not right.ok:
            return right
        if left.ok:
            return self._apply_binary(_BINARY_FORM.get(kind, kind), left.value, right.value)
        unary = _UNARY_FORM.get(kind)
        if unary is None:
            return EvalResult.failure(ParseError(f"missing left operand for '{tokens[op].text}'"))
        return self._apply_unary(unary, right.value)

    # -- leaves ---------------------------------------------------------

    def _operand(self, token: Token) -> EvalResult:
        if token.kind is TokenKind.NUMBER:
            text = token.text
            try:
                if text[:2].lower() == "0x":
                    value = int(text[2:], 16)
                else:
                    value = int(text, 10)
            except ValueError:
                return EvalResult.failure(EvalError(f"bad numeric literal '{text}'"))
            return EvalResult(self.word.wrap(value))
        if token.kind is TokenKind.REGISTER:
            name = token.text[1:]
            value, found = self.lookup_register(name)
            if not found:
                return EvalResult.failure(EvalError(f"unknown register '{name}'"))
            return EvalResult(self.word.wrap(value))
        return EvalResult.failure(ParseError(f"unexpected token '{token.text}'"))

    # -- structure ------------------------------------------------------

    @staticmethod
    def _paren_shape(tokens: Sequence[Token], p: int, q: int) -> str:
        if tokens[p].kind is not TokenKind.LPAREN or tokens[q].kind is not TokenKind.RPAREN:
            return _OPEN
        depth = 0
        closed_early = False
        for i in range(p, q + 1):
            kind = tokens[i].kind
            if kind is TokenKind.LPAREN:
                depth += 1
            elif kind is TokenKind.RPAREN:
                depth -= 1
            if depth == 0 and i < q:
                closed_early = True
        if depth != 0:
            return _UNBALANCED
        return _OPEN if closed_early else _WRAPPED

    @staticmethod
    def _dominant_operator(tokens: Sequence[Token], p: int, q: int) -> Tuple[int, Optional[ParseError]]:
        best = -1
        best_priority = 0
        depth = 0
        for i in range(p, q + 1):
            kind = tokens[i].kind
            if kind is TokenKind.LPAREN:
                depth += 1
                continue
            if kind is TokenKind.RPAREN:
                depth -= 1
                if depth < 0:
                    return -1, ParseError("unmatched ')'")
                continue
            if depth:
                continue
            priority = PRIORITY.get(kind)
            if priority is None:
                continue
            # binary ties: rightmost, so equal priorities fold left-associatively.
            # prefix ties: leftmost; the rightmost would split --1 into a failed
            # left "-" and drop the outer negation.
            if best < 0 or priority < best_priority or (
                priority == best_priority and priority != UNARY_PRIORITY
            ):
                best, best_priority = i, priority
        if depth != 0:
            return -1, ParseError("unbalanced parentheses")
        if best < 0:
            return -1, ParseError("no operator found")
        return best, None

    # -- semantics ------------------------------------------------------

    def _apply_binary(self, kind: TokenKind, left: int, right: int) -> EvalResult:
        word = self.word
        if kind is TokenKind.ADD:
            return EvalResult(word.wrap(left + right))
        if kind is TokenKind.SUB:
            return EvalResult(word.wrap(left - right))
        if kind is TokenKind.MUL:
            return EvalResult(word.wrap(left * right))
        if kind is TokenKind.DIV:
            if right == 0:
                return EvalResult.failure(EvalError("division by zero"))
            dividend, divisor = word.signed(left), word.signed(right)
            quotient = abs(dividend) // abs(divisor)
            if (dividend < 0) != (divisor < 0):
                quotient = -quotient
            return EvalResult(word.wrap(quotient))
        if kind is TokenKind.EQ:
            return EvalResult(int(left == right))
        if kind is TokenKind.NE:
            return EvalResult(int(left != right))
        if kind is TokenKind.LT:
            return EvalResult(int(word.signed(left) < word.signed(right)))
        if kind is TokenKind.LE:
            return EvalResult(int(word.signed(left) <= word.signed(right)))
        if kind is TokenKind.GT:
            return EvalResult(int(word.signed(left) > word.signed(right)))
        if kind is TokenKind.GE:
            return EvalResult(int(word.signed(left) >= word.signed(right)))
        if kind is TokenKind.AND:
            return EvalResult(int(bool(left) and bool(right)))
        if kind is TokenKind.OR:
            return EvalResult(int(bool(left) or bool(right)))
        return EvalResult.failure(ParseError(f"'{kind.value}' is not a binary operator"))

    def _apply_unary(self, kind: TokenKind, value: int) -> EvalResult:
        if kind is TokenKind.POS:
            return EvalResult(value)
        if kind is TokenKind.NEG:
            return EvalResult(self.word.wrap(-value))
        if kind is TokenKind.DEREF:
            return self._dereference(value)
        return EvalResult.failure(ParseError(f"'{kind.value}' is not a unary operator"))

    def _dereference(self, address: int) -> EvalResult:
        if self.read_memory is None:
            return EvalResult.failure(EvalError("no memory attached"))
        try:
            value = self.read_memory(address, DEREF_WIDTH)
        except MemoryAccessError as exc:
            return EvalResult.failure(EvalError(str(exc)))
        return EvalResult(self.word.wrap(value))


__all__ = ["EvalResult", "Evaluator", "PRIORITY", "DEREF_WIDTH", "RegisterLookup", "MemoryReader"]
