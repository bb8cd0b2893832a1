"""Rule-based expression tokenizer.

Rules are tried in order at the current scan position and the first one that
matches a non-empty prefix wins.  ``+``, ``-`` and ``*`` are classified as
binary or unary here, once, by looking at the previous token.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .errors import LexError

LOGGER = logging.getLogger("sdb.lexer")

MAX_TOKENS = 128
MAX_TOKEN_TEXT = 31


class TokenKind(Enum):
    NUMBER = "num"
    REGISTER = "reg"
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    AND = "&&"
    OR = "||"
    POS = "u+"
    NEG = "u-"
    DEREF = "u*"
    LPAREN = "("
    RPAREN = ")"


VALUE_KINDS = frozenset({TokenKind.NUMBER, TokenKind.REGISTER, TokenKind.RPAREN})

# binary glyph -> unary kind used when no value precedes it
_UNARY_FORMS = {
    TokenKind.ADD: TokenKind.POS,
    TokenKind.SUB: TokenKind.NEG,
    TokenKind.MUL: TokenKind.DEREF,
}


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class LexResult:
    tokens: Tuple[Token, ...] = ()
    ok: bool = True
    error: Optional[LexError] = None


@dataclass(frozen=True)
class _Rule:
    pattern: re.Pattern[str]
    kind: Optional[TokenKind]  # None: consumed, no token


def _rule(regex: str, kind: Optional[TokenKind]) -> _Rule:
    return _Rule(re.compile(regex), kind)


RULES: Tuple[_Rule, ...] = (
    _rule(r"\s+", None),
    _rule(r"0[xX][0-9a-fA-F]+", TokenKind.NUMBER),
    _rule(r"[0-9]+", TokenKind.NUMBER),
    _rule(r"\$[A-Za-z0-9]+", TokenKind.REGISTER),
    _rule(r"==", TokenKind.EQ),
    _rule(r"!=", TokenKind.NE),
    _rule(r"<=", TokenKind.LE),
    _rule(r">=", TokenKind.GE),
    _rule(r"&&", TokenKind.AND),
    _rule(r"\|\|", TokenKind.OR),
    _rule(r"<", TokenKind.LT),
    _rule(r">", TokenKind.GT),
    _rule(r"\+", TokenKind.ADD),
    _rule(r"-", TokenKind.SUB),
    _rule(r"\*", TokenKind.MUL),
    _rule(r"/", TokenKind.DIV),
    _rule(r"\(", TokenKind.LPAREN),
    _rule(r"\)", TokenKind.RPAREN),
)


def caret_marker(text: str, position: int) -> str:
    """Return ``text`` with a caret line pointing at ``position``."""
    return f"{text}\n{' ' * position}^"


def _classify(kind: TokenKind, previous: Optional[Token]) -> TokenKind:
    unary = _UNARY_FORMS.get(kind)
    if unary is None:
        return kind
    if previous is not None and previous.kind in VALUE_KINDS:
        return kind
    return unary


def tokenize(text: str) -> LexResult:
    """Split ``text`` into tokens.

    Never raises for bad input; failures come back as ``LexResult`` with
    ``ok`` False and a ``LexError`` describing the position.
    """
    tokens: List[Token] = []
    position = 0
    length = len(text)
    while position < length:
        for index, rule in enumerate(RULES):
            match = rule.pattern.match(text, position)
            if match is None or match.end() == position:
                continue
            lexeme = match.group(0)
            LOGGER.debug(
                "match rules[%d] = %r at position %d with len %d: %s",
                index,
                rule.pattern.pattern,
                position,
                len(lexeme),
                lexeme,
            )
            break
        else:
            message = f"no match at position {position}\n{caret_marker(text, position)}"
            return LexResult(ok=False, error=LexError(message, position=position))

        if rule.kind is not None:
            if len(lexeme) > MAX_TOKEN_TEXT:
                return LexResult(
                    ok=False,
                    error=LexError(f"token too long at position {position}: {lexeme[:16]}...", position=position),
                )
            if len(tokens) >= MAX_TOKENS:
                return LexResult(
                    ok=False,
                    error=LexError(f"too many tokens (limit {MAX_TOKENS})", position=position),
                )
            previous = tokens[-1] if tokens else None
            tokens.append(Token(_classify(rule.kind, previous), lexeme))
        position = match.end()

    return LexResult(tokens=tuple(tokens))


__all__ = [
    "MAX_TOKENS",
    "MAX_TOKEN_TEXT",
    "TokenKind",
    "Token",
    "LexResult",
    "RULES",
    "VALUE_KINDS",
    "caret_marker",
    "tokenize",
]
