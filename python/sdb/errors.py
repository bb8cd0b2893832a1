"""Error types for sdb."""

from __future__ import annotations

from typing import Optional


class SdbError(Exception):
    """Base error for sdb."""


class ExpressionError(SdbError):
    """An expression could not be tokenized or evaluated."""


class LexError(ExpressionError):
    """No lexer rule matched, or the token buffer overflowed."""

    def __init__(self, message: str, *, position: Optional[int] = None) -> None:
        super().__init__(message)
        self.position = position


class ParseError(ExpressionError):
    """Structurally invalid expression (parentheses, missing operands)."""


class EvalError(ExpressionError):
    """Well-formed expression that cannot be computed."""


class CapacityError(SdbError):
    """The watchpoint pool has no free slot left."""


class NotFoundError(SdbError):
    """No active watchpoint with the requested id."""


class MemoryAccessError(SdbError):
    """Guest memory access outside the mapped region."""


class TraceFormatError(SdbError):
    """Malformed machine state or trace record."""


__all__ = [
    "SdbError",
    "ExpressionError",
    "LexError",
    "ParseError",
    "EvalError",
    "CapacityError",
    "NotFoundError",
    "MemoryAccessError",
    "TraceFormatError",
]
