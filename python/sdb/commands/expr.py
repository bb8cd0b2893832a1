"""Expression print command."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import DebuggerContext
from ..output import emit_error, emit_result, format_value
from ..parser import join_expression


class PrintCommand(Command):
    def __init__(self) -> None:
        super().__init__("p", "Print value of expression", aliases=("print",), usage="p EXPR")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        expression = join_expression(argv)
        if not expression:
            emit_error(ctx, message="usage: p EXPR")
            return 1
        result = ctx.evaluate(expression)
        if not result.ok:
            emit_error(ctx, message=f"Invalid expression: {result.error}")
            return 1
        word = ctx.word
        emit_result(
            ctx,
            message=format_value(word, result.value),
            data={"expr": expression, "value": result.value, "signed": word.signed(result.value)},
        )
        return 0
