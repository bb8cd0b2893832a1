"""Memory examine command."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import DebuggerContext
from ..errors import MemoryAccessError
from ..output import emit_error, emit_result, render_memory_words
from ..parser import join_expression

WORD_BYTES = 4


class ExamineCommand(Command):
    def __init__(self) -> None:
        super().__init__("x", "Examine memory: N 4-byte words at EXPR", aliases=("mem",), usage="x N EXPR")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        if len(argv) < 2:
            emit_error(ctx, message="usage: x N EXPR")
            return 1
        try:
            count = int(argv[0], 0)
        except ValueError:
            emit_error(ctx, message=f"Invalid argument: {argv[0]}")
            return 1
        if count <= 0:
            emit_error(ctx, message=f"Invalid argument: {count}")
            return 1
        expression = join_expression(argv[1:])
        result = ctx.evaluate(expression)
        if not result.ok:
            emit_error(ctx, message=f"Invalid expression: {result.error}")
            return 1
        start = result.value
        words: List[int] = []
        try:
            for index in range(count):
                words.append(ctx.machine.read_memory(ctx.word.wrap(start + index * WORD_BYTES), WORD_BYTES))
        except MemoryAccessError as exc:
            emit_error(ctx, message=str(exc))
            return 2
        if ctx.json_output:
            emit_result(ctx, message="memory", data={"address": start, "words": words})
            return 0
        for line in render_memory_words(start, words, ctx.word):
            print(line)
        return 0
