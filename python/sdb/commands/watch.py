"""Watchpoint commands."""

from __future__ import annotations

import argparse
from typing import List

from .base import Command
from ..context import DebuggerContext
from ..errors import CapacityError, ExpressionError, NotFoundError
from ..output import emit_error, emit_result, format_value
from ..parser import join_expression


class WatchCommand(Command):
    def __init__(self) -> None:
        super().__init__("w", "Set a watchpoint", aliases=("watch",), usage="w EXPR")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        expression = join_expression(argv)
        if not expression:
            emit_error(ctx, message="usage: w EXPR")
            return 1
        try:
            watch = ctx.watchpoints.watch(expression)
        except ExpressionError as exc:
            emit_error(ctx, message=f"Invalid expression: {exc}")
            return 1
        except CapacityError as exc:
            emit_error(ctx, message=str(exc))
            return 2
        data = {"watch_id": watch.id, "expr": watch.expression, "value": watch.last_value}
        emit_result(ctx, message=f"Watchpoint {watch.id}: {watch.expression}", data=data)
        if not ctx.json_output:
            print(f"Initial value = {format_value(ctx.word, watch.last_value)}")
        return 0


class DeleteCommand(Command):
    def __init__(self) -> None:
        super().__init__("d", "Delete a watchpoint", aliases=("delete",), usage="d N")
        self._parser = argparse.ArgumentParser(prog="d", add_help=False)
        self._parser.add_argument("watch_id", type=int)

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        try:
            args = self._parser.parse_args(argv)
        except SystemExit:
            return 1
        try:
            removed = ctx.watchpoints.delete(args.watch_id)
        except NotFoundError as exc:
            emit_error(ctx, message=str(exc))
            return 1
        emit_result(
            ctx,
            message=f"Watchpoint {removed.id}: {removed.expression} deleted.",
            data={"watch_id": removed.id, "expr": removed.expression},
        )
        return 0
