"""Execution control commands (continue/si)."""

from __future__ import annotations

import argparse
from typing import List

from .base import Command
from ..context import DebuggerContext
from ..output import emit_error, emit_run_report


class ContinueCommand(Command):
    def __init__(self) -> None:
        super().__init__("c", "Continue the execution of the program", aliases=("continue", "cont"))

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        report = ctx.loop.run(-1)
        emit_run_report(ctx, report)
        return 0


class StepCommand(Command):
    def __init__(self) -> None:
        super().__init__("si", "Execute N instructions in a single step", aliases=("step",), usage="si [N]")
        self._parser = argparse.ArgumentParser(prog="si", add_help=False)
        self._parser.add_argument("count", nargs="?", type=int, default=1, help="Instruction count (default 1)")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        try:
            args = self._parser.parse_args(argv)
        except SystemExit:
            return 1
        if args.count <= 0:
            emit_error(ctx, message=f"Invalid argument: {args.count}")
            return 1
        report = ctx.loop.run(args.count)
        emit_run_report(ctx, report)
        return 0
