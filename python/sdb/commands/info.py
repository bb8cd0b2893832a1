"""Info command: registers and watchpoints."""

from __future__ import annotations

import argparse
from typing import List

from .base import Command
from ..context import DebuggerContext
from ..output import emit_result, render_register_table, render_watch_table


class InfoCommand(Command):
    def __init__(self) -> None:
        super().__init__("info", "Print program status", usage="info r | info w")
        self._parser = argparse.ArgumentParser(prog="info", add_help=False)
        self._parser.add_argument("what", choices=["r", "w"], help="r: registers, w: watchpoints")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        try:
            args = self._parser.parse_args(argv)
        except SystemExit:
            return 1
        word = ctx.word
        if args.what == "r":
            registers = ctx.machine.registers.items()
            if ctx.json_output:
                emit_result(ctx, message="registers", data={"registers": {name: value for name, value in registers}})
            else:
                print(render_register_table(registers, word))
            return 0
        watches = ctx.watchpoints.snapshot()
        if ctx.json_output:
            data = {"watchpoints": [{"id": wp.id, "expr": wp.expression, "value": wp.last_value} for wp in watches]}
            emit_result(ctx, message="watchpoints", data=data)
        else:
            print(render_watch_table(watches, word))
        return 0
