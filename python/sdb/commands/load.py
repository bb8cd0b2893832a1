"""Load a machine state file."""

from __future__ import annotations

import argparse
from typing import List

from .base import Command
from ..context import DebuggerContext
from ..errors import TraceFormatError
from ..output import emit_error, emit_result


class LoadCommand(Command):
    def __init__(self) -> None:
        super().__init__("load", "Load a machine state/trace file (drops watchpoints)", usage="load PATH")
        self._parser = argparse.ArgumentParser(prog="load", add_help=False)
        self._parser.add_argument("path")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        try:
            args = self._parser.parse_args(argv)
        except SystemExit:
            return 1
        try:
            machine = ctx.load_state(args.path)
        except (OSError, TraceFormatError) as exc:
            emit_error(ctx, message=f"load failed: {exc}")
            return 2
        emit_result(
            ctx,
            message=f"Loaded {args.path}: {len(machine.trace)} trace records, {machine.word.bits}-bit word",
            data={"path": args.path, "records": len(machine.trace), "word_bits": machine.word.bits},
        )
        return 0
