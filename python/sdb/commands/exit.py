"""Quit command."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import DebuggerContext
from ..execution import ExecState


class QuitCommand(Command):
    def __init__(self) -> None:
        super().__init__("q", "Exit the debugger", aliases=("quit", "exit"))

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        ctx.loop.state = ExecState.QUIT
        raise SystemExit(0)
