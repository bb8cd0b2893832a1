"""Command base classes for sdb."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from ..context import DebuggerContext


@dataclass
class Command:
    """Abstract command description."""

    name: str
    description: str
    aliases: Sequence[str] = field(default_factory=tuple)
    usage: str = ""

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        raise NotImplementedError("Command must implement run()")

    def format_help(self) -> str:
        names = ", ".join([self.name, *self.aliases])
        return f"{names:<16} {self.description}"
