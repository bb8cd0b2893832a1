"""Command registry for sdb."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .base import Command
from .alias import AliasCommand
from .control import ContinueCommand, StepCommand
from .exit import QuitCommand
from .help import HelpCommand
from .info import InfoCommand
from .load import LoadCommand
from .memory import ExamineCommand
from .expr import PrintCommand
from .watch import DeleteCommand, WatchCommand


class CommandRegistry:
    """Stores the known commands and resolves aliases."""

    def __init__(self) -> None:
        self._commands: Dict[str, Command] = {}
        self._ordered: List[Command] = []

    def register(self, command: Command) -> None:
        self._ordered.append(command)
        self._commands[command.name] = command
        for alias in command.aliases:
            self._commands[alias] = command

    def get(self, name: str) -> Optional[Command]:
        return self._commands.get(name)

    def list_commands(self) -> Iterable[Command]:
        return self._ordered


def build_registry() -> CommandRegistry:
    registry = CommandRegistry()
    commands = [
        HelpCommand(),
        ContinueCommand(),
        QuitCommand(),
        StepCommand(),
        InfoCommand(),
        ExamineCommand(),
        PrintCommand(),
        WatchCommand(),
        DeleteCommand(),
        LoadCommand(),
        AliasCommand(),
    ]
    for command in commands:
        registry.register(command)
        bind = getattr(command, "bind", None)
        if callable(bind):
            bind(registry)
    return registry


__all__ = ["Command", "CommandRegistry", "build_registry"]
