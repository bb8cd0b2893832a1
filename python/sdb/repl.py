"""Interactive REPL for sdb."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from .commands import CommandRegistry
from .completion import DebuggerCompleter
from .context import DebuggerContext
from .history import HistoryStore
from .parser import is_parse_error, split_command

LOGGER = logging.getLogger("sdb.repl")

PROMPT = "(sdb) "


def dispatch_line(ctx: DebuggerContext, registry: CommandRegistry, line: str) -> int:
    """Run one command line; returns the command's exit code."""
    stripped = line.strip()
    if not stripped:
        return 0
    argv = split_command(stripped)
    if not argv:
        return 0
    if is_parse_error(argv):
        print(f"Parse error: {argv[1].split(':', 1)[-1]}")
        return 1
    cmd_name, *cmd_args = argv
    cmd_name = ctx.resolve_alias(cmd_name)
    command = registry.get(cmd_name)
    if not command:
        print(f"Unknown command '{cmd_name}'")
        return 1
    try:
        return command.run(ctx, cmd_args)
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - defensive logging
        LOGGER.exception("command failed")
        print(f"Command '{cmd_name}' failed: {exc}")
        return 2


class DebuggerREPL:
    """prompt_toolkit REPL; plain ``input()`` when stdin is not a terminal."""

    def __init__(
        self,
        ctx: DebuggerContext,
        registry: CommandRegistry,
        *,
        history_store: Optional[HistoryStore] = None,
    ) -> None:
        self.ctx = ctx
        self.registry = registry
        self.history_store = history_store

    def run(self) -> int:
        if not sys.stdin.isatty():
            return self._plain_loop()
        history = InMemoryHistory()
        if self.history_store:
            for entry in self.history_store.snapshot():
                history.append_string(entry)
        completer = DebuggerCompleter(self.ctx, self.registry)
        session = PromptSession(PROMPT, history=history, completer=completer, complete_while_typing=False)
        buffer: list[str] = []
        while True:
            try:
                with patch_stdout():
                    line = session.prompt()
            except (EOFError, KeyboardInterrupt):
                print()
                return 0
            self._feed(buffer, line)

    def _plain_loop(self) -> int:
        buffer: list[str] = []
        while True:
            try:
                line = input(PROMPT)
            except (EOFError, KeyboardInterrupt):
                print()
                return 0
            self._feed(buffer, line)

    def _feed(self, buffer: list[str], line: str) -> None:
        if self._handle_multiline(buffer, line):
            return
        payload = " ".join(buffer) if buffer else line
        buffer.clear()
        self._record_history(payload)
        dispatch_line(self.ctx, self.registry, payload)

    @staticmethod
    def _handle_multiline(buffer: list[str], line: str) -> bool:
        stripped = line.rstrip()
        if stripped.endswith("\\"):
            buffer.append(stripped[:-1])
            return True
        if buffer:
            buffer.append(stripped)
        return False

    def _record_history(self, entry: str) -> None:
        if self.history_store:
            self.history_store.append(entry)
