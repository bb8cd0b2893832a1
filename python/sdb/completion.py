"""prompt_toolkit completer for sdb."""

from __future__ import annotations

import shlex
from typing import Iterable, List

from prompt_toolkit.completion import CompleteEvent, Completer, Completion, PathCompleter
from prompt_toolkit.document import Document

from .commands import CommandRegistry
from .context import DebuggerContext

PATH_COMMANDS = {"load"}
SUBCOMMANDS = {"info": ("r", "w")}


def _normalise_tokens(text: str) -> List[str]:
    if not text:
        return []
    try:
        tokens = shlex.split(text, posix=True)
        trailing = text[-1].isspace()
    except ValueError:
        tokens = text.strip().split()
        trailing = text.endswith((" ", "\t"))
    if trailing:
        tokens.append("")
    return tokens


def _register_prefix(token: str) -> str:
    """Trailing ``$name`` fragment of an expression token, if any."""
    index = token.rfind("$")
    if index < 0:
        return ""
    fragment = token[index:]
    return fragment if fragment[1:].isalnum() or fragment == "$" else ""


class DebuggerCompleter(Completer):
    """Completes command names, ``$register`` references and state paths."""

    def __init__(self, ctx: DebuggerContext, registry: CommandRegistry) -> None:
        self.ctx = ctx
        self.registry = registry
        self._path = PathCompleter(expanduser=True)

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterable[Completion]:
        tokens = _normalise_tokens(document.text_before_cursor)
        if len(tokens) <= 1:
            prefix = tokens[0] if tokens else ""
            for entry in self._format_candidates(self._command_names(), prefix):
                yield Completion(entry, start_position=-len(prefix))
            return
        command = self.ctx.resolve_alias(tokens[0])
        resolved = self.registry.get(command)
        name = resolved.name if resolved else command
        prefix = tokens[-1]
        if name in PATH_COMMANDS:
            yield from self._path.get_completions(Document(prefix, cursor_position=len(prefix)), complete_event)
            return
        if name in SUBCOMMANDS and len(tokens) == 2:
            for entry in self._format_candidates(SUBCOMMANDS[name], prefix):
                yield Completion(entry, start_position=-len(prefix))
            return
        fragment = _register_prefix(prefix)
        if fragment:
            candidates = [f"${reg}" for reg in self.ctx.register_names()]
            for entry in self._format_candidates(candidates, fragment):
                yield Completion(entry, start_position=-len(fragment))

    def _command_names(self) -> List[str]:
        names: List[str] = []
        for command in self.registry.list_commands():
            names.append(command.name)
            names.extend(command.aliases)
        names.extend(self.ctx.list_aliases())
        return names

    @staticmethod
    def _format_candidates(candidates: Iterable[str], prefix: str = "") -> List[str]:
        needle = prefix.lower()
        ordered = [c for c in candidates if c.lower().startswith(needle)]
        return sorted(dict.fromkeys(ordered))


__all__ = ["DebuggerCompleter"]
