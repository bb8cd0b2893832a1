"""Debugger context shared by all commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from .evaluator import EvalResult, Evaluator
from .execution import ExecutionLoop
from .target import TraceMachine, load_machine
from .watchpoint import CAPACITY, WatchpointPool
from .word import WordSpec

LOGGER = logging.getLogger("sdb.context")


@dataclass
class DebuggerContext:
    """Holds shared CLI debugger state."""

    word_bits: int = 32
    json_output: bool = False
    state_path: Optional[Path] = None
    watch_capacity: int = CAPACITY
    aliases: Dict[str, str] = field(default_factory=dict)
    _machine: Optional[TraceMachine] = field(default=None, init=False, repr=False)
    _evaluator: Optional[Evaluator] = field(default=None, init=False, repr=False)
    _watchpoints: Optional[WatchpointPool] = field(default=None, init=False, repr=False)
    _loop: Optional[ExecutionLoop] = field(default=None, init=False, repr=False)

    def attach(self, machine: TraceMachine) -> None:
        """Bind the debugger to ``machine`` with a fresh watchpoint pool."""
        self._machine = machine
        self.word_bits = machine.word.bits
        self._evaluator = Evaluator(
            lookup_register=machine.lookup_register,
            read_memory=machine.read_memory,
            word=machine.word,
        )
        self._watchpoints = WatchpointPool(self._evaluator.expr, capacity=self.watch_capacity)
        self._loop = ExecutionLoop(machine, self._watchpoints)

    def load_state(self, path: str) -> TraceMachine:
        machine = load_machine(path)
        self.state_path = Path(path).expanduser()
        self.attach(machine)
        return machine

    def ensure_machine(self) -> TraceMachine:
        """Attach an empty machine if nothing was loaded."""
        if self._machine is None:
            if self.state_path is not None:
                return self.load_state(str(self.state_path))
            LOGGER.debug("no state file, attaching an empty %d-bit machine", self.word_bits)
            self.attach(TraceMachine(word=WordSpec(self.word_bits)))
        return self._machine

    @property
    def machine(self) -> TraceMachine:
        return self.ensure_machine()

    @property
    def evaluator(self) -> Evaluator:
        self.ensure_machine()
        return self._evaluator

    @property
    def watchpoints(self) -> WatchpointPool:
        self.ensure_machine()
        return self._watchpoints

    @property
    def loop(self) -> ExecutionLoop:
        self.ensure_machine()
        return self._loop

    @property
    def word(self) -> WordSpec:
        return self.evaluator.word

    def evaluate(self, text: str) -> EvalResult:
        return self.evaluator.expr(text)

    def resolve_alias(self, name: str) -> str:
        return self.aliases.get(name, name)

    def set_alias(self, alias: str, command: str) -> None:
        if alias == command:
            self.aliases.pop(alias, None)
            return
        self.aliases[alias] = command

    def list_aliases(self) -> Dict[str, str]:
        return dict(self.aliases)

    def register_names(self) -> list[str]:
        return self.machine.registers.names()
