"""Step loop that re-checks watchpoints after every retired instruction."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Protocol

from .errors import SdbError
from .watchpoint import InvalidWatch, WatchpointPool, WatchTrigger

LOGGER = logging.getLogger("sdb.execution")


class Steppable(Protocol):
    def step(self) -> bool: ...


class ExecState(Enum):
    RUNNING = "running"
    STOP = "stop"
    END = "end"
    ABORT = "abort"
    QUIT = "quit"


@dataclass
class RunReport:
    steps: int = 0
    state: ExecState = ExecState.STOP
    triggers: List[WatchTrigger] = field(default_factory=list)
    warnings: List[InvalidWatch] = field(default_factory=list)
    message: str = ""


class ExecutionLoop:
    """Drives the machine and halts when a watchpoint fires."""

    def __init__(self, machine: Steppable, watchpoints: WatchpointPool) -> None:
        self.machine = machine
        self.watchpoints = watchpoints
        self.state = ExecState.STOP
        self.total_steps = 0

    def run(self, count: int = -1) -> RunReport:
        """Retire up to ``count`` steps (all remaining when negative)."""
        report = RunReport()
        if self.state in (ExecState.END, ExecState.ABORT, ExecState.QUIT):
            report.state = self.state
            report.message = "Program execution has ended. To restart the program, exit and run again."
            return report

        self.state = ExecState.RUNNING
        while count < 0 or report.steps < count:
            try:
                retired = self.machine.step()
            except SdbError as exc:
                LOGGER.error("step failed after %d instructions: %s", self.total_steps, exc)
                self.state = ExecState.ABORT
                report.message = f"machine aborted: {exc}"
                break
            if not retired:
                self.state = ExecState.END
                report.message = "machine reached the end of its trace"
                break
            report.steps += 1
            self.total_steps += 1
            check = self.watchpoints.check_all()
            report.warnings.extend(check.invalid)
            if check.triggered:
                report.triggers.extend(check.triggers)
                self.state = ExecState.STOP
                break

        if self.state is ExecState.RUNNING:
            self.state = ExecState.STOP
        report.state = self.state
        LOGGER.debug("run finished: %d steps, state=%s", report.steps, self.state.value)
        return report


__all__ = ["ExecState", "RunReport", "ExecutionLoop", "Steppable"]
