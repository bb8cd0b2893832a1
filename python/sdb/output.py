"""Output helpers for sdb."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from tabulate import tabulate

from .context import DebuggerContext
from .execution import RunReport
from .watchpoint import Watchpoint, WatchTrigger
from .word import WordSpec


def _json_dump(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, indent=2, sort_keys=True)


def emit_result(ctx: DebuggerContext, *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Emit a successful command result."""
    if ctx.json_output:
        payload: Dict[str, Any] = {"status": "ok"}
        if data is not None:
            payload["result"] = data
        else:
            payload["message"] = message
        print(_json_dump(payload))
    else:
        print(message)


def emit_error(ctx: DebuggerContext, *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Emit an error message respecting JSON mode."""
    payload: Dict[str, Any] = {"status": "error", "error": message}
    if data:
        payload["details"] = dict(data)
    if ctx.json_output:
        print(_json_dump(payload))
    else:
        print(f"error: {message}")


def emit_warning(ctx: DebuggerContext, *, message: str) -> None:
    if ctx.json_output:
        print(_json_dump({"status": "warning", "warning": message}))
    else:
        print(f"warning: {message}")


def format_value(word: WordSpec, value: int) -> str:
    """``%u`` rendering followed by the hex pattern."""
    return f"{word.wrap(value)} ({word.format(value)})"


def render_register_table(registers: Iterable[Tuple[str, int]], word: WordSpec) -> str:
    rows = [(f"${name}", word.format(value), word.signed(value)) for name, value in registers]
    return tabulate(rows, headers=["Register", "Hex", "Signed"], tablefmt="plain")


def render_watch_table(watches: Sequence[Watchpoint], word: WordSpec) -> str:
    if not watches:
        return "No watchpoints."
    rows = [(wp.id, wp.expression, format_value(word, wp.last_value)) for wp in watches]
    return tabulate(rows, headers=["Num", "What", "Value"], tablefmt="plain")


def render_memory_words(start: int, words: Sequence[int], word: WordSpec) -> List[str]:
    """Four 32-bit words per line prefixed with their address."""
    lines: List[str] = []
    for offset in range(0, len(words), 4):
        chunk = " ".join(f"0x{value & 0xFFFFFFFF:08x}" for value in words[offset : offset + 4])
        lines.append(f"{word.format(start + offset * 4)}: {chunk}")
    return lines


def trigger_lines(trigger: WatchTrigger, word: WordSpec) -> List[str]:
    return [
        f"Watchpoint {trigger.id}: {trigger.expression}",
        f"Old value = {format_value(word, trigger.old_value)}",
        f"New value = {format_value(word, trigger.new_value)}",
    ]


def run_report_payload(report: RunReport) -> Dict[str, Any]:
    return {
        "steps": report.steps,
        "state": report.state.value,
        "triggers": [
            {"id": t.id, "expr": t.expression, "old": t.old_value, "new": t.new_value} for t in report.triggers
        ],
        "invalid": [{"id": w.id, "expr": w.expression, "error": str(w.error)} for w in report.warnings],
        "message": report.message,
    }


def emit_run_report(ctx: DebuggerContext, report: RunReport) -> None:
    """Print what happened during a ``c``/``si`` run."""
    word = ctx.word
    if ctx.json_output:
        payload = run_report_payload(report)
        payload["pc"] = word.format(ctx.machine.registers.pc)
        emit_result(ctx, message="run", data=payload)
        return
    seen = set()
    for invalid in report.warnings:
        if invalid.id in seen:
            continue
        seen.add(invalid.id)
        emit_warning(ctx, message=f"Invalid expression in watchpoint {invalid.id}: {invalid.expression}")
    for trigger in report.triggers:
        for line in trigger_lines(trigger, word):
            print(line)
    if report.message:
        print(report.message)
    print(f"stopped at pc={word.format(ctx.machine.registers.pc)} after {report.steps} step(s) [{report.state.value}]")


__all__ = [
    "emit_result",
    "emit_error",
    "emit_warning",
    "format_value",
    "render_register_table",
    "render_watch_table",
    "render_memory_words",
    "trigger_lines",
    "emit_run_report",
]
