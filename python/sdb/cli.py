"""sdb CLI entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List

from .commands import CommandRegistry, build_registry
from .context import DebuggerContext
from .errors import TraceFormatError
from .history import HistoryStore
from .output import emit_run_report
from .repl import DebuggerREPL, dispatch_line
from .word import SUPPORTED_WORD_BITS

LOG = logging.getLogger("sdb.cli")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Simple debugger with expression watchpoints")
    parser.add_argument("--state", type=Path, help="Machine state/trace JSON file to attach to")
    parser.add_argument(
        "--word-bits",
        type=int,
        choices=SUPPORTED_WORD_BITS,
        default=32,
        help="Machine word width when no state file is given (default 32)",
    )
    parser.add_argument("--json", action="store_true", help="Emit JSON output when supported")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("SDB_LOG", "WARNING"),
        help="Logging level (default WARNING, or $SDB_LOG)",
    )
    parser.add_argument(
        "-c",
        "--command",
        help="Execute a single command non-interactively (quote the command string)",
    )
    parser.add_argument("--script", type=Path, help="Execute commands from a file, one per line")
    parser.add_argument(
        "-b",
        "--batch",
        action="store_true",
        help="Run the machine to completion without a prompt",
    )
    parser.add_argument(
        "--history",
        type=Path,
        default=Path.home() / ".sdb-history",
        help="Path to command history file",
    )
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    ctx = DebuggerContext(word_bits=args.word_bits, json_output=args.json)
    if args.state is not None:
        try:
            ctx.load_state(str(args.state))
        except (OSError, TraceFormatError) as exc:
            print(f"error: cannot load {args.state}: {exc}", file=sys.stderr)
            return 2
    registry = build_registry()
    if args.batch:
        emit_run_report(ctx, ctx.loop.run(-1))
        return 0
    if args.script:
        return _run_script(ctx, registry, str(args.script))
    if args.command:
        return _run_single_command(ctx, registry, args.command)
    repl = DebuggerREPL(ctx, registry, history_store=HistoryStore(str(args.history)))
    try:
        return repl.run()
    except SystemExit as exc:
        return int(exc.code or 0)
    except KeyboardInterrupt:
        print()
        return 0


def _run_single_command(ctx: DebuggerContext, registry: CommandRegistry, command_line: str) -> int:
    try:
        return dispatch_line(ctx, registry, command_line)
    except SystemExit as exc:
        return int(exc.code or 0)


def _run_script(ctx: DebuggerContext, registry: CommandRegistry, path: str) -> int:
    """Run each non-comment line of ``path``; stops at the first failure."""
    try:
        lines = Path(path).expanduser().read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        print(f"error: cannot read script {path}: {exc}")
        return 2
    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        try:
            rc = dispatch_line(ctx, registry, line)
        except SystemExit as exc:
            return int(exc.code or 0)
        if rc != 0:
            LOG.error("script %s:%d failed: %s", path, lineno, line)
            return rc
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
