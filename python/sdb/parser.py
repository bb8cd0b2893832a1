"""Command-line splitting helpers for sdb."""

from __future__ import annotations

import shlex
from typing import List

PARSE_ERROR_MARKER = "#parse-error"


def split_command(line: str) -> List[str]:
    """Split a command line into argv tokens using shlex rules.

    Unbalanced quotes yield ``[line, "#parse-error:<reason>"]`` so the caller
    can report the problem instead of dispatching.
    """
    if not line:
        return []
    try:
        return shlex.split(line, comments=False, posix=True)
    except ValueError as exc:
        return [line.strip(), f"{PARSE_ERROR_MARKER}:{exc}"]


def is_parse_error(argv: List[str]) -> bool:
    return len(argv) == 2 and argv[1].startswith(PARSE_ERROR_MARKER)


def join_expression(argv: List[str]) -> str:
    """Rebuild an expression that the shell split on whitespace."""
    return " ".join(argv).strip()
