"""
sdb: a simple debugger with an expression evaluator and watchpoints.

Expressions over numbers and ``$registers`` are tokenized by
:mod:`sdb.lexer`, evaluated by :mod:`sdb.evaluator` and can be installed as
watchpoints (:mod:`sdb.watchpoint`) that are re-checked after every step of
the attached machine.  Use ``python -m sdb`` to launch the shell.
"""

from __future__ import annotations

from .cli import main
from .evaluator import EvalResult, Evaluator
from .lexer import Token, TokenKind, tokenize
from .watchpoint import CheckReport, WatchpointPool, WatchTrigger

__all__ = [
    "main",
    "EvalResult",
    "Evaluator",
    "Token",
    "TokenKind",
    "tokenize",
    "CheckReport",
    "WatchpointPool",
    "WatchTrigger",
]
__version__ = "0.1.0"
