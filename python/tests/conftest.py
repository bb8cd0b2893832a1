"""
Pytest configuration and fixtures for sdb tests.
"""
import sys
from pathlib import Path

import pytest

PYTHON_SRC = Path(__file__).resolve().parents[1]
if str(PYTHON_SRC) not in sys.path:
    sys.path.insert(0, str(PYTHON_SRC))

from sdb.evaluator import Evaluator  # noqa: E402
from sdb.target import TraceMachine  # noqa: E402
from sdb.watchpoint import WatchpointPool  # noqa: E402


@pytest.fixture
def machine():
    """Empty 32-bit machine with a few registers and memory words set."""
    m = TraceMachine()
    m.registers.set("a0", 1)
    m.registers.set("sp", 0x80000100)
    m.registers.set("pc", 0x80000000)
    m.memory.write(0x80000100, 4, 0xDEADBEEF)
    m.memory.write(0x80000104, 4, 0x80000100)
    return m


@pytest.fixture
def evaluator(machine):
    return Evaluator(lookup_register=machine.lookup_register, read_memory=machine.read_memory)


@pytest.fixture
def pool(evaluator):
    return WatchpointPool(evaluator.expr)
