"""Trace-replay target machine.

The debugger needs three things from the machine it is attached to: named
register lookup, memory reads and a single-step primitive.  ``TraceMachine``
provides them by replaying a recorded trace over a register file and a flat
little-endian guest memory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import MemoryAccessError, TraceFormatError
from .trace import coerce_int, coerce_mem_access, decode_trace_records
from .word import WORD32, WordSpec

LOGGER = logging.getLogger("sdb.target")

GPR_NAMES: Tuple[str, ...] = (
    "zero", "ra", "sp", "gp", "tp", "t0", "t1", "t2",
    "s0", "s1", "a0", "a1", "a2", "a3", "a4", "a5",
    "a6", "a7", "s2", "s3", "s4", "s5", "s6", "s7",
    "s8", "s9", "s10", "s11", "t3", "t4", "t5", "t6",
)

DEFAULT_MEMORY_BASE = 0x80000000
DEFAULT_MEMORY_SIZE = 0x100000


def _register_aliases() -> Dict[str, int]:
    aliases = {name: idx for idx, name in enumerate(GPR_NAMES)}
    aliases.update({f"x{idx}": idx for idx in range(len(GPR_NAMES))})
    aliases["0"] = 0
    aliases["fp"] = GPR_NAMES.index("s0")
    return aliases


_ALIASES = _register_aliases()


class RegisterFile:
    """General purpose registers plus ``pc``; ``zero`` is hardwired."""

    def __init__(self, word: WordSpec = WORD32) -> None:
        self.word = word
        self._gprs: List[int] = [0] * len(GPR_NAMES)
        self.pc = 0

    @staticmethod
    def names() -> List[str]:
        return list(GPR_NAMES) + ["pc"]

    def lookup(self, name: str) -> Tuple[int, bool]:
        key = name.lower()
        if key == "pc":
            return self.pc, True
        index = _ALIASES.get(key)
        if index is None:
            return 0, False
        return self._gprs[index], True

    def set(self, name: str, value: int) -> None:
        key = name.lower()
        if key == "pc":
            self.pc = self.word.wrap(value)
            return
        index = _ALIASES.get(key)
        if index is None:
            raise KeyError(name)
        if index:
            self._gprs[index] = self.word.wrap(value)

    def items(self) -> List[Tuple[str, int]]:
        return list(zip(GPR_NAMES, self._gprs)) + [("pc", self.pc)]


class GuestMemory:
    """Flat little-endian memory mapped at ``[base, base + size)``."""

    def __init__(self, base: int = DEFAULT_MEMORY_BASE, size: int = DEFAULT_MEMORY_SIZE) -> None:
        if size <= 0:
            raise ValueError("memory size must be positive")
        self.base = base
        self.size = size
        self._data = bytearray(size)

    def in_range(self, address: int, width: int) -> bool:
        return self.base <= address and address + width <= self.base + self.size

    def _offset(self, address: int, width: int) -> int:
        if not self.in_range(address, width):
            raise MemoryAccessError(
                f"address 0x{address:08x} is out of bound of guest memory "
                f"[0x{self.base:08x}, 0x{self.base + self.size - 1:08x}]"
            )
        return address - self.base

    def read(self, address: int, width: int) -> int:
        offset = self._offset(address, width)
        return int.from_bytes(self._data[offset : offset + width], "little")

    def write(self, address: int, width: int, value: int) -> None:
        offset = self._offset(address, width)
        self._data[offset : offset + width] = (value & ((1 << (8 * width)) - 1)).to_bytes(width, "little")


class TraceMachine:
    """Machine whose every step applies the next recorded trace entry."""

    def __init__(
        self,
        *,
        word: WordSpec = WORD32,
        memory: Optional[GuestMemory] = None,
        trace: Sequence[Mapping[str, Any]] = (),
    ) -> None:
        self.word = word
        self.registers = RegisterFile(word)
        self.memory = memory or GuestMemory()
        self.trace = decode_trace_records(trace, mask=word.mask)
        self.cursor = 0

    @property
    def finished(self) -> bool:
        return self.cursor >= len(self.trace)

    @property
    def retired(self) -> int:
        return self.cursor

    def lookup_register(self, name: str) -> Tuple[int, bool]:
        return self.registers.lookup(name)

    def read_memory(self, address: int, width: int) -> int:
        return self.memory.read(address, width)

    def step(self) -> bool:
        """Retire one instruction; False once the trace is exhausted."""
        if self.finished:
            return False
        record = self.trace[self.cursor]
        for name, value in record.get("regs", {}).items():
            try:
                self.registers.set(name, value)
            except KeyError:
                raise TraceFormatError(f"trace record {record['seq']}: unknown register '{name}'") from None
        mem = record.get("mem_access")
        if mem and mem["op"] == "write":
            self.memory.write(mem["address"], mem["width"], mem["value"])
        self.registers.pc = record["pc"]
        self.cursor += 1
        LOGGER.debug("retired seq=%d pc=%s", record["seq"], self.word.format(record["pc"]))
        return True


def machine_from_dict(data: Mapping[str, Any]) -> TraceMachine:
    """Build a machine from the JSON state-file layout."""
    if not isinstance(data, Mapping):
        raise TraceFormatError("machine state must be an object")
    bits = coerce_int(data.get("word_bits", 32), "word_bits")
    try:
        word = WordSpec(bits)
    except ValueError as exc:
        raise TraceFormatError(str(exc)) from None

    mem_spec = data.get("memory") or {}
    if not isinstance(mem_spec, Mapping):
        raise TraceFormatError("memory must be an object")
    base = coerce_int(mem_spec.get("base", DEFAULT_MEMORY_BASE), "memory.base")
    size = coerce_int(mem_spec.get("size", DEFAULT_MEMORY_SIZE), "memory.size")
    if size <= 0:
        raise TraceFormatError("memory.size must be positive")
    memory = GuestMemory(base, size)

    trace = data.get("trace") or []
    if not isinstance(trace, list):
        raise TraceFormatError("trace must be a list")
    machine = TraceMachine(word=word, memory=memory, trace=trace)

    for idx, entry in enumerate(mem_spec.get("init") or []):
        access = coerce_mem_access({**entry, "op": "write"}, word.mask) if isinstance(entry, Mapping) else None
        if access is None:
            raise TraceFormatError(f"memory.init[{idx}] must be an object")
        try:
            memory.write(access["address"], access["width"], access["value"])
        except MemoryAccessError as exc:
            raise TraceFormatError(f"memory.init[{idx}]: {exc}") from None

    registers = data.get("registers") or {}
    if not isinstance(registers, Mapping):
        raise TraceFormatError("registers must be an object")
    for name, value in registers.items():
        key = str(name).lstrip("$")
        try:
            machine.registers.set(key, coerce_int(value, f"registers.{key}"))
        except KeyError:
            raise TraceFormatError(f"unknown register '{name}'") from None
    return machine


def load_machine(path: str | Path) -> TraceMachine:
    """Load a machine state file (JSON)."""
    source = Path(path).expanduser()
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise TraceFormatError(f"{source}: {exc}") from None
    machine = machine_from_dict(data)
    LOGGER.info("loaded %s: %d trace records", source, len(machine.trace))
    return machine


__all__ = [
    "GPR_NAMES",
    "RegisterFile",
    "GuestMemory",
    "TraceMachine",
    "machine_from_dict",
    "load_machine",
]
