"""Fixed-capacity watchpoint pool.

Slots live in a preallocated array and are threaded onto one of two singly
linked lists through their ``next`` index: the free list and the active list
(newest first).  ``-1`` terminates a list.  A slot's id is its array index.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .errors import CapacityError, ExpressionError, NotFoundError
from .evaluator import EvalResult

LOGGER = logging.getLogger("sdb.watchpoint")

CAPACITY = 32
NIL = -1

ExpressionEvaluator = Callable[[str], EvalResult]


@dataclass
class _Slot:
    id: int
    expression: str = ""
    last_value: int = 0
    next: int = NIL
    active: bool = False


@dataclass(frozen=True)
class Watchpoint:
    id: int
    expression: str
    last_value: int


@dataclass(frozen=True)
class WatchTrigger:
    id: int
    expression: str
    old_value: int
    new_value: int


@dataclass(frozen=True)
class InvalidWatch:
    id: int
    expression: str
    error: Optional[ExpressionError]


@dataclass
class CheckReport:
    triggers: List[WatchTrigger] = field(default_factory=list)
    invalid: List[InvalidWatch] = field(default_factory=list)

    @property
    def triggered(self) -> bool:
        return bool(self.triggers)


class WatchpointPool:
    """Watch expressions bound to their last observed value."""

    def __init__(self, evaluate: ExpressionEvaluator, *, capacity: int = CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._evaluate = evaluate
        self.capacity = capacity
        self._slots = [_Slot(id=index) for index in range(capacity)]
        self._free_head = NIL
        self._active_head = NIL
        self._lock = threading.RLock()
        self.init()

    def init(self) -> None:
        """Return every slot to the free list."""
        with self._lock:
            for index, slot in enumerate(self._slots):
                slot.expression = ""
                slot.last_value = 0
                slot.active = False
                slot.next = index + 1 if index + 1 < self.capacity else NIL
            self._free_head = 0
            self._active_head = NIL

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for _ in self._walk(self._active_head))

    @property
    def free_count(self) -> int:
        with self._lock:
            return sum(1 for _ in self._walk(self._free_head))

    def _walk(self, head: int):
        index = head
        while index != NIL:
            slot = self._slots[index]
            yield slot
            index = slot.next

    def watch(self, expression: str) -> Watchpoint:
        """Install ``expression`` and record its current value.

        Raises ``CapacityError`` when every slot is in use and the
        expression's own error when it does not evaluate; in both cases the
        pool is left untouched.
        """
        with self._lock:
            if self._free_head == NIL:
                raise CapacityError(f"no free watchpoint slots (capacity {self.capacity})")
            result = self._evaluate(expression)
            if not result.ok:
                raise result.error or ExpressionError(f"invalid expression: {expression}")
            slot = self._slots[self._free_head]
            self._free_head = slot.next
            slot.next = self._active_head
            self._active_head = slot.id
            slot.expression = expression
            slot.last_value = result.value
            slot.active = True
            LOGGER.debug("watchpoint %d installed: %s = %#x", slot.id, expression, result.value)
            return Watchpoint(slot.id, slot.expression, slot.last_value)

    def list_watchpoints(self) -> List[Tuple[int, str]]:
        with self._lock:
            return [(slot.id, slot.expression) for slot in self._walk(self._active_head)]

    def snapshot(self) -> List[Watchpoint]:
        with self._lock:
            return [Watchpoint(slot.id, slot.expression, slot.last_value) for slot in self._walk(self._active_head)]

    def get(self, watch_id: int) -> Watchpoint:
        with self._lock:
            slot = self._active_slot(watch_id)
            return Watchpoint(slot.id, slot.expression, slot.last_value)

    def _active_slot(self, watch_id: int) -> _Slot:
        if not 0 <= watch_id < self.capacity or not self._slots[watch_id].active:
            raise NotFoundError(f"no watchpoint number {watch_id}")
        return self._slots[watch_id]

    def delete(self, watch_id: int) -> Watchpoint:
        """Unlink watchpoint ``watch_id`` and return it to the free list."""
        with self._lock:
            slot = self._active_slot(watch_id)
            if self._active_head == slot.id:
                self._active_head = slot.next
            else:
                prev = self._slots[self._active_head]
                while prev.next != slot.id:
                    prev = self._slots[prev.next]
                prev.next = slot.next
            removed = Watchpoint(slot.id, slot.expression, slot.last_value)
            slot.active = False
            slot.next = self._free_head
            self._free_head = slot.id
            LOGGER.debug("watchpoint %d deleted: %s", slot.id, slot.expression)
            return removed

    def check_all(self) -> CheckReport:
        """Re-evaluate every active watchpoint and collect value changes."""
        report = CheckReport()
        with self._lock:
            for slot in self._walk(self._active_head):
                result = self._evaluate(slot.expression)
                if not result.ok:
                    LOGGER.warning("invalid watch expression %d: %s (%s)", slot.id, slot.expression, result.error)
                    report.invalid.append(InvalidWatch(slot.id, slot.expression, result.error))
                    continue
                if result.value != slot.last_value:
                    report.triggers.append(WatchTrigger(slot.id, slot.expression, slot.last_value, result.value))
                    slot.last_value = result.value
        return report


__all__ = [
    "CAPACITY",
    "Watchpoint",
    "WatchTrigger",
    "InvalidWatch",
    "CheckReport",
    "WatchpointPool",
]
