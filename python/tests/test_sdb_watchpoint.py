"""Tests for the watchpoint pool."""

from __future__ import annotations

import logging
import threading

import pytest

from sdb.errors import CapacityError, EvalError, LexError, NotFoundError
from sdb.evaluator import Evaluator
from sdb.watchpoint import CAPACITY, WatchpointPool, WatchTrigger


def test_watch_records_initial_value(pool):
    wp = pool.watch("1+1")
    assert wp.id == 0
    assert wp.last_value == 2
    assert pool.get(0).expression == "1+1"


def test_check_without_changes_reports_nothing(pool):
    pool.watch("1+1")
    pool.watch("$a0")
    report = pool.check_all()
    assert not report.triggered
    assert report.triggers == []
    assert report.invalid == []


def test_check_reports_transition_and_updates_value(machine, pool):
    wp = pool.watch("$a0 + 1")
    assert wp.last_value == 2
    machine.registers.set("a0", 2)
    report = pool.check_all()
    assert report.triggers == [WatchTrigger(wp.id, "$a0 + 1", 2, 3)]
    assert pool.get(wp.id).last_value == 3
    assert not pool.check_all().triggered


def test_memory_watch_triggers_on_write(machine, pool):
    pool.watch("*$sp")
    machine.memory.write(0x80000100, 4, 7)
    report = pool.check_all()
    assert [(t.old_value, t.new_value) for t in report.triggers] == [(0xDEADBEEF, 7)]


def test_list_is_most_recent_first(pool):
    pool.watch("1")
    pool.watch("2")
    pool.watch("3")
    assert pool.list_watchpoints() == [(2, "3"), (1, "2"), (0, "1")]


def test_capacity_exhaustion_leaves_pool_untouched(pool):
    for idx in range(CAPACITY):
        assert pool.watch(str(idx)).id == idx
    before = pool.list_watchpoints()
    with pytest.raises(CapacityError):
        pool.watch("99")
    assert pool.list_watchpoints() == before
    assert pool.free_count == 0
    assert len(pool) == CAPACITY


def test_delete_returns_slot_to_free_list(pool):
    first = pool.watch("1")
    second = pool.watch("2")
    removed = pool.delete(first.id)
    assert removed.expression == "1"
    assert pool.list_watchpoints() == [(second.id, "2")]
    reused = pool.watch("3")
    assert reused.id == first.id
    assert pool.free_count == CAPACITY - 2


def test_delete_from_middle_of_active_list(pool):
    for text in ("1", "2", "3"):
        pool.watch(text)
    pool.delete(1)
    assert [wid for wid, _ in pool.list_watchpoints()] == [2, 0]


def test_delete_twice_and_unknown_ids(pool):
    wp = pool.watch("1")
    pool.delete(wp.id)
    with pytest.raises(NotFoundError):
        pool.delete(wp.id)
    with pytest.raises(NotFoundError):
        pool.delete(5)
    with pytest.raises(NotFoundError):
        pool.delete(-1)
    with pytest.raises(NotFoundError):
        pool.delete(CAPACITY)


def test_invalid_expression_is_rejected_without_allocating(pool):
    with pytest.raises(LexError):
        pool.watch("1 @ 2")
    with pytest.raises(EvalError):
        pool.watch("$nope")
    assert pool.list_watchpoints() == []
    assert pool.free_count == CAPACITY


def test_invalid_watch_is_a_warning_and_checks_continue(machine, caplog):
    state = {"broken": False}
    base = Evaluator(lookup_register=machine.lookup_register, read_memory=machine.read_memory)

    def evaluate(text):
        if state["broken"] and text == "$a0":
            return base.expr("1/0")
        return base.expr(text)

    pool = WatchpointPool(evaluate)
    broken = pool.watch("$a0")
    healthy = pool.watch("$sp")
    state["broken"] = True
    machine.registers.set("sp", 0x80000200)
    with caplog.at_level(logging.WARNING, logger="sdb.watchpoint"):
        report = pool.check_all()
    assert [w.id for w in report.invalid] == [broken.id]
    assert [t.id for t in report.triggers] == [healthy.id]
    assert pool.get(broken.id).last_value == 1
    assert "invalid watch expression" in caplog.text


def test_init_resets_everything(pool):
    pool.watch("1")
    pool.watch("2")
    pool.init()
    assert pool.list_watchpoints() == []
    assert pool.free_count == CAPACITY
    assert pool.watch("3").id == 0


def test_slots_partition_the_pool(pool):
    for idx in range(10):
        pool.watch(str(idx))
    for wid in (0, 3, 9, 5):
        pool.delete(wid)
    assert len(pool) + pool.free_count == CAPACITY
    with pytest.raises(NotFoundError):
        pool.get(3)


def test_readers_see_consistent_lists_while_writers_run():
    pool = WatchpointPool(Evaluator().expr)
    errors = []
    stop = threading.Event()

    def writer(tag):
        try:
            for idx in range(200):
                wp = pool.watch(f"{tag} + {idx}")
                pool.delete(wp.id)
        except Exception as exc:  # pragma: no cover - reported below
            errors.append(exc)

    def reader():
        while not stop.is_set():
            ids = [wid for wid, _ in pool.list_watchpoints()]
            if len(ids) != len(set(ids)) or len(ids) > CAPACITY:
                errors.append(AssertionError(ids))
            if len(pool.snapshot()) > CAPACITY:
                errors.append(AssertionError("snapshot too long"))

    writers = [threading.Thread(target=writer, args=(tag,)) for tag in range(4)]
    watcher = threading.Thread(target=reader)
    watcher.start()
    for thread in writers:
        thread.start()
    for thread in writers:
        thread.join()
    stop.set()
    watcher.join()
    assert errors == []
    assert len(pool) == 0
    assert pool.free_count == CAPACITY
