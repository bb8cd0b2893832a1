"""Tests for non-interactive sdb entry points."""

from __future__ import annotations

import json

from sdb.cli import _run_script, main
from sdb.commands import build_registry
from sdb.context import DebuggerContext

STATE = {
    "word_bits": 32,
    "memory": {"base": "0x80000000", "size": 4096, "init": [{"address": "0x80000100", "value": "0x2a"}]},
    "registers": {"sp": "0x80000100", "$a0": 1},
    "trace": [
        {"seq": 0, "pc": "0x80000004"},
        {"seq": 1, "pc": "0x80000008", "regs": {"a0": 3}},
        {"seq": 2, "pc": "0x8000000c"},
    ],
}


def _write_state(tmp_path):
    path = tmp_path / "machine.json"
    path.write_text(json.dumps(STATE), encoding="utf-8")
    return path


def test_run_script_executes_lines(tmp_path, capsys):
    script = tmp_path / "cmds.sdb"
    script.write_text("# setup\np 1 + 2\n\nw 4 * 2\ninfo w\n", encoding="utf-8")
    ctx = DebuggerContext()
    rc = _run_script(ctx, build_registry(), str(script))
    assert rc == 0
    out = capsys.readouterr().out
    assert "3 (0x00000003)" in out
    assert "Watchpoint 0: 4 * 2" in out


def test_run_script_stops_on_failure(tmp_path, capsys):
    script = tmp_path / "cmds.sdb"
    script.write_text("p 1/0\np 7\n", encoding="utf-8")
    rc = _run_script(DebuggerContext(), build_registry(), str(script))
    assert rc == 1
    assert "7 (0x00000007)" not in capsys.readouterr().out


def test_run_script_missing_file(tmp_path, capsys):
    rc = _run_script(DebuggerContext(), build_registry(), str(tmp_path / "missing.sdb"))
    assert rc == 2
    assert "cannot read script" in capsys.readouterr().out


def test_run_script_quit_ends_early(tmp_path, capsys):
    script = tmp_path / "cmds.sdb"
    script.write_text("q\np 7\n", encoding="utf-8")
    assert _run_script(DebuggerContext(), build_registry(), str(script)) == 0
    assert "7 (0x00000007)" not in capsys.readouterr().out


def test_main_single_command_with_state(tmp_path, capsys):
    state = _write_state(tmp_path)
    assert main(["--state", str(state), "-c", "p *$sp + $a0"]) == 0
    assert "43 (0x0000002b)" in capsys.readouterr().out


def test_main_json_output(capsys):
    assert main(["--json", "-c", "p 0 - 1"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["result"]["value"] == 0xFFFFFFFF
    assert payload["result"]["signed"] == -1


def test_main_word_bits(capsys):
    assert main(["--word-bits", "64", "-c", "p 0 - 1"]) == 0
    assert "0xffffffffffffffff" in capsys.readouterr().out


def test_main_unknown_command(capsys):
    assert main(["-c", "frobnicate"]) == 1
    assert "Unknown command 'frobnicate'" in capsys.readouterr().out


def test_main_batch_runs_to_end(tmp_path, capsys):
    state = _write_state(tmp_path)
    assert main(["--state", str(state), "--batch"]) == 0
    out = capsys.readouterr().out
    assert "after 3 step(s) [end]" in out
    assert "pc=0x8000000c" in out


def test_main_rejects_bad_state(tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert main(["--state", str(bad), "-c", "p 1"]) == 2
    assert "cannot load" in capsys.readouterr().err


def test_main_script_with_watch_and_continue(tmp_path, capsys):
    state = _write_state(tmp_path)
    script = tmp_path / "run.sdb"
    script.write_text("w $a0\nc\nc\n", encoding="utf-8")
    assert main(["--state", str(state), "--script", str(script)]) == 0
    out = capsys.readouterr().out
    assert "Old value = 1 (0x00000001)" in out
    assert "New value = 3 (0x00000003)" in out
    assert "[end]" in out
