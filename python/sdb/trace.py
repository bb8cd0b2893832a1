"""Normalisation of trace records replayed by the target machine.

A trace record describes the architectural effect of one retired
instruction: the new ``pc``, the registers it wrote and at most one memory
access.  Records are JSON objects; integers may be given as numbers or as
decimal / ``0x`` strings.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

from .errors import TraceFormatError

_REQUIRED_FIELDS = ("seq", "pc")
_VALID_MEM_OPS = {"read", "write"}
_VALID_WIDTHS = {1, 2, 4, 8}


def coerce_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise TraceFormatError(f"{field} must be an integer, got boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        base = 16 if text.lower().startswith("0x") else 10
        try:
            return int(text, base)
        except ValueError:
            raise TraceFormatError(f"{field} is not a valid integer: {value!r}") from None
    raise TraceFormatError(f"{field} must be integer-compatible (got {value!r})")


def _coerce_regs(values: Any, mask: int) -> Dict[str, int]:
    if values is None:
        return {}
    if not isinstance(values, Mapping):
        raise TraceFormatError("regs must be an object mapping register names to values")
    regs: Dict[str, int] = {}
    for name, value in values.items():
        key = str(name).strip().lstrip("$")
        if not key:
            raise TraceFormatError("regs contains an empty register name")
        regs[key] = coerce_int(value, f"regs.{key}") & mask
    return regs


def coerce_mem_access(value: Any, mask: int) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise TraceFormatError("mem_access must be an object")
    op_raw = value.get("op")
    if op_raw is None:
        raise TraceFormatError("mem_access.op missing")
    op = str(op_raw).strip().lower()
    if op not in _VALID_MEM_OPS:
        raise TraceFormatError(f"mem_access.op must be one of {sorted(_VALID_MEM_OPS)}")
    if value.get("address") is None:
        raise TraceFormatError("mem_access.address missing")
    address = coerce_int(value.get("address"), "mem_access.address") & mask
    width_value = value.get("width")
    width = coerce_int(width_value, "mem_access.width") if width_value is not None else 4
    if width not in _VALID_WIDTHS:
        raise TraceFormatError(f"mem_access.width must be one of {sorted(_VALID_WIDTHS)}")
    result: Dict[str, Any] = {"op": op, "address": address, "width": width}
    if value.get("value") is not None:
        result["value"] = coerce_int(value["value"], "mem_access.value") & ((1 << (8 * width)) - 1)
    elif op == "write":
        raise TraceFormatError("mem_access.value required for writes")
    return result


def normalise_trace_record(record: Mapping[str, Any], *, mask: int = 0xFFFFFFFF) -> Dict[str, Any]:
    """Return a copy of ``record`` in the canonical schema.

    Unknown fields are carried over untouched so traces can hold notes such
    as the disassembled instruction.
    """
    if not isinstance(record, Mapping):
        raise TraceFormatError(f"trace record must be an object (got {type(record).__name__})")
    normalized: Dict[str, Any] = {}
    for field in _REQUIRED_FIELDS:
        if field not in record:
            raise TraceFormatError(f"trace record missing required field '{field}'")
        normalized[field] = coerce_int(record[field], field)
    normalized["pc"] &= mask

    regs = _coerce_regs(record.get("regs"), mask)
    if regs:
        normalized["regs"] = regs

    mem_access = coerce_mem_access(record.get("mem_access"), mask)
    if mem_access:
        normalized["mem_access"] = mem_access

    for key, value in record.items():
        if key in normalized or key in {"regs", "mem_access"}:
            continue
        normalized[key] = value
    return normalized


def decode_trace_records(records: Iterable[Mapping[str, Any]], *, mask: int = 0xFFFFFFFF) -> List[Dict[str, Any]]:
    """Normalise a trace and check that sequence numbers strictly increase."""
    parsed: List[Dict[str, Any]] = []
    last_seq = None
    for record in records:
        normalized = normalise_trace_record(record, mask=mask)
        seq = normalized["seq"]
        if last_seq is not None and seq <= last_seq:
            raise TraceFormatError(f"trace sequence numbers must increase (got {seq} after {last_seq})")
        last_seq = seq
        parsed.append(normalized)
    return parsed


__all__ = [
    "coerce_int",
    "coerce_mem_access",
    "normalise_trace_record",
    "decode_trace_records",
]
