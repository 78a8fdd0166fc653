# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Editor wire shapes.

Converts internal diagnostics into the JSON-friendly structure editor
clients expect (`line`/`character`, both 0-based). The transport itself is
not part of this package.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from .diagnostics import Diagnostic
from .span import Position, Range

WIRE_SOURCE = "forge"


def _wire_position(pos: Position) -> Dict[str, int]:
	return {"line": pos.line, "character": pos.column}


def range_to_wire(rng: Range) -> Dict[str, Any]:
	return {"start": _wire_position(rng.start), "end": _wire_position(rng.end)}


def to_wire(d: Diagnostic) -> Dict[str, Any]:
	message = d.message
	if d.hint:
		message = f"{message}\n\n{d.hint}"
	return {
		"severity": d.severity,
		"range": range_to_wire(d.range),
		"message": message,
		"code": d.code,
		"source": WIRE_SOURCE if d.stage is None else f"{WIRE_SOURCE}:{d.stage}",
	}


def to_wire_list(diags: Iterable[Diagnostic], limit: int | None = None) -> List[Dict[str, Any]]:
	out = [to_wire(d) for d in diags]
	if limit is not None:
		out = out[: max(0, limit)]
	return out


__all__ = ["to_wire", "to_wire_list", "range_to_wire", "WIRE_SOURCE"]
