# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Runtime value model for the Forge interpreter.

Forge values map directly onto Python objects:

	null      -> None
	boolean   -> bool
	number    -> float (int accepted from builtins)
	string    -> str
	array     -> list
	object    -> dict[str, value]
	function  -> ForgeFunction

Conversions follow Forge rules, not Python ones: `True` prints as `True`,
whole numbers print without a trailing `.0`, and `"true"` / `"false"` strings
are boolean-like.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..core.span import Range

RUNTIME_ERROR_CODES = (
	"E_RUNTIME",
	"E_UNSUPPORTED",
	"E_TYPE",
	"E_NAME",
	"E_MODULE",
	"E_PERMISSION",
	"E_IO",
	"E_NET",
)


class ForgeRuntimeError(Exception):
	"""An error raised while executing a Forge program."""

	def __init__(self, code: str, message: str, range: Optional[Range] = None) -> None:
		super().__init__(message)
		self.code = code
		self.message = message
		self.range = range

	def __str__(self) -> str:
		return self.message


NativeImpl = Callable[[List[Any], Dict[str, Any]], Any]


class ForgeFunction:
	"""Anything a Forge program can call."""

	name: Optional[str] = None
	is_async: bool = False

	def call(self, args: List[Any], named: Dict[str, Any]) -> Any:
		raise NotImplementedError

	def member(self, name: str) -> Any:
		raise KeyError(name)

	def __repr__(self) -> str:
		return f"<{type(self).__name__} {self.name or '<anonymous>'}>"


class NativeFunction(ForgeFunction):
	"""
	A builtin implemented in Python.

	`members` lets a callable also act as a namespace (`inp` and `inp.var`,
	`Sys.exec` and `Sys.exec.async`).
	"""

	def __init__(self, name: str, impl: NativeImpl, members: Optional[Mapping[str, Any]] = None) -> None:
		self.name = name
		self.impl = impl
		self.members: Dict[str, Any] = dict(members or {})

	def call(self, args: List[Any], named: Dict[str, Any]) -> Any:
		return self.impl(list(args), dict(named))

	def member(self, name: str) -> Any:
		return self.members[name]


class LazyValue:
	"""A builtin value computed on every read (`Sys.cpu.usage`, `Crypto.generate.uuid`)."""

	def __init__(self, name: str, compute: Callable[[], Any]) -> None:
		self.name = name
		self.compute = compute

	def get(self) -> Any:
		return self.compute()


def wrap_callable(name: str, fn: Callable[..., Any]) -> NativeFunction:
	"""Adapt a plain Python callable (`fn(*args, **named)`) to a Forge builtin."""
	return NativeFunction(name, lambda args, named: fn(*args, **named))


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def is_number(v: Any) -> bool:
	return isinstance(v, (int, float)) and not isinstance(v, bool)


def is_object(v: Any) -> bool:
	return isinstance(v, dict)


def is_function(v: Any) -> bool:
	return isinstance(v, ForgeFunction)


def type_name(v: Any) -> str:
	if v is None:
		return "null"
	if isinstance(v, bool):
		return "boolean"
	if is_number(v):
		return "number"
	if isinstance(v, str):
		return "string"
	if isinstance(v, list):
		return "array"
	if isinstance(v, ForgeFunction):
		return "function"
	return "object"


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------

def format_number(n: Any) -> str:
	if isinstance(n, int):
		return str(n)
	if math.isnan(n):
		return "NaN"
	if math.isinf(n):
		return "Infinity" if n > 0 else "-Infinity"
	if n.is_integer() and abs(n) < 1e21:
		return str(int(n))
	return repr(n)


def to_json_value(v: Any) -> Any:
	"""Plain JSON-compatible copy of a value; functions become null."""
	if isinstance(v, bool) or v is None or isinstance(v, str):
		return v
	if is_number(v):
		if isinstance(v, float) and v.is_integer() and abs(v) < 1e21:
			return int(v)
		return v
	if isinstance(v, list):
		return [to_json_value(x) for x in v]
	if isinstance(v, dict):
		return {str(k): to_json_value(x) for k, x in v.items()}
	return None


def from_json_value(v: Any) -> Any:
	"""Normalize decoded JSON so numbers are floats like every other Forge number."""
	if isinstance(v, bool) or v is None or isinstance(v, str):
		return v
	if isinstance(v, int):
		return float(v)
	if isinstance(v, list):
		return [from_json_value(x) for x in v]
	if isinstance(v, dict):
		return {str(k): from_json_value(x) for k, x in v.items()}
	return v


def json_dumps(v: Any, indent: Optional[int] = None) -> str:
	if indent:
		return json.dumps(to_json_value(v), indent=indent, ensure_ascii=False)
	return json.dumps(to_json_value(v), separators=(",", ":"), ensure_ascii=False)


def to_string_value(v: Any) -> str:
	if v is None:
		return "null"
	if isinstance(v, str):
		return v
	if isinstance(v, bool):
		return "True" if v else "False"
	if is_number(v):
		if isinstance(v, float) and not math.isfinite(v):
			return "NaN"
		return format_number(v)
	if isinstance(v, list):
		return "[" + ", ".join(to_string_value(x) for x in v) + "]"
	if isinstance(v, ForgeFunction):
		return f"[function {v.name}]" if v.name else "[function]"
	return json_dumps(v)


def is_boolean_like(v: Any) -> Tuple[bool, bool]:
	"""Return `(ok, value)`; ok is False when `v` is not boolean-like."""
	if isinstance(v, bool):
		return True, v
	if isinstance(v, str):
		t = v.strip().lower()
		if t == "true":
			return True, True
		if t == "false":
			return True, False
	return False, False


def cast_to_boolean(v: Any, forced: Optional[bool] = None) -> bool:
	if forced is not None:
		return forced
	ok, value = is_boolean_like(v)
	if ok:
		return value
	if v is None:
		return False
	if is_number(v):
		return v != 0 and not math.isnan(v)
	if isinstance(v, str):
		return len(v) > 0
	return True


def deep_equals(a: Any, b: Any) -> bool:
	if a is b:
		return True
	if a is None or b is None:
		return False
	if type_name(a) != type_name(b):
		return False
	if isinstance(a, list):
		return len(a) == len(b) and all(deep_equals(x, y) for x, y in zip(a, b))
	if isinstance(a, dict):
		if len(a) != len(b):
			return False
		return all(k in b and deep_equals(a[k], b[k]) for k in a)
	if isinstance(a, ForgeFunction):
		return False
	return a == b


_NUMERIC_TEXT_RE = re.compile(r"^[+-]?\d+(\.\d+)?$")


def ensure_number(v: Any, range: Optional[Range] = None) -> float:
	if is_number(v):
		return v
	if isinstance(v, str) and _NUMERIC_TEXT_RE.match(v.strip()):
		return float(v.strip())
	raise ForgeRuntimeError("E_TYPE", f"Expected number, got {type_name(v)}.", range)


def ensure_string(v: Any, range: Optional[Range] = None) -> str:
	if isinstance(v, str):
		return v
	raise ForgeRuntimeError("E_TYPE", f"Expected string, got {type_name(v)}.", range)


def ensure_array(v: Any, range: Optional[Range] = None) -> list:
	if isinstance(v, list):
		return v
	raise ForgeRuntimeError("E_TYPE", f"Expected array, got {type_name(v)}.", range)


def ensure_object(v: Any, range: Optional[Range] = None) -> dict:
	if isinstance(v, dict):
		return v
	raise ForgeRuntimeError("E_TYPE", f"Expected object, got {type_name(v)}.", range)


def arg(args: Sequence[Any], index: int, default: Any = None) -> Any:
	return args[index] if index < len(args) else default


__all__ = [
	"RUNTIME_ERROR_CODES",
	"ForgeRuntimeError",
	"ForgeFunction",
	"NativeFunction",
	"LazyValue",
	"wrap_callable",
	"is_number",
	"is_object",
	"is_function",
	"type_name",
	"format_number",
	"to_json_value",
	"from_json_value",
	"json_dumps",
	"to_string_value",
	"is_boolean_like",
	"cast_to_boolean",
	"deep_equals",
	"ensure_number",
	"ensure_string",
	"ensure_array",
	"ensure_object",
	"arg",
]
