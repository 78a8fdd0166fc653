# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Builtin registry: names, types, signatures and docs of every Forge builtin.

The tree is a tagged variant of three node shapes:

- `BuiltinNamespace`: a bag of named children (`Sys`, `Sys.cpu`, ...)
- `BuiltinFunction`: something callable; it may also own `members`, which is
  how `inp` / `inp.var` and `Sys.exec` / `Sys.exec.async` coexist
- `BuiltinValue`: a read-only value (`Math.PI`, `Sys.cpu.cores`)

Resolver typing, lint spelling checks, completion member lists and hover docs
all read this one table. The runtime implementations live in
`forge.runtime.builtins`; this module never executes anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .modules import FORGE_MODULES
from .types import (
	ForgeType,
	T_ANY,
	T_BOOLEAN,
	T_NUMBER,
	T_STRING,
	T_VOID,
	t_array,
	t_function,
	t_object,
	t_union,
	type_to_string,
)


@dataclass(frozen=True)
class BuiltinParam:
	name: str
	type: ForgeType
	optional: bool = False


@dataclass
class BuiltinNamespace:
	name: str
	module: Optional[str]
	children: Dict[str, "BuiltinEntry"] = field(default_factory=dict)
	doc: Optional[str] = None
	path: str = ""

	@property
	def signature(self) -> str:
		return self.path


@dataclass
class BuiltinFunction:
	name: str
	module: Optional[str]
	params: Tuple[BuiltinParam, ...]
	returns: ForgeType
	doc: Optional[str] = None
	members: Dict[str, "BuiltinEntry"] = field(default_factory=dict)
	path: str = ""

	@property
	def signature(self) -> str:
		parts = []
		for p in self.params:
			mark = "?" if p.optional else ""
			parts.append(f"{p.name}{mark}: {type_to_string(p.type)}")
		return f"{self.path}({', '.join(parts)}): {type_to_string(self.returns)}"

	@property
	def param_names(self) -> List[str]:
		return [p.name for p in self.params]

	@property
	def param_types(self) -> List[ForgeType]:
		return [p.type for p in self.params]


@dataclass
class BuiltinValue:
	name: str
	module: Optional[str]
	type: ForgeType
	doc: Optional[str] = None
	path: str = ""

	@property
	def signature(self) -> str:
		return f"{self.path}: {type_to_string(self.type)}"


BuiltinEntry = Union[BuiltinNamespace, BuiltinFunction, BuiltinValue]

# Durations travel as their literal text ("1s") or as plain milliseconds.
T_DURATION = t_union([T_NUMBER, T_STRING])


def _p(name: str, t: ForgeType, optional: bool = False) -> BuiltinParam:
	return BuiltinParam(name, t, optional)


def _ns(name: str, module: Optional[str], children: Sequence[BuiltinEntry], doc: Optional[str] = None) -> BuiltinNamespace:
	return BuiltinNamespace(name, module, {c.name: c for c in children}, doc)


def _fn(
	name: str,
	module: Optional[str],
	params: Sequence[BuiltinParam],
	returns: ForgeType,
	doc: str,
	members: Sequence[BuiltinEntry] = (),
) -> BuiltinFunction:
	return BuiltinFunction(name, module, tuple(params), returns, doc, {m.name: m for m in members})


def _val(name: str, module: Optional[str], t: ForgeType, doc: str) -> BuiltinValue:
	return BuiltinValue(name, module, t, doc)


def _math1(name: str, doc: str) -> BuiltinFunction:
	return _fn(name, "Math", [_p("x", T_NUMBER)], T_NUMBER, doc)


def _math_arr(name: str, doc: str) -> BuiltinFunction:
	return _fn(name, "Math", [_p("arr", t_array(T_NUMBER))], T_NUMBER, doc)


_S = T_STRING
_N = T_NUMBER

BUILTIN_REGISTRY = _ns("<root>", None, [
	_ns("console", None, [
		_ns("text", None, [
			_fn("var", None, [_p("value", T_ANY)], T_VOID, "Print a value to terminal output."),
		]),
	], "Terminal output."),
	_fn(
		"inp", None, [_p("prompt", _S)], _S,
		"Read a line from user input and return it as string.",
		members=[
			_fn("var", None, [_p("prompt", _S)], _S, "Read a line from user input, trimmed of surrounding whitespace."),
		],
	),
	_fn("chekBoolean", None, [_p("value", T_ANY)], T_BOOLEAN, "Returns True if the value is a boolean, otherwise False."),

	_ns("Time", "Time", [
		_fn("wait", "Time", [_p("duration", T_DURATION)], T_VOID, "Sleep/pause execution for a duration (e.g., 1s, 0.5s)."),
		_ns("set", "Time", [
			_fn("fps", "Time", [_p("fps", _N)], T_VOID, "Set the target FPS for time-based terminal animations."),
		]),
	], "Timing and pacing helpers."),

	_ns("Sys", "Sys", [
		_fn(
			"exec", "Sys", [_p("cmd", _S)], _S,
			"Execute a command and return stdout as a string.",
			members=[
				_fn("async", "Sys", [_p("cmd", _S)], T_VOID, "Execute a command in background (fire-and-forget)."),
			],
		),
		_ns("process", "Sys", [
			_val("id", "Sys", _N, "Current process id (PID)."),
			_fn("kill", "Sys", [_p("pid", _N)], T_VOID, "Terminate a process by PID."),
		]),
		_ns("cpu", "Sys", [
			_val("cores", "Sys", _N, "CPU core count."),
			_val("usage", "Sys", _N, "Approx CPU usage % (best effort)."),
			_val("model", "Sys", _S, "CPU model identifier."),
		]),
		_ns("os", "Sys", [
			_val("name", "Sys", _S, "OS name."),
			_val("version", "Sys", _S, "OS version/release."),
			_val("arch", "Sys", _S, "OS architecture."),
			_val("platform", "Sys", _S, "OS platform."),
		]),
		_ns("chek", "Sys", [
			_ns("ram", "Sys", [
				_val("GB", "Sys", _N, "Total RAM in gigabytes (rounded)."),
				_val("comp", "Sys", _S, "RAM vendor/company string (best effort)."),
			]),
			_fn("comp", "Sys", [_p("name", _S)], _S, "Normalize a hardware vendor string for comparisons."),
		]),
	], "Processes, shell commands and machine information."),

	_ns("Math", "Math", [
		_fn("pow", "Math", [_p("base", _N), _p("exp", _N)], _N, "Exponentiation (base^exp)."),
		_math1("log", "Natural log."),
		_math1("log10", "Log base 10."),
		_math1("sin", "Sine."),
		_math1("cos", "Cosine."),
		_math1("tan", "Tangent."),
		_math1("round", "Round."),
		_math1("floor", "Floor."),
		_math1("ceil", "Ceil."),
		_math1("abs", "Absolute value."),
		_math_arr("min", "Minimum."),
		_math_arr("max", "Maximum."),
		_math_arr("avg", "Average."),
		_math_arr("sum", "Sum."),
		_fn("factorial", "Math", [_p("n", _N)], _N, "Factorial."),
		_val("PI", "Math", _N, "Pi constant."),
		_val("E", "Math", _N, "Euler constant."),
	], "Numeric helpers and constants."),

	_ns("Terminal", "Terminal", [
		_ns("progress", "Terminal", [
			_fn(
				"bar", "Terminal", [_p("percent", _N), _p("width", T_ANY, True), _p("char", _S, True)], T_VOID,
				"Render a progress bar.",
			),
		]),
		_ns("spinner", "Terminal", [
			_fn("custom", "Terminal", [_p("frames", t_array(_S))], T_VOID, "Render spinner frames (runtime decides timing)."),
		]),
		_ns("table", "Terminal", [
			_fn("styled", "Terminal", [_p("rows", t_array(T_ANY)), _p("options", T_ANY, True)], T_VOID, "Render a styled table (grid/plain)."),
		]),
		_fn("banner", "Terminal", [_p("text", _S), _p("options", T_ANY, True)], T_VOID, "Print text inside a boxed banner."),
		_fn("tree", "Terminal", [_p("obj", T_ANY)], T_VOID, "Render an ASCII tree view."),
		_fn("form", "Terminal", [_p("schema", t_array(T_ANY))], t_object(open=True), "Interactive form (runtime prompts)."),
	], "Progress bars, tables, trees and prompts for terminal programs."),

	_ns("File", "File", [
		_fn("read", "File", [_p("path", _S)], _S, "Read UTF-8 file."),
		_fn("write", "File", [_p("path", _S), _p("data", _S)], T_VOID, "Write UTF-8 file."),
		_fn("append", "File", [_p("path", _S), _p("data", _S)], T_VOID, "Append UTF-8 file."),
		_fn("delete", "File", [_p("path", _S)], T_VOID, "Delete a file."),
		_fn("exists", "File", [_p("path", _S)], T_BOOLEAN, "Check if file exists."),
		_fn(
			"info", "File", [_p("path", _S)],
			t_object({"size": _N, "created": _S, "modified": _S}, open=True),
			"File stats (size/created/modified).",
		),
		_fn("copy", "File", [_p("src", _S), _p("dst", _S)], T_VOID, "Copy file."),
		_fn("move", "File", [_p("src", _S), _p("dst", _S)], T_VOID, "Move/rename file."),
		_ns("dir", "File", [
			_fn("create", "File", [_p("path", _S)], T_VOID, "Create directory."),
			_fn("list", "File", [_p("path", _S)], t_array(_S), "List directory entries."),
		]),
		_fn("readJson", "File", [_p("path", _S)], T_ANY, "Read JSON file."),
		_fn("writeJson", "File", [_p("path", _S), _p("obj", T_ANY)], T_VOID, "Write JSON file."),
		_fn("readCsv", "File", [_p("path", _S)], t_array(t_array(_S)), "Read CSV (simple)."),
	], "Filesystem access."),

	_ns("Net", "Net", [
		_fn("get", "Net", [_p("url", _S), _p("headers", T_ANY, True)], t_object({"body": T_ANY}, open=True), "HTTP GET request."),
		_fn("post", "Net", [_p("url", _S), _p("body", T_ANY, True)], t_object({"body": T_ANY}, open=True), "HTTP POST request."),
		_fn("download", "Net", [_p("url", _S), _p("outPath", _S)], T_VOID, "Download file."),
		_val("isOnline", "Net", T_BOOLEAN, "Whether the network is reachable (best effort)."),
		_fn("ping", "Net", [_p("host", _S)], t_object({"latency": _N}, open=True), "Approximate latency via HEAD request timing."),
	], "HTTP requests and connectivity checks."),

	_ns("Crypto", "Crypto", [
		_ns("hash", "Crypto", [
			_fn("md5", "Crypto", [_p("text", _S)], _S, "MD5 hash."),
			_fn("sha256", "Crypto", [_p("text", _S)], _S, "SHA256 hash."),
		]),
		_ns("base64", "Crypto", [
			_fn("encode", "Crypto", [_p("text", _S)], _S, "Base64 encode."),
			_fn("decode", "Crypto", [_p("text", _S)], _S, "Base64 decode."),
		]),
		_ns("generate", "Crypto", [
			_fn("key", "Crypto", [_p("bits", _N)], _S, "Generate random key (hex)."),
			_val("uuid", "Crypto", _S, "Generate UUID."),
		]),
		_ns("aes", "Crypto", [
			_fn("encrypt", "Crypto", [_p("text", _S), _p("key", _S)], _S, "AES-256-GCM encrypt."),
			_fn("decrypt", "Crypto", [_p("cipher", _S), _p("key", _S)], _S, "AES-256-GCM decrypt."),
		]),
		_fn("random", "Crypto", [_p("min", _N), _p("max", _N)], _N, "Secure random integer (inclusive range)."),
	], "Hashing, encoding, encryption and randomness."),

	_ns("DateTime", "DateTime", [
		_val("now", "DateTime", _S, "Current date/time as an ISO-8601 string."),
		_fn("format", "DateTime", [_p("date", T_ANY), _p("pattern", _S)], _S, "Format a date with YYYY/MM/DD/HH/mm/ss tokens."),
		_fn("create", "DateTime", [_p("year", _N), _p("month", _N), _p("day", _N)], _S, "Create a date (ISO-8601 string)."),
		_fn("add", "DateTime", [_p("date", T_ANY), _p("amount", _N), _p("unit", _S)], T_ANY, "Add an amount of a unit to a date."),
		_fn("subtract", "DateTime", [_p("date", T_ANY), _p("amount", _N), _p("unit", _S)], T_ANY, "Subtract an amount of a unit from a date."),
		_fn("diff", "DateTime", [_p("a", T_ANY), _p("b", T_ANY), _p("unit", _S)], _N, "Difference a - b in the given unit."),
		_val("timestamp", "DateTime", _N, "Current Unix timestamp in milliseconds."),
		_fn("fromTimestamp", "DateTime", [_p("ts", _N)], T_ANY, "Date from a Unix timestamp in milliseconds."),
	], "Dates and times."),

	_ns("Regex", "Regex", [
		_fn("match", "Regex", [_p("text", _S), _p("pattern", _S)], T_BOOLEAN, "Whether the pattern matches the text."),
		_fn("extract", "Regex", [_p("text", _S), _p("pattern", _S)], t_array(_S), "All matches of the pattern."),
		_fn("replace", "Regex", [_p("text", _S), _p("pattern", _S), _p("replacement", _S)], _S, "Replace every match."),
	], "Regular expressions."),

	_ns("JSON", "JSON", [
		_fn("parse", "JSON", [_p("text", _S)], T_ANY, "Parse JSON text."),
		_fn("stringify", "JSON", [_p("value", T_ANY), _p("indent", T_ANY, True)], _S, "Serialize a value as JSON."),
	], "JSON encoding and decoding."),

	_ns("Async", "Async", [], "Asynchronous helpers (reserved)."),
])


def _assign_paths(entry: BuiltinEntry, prefix: str) -> None:
	for child in _child_map(entry).values():
		child.path = f"{prefix}.{child.name}" if prefix else child.name
		_assign_paths(child, child.path)


def _child_map(entry: BuiltinEntry) -> Dict[str, BuiltinEntry]:
	if isinstance(entry, BuiltinNamespace):
		return entry.children
	if isinstance(entry, BuiltinFunction):
		return entry.members
	return {}


_assign_paths(BUILTIN_REGISTRY, "")

BUILTIN_ROOTS: Tuple[str, ...] = tuple(BUILTIN_REGISTRY.children)


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------

def resolve_builtin(path: Sequence[str]) -> Optional[BuiltinEntry]:
	"""Walk `path` from the root; None when any segment is missing."""
	node: BuiltinEntry = BUILTIN_REGISTRY
	for part in path:
		child = _child_map(node).get(part)
		if child is None:
			return None
		node = child
	return node


def list_children(path: Sequence[str]) -> List[BuiltinEntry]:
	node = resolve_builtin(path)
	if node is None:
		return []
	return list(_child_map(node).values())


def is_module_root(name: str) -> bool:
	return name in FORGE_MODULES


def is_builtin_root(name: str) -> bool:
	return name in BUILTIN_REGISTRY.children


def entry_type(entry: BuiltinEntry) -> ForgeType:
	"""Structural type of a registry entry as seen by the resolver."""
	if isinstance(entry, BuiltinValue):
		return entry.type
	if isinstance(entry, BuiltinFunction):
		return t_function(entry.param_types, entry.returns)
	return t_object({name: entry_type(child) for name, child in entry.children.items()})


def entry_kind(entry: BuiltinEntry) -> str:
	if isinstance(entry, BuiltinNamespace):
		return "namespace"
	if isinstance(entry, BuiltinFunction):
		return "function"
	return "value"


__all__ = [
	"BuiltinParam",
	"BuiltinNamespace",
	"BuiltinFunction",
	"BuiltinValue",
	"BuiltinEntry",
	"BUILTIN_REGISTRY",
	"BUILTIN_ROOTS",
	"FORGE_MODULES",
	"T_DURATION",
	"resolve_builtin",
	"list_children",
	"is_module_root",
	"is_builtin_root",
	"entry_type",
	"entry_kind",
]
