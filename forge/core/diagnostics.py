# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Common diagnostic structure for every analysis stage.

Diagnostics are immutable: once a stage emits one, nothing may change its
range or message. The only sanctioned transformation is a severity
*downgrade* (see `Diagnostic.downgraded`), used by the soft module-gating
policy in the pipeline.

Ordering is a deterministic total order (offset, then severity rank
descending, then code) so that merged output from independent stages is
stable across runs.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence

from .span import Range

ERROR = "error"
WARNING = "warning"
INFO = "info"

SEVERITIES = (ERROR, WARNING, INFO)

_SEVERITY_RANK = {ERROR: 3, WARNING: 2, INFO: 1}


@dataclass(frozen=True)
class Diagnostic:
	"""Represents an analysis or runtime diagnostic (error/warning/info)."""

	severity: str
	code: str
	message: str
	range: Range
	# Stage label: lexer/parser/semantic/lint/runtime.
	stage: Optional[str] = None
	hint: Optional[str] = None

	def __post_init__(self) -> None:
		if self.severity not in _SEVERITY_RANK:
			raise ValueError(f"unknown diagnostic severity: {self.severity!r}")

	@property
	def rank(self) -> int:
		return _SEVERITY_RANK[self.severity]

	@property
	def is_error(self) -> bool:
		return self.severity == ERROR

	def downgraded(self, severity: str) -> "Diagnostic":
		"""
		Return a copy with a lower (or equal) severity.

		Upgrades are rejected: policies may only soften diagnostics.
		"""
		if _SEVERITY_RANK[severity] > self.rank:
			raise ValueError(f"cannot upgrade {self.severity} to {severity}")
		return replace(self, severity=severity)


def make(
	severity: str,
	code: str,
	message: str,
	range: Range,
	stage: Optional[str] = None,
	hint: Optional[str] = None,
) -> Diagnostic:
	return Diagnostic(severity=severity, code=code, message=message, range=range, stage=stage, hint=hint)


def error(code: str, message: str, range: Range, stage: Optional[str] = None, hint: Optional[str] = None) -> Diagnostic:
	return make(ERROR, code, message, range, stage, hint)


def warning(code: str, message: str, range: Range, stage: Optional[str] = None, hint: Optional[str] = None) -> Diagnostic:
	return make(WARNING, code, message, range, stage, hint)


def info(code: str, message: str, range: Range, stage: Optional[str] = None, hint: Optional[str] = None) -> Diagnostic:
	return make(INFO, code, message, range, stage, hint)


def _sort_key(d: Diagnostic):
	return (d.range.start.offset, -d.rank, d.code)


def sort(diags: Iterable[Diagnostic]) -> List[Diagnostic]:
	"""Sort by start offset, then severity (error first), then code."""
	return sorted(diags, key=_sort_key)


def dedupe(diags: Iterable[Diagnostic]) -> List[Diagnostic]:
	"""
	Sort, then drop diagnostics equal on (code, severity, start, end, message).

	The first occurrence in sorted order wins.
	"""
	seen = set()
	out: List[Diagnostic] = []
	for d in sort(diags):
		key = (d.code, d.severity, d.range.start.offset, d.range.end.offset, d.message)
		if key in seen:
			continue
		seen.add(key)
		out.append(d)
	return out


def merge(*lists: Optional[Sequence[Diagnostic]]) -> List[Diagnostic]:
	"""Concatenate any number of lists (None entries ignored) into one sorted list."""
	combined: List[Diagnostic] = []
	for lst in lists:
		if lst:
			combined.extend(lst)
	return sort(combined)


def has_errors(diags: Iterable[Diagnostic]) -> bool:
	return any(d.severity == ERROR for d in diags)


def has_warnings(diags: Iterable[Diagnostic]) -> bool:
	return any(d.severity == WARNING for d in diags)


def format_diagnostic(d: Diagnostic) -> str:
	"""Human-readable one-line rendering (1-based line:column)."""
	stage = f" [{d.stage}]" if d.stage else ""
	line = d.range.start.line + 1
	col = d.range.start.column + 1
	text = f"{d.severity.upper()}{stage} {d.code} @ {line}:{col} - {d.message}"
	if d.hint:
		text += f"\n  hint: {d.hint}"
	return text


def format_diagnostics(diags: Iterable[Diagnostic]) -> str:
	return "\n".join(format_diagnostic(d) for d in diags)


def from_lexer_errors(errors: Iterable[tuple[str, Range]]) -> List[Diagnostic]:
	"""Convert `(message, range)` pairs reported by a lexer into diagnostics."""
	return [error("LEX_ERROR", message, rng, stage="lexer") for message, rng in errors]


def from_parser_errors(errors: Iterable[tuple[str, Range]]) -> List[Diagnostic]:
	"""Convert `(message, range)` pairs reported by a parser into diagnostics."""
	return [error("PARSE_ERROR", message, rng, stage="parser") for message, rng in errors]


__all__ = [
	"ERROR",
	"WARNING",
	"INFO",
	"SEVERITIES",
	"Diagnostic",
	"make",
	"error",
	"warning",
	"info",
	"sort",
	"dedupe",
	"merge",
	"has_errors",
	"has_warnings",
	"format_diagnostic",
	"format_diagnostics",
	"from_lexer_errors",
	"from_parser_errors",
]
