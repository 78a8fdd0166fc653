# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source positions and ranges shared by the front end, diagnostics and editor
features.

All coordinates are 0-based. `offset` is a character index into the document
text; `line`/`column` are derived from it by whoever built the position.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
	"""A single point in a document."""

	offset: int = 0
	line: int = 0
	column: int = 0


@dataclass(frozen=True)
class Range:
	"""Half-open `[start, end)` region; `end.offset >= start.offset` always holds."""

	start: Position = Position()
	end: Position = Position()

	def __post_init__(self) -> None:
		if self.end.offset < self.start.offset:
			# Normalize inverted ranges to an empty range at `start`.
			object.__setattr__(self, "end", self.start)

	@property
	def length(self) -> int:
		return self.end.offset - self.start.offset

	def contains(self, offset: int) -> bool:
		return self.start.offset <= offset <= self.end.offset

	def cover(self, other: "Range") -> "Range":
		"""Smallest range spanning both `self` and `other`."""
		start = self.start if self.start.offset <= other.start.offset else other.start
		end = self.end if self.end.offset >= other.end.offset else other.end
		return Range(start, end)


UNKNOWN_POSITION = Position()
UNKNOWN_RANGE = Range()


def position_at(source: str, offset: int) -> Position:
	"""Compute a Position for `offset` in `source` (clamped to the text)."""
	offset = max(0, min(offset, len(source)))
	line = source.count("\n", 0, offset)
	last_nl = source.rfind("\n", 0, offset)
	return Position(offset=offset, line=line, column=offset - (last_nl + 1))


def make_range(source: str, start: int, end: int) -> Range:
	"""Build a Range from two offsets into `source`."""
	if end < start:
		end = start
	return Range(position_at(source, start), position_at(source, end))


def clamp_range(rng: Range, max_offset: int) -> Range:
	"""
	Clamp a range to `[0, max_offset]`.

	Line/column are kept as-is when the offset is unchanged; a clamped end
	collapses onto the start so the range stays well-formed.
	"""
	start = rng.start
	end = rng.end
	if start.offset > max_offset:
		start = Position(max_offset, start.line, start.column)
	if end.offset > max_offset:
		end = start
	return Range(start, end)


__all__ = [
	"Position",
	"Range",
	"UNKNOWN_POSITION",
	"UNKNOWN_RANGE",
	"position_at",
	"make_range",
	"clamp_range",
]
