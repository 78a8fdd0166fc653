# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Text renderers for the `Terminal` module.

Tables, trees and banners are laid out by rich into a captured console, so
nothing here writes to the real terminal; each function returns the lines to
print and the builtin layer decides where they go.
"""

from __future__ import annotations

import io
from typing import Any, List, Sequence

from rich import box
from rich.console import Console, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from .values import to_string_value

DEFAULT_SPINNER_FRAMES = ("-", "\\", "|", "/")
RENDER_WIDTH = 120


def _clamp(n: float, lo: float, hi: float) -> float:
	return max(lo, min(hi, n))


def render_lines(renderable: RenderableType, width: int = RENDER_WIDTH) -> List[str]:
	"""Render into a plain, colorless console and return the trimmed lines."""
	buf = io.StringIO()
	console = Console(
		file=buf,
		width=width,
		color_system=None,
		force_terminal=False,
		highlight=False,
		markup=False,
		emoji=False,
		legacy_windows=False,
	)
	console.print(renderable)
	return [line.rstrip() for line in buf.getvalue().splitlines()]


def progress_bar(percent: float, width: float = 40, char: str = "█") -> str:
	# The fill character is caller-chosen, which rich's ProgressBar cannot draw.
	w = int(_clamp(int(width // 1), 10, 120))
	ch = (char or "█")[:1]
	p = _clamp(percent, 0, 100)
	filled = int(p / 100 * w + 0.5)
	return f"[{ch * filled}{' ' * (w - filled)}] {int(p + 0.5)}%"


def banner(text: str, font: str = "small") -> List[str]:
	if font == "big":
		panel = Panel(Text(text, justify="center"), box=box.DOUBLE, expand=False, padding=(1, 4))
	else:
		panel = Panel(Text(text), box=box.SQUARE, expand=False, padding=(0, 1))
	return render_lines(panel)


def styled_table(rows: Sequence[Sequence[Any]], style: str = "grid") -> List[str]:
	"""First row is the header; short rows are padded with empty cells."""
	cells = [[to_string_value(c) for c in row] for row in rows]
	if not cells:
		return []
	cols = max(len(r) for r in cells)
	padded = [r + [""] * (cols - len(r)) for r in cells]

	if style == "plain":
		table = Table(box=None, show_edge=False, pad_edge=False, show_header=True, header_style="")
	else:
		table = Table(box=box.SQUARE, show_header=True, header_style="")
	for head in padded[0]:
		table.add_column(Text(head), no_wrap=True)
	for row in padded[1:]:
		table.add_row(*(Text(c) for c in row))

	widths = [max(len(r[i]) for r in padded) for i in range(cols)]
	return render_lines(table, max(RENDER_WIDTH, sum(widths) + 3 * cols + 1))


def _label(node: Any) -> str:
	if isinstance(node, list):
		return "[ ]"
	if isinstance(node, dict):
		return "{ }"
	return to_string_value(node)


def _grow(branch: Tree, node: Any) -> None:
	if isinstance(node, list):
		for child in node:
			_grow(branch.add(Text(_label(child))), child)
	elif isinstance(node, dict):
		for key, value in node.items():
			if isinstance(value, (dict, list)):
				_grow(branch.add(Text(f"{key} {_label(value)}")), value)
			else:
				branch.add(Text(f"{key}: {to_string_value(value)}"))


def render_tree(node: Any) -> List[str]:
	root = Tree(Text(_label(node)), guide_style="")
	_grow(root, node)
	return render_lines(root)


def spinner_frames(frames: Any) -> List[str]:
	if isinstance(frames, list) and frames:
		return [to_string_value(f) for f in frames]
	return list(DEFAULT_SPINNER_FRAMES)


__all__ = [
	"DEFAULT_SPINNER_FRAMES",
	"render_lines",
	"progress_bar",
	"banner",
	"styled_table",
	"render_tree",
	"spinner_frames",
]
