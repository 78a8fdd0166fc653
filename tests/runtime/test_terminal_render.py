# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from rich.text import Text

from forge.runtime import terminal as TUI


def test_progress_bar() -> None:
	assert TUI.progress_bar(50, 10, "#") == "[#####     ] 50%"
	# Width clamps to 10 and percent to 0..100.
	assert TUI.progress_bar(150, 2, "#") == "[##########] 100%"
	assert TUI.progress_bar(-3, 10, "") == "[          ] 0%"


def test_render_lines_is_plain_text() -> None:
	lines = TUI.render_lines(Text("[bold]not markup[/bold]"))
	assert lines == ["[bold]not markup[/bold]"]


def test_banner() -> None:
	small = TUI.banner("Hi")
	assert len(small) == 3
	assert small[0].startswith("┌") and small[-1].startswith("└")
	assert "Hi" in small[1]

	big = TUI.banner("Hi", "big")
	assert len(big) == 5
	assert big[0].startswith("╔")
	assert "Hi" in big[2]


def test_styled_table() -> None:
	lines = TUI.styled_table([["a", "bb"], [1, 2]])
	assert lines[0].startswith("┌") and lines[0].endswith("┐")
	assert lines[1] == "│ a │ bb │"
	assert lines[-2] == "│ 1 │ 2  │"
	assert lines[-1].startswith("└") and lines[-1].endswith("┘")
	assert all(len(line) == len(lines[0]) for line in lines)


def test_styled_table_pads_short_rows() -> None:
	lines = TUI.styled_table([["name", "age"], ["Zed"]])
	assert any(line.startswith("│ Zed ") for line in lines)


def test_plain_table() -> None:
	lines = TUI.styled_table([["a", "b"], ["c", "d"]], "plain")
	assert [line.split() for line in lines] == [["a", "b"], ["c", "d"]]
	assert not any("│" in line for line in lines)
	assert TUI.styled_table([]) == []


def test_render_tree() -> None:
	lines = TUI.render_tree({"a": 1, "b": [2]})
	assert lines[0] == "{ }"
	assert lines[1].endswith("a: 1")
	assert lines[2].endswith("b [ ]")
	assert lines[3].endswith("└── 2")
	assert len(lines) == 4


def test_render_scalar_tree() -> None:
	assert TUI.render_tree(7) == ["7"]


def test_spinner_frames() -> None:
	assert TUI.spinner_frames(None) == ["-", "\\", "|", "/"]
	assert TUI.spinner_frames(["a", 1]) == ["a", "1"]
