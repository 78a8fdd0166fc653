# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from forge.core import diagnostics as D
from forge.core.span import make_range
from forge.core.wire import to_wire

SRC = "let dog = 1\nlet cat = 2\n"


def _sample() -> list:
	r1 = make_range(SRC, 0, 3)
	r2 = make_range(SRC, 12, 15)
	return [
		D.info("LINT_B", "b", r2, "lint"),
		D.error("SEM_A", "a", r2, "semantic"),
		D.warning("LINT_C", "c", r1, "lint"),
		D.error("SEM_A", "a", r2, "semantic"),
		D.info("LINT_A", "a", r1, "lint"),
	]


def test_sort_orders_by_offset_then_severity_then_code() -> None:
	ordered = D.sort(_sample())
	assert [d.code for d in ordered] == ["LINT_C", "LINT_A", "SEM_A", "SEM_A", "LINT_B"]


def test_sort_and_dedupe_commute_and_are_idempotent() -> None:
	diags = _sample()
	a = D.sort(D.dedupe(diags))
	b = D.dedupe(D.sort(diags))
	assert a == b
	assert D.dedupe(a) == a
	assert D.sort(a) == a
	assert [d.code for d in a].count("SEM_A") == 1


def test_merge_ignores_none_and_sorts() -> None:
	first, second = _sample()[:2], _sample()[2:]
	merged = D.merge(first, None, second)
	assert merged == D.sort(_sample())


def test_has_errors_and_warnings() -> None:
	assert D.has_errors(_sample())
	only_info = [D.info("X", "x", make_range(SRC, 0, 1))]
	assert not D.has_errors(only_info)
	assert not D.has_warnings(only_info)


def test_downgrade_only_softens() -> None:
	err = D.error("MODULE_NOT_ENABLED", "m", make_range(SRC, 0, 1))
	warn = err.downgraded(D.WARNING)
	assert warn.severity == D.WARNING
	assert warn.message == err.message
	with pytest.raises(ValueError):
		warn.downgraded(D.ERROR)


def test_unknown_severity_is_rejected() -> None:
	with pytest.raises(ValueError):
		D.make("fatal", "X", "x", make_range(SRC, 0, 1))


def test_format_diagnostic_is_one_based() -> None:
	d = D.error("SEM_A", "boom", make_range(SRC, 16, 19), "semantic", "try again")
	text = D.format_diagnostic(d)
	assert text.startswith("ERROR [semantic] SEM_A @ 2:5 - boom")
	assert "hint: try again" in text


def test_wire_shape_appends_hint() -> None:
	d = D.error("MODULE_NOT_ENABLED", "Module 'Sys' is not enabled.", make_range(SRC, 12, 15), "semantic", "Add: able 'Sys'")
	wire = to_wire(d)
	assert wire["severity"] == "error"
	assert wire["code"] == "MODULE_NOT_ENABLED"
	assert wire["range"] == {"start": {"line": 1, "character": 0}, "end": {"line": 1, "character": 3}}
	assert wire["message"] == "Module 'Sys' is not enabled.\n\nAdd: able 'Sys'"
	assert wire["source"] == "forge:semantic"
