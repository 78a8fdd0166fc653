# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from forge.runtime.builtins import parse_duration_ms


@pytest.mark.parametrize(
	"text, expected",
	[
		("1s", 1000),
		("0.5s", 500),
		("120ms", 120),
		("2m", 120_000),
		("1h", 3_600_000),
		("250", 250),
		(" 3S ", 3000),
		("", 0),
		(None, 0),
		("soon", 0),
		("-5", 0),
		("9" * 400, 0),
		("9" * 400 + "s", 0),
		("1e400", 0),
	],
)
def test_parse_duration_ms(text, expected) -> None:
	assert parse_duration_ms(text) == expected
