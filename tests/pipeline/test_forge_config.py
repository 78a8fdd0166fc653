# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from forge.config import ConfigError, ForgeConfig, deep_merge, normalize_extension, unique_strings
from forge.pipeline import analyze_text


def test_defaults() -> None:
	cfg = ForgeConfig.from_mapping(None)
	assert cfg.name == "Forge Project"
	assert cfg.default_all_in_one
	assert cfg.lint.max_line_length == 140
	assert cfg.files.extensions == [".forge"]
	assert cfg.max_number_of_problems == 200
	assert cfg.allow_sys_exec


def test_camel_and_snake_keys() -> None:
	cfg = ForgeConfig.from_mapping({
		"defaultAllInOne": False,
		"default_modules": ["Math", " Math ", "Time", ""],
		"lint": {"max_line_length": 80},
		"diagnostics": {"softModuleGating": True},
	})
	assert not cfg.default_all_in_one
	assert cfg.default_modules == ["Math", "Time"]
	assert cfg.lint.max_line_length == 80
	# Untouched siblings keep their defaults.
	assert cfg.lint.prefer_let_over_var
	assert cfg.diagnostics.soft_module_gating
	assert cfg.diagnostics.relaxed_member_access


def test_extensions_are_normalized() -> None:
	cfg = ForgeConfig.from_mapping({"files": {"extensions": ["forge", ".fg", ".forge"]}})
	assert cfg.files.extensions == [".forge", ".fg"]
	assert normalize_extension("") == ".forge"
	assert normalize_extension(" x ") == ".x"


def test_bad_values_raise() -> None:
	with pytest.raises(ConfigError):
		ForgeConfig.from_mapping({"maxNumberOfProblems": "lots"})
	with pytest.raises(ConfigError):
		ForgeConfig.from_mapping({"lint": {"maxLineLength": True}})
	with pytest.raises(ConfigError):
		ForgeConfig.from_mapping(["not", "an", "object"])  # type: ignore[arg-type]


def test_load_from_file(tmp_path: Path) -> None:
	path = tmp_path / "forge.config.json"
	path.write_text(json.dumps({"name": "demo", "allowSysExec": False}), encoding="utf-8")
	cfg = ForgeConfig.load(path)
	assert cfg.name == "demo"
	assert not cfg.allow_sys_exec

	bad = tmp_path / "bad.json"
	bad.write_text("{nope", encoding="utf-8")
	with pytest.raises(ConfigError):
		ForgeConfig.load(bad)
	with pytest.raises(ConfigError):
		ForgeConfig.load(tmp_path / "missing.json")


def test_analysis_options_follow_config() -> None:
	cfg = ForgeConfig.from_mapping({
		"defaultAllInOne": False,
		"defaultModules": ["Math"],
		"diagnostics": {"enabled": False, "relaxedMemberAccess": False},
		"lint": {"enabled": False, "maxLineLength": 10},
	})
	opts = cfg.to_analysis_options()
	assert not opts.semantic_enabled
	assert not opts.lint_enabled
	assert opts.max_line_length == 10
	assert not opts.resolver.relaxed_member_access
	assert opts.modules is not None
	assert opts.modules.is_enabled("Math")
	assert not opts.modules.is_enabled("Sys")


def test_merge_helpers() -> None:
	merged = deep_merge({"a": {"b": 1, "c": 2}, "l": [1]}, {"a": {"b": 3}, "l": [2], "skip": None})
	assert merged == {"a": {"b": 3, "c": 2}, "l": [2]}
	assert unique_strings(["x", " x", None, "y"]) == ["x", "y"]


def test_prefer_let_over_var_reaches_lint() -> None:
	cfg = ForgeConfig.from_mapping({"lint": {"preferLetOverVar": False}})
	opts = cfg.to_analysis_options()
	assert not opts.prefer_let_over_var
	codes = [d.code for d in analyze_text("var dog = 1", opts).diagnostics]
	assert "LINT_PREFER_LET" not in codes
	assert "LINT_PREFER_LET" in [d.code for d in analyze_text("var dog = 1").diagnostics]
