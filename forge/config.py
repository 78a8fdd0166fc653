# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Project configuration for Forge tooling.

Configuration arrives as an already-loaded JSON-like mapping (the shape of
`forge.config.json`, camelCase keys). It is deep-merged over the defaults
and normalized: string lists are trimmed and de-duplicated, extensions get a
leading dot and flags are coerced to bool. The include/exclude globs are
passed through untouched; nothing here interprets them.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from .modules import ModuleContext
from .pipeline import AnalysisOptions
from .resolver import ResolverOptions


class ConfigError(ValueError):
	pass


DEFAULTS: Dict[str, Any] = {
	"name": "Forge Project",
	"defaultAllInOne": True,
	"defaultModules": [],
	"diagnostics": {
		"enabled": True,
		"softModuleGating": False,
		"relaxedMemberAccess": True,
	},
	"lint": {
		"enabled": True,
		"preferLetOverVar": True,
		"preferQuotedPrompts": True,
		"maxLineLength": 140,
	},
	"files": {
		"extensions": [".forge"],
		"include": ["**/*.forge"],
		"exclude": ["**/node_modules/**", "**/dist/**", "**/out/**", "**/.git/**"],
	},
	"maxNumberOfProblems": 200,
	"verbose": False,
	"allowSysExec": True,
}


@dataclass(frozen=True)
class DiagnosticsConfig:
	enabled: bool = True
	soft_module_gating: bool = False
	relaxed_member_access: bool = True


@dataclass(frozen=True)
class LintConfig:
	enabled: bool = True
	prefer_let_over_var: bool = True
	prefer_quoted_prompts: bool = True
	max_line_length: int = 140


@dataclass(frozen=True)
class FilesConfig:
	extensions: List[str] = field(default_factory=lambda: [".forge"])
	include: List[str] = field(default_factory=lambda: ["**/*.forge"])
	exclude: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ForgeConfig:
	name: str = "Forge Project"
	default_all_in_one: bool = True
	default_modules: List[str] = field(default_factory=list)
	diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
	lint: LintConfig = field(default_factory=LintConfig)
	files: FilesConfig = field(default_factory=FilesConfig)
	max_number_of_problems: int = 200
	verbose: bool = False
	allow_sys_exec: bool = True

	@classmethod
	def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "ForgeConfig":
		if mapping is not None and not isinstance(mapping, Mapping):
			raise ConfigError(f"config must be an object, got {type(mapping).__name__}")
		merged = deep_merge(DEFAULTS, _camel_keys(mapping or {}))
		diag = merged["diagnostics"]
		lint = merged["lint"]
		files = merged["files"]
		return cls(
			name=str(merged["name"]),
			default_all_in_one=bool(merged["defaultAllInOne"]),
			default_modules=unique_strings(merged["defaultModules"]),
			diagnostics=DiagnosticsConfig(
				enabled=bool(diag["enabled"]),
				soft_module_gating=bool(diag["softModuleGating"]),
				relaxed_member_access=bool(diag["relaxedMemberAccess"]),
			),
			lint=LintConfig(
				enabled=bool(lint["enabled"]),
				prefer_let_over_var=bool(lint["preferLetOverVar"]),
				prefer_quoted_prompts=bool(lint["preferQuotedPrompts"]),
				max_line_length=_as_int(lint["maxLineLength"], "lint.maxLineLength"),
			),
			files=FilesConfig(
				extensions=unique_strings(normalize_extension(e) for e in files["extensions"]),
				include=unique_strings(files["include"]),
				exclude=unique_strings(files["exclude"]),
			),
			max_number_of_problems=_as_int(merged["maxNumberOfProblems"], "maxNumberOfProblems"),
			verbose=bool(merged["verbose"]),
			allow_sys_exec=bool(merged["allowSysExec"]),
		)

	@classmethod
	def load(cls, path: str | Path) -> "ForgeConfig":
		"""Read an explicitly named JSON config file."""
		p = Path(path)
		try:
			data = json.loads(p.read_text(encoding="utf-8"))
		except OSError as exc:
			raise ConfigError(f"cannot read config {p}: {exc}") from exc
		except json.JSONDecodeError as exc:
			raise ConfigError(f"invalid JSON in {p}: {exc}") from exc
		return cls.from_mapping(data)

	def starting_modules(self) -> ModuleContext:
		return ModuleContext.starting(self.default_all_in_one, self.default_modules)

	def to_analysis_options(self) -> AnalysisOptions:
		return AnalysisOptions(
			resolver=ResolverOptions(relaxed_member_access=self.diagnostics.relaxed_member_access),
			semantic_enabled=self.diagnostics.enabled,
			lint_enabled=self.lint.enabled,
			prefer_let_over_var=self.lint.prefer_let_over_var,
			prefer_quoted_prompts=self.lint.prefer_quoted_prompts,
			max_line_length=self.lint.max_line_length,
			soft_module_gating=self.diagnostics.soft_module_gating,
			modules=self.starting_modules(),
		)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SNAKE_RE = re.compile(r"_([a-z])")


def _camel(key: str) -> str:
	return _SNAKE_RE.sub(lambda m: m.group(1).upper(), key)


def _camel_keys(value: Any) -> Any:
	"""Accept snake_case spellings of the documented camelCase keys."""
	if isinstance(value, Mapping):
		return {_camel(str(k)): _camel_keys(v) for k, v in value.items()}
	return value


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
	out: Dict[str, Any] = {k: (list(v) if isinstance(v, list) else v) for k, v in base.items()}
	for key, value in override.items():
		if value is None:
			continue
		if isinstance(value, list):
			out[key] = list(value)
		elif isinstance(value, Mapping) and isinstance(out.get(key), Mapping):
			out[key] = deep_merge(out[key], value)
		else:
			out[key] = value
	return out


def unique_strings(items: Iterable[Any]) -> List[str]:
	seen: Dict[str, None] = {}
	for item in items or ():
		text = str(item if item is not None else "").strip()
		if text:
			seen.setdefault(text, None)
	return list(seen)


def normalize_extension(ext: Any) -> str:
	text = str(ext if ext is not None else "").strip()
	if not text:
		return ".forge"
	return text if text.startswith(".") else f".{text}"


def _as_int(value: Any, key: str) -> int:
	if isinstance(value, bool):
		raise ConfigError(f"{key} must be a number")
	try:
		return int(value)
	except (TypeError, ValueError) as exc:
		raise ConfigError(f"{key} must be a number, got {value!r}") from exc


__all__ = [
	"ConfigError",
	"DEFAULTS",
	"DiagnosticsConfig",
	"LintConfig",
	"FilesConfig",
	"ForgeConfig",
	"deep_merge",
	"unique_strings",
	"normalize_extension",
]
