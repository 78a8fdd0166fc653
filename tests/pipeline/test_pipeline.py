# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from forge import parser as reference
from forge.modules import ModuleContext
from forge.parser import LexResult, ParseResult
from forge.pipeline import AnalysisOptions, analyze_text
from forge.resolver import ResolverOptions

FUFFY = "disable 'AllInOne'; able 'Math','Time','Sys'; let dog = 'Fuffy'; console.text.var(l.dog);"


class _ExplodingLexer:
	def tokenize(self, source: str) -> LexResult:
		raise RuntimeError("lexer blew up")

	def parse(self, source: str) -> ParseResult:
		return reference.parse(source)


class _ExplodingParser:
	def tokenize(self, source: str) -> LexResult:
		return reference.tokenize(source)

	def parse(self, source: str) -> ParseResult:
		raise RuntimeError("parser blew up")


def test_fuffy_analyzes_without_errors() -> None:
	result = analyze_text(FUFFY)
	assert result.ok
	assert [d for d in result.diagnostics if d.severity == "error"] == []
	assert result.program is not None
	assert result.semantic is not None
	assert result.semantic.symbols.lookup("l", "dog") is not None
	assert result.tokens


def test_syntax_error_skips_later_stages() -> None:
	result = analyze_text("let = 1")
	assert not result.ok
	assert result.program is None
	assert result.semantic is None
	assert [d.code for d in result.diagnostics] == ["PARSE_ERROR"]


def test_lexer_failure_is_contained() -> None:
	result = analyze_text("let dog = 1", AnalysisOptions(front_end=_ExplodingLexer()))
	codes = [d.code for d in result.diagnostics]
	assert codes == ["LEX_INTERNAL"]
	assert result.tokens == []
	# Later stages still ran on the parsed program.
	assert result.semantic is not None
	assert result.semantic.symbols.lookup("l", "dog") is not None


def test_parser_failure_substitutes_empty_program() -> None:
	result = analyze_text("let dog = 1", AnalysisOptions(front_end=_ExplodingParser()))
	assert [d.code for d in result.diagnostics] == ["PARSE_INTERNAL"]
	assert "parser blew up" in result.diagnostics[0].message
	assert result.program is not None and result.program.body == []
	assert result.semantic is not None


def test_soft_gating_downgrades_module_errors() -> None:
	src = "disable 'AllInOne'\nlet c0 = Sys.cpu.cores"
	hard = analyze_text(src)
	soft = analyze_text(src, AnalysisOptions(soft_module_gating=True))
	assert [d.severity for d in hard.diagnostics if d.code == "MODULE_NOT_ENABLED"] == ["error"]
	assert [d.severity for d in soft.diagnostics if d.code == "MODULE_NOT_ENABLED"] == ["warning"]
	assert soft.ok and not hard.ok


def test_ignore_gating_and_starting_modules() -> None:
	src = "let c0 = Sys.cpu.cores"
	off = AnalysisOptions(modules=ModuleContext.starting(all_in_one=False))
	assert not analyze_text(src, off).ok
	ignored = AnalysisOptions(
		modules=ModuleContext.starting(all_in_one=False),
		resolver=ResolverOptions(ignore_module_gating=True),
	)
	assert analyze_text(src, ignored).ok


def test_semantic_diagnostics_can_be_hidden() -> None:
	result = analyze_text("console.text.var(nope)", AnalysisOptions(semantic_enabled=False))
	assert "UNDEFINED_VARIABLE" not in [d.code for d in result.diagnostics]
	assert result.semantic is not None


def test_timings_are_recorded() -> None:
	result = analyze_text(FUFFY)
	t = result.timings
	assert t.total_ms >= t.parse_ms >= 0
	assert t.semantic_ms >= 0 and t.lint_ms >= 0


def test_diagnostics_come_back_sorted() -> None:
	src = "console.text.var(a)\nconsole.text.var(b)"
	offsets = [d.range.start.offset for d in analyze_text(src).diagnostics]
	assert offsets == sorted(offsets)


def _boom(*args, **kwargs):
	raise RuntimeError("stage blew up")


def test_resolver_failure_substitutes_empty_state(monkeypatch) -> None:
	monkeypatch.setattr("forge.pipeline.resolve", _boom)
	result = analyze_text("let dog = 1")
	internal = [d for d in result.diagnostics if d.code == "SEM_INTERNAL"]
	assert len(internal) == 1
	assert internal[0].severity == "error"
	assert "stage blew up" in internal[0].message
	assert not result.ok

	state = result.semantic
	assert state is not None
	assert state.modules.all_in_one_enabled
	assert state.modules.enabled == {"AllInOne"}
	assert state.symbols.l == {} and state.symbols.v == {} and state.symbols.c == {}
	assert state.types == {}


def test_lint_failure_is_a_single_warning(monkeypatch) -> None:
	monkeypatch.setattr("forge.pipeline.lint", _boom)
	result = analyze_text("let dog = 1")
	internal = [d for d in result.diagnostics if d.code == "LINT_INTERNAL"]
	assert len(internal) == 1
	assert internal[0].severity == "warning"
	assert result.ok
	assert result.semantic is not None
	assert result.semantic.symbols.lookup("l", "dog") is not None
