# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Analysis pipeline: lex -> parse -> resolve -> lint.

Each stage runs behind its own fault boundary. An exception inside a stage
is logged, turned into exactly one synthetic diagnostic for that stage, and
replaced with a safe substitute result so the later stages still run:

	lex      LEX_INTERNAL   (error)    no tokens
	parse    PARSE_INTERNAL (error)    empty Program
	resolve  SEM_INTERNAL   (error)    empty semantic state
	lint     LINT_INTERNAL  (warning)  no lint diagnostics

A *syntax* error is not a stage failure: the parser reports it as a
diagnostic and hands back no program, in which case resolve and lint are
skipped and `semantic` is None.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Tuple, TypeVar

from . import ast as A
from .core import diagnostics as D
from .core.diagnostics import Diagnostic
from .core.span import UNKNOWN_RANGE, make_range
from .lint import LintContext, lint
from .modules import ModuleContext
from .resolver import ResolverOptions, SemanticResult, empty_semantic_state, resolve

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FrontEnd(Protocol):
	"""Anything that can turn text into tokens and a `Program`."""

	def tokenize(self, source: str):  # -> LexResult
		...

	def parse(self, source: str):  # -> ParseResult
		...


@dataclass(frozen=True)
class AnalysisOptions:
	resolver: ResolverOptions = field(default_factory=ResolverOptions)
	# When off, the resolver still runs (editor features need its state) but
	# its diagnostics are not reported.
	semantic_enabled: bool = True
	lint_enabled: bool = True
	prefer_let_over_var: bool = True
	prefer_quoted_prompts: bool = True
	max_line_length: int = 140
	# Downgrade MODULE_NOT_ENABLED from error to warning.
	soft_module_gating: bool = False
	# Starting module state; None means the AllInOne bundle.
	modules: Optional[ModuleContext] = None
	front_end: Optional[FrontEnd] = None


@dataclass
class Timings:
	lex_ms: float = 0.0
	parse_ms: float = 0.0
	semantic_ms: float = 0.0
	lint_ms: float = 0.0
	total_ms: float = 0.0


@dataclass
class AnalysisResult:
	ok: bool
	tokens: List = field(default_factory=list)
	program: Optional[A.Program] = None
	diagnostics: List[Diagnostic] = field(default_factory=list)
	semantic: Optional[SemanticResult] = None
	timings: Timings = field(default_factory=Timings)


def _default_front_end() -> FrontEnd:
	from . import parser

	return parser  # type: ignore[return-value]


def _elapsed_ms(start: float) -> float:
	return (time.perf_counter() - start) * 1000.0


def _guarded(
	stage: str,
	code: str,
	severity: str,
	diags: List[Diagnostic],
	run: Callable[[], T],
	fallback: Callable[[], T],
) -> T:
	"""Run one stage; on failure record a single diagnostic and return `fallback()`."""
	try:
		return run()
	except Exception as exc:
		logger.exception("forge: %s stage failed", stage)
		diags.append(D.make(severity, code, f"Internal {stage} failure: {exc}", UNKNOWN_RANGE, stage))
		return fallback()


def _apply_policies(diags: List[Diagnostic], options: AnalysisOptions) -> List[Diagnostic]:
	if not options.soft_module_gating:
		return diags
	out: List[Diagnostic] = []
	for d in diags:
		if d.code == "MODULE_NOT_ENABLED" and d.is_error:
			d = d.downgraded(D.WARNING)
		out.append(d)
	return out


def _empty_program(source: str) -> A.Program:
	return A.Program(make_range(source, 0, len(source)), [])


def analyze_program(
	program: A.Program,
	options: Optional[AnalysisOptions] = None,
	source: Optional[str] = None,
	timings: Optional[Timings] = None,
) -> Tuple[SemanticResult, List[Diagnostic]]:
	"""
	Run the resolve and lint stages over an already-built program.

	Returns the semantic state and the (unsorted) stage diagnostics.
	"""
	options = options or AnalysisOptions()
	timings = timings if timings is not None else Timings()
	diags: List[Diagnostic] = []

	start = time.perf_counter()
	semantic = _guarded(
		"semantic",
		"SEM_INTERNAL",
		D.ERROR,
		diags,
		lambda: resolve(program, options.resolver, options.modules),
		empty_semantic_state,
	)
	timings.semantic_ms = _elapsed_ms(start)
	if options.semantic_enabled:
		diags.extend(semantic.diagnostics)

	if options.lint_enabled:
		start = time.perf_counter()
		ctx = LintContext(
			modules=semantic.modules,
			symbols=semantic.symbols,
			types=semantic.types,
			max_line_length=options.max_line_length,
			prefer_let_over_var=options.prefer_let_over_var,
			prefer_quoted_strings_for_prompts=options.prefer_quoted_prompts,
			source=source,
		)
		diags.extend(_guarded("lint", "LINT_INTERNAL", D.WARNING, diags, lambda: lint(program, ctx), list))
		timings.lint_ms = _elapsed_ms(start)

	return semantic, diags


def analyze_text(source: str, options: Optional[AnalysisOptions] = None) -> AnalysisResult:
	"""Analyze one document. Never raises."""
	options = options or AnalysisOptions()
	front_end = options.front_end or _default_front_end()
	timings = Timings()
	total_start = time.perf_counter()
	diags: List[Diagnostic] = []

	def _lex():
		result = front_end.tokenize(source)
		diags.extend(result.diagnostics)
		return list(result.tokens)

	start = time.perf_counter()
	tokens = _guarded("lexer", "LEX_INTERNAL", D.ERROR, diags, _lex, list)
	timings.lex_ms = _elapsed_ms(start)

	def _parse() -> Optional[A.Program]:
		result = front_end.parse(source)
		diags.extend(result.diagnostics)
		return result.program

	start = time.perf_counter()
	program = _guarded("parser", "PARSE_INTERNAL", D.ERROR, diags, _parse, lambda: _empty_program(source))
	timings.parse_ms = _elapsed_ms(start)

	semantic: Optional[SemanticResult] = None
	if program is not None:
		semantic, stage_diags = analyze_program(program, options, source, timings)
		diags.extend(stage_diags)

	final = D.dedupe(D.merge(_apply_policies(diags, options)))
	timings.total_ms = _elapsed_ms(total_start)
	logger.debug(
		"forge: analyzed %d chars in %.2fms (lex %.2f, parse %.2f, semantic %.2f, lint %.2f)",
		len(source),
		timings.total_ms,
		timings.lex_ms,
		timings.parse_ms,
		timings.semantic_ms,
		timings.lint_ms,
	)
	return AnalysisResult(
		ok=not D.has_errors(final),
		tokens=tokens,
		program=program,
		diagnostics=final,
		semantic=semantic,
		timings=timings,
	)


__all__ = [
	"FrontEnd",
	"AnalysisOptions",
	"AnalysisResult",
	"Timings",
	"analyze_text",
	"analyze_program",
]
