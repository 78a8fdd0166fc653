# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from typing import List

from forge import ast as A
from forge.core.diagnostics import Diagnostic
from forge.core.span import Range
from forge.lint import LintContext, is_camel_case, is_upper_snake, lint, looks_like_typo
from forge.modules import ModuleContext
from forge.pipeline import AnalysisOptions, analyze_text
from forge.resolver import SymbolIndex


def _lint(src: str, **opts) -> List[Diagnostic]:
	result = analyze_text(src, AnalysisOptions(**opts))
	return [d for d in result.diagnostics if d.stage == "lint"]


def _codes(src: str, **opts) -> List[str]:
	return [d.code for d in _lint(src, **opts)]


def test_var_gets_prefer_let_info() -> None:
	diags = _lint("var dog = 1")
	assert [(d.code, d.severity) for d in diags] == [("LINT_PREFER_LET", "info")]
	assert _codes("var dog = 1", prefer_let_over_var=False) == []


def test_const_store_assignment_is_an_error() -> None:
	diags = _lint("c.limit = 3")
	assert [(d.code, d.severity) for d in diags] == [("LINT_CONST_STORE", "error")]


def test_empty_loop_and_if_blocks_warn() -> None:
	codes = _codes("let n = 0\nwhile (n < 1) {}\nif (n == 0) {}")
	assert "LINT_EMPTY_LOOP" in codes
	assert "LINT_EMPTY_BLOCK" in codes


def test_module_hint_when_module_disabled() -> None:
	codes = _codes("disable 'AllInOne'\nlet t = Sys.cpu.cores")
	assert codes.count("LINT_ENABLE_MODULE") == 1


def test_spelling_variant_of_builtin_root() -> None:
	assert "LINT_SPELLING" in _codes("console.text.var(Mathh)")
	assert looks_like_typo("Mathh", "Math")
	assert not looks_like_typo("Math", "Math")
	assert not looks_like_typo("dog", "Math")


def test_duplicate_object_key_warns_once() -> None:
	diags = _lint("let o = {a: 1, b: 2, a: 3}")
	dup = [d for d in diags if d.code == "LINT_DUP_KEY"]
	assert len(dup) == 1
	assert "'a'" in dup[0].message


def test_line_length_uses_configured_limit() -> None:
	src = "let shortName = 1\nlet aMuchLongerVariableName = 'some long text value'"
	assert _codes(src, max_line_length=30) == ["LINT_LINE_LENGTH"]
	assert _codes(src, max_line_length=0) == []


def test_naming_rules() -> None:
	codes = _codes("let Bad_name = 1\nfunc Do_it() {\n\treturn 1\n}\nlet MAX_SIZE = 3\nl.BigDog = 2")
	assert codes.count("LINT_VAR_NAME") == 1
	assert codes.count("LINT_FUNC_NAME") == 1
	assert codes.count("LINT_NS_NAME") == 1
	assert is_camel_case("myVar") and not is_camel_case("MyVar")
	assert is_upper_snake("MAX_SIZE")


def test_try_without_handler_warns() -> None:
	assert "LINT_TRY_NO_HANDLER" in _codes("try {\n\tlet a = 1\n}")


def test_unquoted_prompt_and_plain_template() -> None:
	# Unquoted templates come from front ends other than the bundled parser.
	r = Range()
	template = A.TemplateString(r, [A.TemplateTextPart(r, "Name? >> ")], quote=None)
	callee = A.Identifier(r, "inp")
	call = A.CallExpression(r, callee, [A.PositionalArgument(r, template)])
	program = A.Program(r, [A.ExpressionStatement(r, call)])
	ctx = LintContext(modules=ModuleContext(), symbols=SymbolIndex())
	codes = [d.code for d in lint(program, ctx)]
	assert codes == ["LINT_QUOTE_PROMPT", "LINT_PLAIN_TEMPLATE"]

	ctx_off = LintContext(modules=ModuleContext(), symbols=SymbolIndex(), prefer_quoted_strings_for_prompts=False)
	assert [d.code for d in lint(program, ctx_off)] == ["LINT_PLAIN_TEMPLATE"]


def test_lint_can_be_disabled() -> None:
	assert _codes("var dog = 1", lint_enabled=False) == []
