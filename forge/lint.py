# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lint rules layered over semantic analysis.

The resolver owns correctness (resolution, gating, types); lint owns style
and "you probably meant..." hints. Every rule is independent, none blocks
another, and the walk always descends into children after a rule fires.
The program tree is never modified.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional

from . import ast as A
from .core import diagnostics as D
from .core.diagnostics import Diagnostic
from .core.span import Position, Range
from .modules import ModuleContext, is_forge_module
from .registry import BUILTIN_ROOTS
from .resolver import SymbolIndex, TypeMap

STAGE = "lint"

_CAMEL_RE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
_PASCAL_RE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_UPPER_SNAKE_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")

# Prompt/print callees whose first argument should be a quoted string.
_PROMPT_CALLEES = (["inp"], ["inp", "var"], ["console", "text", "var"])

# Names a spelling slip is measured against.
_SPELLING_TARGETS = tuple(BUILTIN_ROOTS) + ("checkBoolean",)


def is_camel_case(name: str) -> bool:
	return bool(_CAMEL_RE.match(name))


def is_pascal_case(name: str) -> bool:
	return bool(_PASCAL_RE.match(name))


def is_upper_snake(name: str) -> bool:
	return bool(_UPPER_SNAKE_RE.match(name))


def looks_like_typo(given: str, target: str) -> bool:
	"""Shared prefix plus shared suffix covers at least 60% of the longer name."""
	if given == target or not given or not target:
		return False
	min_len = min(len(given), len(target))
	pref = 0
	while pref < min_len and given[pref] == target[pref]:
		pref += 1
	suf = 0
	while suf < min_len - pref and given[-1 - suf] == target[-1 - suf]:
		suf += 1
	return (pref + suf) / max(len(given), len(target)) >= 0.6


@dataclass
class LintContext:
	modules: ModuleContext
	symbols: SymbolIndex
	types: TypeMap = field(default_factory=dict)
	max_line_length: int = 140
	prefer_let_over_var: bool = True
	prefer_quoted_strings_for_prompts: bool = True
	# Line-length checks need the raw text; without it that rule is skipped.
	source: Optional[str] = None


def lint(program: A.Program, ctx: LintContext) -> List[Diagnostic]:
	linter = Linter(ctx)
	linter.run(program)
	return linter.diagnostics


class Linter:
	def __init__(self, ctx: LintContext) -> None:
		self.ctx = ctx
		self.diagnostics: List[Diagnostic] = []

	def run(self, program: A.Program) -> None:
		for stmt in program.body:
			self._visit_stmt(stmt)
		if self.ctx.source is not None:
			self._lint_line_length(self.ctx.source)

	def _info(self, code: str, message: str, rng: Range) -> None:
		self.diagnostics.append(D.info(code, message, rng, STAGE))

	def _warn(self, code: str, message: str, rng: Range) -> None:
		self.diagnostics.append(D.warning(code, message, rng, STAGE))

	def _error(self, code: str, message: str, rng: Range) -> None:
		self.diagnostics.append(D.error(code, message, rng, STAGE))

	# ------------------------------------------------------------------
	# Statements
	# ------------------------------------------------------------------

	def _visit_block(self, block: A.BlockStatement) -> None:
		for stmt in block.body:
			self._visit_stmt(stmt)

	def _visit_stmt(self, stmt: A.Stmt) -> None:
		if isinstance(stmt, A.VarDeclaration):
			self._lint_declaration(stmt)
			if stmt.initializer is not None:
				self._visit_expr(stmt.initializer)
		elif isinstance(stmt, A.AssignmentStatement):
			self._lint_const_store(stmt.target)
			self._visit_expr(stmt.target)
			self._visit_expr(stmt.value)
		elif isinstance(stmt, A.ExpressionStatement):
			self._visit_expr(stmt.expression)
		elif isinstance(stmt, A.BlockStatement):
			self._visit_block(stmt)
		elif isinstance(stmt, A.IfStatement):
			self._visit_expr(stmt.test)
			self._visit_block(stmt.consequent)
			for clause in stmt.elif_clauses:
				self._visit_expr(clause.test)
				self._visit_block(clause.consequent)
			if stmt.alternate is not None:
				self._visit_block(stmt.alternate)
			if not stmt.consequent.body:
				self._warn(
					"LINT_EMPTY_BLOCK",
					"Empty 'if' block. Consider removing it or adding logic.",
					stmt.consequent.range,
				)
		elif isinstance(stmt, A.ForStatement):
			if stmt.init is not None:
				self._visit_stmt(stmt.init)
			if stmt.test is not None:
				self._visit_expr(stmt.test)
			if stmt.update is not None:
				self._visit_expr(stmt.update)
			self._visit_loop_body("for", stmt.body)
		elif isinstance(stmt, A.ForEachStatement):
			self._visit_expr(stmt.iterable)
			self._visit_loop_body("forEach", stmt.body)
		elif isinstance(stmt, A.WhileStatement):
			self._visit_expr(stmt.test)
			self._visit_loop_body("while", stmt.body)
		elif isinstance(stmt, A.DoWhileStatement):
			self._visit_loop_body("do", stmt.body)
			self._visit_expr(stmt.test)
		elif isinstance(stmt, A.TryStatement):
			self._visit_block(stmt.block)
			if stmt.handler is not None:
				self._visit_block(stmt.handler.body)
			if stmt.finalizer is not None:
				self._visit_block(stmt.finalizer)
			if stmt.handler is None and stmt.finalizer is None:
				self._warn("LINT_TRY_NO_HANDLER", "A 'try' without 'catch' or 'finally' has no effect.", stmt.range)
		elif isinstance(stmt, A.FunctionDeclaration):
			name = stmt.name.name
			if not is_camel_case(name):
				self._info(
					"LINT_FUNC_NAME",
					f"Function name '{name}' should be camelCase (e.g., myFunction).",
					stmt.name.range,
				)
			for param in stmt.params:
				if param.default is not None:
					self._visit_expr(param.default)
			self._visit_block(stmt.body)
		elif isinstance(stmt, (A.ReturnStatement, A.ThrowStatement)):
			if stmt.argument is not None:
				self._visit_expr(stmt.argument)

	def _visit_loop_body(self, kind: str, body: A.BlockStatement) -> None:
		self._visit_block(body)
		if not body.body:
			self._warn("LINT_EMPTY_LOOP", f"Empty '{kind}' loop body. This is usually a bug.", body.range)

	# ------------------------------------------------------------------
	# Expressions
	# ------------------------------------------------------------------

	def _visit_expr(self, expr: A.Expr) -> None:
		if isinstance(expr, A.Identifier):
			self._lint_spelling(expr)
		elif isinstance(expr, A.NamespacedIdentifier):
			name = expr.name.name
			if is_pascal_case(name):
				self._info(
					"LINT_NS_NAME",
					f"Prefer camelCase for {expr.namespace}. variables (e.g., myVar).",
					expr.name.range,
				)
		elif isinstance(expr, A.MemberExpression):
			self._lint_module_hint(expr)
			self._visit_member_objects(expr)
		elif isinstance(expr, A.CallExpression):
			self._lint_prompt(expr)
			self._visit_expr(expr.callee)
			for arg in expr.args:
				self._visit_expr(arg.value)
		elif isinstance(expr, A.AssignmentExpression):
			self._lint_const_store(expr.left)
			self._visit_expr(expr.left)
			self._visit_expr(expr.right)
		elif isinstance(expr, A.UnaryExpression):
			self._visit_expr(expr.argument)
		elif isinstance(expr, A.BinaryExpression):
			self._visit_expr(expr.left)
			self._visit_expr(expr.right)
		elif isinstance(expr, A.BooleanOpExpression):
			self._visit_expr(expr.subject)
		elif isinstance(expr, A.AwaitExpression):
			self._visit_expr(expr.argument)
		elif isinstance(expr, (A.FunctionExpression, A.ArrowFunctionExpression)):
			for param in expr.params:
				if param.default is not None:
					self._visit_expr(param.default)
			if isinstance(expr.body, A.BlockStatement):
				self._visit_block(expr.body)
			else:
				self._visit_expr(expr.body)
		elif isinstance(expr, A.ObjectLiteral):
			self._lint_duplicate_keys(expr)
			for prop in expr.properties:
				self._visit_expr(prop.value)
		elif isinstance(expr, A.ArrayLiteral):
			for element in expr.elements:
				self._visit_expr(element)
		elif isinstance(expr, A.TemplateString):
			if not A.template_has_expressions(expr):
				self._info(
					"LINT_PLAIN_TEMPLATE",
					"This template has no {expressions}. A normal string literal is clearer.",
					expr.range,
				)
			for part in expr.parts:
				if isinstance(part, A.TemplateExprPart):
					self._visit_expr(part.expression)

	def _visit_member_objects(self, expr: A.MemberExpression) -> None:
		# The chain was already checked as a whole; descend without re-hinting.
		cur: A.Expr = expr.object
		while isinstance(cur, A.MemberExpression):
			cur = cur.object
		self._visit_expr(cur)

	# ------------------------------------------------------------------
	# Rules
	# ------------------------------------------------------------------

	def _lint_declaration(self, stmt: A.VarDeclaration) -> None:
		name = stmt.name.name
		if stmt.decl_kind == "var" and self.ctx.prefer_let_over_var:
			self._info("LINT_PREFER_LET", "Prefer 'let'/'const' over 'var' for safer scoping.", stmt.range)
		if stmt.decl_kind == "const" and stmt.initializer is None:
			self._warn("LINT_CONST_NO_INIT", f"Const '{name}' should be initialized when declared.", stmt.range)
		if not is_camel_case(name) and not is_upper_snake(name):
			self._info(
				"LINT_VAR_NAME",
				f"Variable '{name}' should be camelCase (or UPPER_SNAKE for constants).",
				stmt.name.range,
			)

	def _lint_const_store(self, target: A.Expr) -> None:
		if isinstance(target, A.NamespacedIdentifier) and target.namespace == "c":
			self._error("LINT_CONST_STORE", "Assignments into 'c.' are not allowed (const store).", target.range)

	def _lint_spelling(self, node: A.Identifier) -> None:
		name = node.name
		if name in BUILTIN_ROOTS or self.ctx.symbols.lookup_all(name):
			return
		if any(looks_like_typo(name, target) for target in _SPELLING_TARGETS):
			self._info(
				"LINT_SPELLING",
				f"Identifier '{name}' looks like a spelling variant. Keep it consistent.",
				node.range,
			)

	def _lint_module_hint(self, node: A.MemberExpression) -> None:
		chain = A.member_chain(node)
		if not chain:
			return
		root = chain[0]
		if is_forge_module(root) and not self.ctx.modules.is_enabled(root):
			self._info("LINT_ENABLE_MODULE", f"Tip: Add \"able '{root}'\" at the top to use {root}.*", node.range)

	def _lint_prompt(self, node: A.CallExpression) -> None:
		if not self.ctx.prefer_quoted_strings_for_prompts or not node.args:
			return
		if A.member_chain(node.callee) not in _PROMPT_CALLEES:
			return
		first = node.args[0].value
		if isinstance(first, A.TemplateString) and first.quote is None:
			self._info(
				"LINT_QUOTE_PROMPT",
				"Consider using quotes for prompts/messages to avoid ambiguity (e.g., inp('What is your name? >> ')).",
				first.range,
			)

	def _lint_duplicate_keys(self, node: A.ObjectLiteral) -> None:
		seen = set()
		for prop in node.properties:
			key = prop.key.name
			if key in seen:
				self._warn("LINT_DUP_KEY", f"Duplicate object key '{key}'. The last one will win.", prop.key.range)
			seen.add(key)

	def _lint_line_length(self, source: str) -> None:
		limit = self.ctx.max_line_length
		if limit <= 0:
			return
		offset = 0
		for line_no, line in enumerate(source.split("\n")):
			text = line.rstrip("\r")
			if len(text) > limit:
				start = Position(offset + limit, line_no, limit)
				end = Position(offset + len(text), line_no, len(text))
				self._info(
					"LINT_LINE_LENGTH",
					f"Line is {len(text)} characters long (limit {limit}).",
					Range(start, end),
				)
			offset += len(line) + 1


__all__ = [
	"STAGE",
	"LintContext",
	"Linter",
	"lint",
	"looks_like_typo",
	"is_camel_case",
	"is_pascal_case",
	"is_upper_snake",
]
