# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Program-tree contract consumed by the resolver, lint engine, interpreter and
editor features.

Any front end may produce these nodes; the bundled lark-based parser
(`forge.parser`) is one such producer. Every node carries a `range`.
Nodes are plain mutable dataclasses but no analysis stage mutates them;
per-node facts (inferred types) are keyed by `id(node)` instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .core.span import Range

STORES = ("l", "v", "c")

DECL_STORE = {"let": "l", "var": "v", "const": "c"}


class Node:
	range: Range


class Stmt(Node):
	pass


class Expr(Node):
	pass


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class Identifier(Expr):
	range: Range
	name: str


@dataclass(eq=False)
class NamespacedIdentifier(Expr):
	"""`l.name`, `v.name` or `c.name`: a reference pinned to one store."""

	range: Range
	namespace: str
	name: Identifier


@dataclass(eq=False)
class PropertyKey:
	range: Range
	name: str
	escaped: bool = False


@dataclass(eq=False)
class MemberExpression(Expr):
	range: Range
	object: Expr
	property: PropertyKey


@dataclass(eq=False)
class PositionalArgument:
	range: Range
	value: Expr


@dataclass(eq=False)
class NamedArgument:
	range: Range
	name: Identifier
	value: Expr


CallArgument = Union[PositionalArgument, NamedArgument]


@dataclass(eq=False)
class CallExpression(Expr):
	range: Range
	callee: Expr
	args: List[CallArgument] = field(default_factory=list)


@dataclass(eq=False)
class AssignmentExpression(Expr):
	range: Range
	left: Expr
	right: Expr
	operator: str = "="


@dataclass(eq=False)
class UnaryExpression(Expr):
	range: Range
	operator: str
	argument: Expr


@dataclass(eq=False)
class BinaryExpression(Expr):
	range: Range
	operator: str
	left: Expr
	right: Expr


@dataclass(eq=False)
class BooleanOpExpression(Expr):
	"""
	Forge boolean operators.

	`op == "query"` is `?isBoolean` / `!isBoolean` (negate=True); `op == "cast"`
	is `isBoolean`. `force` carries the `.t` / `.f` suffix when present.
	"""

	range: Range
	subject: Expr
	op: str
	negate: bool = False
	force: Optional[bool] = None


@dataclass(eq=False)
class AwaitExpression(Expr):
	range: Range
	argument: Expr


@dataclass(eq=False)
class FunctionParameter:
	range: Range
	name: Identifier
	default: Optional[Expr] = None


@dataclass(eq=False)
class FunctionExpression(Expr):
	range: Range
	params: List[FunctionParameter]
	body: "BlockStatement"
	name: Optional[Identifier] = None
	is_async: bool = False


@dataclass(eq=False)
class ArrowFunctionExpression(Expr):
	range: Range
	params: List[FunctionParameter]
	body: Union["BlockStatement", Expr]
	is_async: bool = False


@dataclass(eq=False)
class ObjectProperty:
	range: Range
	key: PropertyKey
	value: Expr


@dataclass(eq=False)
class ObjectLiteral(Expr):
	range: Range
	properties: List[ObjectProperty] = field(default_factory=list)


@dataclass(eq=False)
class ArrayLiteral(Expr):
	range: Range
	elements: List[Expr] = field(default_factory=list)


@dataclass(eq=False)
class TemplateTextPart:
	range: Range
	text: str


@dataclass(eq=False)
class TemplateExprPart:
	range: Range
	expression: Expr


TemplatePart = Union[TemplateTextPart, TemplateExprPart]


@dataclass(eq=False)
class TemplateString(Expr):
	"""Interpolated text; `quote` is None for bare (unquoted) templates."""

	range: Range
	parts: List[TemplatePart] = field(default_factory=list)
	quote: Optional[str] = None


@dataclass(eq=False)
class StringLiteral(Expr):
	range: Range
	value: str
	quote: str = "'"


@dataclass(eq=False)
class NumberLiteral(Expr):
	range: Range
	value: float
	raw: str = ""


@dataclass(eq=False)
class BooleanLiteral(Expr):
	range: Range
	value: bool


@dataclass(eq=False)
class NullLiteral(Expr):
	range: Range


@dataclass(eq=False)
class DurationLiteral(Expr):
	range: Range
	value: float
	unit: str
	raw: str


Literal = Union[StringLiteral, NumberLiteral, BooleanLiteral, NullLiteral, DurationLiteral]


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class BlockStatement(Stmt):
	range: Range
	body: List[Stmt] = field(default_factory=list)


@dataclass(eq=False)
class DisableDirective(Stmt):
	range: Range
	target: StringLiteral


@dataclass(eq=False)
class AbleDirective(Stmt):
	range: Range
	modules: List[StringLiteral] = field(default_factory=list)


@dataclass(eq=False)
class VarDeclaration(Stmt):
	range: Range
	decl_kind: str
	name: Identifier
	initializer: Optional[Expr] = None

	@property
	def store(self) -> str:
		return DECL_STORE[self.decl_kind]


@dataclass(eq=False)
class AssignmentStatement(Stmt):
	range: Range
	target: Expr
	value: Expr


@dataclass(eq=False)
class ExpressionStatement(Stmt):
	range: Range
	expression: Expr


@dataclass(eq=False)
class ElifClause(Node):
	range: Range
	test: Expr
	consequent: BlockStatement


@dataclass(eq=False)
class IfStatement(Stmt):
	range: Range
	test: Expr
	consequent: BlockStatement
	elif_clauses: List[ElifClause] = field(default_factory=list)
	alternate: Optional[BlockStatement] = None


@dataclass(eq=False)
class WhileStatement(Stmt):
	range: Range
	test: Expr
	body: BlockStatement


@dataclass(eq=False)
class DoWhileStatement(Stmt):
	range: Range
	body: BlockStatement
	test: Expr


@dataclass(eq=False)
class ForStatement(Stmt):
	range: Range
	init: Optional[Stmt]
	test: Optional[Expr]
	update: Optional[Expr]
	body: BlockStatement


@dataclass(eq=False)
class ForEachStatement(Stmt):
	range: Range
	item: Identifier
	iterable: Expr
	body: BlockStatement


@dataclass(eq=False)
class BreakStatement(Stmt):
	range: Range


@dataclass(eq=False)
class ContinueStatement(Stmt):
	range: Range


@dataclass(eq=False)
class ReturnStatement(Stmt):
	range: Range
	argument: Optional[Expr] = None


@dataclass(eq=False)
class ThrowStatement(Stmt):
	range: Range
	argument: Expr


@dataclass(eq=False)
class CatchClause(Node):
	range: Range
	param: Optional[Identifier]
	body: BlockStatement


@dataclass(eq=False)
class TryStatement(Stmt):
	range: Range
	block: BlockStatement
	handler: Optional[CatchClause] = None
	finalizer: Optional[BlockStatement] = None


@dataclass(eq=False)
class FunctionDeclaration(Stmt):
	range: Range
	name: Identifier
	params: List[FunctionParameter]
	body: BlockStatement
	is_async: bool = False


@dataclass(eq=False)
class Program(Node):
	range: Range
	body: List[Stmt] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def member_chain(expr: Expr) -> Optional[List[str]]:
	"""
	Flatten `a.b.c` into `["a", "b", "c"]`.

	Returns None when the chain does not bottom out in a plain Identifier
	(calls, literals and namespaced roots are not builtin chains).
	"""
	names: List[str] = []
	cur: Expr = expr
	while isinstance(cur, MemberExpression):
		names.append(cur.property.name)
		cur = cur.object
	if not isinstance(cur, Identifier):
		return None
	names.append(cur.name)
	names.reverse()
	return names


def chain_root(expr: Expr) -> Expr:
	"""Innermost object of a member chain (the expression itself if not a member)."""
	cur = expr
	while isinstance(cur, MemberExpression):
		cur = cur.object
	return cur


def template_has_expressions(node: TemplateString) -> bool:
	return any(isinstance(p, TemplateExprPart) for p in node.parts)


__all__ = [
	"STORES",
	"DECL_STORE",
	"Node",
	"Stmt",
	"Expr",
	"Identifier",
	"NamespacedIdentifier",
	"PropertyKey",
	"MemberExpression",
	"PositionalArgument",
	"NamedArgument",
	"CallArgument",
	"CallExpression",
	"AssignmentExpression",
	"UnaryExpression",
	"BinaryExpression",
	"BooleanOpExpression",
	"AwaitExpression",
	"FunctionParameter",
	"FunctionExpression",
	"ArrowFunctionExpression",
	"ObjectProperty",
	"ObjectLiteral",
	"ArrayLiteral",
	"TemplateTextPart",
	"TemplateExprPart",
	"TemplatePart",
	"TemplateString",
	"StringLiteral",
	"NumberLiteral",
	"BooleanLiteral",
	"NullLiteral",
	"DurationLiteral",
	"Literal",
	"BlockStatement",
	"DisableDirective",
	"AbleDirective",
	"VarDeclaration",
	"AssignmentStatement",
	"ExpressionStatement",
	"ElifClause",
	"IfStatement",
	"WhileStatement",
	"DoWhileStatement",
	"ForStatement",
	"ForEachStatement",
	"BreakStatement",
	"ContinueStatement",
	"ReturnStatement",
	"ThrowStatement",
	"CatchClause",
	"TryStatement",
	"FunctionDeclaration",
	"Program",
	"member_chain",
	"chain_root",
	"template_has_expressions",
]
