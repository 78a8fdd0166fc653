# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Semantic resolver: symbols, module gating and best-effort type inference.

The resolver walks a `Program` once, front to back. Forge's variable model
is flat: three stores (`l` for `let`, `v` for `var`, `c` for `const`) that
are not block scoped, so a reference only sees declarations made at or
before its position. A bare name is looked up in all three stores and is an
error when it is missing everywhere or present in more than one store;
`l.x` / `v.x` / `c.x` pin the lookup to one store.

Function parameters, `forEach` items and `catch` bindings live in a stack of
local scopes that is consulted before the stores. At run time those bindings
sit in the `l` store of the current block, so `l.item` also sees them.

The resolver does not guard itself against internal failures; the pipeline
owns that boundary (see `forge.pipeline`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from . import ast as A
from .core import diagnostics as D
from .core.diagnostics import Diagnostic
from .core.span import Range
from .modules import ModuleContext, enable_hint, is_forge_module
from .registry import (
	BuiltinFunction,
	entry_type,
	is_builtin_root,
	resolve_builtin,
)
from .types import (
	ForgeType,
	T_ANY,
	T_BOOLEAN,
	T_NULL,
	T_NUMBER,
	T_STRING,
	T_UNKNOWN,
	T_VOID,
	TypeKind,
	is_assignable,
	is_boolean_like,
	t_array,
	t_function,
	t_lit_boolean,
	t_lit_number,
	t_lit_string,
	t_object,
	type_to_string,
	unify,
	unify_all,
	widen_literal,
)

STAGE = "semantic"

TypeMap = Dict[int, ForgeType]

_COMPARISON_OPS = frozenset({"==", "!=", "===", "!==", "<", "<=", ">", ">="})
_LOGIC_OPS = frozenset({"&&", "||"})
_ARITH_OPS = frozenset({"+", "-", "x", "*", "/", "%", "§"})


@dataclass(frozen=True)
class SymbolInfo:
	name: str
	store: str
	mutability: str
	type: ForgeType
	declared_at: Range

	@property
	def qualified_name(self) -> str:
		return f"{self.store}.{self.name}"


@dataclass
class SymbolIndex:
	"""
	Three independent stores plus a `global` aggregate.

	Resolution never consults `global`: it exists for editor listings, where
	the most recent declaration of a name wins.
	"""

	l: Dict[str, SymbolInfo] = field(default_factory=dict)
	v: Dict[str, SymbolInfo] = field(default_factory=dict)
	c: Dict[str, SymbolInfo] = field(default_factory=dict)
	global_: Dict[str, SymbolInfo] = field(default_factory=dict)

	def store(self, name: str) -> Dict[str, SymbolInfo]:
		if name == "l":
			return self.l
		if name == "v":
			return self.v
		if name == "c":
			return self.c
		raise KeyError(name)

	def lookup(self, store: str, name: str) -> Optional[SymbolInfo]:
		return self.store(store).get(name)

	def lookup_all(self, name: str) -> List[str]:
		"""Stores (in `l`, `v`, `c` order) that hold `name`."""
		return [s for s in A.STORES if name in self.store(s)]

	def define(self, sym: SymbolInfo) -> None:
		self.store(sym.store)[sym.name] = sym
		self.global_[sym.name] = sym

	def all_symbols(self) -> List[SymbolInfo]:
		return [*self.l.values(), *self.v.values(), *self.c.values()]


@dataclass(frozen=True)
class ResolverOptions:
	relaxed_member_access: bool = True
	ignore_module_gating: bool = False


@dataclass
class SemanticResult:
	diagnostics: List[Diagnostic]
	symbols: SymbolIndex
	modules: ModuleContext
	types: TypeMap

	def type_of(self, node: A.Node) -> Optional[ForgeType]:
		return self.types.get(id(node))


def empty_semantic_state() -> SemanticResult:
	"""State handed downstream when resolution itself failed."""
	return SemanticResult([], SymbolIndex(), ModuleContext(), {})


def resolve(
	program: A.Program,
	options: Optional[ResolverOptions] = None,
	modules: Optional[ModuleContext] = None,
) -> SemanticResult:
	"""Resolve `program`; `modules` seeds the starting module state (copied)."""
	resolver = Resolver(options or ResolverOptions(), modules.copy() if modules else ModuleContext())
	return resolver.run(program)


class Resolver:
	def __init__(self, options: ResolverOptions, modules: ModuleContext) -> None:
		self.options = options
		self.modules = modules
		self.symbols = SymbolIndex()
		self.types: TypeMap = {}
		self.diagnostics: List[Diagnostic] = []
		self._locals: List[Dict[str, ForgeType]] = []
		self._returns: List[List[ForgeType]] = []

	def run(self, program: A.Program) -> SemanticResult:
		for stmt in program.body:
			self._visit_stmt(stmt)
		return SemanticResult(self.diagnostics, self.symbols, self.modules, self.types)

	# ------------------------------------------------------------------
	# Diagnostics
	# ------------------------------------------------------------------

	def _error(self, code: str, message: str, rng: Range, hint: Optional[str] = None) -> None:
		self.diagnostics.append(D.error(code, message, rng, STAGE, hint))

	def _warn(self, code: str, message: str, rng: Range, hint: Optional[str] = None) -> None:
		self.diagnostics.append(D.warning(code, message, rng, STAGE, hint))

	def _member_problem(self, strict_message: str, relaxed_message: str, rng: Range) -> None:
		if self.options.relaxed_member_access:
			self._warn("PROPERTY_ON_NON_OBJECT", relaxed_message, rng)
		else:
			self._error("PROPERTY_ON_NON_OBJECT", strict_message, rng)

	def _set(self, node: A.Node, t: ForgeType) -> ForgeType:
		self.types[id(node)] = t
		return t

	# ------------------------------------------------------------------
	# Local scopes (params, forEach items, catch bindings)
	# ------------------------------------------------------------------

	def _lookup_local(self, name: str) -> Optional[ForgeType]:
		for scope in reversed(self._locals):
			if name in scope:
				return scope[name]
		return None

	def _push_locals(self, bindings: Optional[Dict[str, ForgeType]] = None) -> None:
		self._locals.append(dict(bindings or {}))

	def _pop_locals(self) -> None:
		self._locals.pop()

	# ------------------------------------------------------------------
	# Statements
	# ------------------------------------------------------------------

	def _visit_block(self, block: A.BlockStatement) -> None:
		for stmt in block.body:
			self._visit_stmt(stmt)

	def _visit_stmt(self, stmt: A.Stmt) -> None:
		if isinstance(stmt, A.DisableDirective):
			self.modules.disable(stmt.target.value)
		elif isinstance(stmt, A.AbleDirective):
			self.modules.able(m.value for m in stmt.modules)
		elif isinstance(stmt, A.VarDeclaration):
			self._visit_declaration(stmt)
		elif isinstance(stmt, A.AssignmentStatement):
			self._visit_assignment(stmt.target, stmt.value, stmt.range)
		elif isinstance(stmt, A.ExpressionStatement):
			self._visit_expr(stmt.expression)
		elif isinstance(stmt, A.BlockStatement):
			self._visit_block(stmt)
		elif isinstance(stmt, A.IfStatement):
			self._check_condition(stmt.test)
			self._visit_block(stmt.consequent)
			for clause in stmt.elif_clauses:
				self._check_condition(clause.test)
				self._visit_block(clause.consequent)
			if stmt.alternate is not None:
				self._visit_block(stmt.alternate)
		elif isinstance(stmt, A.WhileStatement):
			self._check_condition(stmt.test)
			self._visit_block(stmt.body)
		elif isinstance(stmt, A.DoWhileStatement):
			self._visit_block(stmt.body)
			self._check_condition(stmt.test)
		elif isinstance(stmt, A.ForStatement):
			if stmt.init is not None:
				self._visit_stmt(stmt.init)
			if stmt.test is not None:
				self._check_condition(stmt.test)
			if stmt.update is not None:
				self._visit_expr(stmt.update)
			self._visit_block(stmt.body)
		elif isinstance(stmt, A.ForEachStatement):
			self._visit_foreach(stmt)
		elif isinstance(stmt, A.TryStatement):
			self._visit_block(stmt.block)
			if stmt.handler is not None:
				bindings = {stmt.handler.param.name: T_ANY} if stmt.handler.param is not None else {}
				self._push_locals(bindings)
				try:
					self._visit_block(stmt.handler.body)
				finally:
					self._pop_locals()
			if stmt.finalizer is not None:
				self._visit_block(stmt.finalizer)
		elif isinstance(stmt, A.FunctionDeclaration):
			self._visit_function_declaration(stmt)
		elif isinstance(stmt, A.ReturnStatement):
			t = self._visit_expr(stmt.argument) if stmt.argument is not None else T_VOID
			if self._returns:
				self._returns[-1].append(t)
		elif isinstance(stmt, A.ThrowStatement):
			self._visit_expr(stmt.argument)
		elif isinstance(stmt, (A.BreakStatement, A.ContinueStatement)):
			pass
		else:
			self._warn("SEM_UNKNOWN_STMT", f"Unknown statement kind '{type(stmt).__name__}'.", stmt.range)

	def _visit_declaration(self, stmt: A.VarDeclaration) -> None:
		t = self._visit_expr(stmt.initializer) if stmt.initializer is not None else T_UNKNOWN
		store = stmt.store
		name = stmt.name.name
		if self.symbols.lookup(store, name) is not None:
			self._error(
				"DUPLICATE_DECLARATION",
				f"Variable '{store}.{name}' is already declared.",
				stmt.name.range,
			)
			return
		self.symbols.define(SymbolInfo(name, store, stmt.decl_kind, t, stmt.name.range))

	def _check_condition(self, test: A.Expr) -> None:
		t = self._visit_expr(test)
		if not is_boolean_like(t):
			self._warn("SEM_COND_BOOL", f"Condition should be boolean, got {type_to_string(t)}.", test.range)

	def _visit_foreach(self, stmt: A.ForEachStatement) -> None:
		it = self._visit_expr(stmt.iterable)
		kind = widen_literal(it).kind
		item_t = T_UNKNOWN
		if kind is TypeKind.ARRAY:
			item_t = it.element or T_UNKNOWN
		elif kind not in (TypeKind.ANY, TypeKind.UNKNOWN, TypeKind.UNION):
			self._warn(
				"SEM_FOREACH_IT",
				f"forEach expects an array-like iterable, got {type_to_string(it)}.",
				stmt.iterable.range,
			)
		self._set(stmt.item, item_t)
		self._push_locals({stmt.item.name: item_t})
		try:
			self._visit_block(stmt.body)
		finally:
			self._pop_locals()

	def _visit_function_declaration(self, stmt: A.FunctionDeclaration) -> None:
		name = stmt.name.name
		params = [T_UNKNOWN for _ in stmt.params]
		if self.symbols.lookup("l", name) is not None:
			self._error("DUPLICATE_DECLARATION", f"Function '{name}' is already declared.", stmt.name.range)
			self._function_type(stmt.params, stmt.body)
			return
		# Register before the body so recursive calls resolve.
		self.symbols.define(SymbolInfo(name, "l", "const", t_function(params, T_UNKNOWN), stmt.name.range))
		fn_t = self._function_type(stmt.params, stmt.body)
		self.symbols.define(SymbolInfo(name, "l", "const", fn_t, stmt.name.range))
		self._set(stmt.name, fn_t)

	def _function_type(self, params: Sequence[A.FunctionParameter], body: A.Node) -> ForgeType:
		bindings: Dict[str, ForgeType] = {}
		for p in params:
			t = self._visit_expr(p.default) if p.default is not None else T_UNKNOWN
			bindings[p.name.name] = widen_literal(t)
		self._push_locals(bindings)
		self._returns.append([])
		try:
			if isinstance(body, A.BlockStatement):
				self._visit_block(body)
				returns = self._returns[-1]
			else:
				returns = [self._visit_expr(body)]  # type: ignore[arg-type]
		finally:
			self._returns.pop()
			self._pop_locals()
		returns_t = unify_all(returns, default=T_VOID)
		return t_function([T_UNKNOWN for _ in params], returns_t)

	# ------------------------------------------------------------------
	# Assignment
	# ------------------------------------------------------------------

	def _visit_assignment(self, target: A.Expr, value: A.Expr, rng: Range) -> ForgeType:
		value_t = self._visit_expr(value)
		declared: Optional[ForgeType] = None

		if isinstance(target, A.Identifier):
			local = self._lookup_local(target.name)
			if local is not None:
				self._set(target, local)
			else:
				sym = self._resolve_unqualified(target)
				if sym is not None:
					declared = sym.type
					self._check_const(sym, target.range)
		elif isinstance(target, A.NamespacedIdentifier):
			store, name = target.namespace, target.name.name
			sym = self.symbols.lookup(store, name)
			if sym is None:
				if not (store == "l" and self._lookup_local(name) is not None):
					# Writing into a store creates the binding.
					self.symbols.define(SymbolInfo(name, store, "const" if store == "c" else "let", value_t, target.range))
			else:
				declared = sym.type
				self._check_const(sym, target.range)
			self._set(target, declared or value_t)
		elif isinstance(target, A.MemberExpression):
			obj_t = self._visit_expr(target.object)
			if obj_t.kind is TypeKind.OBJECT:
				declared = obj_t.prop(target.property.name)
		else:
			self._visit_expr(target)

		if declared is not None and _checkable(declared) and _checkable(value_t):
			if not is_assignable(value_t, widen_literal(declared)):
				self._warn(
					"SEM_TYPE_ASSIGN",
					f"Type mismatch: cannot assign {type_to_string(value_t)} to {type_to_string(declared)}.",
					rng,
				)
		return value_t

	def _check_const(self, sym: SymbolInfo, rng: Range) -> None:
		if sym.mutability == "const":
			self._error("SEM_CONST_REASSIGN", f"Cannot assign to const '{sym.name}'.", rng)

	# ------------------------------------------------------------------
	# Expressions
	# ------------------------------------------------------------------

	def _visit_expr(self, expr: A.Expr) -> ForgeType:
		if isinstance(expr, A.StringLiteral):
			return self._set(expr, t_lit_string(expr.value))
		if isinstance(expr, A.NumberLiteral):
			return self._set(expr, t_lit_number(expr.value))
		if isinstance(expr, A.BooleanLiteral):
			return self._set(expr, t_lit_boolean(expr.value))
		if isinstance(expr, A.NullLiteral):
			return self._set(expr, T_NULL)
		if isinstance(expr, A.DurationLiteral):
			# Durations evaluate to their literal text ("1s").
			return self._set(expr, T_STRING)
		if isinstance(expr, A.TemplateString):
			for part in expr.parts:
				if isinstance(part, A.TemplateExprPart):
					self._visit_expr(part.expression)
			return self._set(expr, T_STRING)
		if isinstance(expr, A.Identifier):
			return self._visit_identifier(expr)
		if isinstance(expr, A.NamespacedIdentifier):
			return self._visit_namespaced(expr)
		if isinstance(expr, A.MemberExpression):
			return self._visit_member(expr)
		if isinstance(expr, A.CallExpression):
			return self._visit_call(expr)
		if isinstance(expr, A.AssignmentExpression):
			return self._set(expr, self._visit_assignment(expr.left, expr.right, expr.range))
		if isinstance(expr, A.UnaryExpression):
			self._visit_expr(expr.argument)
			return self._set(expr, T_BOOLEAN if expr.operator == "!" else T_NUMBER)
		if isinstance(expr, A.BinaryExpression):
			return self._visit_binary(expr)
		if isinstance(expr, A.BooleanOpExpression):
			self._visit_expr(expr.subject)
			return self._set(expr, T_BOOLEAN)
		if isinstance(expr, A.AwaitExpression):
			self._visit_expr(expr.argument)
			return self._set(expr, T_UNKNOWN)
		if isinstance(expr, A.ObjectLiteral):
			props: Dict[str, ForgeType] = {}
			for prop in expr.properties:
				props[prop.key.name] = self._visit_expr(prop.value)
			return self._set(expr, t_object(props, open=True))
		if isinstance(expr, A.ArrayLiteral):
			element = T_UNKNOWN
			for e in expr.elements:
				element = unify(element, self._visit_expr(e))
			return self._set(expr, t_array(element))
		if isinstance(expr, (A.FunctionExpression, A.ArrowFunctionExpression)):
			return self._set(expr, self._function_type(expr.params, expr.body))
		self._warn("SEM_UNKNOWN_EXPR", f"Unknown expression kind '{type(expr).__name__}'.", expr.range)
		return self._set(expr, T_UNKNOWN)

	def _resolve_unqualified(self, node: A.Identifier) -> Optional[SymbolInfo]:
		name = node.name
		hits = self.symbols.lookup_all(name)
		if not hits:
			self._error(
				"UNDEFINED_VARIABLE",
				f"Undefined variable '{name}'.",
				node.range,
				"Declare it with let/var/const before use.",
			)
			self._set(node, T_UNKNOWN)
			return None
		if len(hits) > 1:
			stores = ", ".join(f"{s}." for s in hits)
			self._error(
				"AMBIGUOUS_VARIABLE",
				f"Ambiguous variable '{name}' found in {stores} Use an explicit namespace.",
				node.range,
				f"Qualify the reference, e.g. {hits[0]}.{name}.",
			)
			self._set(node, T_UNKNOWN)
			return None
		sym = self.symbols.lookup(hits[0], name)
		assert sym is not None
		self._set(node, sym.type)
		return sym

	def _visit_identifier(self, node: A.Identifier) -> ForgeType:
		local = self._lookup_local(node.name)
		if local is not None:
			return self._set(node, local)
		if is_builtin_root(node.name):
			entry = resolve_builtin([node.name])
			assert entry is not None
			return self._set(node, entry_type(entry))
		sym = self._resolve_unqualified(node)
		return sym.type if sym is not None else T_UNKNOWN

	def _visit_namespaced(self, node: A.NamespacedIdentifier) -> ForgeType:
		store, name = node.namespace, node.name.name
		if store == "l":
			local = self._lookup_local(name)
			if local is not None:
				return self._set(node, local)
		sym = self.symbols.lookup(store, name)
		if sym is None:
			self._error("UNDEFINED_IN_NAMESPACE", f"Undefined {store}. variable '{name}'.", node.range)
			return self._set(node, T_UNKNOWN)
		return self._set(node, sym.type)

	def _builtin_chain(self, expr: A.Expr) -> Optional[List[str]]:
		"""Member chain rooted at a builtin (not shadowed by a local binding)."""
		chain = A.member_chain(expr)
		if not chain or not is_builtin_root(chain[0]):
			return None
		if self._lookup_local(chain[0]) is not None:
			return None
		return chain

	def _check_gating(self, root: A.Identifier) -> None:
		name = root.name
		if self.options.ignore_module_gating or not is_forge_module(name):
			return
		if self.modules.is_enabled(name):
			return
		self._error("MODULE_NOT_ENABLED", f"Module '{name}' is not enabled.", root.range, enable_hint(name))

	def _visit_member(self, node: A.MemberExpression) -> ForgeType:
		chain = self._builtin_chain(node)
		if chain is not None:
			return self._visit_builtin_chain(node)
		obj_t = self._visit_expr(node.object)
		return self._set(node, self._property_type(obj_t, node))

	def _visit_builtin_chain(self, node: A.MemberExpression) -> ForgeType:
		members: List[A.MemberExpression] = []
		cur: A.Expr = node
		while isinstance(cur, A.MemberExpression):
			members.append(cur)
			cur = cur.object
		assert isinstance(cur, A.Identifier)
		members.reverse()
		# One gating diagnostic per chain, at the root.
		self._check_gating(cur)
		path = [cur.name]
		entry = resolve_builtin(path)
		t = self._set(cur, entry_type(entry)) if entry is not None else T_UNKNOWN
		for member in members:
			path.append(member.property.name)
			if entry is not None:
				entry = resolve_builtin(path)
			if entry is not None:
				t = self._set(member, entry_type(entry))
			else:
				t = self._set(member, self._property_type(t, member))
		return t

	def _property_type(self, obj_t: ForgeType, node: A.MemberExpression) -> ForgeType:
		key = node.property.name
		kind = obj_t.kind
		if kind is TypeKind.OBJECT:
			hit = obj_t.prop(key)
			if hit is not None:
				return hit
			if not obj_t.open:
				self._member_problem(
					f"Property '{key}' does not exist on this object.",
					f"Unknown property '{key}' on object.",
					node.range,
				)
			return T_UNKNOWN
		if kind is TypeKind.ARRAY and key.isdigit():
			assert obj_t.element is not None
			return obj_t.element
		if kind in (TypeKind.ANY, TypeKind.UNKNOWN, TypeKind.UNION):
			return T_UNKNOWN
		shown = type_to_string(obj_t)
		self._member_problem(
			f"Cannot access property '{key}' on {shown}.",
			f"Property access on {shown} is probably invalid.",
			node.range,
		)
		return T_UNKNOWN

	def _visit_call(self, node: A.CallExpression) -> ForgeType:
		arg_types: List[Optional[ForgeType]] = []
		for arg in node.args:
			t = self._visit_expr(arg.value)
			arg_types.append(t if isinstance(arg, A.PositionalArgument) else None)

		callee_t = self._visit_expr(node.callee)
		chain = A.member_chain(node.callee)
		entry = None
		if chain and is_builtin_root(chain[0]) and self._lookup_local(chain[0]) is None:
			entry = resolve_builtin(chain)

		if isinstance(entry, BuiltinFunction):
			for i, (arg, param) in enumerate(zip(node.args, entry.params)):
				have = arg_types[i]
				if have is None or not _checkable(have):
					continue
				if not is_assignable(have, param.type):
					self._warn(
						"SEM_ARG_TYPE",
						f"Argument {i + 1} expects {type_to_string(param.type)}, got {type_to_string(have)}.",
						arg.range,
					)
			return self._set(node, entry.returns)

		if callee_t.kind is TypeKind.FUNCTION:
			return self._set(node, callee_t.returns or T_UNKNOWN)
		return self._set(node, T_UNKNOWN)

	def _visit_binary(self, node: A.BinaryExpression) -> ForgeType:
		op = node.operator
		left = self._visit_expr(node.left)
		right = self._visit_expr(node.right)
		if op in _LOGIC_OPS or op in _COMPARISON_OPS:
			return self._set(node, T_BOOLEAN)
		if op in _ARITH_OPS:
			if op == "+" and (_is_stringish(left) or _is_stringish(right)):
				return self._set(node, T_STRING)
			if not (_numeric_ok(left) and _numeric_ok(right)):
				self._warn(
					"SEM_BIN_NUM",
					f"Operator '{op}' expects numbers, got {type_to_string(left)} and {type_to_string(right)}.",
					node.range,
				)
			return self._set(node, T_NUMBER)
		return self._set(node, T_UNKNOWN)


def _checkable(t: ForgeType) -> bool:
	"""Types worth comparing; `unknown`/`null` carry no usable shape."""
	return t.kind not in (TypeKind.UNKNOWN, TypeKind.ANY, TypeKind.NULL)


def _is_stringish(t: ForgeType) -> bool:
	return widen_literal(t).kind is TypeKind.STRING


def _numeric_ok(t: ForgeType) -> bool:
	return widen_literal(t).kind in (TypeKind.NUMBER, TypeKind.UNKNOWN, TypeKind.ANY, TypeKind.UNION)


__all__ = [
	"STAGE",
	"TypeMap",
	"SymbolInfo",
	"SymbolIndex",
	"ResolverOptions",
	"SemanticResult",
	"Resolver",
	"resolve",
	"empty_semantic_state",
]
