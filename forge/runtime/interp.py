# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Tree-walking interpreter for Forge programs.

`Interpreter(host, builtins, limits).execute(program)` is the only entry
point. The interpreter follows the same store model as the resolver: every
variable lives in one of three stores (`l`, `v`, `c`), each block opens a new
scope layer, and unqualified names must resolve to exactly one store.
Function calls see the scopes of their caller (dynamic scoping); a call opens
a fresh layer for its parameters.

Statement forms the interpreter does not know are skipped and recorded as
`RUN_SKIPPED_STATEMENT` diagnostics. Step and wall-clock budgets are checked
at every statement boundary and at every loop iteration.
"""

from __future__ import annotations

import math
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .. import ast as A
from ..core import diagnostics as D
from ..core.diagnostics import Diagnostic
from ..core.span import Range
from ..modules import ALL_IN_ONE, is_forge_module
from .builtins import RuntimeContext, build_builtins
from .host import Host
from .values import (
	ForgeFunction,
	ForgeRuntimeError,
	LazyValue,
	NativeFunction,
	cast_to_boolean,
	deep_equals,
	ensure_array,
	ensure_number,
	is_boolean_like,
	to_string_value,
	type_name,
)

STAGE = "runtime"


class _Signal(Exception):
	"""Non-local control flow; never visible to Forge `catch` blocks."""


class BreakSignal(_Signal):
	pass


class ContinueSignal(_Signal):
	pass


class ReturnSignal(_Signal):
	def __init__(self, value: Any) -> None:
		super().__init__("return")
		self.value = value


class ExecutionLimitError(Exception):
	code = "RUN_LIMIT"


class StepLimitExceeded(ExecutionLimitError):
	code = "RUN_STEP_LIMIT"

	def __init__(self, limit: int) -> None:
		super().__init__(f"Execution exceeded the step limit ({limit}).")
		self.limit = limit


class ExecutionTimeout(ExecutionLimitError):
	code = "RUN_TIMEOUT"

	def __init__(self, timeout_ms: float) -> None:
		super().__init__(f"Execution exceeded the time limit ({timeout_ms:g}ms).")
		self.timeout_ms = timeout_ms


@dataclass(frozen=True)
class ExecutionLimits:
	max_steps: Optional[int] = None
	timeout_ms: Optional[float] = None


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

Scope = Dict[str, Dict[str, Any]]


def _new_scope() -> Scope:
	return {ns: {} for ns in A.STORES}


class Environment:
	"""
	A stack of scopes, each holding the three stores.

	Declarations land in the nearest frame (the program or a function call).
	Binding layers sit on top of a frame and hold only `forEach` items and
	`catch` parameters; blocks add no scope of their own.
	"""

	def __init__(self) -> None:
		self.scopes: List[Scope] = [_new_scope()]
		self._frames: List[bool] = [True]
		self._sites: List[Dict[Tuple[str, str], object]] = [{}]

	@property
	def current(self) -> Scope:
		return self.scopes[-1]

	def push(self, frame: bool = True) -> None:
		self.scopes.append(_new_scope())
		self._frames.append(frame)
		self._sites.append({})

	def pop(self) -> None:
		# The global scope stays.
		if len(self.scopes) > 1:
			self.scopes.pop()
			self._frames.pop()
			self._sites.pop()

	@contextmanager
	def scope(self) -> Iterator[None]:
		self.push()
		try:
			yield
		finally:
			self.pop()

	@contextmanager
	def bindings(self) -> Iterator[None]:
		self.push(frame=False)
		try:
			yield
		finally:
			self.pop()

	def _frame_index(self) -> int:
		for i in range(len(self.scopes) - 1, -1, -1):
			if self._frames[i]:
				return i
		return 0

	def declare(
		self,
		ns: str,
		name: str,
		value: Any,
		range: Optional[Range] = None,
		site: Optional[object] = None,
	) -> None:
		"""
		Declare in the nearest frame. A declaration statement running again
		(loop bodies) rebinds its own name instead of failing as a duplicate.
		"""
		index = self._frame_index()
		table = self.scopes[index][ns]
		sites = self._sites[index]
		if name in table and (site is None or sites.get((ns, name)) is not site):
			raise ForgeRuntimeError("E_NAME", f"Duplicate declaration: '{ns}.{name}'", range)
		table[name] = value
		if site is not None:
			sites[(ns, name)] = site

	def bind(self, ns: str, name: str, value: Any) -> None:
		self.current[ns][name] = value

	def _find(self, ns: str, name: str) -> Optional[Dict[str, Any]]:
		for scope in reversed(self.scopes):
			if name in scope[ns]:
				return scope[ns]
		return None

	def assign(self, ns: str, name: str, value: Any, range: Optional[Range] = None) -> None:
		table = self._find(ns, name)
		if table is None:
			raise ForgeRuntimeError("E_NAME", f"Unknown variable '{ns}.{name}'. Declare it first.", range)
		if ns == "c":
			raise ForgeRuntimeError("E_NAME", f"Cannot reassign const: 'c.{name}'", range)
		table[name] = value

	def get(self, ns: str, name: str, range: Optional[Range] = None) -> Any:
		table = self._find(ns, name)
		if table is None:
			raise ForgeRuntimeError("E_NAME", f"Unknown variable '{ns}.{name}'.", range)
		return table[name]

	def has(self, ns: str, name: str) -> bool:
		return self._find(ns, name) is not None

	def stores_with(self, name: str) -> List[str]:
		return [ns for ns in A.STORES if self.has(ns, name)]

	def resolve_unqualified(self, name: str, range: Optional[Range] = None) -> Tuple[str, Any]:
		hits = self.stores_with(name)
		if not hits:
			raise ForgeRuntimeError("E_NAME", f"Unknown variable '{name}'. Use l./v./c.", range)
		if len(hits) > 1:
			found = ", ".join(f"{h}." for h in hits)
			raise ForgeRuntimeError(
				"E_NAME", f"Ambiguous variable '{name}' found in {found} Use an explicit namespace.", range
			)
		return hits[0], self.get(hits[0], name, range)


# ---------------------------------------------------------------------------
# User functions
# ---------------------------------------------------------------------------

class UserFunction(ForgeFunction):
	def __init__(
		self,
		interpreter: "Interpreter",
		name: Optional[str],
		params: List[A.FunctionParameter],
		body: Union[A.BlockStatement, A.Expr],
		is_async: bool = False,
		range: Optional[Range] = None,
	) -> None:
		self.interpreter = interpreter
		self.name = name
		self.params = params
		self.body = body
		self.is_async = is_async
		self.range = range

	def call(self, args: List[Any], named: Dict[str, Any]) -> Any:
		return self.interpreter.call_user(self, args, named)


# ---------------------------------------------------------------------------
# Interpreter
# ---------------------------------------------------------------------------

class Interpreter:
	def __init__(
		self,
		host: Host,
		builtins: Optional[Mapping[str, Any]] = None,
		limits: Optional[ExecutionLimits] = None,
		ctx: Optional[RuntimeContext] = None,
	) -> None:
		self.host = host
		self.ctx = ctx or RuntimeContext(host)
		self.globals: Dict[str, Any] = dict(builtins) if builtins is not None else build_builtins(host, self.ctx)
		self.limits = limits or ExecutionLimits()
		self.env = Environment()
		self.skipped: List[Diagnostic] = []
		self.steps = 0
		self._deadline: Optional[float] = None

	# -- entry point --------------------------------------------------------

	def execute(self, program: A.Program) -> Any:
		"""Run `program` top to bottom and return the last expression statement's value."""
		self.steps = 0
		if self.limits.timeout_ms is not None:
			self._deadline = time.perf_counter() + self.limits.timeout_ms / 1000.0
		last: Any = None
		try:
			for stmt in program.body:
				value = self._exec(stmt)
				if isinstance(stmt, A.ExpressionStatement):
					last = value
		except ReturnSignal as signal:
			return signal.value
		except BreakSignal as exc:
			raise ForgeRuntimeError("E_RUNTIME", "'break' used outside of a loop.") from exc
		except ContinueSignal as exc:
			raise ForgeRuntimeError("E_RUNTIME", "'continue' used outside of a loop.") from exc
		return last

	def _tick(self) -> None:
		self.steps += 1
		if self.limits.max_steps is not None and self.steps > self.limits.max_steps:
			raise StepLimitExceeded(self.limits.max_steps)
		if self._deadline is not None and time.perf_counter() > self._deadline:
			raise ExecutionTimeout(self.limits.timeout_ms or 0)

	# -- statements ---------------------------------------------------------

	def _block(self, block: A.BlockStatement) -> Any:
		last: Any = None
		for stmt in block.body:
			last = self._exec(stmt)
		return last

	def _exec(self, stmt: A.Stmt) -> Any:
		self._tick()
		if isinstance(stmt, A.ExpressionStatement):
			return self._eval(stmt.expression)
		if isinstance(stmt, A.VarDeclaration):
			value = self._eval(stmt.initializer) if stmt.initializer is not None else None
			self.env.declare(stmt.store, stmt.name.name, value, stmt.range, site=stmt)
			return None
		if isinstance(stmt, A.AssignmentStatement):
			return self._assign(stmt.target, self._eval(stmt.value), stmt.range)
		if isinstance(stmt, A.BlockStatement):
			return self._block(stmt)
		if isinstance(stmt, A.IfStatement):
			return self._exec_if(stmt)
		if isinstance(stmt, A.WhileStatement):
			while True:
				self._tick()
				if not cast_to_boolean(self._eval(stmt.test)):
					break
				try:
					self._block(stmt.body)
				except BreakSignal:
					break
				except ContinueSignal:
					continue
			return None
		if isinstance(stmt, A.DoWhileStatement):
			while True:
				self._tick()
				try:
					self._block(stmt.body)
				except BreakSignal:
					break
				except ContinueSignal:
					pass
				if not cast_to_boolean(self._eval(stmt.test)):
					break
			return None
		if isinstance(stmt, A.ForStatement):
			return self._exec_for(stmt)
		if isinstance(stmt, A.ForEachStatement):
			return self._exec_for_each(stmt)
		if isinstance(stmt, A.BreakStatement):
			raise BreakSignal()
		if isinstance(stmt, A.ContinueStatement):
			raise ContinueSignal()
		if isinstance(stmt, A.ReturnStatement):
			raise ReturnSignal(self._eval(stmt.argument) if stmt.argument is not None else None)
		if isinstance(stmt, A.ThrowStatement):
			value = self._eval(stmt.argument)
			msg = value if isinstance(value, str) else f"Thrown value: {to_string_value(value)}"
			raise ForgeRuntimeError("E_RUNTIME", msg, stmt.range)
		if isinstance(stmt, A.TryStatement):
			return self._exec_try(stmt)
		if isinstance(stmt, A.FunctionDeclaration):
			fn = UserFunction(self, stmt.name.name, stmt.params, stmt.body, stmt.is_async, stmt.range)
			self.env.declare("l", stmt.name.name, fn, stmt.range, site=stmt)
			return None
		if isinstance(stmt, A.DisableDirective):
			target = stmt.target.value
			if target != ALL_IN_ONE:
				raise ForgeRuntimeError(
					"E_UNSUPPORTED", f"disable '{target}' is not supported yet (only AllInOne).", stmt.range
				)
			self.ctx.modules.disable(target)
			return None
		if isinstance(stmt, A.AbleDirective):
			self.ctx.modules.able(m.value for m in stmt.modules)
			return None

		kind = type(stmt).__name__
		self.skipped.append(
			D.info("RUN_SKIPPED_STATEMENT", f"Skipped unsupported statement '{kind}'.", stmt.range, STAGE)
		)
		return None

	def _exec_if(self, stmt: A.IfStatement) -> Any:
		if cast_to_boolean(self._eval(stmt.test)):
			return self._block(stmt.consequent)
		for clause in stmt.elif_clauses:
			if cast_to_boolean(self._eval(clause.test)):
				return self._block(clause.consequent)
		if stmt.alternate is not None:
			return self._block(stmt.alternate)
		return None

	def _exec_for(self, stmt: A.ForStatement) -> Any:
		if stmt.init is not None:
			self._exec(stmt.init)
		while True:
			self._tick()
			if stmt.test is not None and not cast_to_boolean(self._eval(stmt.test)):
				break
			try:
				self._block(stmt.body)
			except BreakSignal:
				break
			except ContinueSignal:
				pass
			if stmt.update is not None:
				self._eval(stmt.update)
		return None

	def _exec_for_each(self, stmt: A.ForEachStatement) -> Any:
		items = list(ensure_array(self._eval(stmt.iterable), stmt.range))
		name = stmt.item.name
		with self.env.bindings():
			for item in items:
				self._tick()
				self.env.bind("l", name, item)
				try:
					self._block(stmt.body)
				except BreakSignal:
					break
				except ContinueSignal:
					pass
		return None

	def _exec_try(self, stmt: A.TryStatement) -> Any:
		try:
			try:
				return self._block(stmt.block)
			except ForgeRuntimeError as exc:
				handler = stmt.handler
				if handler is None:
					raise
				with self.env.bindings():
					if handler.param is not None:
						self.env.bind("l", handler.param.name, exc.message)
					return self._block(handler.body)
		finally:
			if stmt.finalizer is not None:
				self._block(stmt.finalizer)

	# -- assignment ---------------------------------------------------------

	def _assign(self, target: A.Expr, value: Any, range: Range) -> Any:
		if isinstance(target, A.NamespacedIdentifier):
			self.env.assign(target.namespace, target.name.name, value, range)
			return value
		if isinstance(target, A.Identifier):
			ns, _ = self.env.resolve_unqualified(target.name, range)
			self.env.assign(ns, target.name, value, range)
			return value
		if isinstance(target, A.MemberExpression):
			obj = self._eval(target.object)
			key = target.property.name
			if isinstance(obj, list):
				idx = self._index(key, target.range)
				if not 0 <= idx < len(obj):
					raise ForgeRuntimeError("E_TYPE", f"Array index {idx} is out of range.", target.range)
				obj[idx] = value
				return value
			if not isinstance(obj, dict):
				raise ForgeRuntimeError("E_TYPE", f"Expected object, got {type_name(obj)}.", range)
			obj[key] = value
			return value
		raise ForgeRuntimeError("E_UNSUPPORTED", f"Invalid assignment target: {type(target).__name__}", range)

	# -- expressions --------------------------------------------------------

	def _eval(self, expr: A.Expr) -> Any:
		if isinstance(expr, A.StringLiteral):
			return expr.value
		if isinstance(expr, A.NumberLiteral):
			return expr.value
		if isinstance(expr, A.BooleanLiteral):
			return expr.value
		if isinstance(expr, A.NullLiteral):
			return None
		if isinstance(expr, A.DurationLiteral):
			# Kept as written ("0.5s"); Time.wait parses it.
			return expr.raw
		if isinstance(expr, A.TemplateString):
			out = []
			for part in expr.parts:
				if isinstance(part, A.TemplateTextPart):
					out.append(part.text)
				else:
					out.append(to_string_value(self._eval(part.expression)))
			return "".join(out)
		if isinstance(expr, A.ArrayLiteral):
			return [self._eval(e) for e in expr.elements]
		if isinstance(expr, A.ObjectLiteral):
			return {p.key.name: self._eval(p.value) for p in expr.properties}
		if isinstance(expr, A.Identifier):
			return self._eval_identifier(expr)
		if isinstance(expr, A.NamespacedIdentifier):
			return self.env.get(expr.namespace, expr.name.name, expr.range)
		if isinstance(expr, A.MemberExpression):
			return self._eval_member(expr)
		if isinstance(expr, A.CallExpression):
			return self._eval_call(expr)
		if isinstance(expr, A.AssignmentExpression):
			return self._assign(expr.left, self._eval(expr.right), expr.range)
		if isinstance(expr, A.UnaryExpression):
			return self._eval_unary(expr)
		if isinstance(expr, A.BinaryExpression):
			return self._eval_binary(expr)
		if isinstance(expr, A.BooleanOpExpression):
			return self._eval_boolean_op(expr)
		if isinstance(expr, A.AwaitExpression):
			# Calls complete before returning, so await only unwraps.
			return self._eval(expr.argument)
		if isinstance(expr, A.FunctionExpression):
			name = expr.name.name if expr.name is not None else None
			return UserFunction(self, name, expr.params, expr.body, expr.is_async, expr.range)
		if isinstance(expr, A.ArrowFunctionExpression):
			return UserFunction(self, None, expr.params, expr.body, expr.is_async, expr.range)
		raise ForgeRuntimeError(
			"E_UNSUPPORTED", f"Unsupported expression kind: {type(expr).__name__}", getattr(expr, "range", None)
		)

	def _eval_identifier(self, expr: A.Identifier) -> Any:
		name = expr.name
		hits = self.env.stores_with(name)
		if hits:
			return self.env.resolve_unqualified(name, expr.range)[1]
		if name in self.globals:
			if is_forge_module(name) and not self.ctx.modules.is_enabled(name):
				raise ForgeRuntimeError("E_MODULE", f"Module '{name}' is not enabled. Add: able '{name}'", expr.range)
			return _read(self.globals[name])
		raise ForgeRuntimeError("E_NAME", f"Unknown identifier '{name}'.", expr.range)

	@staticmethod
	def _index(key: str, range: Range) -> int:
		try:
			return int(key)
		except ValueError:
			raise ForgeRuntimeError("E_TYPE", f"Array index must be integer, got '{key}'.", range) from None

	def _eval_member(self, expr: A.MemberExpression) -> Any:
		obj = self._eval(expr.object)
		key = expr.property.name
		if isinstance(obj, list):
			idx = self._index(key, expr.range)
			return obj[idx] if 0 <= idx < len(obj) else None
		if isinstance(obj, NativeFunction) and key in obj.members:
			return _read(obj.members[key])
		if not isinstance(obj, dict):
			raise ForgeRuntimeError("E_TYPE", f"Expected object, got {type_name(obj)}.", expr.range)
		return _read(obj.get(key))

	def _eval_call(self, expr: A.CallExpression) -> Any:
		callee = self._eval(expr.callee)
		positional: List[Any] = []
		named: Dict[str, Any] = {}
		for arg in expr.args:
			if isinstance(arg, A.NamedArgument):
				named[arg.name.name] = self._eval(arg.value)
			else:
				positional.append(self._eval(arg.value))
		if not isinstance(callee, ForgeFunction):
			raise ForgeRuntimeError("E_TYPE", "Attempted to call a non-function value.", expr.range)
		try:
			return callee.call(positional, named)
		except ForgeRuntimeError as exc:
			if exc.range is None:
				exc.range = expr.range
			raise

	def call_user(self, fn: UserFunction, args: List[Any], named: Dict[str, Any]) -> Any:
		with self.env.scope():
			for i, param in enumerate(fn.params):
				pname = param.name.name
				if pname in named:
					value = named[pname]
				elif i < len(args):
					value = args[i]
				elif param.default is not None:
					value = self._eval(param.default)
				else:
					value = None
				self.env.declare("l", pname, value, fn.range)
			if isinstance(fn.body, A.BlockStatement):
				try:
					self._block(fn.body)
				except ReturnSignal as signal:
					return signal.value
				return None
			return self._eval(fn.body)

	def _eval_unary(self, expr: A.UnaryExpression) -> Any:
		v = self._eval(expr.argument)
		if expr.operator == "!":
			return not cast_to_boolean(v)
		if expr.operator == "+":
			return ensure_number(v, expr.range)
		if expr.operator == "-":
			return -ensure_number(v, expr.range)
		raise ForgeRuntimeError("E_UNSUPPORTED", f"Unsupported unary operator: {expr.operator}", expr.range)

	def _eval_binary(self, expr: A.BinaryExpression) -> Any:
		op = expr.operator
		if op == "&&":
			return cast_to_boolean(self._eval(expr.left)) and cast_to_boolean(self._eval(expr.right))
		if op == "||":
			return cast_to_boolean(self._eval(expr.left)) or cast_to_boolean(self._eval(expr.right))

		left = self._eval(expr.left)
		right = self._eval(expr.right)
		if op in ("==", "==="):
			return deep_equals(left, right)
		if op in ("!=", "!=="):
			return not deep_equals(left, right)
		if op == "+" and (isinstance(left, str) or isinstance(right, str)):
			return to_string_value(left) + to_string_value(right)

		a = ensure_number(left, expr.range)
		b = ensure_number(right, expr.range)
		if op == "<":
			return a < b
		if op == "<=":
			return a <= b
		if op == ">":
			return a > b
		if op == ">=":
			return a >= b
		if op == "+":
			return a + b
		if op == "-":
			return a - b
		if op in ("x", "*"):
			return a * b
		if op == "/":
			if b == 0:
				return math.nan if a == 0 or math.isnan(a) else math.copysign(math.inf, a) * math.copysign(1.0, b)
			return a / b
		if op == "%":
			return math.nan if b == 0 else math.fmod(a, b)
		if op == "§":
			if b == 0:
				raise ForgeRuntimeError("E_TYPE", "Root index cannot be 0.", expr.range)
			try:
				return math.pow(a, 1 / b)
			except ValueError:
				return math.nan
			except OverflowError:
				return math.inf
		raise ForgeRuntimeError("E_UNSUPPORTED", f"Unsupported binary operator: {op}", expr.range)

	def _eval_boolean_op(self, expr: A.BooleanOpExpression) -> bool:
		subject = self._eval(expr.subject)
		if expr.op == "query":
			ok, value = is_boolean_like(subject)
			if expr.force is not None:
				ok = ok and value == expr.force
			return not ok if expr.negate else ok
		if expr.op == "cast":
			return cast_to_boolean(subject, expr.force)
		raise ForgeRuntimeError("E_UNSUPPORTED", "Unknown boolean op kind.", expr.range)


def _read(value: Any) -> Any:
	return value.get() if isinstance(value, LazyValue) else value


__all__ = [
	"STAGE",
	"BreakSignal",
	"ContinueSignal",
	"ReturnSignal",
	"ExecutionLimitError",
	"StepLimitExceeded",
	"ExecutionTimeout",
	"ExecutionLimits",
	"Environment",
	"UserFunction",
	"Interpreter",
]
