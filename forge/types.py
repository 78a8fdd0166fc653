# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Structural type algebra for Forge.

Types are value-less descriptions used by the resolver, lint rules and the
editor. Everything here is pure: constructors, equality, assignability,
unification and literal widening never mutate their inputs.

Invariant: a `union` never nests another union and never repeats a
structurally-equal member; empty unions collapse to `unknown`, singletons to
their only member. `t_union` is the only way to build one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple


class TypeKind(Enum):
	"""Closed set of type kinds."""

	ANY = "any"
	UNKNOWN = "unknown"
	VOID = "void"
	NULL = "null"
	BOOLEAN = "boolean"
	NUMBER = "number"
	STRING = "string"
	LITERAL_STRING = "literal_string"
	LITERAL_NUMBER = "literal_number"
	LITERAL_BOOLEAN = "literal_boolean"
	ARRAY = "array"
	OBJECT = "object"
	FUNCTION = "function"
	UNION = "union"


_LITERAL_BASE = {
	TypeKind.LITERAL_STRING: TypeKind.STRING,
	TypeKind.LITERAL_NUMBER: TypeKind.NUMBER,
	TypeKind.LITERAL_BOOLEAN: TypeKind.BOOLEAN,
}


@dataclass(frozen=True)
class ForgeType:
	"""
	One node of the type algebra.

	Only the fields relevant to `kind` are populated: `value` for literals,
	`element` for arrays, `props`/`open` for objects, `params`/`returns` for
	functions and `members` for unions. Object props keep declaration order
	(for display); equality treats them as a set.
	"""

	kind: TypeKind
	value: object = None
	element: Optional["ForgeType"] = None
	props: Tuple[Tuple[str, "ForgeType"], ...] = ()
	open: bool = False
	params: Tuple["ForgeType", ...] = ()
	returns: Optional["ForgeType"] = None
	members: Tuple["ForgeType", ...] = ()

	@property
	def is_literal(self) -> bool:
		return self.kind in _LITERAL_BASE

	@property
	def prop_map(self) -> Dict[str, "ForgeType"]:
		return dict(self.props)

	def prop(self, name: str) -> Optional["ForgeType"]:
		for key, value in self.props:
			if key == name:
				return value
		return None

	def __str__(self) -> str:
		return type_to_string(self)


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------

T_ANY = ForgeType(TypeKind.ANY)
T_UNKNOWN = ForgeType(TypeKind.UNKNOWN)
T_VOID = ForgeType(TypeKind.VOID)
T_NULL = ForgeType(TypeKind.NULL)
T_BOOLEAN = ForgeType(TypeKind.BOOLEAN)
T_NUMBER = ForgeType(TypeKind.NUMBER)
T_STRING = ForgeType(TypeKind.STRING)


def t_lit_string(value: str) -> ForgeType:
	return ForgeType(TypeKind.LITERAL_STRING, value=value)


def t_lit_number(value: float) -> ForgeType:
	return ForgeType(TypeKind.LITERAL_NUMBER, value=value)


def t_lit_boolean(value: bool) -> ForgeType:
	return ForgeType(TypeKind.LITERAL_BOOLEAN, value=bool(value))


def t_array(element: ForgeType) -> ForgeType:
	return ForgeType(TypeKind.ARRAY, element=element)


def t_object(props: Optional[Dict[str, ForgeType]] = None, open: bool = False) -> ForgeType:
	return ForgeType(TypeKind.OBJECT, props=tuple((props or {}).items()), open=open)


def t_function(params: Sequence[ForgeType], returns: ForgeType) -> ForgeType:
	return ForgeType(TypeKind.FUNCTION, params=tuple(params), returns=returns)


def t_union(types: Iterable[ForgeType]) -> ForgeType:
	"""Build a flattened, de-duplicated union (collapsing 0/1-member cases)."""
	flat: List[ForgeType] = []
	for t in types:
		candidates = t.members if t.kind is TypeKind.UNION else (t,)
		for c in candidates:
			if not any(type_equals(c, existing) for existing in flat):
				flat.append(c)
	if not flat:
		return T_UNKNOWN
	if len(flat) == 1:
		return flat[0]
	return ForgeType(TypeKind.UNION, members=tuple(flat))


def union_of(types: Iterable[ForgeType]) -> ForgeType:
	return t_union(types)


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

_MAX_OBJECT_KEYS = 12


def _quote(text: str) -> str:
	return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _format_number(value: object) -> str:
	if isinstance(value, float) and value.is_integer():
		return str(int(value))
	return str(value)


def type_to_string(t: ForgeType) -> str:
	kind = t.kind
	if kind is TypeKind.LITERAL_STRING:
		return _quote(str(t.value))
	if kind is TypeKind.LITERAL_NUMBER:
		return _format_number(t.value)
	if kind is TypeKind.LITERAL_BOOLEAN:
		return "True" if t.value else "False"
	if kind is TypeKind.ARRAY:
		assert t.element is not None
		return f"array<{type_to_string(t.element)}>"
	if kind is TypeKind.OBJECT:
		if not t.props:
			return "object{...}" if t.open else "object{}"
		parts = [f"{k}: {type_to_string(v)}" for k, v in t.props[:_MAX_OBJECT_KEYS]]
		more = ", ..." if len(t.props) > _MAX_OBJECT_KEYS else ""
		return "object{ " + ", ".join(parts) + more + " }"
	if kind is TypeKind.FUNCTION:
		params = ", ".join(type_to_string(p) for p in t.params)
		returns = type_to_string(t.returns) if t.returns is not None else "void"
		return f"func({params}): {returns}"
	if kind is TypeKind.UNION:
		return " | ".join(type_to_string(m) for m in t.members)
	return kind.value


# ---------------------------------------------------------------------------
# Equality / widening
# ---------------------------------------------------------------------------

def type_equals(a: ForgeType, b: ForgeType) -> bool:
	if a is b:
		return True
	if a.kind is not b.kind:
		return False
	kind = a.kind
	if kind in _LITERAL_BASE:
		return a.value == b.value
	if kind is TypeKind.ARRAY:
		assert a.element is not None and b.element is not None
		return type_equals(a.element, b.element)
	if kind is TypeKind.OBJECT:
		if a.open != b.open or len(a.props) != len(b.props):
			return False
		b_props = b.prop_map
		for key, value in a.props:
			other = b_props.get(key)
			if other is None or not type_equals(value, other):
				return False
		return True
	if kind is TypeKind.FUNCTION:
		if len(a.params) != len(b.params):
			return False
		if not all(type_equals(x, y) for x, y in zip(a.params, b.params)):
			return False
		return type_equals(a.returns or T_VOID, b.returns or T_VOID)
	if kind is TypeKind.UNION:
		if len(a.members) != len(b.members):
			return False
		return all(any(type_equals(m, n) for n in b.members) for m in a.members)
	return True


def widen_literal(t: ForgeType) -> ForgeType:
	base = _LITERAL_BASE.get(t.kind)
	if base is None:
		return t
	return ForgeType(base)


# ---------------------------------------------------------------------------
# Assignability / unification
# ---------------------------------------------------------------------------

def is_assignable(src: ForgeType, dst: ForgeType) -> bool:
	"""
	Can a value of type `src` flow into a slot of type `dst`?

	Object rule: when `dst.open` is set, a property that `dst` lists but `src`
	lacks is tolerated; present properties must still be assignable.
	"""
	if dst.kind is TypeKind.ANY or src.kind is TypeKind.ANY:
		return True
	if src.kind is TypeKind.UNKNOWN:
		return dst.kind is TypeKind.UNKNOWN
	if dst.kind is TypeKind.UNKNOWN:
		return True
	if src.kind is TypeKind.UNION:
		return all(is_assignable(m, dst) for m in src.members)
	if dst.kind is TypeKind.UNION:
		return any(is_assignable(src, m) for m in dst.members)

	a = widen_literal(src)
	b = widen_literal(dst)
	if a.kind is not b.kind:
		if a.kind is TypeKind.NULL:
			return b.kind in (TypeKind.NULL, TypeKind.ANY, TypeKind.UNKNOWN)
		return False

	if a.kind is TypeKind.ARRAY:
		assert a.element is not None and b.element is not None
		return is_assignable(a.element, b.element)
	if a.kind is TypeKind.OBJECT:
		src_props = a.prop_map
		for key, want in b.props:
			have = src_props.get(key)
			if have is None:
				if b.open:
					continue
				return False
			if not is_assignable(have, want):
				return False
		return True
	if a.kind is TypeKind.FUNCTION:
		if len(a.params) != len(b.params):
			return False
		for src_param, dst_param in zip(a.params, b.params):
			if not is_assignable(dst_param, src_param):
				return False
		return is_assignable(a.returns or T_VOID, b.returns or T_VOID)
	return True


def unify(a: ForgeType, b: ForgeType) -> ForgeType:
	"""Merge two types into one that either could have been."""
	if a.kind is TypeKind.ANY or b.kind is TypeKind.ANY:
		return T_ANY
	if a.kind is TypeKind.UNKNOWN:
		return b
	if b.kind is TypeKind.UNKNOWN:
		return a
	if type_equals(a, b):
		return a
	if a.is_literal or b.is_literal:
		return t_union([a, b])
	if a.kind is TypeKind.ARRAY and b.kind is TypeKind.ARRAY:
		assert a.element is not None and b.element is not None
		return t_array(unify(a.element, b.element))
	if a.kind is TypeKind.OBJECT and b.kind is TypeKind.OBJECT:
		merged: Dict[str, ForgeType] = dict(a.props)
		for key, value in b.props:
			merged[key] = unify(merged[key], value) if key in merged else value
		return t_object(merged, open=a.open or b.open)
	return t_union([a, b])


def unify_all(types: Iterable[ForgeType], default: ForgeType = T_UNKNOWN) -> ForgeType:
	result: Optional[ForgeType] = None
	for t in types:
		result = t if result is None else unify(result, t)
	return default if result is None else result


def is_boolean_like(t: ForgeType) -> bool:
	"""True when a value of `t` could plausibly be used as a condition."""
	if t.kind in (TypeKind.ANY, TypeKind.UNKNOWN, TypeKind.BOOLEAN, TypeKind.LITERAL_BOOLEAN):
		return True
	if t.kind is TypeKind.UNION:
		return any(is_boolean_like(m) for m in t.members)
	# Strings "true"/"false" are accepted by the runtime's boolean query.
	if t.kind is TypeKind.LITERAL_STRING:
		return str(t.value).strip().lower() in ("true", "false")
	return t.kind in (TypeKind.STRING, TypeKind.NULL)


__all__ = [
	"TypeKind",
	"ForgeType",
	"T_ANY",
	"T_UNKNOWN",
	"T_VOID",
	"T_NULL",
	"T_BOOLEAN",
	"T_NUMBER",
	"T_STRING",
	"t_lit_string",
	"t_lit_number",
	"t_lit_boolean",
	"t_array",
	"t_object",
	"t_function",
	"t_union",
	"union_of",
	"type_to_string",
	"type_equals",
	"widen_literal",
	"is_assignable",
	"unify",
	"unify_all",
	"is_boolean_like",
]
