# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from forge.types import (
	T_ANY,
	T_BOOLEAN,
	T_NULL,
	T_NUMBER,
	T_STRING,
	T_UNKNOWN,
	TypeKind,
	is_assignable,
	is_boolean_like,
	t_array,
	t_function,
	t_lit_number,
	t_lit_string,
	t_object,
	t_union,
	type_equals,
	type_to_string,
	unify,
	widen_literal,
)

_CLOSED = [
	T_NUMBER,
	T_STRING,
	T_BOOLEAN,
	T_NULL,
	t_lit_string("dog"),
	t_lit_number(3),
	t_array(T_NUMBER),
	t_object({"a": T_NUMBER, "b": t_array(T_STRING)}),
	t_function([T_NUMBER], T_STRING),
	t_union([T_NUMBER, T_STRING]),
]


def test_assignable_is_reflexive_for_known_types() -> None:
	for t in _CLOSED:
		assert is_assignable(t, t), type_to_string(t)


def test_any_is_assignable_both_ways() -> None:
	for t in [*_CLOSED, T_UNKNOWN]:
		assert is_assignable(t, T_ANY)
		assert is_assignable(T_ANY, t)


def test_unknown_only_flows_into_unknown() -> None:
	assert is_assignable(T_UNKNOWN, T_UNKNOWN)
	assert not is_assignable(T_UNKNOWN, T_NUMBER)
	assert is_assignable(T_NUMBER, T_UNKNOWN)


def test_unify_is_idempotent() -> None:
	for t in _CLOSED:
		assert type_equals(unify(t, t), t)


def test_unify_literals_and_arrays() -> None:
	u = unify(t_lit_number(1), t_lit_number(2))
	assert u.kind is TypeKind.UNION
	assert type_to_string(u) == "1 | 2"
	assert type_equals(unify(t_array(T_NUMBER), t_array(T_UNKNOWN)), t_array(T_NUMBER))
	assert unify(T_UNKNOWN, T_STRING) is T_STRING


def test_widening_literals() -> None:
	assert widen_literal(t_lit_string("x")) == T_STRING
	assert widen_literal(t_lit_number(2)) == T_NUMBER
	assert widen_literal(T_NUMBER) is T_NUMBER
	assert is_assignable(t_lit_string("x"), T_STRING)
	assert not is_assignable(t_lit_string("x"), T_NUMBER)


def test_open_object_tolerates_missing_properties_only() -> None:
	# `open` on the destination forgives properties the source lacks ...
	dst_open = t_object({"name": T_STRING, "age": T_NUMBER}, open=True)
	dst_closed = t_object({"name": T_STRING, "age": T_NUMBER})
	src = t_object({"name": T_STRING})
	assert is_assignable(src, dst_open)
	assert not is_assignable(src, dst_closed)

	# ... but a property that is present must still match.
	bad = t_object({"name": T_NUMBER})
	assert not is_assignable(bad, dst_open)

	# Extra source properties are fine either way.
	extra = t_object({"name": T_STRING, "age": T_NUMBER, "tail": T_BOOLEAN})
	assert is_assignable(extra, dst_closed)


def test_union_assignability() -> None:
	num_or_str = t_union([T_NUMBER, T_STRING])
	assert is_assignable(T_NUMBER, num_or_str)
	assert not is_assignable(num_or_str, T_NUMBER)
	assert not is_assignable(T_BOOLEAN, num_or_str)


def test_null_only_into_null() -> None:
	assert is_assignable(T_NULL, T_NULL)
	assert not is_assignable(T_NULL, T_STRING)


def test_function_types_are_contravariant_in_params() -> None:
	takes_any_number = t_function([T_NUMBER], T_STRING)
	takes_literal = t_function([t_lit_number(1)], T_STRING)
	assert is_assignable(takes_any_number, takes_literal)
	assert not is_assignable(t_function([T_NUMBER, T_NUMBER], T_STRING), takes_any_number)


def test_union_flattens_and_collapses() -> None:
	u = t_union([T_NUMBER, t_union([T_STRING, T_NUMBER])])
	assert u.kind is TypeKind.UNION
	assert len(u.members) == 2
	assert t_union([T_STRING]) is T_STRING
	assert t_union([]) is T_UNKNOWN


def test_boolean_like() -> None:
	assert is_boolean_like(T_BOOLEAN)
	assert is_boolean_like(t_lit_string("True"))
	assert not is_boolean_like(t_lit_string("dog"))
	assert not is_boolean_like(T_NUMBER)
	assert not is_boolean_like(t_array(T_BOOLEAN))


def test_type_to_string_shapes() -> None:
	assert type_to_string(t_array(T_NUMBER)) == "array<number>"
	assert type_to_string(t_object({}, open=True)) == "object{...}"
	assert type_to_string(t_object({"a": t_lit_number(1)})) == "object{ a: 1 }"
	assert type_to_string(t_function([T_STRING], T_NUMBER)) == "func(string): number"
	assert type_to_string(t_lit_string("it's")) == "'it\\'s'"
