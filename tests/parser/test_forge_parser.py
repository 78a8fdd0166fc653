# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from forge import ast as A
from forge.parser import ForgeSyntaxError, parse, parse_program, tokenize


def _expr(src: str) -> A.Expr:
	prog = parse_program(src)
	stmt = prog.body[0]
	assert isinstance(stmt, A.ExpressionStatement)
	return stmt.expression


def test_directives_and_declarations() -> None:
	prog = parse_program("disable 'AllInOne'; able 'Math', 'Time'\nlet dog = 'Fuffy'\nconst n = 2")
	dis, able, dog, n = prog.body
	assert isinstance(dis, A.DisableDirective) and dis.target.value == "AllInOne"
	assert isinstance(able, A.AbleDirective) and [m.value for m in able.modules] == ["Math", "Time"]
	assert isinstance(dog, A.VarDeclaration) and dog.store == "l" and dog.name.name == "dog"
	assert isinstance(n, A.VarDeclaration) and n.store == "c"


def test_store_prefix_becomes_namespaced_identifier() -> None:
	e = _expr("console.text.var(l.dog)")
	assert isinstance(e, A.CallExpression)
	arg = e.args[0]
	assert isinstance(arg, A.PositionalArgument)
	assert isinstance(arg.value, A.NamespacedIdentifier)
	assert arg.value.namespace == "l" and arg.value.name.name == "dog"
	assert A.member_chain(e.callee) == ["console", "text", "var"]


def test_keywords_are_allowed_as_property_names() -> None:
	e = _expr("Sys.exec.async('ls')")
	assert isinstance(e, A.CallExpression)
	assert A.member_chain(e.callee) == ["Sys", "exec", "async"]


def test_x_is_multiplication_between_operands() -> None:
	e = _expr("2 x 3")
	assert isinstance(e, A.BinaryExpression) and e.operator == "x"
	star = _expr("2 * 3")
	assert isinstance(star, A.BinaryExpression) and star.operator == "x"


def test_operator_precedence() -> None:
	e = _expr("1 + 2 x 3 == 7 && True")
	assert isinstance(e, A.BinaryExpression) and e.operator == "&&"
	eq = e.left
	assert isinstance(eq, A.BinaryExpression) and eq.operator == "=="
	add = eq.left
	assert isinstance(add, A.BinaryExpression) and add.operator == "+"
	assert isinstance(add.right, A.BinaryExpression) and add.right.operator == "x"


def test_durations_and_templates() -> None:
	d = _expr("Time.wait(0.5s)")
	assert isinstance(d, A.CallExpression)
	lit = d.args[0].value
	assert isinstance(lit, A.DurationLiteral) and lit.raw == "0.5s" and lit.unit == "s"

	t = _expr("'Hello {l.dog}!'")
	assert isinstance(t, A.TemplateString)
	assert [type(p).__name__ for p in t.parts] == ["TemplateTextPart", "TemplateExprPart", "TemplateTextPart"]
	hole = t.parts[1]
	assert isinstance(hole, A.TemplateExprPart)
	assert hole.expression.range.start.offset == 8


def test_json_like_braces_stay_literal_text() -> None:
	s = _expr("'{\"a\": 1}'")
	assert isinstance(s, A.StringLiteral)
	assert s.value == '{"a": 1}'


def test_control_flow_shapes() -> None:
	src = """
let n = 0
if (n > 1) {
	n = 1
} elif (n < 0) {
	n = 2
} else {
	n = 3
}
do {
	n = n + 1
} while (n < 5)
forEach (item in [1, 2]) {
	console.text.var(item)
}
try {
	throw 'bad'
} catch (err) {
	console.text.var(err)
} finally {
	n = 0
}
"""
	prog = parse_program(src)
	kinds = [type(s).__name__ for s in prog.body]
	assert kinds == ["VarDeclaration", "IfStatement", "DoWhileStatement", "ForEachStatement", "TryStatement"]
	if_stmt = prog.body[1]
	assert isinstance(if_stmt, A.IfStatement)
	assert len(if_stmt.elif_clauses) == 1 and if_stmt.alternate is not None
	try_stmt = prog.body[4]
	assert isinstance(try_stmt, A.TryStatement)
	assert try_stmt.handler is not None and try_stmt.handler.param is not None
	assert try_stmt.finalizer is not None


def test_functions_and_arrows() -> None:
	prog = parse_program("func add(a, b = 2) {\n\treturn a + b\n}\nlet twice = (n) => n x 2\nlet inc = n => n + 1")
	fn, twice, inc = prog.body
	assert isinstance(fn, A.FunctionDeclaration)
	assert [p.name.name for p in fn.params] == ["a", "b"]
	assert fn.params[1].default is not None
	assert isinstance(twice, A.VarDeclaration) and isinstance(twice.initializer, A.ArrowFunctionExpression)
	assert isinstance(inc, A.VarDeclaration) and isinstance(inc.initializer, A.ArrowFunctionExpression)


def test_objects_named_args_and_boolean_ops() -> None:
	prog = parse_program("let o = {a: 1, b = 'two'}\nlet ok = l.o?isBoolean.t\nl.o = isBoolean.f\nMath.pow(base: 2, exp: 3)")
	o, ok, cast, call = prog.body
	assert isinstance(o, A.VarDeclaration) and isinstance(o.initializer, A.ObjectLiteral)
	assert [p.key.name for p in o.initializer.properties] == ["a", "b"]
	assert isinstance(ok, A.VarDeclaration)
	query = ok.initializer
	assert isinstance(query, A.BooleanOpExpression) and query.op == "query" and query.force is True
	assert isinstance(cast, A.AssignmentStatement)
	assert isinstance(cast.value, A.BooleanOpExpression) and cast.value.op == "cast" and cast.value.force is False
	assert isinstance(call, A.ExpressionStatement) and isinstance(call.expression, A.CallExpression)
	assert all(isinstance(a, A.NamedArgument) for a in call.expression.args)


def test_syntax_error_is_a_diagnostic_not_an_exception() -> None:
	result = parse("let = 5")
	assert result.program is None
	assert [d.code for d in result.diagnostics] == ["PARSE_ERROR"]
	with pytest.raises(ForgeSyntaxError):
		parse_program("if (")


def test_lex_error_reports_the_character() -> None:
	result = tokenize("let a = 1 @ 2")
	assert [d.code for d in result.diagnostics] == ["LEX_ERROR"]
	assert result.diagnostics[0].range.start.offset == 10


def test_comments_are_ignored() -> None:
	prog = parse_program("// one\n/* two */\n** three **\nlet a = 1")
	assert len(prog.body) == 1
