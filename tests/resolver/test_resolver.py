# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from typing import List

from forge.core.diagnostics import Diagnostic
from forge.modules import ModuleContext
from forge.parser import parse_program
from forge.resolver import ResolverOptions, SemanticResult, resolve
from forge.types import TypeKind, type_to_string


def _resolve(src: str, **opts) -> SemanticResult:
	return resolve(parse_program(src), ResolverOptions(**opts))


def _codes(diags: List[Diagnostic]) -> List[str]:
	return [d.code for d in diags]


def test_same_name_in_two_stores_is_ambiguous_when_bare() -> None:
	src = "let dog = 1\nvar dog = 2\nconsole.text.var(dog)"
	sem = _resolve(src)
	assert _codes(sem.diagnostics).count("AMBIGUOUS_VARIABLE") == 1
	amb = [d for d in sem.diagnostics if d.code == "AMBIGUOUS_VARIABLE"][0]
	assert "l., v." in amb.message
	assert sem.symbols.lookup_all("dog") == ["l", "v"]


def test_qualified_reference_is_never_ambiguous() -> None:
	sem = _resolve("let dog = 1\nvar dog = 2\nconsole.text.var(l.dog)")
	assert "AMBIGUOUS_VARIABLE" not in _codes(sem.diagnostics)


def test_duplicate_declaration_points_at_second() -> None:
	src = "let dog = 1;\nlet dog = 1;"
	sem = _resolve(src)
	dups = [d for d in sem.diagnostics if d.code == "DUPLICATE_DECLARATION"]
	assert len(dups) == 1
	assert dups[0].range.start.line == 1
	assert dups[0].range.start.offset == src.rindex("dog")


def test_module_gating_reports_once_per_chain() -> None:
	src = "disable 'AllInOne'; able 'Math';\nlet a = Math.PI\nlet b = Sys.cpu.cores"
	sem = _resolve(src)
	gated = [d for d in sem.diagnostics if d.code == "MODULE_NOT_ENABLED"]
	assert len(gated) == 1
	assert "Sys" in gated[0].message
	assert gated[0].hint is not None and "able 'Sys'" in gated[0].hint


def test_starting_module_context_is_copied() -> None:
	start = ModuleContext.starting(all_in_one=False, modules=["Time"])
	sem = resolve(parse_program("able 'Math'\nTime.wait(1s)\nMath.abs(1)"), modules=start)
	assert "MODULE_NOT_ENABLED" not in _codes(sem.diagnostics)
	assert start.enabled == {"Time"}
	assert sem.modules.enabled == {"Time", "Math"}


def test_undefined_variables() -> None:
	sem = _resolve("console.text.var(cat)\nconsole.text.var(v.cat)")
	assert _codes(sem.diagnostics) == ["UNDEFINED_VARIABLE", "UNDEFINED_IN_NAMESPACE"]


def test_const_reassignment_is_an_error() -> None:
	sem = _resolve("const limit = 3\nlimit = 4")
	assert "SEM_CONST_REASSIGN" in _codes(sem.diagnostics)


def test_store_write_defines_the_binding() -> None:
	sem = _resolve("l.count = 1\nconsole.text.var(count)")
	assert sem.diagnostics == []
	sym = sem.symbols.lookup("l", "count")
	assert sym is not None and sym.mutability == "let"


def test_declaration_types_are_inferred() -> None:
	sem = _resolve("let name = 'Fuffy'\nlet nums = [1, 2, 3]\nlet o = {a: 1, b: 'x'}\nlet f = (n) => n + 1")
	assert type_to_string(sem.symbols.lookup("l", "name").type) == "'Fuffy'"
	assert type_to_string(sem.symbols.lookup("l", "nums").type) == "array<1 | 2 | 3>"
	o = sem.symbols.lookup("l", "o").type
	assert o.kind is TypeKind.OBJECT and o.open
	assert sem.symbols.lookup("l", "f").type.kind is TypeKind.FUNCTION


def test_type_mismatch_on_assignment_warns() -> None:
	sem = _resolve("let n = 1\nn = 'two'")
	warn = [d for d in sem.diagnostics if d.code == "SEM_TYPE_ASSIGN"]
	assert len(warn) == 1
	assert warn[0].severity == "warning"


def test_builtin_argument_types_are_checked() -> None:
	sem = _resolve("Math.pow('a', 2)")
	args = [d for d in sem.diagnostics if d.code == "SEM_ARG_TYPE"]
	assert len(args) == 1
	assert "Argument 1" in args[0].message


def test_non_boolean_condition_warns() -> None:
	sem = _resolve("let n = 1\nif (n) {\n\tconsole.text.var(n)\n}")
	assert "SEM_COND_BOOL" in _codes(sem.diagnostics)


def test_function_params_and_recursion_resolve() -> None:
	src = "func fact(n) {\n\tif (n <= 1) {\n\t\treturn 1\n\t}\n\treturn n x fact(n - 1)\n}\nconsole.text.var(fact(5))"
	sem = _resolve(src)
	assert [d for d in sem.diagnostics if d.severity == "error"] == []
	assert sem.symbols.lookup("l", "fact") is not None


def test_foreach_item_and_catch_binding_are_local() -> None:
	src = "forEach (item in [1, 2]) {\n\tconsole.text.var(item)\n}\ntry {\n\tthrow 'x'\n} catch (err) {\n\tconsole.text.var(err)\n}"
	sem = _resolve(src)
	assert sem.diagnostics == []
	assert sem.symbols.lookup_all("item") == []


def test_strict_member_access_is_an_error() -> None:
	relaxed = _resolve("let n = 1\nconsole.text.var(n.size)")
	strict = _resolve("let n = 1\nconsole.text.var(n.size)", relaxed_member_access=False)
	assert [d.severity for d in relaxed.diagnostics if d.code == "PROPERTY_ON_NON_OBJECT"] == ["warning"]
	assert [d.severity for d in strict.diagnostics if d.code == "PROPERTY_ON_NON_OBJECT"] == ["error"]
