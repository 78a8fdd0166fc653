# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from forge.cache import DocumentCache
from forge.editor import get_document_symbols
from forge.editor import symbols as S
from forge.pipeline import analyze_text

SOURCE = """able 'Math'
let dog = 1
const max = 3
func greet(n) {
	return n
}
if (True) {
	var inner = 2
}"""


def test_outline_from_program() -> None:
	result = analyze_text(SOURCE)
	out = get_document_symbols(result.program, result.semantic, "file:///work/demo.forge")
	file_sym = out[0]
	assert file_sym.kind == S.FILE
	assert file_sym.name == "demo.forge"
	assert [(c.name, c.kind, c.detail) for c in file_sym.children] == [
		("able Math", S.MODULE, "directive"),
		("dog", S.VARIABLE, "let"),
		("max", S.CONSTANT, "const"),
		("greet", S.FUNCTION, "func"),
		("inner", S.VARIABLE, "var"),
	]
	dog = file_sym.children[1]
	assert dog.selection_range.start.offset == SOURCE.index("dog")


def test_store_namespaces_follow_the_file() -> None:
	result = analyze_text(SOURCE)
	out = get_document_symbols(result.program, result.semantic)
	assert out[0].name == "Forge File"
	stores = {s.name: s for s in out if s.kind == S.NAMESPACE}
	assert sorted(stores) == ["c", "l", "v"]
	assert [c.name for c in stores["l"].children] == ["l.dog", "l.greet"]
	assert [c.name for c in stores["c"].children] == ["c.max"]
	assert stores["v"].detail == "var store"
	assert stores["l"].children[1].kind == S.FUNCTION


def test_semantic_fallback_without_a_program() -> None:
	semantic = analyze_text(SOURCE).semantic
	out = get_document_symbols(None, semantic)
	assert not any(s.kind == S.FILE for s in out)
	flat = {s.name: s for s in out if s.kind != S.NAMESPACE}
	assert sorted(flat) == ["dog", "greet", "inner", "max"]
	assert flat["max"].kind == S.CONSTANT
	assert flat["greet"].detail == "l const"
	offsets = [s.range.start.offset for s in out]
	assert offsets == sorted(offsets)


def test_nothing_to_show() -> None:
	assert get_document_symbols(None, None) == []


def test_outline_survives_a_syntax_error() -> None:
	cache = DocumentCache()
	cache.analyze("doc", 1, "let dog = 'Fuffy'")
	broken = cache.analyze("doc", 2, "let = ")
	assert broken.from_last_good
	out = get_document_symbols(broken.program, broken.semantic)
	assert [c.name for c in out[0].children] == ["dog"]
