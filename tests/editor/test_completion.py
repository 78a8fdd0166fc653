# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from forge.editor import CompletionRequest, get_completions
from forge.editor.completion import KEYWORDS, detect_context
from forge.pipeline import analyze_text


def _complete(prefix: str, source: str = "", max_items: int = 200):
	semantic = analyze_text(source).semantic if source else None
	text = source + prefix
	return get_completions(CompletionRequest(text, len(text), semantic, max_items))


def test_context_detection() -> None:
	assert detect_context("able 'Ma").kind == "able"
	assert detect_context("disable '").kind == "disable"
	assert detect_context("let x = l.").kind == "store"
	assert detect_context("let x = c.").store == "c"
	member = detect_context("let n = Sys.cpu.")
	assert member.kind == "member" and tuple(member.path) == ("Sys", "cpu")
	assert detect_context("let x = ").kind == "general"


def test_able_offers_modules_and_bundle() -> None:
	labels = [i.label for i in _complete("able '")]
	assert "Math" in labels and "Sys" in labels
	assert labels[-1] == "AllInOne"
	assert [i.label for i in _complete("disable '")] == ["AllInOne"]


def test_store_completion_lists_that_store_only() -> None:
	items = _complete("l.", "let dog = 'Fuffy'\nconst max = 3\n")
	assert [i.label for i in items] == ["dog"]
	assert items[0].kind == "variable"
	assert items[0].detail == "l. let • string"
	assert [i.label for i in _complete("c.", "let dog = 'Fuffy'\nconst max = 3\n")] == ["max"]


def test_member_completion_with_gate_snippet() -> None:
	items = _complete("Sys.cpu.", "disable 'AllInOne'\n")
	assert items[0].label == "able 'Sys'"
	assert items[0].sort_text == "0000"
	assert [i.label for i in items[1:]] == ["cores", "usage", "model"]
	assert all(i.kind == "value" for i in items[1:])


def test_member_completion_when_enabled() -> None:
	items = _complete("Math.")
	labels = [i.label for i in items]
	assert "able 'Math'" not in labels
	assert "pow" in labels and "PI" in labels
	pow_item = next(i for i in items if i.label == "pow")
	assert pow_item.kind == "function"
	assert pow_item.detail == "Math.pow(base: number, exp: number): number"


def test_general_completion() -> None:
	items = _complete("", "disable 'AllInOne'\nable 'Math'\nfunc greet() {\n\treturn 1\n}\n")
	by_label = {i.label: i for i in items}
	for kw in KEYWORDS:
		assert kw in by_label
	assert by_label["Math"].detail == "Module (available)"
	assert by_label["Sys"].detail == "Module (not enabled)"
	assert by_label["console"].detail == "Module (available)"
	assert by_label["greet"].kind == "function"
	assert by_label["l."].kind == "keyword"
	assert any(i.kind == "snippet" for i in items)


def test_results_are_deduped_and_truncated() -> None:
	items = _complete("", "let dog = 1\n")
	keys = [(i.kind, i.label, i.insert_text) for i in items]
	assert len(keys) == len(set(keys))
	assert len(_complete("", max_items=5)) == 5


def test_completion_never_raises() -> None:
	assert get_completions(CompletionRequest(None, 3)) == []  # type: ignore[arg-type]
