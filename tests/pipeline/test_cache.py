# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from forge.cache import DocumentCache


def test_same_version_is_served_from_cache() -> None:
	cache = DocumentCache()
	a = cache.analyze("file:///a.forge", 1, "let dog = 1")
	b = cache.analyze("file:///a.forge", 1, "let dog = 1")
	assert a is b


def test_fifo_eviction_ignores_reanalysis() -> None:
	cache = DocumentCache(capacity=2)
	cache.analyze("a", 1, "let a1 = 1")
	cache.analyze("b", 1, "let b1 = 1")
	# Re-analyzing `a` must not move it to the back of the queue.
	cache.analyze("a", 2, "let a2 = 2")
	cache.analyze("c", 1, "let c1 = 1")
	assert "a" not in cache
	assert "b" in cache and "c" in cache
	assert len(cache) == 2


def test_last_good_stands_in_for_syntax_errors() -> None:
	cache = DocumentCache()
	good = cache.analyze("doc", 1, "let dog = 'Fuffy'")
	broken = cache.analyze("doc", 2, "let dog = ")
	assert broken.from_last_good
	assert broken.program is good.program
	assert broken.symbols is not None and broken.symbols.lookup("l", "dog") is not None
	# The diagnostics still describe the broken text.
	assert any(d.code == "PARSE_ERROR" for d in broken.diagnostics)


def test_last_good_can_be_disabled() -> None:
	cache = DocumentCache(use_last_good=False)
	cache.analyze("doc", 1, "let dog = 1")
	broken = cache.analyze("doc", 2, "let dog = ")
	assert broken.program is None
	assert not broken.from_last_good


def test_documents_with_errors_do_not_become_last_good() -> None:
	cache = DocumentCache()
	cache.analyze("doc", 1, "console.text.var(missing)")
	broken = cache.analyze("doc", 2, "let = ")
	assert broken.program is None


def test_invalidate_and_capacity_checks() -> None:
	cache = DocumentCache()
	cache.analyze("doc", 1, "let dog = 1")
	cache.invalidate("doc")
	assert cache.get("doc") is None
	with pytest.raises(ValueError):
		DocumentCache(capacity=0)
