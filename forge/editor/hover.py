# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Hover provider: markdown for the identifier or member chain under the cursor.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from ..modules import ModuleContext, is_forge_module
from ..registry import resolve_builtin
from ..resolver import SemanticResult, SymbolIndex, empty_semantic_state
from ..types import type_to_string

logger = logging.getLogger(__name__)

_CHAIN_SHAPE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*$")
_NAMESPACED = re.compile(r"^([lvc])\.([A-Za-z_][A-Za-z0-9_]*)")


@dataclass
class HoverRequest:
	source: str
	offset: int
	semantic: Optional[SemanticResult] = None


@dataclass
class HoverResult:
	markdown: str


def _is_word(ch: str) -> bool:
	return ch.isalnum() or ch == "_"


def _word_bounds(src: str, offset: int) -> Tuple[int, int]:
	start = end = offset
	while start > 0 and _is_word(src[start - 1]):
		start -= 1
	while end < len(src) and _is_word(src[end]):
		end += 1
	return start, end


def _chain_ending_at(src: str, start: int, end: int) -> str:
	"""The dotted chain that ends with the word under the cursor (`Sys` in `Sys.cpu`)."""
	while start > 0 and (_is_word(src[start - 1]) or src[start - 1] == "."):
		start -= 1
	return src[start:end]


def get_hover(req: HoverRequest) -> Optional[HoverResult]:
	try:
		return _hover(req)
	except Exception:
		logger.exception("hover failed at offset %d", req.offset)
		return None


def _hover(req: HoverRequest) -> Optional[HoverResult]:
	if req.offset < 0 or req.offset > len(req.source):
		return None
	start, end = _word_bounds(req.source, req.offset)
	word = req.source[start:end]
	if not word:
		return None
	chain = _chain_ending_at(req.source, start, end).lstrip(".")
	if not _CHAIN_SHAPE.match(chain):
		chain = word
	semantic = req.semantic or empty_semantic_state()

	m = _NAMESPACED.match(chain)
	if m:
		return _store_hover(semantic.symbols, m.group(1), m.group(2))

	builtin = _builtin_hover(chain, semantic.modules)
	if builtin is not None:
		return builtin

	sym = semantic.symbols.global_.get(chain)
	if sym is not None:
		return HoverResult("\n".join([
			f"### {sym.name}",
			"",
			f"**Scope:** `{sym.store}`",
			f"**Mutability:** `{sym.mutability}`",
			f"**Type:** `{type_to_string(sym.type)}`",
		]))

	if chain in ("True", "False"):
		return HoverResult(f"`{chain}`: boolean literal.")
	return None


def _store_hover(symbols: SymbolIndex, store: str, name: str) -> HoverResult:
	sym = symbols.lookup(store, name)
	lines = [f"### {store}.{name}", "", f"**Store:** `{store}`"]
	if sym is None:
		lines.append("**Status:** undefined")
	else:
		lines.append(f"**Mutability:** `{sym.mutability}`")
		lines.append(f"**Type:** `{type_to_string(sym.type)}`")
	return HoverResult("\n".join(lines))


def _builtin_hover(chain: str, modules: ModuleContext) -> Optional[HoverResult]:
	"""Docs for the longest prefix of `chain` that the registry documents."""
	parts = chain.split(".")
	for n in range(len(parts), 0, -1):
		entry = resolve_builtin(parts[:n])
		if entry is None or not entry.doc:
			continue
		lines = [f"### {entry.path}", "", "```forge\n" + entry.signature + "\n```", entry.doc]
		module = entry.module or (parts[0] if is_forge_module(parts[0]) else None)
		if module:
			enabled = modules.is_enabled(module)
			lines.append("")
			lines.append(f"**Module:** `{module}` • {'enabled' if enabled else 'not enabled'}")
			if not enabled:
				lines.append("")
				lines.append(f"> Add at top: `able '{module}'`")
		return HoverResult("\n".join(lines))
	return None


__all__ = ["HoverRequest", "HoverResult", "get_hover"]
