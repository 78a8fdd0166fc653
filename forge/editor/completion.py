# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Completion engine.

Context is detected from the raw text left of the cursor, never from a
fresh parse, so completion keeps working while the document is mid-edit:

	able '...        module names (plus AllInOne)
	disable '...     AllInOne
	l. / v. / c.     symbols of that store
	A.B.             registry children of A.B
	anything else    keywords, snippets, module roots, symbols, store stubs
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..modules import ALL_IN_ONE, FORGE_MODULES, ModuleContext, is_forge_module
from ..registry import BuiltinFunction, BuiltinNamespace, BuiltinValue, list_children
from ..resolver import SemanticResult, SymbolIndex, SymbolInfo, empty_semantic_state
from ..types import TypeKind

logger = logging.getLogger(__name__)

KEYWORDS = (
	"disable", "able", "let", "var", "const", "if", "elif", "else", "for", "forEach",
	"while", "do", "try", "catch", "finally", "throw", "return", "break", "continue",
	"func", "async", "await", "True", "False",
)

# Roots offered at the top level; `console` and `inp` are always available.
ROOT_NAMES = (*FORGE_MODULES, "console", "inp")

_ABLE_RE = re.compile(r"(?<![A-Za-z])able\s*'[^']*$")
_DISABLE_RE = re.compile(r"disable\s*'[^']*$")
_STORE_RE = re.compile(r"\b([lvc])\.\s*$")
_CHAIN_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)\.\s*$")


@dataclass
class CompletionItem:
	label: str
	kind: str  # keyword | variable | function | module | property | snippet | value
	detail: Optional[str] = None
	insert_text: Optional[str] = None
	sort_text: Optional[str] = None
	documentation: Optional[str] = None


@dataclass
class CompletionRequest:
	source: str
	offset: int
	semantic: Optional[SemanticResult] = None
	max_items: int = 200


@dataclass(frozen=True)
class _Context:
	kind: str  # able | disable | store | member | general
	store: Optional[str] = None
	path: Sequence[str] = ()


def detect_context(left: str) -> _Context:
	left = left.rstrip(" \t")
	if _DISABLE_RE.search(left):
		return _Context("disable")
	if _ABLE_RE.search(left):
		return _Context("able")
	m = _STORE_RE.search(left)
	if m:
		return _Context("store", store=m.group(1))
	m = _CHAIN_RE.search(left)
	if m:
		return _Context("member", path=tuple(m.group(1).split(".")))
	return _Context("general")


def get_completions(req: CompletionRequest) -> List[CompletionItem]:
	try:
		return _complete(req)
	except Exception:
		logger.exception("completion failed at offset %d", req.offset)
		return []


def _complete(req: CompletionRequest) -> List[CompletionItem]:
	semantic = req.semantic or empty_semantic_state()
	offset = max(0, min(req.offset, len(req.source)))
	ctx = detect_context(req.source[:offset])

	if ctx.kind == "able":
		items = [CompletionItem(m, "module", "Forge module", m) for m in (*FORGE_MODULES, ALL_IN_ONE)]
	elif ctx.kind == "disable":
		items = [CompletionItem(ALL_IN_ONE, "module", "Forge module bundle", ALL_IN_ONE)]
	elif ctx.kind == "store":
		items = _store_items(semantic.symbols, ctx.store or "l")
	elif ctx.kind == "member":
		items = _member_items(ctx.path, semantic.modules)
	else:
		items = _general_items(semantic)
	return _dedupe(items)[: max(0, req.max_items)]


def _general_items(semantic: SemanticResult) -> List[CompletionItem]:
	out = [CompletionItem(k, "keyword", insert_text=k) for k in KEYWORDS]
	out.extend(_directive_snippets())
	for root in ROOT_NAMES:
		available = not is_forge_module(root) or semantic.modules.is_enabled(root)
		detail = "Module (available)" if available else "Module (not enabled)"
		out.append(CompletionItem(root, "module", detail, root))
	for sym in semantic.symbols.global_.values():
		out.append(CompletionItem(sym.name, _symbol_kind(sym), f"{sym.store} {sym.mutability} • {_brief(sym)}", sym.name))
	for store, word in (("l", "let"), ("v", "var"), ("c", "const")):
		out.append(CompletionItem(f"{store}.", "keyword", f"{word} store namespace", f"{store}."))
	return out


def _directive_snippets() -> List[CompletionItem]:
	return [
		CompletionItem(
			"able 'Time', 'Sys', 'Math'", "snippet", "Enable common modules", "able 'Time', 'Sys', 'Math'\n"
		),
		CompletionItem("disable 'AllInOne'", "snippet", "Disable AllInOne bundle", "disable 'AllInOne';\n"),
		CompletionItem(
			"if / elif / else block",
			"snippet",
			"Control flow",
			"if (${1:condition}) {\n    ${2:// code}\n} elif (${3:condition}) {\n    ${4:// code}\n}"
			" else {\n    ${5:// code}\n}\n",
		),
		CompletionItem(
			"try / catch / finally",
			"snippet",
			"Error handling",
			"try {\n    ${1:// code}\n} catch (error) {\n    console.text.var('Error: {error}')\n}"
			" finally {\n    ${2:// cleanup}\n}\n",
		),
	]


def _store_items(symbols: SymbolIndex, store: str) -> List[CompletionItem]:
	return [
		CompletionItem(sym.name, _symbol_kind(sym), f"{store}. {sym.mutability} • {_brief(sym)}", sym.name)
		for sym in symbols.store(store).values()
	]


def _member_items(path: Sequence[str], modules: ModuleContext) -> List[CompletionItem]:
	out: List[CompletionItem] = []
	for child in list_children(path):
		if isinstance(child, BuiltinNamespace):
			out.append(CompletionItem(child.name, "property", "namespace", child.name, documentation=child.doc))
		elif isinstance(child, BuiltinFunction):
			out.append(CompletionItem(child.name, "function", child.signature, child.name, documentation=child.doc))
		elif isinstance(child, BuiltinValue):
			out.append(CompletionItem(child.name, "value", child.signature, child.name, documentation=child.doc))

	root = path[0] if path else ""
	if is_forge_module(root) and not modules.is_enabled(root):
		out.insert(0, CompletionItem(f"able '{root}'", "snippet", "Enable module", f"able '{root}'\n", "0000"))
	return out


def _symbol_kind(sym: SymbolInfo) -> str:
	return "function" if sym.type.kind is TypeKind.FUNCTION else "variable"


def _brief(sym: SymbolInfo) -> str:
	kind = sym.type.kind
	if kind in (TypeKind.LITERAL_STRING, TypeKind.LITERAL_NUMBER, TypeKind.LITERAL_BOOLEAN):
		return kind.value.split("_", 1)[1]
	return kind.value


def _dedupe(items: List[CompletionItem]) -> List[CompletionItem]:
	seen = set()
	out: List[CompletionItem] = []
	for item in items:
		key = (item.kind, item.label, item.insert_text or "")
		if key in seen:
			continue
		seen.add(key)
		out.append(item)
	return out


__all__ = ["CompletionItem", "CompletionRequest", "KEYWORDS", "detect_context", "get_completions"]
