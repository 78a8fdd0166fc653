# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Document symbols for outline and breadcrumb views.

Symbols come from the program tree when there is one. Without a tree (the
document does not parse and no last-good tree was kept) the resolver's
`global` table stands in. The `l`, `v` and `c` stores are appended as
namespaces whenever semantic state is available.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from .. import ast as A
from ..core.span import Range
from ..resolver import SemanticResult, SymbolInfo
from ..types import TypeKind

logger = logging.getLogger(__name__)

FILE = "file"
VARIABLE = "variable"
FUNCTION = "function"
MODULE = "module"
NAMESPACE = "namespace"
CONSTANT = "constant"

_STORE_DETAIL = {"l": "let store", "v": "var store", "c": "const store"}


@dataclass
class DocumentSymbol:
	name: str
	kind: str
	range: Range
	selection_range: Range
	detail: Optional[str] = None
	children: List["DocumentSymbol"] = field(default_factory=list)
	uri: Optional[str] = None


def get_document_symbols(
	program: Optional[A.Program],
	semantic: Optional[SemanticResult],
	uri: Optional[str] = None,
) -> List[DocumentSymbol]:
	out: List[DocumentSymbol] = []
	if program is not None:
		out.extend(_from_program(program, uri))
	elif semantic is not None:
		out.extend(_from_symbol_info(s, uri) for s in semantic.symbols.global_.values())
	if semantic is not None:
		out.extend(_store_namespaces(semantic, uri))
	logger.debug("document symbols: %d top-level entries", len(out))
	return _sorted(out)


def _short_uri(uri: str) -> str:
	return uri.rsplit("/", 1)[-1] or uri


def _from_program(program: A.Program, uri: Optional[str]) -> List[DocumentSymbol]:
	children: List[DocumentSymbol] = []
	for stmt in program.body:
		children.extend(_from_stmt(stmt, uri))
	name = _short_uri(uri) if uri else "Forge File"
	return [DocumentSymbol(name, FILE, program.range, program.range, children=children, uri=uri)]


def _from_blocks(blocks: List[Optional[A.BlockStatement]], uri: Optional[str]) -> List[DocumentSymbol]:
	out: List[DocumentSymbol] = []
	for block in blocks:
		if block is not None:
			out.extend(_from_stmt(block, uri))
	return out


def _from_stmt(stmt: A.Stmt, uri: Optional[str]) -> List[DocumentSymbol]:
	if isinstance(stmt, A.VarDeclaration):
		kind = CONSTANT if stmt.decl_kind == "const" else VARIABLE
		return [DocumentSymbol(stmt.name.name, kind, stmt.range, stmt.name.range, stmt.decl_kind, uri=uri)]
	if isinstance(stmt, A.FunctionDeclaration):
		detail = "async func" if stmt.is_async else "func"
		return [DocumentSymbol(stmt.name.name, FUNCTION, stmt.range, stmt.name.range, detail, uri=uri)]
	if isinstance(stmt, A.AbleDirective):
		mods = [m.value for m in stmt.modules]
		title = f"able {', '.join(mods)}" if mods else "able"
		return [DocumentSymbol(title, MODULE, stmt.range, stmt.range, "directive", uri=uri)]
	if isinstance(stmt, A.DisableDirective):
		return [DocumentSymbol(f"disable {stmt.target.value}", MODULE, stmt.range, stmt.range, "directive", uri=uri)]
	if isinstance(stmt, A.BlockStatement):
		out: List[DocumentSymbol] = []
		for child in stmt.body:
			out.extend(_from_stmt(child, uri))
		return out
	# Control flow contributes whatever its bodies declare.
	if isinstance(stmt, A.IfStatement):
		return _from_blocks([stmt.consequent, *(c.consequent for c in stmt.elif_clauses), stmt.alternate], uri)
	if isinstance(stmt, (A.ForStatement, A.ForEachStatement, A.WhileStatement, A.DoWhileStatement)):
		return _from_blocks([stmt.body], uri)
	if isinstance(stmt, A.TryStatement):
		handler = stmt.handler.body if stmt.handler is not None else None
		return _from_blocks([stmt.block, handler, stmt.finalizer], uri)
	return []


def _from_symbol_info(sym: SymbolInfo, uri: Optional[str]) -> DocumentSymbol:
	if sym.type.kind is TypeKind.FUNCTION:
		kind = FUNCTION
	elif sym.mutability == "const":
		kind = CONSTANT
	else:
		kind = VARIABLE
	return DocumentSymbol(
		sym.name, kind, sym.declared_at, sym.declared_at, f"{sym.store} {sym.mutability}", uri=uri
	)


def _store_namespaces(semantic: SemanticResult, uri: Optional[str]) -> List[DocumentSymbol]:
	out: List[DocumentSymbol] = []
	for store in ("l", "v", "c"):
		members = [_from_symbol_info(s, uri) for s in semantic.symbols.store(store).values()]
		if not members:
			continue
		out.append(DocumentSymbol(
			store,
			NAMESPACE,
			members[0].range,
			members[0].selection_range,
			_STORE_DETAIL[store],
			children=[replace(m, name=f"{store}.{m.name}") for m in members],
			uri=uri,
		))
	return out


def _sorted(symbols: List[DocumentSymbol]) -> List[DocumentSymbol]:
	return sorted(symbols, key=lambda s: (s.range.start.offset, s.name))


__all__ = [
	"DocumentSymbol",
	"get_document_symbols",
	"FILE",
	"VARIABLE",
	"FUNCTION",
	"MODULE",
	"NAMESPACE",
	"CONSTANT",
]
