# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Per-document analysis cache.

Entries are keyed by document uri. Alongside the latest `ProcessedDocument`
the cache remembers, per uri, the program and semantic state of the most
recent analysis that had no errors ("last good"). While the user is in the
middle of typing a syntax error, that pair stands in for the missing one so
completion and hover keep working.

Eviction is FIFO by first insertion; re-analyzing a uri keeps its slot.
The cache is meant for a single caller and is not thread-safe.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from . import ast as A
from .core.diagnostics import Diagnostic
from .modules import ModuleContext
from .pipeline import AnalysisOptions, Timings, analyze_text
from .resolver import SemanticResult, SymbolIndex, TypeMap

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50


@dataclass
class ProcessedDocument:
	uri: str
	version: int
	source: str
	program: Optional[A.Program]
	diagnostics: List[Diagnostic] = field(default_factory=list)
	semantic: Optional[SemanticResult] = None
	timings: Timings = field(default_factory=Timings)
	# Program/semantic came from the last good analysis, not this one.
	from_last_good: bool = False

	@property
	def symbols(self) -> Optional[SymbolIndex]:
		return self.semantic.symbols if self.semantic is not None else None

	@property
	def modules(self) -> Optional[ModuleContext]:
		return self.semantic.modules if self.semantic is not None else None

	@property
	def types(self) -> Optional[TypeMap]:
		return self.semantic.types if self.semantic is not None else None


class DocumentCache:
	def __init__(
		self,
		capacity: int = DEFAULT_CAPACITY,
		use_last_good: bool = True,
		options: Optional[AnalysisOptions] = None,
	) -> None:
		if capacity < 1:
			raise ValueError("cache capacity must be at least 1")
		self.capacity = capacity
		self.use_last_good = use_last_good
		self.options = options or AnalysisOptions()
		self._docs: "OrderedDict[str, ProcessedDocument]" = OrderedDict()
		self._last_good: Dict[str, Tuple[A.Program, SemanticResult]] = {}

	def __len__(self) -> int:
		return len(self._docs)

	def __contains__(self, uri: object) -> bool:
		return uri in self._docs

	def get(self, uri: str) -> Optional[ProcessedDocument]:
		return self._docs.get(uri)

	def invalidate(self, uri: str) -> None:
		self._docs.pop(uri, None)
		self._last_good.pop(uri, None)

	def clear(self) -> None:
		self._docs.clear()
		self._last_good.clear()

	def analyze(self, uri: str, version: int, source: str) -> ProcessedDocument:
		"""Analyze (or reuse) one document version. Never raises."""
		cached = self._docs.get(uri)
		if cached is not None and cached.version == version and cached.source == source:
			return cached

		result = analyze_text(source, self.options)
		doc = ProcessedDocument(
			uri=uri,
			version=version,
			source=source,
			program=result.program,
			diagnostics=result.diagnostics,
			semantic=result.semantic,
			timings=result.timings,
		)

		if result.ok and result.program is not None and result.semantic is not None:
			self._last_good[uri] = (result.program, result.semantic)
		elif (result.program is None or result.semantic is None) and self.use_last_good:
			last = self._last_good.get(uri)
			if last is not None:
				doc.program, doc.semantic = last
				doc.from_last_good = True

		self._store(uri, doc)
		return doc

	def _store(self, uri: str, doc: ProcessedDocument) -> None:
		if uri in self._docs:
			# Replacing a value keeps the OrderedDict position.
			self._docs[uri] = doc
			return
		self._docs[uri] = doc
		while len(self._docs) > self.capacity:
			evicted, _ = self._docs.popitem(last=False)
			self._last_good.pop(evicted, None)
			logger.debug("forge: evicted %s from document cache", evicted)


__all__ = ["ProcessedDocument", "DocumentCache", "DEFAULT_CAPACITY"]
