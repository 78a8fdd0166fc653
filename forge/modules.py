# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Gated standard-library modules.

Every document starts with the `AllInOne` bundle active, which grants every
module. `disable 'AllInOne'` turns the bundle off and forgets anything enabled
so far; `able 'X', 'Y'` then grants individual modules. Names outside
`FORGE_MODULES` are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Set

ALL_IN_ONE = "AllInOne"

FORGE_MODULES = (
	"Math",
	"Time",
	"Sys",
	"Terminal",
	"File",
	"Net",
	"Crypto",
	"DateTime",
	"Regex",
	"JSON",
	"Async",
)

_MODULE_SET = frozenset(FORGE_MODULES)


def is_forge_module(name: str) -> bool:
	return name in _MODULE_SET


def enable_hint(name: str) -> str:
	return f"Add: able '{name}' (or remove disable '{ALL_IN_ONE}')."


@dataclass
class ModuleContext:
	"""Which modules a document may touch at the current point of analysis."""

	all_in_one_enabled: bool = True
	enabled: Set[str] = field(default_factory=lambda: {ALL_IN_ONE})

	def is_enabled(self, name: str) -> bool:
		if self.all_in_one_enabled:
			return True
		return name in self.enabled

	def disable(self, target: str) -> None:
		# Only the bundle can be disabled; other targets are no-ops.
		if target != ALL_IN_ONE:
			return
		self.all_in_one_enabled = False
		self.enabled = set()

	def able(self, names: Iterable[str]) -> None:
		for name in names:
			if is_forge_module(name):
				self.enabled.add(name)

	def copy(self) -> "ModuleContext":
		return ModuleContext(self.all_in_one_enabled, set(self.enabled))

	@classmethod
	def starting(cls, all_in_one: bool = True, modules: Optional[Iterable[str]] = None) -> "ModuleContext":
		"""
		Fresh context for one analysis pass.

		With `all_in_one` false the bundle starts disabled and `modules` seeds
		the enabled set.
		"""
		if all_in_one:
			return cls()
		ctx = cls(all_in_one_enabled=False, enabled=set())
		ctx.able(modules or ())
		return ctx


__all__ = [
	"ALL_IN_ONE",
	"FORGE_MODULES",
	"ModuleContext",
	"is_forge_module",
	"enable_hint",
]
