"""
forge.runtime: executing analyzed Forge programs.

Modules:
  - values: runtime value model, conversions and ForgeRuntimeError
  - host: Host interface with SystemHost and MemoryHost
  - builtins: the builtin library tree (console, File, Net, ...)
  - interp: tree-walking Interpreter
  - run: run_source, the analyze-then-execute entry point
"""

from .host import Host, MemoryHost, SystemHost
from .interp import ExecutionLimits, Interpreter
from .run import RunOptions, RunResult, run_source
from .values import ForgeRuntimeError

__all__ = [
	"ExecutionLimits",
	"ForgeRuntimeError",
	"Host",
	"Interpreter",
	"MemoryHost",
	"RunOptions",
	"RunResult",
	"SystemHost",
	"run_source",
]
