# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Analyze-then-execute runner.

`run_source` never raises: analysis failures, missing programs, uncaught
runtime errors and exhausted budgets all come back as diagnostics on the
`RunResult`, with `exit_code` 1.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core import diagnostics as D
from ..core.diagnostics import Diagnostic
from ..core.span import UNKNOWN_RANGE
from ..modules import ModuleContext
from ..pipeline import AnalysisOptions, analyze_text
from .builtins import RuntimeContext, build_builtins, merge_builtins
from .host import Host, MemoryHost
from .interp import STAGE, ExecutionLimitError, ExecutionLimits, Interpreter
from .values import ForgeRuntimeError

logger = logging.getLogger(__name__)

RUNTIME_HINT = "Check the stack trace / printed logs for details."


@dataclass
class RunOptions:
	max_steps: Optional[int] = None
	timeout_ms: Optional[float] = None
	stop_on_warnings: bool = False
	# Deep-merged into the default builtin tree.
	builtins: Dict[str, Any] = field(default_factory=dict)
	allow_sys_exec: bool = False
	analysis: AnalysisOptions = field(default_factory=AnalysisOptions)
	# None means an in-memory host with no real I/O.
	host: Optional[Host] = None
	verbose: bool = False


@dataclass
class RunTimings:
	analysis_ms: float = 0.0
	exec_ms: float = 0.0
	total_ms: float = 0.0


@dataclass
class RunResult:
	ok: bool
	exit_code: int
	stdout: str = ""
	stderr: str = ""
	diagnostics: List[Diagnostic] = field(default_factory=list)
	value: Any = None
	timings: RunTimings = field(default_factory=RunTimings)


def _ms(start: float) -> float:
	return (time.perf_counter() - start) * 1000.0


def run_source(source: str, options: Optional[RunOptions] = None) -> RunResult:
	opts = options or RunOptions()
	host = opts.host if opts.host is not None else MemoryHost()
	timings = RunTimings()
	started = time.perf_counter()

	def _finish(ok: bool, diags: List[Diagnostic], value: Any = None) -> RunResult:
		timings.total_ms = _ms(started)
		return RunResult(
			ok=ok,
			exit_code=0 if ok else 1,
			stdout="".join(host.out),
			stderr="".join(host.err),
			diagnostics=D.dedupe(D.sort(diags)),
			value=value,
			timings=timings,
		)

	analysis = analyze_text(source, opts.analysis)
	timings.analysis_ms = _ms(started)
	diags = list(analysis.diagnostics)

	if D.has_errors(diags) or (opts.stop_on_warnings and D.has_warnings(diags)):
		return _finish(False, diags)
	if analysis.program is None:
		diags.append(D.error(
			"RUN_NO_AST", "Cannot execute: the program AST is missing (parser failed).", UNKNOWN_RANGE, STAGE
		))
		return _finish(False, diags)

	start_modules = opts.analysis.modules.copy() if opts.analysis.modules is not None else ModuleContext()
	ctx = RuntimeContext(host, modules=start_modules, allow_sys_exec=opts.allow_sys_exec)
	builtins = build_builtins(host, ctx)
	if opts.builtins:
		builtins = merge_builtins(builtins, opts.builtins)
	interp = Interpreter(host, builtins, ExecutionLimits(opts.max_steps, opts.timeout_ms), ctx)

	exec_started = time.perf_counter()
	ok = True
	value: Any = None
	try:
		value = interp.execute(analysis.program)
	except ExecutionLimitError as exc:
		ok = False
		diags.append(D.error(exc.code, str(exc), UNKNOWN_RANGE, STAGE))
	except ForgeRuntimeError as exc:
		ok = False
		logger.debug("runtime error [%s]: %s", exc.code, exc.message)
		diags.append(D.error(
			"RUN_RUNTIME_ERROR", f"Runtime error: {exc.message}", exc.range or UNKNOWN_RANGE, STAGE, RUNTIME_HINT
		))
	except Exception as exc:  # builtin overrides and host bugs land here
		ok = False
		logger.exception("unexpected failure while running program")
		diags.append(D.error("RUN_RUNTIME_ERROR", f"Runtime error: {exc}", UNKNOWN_RANGE, STAGE, RUNTIME_HINT))
	timings.exec_ms = _ms(exec_started)

	diags.extend(interp.skipped)
	if opts.verbose:
		logger.debug("run finished ok=%s steps=%d exec=%.2fms", ok, interp.steps, timings.exec_ms)
	return _finish(ok, diags, value)


__all__ = ["RunOptions", "RunTimings", "RunResult", "run_source"]
