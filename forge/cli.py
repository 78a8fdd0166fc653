# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Command-line driver: `forge check FILE` and `forge run FILE`.

`check` prints diagnostics (human-readable on stderr, or JSON on stdout with
`--json`) and exits 1 when any error was reported. `run` analyzes and then
executes the file against the real machine, exiting with the run's code.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from . import __version__
from .config import ConfigError, ForgeConfig
from .core import diagnostics as D
from .core.diagnostics import Diagnostic
from .core.wire import to_wire_list
from .pipeline import analyze_text
from .runtime.host import SystemHost
from .runtime.run import RunOptions, run_source

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog="forge", description="Forge language tools")
	parser.add_argument("--version", action="version", version=f"forge {__version__}")
	sub = parser.add_subparsers(dest="command", required=True)

	check = sub.add_parser("check", help="Analyze a file and print diagnostics")
	check.add_argument("file", type=Path, help="Path to a .forge source file")
	check.add_argument("--json", action="store_true", help="Emit diagnostics as JSON on stdout")

	run = sub.add_parser("run", help="Analyze and execute a file")
	run.add_argument("file", type=Path, help="Path to a .forge source file")
	run.add_argument("--max-steps", type=int, default=None, help="Stop after this many statements")
	run.add_argument("--timeout-ms", type=float, default=None, help="Stop after this much wall-clock time")
	run.add_argument(
		"--stop-on-warnings",
		action="store_true",
		help="Refuse to execute when analysis reports warnings",
	)

	for p in (check, run):
		p.add_argument("--config", type=Path, default=None, help="Path to a forge config JSON file")
		p.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
	return parser


def _configure_logging(verbose: bool) -> None:
	logging.basicConfig(
		stream=sys.stderr,
		level=logging.DEBUG if verbose else logging.WARNING,
		format="%(levelname)s %(name)s: %(message)s",
	)


def _print_human(path: Path, diags: Iterable[Diagnostic]) -> None:
	for d in diags:
		loc = f"{d.range.start.line + 1}:{d.range.start.column + 1}"
		print(f"{path}:{loc}: {d.severity}: {d.message} [{d.code}]", file=sys.stderr)
		if d.hint:
			print(f"  hint: {d.hint}", file=sys.stderr)


def _load_config(path: Optional[Path]) -> ForgeConfig:
	if path is None:
		return ForgeConfig()
	return ForgeConfig.load(path)


def _cmd_check(args: argparse.Namespace, config: ForgeConfig, source: str) -> int:
	result = analyze_text(source, config.to_analysis_options())
	diags: List[Diagnostic] = result.diagnostics[: config.max_number_of_problems]
	exit_code = 1 if D.has_errors(result.diagnostics) else 0
	if args.json:
		print(json.dumps({"exit_code": exit_code, "diagnostics": to_wire_list(diags)}))
	else:
		_print_human(args.file, diags)
	return exit_code


def _cmd_run(args: argparse.Namespace, config: ForgeConfig, source: str) -> int:
	host = SystemHost(cwd=str(args.file.resolve().parent))
	options = RunOptions(
		max_steps=args.max_steps,
		timeout_ms=args.timeout_ms,
		stop_on_warnings=args.stop_on_warnings,
		allow_sys_exec=config.allow_sys_exec,
		analysis=config.to_analysis_options(),
		host=host,
		verbose=args.verbose or config.verbose,
	)
	result = run_source(source, options)
	shown = [d for d in result.diagnostics if d.severity != D.INFO or options.verbose]
	_print_human(args.file, shown[: config.max_number_of_problems])
	logger.debug(
		"timings: analysis=%.2fms exec=%.2fms total=%.2fms",
		result.timings.analysis_ms,
		result.timings.exec_ms,
		result.timings.total_ms,
	)
	return result.exit_code


def main(argv: Optional[List[str]] = None) -> int:
	parser = _build_parser()
	args = parser.parse_args(argv)

	try:
		config = _load_config(args.config)
	except ConfigError as exc:
		_configure_logging(args.verbose)
		print(f"{args.config}:?:?: error: {exc}", file=sys.stderr)
		return 2
	_configure_logging(args.verbose or config.verbose)

	try:
		source = args.file.read_text(encoding="utf-8")
	except OSError as exc:
		print(f"{args.file}:?:?: error: cannot read file: {exc}", file=sys.stderr)
		return 2

	if args.command == "check":
		return _cmd_check(args, config, source)
	return _cmd_run(args, config, source)


__all__ = ["main"]
