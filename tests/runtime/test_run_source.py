# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from typing import Any, List

import httpx

from forge.pipeline import AnalysisOptions, analyze_text
from forge.runtime import MemoryHost, RunOptions, run_source

FUFFY = "disable 'AllInOne'; able 'Math','Time','Sys'; let dog = 'Fuffy'; console.text.var(l.dog);"


def _codes(result) -> List[str]:
	return [d.code for d in result.diagnostics]


def _runtime_messages(result) -> List[str]:
	return [d.message for d in result.diagnostics if d.code == "RUN_RUNTIME_ERROR"]


def test_fuffy_prints_its_name() -> None:
	result = run_source(FUFFY)
	assert result.ok
	assert result.exit_code == 0
	assert result.stdout == "Fuffy\n"
	assert result.stderr == ""


def test_analysis_errors_prevent_execution() -> None:
	result = run_source("console.text.var('side effect')\nconsole.text.var(missing)")
	assert not result.ok
	assert result.exit_code == 1
	assert result.stdout == ""
	assert "UNDEFINED_VARIABLE" in _codes(result)


def test_stop_on_warnings() -> None:
	src = "if (1) {\n\tconsole.text.var('x')\n}"
	assert run_source(src).stdout == "x\n"
	stopped = run_source(src, RunOptions(stop_on_warnings=True))
	assert stopped.exit_code == 1
	assert stopped.stdout == ""
	assert "SEM_COND_BOOL" in _codes(stopped)


def test_last_expression_value_is_returned() -> None:
	assert run_source("let a = 2\na x 21").value == 42


def test_step_limit() -> None:
	result = run_source("while (True) {\n}", RunOptions(max_steps=50))
	assert not result.ok
	assert "RUN_STEP_LIMIT" in _codes(result)


def test_timeout() -> None:
	result = run_source("while (True) {\n}", RunOptions(timeout_ms=5))
	assert not result.ok
	assert "RUN_TIMEOUT" in _codes(result)


def test_runtime_module_gating() -> None:
	src = "disable 'AllInOne'\nconsole.text.var(Sys.cpu.cores)"
	result = run_source(src, RunOptions(analysis=AnalysisOptions(soft_module_gating=True)))
	assert not result.ok
	assert _runtime_messages(result) == ["Runtime error: Module 'Sys' is not enabled. Add: able 'Sys'"]
	runtime_diag = next(d for d in result.diagnostics if d.code == "RUN_RUNTIME_ERROR")
	assert runtime_diag.hint


def test_able_opens_the_module_at_runtime() -> None:
	src = "disable 'AllInOne'\nable 'Sys'\nconsole.text.var(Sys.cpu.cores)"
	result = run_source(src)
	assert result.ok
	assert result.stdout == "8\n"


def test_sys_exec_is_denied_by_default() -> None:
	host = MemoryHost(commands={"echo hi": "hi"})
	result = run_source("console.text.var(Sys.exec('echo hi'))", RunOptions(host=host))
	assert not result.ok
	assert _runtime_messages(result) == ["Runtime error: Sys.exec is disabled by policy."]
	assert host.executed == []


def test_sys_exec_when_allowed() -> None:
	host = MemoryHost(commands={"echo hi": "hi"})
	result = run_source("console.text.var(Sys.exec('echo hi'))", RunOptions(host=host, allow_sys_exec=True))
	assert result.ok
	assert result.stdout == "hi\n"
	assert host.executed == ["echo hi"]


def test_store_write_needs_a_declaration_at_runtime() -> None:
	result = run_source("l.ghost = 1")
	assert not result.ok
	assert _runtime_messages(result) == ["Runtime error: Unknown variable 'l.ghost'. Declare it first."]


def test_uncaught_throw() -> None:
	assert _runtime_messages(run_source("throw 42")) == ["Runtime error: Thrown value: 42"]
	assert _runtime_messages(run_source("throw 'boom'")) == ["Runtime error: boom"]


def test_file_builtins_use_the_host() -> None:
	host = MemoryHost()
	src = "File.write('notes.txt', 'hi')\nconsole.text.var(File.read('notes.txt'))\nconsole.text.var(File.exists('notes.txt'))"
	result = run_source(src, RunOptions(host=host))
	assert result.ok
	assert result.stdout == "hi\nTrue\n"
	assert host.files["/work/notes.txt"] == b"hi"


def test_missing_file_is_an_io_error() -> None:
	result = run_source("console.text.var(File.read('nope.txt'))")
	[message] = _runtime_messages(result)
	assert message.startswith("Runtime error: File.read failed")


def test_prompted_input() -> None:
	host = MemoryHost(inputs=["Zed"])
	result = run_source("let who = inp.var('Name: ')\nconsole.text.var('Hi ' + who)", RunOptions(host=host))
	assert result.stdout == "Name: Hi Zed\n"
	assert host.prompts == ["Name: "]


def test_builtin_overrides_are_merged() -> None:
	seen: List[Any] = []
	opts = RunOptions(builtins={"console": {"text": {"var": lambda v: seen.append(v)}}})
	result = run_source(FUFFY, opts)
	assert result.ok
	assert seen == ["Fuffy"]
	assert result.stdout == ""


def test_time_wait_sleeps_on_the_host() -> None:
	host = MemoryHost()
	result = run_source("Time.wait(1.5s)\nTime.wait(120ms)\nTime.wait(5)", RunOptions(host=host))
	assert result.ok
	assert host.slept == [1500, 120, 5]


def test_timings_are_reported() -> None:
	t = run_source(FUFFY).timings
	assert t.total_ms >= t.analysis_ms >= 0
	assert t.exec_ms >= 0


def test_terminal_helpers_print_through_the_host() -> None:
	src = "Terminal.banner('Hi')\nTerminal.progress.bar(50, {width: 10, char: '#'})"
	result = run_source(src)
	assert result.ok
	assert result.stdout == "┌────┐\n│ Hi │\n└────┘\n[#####     ] 50%\n"


def test_undecodable_file_is_catchable() -> None:
	host = MemoryHost(files={"/work/b.bin": b"\xff\xfe"})
	src = "try {\n\tFile.read('b.bin')\n} catch (e) {\n\tconsole.text.var('caught')\n}"
	result = run_source(src, RunOptions(host=host))
	assert result.ok
	assert result.stdout == "caught\n"


def test_invalid_url_is_a_net_error() -> None:
	def reject(method, url, headers, body):
		raise httpx.InvalidURL(f"Invalid URL {url!r}")

	host = MemoryHost(routes={"http://[bad": reject})
	src = "try {\n\tNet.get('http://[bad')\n} catch (e) {\n\tconsole.text.var('caught')\n}"
	result = run_source(src, RunOptions(host=host))
	assert result.ok
	assert result.stdout == "caught\n"


def test_analysis_and_execution_agree_on_block_declarations() -> None:
	src = "if (True) {\n\tlet a = 1\n}\nconsole.text.var(l.a)"
	assert analyze_text(src).ok
	result = run_source(src)
	assert result.ok
	assert result.stdout == "1\n"
