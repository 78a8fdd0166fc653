# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from forge.cli import main

FUFFY = "disable 'AllInOne'; able 'Math','Time','Sys'; let dog = 'Fuffy'; console.text.var(l.dog);\n"


def _write(tmp_path: Path, text: str, name: str = "main.forge") -> Path:
	path = tmp_path / name
	path.write_text(text, encoding="utf-8")
	return path


def test_check_json_clean(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	src = _write(tmp_path, FUFFY)
	assert main(["check", str(src), "--json"]) == 0
	payload = json.loads(capsys.readouterr().out)
	assert payload["exit_code"] == 0
	assert all(d["severity"] != "error" for d in payload["diagnostics"])


def test_check_json_reports_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	src = _write(tmp_path, "console.text.var(missing)\n")
	assert main(["check", str(src), "--json"]) == 1
	payload = json.loads(capsys.readouterr().out)
	assert payload["exit_code"] == 1
	[diag] = [d for d in payload["diagnostics"] if d["code"] == "UNDEFINED_VARIABLE"]
	assert diag["source"] == "forge:semantic"
	assert diag["range"]["start"] == {"line": 0, "character": 17}


def test_check_human_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	src = _write(tmp_path, "console.text.var(missing)\n")
	assert main(["check", str(src)]) == 1
	err = capsys.readouterr().err
	assert f"{src}:1:18: error:" in err
	assert "[UNDEFINED_VARIABLE]" in err


def test_run_prints_program_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	src = _write(tmp_path, FUFFY)
	assert main(["run", str(src)]) == 0
	assert capsys.readouterr().out == "Fuffy\n"


def test_run_resolves_files_next_to_the_script(tmp_path: Path) -> None:
	src = _write(tmp_path, "File.write('out.txt', 'data')\n")
	assert main(["run", str(src)]) == 0
	assert (tmp_path / "out.txt").read_text(encoding="utf-8") == "data"


def test_run_step_limit(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	src = _write(tmp_path, "while (True) {\n}\n")
	assert main(["run", str(src), "--max-steps", "20"]) == 1
	assert "[RUN_STEP_LIMIT]" in capsys.readouterr().err


def test_run_respects_sys_exec_policy(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	cfg = _write(tmp_path, json.dumps({"allowSysExec": False}), "forge.config.json")
	src = _write(tmp_path, "Sys.exec('echo hi')\n")
	assert main(["run", str(src), "--config", str(cfg)]) == 1
	assert "Sys.exec is disabled by policy." in capsys.readouterr().err


def test_bad_config_and_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	cfg = _write(tmp_path, "{not json", "forge.config.json")
	src = _write(tmp_path, FUFFY)
	assert main(["check", str(src), "--config", str(cfg)]) == 2
	assert main(["check", str(tmp_path / "nope.forge")]) == 2
	err = capsys.readouterr().err
	assert "invalid JSON" in err
	assert "cannot read file" in err
