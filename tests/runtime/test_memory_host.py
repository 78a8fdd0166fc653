# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from forge.runtime.host import HostError, HttpResponse, MemoryHost


def test_files_and_directories() -> None:
	host = MemoryHost(files={"data/a.txt": "one"})
	assert host.read_text("data/a.txt") == "one"
	assert host.exists("data")
	host.append_text("data/a.txt", " two")
	host.copy("data/a.txt", "b.txt")
	host.move("b.txt", "out/c.txt")
	assert not host.exists("b.txt")
	assert host.read_text("out/c.txt") == "one two"
	assert host.list_dir(".") == ["data", "out"]
	assert host.stat("out/c.txt").size == 7
	host.delete("out/c.txt")
	assert not host.exists("out/c.txt")
	with pytest.raises(FileNotFoundError):
		host.read_text("out/c.txt")
	with pytest.raises(FileNotFoundError):
		host.list_dir("nowhere")


def test_output_and_input() -> None:
	host = MemoryHost(inputs=["first"])
	host.print("hello")
	host.error("oops\n")
	assert host.read_line() == "first"
	assert host.read_line("again? ") == ""
	assert host.stdout == "hello\nagain? "
	assert host.stderr == "oops\n"


def test_http_routes_and_commands() -> None:
	ok = HttpResponse(200, {"Content-Type": "application/json"}, b'{"a": 1}')
	host = MemoryHost(routes={"https://x.test": ok, ("POST", "https://x.test/echo"): lambda m, u, h, b: HttpResponse(201, content=b or b"")})
	assert host.http_request("GET", "https://x.test").content_type == "application/json"
	echoed = host.http_request("POST", "https://x.test/echo", body=b"ping")
	assert echoed.status == 201 and echoed.text == "ping"
	with pytest.raises(HostError):
		host.http_request("GET", "https://missing.test")
	with pytest.raises(HostError):
		host.exec("rm -rf /")
	assert host.executed == ["rm -rf /"]


def test_sleep_advances_the_clock() -> None:
	host = MemoryHost(files={"f.txt": "x"})
	before = host.stat("f.txt").modified
	host.sleep(2000)
	assert host.slept == [2000]
	assert host.stat("f.txt").modified != before
