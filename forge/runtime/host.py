# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Host boundary for the Forge runtime.

Everything a Forge program can do to the outside world (print, prompt, touch
files, make HTTP requests, run shell commands, sleep, inspect the machine)
goes through a `Host`. The interpreter and builtin library never import
`os`, `subprocess` or `httpx` themselves.

Two implementations ship with the package:

- `SystemHost` talks to the real machine (`httpx`, `psutil`, `subprocess`,
  `pathlib`/`shutil`).
- `MemoryHost` keeps files, input and HTTP responses in memory; tests and
  embedders that only want captured output use it.

Every host records what was written to stdout/stderr in `out` / `err` so a
runner can report captured output after the fact.
"""

from __future__ import annotations

import logging
import os
import platform
import posixpath
import shutil
import subprocess
import sys
import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Deque, Dict, Iterable, List, Mapping, Optional, Set, TextIO, Tuple, Union

import httpx
import psutil

logger = logging.getLogger(__name__)


class HostError(Exception):
	"""A host operation failed for a reason other than an OS error."""


@dataclass(frozen=True)
class FileStat:
	size: int
	created: str
	modified: str


@dataclass
class HttpResponse:
	status: int
	headers: Dict[str, str] = field(default_factory=dict)
	content: bytes = b""

	@property
	def ok(self) -> bool:
		return 200 <= self.status < 300

	@property
	def content_type(self) -> str:
		for key, value in self.headers.items():
			if key.lower() == "content-type":
				return value
		return ""

	@property
	def text(self) -> str:
		return self.content.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class SystemInfo:
	pid: int
	cpu_cores: int
	cpu_usage: float
	cpu_model: str
	os_name: str
	os_version: str
	os_arch: str
	os_platform: str
	ram_gb: float


def _ensure_newline(text: str) -> str:
	return text if text.endswith("\n") else text + "\n"


def _iso(ts: float) -> str:
	return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


class Host(ABC):
	"""Abstract I/O boundary. Output helpers are concrete; everything else is not."""

	def __init__(self) -> None:
		self.out: List[str] = []
		self.err: List[str] = []

	# -- output -------------------------------------------------------------

	def print(self, text: str) -> None:
		line = _ensure_newline(text)
		self.out.append(line)
		self._emit_out(line)

	def error(self, text: str) -> None:
		line = _ensure_newline(text)
		self.err.append(line)
		self._emit_err(line)

	def _emit_out(self, text: str) -> None:
		pass

	def _emit_err(self, text: str) -> None:
		pass

	@abstractmethod
	def read_line(self, prompt: str = "") -> str:
		...

	# -- files --------------------------------------------------------------

	@abstractmethod
	def read_text(self, path: str) -> str:
		...

	@abstractmethod
	def write_text(self, path: str, data: str) -> None:
		...

	@abstractmethod
	def append_text(self, path: str, data: str) -> None:
		...

	@abstractmethod
	def write_bytes(self, path: str, data: bytes) -> None:
		...

	@abstractmethod
	def delete(self, path: str) -> None:
		...

	@abstractmethod
	def exists(self, path: str) -> bool:
		...

	@abstractmethod
	def stat(self, path: str) -> FileStat:
		...

	@abstractmethod
	def copy(self, src: str, dst: str) -> None:
		...

	@abstractmethod
	def move(self, src: str, dst: str) -> None:
		...

	@abstractmethod
	def make_dirs(self, path: str) -> None:
		...

	@abstractmethod
	def list_dir(self, path: str) -> List[str]:
		...

	# -- network ------------------------------------------------------------

	@abstractmethod
	def http_request(
		self,
		method: str,
		url: str,
		headers: Optional[Mapping[str, str]] = None,
		body: Optional[bytes] = None,
	) -> HttpResponse:
		...

	# -- processes ----------------------------------------------------------

	@abstractmethod
	def exec(self, cmd: str) -> str:
		...

	@abstractmethod
	def exec_background(self, cmd: str) -> None:
		...

	@abstractmethod
	def kill(self, pid: int) -> None:
		...

	# -- misc ---------------------------------------------------------------

	@abstractmethod
	def sleep(self, ms: float) -> None:
		...

	@abstractmethod
	def system_info(self) -> SystemInfo:
		...

	@abstractmethod
	def cwd(self) -> str:
		...


# ---------------------------------------------------------------------------
# Real machine
# ---------------------------------------------------------------------------

class SystemHost(Host):
	def __init__(
		self,
		cwd: Optional[Union[str, Path]] = None,
		stdin: Optional[TextIO] = None,
		stdout: Optional[TextIO] = None,
		stderr: Optional[TextIO] = None,
		http_timeout: float = 30.0,
		echo: bool = True,
	) -> None:
		super().__init__()
		self._cwd = Path(cwd) if cwd is not None else Path.cwd()
		self._stdin = stdin
		self._stdout = stdout
		self._stderr = stderr
		self.http_timeout = http_timeout
		# When off, output is only captured, never written to the streams.
		self.echo = echo

	def _emit_out(self, text: str) -> None:
		if self.echo:
			stream = self._stdout or sys.stdout
			stream.write(text)
			stream.flush()

	def _emit_err(self, text: str) -> None:
		if self.echo:
			stream = self._stderr or sys.stderr
			stream.write(text)
			stream.flush()

	def read_line(self, prompt: str = "") -> str:
		if prompt:
			self.out.append(prompt)
			if self.echo:
				stream = self._stdout or sys.stdout
				stream.write(prompt)
				stream.flush()
		line = (self._stdin or sys.stdin).readline()
		return line.rstrip("\r\n")

	def resolve(self, path: str) -> Path:
		text = str(path or "").strip()
		if not text:
			return self._cwd
		p = Path(text).expanduser()
		return p if p.is_absolute() else self._cwd / p

	def read_text(self, path: str) -> str:
		return self.resolve(path).read_text(encoding="utf-8")

	def write_text(self, path: str, data: str) -> None:
		full = self.resolve(path)
		full.parent.mkdir(parents=True, exist_ok=True)
		full.write_text(data, encoding="utf-8")

	def append_text(self, path: str, data: str) -> None:
		full = self.resolve(path)
		full.parent.mkdir(parents=True, exist_ok=True)
		with full.open("a", encoding="utf-8") as fh:
			fh.write(data)

	def write_bytes(self, path: str, data: bytes) -> None:
		full = self.resolve(path)
		full.parent.mkdir(parents=True, exist_ok=True)
		full.write_bytes(data)

	def delete(self, path: str) -> None:
		self.resolve(path).unlink(missing_ok=True)

	def exists(self, path: str) -> bool:
		return self.resolve(path).exists()

	def stat(self, path: str) -> FileStat:
		st = self.resolve(path).stat()
		created = getattr(st, "st_birthtime", st.st_ctime)
		return FileStat(size=st.st_size, created=_iso(created), modified=_iso(st.st_mtime))

	def copy(self, src: str, dst: str) -> None:
		target = self.resolve(dst)
		target.parent.mkdir(parents=True, exist_ok=True)
		shutil.copyfile(self.resolve(src), target)

	def move(self, src: str, dst: str) -> None:
		target = self.resolve(dst)
		target.parent.mkdir(parents=True, exist_ok=True)
		shutil.move(str(self.resolve(src)), str(target))

	def make_dirs(self, path: str) -> None:
		self.resolve(path).mkdir(parents=True, exist_ok=True)

	def list_dir(self, path: str) -> List[str]:
		return sorted(p.name for p in self.resolve(path).iterdir())

	def http_request(
		self,
		method: str,
		url: str,
		headers: Optional[Mapping[str, str]] = None,
		body: Optional[bytes] = None,
	) -> HttpResponse:
		res = httpx.request(
			method,
			url,
			headers=dict(headers or {}),
			content=body,
			timeout=self.http_timeout,
			follow_redirects=True,
		)
		return HttpResponse(status=res.status_code, headers=dict(res.headers), content=res.content)

	def exec(self, cmd: str) -> str:
		proc = subprocess.run(cmd, shell=True, cwd=self._cwd, capture_output=True, text=True)
		if proc.returncode != 0:
			raise HostError(proc.stderr.strip() or f"command exited with status {proc.returncode}")
		parts = [proc.stdout.rstrip(), proc.stderr.rstrip()]
		return "\n".join(p for p in parts if p)

	def exec_background(self, cmd: str) -> None:
		def _run() -> None:
			try:
				self.exec(cmd)
			except (OSError, HostError) as exc:
				logger.warning("forge: background command %r failed: %s", cmd, exc)

		threading.Thread(target=_run, name="forge-exec-async", daemon=True).start()

	def kill(self, pid: int) -> None:
		try:
			psutil.Process(pid).terminate()
		except psutil.Error as exc:
			raise HostError(f"cannot terminate process {pid}: {exc}") from exc

	def sleep(self, ms: float) -> None:
		if ms > 0:
			time.sleep(ms / 1000.0)

	def system_info(self) -> SystemInfo:
		mem = psutil.virtual_memory()
		return SystemInfo(
			pid=os.getpid(),
			cpu_cores=psutil.cpu_count() or 1,
			cpu_usage=psutil.cpu_percent(interval=None),
			cpu_model=platform.processor() or platform.machine() or "unknown",
			os_name=platform.system(),
			os_version=platform.release(),
			os_arch=platform.machine(),
			os_platform=sys.platform,
			ram_gb=max(1.0, float(round(mem.total / 1024 ** 3))),
		)

	def cwd(self) -> str:
		return str(self._cwd)


# ---------------------------------------------------------------------------
# In-memory host
# ---------------------------------------------------------------------------

HttpRoute = Union[HttpResponse, Callable[[str, str, Dict[str, str], Optional[bytes]], HttpResponse]]


class MemoryHost(Host):
	"""
	Deterministic host with no side effects outside the object.

	- `inputs` feeds `read_line` (exhausted input reads as "")
	- `files` maps absolute posix paths to bytes
	- `routes` maps `(METHOD, url)` (or just `url`) to a response or a callable
	- `commands` maps shell commands to their output; unknown commands fail
	- `slept` records every sleep in milliseconds
	"""

	def __init__(
		self,
		inputs: Iterable[str] = (),
		files: Optional[Mapping[str, Union[str, bytes]]] = None,
		routes: Optional[Mapping[Union[str, Tuple[str, str]], HttpRoute]] = None,
		commands: Optional[Mapping[str, str]] = None,
		info: Optional[SystemInfo] = None,
		cwd: str = "/work",
	) -> None:
		super().__init__()
		self._cwd = cwd
		self.inputs: Deque[str] = deque(inputs)
		self.files: Dict[str, bytes] = {}
		self.dirs: Set[str] = {"/", cwd}
		for name, data in (files or {}).items():
			self.write_bytes(name, data.encode("utf-8") if isinstance(data, str) else bytes(data))
		self.routes: Dict[Union[str, Tuple[str, str]], HttpRoute] = dict(routes or {})
		self.requests: List[Tuple[str, str, Dict[str, str], Optional[bytes]]] = []
		self.commands: Dict[str, str] = dict(commands or {})
		self.executed: List[str] = []
		self.killed: List[int] = []
		self.slept: List[float] = []
		self.prompts: List[str] = []
		self.info = info or SystemInfo(
			pid=4242,
			cpu_cores=8,
			cpu_usage=12.5,
			cpu_model="Forge Virtual CPU",
			os_name="ForgeOS",
			os_version="1.0",
			os_arch="x86_64",
			os_platform="forge",
			ram_gb=16.0,
		)
		self._clock = 1_700_000_000.0

	@property
	def stdout(self) -> str:
		return "".join(self.out)

	@property
	def stderr(self) -> str:
		return "".join(self.err)

	def read_line(self, prompt: str = "") -> str:
		if prompt:
			self.out.append(prompt)
		self.prompts.append(prompt)
		return self.inputs.popleft() if self.inputs else ""

	def _abs(self, path: str) -> str:
		text = str(path or "").strip() or "."
		return posixpath.normpath(posixpath.join(self._cwd, text))

	def _require(self, path: str) -> str:
		full = self._abs(path)
		if full not in self.files:
			raise FileNotFoundError(f"No such file: '{full}'")
		return full

	def _touch_parents(self, full: str) -> None:
		parent = posixpath.dirname(full)
		while parent and parent not in self.dirs:
			self.dirs.add(parent)
			parent = posixpath.dirname(parent)

	def read_text(self, path: str) -> str:
		return self.files[self._require(path)].decode("utf-8")

	def write_text(self, path: str, data: str) -> None:
		self.write_bytes(path, data.encode("utf-8"))

	def append_text(self, path: str, data: str) -> None:
		full = self._abs(path)
		self._touch_parents(full)
		self.files[full] = self.files.get(full, b"") + data.encode("utf-8")

	def write_bytes(self, path: str, data: bytes) -> None:
		full = self._abs(path)
		self._touch_parents(full)
		self.files[full] = bytes(data)

	def delete(self, path: str) -> None:
		self.files.pop(self._abs(path), None)

	def exists(self, path: str) -> bool:
		full = self._abs(path)
		return full in self.files or full in self.dirs

	def stat(self, path: str) -> FileStat:
		full = self._require(path)
		stamp = _iso(self._clock)
		return FileStat(size=len(self.files[full]), created=stamp, modified=stamp)

	def copy(self, src: str, dst: str) -> None:
		self.write_bytes(dst, self.files[self._require(src)])

	def move(self, src: str, dst: str) -> None:
		data = self.files.pop(self._require(src))
		self.write_bytes(dst, data)

	def make_dirs(self, path: str) -> None:
		full = self._abs(path)
		self._touch_parents(full)
		self.dirs.add(full)

	def list_dir(self, path: str) -> List[str]:
		full = self._abs(path)
		if full not in self.dirs:
			raise FileNotFoundError(f"No such directory: '{full}'")
		names = set()
		for entry in list(self.files) + list(self.dirs):
			if entry != full and posixpath.dirname(entry) == full:
				names.add(posixpath.basename(entry))
		return sorted(names)

	def http_request(
		self,
		method: str,
		url: str,
		headers: Optional[Mapping[str, str]] = None,
		body: Optional[bytes] = None,
	) -> HttpResponse:
		hdrs = dict(headers or {})
		self.requests.append((method, url, hdrs, body))
		route = self.routes.get((method, url), self.routes.get(url))
		if route is None:
			raise HostError(f"no route for {method} {url}")
		if callable(route):
			return route(method, url, hdrs, body)
		return route

	def exec(self, cmd: str) -> str:
		self.executed.append(cmd)
		if cmd not in self.commands:
			raise HostError(f"command not available: {cmd}")
		return self.commands[cmd]

	def exec_background(self, cmd: str) -> None:
		try:
			self.exec(cmd)
		except HostError as exc:
			logger.warning("forge: background command %r failed: %s", cmd, exc)

	def kill(self, pid: int) -> None:
		self.killed.append(pid)

	def sleep(self, ms: float) -> None:
		self.slept.append(ms)
		self._clock += ms / 1000.0

	def system_info(self) -> SystemInfo:
		return self.info

	def cwd(self) -> str:
		return self._cwd


__all__ = [
	"HostError",
	"FileStat",
	"HttpResponse",
	"SystemInfo",
	"Host",
	"SystemHost",
	"MemoryHost",
]
