# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Forge standard library, built on top of a `Host`.

`build_builtins(host, ctx)` returns the global namespace tree: plain dicts
for namespaces, `NativeFunction` for callables and `LazyValue` for values
that must be read fresh (`Sys.cpu.usage`, `Crypto.generate.uuid`, ...).

Builtins take `(args, named)`: positional arguments first, and any parameter
may also be passed by name. Host failures are converted to
`ForgeRuntimeError` with `E_IO` (files, processes) or `E_NET` (network).
Module gating is not checked here; the interpreter refuses to touch a module
root that is not enabled.
"""

from __future__ import annotations

import json
import math
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import httpx

from ..modules import ModuleContext
from . import crypto as C
from . import terminal as TUI
from .host import Host, HostError
from .values import (
	ForgeFunction,
	ForgeRuntimeError,
	LazyValue,
	NativeFunction,
	ensure_array,
	ensure_number,
	ensure_string,
	from_json_value,
	is_boolean_like,
	is_number,
	json_dumps,
	to_string_value,
	wrap_callable,
)

DEFAULT_FPS = 30
ONLINE_PROBE_URL = "https://example.com"

_DURATION_RE = re.compile(r"^([0-9]+(?:\.[0-9]+)?)\s*(ms|s|m|h)?$", re.IGNORECASE)
_DURATION_MULT = {"ms": 1, "s": 1000, "m": 60_000, "h": 3_600_000}


def parse_duration_ms(text: Any) -> int:
	"""
	Milliseconds for "1s", "0.5s", "120ms", "2m", "1h" or a bare number.

	Never raises: anything unparsable is 0, negatives clamp to 0.
	"""
	s = str(text if text is not None else "").strip()
	if not s:
		return 0
	m = _DURATION_RE.match(s)
	if m is None:
		try:
			n = float(s)
		except ValueError:
			return 0
		if not math.isfinite(n):
			return 0
		return max(0, int(math.floor(n + 0.5)))
	n = float(m.group(1))
	unit = (m.group(2) or "ms").lower()
	ms = n * _DURATION_MULT[unit]
	if not math.isfinite(ms):
		return 0
	return max(0, int(math.floor(ms + 0.5)))


@dataclass
class RuntimeContext:
	"""Mutable state shared by the interpreter and the builtin library."""

	host: Host
	modules: ModuleContext = field(default_factory=ModuleContext)
	allow_sys_exec: bool = False
	fps: int = DEFAULT_FPS


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------

class _Args:
	"""Positional-or-named access to one builtin call's arguments."""

	def __init__(self, fn_name: str, args: List[Any], named: Dict[str, Any]) -> None:
		self.fn_name = fn_name
		self.args = args
		self.named = named

	def get(self, index: int, name: str, default: Any = None) -> Any:
		if name in self.named:
			return self.named[name]
		if index < len(self.args):
			return self.args[index]
		return default

	def option(self, index: int, name: str, default: Any = None, opts_at: int = 1) -> Any:
		"""
		Named arg, then a key of an options object passed at `opts_at`
		(`Terminal.banner('Hi', {font: 'big'})`), then the positional slot.
		"""
		if name in self.named:
			return self.named[name]
		if opts_at < len(self.args) and isinstance(self.args[opts_at], dict):
			return self.args[opts_at].get(name, default)
		return self.get(index, name, default)

	def text(self, index: int, name: str, default: str = "") -> str:
		v = self.get(index, name, None)
		return default if v is None else to_string_value(v)

	def string(self, index: int, name: str, default: str = "") -> str:
		v = self.get(index, name, None)
		return default if v is None else ensure_string(v)

	def number(self, index: int, name: str, default: float = 0) -> float:
		v = self.get(index, name, None)
		return default if v is None else ensure_number(v)


def _native(name: str, body: Callable[[_Args], Any], members: Optional[Mapping[str, Any]] = None) -> NativeFunction:
	return NativeFunction(name, lambda args, named: body(_Args(name, args, named)), members)


def _io(name: str, body: Callable[[_Args], Any]) -> NativeFunction:
	def run(a: _Args) -> Any:
		try:
			return body(a)
		except (OSError, HostError, UnicodeError) as exc:
			raise ForgeRuntimeError("E_IO", f"{name} failed: {exc}") from exc

	return _native(name, run)


def _net(name: str, body: Callable[[_Args], Any]) -> NativeFunction:
	def run(a: _Args) -> Any:
		try:
			return body(a)
		except (httpx.HTTPError, httpx.InvalidURL, HostError, OSError) as exc:
			raise ForgeRuntimeError("E_NET", f"{name} failed: {exc}") from exc

	return _native(name, run)


def _math(name: str, fn: Callable[..., float], params: Sequence[str] = ("x",)) -> NativeFunction:
	def run(a: _Args) -> float:
		xs = [float(a.number(i, p)) for i, p in enumerate(params)]
		try:
			return float(fn(*xs))
		except (ValueError, ZeroDivisionError):
			return math.nan
		except OverflowError:
			return math.inf

	return _native(name, run)


def _numbers(a: _Args) -> List[float]:
	first = a.get(0, "arr")
	items = first if isinstance(first, list) else a.args
	return [float(ensure_number(x)) for x in items]


def _js_round(x: float) -> float:
	if not math.isfinite(x):
		return x
	return float(math.floor(x + 0.5))


# ---------------------------------------------------------------------------
# DateTime helpers (values travel as ISO-8601 strings)
# ---------------------------------------------------------------------------

_DT_UNITS = {
	"ms": 0.001,
	"millisecond": 0.001,
	"milliseconds": 0.001,
	"s": 1,
	"second": 1,
	"seconds": 1,
	"m": 60,
	"min": 60,
	"minute": 60,
	"minutes": 60,
	"h": 3600,
	"hour": 3600,
	"hours": 3600,
	"d": 86400,
	"day": 86400,
	"days": 86400,
	"w": 604800,
	"week": 604800,
	"weeks": 604800,
}


def _dt_iso(dt: datetime) -> str:
	return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _dt_parse(value: Any) -> datetime:
	if is_number(value):
		return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
	if isinstance(value, str):
		text = value.strip()
		if text.endswith("Z"):
			text = text[:-1] + "+00:00"
		try:
			dt = datetime.fromisoformat(text)
		except ValueError as exc:
			raise ForgeRuntimeError("E_TYPE", f"Invalid date: '{value}'.") from exc
		return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)
	raise ForgeRuntimeError("E_TYPE", f"Invalid date: {to_string_value(value)}.")


def _dt_unit_seconds(unit: str) -> float:
	key = unit.strip()
	if key not in _DT_UNITS:
		key = key.lower()
	if key not in _DT_UNITS:
		raise ForgeRuntimeError("E_TYPE", f"Unknown time unit '{unit}'.")
	return _DT_UNITS[key]


_DT_TOKEN_RE = re.compile(r"YYYY|MM|DD|HH|mm|ss")


def _dt_format(dt: datetime, pattern: str) -> str:
	tokens = {
		"YYYY": f"{dt.year:04d}",
		"MM": f"{dt.month:02d}",
		"DD": f"{dt.day:02d}",
		"HH": f"{dt.hour:02d}",
		"mm": f"{dt.minute:02d}",
		"ss": f"{dt.second:02d}",
	}
	return _DT_TOKEN_RE.sub(lambda m: tokens[m.group(0)], pattern)


def _now_ms() -> float:
	return float(int(time.time() * 1000))


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------

def build_builtins(host: Host, ctx: RuntimeContext) -> Dict[str, Any]:
	"""Build the global namespace tree for one execution."""

	# console / input ------------------------------------------------------

	def console_var(a: _Args) -> None:
		host.print(to_string_value(a.get(0, "value")))

	def inp(a: _Args) -> str:
		return host.read_line(a.text(0, "prompt"))

	def inp_var(a: _Args) -> str:
		return host.read_line(a.text(0, "prompt")).strip()

	def chek_boolean(a: _Args) -> bool:
		ok, _ = is_boolean_like(a.get(0, "value"))
		return ok

	# Time -----------------------------------------------------------------

	def time_wait(a: _Args) -> None:
		v = a.get(0, "duration", 0)
		if is_number(v):
			ms = max(0.0, float(v))
		elif isinstance(v, str):
			ms = float(parse_duration_ms(v))
		else:
			raise ForgeRuntimeError("E_TYPE", "Time.wait expects a duration like 1s / 200ms or a number of milliseconds.")
		host.sleep(ms)

	def time_fps(a: _Args) -> None:
		n = a.number(0, "fps", DEFAULT_FPS)
		if not math.isfinite(n):
			n = 1
		ctx.fps = int(max(1, min(240, math.floor(n))))

	# Sys ------------------------------------------------------------------

	def sys_exec(a: _Args) -> str:
		if not ctx.allow_sys_exec:
			raise ForgeRuntimeError("E_PERMISSION", "Sys.exec is disabled by policy.")
		cmd = a.string(0, "cmd")
		if not cmd.strip():
			return ""
		try:
			return host.exec(cmd)
		except (OSError, HostError) as exc:
			raise ForgeRuntimeError("E_IO", f"Sys.exec failed: {exc}") from exc

	def sys_exec_async(a: _Args) -> None:
		if not ctx.allow_sys_exec:
			raise ForgeRuntimeError("E_PERMISSION", "Sys.exec.async is disabled by policy.")
		cmd = a.string(0, "cmd")
		if cmd.strip():
			host.exec_background(cmd)

	def sys_kill(a: _Args) -> None:
		host.kill(int(a.number(0, "pid")))

	def vendor(a: _Args) -> str:
		return a.text(0, "name").strip()

	def info(attr: str, convert: Callable[[Any], Any] = lambda v: v) -> LazyValue:
		return LazyValue(attr, lambda: convert(getattr(host.system_info(), attr)))

	# File -----------------------------------------------------------------

	def file_read(a: _Args) -> str:
		return host.read_text(a.string(0, "path"))

	def file_write(a: _Args) -> None:
		host.write_text(a.string(0, "path"), a.text(1, "data"))

	def file_append(a: _Args) -> None:
		host.append_text(a.string(0, "path"), a.text(1, "data"))

	def file_info(a: _Args) -> Dict[str, Any]:
		st = host.stat(a.string(0, "path"))
		return {"size": float(st.size), "created": st.created, "modified": st.modified}

	def file_read_json(a: _Args) -> Any:
		text = host.read_text(a.string(0, "path"))
		try:
			return from_json_value(json.loads(text))
		except json.JSONDecodeError as exc:
			raise ForgeRuntimeError("E_IO", f"File.readJson parse error: {exc}") from exc

	def file_write_json(a: _Args) -> None:
		host.write_text(a.string(0, "path"), json_dumps(a.get(1, "obj", {}), indent=2))

	def file_read_csv(a: _Args) -> List[List[str]]:
		text = host.read_text(a.string(0, "path"))
		return [
			[cell.strip() for cell in line.split(",")]
			for line in re.split(r"\r?\n", text)
			if line.strip()
		]

	# Net ------------------------------------------------------------------

	def _decode(res) -> Dict[str, Any]:
		if "application/json" in res.content_type:
			try:
				body: Any = from_json_value(json.loads(res.text))
			except json.JSONDecodeError:
				body = res.text
		else:
			body = res.text
		return {"status": float(res.status), "ok": res.ok, "body": body}

	def _headers(value: Any) -> Dict[str, str]:
		if isinstance(value, dict):
			return {str(k): to_string_value(v) for k, v in value.items()}
		return {}

	def net_get(a: _Args) -> Dict[str, Any]:
		url = a.string(0, "url")
		return _decode(host.http_request("GET", url, _headers(a.get(1, "headers"))))

	def net_post(a: _Args) -> Dict[str, Any]:
		url = a.string(0, "url")
		body = a.get(1, "body", {})
		headers = {"content-type": "application/json"}
		headers.update(_headers(a.get(2, "headers")))
		payload = body if isinstance(body, str) else json_dumps(body)
		return _decode(host.http_request("POST", url, headers, payload.encode("utf-8")))

	def net_download(a: _Args) -> None:
		url = a.string(0, "url")
		out_path = a.string(1, "outPath")
		res = host.http_request("GET", url)
		if not res.ok:
			raise ForgeRuntimeError("E_NET", f"Net.download failed: HTTP {res.status}")
		host.write_bytes(out_path, res.content)

	def is_online() -> bool:
		try:
			return host.http_request("HEAD", ONLINE_PROBE_URL).ok
		except (httpx.HTTPError, httpx.InvalidURL, HostError, OSError):
			return False

	def net_ping(a: _Args) -> Dict[str, Any]:
		name = a.text(0, "host")
		url = name if name.startswith("http") else f"https://{name}"
		start = time.perf_counter()
		try:
			host.http_request("HEAD", url)
		except (httpx.HTTPError, httpx.InvalidURL, HostError, OSError):
			pass
		return {"latency": float(max(0, round((time.perf_counter() - start) * 1000)))}

	# Crypto ---------------------------------------------------------------

	def aes(name: str, fn: Callable[[str, str], str], first: str) -> NativeFunction:
		def run(a: _Args) -> str:
			try:
				return fn(a.text(0, first), a.text(1, "key"))
			except C.CryptoError as exc:
				raise ForgeRuntimeError("E_RUNTIME", f"{name} failed: {exc}") from exc

		return _native(name, run)

	def crypto_b64_decode(a: _Args) -> str:
		try:
			return C.b64_decode(a.string(0, "text"))
		except C.CryptoError as exc:
			raise ForgeRuntimeError("E_TYPE", f"Crypto.base64.decode failed: {exc}") from exc

	# Terminal -------------------------------------------------------------

	def term_bar(a: _Args) -> None:
		pct = a.number(0, "percent")
		width = ensure_number(a.option(1, "width", 40))
		char = to_string_value(a.option(2, "char", "█"))
		host.print(TUI.progress_bar(pct, width, char))

	def term_banner(a: _Args) -> None:
		font = to_string_value(a.option(1, "font", "small"))
		for line in TUI.banner(a.text(0, "text"), font):
			host.print(line)

	def term_table(a: _Args) -> None:
		rows = ensure_array(a.get(0, "rows", []))
		style = to_string_value(a.option(1, "style", "grid"))
		table_rows = [r if isinstance(r, list) else [r] for r in rows]
		for line in TUI.styled_table(table_rows, style):
			host.print(line)

	def term_tree(a: _Args) -> None:
		host.print("\n".join(TUI.render_tree(a.get(0, "obj"))))

	def term_spinner(a: _Args) -> None:
		frames = TUI.spinner_frames(a.get(0, "frames"))
		ms = max(10, math.floor(ensure_number(a.option(1, "ms", 80))))
		ticks = max(1, math.floor(ensure_number(a.option(2, "ticks", 20))))
		for i in range(int(ticks)):
			host.print(frames[i % len(frames)])
			host.sleep(ms)

	def term_form(a: _Args) -> Dict[str, Any]:
		out: Dict[str, Any] = {}
		for entry in ensure_array(a.get(0, "schema", [])):
			entry = entry if isinstance(entry, dict) else {}
			kind = to_string_value(entry.get("type", "text"))
			name = to_string_value(entry.get("name", "field"))
			label = to_string_value(entry["label"]) if "label" in entry else f"{name}: "
			if kind == "number":
				raw = host.read_line(label).strip()
				try:
					out[name] = float(raw)
				except ValueError:
					out[name] = math.nan
			elif kind == "select":
				options = entry.get("options") if isinstance(entry.get("options"), list) else []
				host.print(label)
				for i, opt in enumerate(options):
					host.print(f"  [{i + 1}] {to_string_value(opt)}")
				raw = host.read_line("> ").strip()
				if not options:
					out[name] = None
					continue
				try:
					idx = int(float(raw))
				except ValueError:
					idx = 1
				out[name] = options[max(0, min(len(options) - 1, idx - 1))]
			else:
				# password input is not masked on a plain terminal
				out[name] = host.read_line(label)
		return out

	# DateTime -------------------------------------------------------------

	def dt_shift(sign: int) -> Callable[[_Args], str]:
		def run(a: _Args) -> str:
			base = _dt_parse(a.get(0, "date"))
			secs = a.number(1, "amount") * _dt_unit_seconds(a.text(2, "unit", "ms"))
			return _dt_iso(base + timedelta(seconds=sign * secs))

		return run

	def dt_format(a: _Args) -> str:
		return _dt_format(_dt_parse(a.get(0, "date")), a.text(1, "pattern", "YYYY-MM-DD HH:mm:ss"))

	def dt_create(a: _Args) -> str:
		parts = [int(a.number(i, n, d)) for i, (n, d) in enumerate(
			[("year", 1970), ("month", 1), ("day", 1), ("hour", 0), ("minute", 0), ("second", 0)]
		)]
		try:
			return _dt_iso(datetime(*parts, tzinfo=timezone.utc))
		except ValueError as exc:
			raise ForgeRuntimeError("E_TYPE", f"DateTime.create: {exc}") from exc

	def dt_diff(a: _Args) -> float:
		delta = _dt_parse(a.get(0, "a")) - _dt_parse(a.get(1, "b"))
		return delta.total_seconds() / _dt_unit_seconds(a.text(2, "unit", "ms"))

	def dt_from_ts(a: _Args) -> str:
		return _dt_iso(_dt_parse(a.number(0, "ts")))

	# Regex / JSON ---------------------------------------------------------

	def _compile(pattern: str) -> "re.Pattern[str]":
		try:
			return re.compile(pattern)
		except re.error as exc:
			raise ForgeRuntimeError("E_TYPE", f"Invalid regular expression '{pattern}': {exc}") from exc

	def rx_match(a: _Args) -> bool:
		return _compile(a.text(1, "pattern")).search(a.text(0, "text")) is not None

	def rx_extract(a: _Args) -> List[str]:
		return [m.group(0) for m in _compile(a.text(1, "pattern")).finditer(a.text(0, "text"))]

	def rx_replace(a: _Args) -> str:
		return _compile(a.text(1, "pattern")).sub(a.text(2, "replacement"), a.text(0, "text"))

	def json_parse(a: _Args) -> Any:
		try:
			return from_json_value(json.loads(a.string(0, "text")))
		except json.JSONDecodeError as exc:
			raise ForgeRuntimeError("E_RUNTIME", f"JSON.parse failed: {exc}") from exc

	def json_stringify(a: _Args) -> str:
		indent = a.get(1, "indent")
		n = int(ensure_number(indent)) if indent is not None else 0
		return json_dumps(a.get(0, "value"), indent=n if n > 0 else None)

	# Math -----------------------------------------------------------------

	def math_extreme(name: str, pick: Callable[[List[float]], float]) -> NativeFunction:
		def run(a: _Args) -> float:
			nums = _numbers(a)
			if not nums:
				raise ForgeRuntimeError("E_TYPE", f"{name} expects a non-empty array of numbers.")
			return pick(nums)

		return _native(name, run)

	def math_avg(a: _Args) -> float:
		nums = _numbers(a)
		return sum(nums) / len(nums) if nums else 0.0

	def math_factorial(a: _Args) -> float:
		n = a.number(0, "n")
		if n < 0 or not float(n).is_integer():
			raise ForgeRuntimeError("E_TYPE", "Math.factorial expects a non-negative integer.")
		if n > 170:
			return math.inf
		return float(math.factorial(int(n)))

	return {
		"console": {"text": {"var": _native("console.text.var", console_var)}},
		"inp": _native("inp", inp, members={"var": _native("inp.var", inp_var)}),
		"chekBoolean": _native("chekBoolean", chek_boolean),
		"Time": {
			"wait": _native("Time.wait", time_wait),
			"set": {"fps": _native("Time.set.fps", time_fps)},
		},
		"Sys": {
			"exec": _native("Sys.exec", sys_exec, members={"async": _native("Sys.exec.async", sys_exec_async)}),
			"process": {
				"id": info("pid", float),
				"kill": _io("Sys.process.kill", sys_kill),
			},
			"cpu": {
				"cores": info("cpu_cores", float),
				"usage": info("cpu_usage", float),
				"model": info("cpu_model"),
			},
			"os": {
				"name": info("os_name"),
				"version": info("os_version"),
				"arch": info("os_arch"),
				"platform": info("os_platform"),
			},
			"chek": {
				"ram": {"GB": info("ram_gb", float), "comp": "unknown"},
				"comp": _native("Sys.chek.comp", vendor),
			},
		},
		"Math": {
			"pow": _math("Math.pow", math.pow, ("base", "exp")),
			"log": _math("Math.log", math.log),
			"log10": _math("Math.log10", math.log10),
			"sin": _math("Math.sin", math.sin),
			"cos": _math("Math.cos", math.cos),
			"tan": _math("Math.tan", math.tan),
			"round": _math("Math.round", _js_round),
			"floor": _math("Math.floor", lambda x: float(math.floor(x)) if math.isfinite(x) else x),
			"ceil": _math("Math.ceil", lambda x: float(math.ceil(x)) if math.isfinite(x) else x),
			"abs": _math("Math.abs", abs),
			"min": math_extreme("Math.min", min),
			"max": math_extreme("Math.max", max),
			"avg": _native("Math.avg", math_avg),
			"sum": _native("Math.sum", lambda a: float(sum(_numbers(a)))),
			"factorial": _native("Math.factorial", math_factorial),
			"PI": math.pi,
			"E": math.e,
		},
		"File": {
			"read": _io("File.read", file_read),
			"write": _io("File.write", file_write),
			"append": _io("File.append", file_append),
			"delete": _io("File.delete", lambda a: host.delete(a.string(0, "path"))),
			"exists": _io("File.exists", lambda a: host.exists(a.string(0, "path"))),
			"info": _io("File.info", file_info),
			"copy": _io("File.copy", lambda a: host.copy(a.string(0, "src"), a.string(1, "dst"))),
			"move": _io("File.move", lambda a: host.move(a.string(0, "src"), a.string(1, "dst"))),
			"dir": {
				"create": _io("File.dir.create", lambda a: host.make_dirs(a.string(0, "path"))),
				"list": _io("File.dir.list", lambda a: host.list_dir(a.string(0, "path", "."))),
			},
			"readJson": _io("File.readJson", file_read_json),
			"writeJson": _io("File.writeJson", file_write_json),
			"readCsv": _io("File.readCsv", file_read_csv),
		},
		"Net": {
			"get": _net("Net.get", net_get),
			"post": _net("Net.post", net_post),
			"download": _net("Net.download", net_download),
			"isOnline": LazyValue("isOnline", is_online),
			"ping": _native("Net.ping", net_ping),
		},
		"Crypto": {
			"hash": {
				"md5": _native("Crypto.hash.md5", lambda a: C.md5_hex(a.text(0, "text"))),
				"sha256": _native("Crypto.hash.sha256", lambda a: C.sha256_hex(a.text(0, "text"))),
			},
			"base64": {
				"encode": _native("Crypto.base64.encode", lambda a: C.b64_encode(a.text(0, "text"))),
				"decode": _native("Crypto.base64.decode", crypto_b64_decode),
			},
			"generate": {
				"key": _native("Crypto.generate.key", lambda a: C.generate_key(a.number(0, "bits", 256))),
				"uuid": LazyValue("uuid", C.generate_uuid),
			},
			"aes": {
				"encrypt": aes("Crypto.aes.encrypt", C.aes_encrypt, "text"),
				"decrypt": aes("Crypto.aes.decrypt", C.aes_decrypt, "cipher"),
			},
			"random": _native(
				"Crypto.random",
				lambda a: float(C.random_int(a.number(0, "min", 0), a.number(1, "max", 1))),
			),
		},
		"Terminal": {
			"progress": {"bar": _native("Terminal.progress.bar", term_bar)},
			"banner": _native("Terminal.banner", term_banner),
			"table": {"styled": _native("Terminal.table.styled", term_table)},
			"tree": _native("Terminal.tree", term_tree),
			"spinner": {"custom": _native("Terminal.spinner.custom", term_spinner)},
			"form": _native("Terminal.form", term_form),
		},
		"DateTime": {
			"now": LazyValue("now", lambda: _dt_iso(datetime.now(timezone.utc))),
			"format": _native("DateTime.format", dt_format),
			"create": _native("DateTime.create", dt_create),
			"add": _native("DateTime.add", dt_shift(1)),
			"subtract": _native("DateTime.subtract", dt_shift(-1)),
			"diff": _native("DateTime.diff", dt_diff),
			"timestamp": LazyValue("timestamp", _now_ms),
			"fromTimestamp": _native("DateTime.fromTimestamp", dt_from_ts),
		},
		"Regex": {
			"match": _native("Regex.match", rx_match),
			"extract": _native("Regex.extract", rx_extract),
			"replace": _native("Regex.replace", rx_replace),
		},
		"JSON": {
			"parse": _native("JSON.parse", json_parse),
			"stringify": _native("JSON.stringify", json_stringify),
		},
		"Async": {},
	}


def merge_builtins(base: Mapping[str, Any], overrides: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
	"""
	Deep-merge `overrides` into a builtin tree.

	Mappings merge into namespaces (and into a callable's members); plain
	Python callables are wrapped as builtins; anything else replaces.
	"""
	out = dict(base)
	for key, value in overrides.items():
		path = f"{prefix}.{key}" if prefix else key
		current = out.get(key)
		if isinstance(value, Mapping) and isinstance(current, dict):
			out[key] = merge_builtins(current, value, path)
		elif isinstance(value, Mapping) and isinstance(current, NativeFunction):
			out[key] = NativeFunction(current.name or path, current.impl, merge_builtins(current.members, value, path))
		elif callable(value) and not isinstance(value, (ForgeFunction, LazyValue)):
			out[key] = wrap_callable(path, value)
		else:
			out[key] = value
	return out


__all__ = [
	"DEFAULT_FPS",
	"RuntimeContext",
	"parse_duration_ms",
	"build_builtins",
	"merge_builtins",
]
