# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Crypto helpers behind the `Crypto` module.

AES payloads are `base64(iv[12] || tag[16] || ciphertext)` using AES-256-GCM.
`AESGCM.encrypt` returns `ciphertext || tag`, so the tag is moved to the
front on the way out and back to the end on the way in.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import math
import os
import secrets
import uuid

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

IV_LEN = 12
TAG_LEN = 16
KEY_LEN = 32


class CryptoError(ValueError):
	pass


def normalize_aes_key(key: str) -> bytes:
	"""Turn any key text into exactly 32 bytes."""
	text = str(key if key is not None else "")
	try:
		raw = bytes.fromhex(text)
	except ValueError:
		raw = text.encode("utf-8")
	if len(raw) == KEY_LEN:
		return raw
	if len(raw) > KEY_LEN:
		return raw[:KEY_LEN]
	return hashlib.sha256(raw).digest()


def aes_encrypt(plain: str, key: str) -> str:
	iv = os.urandom(IV_LEN)
	sealed = AESGCM(normalize_aes_key(key)).encrypt(iv, plain.encode("utf-8"), None)
	ct, tag = sealed[:-TAG_LEN], sealed[-TAG_LEN:]
	return base64.b64encode(iv + tag + ct).decode("ascii")


def aes_decrypt(payload: str, key: str) -> str:
	try:
		raw = base64.b64decode(payload, validate=True)
	except (binascii.Error, ValueError) as exc:
		raise CryptoError(f"invalid AES payload: {exc}") from exc
	if len(raw) < IV_LEN + TAG_LEN:
		raise CryptoError("invalid AES payload: too short")
	iv, tag, ct = raw[:IV_LEN], raw[IV_LEN:IV_LEN + TAG_LEN], raw[IV_LEN + TAG_LEN:]
	try:
		plain = AESGCM(normalize_aes_key(key)).decrypt(iv, ct + tag, None)
	except InvalidTag as exc:
		raise CryptoError("AES authentication failed (wrong key or corrupted payload)") from exc
	try:
		return plain.decode("utf-8")
	except UnicodeDecodeError as exc:
		raise CryptoError("AES payload is not UTF-8 text") from exc


def md5_hex(text: str) -> str:
	return hashlib.md5(text.encode("utf-8")).hexdigest()


def sha256_hex(text: str) -> str:
	return hashlib.sha256(text.encode("utf-8")).hexdigest()


def b64_encode(text: str) -> str:
	return base64.b64encode(text.encode("utf-8")).decode("ascii")


def b64_decode(text: str) -> str:
	try:
		return base64.b64decode(text).decode("utf-8", errors="replace")
	except (binascii.Error, ValueError) as exc:
		raise CryptoError(f"invalid base64: {exc}") from exc


def generate_key(bits: float) -> str:
	"""Random hex key; `bits` is clamped to 128..4096."""
	b = bits if isinstance(bits, (int, float)) and math.isfinite(bits) else 256
	clamped = max(128, min(4096, int(b // 1)))
	return secrets.token_hex(clamped // 8)


def generate_uuid() -> str:
	return str(uuid.uuid4())


def random_int(lo: float, hi: float) -> int:
	"""Uniform integer in the inclusive range, bounds in either order."""
	a, b = int(lo // 1), int(hi // 1)
	if a > b:
		a, b = b, a
	return a + secrets.randbelow(b - a + 1)


__all__ = [
	"CryptoError",
	"normalize_aes_key",
	"aes_encrypt",
	"aes_decrypt",
	"md5_hex",
	"sha256_hex",
	"b64_encode",
	"b64_decode",
	"generate_key",
	"generate_uuid",
	"random_int",
]
