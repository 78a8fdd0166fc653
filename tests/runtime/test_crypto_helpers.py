# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import base64

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from forge.runtime import crypto as C


@pytest.mark.parametrize("key", ["short", "k" * 32, "x" * 80, "00" * 32])
def test_aes_round_trip(key: str) -> None:
	payload = C.aes_encrypt("secret message", key)
	assert C.aes_decrypt(payload, key) == "secret message"


def test_aes_payload_layout() -> None:
	payload = C.aes_encrypt("abc", "key")
	raw = base64.b64decode(payload)
	assert len(raw) == C.IV_LEN + C.TAG_LEN + 3
	# A fresh IV per call.
	assert C.aes_encrypt("abc", "key") != payload


def test_aes_rejects_wrong_key_and_garbage() -> None:
	payload = C.aes_encrypt("abc", "right")
	with pytest.raises(C.CryptoError):
		C.aes_decrypt(payload, "wrong")
	with pytest.raises(C.CryptoError):
		C.aes_decrypt("not base64!", "right")
	with pytest.raises(C.CryptoError):
		C.aes_decrypt(base64.b64encode(b"tiny").decode(), "right")


def test_key_normalization() -> None:
	hex_key = "ab" * 32
	assert C.normalize_aes_key(hex_key) == bytes.fromhex(hex_key)
	assert len(C.normalize_aes_key("short")) == C.KEY_LEN
	assert C.normalize_aes_key("y" * 40) == b"y" * 32


def test_hashes_and_base64() -> None:
	assert C.md5_hex("") == "d41d8cd98f00b204e9800998ecf8427e"
	assert C.sha256_hex("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
	assert C.b64_encode("Fuffy") == "RnVmZnk="
	assert C.b64_decode("RnVmZnk=") == "Fuffy"


def test_generated_keys_are_clamped() -> None:
	assert len(C.generate_key(256)) == 64
	assert len(C.generate_key(8)) == 32
	assert len(C.generate_key(100_000)) == 1024


def test_random_int_bounds() -> None:
	for _ in range(50):
		assert 3 <= C.random_int(5, 3) <= 5
	assert C.random_int(7, 7) == 7


def test_aes_rejects_binary_plaintext() -> None:
	key = "k" * 32
	iv = b"\x00" * C.IV_LEN
	sealed = AESGCM(C.normalize_aes_key(key)).encrypt(iv, b"\xff\xfe", None)
	payload = base64.b64encode(iv + sealed[-C.TAG_LEN:] + sealed[:-C.TAG_LEN]).decode("ascii")
	with pytest.raises(C.CryptoError, match="not UTF-8"):
		C.aes_decrypt(payload, key)
