"""SHA-1, SHA-224 and SHA-256 message digests."""

from __future__ import annotations

import struct
from typing import ClassVar

__all__ = ["Sha1", "Sha256", "Sha224", "sha1", "sha256", "sha224"]

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF

SHA1_DIGEST_LENGTH = 20
SHA256_DIGEST_LENGTH = 32
SHA224_DIGEST_LENGTH = 28


def _rol(x: int, n: int) -> int:
    return ((x << n) | (x >> (32 - n))) & _MASK32


def _ror(x: int, n: int) -> int:
    return ((x >> n) | (x << (32 - n))) & _MASK32


def _as_bytes(data) -> bytes:
    """Return ``data`` as bytes; raises TypeError for non-buffer objects."""
    return memoryview(data).tobytes()


class _BlockHash:
    """Merkle-Damgård hash over 64-byte blocks with a 32-bit word state."""

    block_size: ClassVar[int] = 64
    digest_size: ClassVar[int]
    name: ClassVar[str]
    _initial_state: ClassVar[tuple[int, ...]]

    def __init__(self, data=b"") -> None:
        self._state = list(self._initial_state)
        self._buffer = b""
        self._length = 0
        if data:
            self.update(data)

    def _compress(self, state: list[int], block: bytes) -> None:
        raise NotImplementedError

    def update(self, data) -> None:
        """Feed more bytes into the hash."""
        self._absorb(data)

    def digest(self) -> bytes:
        """Return the digest of everything fed so far."""
        return self._finish()

    def _absorb(self, data) -> None:
        chunk = _as_bytes(data)
        self._length += len(chunk)
        buffer = self._buffer + chunk
        full = len(buffer) - len(buffer) % self.block_size
        for offset in range(0, full, self.block_size):
            self._compress(self._state, buffer[offset:offset + self.block_size])
        self._buffer = buffer[full:]

    def _finish(self) -> bytes:
        state = list(self._state)
        bit_length = (self._length * 8) & _MASK64
        padding_len = (55 - len(self._buffer)) % self.block_size
        tail = self._buffer + b"\x80" + b"\x00" * padding_len + struct.pack(">Q", bit_length)
        for offset in range(0, len(tail), self.block_size):
            self._compress(state, tail[offset:offset + self.block_size])
        words = self.digest_size // 4
        return struct.pack(f">{words}I", *state[:words])

    def hexdigest(self) -> str:
        return self.digest().hex()

    def copy(self):
        clone = type(self)()
        clone._state = list(self._state)
        clone._buffer = self._buffer
        clone._length = self._length
        return clone


class Sha1(_BlockHash):
    """Incremental SHA-1."""

    digest_size = SHA1_DIGEST_LENGTH
    name = "sha1"
    _initial_state = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476, 0xC3D2E1F0)

    def update(self, data) -> None:
        """Feed more bytes into the hash."""
        self._absorb(data)

    def digest(self) -> bytes:
        """Return the 20-byte digest of everything fed so far; the hash stays usable."""
        return self._finish()

    def _compress(self, state: list[int], block: bytes) -> None:
        w = list(struct.unpack(">16I", block))
        for i in range(16, 80):
            w.append(_rol(w[i - 3] ^ w[i - 8] ^ w[i - 14] ^ w[i - 16], 1))
        a, b, c, d, e = state
        for i, wi in enumerate(w):
            if i < 20:
                f = d ^ (b & (c ^ d))
                k = 0x5A827999
            elif i < 40:
                f = b ^ c ^ d
                k = 0x6ED9EBA1
            elif i < 60:
                f = (b & c) | (d & (b | c))
                k = 0x8F1BBCDC
            else:
                f = b ^ c ^ d
                k = 0xCA62C1D6
            temp = (_rol(a, 5) + f + e + wi + k) & _MASK32
            a, b, c, d, e = temp, a, _rol(b, 30), c, d
        for i, value in enumerate((a, b, c, d, e)):
            state[i] = (state[i] + value) & _MASK32


_K256 = (
    0x428A2F98, 0x71374491, 0xB5C0FBCF, 0xE9B5DBA5, 0x3956C25B,
    0x59F111F1, 0x923F82A4, 0xAB1C5ED5, 0xD807AA98, 0x12835B01,
    0x243185BE, 0x550C7DC3, 0x72BE5D74, 0x80DEB1FE, 0x9BDC06A7,
    0xC19BF174, 0xE49B69C1, 0xEFBE4786, 0x0FC19DC6, 0x240CA1CC,
    0x2DE92C6F, 0x4A7484AA, 0x5CB0A9DC, 0x76F988DA, 0x983E5152,
    0xA831C66D, 0xB00327C8, 0xBF597FC7, 0xC6E00BF3, 0xD5A79147,
    0x06CA6351, 0x14292967, 0x27B70A85, 0x2E1B2138, 0x4D2C6DFC,
    0x53380D13, 0x650A7354, 0x766A0ABB, 0x81C2C92E, 0x92722C85,
    0xA2BFE8A1, 0xA81A664B, 0xC24B8B70, 0xC76C51A3, 0xD192E819,
    0xD6990624, 0xF40E3585, 0x106AA070, 0x19A4C116, 0x1E376C08,
    0x2748774C, 0x34B0BCB5, 0x391C0CB3, 0x4ED8AA4A, 0x5B9CCA4F,
    0x682E6FF3, 0x748F82EE, 0x78A5636F, 0x84C87814, 0x8CC70208,
    0x90BEFFFA, 0xA4506CEB, 0xBEF9A3F7, 0xC67178F2,
)


class Sha256(_BlockHash):
    """Incremental SHA-256."""

    digest_size = SHA256_DIGEST_LENGTH
    name = "sha256"
    _initial_state = (
        0x6A09E667, 0xBB67AE85, 0x3C6EF372, 0xA54FF53A,
        0x510E527F, 0x9B05688C, 0x1F83D9AB, 0x5BE0CD19,
    )

    def update(self, data) -> None:
        """Feed more bytes into the hash."""
        self._absorb(data)

    def digest(self) -> bytes:
        """Return the digest of everything fed so far; the hash stays usable."""
        return self._finish()

    def _compress(self, state: list[int], block: bytes) -> None:
        w = list(struct.unpack(">16I", block))
        for i in range(16, 64):
            x = w[i - 15]
            gamma0 = _ror(x, 7) ^ _ror(x, 18) ^ (x >> 3)
            y = w[i - 2]
            gamma1 = _ror(y, 17) ^ _ror(y, 19) ^ (y >> 10)
            w.append((gamma1 + w[i - 7] + gamma0 + w[i - 16]) & _MASK32)
        a, b, c, d, e, f, g, h = state
        for k, wi in zip(_K256, w):
            sigma1 = _ror(e, 6) ^ _ror(e, 11) ^ _ror(e, 25)
            ch = g ^ (e & (f ^ g))
            t0 = (h + sigma1 + ch + k + wi) & _MASK32
            sigma0 = _ror(a, 2) ^ _ror(a, 13) ^ _ror(a, 22)
            maj = ((a | b) & c) | (a & b)
            t1 = (sigma0 + maj) & _MASK32
            a, b, c, d, e, f, g, h = (t0 + t1) & _MASK32, a, b, c, (d + t0) & _MASK32, e, f, g
        for i, value in enumerate((a, b, c, d, e, f, g, h)):
            state[i] = (state[i] + value) & _MASK32


class Sha224(Sha256):
    """Incremental SHA-224: SHA-256 with its own start state, cut to 28 bytes."""

    digest_size = SHA224_DIGEST_LENGTH
    name = "sha224"
    _initial_state = (
        0xC1059ED8, 0x367CD507, 0x3070DD17, 0xF70E5939,
        0xFFC00B31, 0x68581511, 0x64F98FA7, 0xBEFA4FA4,
    )


def sha1(message) -> bytes:
    """Return the SHA-1 digest of ``message``."""
    return Sha1(message).digest()


def sha256(message) -> bytes:
    """Return the SHA-256 digest of ``message``."""
    return Sha256(message).digest()


def sha224(message) -> bytes:
    """Return the SHA-224 digest of ``message``."""
    return Sha224(message).digest()