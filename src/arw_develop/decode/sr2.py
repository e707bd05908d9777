"""SR2 private-block cipher.

The block is XORed with a 32-bit word stream produced by a lagged
shift-register that is seeded from the SR2SubIFDKey value. Words are
big-endian regardless of the container byte order. Encryption and decryption
are the same operation.
"""

from __future__ import annotations

import logging
from typing import BinaryIO

import numpy as np

from arw_develop.errors import CryptoError, SourceIOError


logger = logging.getLogger(__name__)

_MASK = 0xFFFFFFFF
_SEED_STEP = 0x0EDD
_SEED_STEP_HIGH = 0x02E9
_PAD_WORDS = 128


def derive_key(seed: int) -> bytes:
    """Little-endian 4-byte key handed to the decryptor."""

    return ((seed * _SEED_STEP + 1) & _MASK).to_bytes(4, "little")


def seed_from_key(key: bytes) -> int:
    if len(key) != 4:
        raise CryptoError(f"SR2 key must be 4 bytes, got {len(key)}")
    # The step is odd, so it has an inverse modulo 2**32.
    inverse = pow(_SEED_STEP, -1, 1 << 32)
    return ((int.from_bytes(key, "little") - 1) * inverse) & _MASK


def _initial_pad(seed: int) -> list[int]:
    multiplier = (_SEED_STEP_HIGH << 16) | _SEED_STEP
    pad = [0] * _PAD_WORDS
    key = seed & _MASK
    for i in range(4):
        key = (key * multiplier + 1) & _MASK
        pad[i] = key
    pad[3] = ((pad[3] << 1) | ((pad[0] ^ pad[2]) >> 31)) & _MASK
    for i in range(4, _PAD_WORDS - 1):
        pad[i] = (((pad[i - 4] ^ pad[i - 2]) << 1) | ((pad[i - 3] ^ pad[i - 1]) >> 31)) & _MASK
    return pad


def keystream(seed: int, words: int) -> np.ndarray:
    pad = _initial_pad(seed)
    out = np.empty(words, dtype=np.uint32)
    p = _PAD_WORDS - 1
    for j in range(words):
        value = pad[(p + 1) & 0x7F] ^ pad[(p + 65) & 0x7F]
        pad[p & 0x7F] = value
        out[j] = value
        p += 1
    return out


def sony_crypt(data: bytes, seed: int) -> bytes:
    """XOR whole 32-bit words of ``data``; trailing bytes are left untouched."""

    words = len(data) // 4
    head = np.frombuffer(data, dtype=">u4", count=words)
    mixed = (head ^ keystream(seed, words)).astype(">u4")
    return mixed.tobytes() + data[words * 4 :]


class SonyDecryptor:
    def decrypt(self, source: BinaryIO, offset: int, length: int, key: bytes) -> bytes:
        if length <= 0:
            raise CryptoError(f"SR2 block length must be positive, got {length}")
        try:
            source.seek(offset)
            data = source.read(length)
        except OSError as exc:
            raise SourceIOError(f"reading SR2 block at {offset} failed: {exc}") from exc
        if len(data) != length:
            raise CryptoError(f"SR2 block truncated: wanted {length} bytes at {offset}, got {len(data)}")

        logger.debug("decrypting SR2 block offset=%s length=%s", offset, length)
        return sony_crypt(data, seed_from_key(key))

    __call__ = decrypt
