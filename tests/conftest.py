"""Synthetic ARW containers for decoder tests."""

from __future__ import annotations

import struct
from typing import Any, Callable, Sequence

import numpy as np
import pytest

from arw_develop.decode.sr2 import sony_crypt
from arw_develop.tiff import tags as T


IFD0_OFFSET = 8
RAW_IFD_OFFSET = 256
PRIVATE_IFD_OFFSET = 1024
SR2_OFFSET = 1536
PAYLOAD_OFFSET = 4096

_INLINE_FORMATS = {
    T.TYPE_BYTE: "B",
    T.TYPE_SHORT: "H",
    T.TYPE_LONG: "I",
    T.TYPE_SSHORT: "h",
}

Entry = tuple[int, int, int, Any]


def _inline(dtype: int, value: int | bytes, endian: str) -> bytes:
    if isinstance(value, bytes):
        return value.ljust(4, b"\x00")
    return struct.pack(endian + _INLINE_FORMATS[dtype], value).ljust(4, b"\x00")


def ifd_bytes(entries: Sequence[Entry], at: int, endian: str = "<") -> bytes:
    """One IFD placed at absolute offset ``at``; bytes values longer than 4 go after it."""

    n = len(entries)
    data_start = at + 2 + 12 * n + 4
    table = struct.pack(endian + "H", n)
    data = b""
    for tag, dtype, count, value in entries:
        table += struct.pack(endian + "HHI", tag, dtype, count)
        if isinstance(value, bytes) and len(value) > 4:
            table += struct.pack(endian + "I", data_start + len(data))
            data += value
            if len(data) % 2:
                data += b"\x00"
        else:
            table += _inline(dtype, value, endian)
    table += struct.pack(endian + "I", 0)
    return table + data


def shorts(values: Sequence[int], endian: str = "<", signed: bool = False) -> bytes:
    return struct.pack(f"{endian}{len(values)}{'h' if signed else 'H'}", *values)


def encode_group(hi: int, lo: int, imax: int, imin: int, deltas: Sequence[int]) -> bytes:
    """Pack one 16-sample CRAW group."""

    value = hi | (lo << 11) | (imax << 22) | (imin << 26)
    for k, d in enumerate(deltas[:14]):
        value |= (d & 0x7F) << (30 + 7 * k)
    return value.to_bytes(16, "little")


def build_arw(
    payload: bytes,
    width: int,
    height: int,
    encoding: int = 0,
    black: Sequence[int] = (0, 0, 0, 0),
    wb: Sequence[int] = (100, 100, 100, 100),
    curve: Sequence[int] = (0xCCC, 0x1998, 0x2664, 0x3330),
    sr2_black: Sequence[int] | None = None,
    sr2_wb: Sequence[int] | None = None,
    sr2_plaintext: bytes | None = None,
    seed: int = 0x0BADCAFE,
    include_sub_ifd: bool = True,
    private_first: bool = False,
    drop_raw_tags: Sequence[int] = (),
    cfa: bytes = b"\x00\x01\x01\x02",
    endian: str = "<",
) -> bytes:
    raw_entries: list[Entry] = [
        (T.IMAGE_WIDTH, T.TYPE_SHORT, 1, width),
        (T.IMAGE_HEIGHT, T.TYPE_SHORT, 1, height),
        (T.BITS_PER_SAMPLE, T.TYPE_SHORT, 1, 14 if encoding != 2 else 8),
        (T.STRIP_OFFSETS, T.TYPE_LONG, 1, PAYLOAD_OFFSET),
        (T.ROWS_PER_STRIP, T.TYPE_LONG, 1, height),
        (T.STRIP_BYTE_COUNTS, T.TYPE_LONG, 1, len(payload)),
        (T.SONY_RAW_FILE_TYPE, T.TYPE_SHORT, 1, encoding),
        (T.SONY_CURVE, T.TYPE_SHORT, 4, shorts(curve, endian)),
        (T.BLACK_LEVEL_2, T.TYPE_SHORT, 4, shorts(black, endian)),
        (T.WB_RGGB_LEVELS, T.TYPE_SSHORT, 4, shorts(wb, endian, signed=True)),
        (T.CFA_REPEAT_PATTERN_DIM, T.TYPE_SHORT, 2, shorts((2, 2), endian)),
        (T.CFA_PATTERN_2, T.TYPE_BYTE, 4, cfa),
    ]
    raw_entries = [e for e in raw_entries if e[0] not in drop_raw_tags]

    include_private = sr2_black is not None or sr2_wb is not None or sr2_plaintext is not None
    ifd0: list[Entry] = [(T.MAKE, T.TYPE_ASCII, 5, b"SONY\x00")]
    sub_entry = (T.SUB_IFDS, T.TYPE_LONG, 1, RAW_IFD_OFFSET)
    private_entry = (T.DNG_PRIVATE_DATA, T.TYPE_BYTE, 4, struct.pack(endian + "I", PRIVATE_IFD_OFFSET))
    pointers = []
    if include_sub_ifd:
        pointers.append(sub_entry)
    if include_private:
        pointers.append(private_entry)
    if private_first:
        pointers.reverse()
    ifd0.extend(pointers)

    blob = bytearray(PAYLOAD_OFFSET + len(payload))
    blob[0:8] = (b"II" if endian == "<" else b"MM") + struct.pack(endian + "HI", 42, IFD0_OFFSET)

    def place(at: int, data: bytes) -> None:
        blob[at : at + len(data)] = data

    place(IFD0_OFFSET, ifd_bytes(ifd0, IFD0_OFFSET, endian))
    place(RAW_IFD_OFFSET, ifd_bytes(raw_entries, RAW_IFD_OFFSET, endian))

    if include_private:
        if sr2_plaintext is None:
            sr2_entries: list[Entry] = []
            if sr2_black is not None:
                sr2_entries.append((T.BLACK_LEVEL_2, T.TYPE_SHORT, 4, shorts(sr2_black, endian)))
            if sr2_wb is not None:
                sr2_entries.append((T.WB_RGGB_LEVELS, T.TYPE_SSHORT, 4, shorts(sr2_wb, endian, signed=True)))
            sr2_plaintext = ifd_bytes(sr2_entries, SR2_OFFSET, endian)
        private = [
            (T.SR2_SUB_IFD_OFFSET, T.TYPE_LONG, 1, SR2_OFFSET),
            (T.SR2_SUB_IFD_LENGTH, T.TYPE_LONG, 1, len(sr2_plaintext)),
            (T.SR2_SUB_IFD_KEY, T.TYPE_LONG, 1, seed),
        ]
        place(PRIVATE_IFD_OFFSET, ifd_bytes(private, PRIVATE_IFD_OFFSET, endian))
        place(SR2_OFFSET, sony_crypt(sr2_plaintext, seed))

    place(PAYLOAD_OFFSET, payload)
    return bytes(blob)


def linear_payload(samples: np.ndarray, endian: str = "<") -> bytes:
    return np.asarray(samples, dtype=np.uint16).astype(endian + "u2").tobytes()


@pytest.fixture
def arw_factory() -> Callable[..., bytes]:
    return build_arw


@pytest.fixture
def group_encoder() -> Callable[..., bytes]:
    return encode_group


@pytest.fixture
def bayer_samples() -> np.ndarray:
    rng = np.random.default_rng(7)
    return rng.integers(0, 0x3FFF, size=(4, 8), dtype=np.uint16)
