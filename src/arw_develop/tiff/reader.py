"""Classic TIFF tag-tree reader (struct based).

Produces one ``TagRecord`` per IFD entry, in on-disk order. Values that fit
into the 4-byte entry field are decoded in place; larger values are read from
``offset - base`` so that a detached buffer (the decrypted SR2 block) whose
pointers are file-absolute can be parsed with the same code.
"""

from __future__ import annotations

from dataclasses import dataclass
import struct
from typing import Any, BinaryIO

from arw_develop.errors import FormatError, SourceIOError
from arw_develop.tiff.tags import TIFF_TYPES, TYPE_ASCII, tag_name


# Sony IFDs hold a few dozen entries; a larger count means the pointer
# landed in pixel data.
MAX_IFD_ENTRIES = 1000


@dataclass(frozen=True)
class TiffHeader:
    byte_order: str
    first_ifd_offset: int


@dataclass(frozen=True)
class TagRecord:
    tag: int
    dtype: int
    count: int
    value_offset: int
    values: tuple[Any, ...]

    @property
    def name(self) -> str:
        return tag_name(self.tag)

    @property
    def is_inline(self) -> bool:
        return _value_size(self.dtype, self.count) <= 4

    def scalar(self) -> int:
        if not self.values:
            raise FormatError(f"tag {self.name} carries no value")
        value = self.values[0]
        if not isinstance(value, int):
            raise FormatError(f"tag {self.name} is not an integer field")
        return value

    def ints(self, n: int) -> tuple[int, ...]:
        if len(self.values) < n or not all(isinstance(v, int) for v in self.values[:n]):
            raise FormatError(f"tag {self.name} needs {n} integer values, got {self.count}")
        return tuple(self.values[:n])


def _value_size(dtype: int, count: int) -> int:
    return TIFF_TYPES.get(dtype, (1, "B"))[0] * count


def _read_exact(source: BinaryIO, offset: int, size: int) -> bytes:
    if offset < 0:
        raise FormatError(f"negative file offset {offset}")
    try:
        source.seek(offset)
        data = source.read(size)
    except OSError as exc:
        raise SourceIOError(f"read of {size} bytes at {offset} failed: {exc}") from exc
    if len(data) < size:
        raise FormatError(f"truncated read at offset {offset}: wanted {size} bytes, got {len(data)}")
    return data


def read_header(source: BinaryIO) -> TiffHeader:
    data = _read_exact(source, 0, 8)
    if data[:2] == b"II":
        byte_order = "<"
    elif data[:2] == b"MM":
        byte_order = ">"
    else:
        raise FormatError("not a TIFF container: bad byte order mark")

    magic, first_ifd = struct.unpack(byte_order + "HI", data[2:8])
    if magic != 42:
        raise FormatError(f"not a classic TIFF container: magic {magic}")
    return TiffHeader(byte_order=byte_order, first_ifd_offset=first_ifd)


def _decode_values(raw: bytes, dtype: int, count: int, byte_order: str) -> tuple[Any, ...]:
    if dtype not in TIFF_TYPES:
        return ()
    if dtype == TYPE_ASCII:
        return (raw[:count].split(b"\x00", 1)[0],)

    fmt = TIFF_TYPES[dtype][1]
    if len(fmt) == 2:
        flat = struct.unpack(f"{byte_order}{count * 2}{fmt[0]}", raw)
        return tuple(zip(flat[0::2], flat[1::2]))
    return struct.unpack(f"{byte_order}{count}{fmt}", raw)


def parse_tag_tree(
    source: BinaryIO,
    offset: int,
    byte_order: str = "<",
    base: int = 0,
) -> list[TagRecord]:
    """Read the IFD at ``offset`` and return its entries in on-disk order."""

    count_raw = _read_exact(source, offset, 2)
    (num_entries,) = struct.unpack(byte_order + "H", count_raw)
    if num_entries == 0 or num_entries > MAX_IFD_ENTRIES:
        raise FormatError(f"implausible IFD entry count {num_entries} at offset {offset}")

    table = _read_exact(source, offset + 2, 12 * num_entries)
    records: list[TagRecord] = []
    for i in range(num_entries):
        entry = table[i * 12 : (i + 1) * 12]
        tag, dtype, count = struct.unpack(byte_order + "HHI", entry[:8])
        (value_offset,) = struct.unpack(byte_order + "I", entry[8:12])

        size = _value_size(dtype, count)
        if size <= 4:
            raw = entry[8 : 8 + size]
        else:
            raw = _read_exact(source, value_offset - base, size)

        records.append(
            TagRecord(
                tag=tag,
                dtype=dtype,
                count=count,
                value_offset=value_offset,
                values=_decode_values(raw, dtype, count, byte_order),
            )
        )
    return records
