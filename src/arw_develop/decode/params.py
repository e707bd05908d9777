"""Raw parameter extraction from the ARW tag tree.

IFD0 points at the raw sub-IFD (SubIFDs) and at the Sony private IFD
(DNGPrivateData). The private IFD describes an encrypted SR2 block that holds
a second, usually authoritative, copy of the black levels and white balance.
Entries are applied in on-disk order, so whichever IFD comes later wins.
"""

from __future__ import annotations

from dataclasses import dataclass
import io
import logging
from typing import BinaryIO

from arw_develop.errors import FormatError, UnsupportedFormatError
from arw_develop.tiff import tags as T
from arw_develop.tiff.reader import TagRecord, parse_tag_tree, read_header

from .base import Decryptor, TagTreeReader
from .sr2 import SonyDecryptor, derive_key
from .types import GAMMA_CEILING, CropRect, RawEncoding, RawParameters


logger = logging.getLogger(__name__)

_BYTE_TYPES = {T.TYPE_BYTE, T.TYPE_UNDEFINED}


def unpack_cfa_pattern(packed: int) -> tuple[int, int, int, int]:
    """Four one-byte channel indices, least significant byte first."""

    return (
        (packed & 0x000000FF) >> 0,
        (packed & 0x0000FF00) >> 8,
        (packed & 0x00FF0000) >> 16,
        (packed & 0xFF000000) >> 24,
    )


def unpack_cfa_repeat(packed: int) -> tuple[int, int]:
    return (packed & 0xFFFF, (packed >> 16) & 0xFFFF)


def _signed16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def _as_int(value: object) -> int:
    if isinstance(value, tuple):
        num, den = value
        if den == 0:
            raise FormatError("zero denominator in rational crop value")
        return int(num) // int(den)
    if isinstance(value, (int, float)):
        return int(value)
    raise FormatError(f"unexpected crop value {value!r}")


def _pointer(record: TagRecord, byte_order: str) -> int:
    """Offset carried by a pointer tag, stored either as LONG/IFD or as 4 raw bytes."""

    if record.dtype in _BYTE_TYPES:
        raw = bytes(record.ints(4))
        return int.from_bytes(raw, "little" if byte_order == "<" else "big")
    return record.scalar()


@dataclass
class _ParameterBuilder:
    byte_order: str = "<"
    width: int | None = None
    height: int | None = None
    bit_depth: int | None = None
    encoding: RawEncoding | None = None
    offset: int | None = None
    stride: int | None = None
    length: int | None = None
    black_level: tuple[int, int, int, int] | None = None
    white_balance: tuple[int, int, int, int] | None = None
    gamma_curve: tuple[int, int, int, int, int] | None = None
    crop_origin: tuple[int, int] | None = None
    crop_size: tuple[int, int] | None = None
    cfa_pattern: tuple[int, int, int, int] = (0, 1, 1, 2)
    cfa_repeat: tuple[int, int] = (2, 2)

    def apply_levels(self, record: TagRecord) -> bool:
        if record.tag in (T.BLACK_LEVEL, T.BLACK_LEVEL_2):
            self.black_level = record.ints(4)  # type: ignore[assignment]
            return True
        if record.tag == T.WB_RGGB_LEVELS:
            self.white_balance = tuple(_signed16(v) for v in record.ints(4))  # type: ignore[assignment]
            return True
        return False

    def apply_raw(self, record: TagRecord) -> None:
        tag = record.tag
        if tag == T.IMAGE_WIDTH:
            self.width = record.scalar()
        elif tag == T.IMAGE_HEIGHT:
            self.height = record.scalar()
        elif tag == T.BITS_PER_SAMPLE:
            self.bit_depth = record.scalar()
        elif tag == T.SONY_RAW_FILE_TYPE:
            kind = record.scalar()
            try:
                self.encoding = RawEncoding(kind)
            except ValueError as exc:
                raise UnsupportedFormatError(f"unknown SonyRawFileType {kind}") from exc
        elif tag == T.STRIP_OFFSETS:
            self.offset = record.scalar()
        elif tag == T.ROWS_PER_STRIP:
            self.stride = record.scalar()
        elif tag == T.STRIP_BYTE_COUNTS:
            self.length = record.scalar()
        elif tag == T.SONY_CURVE:
            self.gamma_curve = (*record.ints(4), GAMMA_CEILING)  # type: ignore[assignment]
        elif tag == T.CFA_PATTERN_2:
            self.cfa_pattern = unpack_cfa_pattern(int.from_bytes(bytes(record.ints(4)), "little"))
        elif tag == T.CFA_REPEAT_PATTERN_DIM:
            rows, cols = record.ints(2)
            # TODO: confirm field order against files whose repeat tile is not square.
            self.cfa_repeat = unpack_cfa_repeat((rows & 0xFFFF) | ((cols & 0xFFFF) << 16))
        elif tag == T.DEFAULT_CROP_ORIGIN:
            self.crop_origin = (_as_int(record.values[0]), _as_int(record.values[1])) if record.count >= 2 else None
        elif tag == T.DEFAULT_CROP_SIZE:
            self.crop_size = (_as_int(record.values[0]), _as_int(record.values[1])) if record.count >= 2 else None
        else:
            self.apply_levels(record)

    def _crop(self, width: int, height: int) -> CropRect:
        x, y = self.crop_origin or (0, 0)
        w, h = self.crop_size or (width - x, height - y)
        if x < 0 or y < 0 or w <= 0 or h <= 0 or x + w > width or y + h > height:
            logger.warning("ignoring crop (%s, %s, %s, %s) outside %sx%s frame", x, y, w, h, width, height)
            return CropRect(0, 0, width, height)
        return CropRect(x, y, w, h)

    def build(self) -> RawParameters:
        required = {
            "ImageWidth": self.width,
            "ImageHeight": self.height,
            "BitsPerSample": self.bit_depth,
            "SonyRawFileType": self.encoding,
            "StripOffsets": self.offset,
            "StripByteCounts": self.length,
            "SonyCurve": self.gamma_curve,
            "BlackLevel": self.black_level,
            "WB_RGGBLevels": self.white_balance,
        }
        missing = [name for name, value in required.items() if value is None]
        if missing:
            raise FormatError(f"missing required raw tags: {', '.join(missing)}")

        width, height = self.width or 0, self.height or 0
        if width <= 0 or height <= 0:
            raise FormatError(f"invalid raw dimensions {self.width}x{self.height}")

        return RawParameters(
            width=width,
            height=height,
            bit_depth=self.bit_depth,  # type: ignore[arg-type]
            encoding=self.encoding,  # type: ignore[arg-type]
            offset=self.offset,  # type: ignore[arg-type]
            stride=self.stride if self.stride is not None else height,
            length=self.length,  # type: ignore[arg-type]
            black_level=self.black_level,  # type: ignore[arg-type]
            white_balance=self.white_balance,  # type: ignore[arg-type]
            gamma_curve=self.gamma_curve,  # type: ignore[arg-type]
            crop=self._crop(width, height),
            cfa_pattern=self.cfa_pattern,
            cfa_repeat=self.cfa_repeat,
            byte_order=self.byte_order,
        )


def _read_sr2_levels(
    source: BinaryIO,
    private_offset: int,
    builder: _ParameterBuilder,
    reader: TagTreeReader,
    decryptor: Decryptor,
) -> None:
    private = reader(source, private_offset, builder.byte_order)

    sr2_offset = sr2_length = seed = None
    for record in private:
        if record.tag == T.SR2_SUB_IFD_OFFSET:
            sr2_offset = record.scalar()
        elif record.tag == T.SR2_SUB_IFD_LENGTH:
            sr2_length = record.scalar()
        elif record.tag == T.SR2_SUB_IFD_KEY:
            seed = record.scalar()

    if sr2_offset is None or sr2_length is None or seed is None:
        raise FormatError("SR2Private IFD lacks SR2SubIFDOffset, SR2SubIFDLength or SR2SubIFDKey")

    plaintext = decryptor(source, sr2_offset, sr2_length, derive_key(seed))

    try:
        # Value pointers inside the block are file-absolute.
        records = reader(io.BytesIO(plaintext), 0, builder.byte_order, sr2_offset)
    except FormatError as exc:
        raise FormatError(f"decrypted SR2 block is malformed: {exc}") from exc

    updated = [record.name for record in records if builder.apply_levels(record)]
    logger.debug("SR2 block at %s overrides %s", sr2_offset, updated or "nothing")


def extract_parameters(
    source: BinaryIO,
    offset: int | None = None,
    reader: TagTreeReader = parse_tag_tree,
    decryptor: Decryptor | None = None,
) -> RawParameters:
    header = read_header(source)
    builder = _ParameterBuilder(byte_order=header.byte_order)
    decryptor = decryptor if decryptor is not None else SonyDecryptor()

    ifd0_offset = header.first_ifd_offset if offset is None else offset
    found_raw_ifd = False

    for record in reader(source, ifd0_offset, header.byte_order):
        if record.tag == T.SUB_IFDS:
            sub_offset = record.scalar()
            logger.debug("raw sub-IFD at %s", sub_offset)
            for sub in reader(source, sub_offset, header.byte_order):
                builder.apply_raw(sub)
            found_raw_ifd = True
        elif record.tag == T.DNG_PRIVATE_DATA:
            _read_sr2_levels(source, _pointer(record, header.byte_order), builder, reader, decryptor)

    if not found_raw_ifd:
        raise FormatError("IFD0 has no SubIFDs pointer to the raw image")

    params = builder.build()
    logger.info(
        "raw %sx%s %s-bit %s, black=%s wb=%s",
        params.width,
        params.height,
        params.bit_depth,
        params.encoding.name.lower(),
        params.black_level,
        params.white_balance,
    )
    return params
