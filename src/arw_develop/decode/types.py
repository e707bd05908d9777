from __future__ import annotations

from dataclasses import dataclass
import enum
from typing import Any


GAMMA_CEILING = 0x3FFF


class RawEncoding(enum.IntEnum):
    """Values of the SonyRawFileType tag."""

    UNCOMPRESSED_14 = 0
    UNCOMPRESSED_12 = 1
    COMPRESSED = 2
    LOSSLESS = 3
    LOSSLESS_2 = 4

    @property
    def is_compressed(self) -> bool:
        return self is RawEncoding.COMPRESSED

    @property
    def bytes_per_sample(self) -> int:
        if self is RawEncoding.COMPRESSED:
            return 1
        return 2


@dataclass(frozen=True)
class CropRect:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class RawParameters:
    width: int
    height: int
    bit_depth: int
    encoding: RawEncoding
    offset: int
    stride: int
    length: int
    black_level: tuple[int, int, int, int]
    white_balance: tuple[int, int, int, int]
    gamma_curve: tuple[int, int, int, int, int]
    crop: CropRect
    cfa_pattern: tuple[int, int, int, int] = (0, 1, 1, 2)
    cfa_repeat: tuple[int, int] = (2, 2)
    byte_order: str = "<"

    @property
    def control_points(self) -> tuple[int, int, int, int]:
        return self.gamma_curve[:4]  # type: ignore[return-value]

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "bit_depth": self.bit_depth,
            "encoding": self.encoding.name.lower(),
            "offset": self.offset,
            "stride": self.stride,
            "length": self.length,
            "black_level": list(self.black_level),
            "white_balance": list(self.white_balance),
            "gamma_curve": list(self.gamma_curve),
            "crop": [self.crop.x, self.crop.y, self.crop.width, self.crop.height],
            "cfa_pattern": list(self.cfa_pattern),
            "cfa_repeat": list(self.cfa_repeat),
            "byte_order": "little" if self.byte_order == "<" else "big",
        }


@dataclass(frozen=True)
class GammaCoefficients:
    """Degree-5 tone polynomial, lowest degree first."""

    c0: float
    c1: float
    c2: float
    c3: float
    c4: float
    c5: float

    def as_tuple(self) -> tuple[float, float, float, float, float, float]:
        return (self.c0, self.c1, self.c2, self.c3, self.c4, self.c5)
