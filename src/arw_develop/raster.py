from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np


R, G, B, PAD = 0, 1, 2, 3
CELL_CHANNELS = 4
DISPLAY_SHIFT = 2
OPAQUE = 0xFFFF


class Pixel16(NamedTuple):
    r: int
    g: int
    b: int


@dataclass
class Raster:
    """Row-major (R, G, B, pad) uint16 cells; ``stride`` may exceed ``width``."""

    cells: np.ndarray
    width: int
    height: int

    @classmethod
    def allocate(cls, width: int, height: int, stride: int | None = None) -> "Raster":
        stride = width if stride is None else stride
        if width <= 0 or height <= 0:
            raise ValueError(f"raster dimensions must be positive, got {width}x{height}")
        if stride < width:
            raise ValueError(f"stride {stride} is smaller than width {width}")
        cells = np.zeros((height, stride, CELL_CHANNELS), dtype=np.uint16)
        return cls(cells=cells, width=width, height=height)

    @property
    def stride(self) -> int:
        return int(self.cells.shape[1])

    @property
    def bounds(self) -> tuple[int, int, int, int]:
        return (0, 0, self.width, self.height)

    @property
    def view(self) -> np.ndarray:
        """Cells without the alignment columns."""

        return self.cells[:, : self.width]

    def freeze(self) -> "Raster":
        self.cells.setflags(write=False)
        return self

    def _check(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} raster")

    def at(self, x: int, y: int) -> Pixel16:
        self._check(x, y)
        cell = self.cells[y, x]
        return Pixel16(int(cell[R]), int(cell[G]), int(cell[B]))

    def rgba64(self, x: int, y: int) -> tuple[int, int, int, int]:
        """16-bit display color: 14-bit channels shifted up by two bits, opaque."""

        p = self.at(x, y)
        return (
            min(p.r << DISPLAY_SHIFT, OPAQUE),
            min(p.g << DISPLAY_SHIFT, OPAQUE),
            min(p.b << DISPLAY_SHIFT, OPAQUE),
            OPAQUE,
        )

    def to_rgb16(self) -> np.ndarray:
        rgb = self.view[..., :3].astype(np.uint32) << DISPLAY_SHIFT
        return np.minimum(rgb, OPAQUE).astype(np.uint16)

    def to_rgba64(self) -> np.ndarray:
        out = np.full((self.height, self.width, 4), OPAQUE, dtype=np.uint16)
        out[..., :3] = self.to_rgb16()
        return out

    def cropped(self, x: int, y: int, width: int, height: int) -> np.ndarray:
        if x < 0 or y < 0 or x + width > self.width or y + height > self.height:
            raise ValueError(f"crop ({x}, {y}, {width}, {height}) outside {self.width}x{self.height} raster")
        return self.to_rgb16()[y : y + height, x : x + width]
