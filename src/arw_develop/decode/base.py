from __future__ import annotations

from typing import BinaryIO, Protocol

import numpy as np

from arw_develop.raster import Raster
from arw_develop.tiff.reader import TagRecord

from .types import GammaCoefficients, RawParameters


class TagTreeReader(Protocol):
    def __call__(self, source: BinaryIO, offset: int, byte_order: str = "<", base: int = 0) -> list[TagRecord]:
        ...


class Decryptor(Protocol):
    def __call__(self, source: BinaryIO, offset: int, length: int, key: bytes) -> bytes:
        ...


class BlockCodec(Protocol):
    def decompress_blocks(self, blocks: np.ndarray) -> np.ndarray:
        ...


class ReconstructionStrategy(Protocol):
    def decode(self, payload: bytes, params: RawParameters, coefficients: GammaCoefficients) -> Raster:
        ...
