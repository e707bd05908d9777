from __future__ import annotations

from arw_develop.errors import UnsupportedFormatError

from .base import BlockCodec, ReconstructionStrategy
from .correct import DOMAIN_DIVISOR, EXPOSURE_GAIN
from .reconstruct import CompressedBlockStrategy, LinearStrategy
from .types import RawEncoding


class StrategyRegistry:
    def __init__(
        self,
        codec: BlockCodec | None = None,
        domain_divisor: float = DOMAIN_DIVISOR,
        exposure_gain: float = EXPOSURE_GAIN,
    ) -> None:
        self._compressed = CompressedBlockStrategy(
            codec=codec,
            domain_divisor=domain_divisor,
            exposure_gain=exposure_gain,
        )
        self._linear = LinearStrategy(domain_divisor=domain_divisor, exposure_gain=exposure_gain)

    def for_encoding(self, encoding: RawEncoding) -> ReconstructionStrategy:
        if encoding is RawEncoding.COMPRESSED:
            return self._compressed
        if encoding in (RawEncoding.UNCOMPRESSED_14, RawEncoding.UNCOMPRESSED_12):
            return self._linear
        raise UnsupportedFormatError(f"no reconstruction for {encoding.name.lower()} raw data")
