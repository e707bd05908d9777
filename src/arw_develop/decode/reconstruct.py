"""Photosite reconstruction.

Both strategies first write each corrected sample into the single channel
slot of its Bayer position, then run ``neighbor_fill`` which copies the two
missing channels from fixed neighbors inside the same 2x2 tile:

    row y,   even x:  G <- (x+1, y)     B <- (x+1, y+1)
    row y,   odd x:   R <- (x-1, y)     B <- (x,   y+1)
    row y+1, even x:  R <- (x,   y)     B <- (x+1, y+1)
    row y+1, odd x:   R <- (x-1, y)     G <- (x-1, y+1)

No copy reads a slot another copy writes, so the fill is done as whole-array
slice assignments. Copies whose source falls outside the image (last column
of an odd width, last row of an odd height) are skipped.
"""

from __future__ import annotations

import logging

import numpy as np

from arw_develop.errors import FormatError
from arw_develop.raster import B, G, R, Raster

from .base import BlockCodec
from .correct import DOMAIN_DIVISOR, EXPOSURE_GAIN, ChannelCorrector
from .craw_codec import BLOCK_BYTES, GROUP_SAMPLES, CrawBlockCodec
from .types import GammaCoefficients, RawParameters


logger = logging.getLogger(__name__)


def neighbor_fill(raster: Raster) -> Raster:
    px = raster.view
    w = raster.width
    top = px[0::2]
    bottom = px[1::2]
    pairs = bottom.shape[0]

    # row y
    top[:, 0 : w - 1 : 2, G] = top[:, 1:w:2, G]
    top[:pairs, 0 : w - 1 : 2, B] = bottom[:, 1:w:2, B]
    top[:, 1:w:2, R] = top[:, 0 : w - 1 : 2, R]
    top[:pairs, 1:w:2, B] = bottom[:, 1:w:2, B]

    # row y+1
    bottom[:, 0::2, R] = top[:pairs, 0::2, R]
    bottom[:, 0 : w - 1 : 2, B] = bottom[:, 1:w:2, B]
    bottom[:, 1:w:2, R] = top[:pairs, 0 : w - 1 : 2, R]
    bottom[:, 1:w:2, G] = bottom[:, 0 : w - 1 : 2, G]
    return raster


def _require_payload(payload: bytes, params: RawParameters, bytes_per_sample: int) -> None:
    needed = params.width * params.height * bytes_per_sample
    if len(payload) < needed:
        raise FormatError(
            f"pixel payload too short: {len(payload)} bytes for {params.width}x{params.height} "
            f"at {bytes_per_sample} byte(s) per sample (need {needed})"
        )


class _StrategyBase:
    bytes_per_sample = 1
    # Black level / white balance index for (even row R, even row G, odd row G, odd row B).
    channel_map: tuple[int, int, int, int] = (0, 1, 2, 3)

    def __init__(self, domain_divisor: float = DOMAIN_DIVISOR, exposure_gain: float = EXPOSURE_GAIN) -> None:
        self.domain_divisor = domain_divisor
        self.exposure_gain = exposure_gain

    def _corrector(self, params: RawParameters, coefficients: GammaCoefficients) -> ChannelCorrector:
        corrector = ChannelCorrector(
            coefficients,
            params.black_level,
            params.white_balance,
            domain_divisor=self.domain_divisor,
            exposure_gain=self.exposure_gain,
        )
        logger.debug("white balance ratios %s", corrector.ratios)
        return corrector

    def _write_channels(
        self,
        raster: Raster,
        even_cols: np.ndarray,
        odd_cols: np.ndarray,
        corrector: ChannelCorrector,
    ) -> None:
        """Even rows: R / G; odd rows: G / B. Inputs are (H, ceil(W/2)) and (H, W//2)."""

        r, g1, g2, b = self.channel_map
        px = raster.view
        px[0::2, 0::2, R] = corrector.apply(even_cols[0::2], r)
        px[0::2, 1::2, G] = corrector.apply(odd_cols[0::2], g1)
        px[1::2, 0::2, G] = corrector.apply(even_cols[1::2], g2)
        px[1::2, 1::2, B] = corrector.apply(odd_cols[1::2], b)

    def decode(self, payload: bytes, params: RawParameters, coefficients: GammaCoefficients) -> Raster:
        _require_payload(payload, params, self.bytes_per_sample)
        corrector = self._corrector(params, coefficients)
        raster = Raster.allocate(params.width, params.height)
        even_cols, odd_cols = self._split_columns(payload, params)
        self._write_channels(raster, even_cols, odd_cols, corrector)
        return neighbor_fill(raster).freeze()

    def _split_columns(self, payload: bytes, params: RawParameters) -> tuple[np.ndarray, np.ndarray]:
        raise NotImplementedError


class CompressedBlockStrategy(_StrategyBase):
    """CRAW rows: each 32-byte block decodes to 16 even-column then 16 odd-column samples.

    Odd rows are corrected with the levels of channels 0 and 1, like even rows.
    """

    bytes_per_sample = 1
    channel_map = (0, 1, 0, 1)

    def __init__(
        self,
        codec: BlockCodec | None = None,
        domain_divisor: float = DOMAIN_DIVISOR,
        exposure_gain: float = EXPOSURE_GAIN,
    ) -> None:
        super().__init__(domain_divisor=domain_divisor, exposure_gain=exposure_gain)
        self.codec = codec if codec is not None else CrawBlockCodec()

    def _split_columns(self, payload: bytes, params: RawParameters) -> tuple[np.ndarray, np.ndarray]:
        width, height = params.width, params.height
        if width % BLOCK_BYTES:
            raise FormatError(f"compressed raw width {width} is not a multiple of {BLOCK_BYTES}")

        blocks_per_row = width // BLOCK_BYTES
        data = np.frombuffer(payload, dtype=np.uint8, count=width * height)
        samples = self.codec.decompress_blocks(data.reshape(-1, BLOCK_BYTES))
        expected = (height * blocks_per_row, 2, GROUP_SAMPLES)
        if samples.shape != expected:
            raise FormatError(f"block codec returned shape {samples.shape}, expected {expected}")

        samples = samples.reshape(height, blocks_per_row, 2, GROUP_SAMPLES)
        even_cols = samples[:, :, 0, :].reshape(height, width // 2)
        odd_cols = samples[:, :, 1, :].reshape(height, width // 2)
        return even_cols, odd_cols


class LinearStrategy(_StrategyBase):
    """Uncompressed rows of 16-bit samples in the container byte order."""

    bytes_per_sample = 2

    def _split_columns(self, payload: bytes, params: RawParameters) -> tuple[np.ndarray, np.ndarray]:
        count = params.width * params.height
        dtype = np.dtype(np.uint16).newbyteorder(params.byte_order)
        data = np.frombuffer(payload, dtype=dtype, count=count).astype(np.uint16)
        data = data.reshape(params.height, params.width)
        return data[:, 0::2], data[:, 1::2]
