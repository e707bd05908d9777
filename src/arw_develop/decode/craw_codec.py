"""Sony compressed RAW (CRAW) block codec.

A 16-byte group carries 16 samples of one color: an 11-bit max, an 11-bit
min, the 4-bit positions of both, and fourteen 7-bit deltas above min scaled
by a shift derived from the max-min span. Two consecutive groups form one
32-byte block covering 32 columns of a row.
"""

from __future__ import annotations

import numpy as np

from arw_develop.errors import FormatError


BLOCK_BYTES = 32
GROUP_BYTES = 16
GROUP_SAMPLES = 16
SAMPLE_MASK = 0x7FF
_DELTA_FIELDS = 15


def _delta_fields(groups: np.ndarray) -> np.ndarray:
    padded = np.zeros((groups.shape[0], GROUP_BYTES + 3), dtype=np.uint32)
    padded[:, :GROUP_BYTES] = groups
    fields = np.empty((groups.shape[0], _DELTA_FIELDS), dtype=np.int64)
    for k in range(_DELTA_FIELDS):
        bit = 30 + 7 * k
        idx, shift = bit >> 3, bit & 7
        word = padded[:, idx] | (padded[:, idx + 1] << 8)
        fields[:, k] = (word >> shift) & 0x7F
    return fields


def decompress_groups(groups: np.ndarray) -> np.ndarray:
    """Decode an (N, 16) uint8 array of groups into (N, 16) samples."""

    g = np.asarray(groups, dtype=np.uint8)
    if g.ndim != 2 or g.shape[1] != GROUP_BYTES:
        raise FormatError(f"expected (N, {GROUP_BYTES}) group bytes, got {g.shape}")

    b = g.astype(np.uint32)
    header = b[:, 0] | (b[:, 1] << 8) | (b[:, 2] << 16) | (b[:, 3] << 24)
    hi = (header & SAMPLE_MASK).astype(np.int64)
    lo = ((header >> 11) & SAMPLE_MASK).astype(np.int64)
    imax = ((header >> 22) & 0x0F).astype(np.int64)
    imin = ((header >> 26) & 0x0F).astype(np.int64)

    span = hi - lo
    sh = np.zeros_like(span)
    for k in range(4):
        sh += (0x80 << k) <= span

    deltas = _delta_fields(g)
    out = np.empty((g.shape[0], GROUP_SAMPLES), dtype=np.int64)
    for i in range(GROUP_SAMPLES):
        # Deltas are consumed only by positions other than imax/imin.
        skipped = (imax < i).astype(np.int64) + ((imin < i) & (imin != imax)).astype(np.int64)
        k = i - skipped
        delta = np.take_along_axis(deltas, k[:, None], axis=1)[:, 0]
        value = np.minimum((delta << sh) + lo, SAMPLE_MASK)
        out[:, i] = np.where(i == imax, hi, np.where(i == imin, lo, value))
    return out.astype(np.uint16)


def decompress_blocks(blocks: np.ndarray) -> np.ndarray:
    """Decode an (N, 32) uint8 array into (N, 2, 16): first and second group."""

    blk = np.asarray(blocks, dtype=np.uint8)
    if blk.ndim != 2 or blk.shape[1] != BLOCK_BYTES:
        raise FormatError(f"expected (N, {BLOCK_BYTES}) block bytes, got {blk.shape}")
    samples = decompress_groups(blk.reshape(-1, GROUP_BYTES))
    return samples.reshape(-1, 2, GROUP_SAMPLES)


def decompress_block(block: bytes) -> tuple[tuple[int, ...], tuple[int, ...]]:
    if len(block) != BLOCK_BYTES:
        raise FormatError(f"CRAW block must be {BLOCK_BYTES} bytes, got {len(block)}")
    pair = decompress_blocks(np.frombuffer(block, dtype=np.uint8).reshape(1, BLOCK_BYTES))[0]
    return tuple(int(v) for v in pair[0]), tuple(int(v) for v in pair[1])


class CrawBlockCodec:
    def decompress_block(self, block: bytes) -> tuple[tuple[int, ...], tuple[int, ...]]:
        return decompress_block(block)

    def decompress_blocks(self, blocks: np.ndarray) -> np.ndarray:
        return decompress_blocks(blocks)
