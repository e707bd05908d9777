from __future__ import annotations

from typing import Sequence

import numpy as np

from arw_develop.errors import FormatError
from .gamma import evaluate_polynomial
from .types import GAMMA_CEILING, GammaCoefficients


# Maps the 14-bit range onto the polynomial's 0..5 fit domain (empirical).
DOMAIN_DIVISOR = 0xCCC
EXPOSURE_GAIN = 1.596472423
SAMPLE_MAX = 0xFFFF


def white_balance_ratios(white_balance: Sequence[int]) -> tuple[float, float, float, float]:
    """Normalize the four WB levels against the largest one."""

    if len(white_balance) != 4:
        raise FormatError(f"expected 4 white balance levels, got {len(white_balance)}")
    peak = max(white_balance)
    if peak <= 0:
        raise FormatError(f"white balance levels are unset: {tuple(white_balance)}")
    return tuple(float(v) / float(peak) for v in white_balance)  # type: ignore[return-value]


def gamma(x: float, coefficients: GammaCoefficients, domain_divisor: float = DOMAIN_DIVISOR) -> float:
    if x > GAMMA_CEILING:
        return float(GAMMA_CEILING)
    return evaluate_polynomial(coefficients, x / domain_divisor)


def _to_sample(value: float) -> int:
    v = int(value)
    if v < 0:
        return 0
    if v > SAMPLE_MAX:
        return SAMPLE_MAX
    return v


def correct(
    sample: int,
    black_level: int,
    wb_ratio: float,
    coefficients: GammaCoefficients,
    domain_divisor: float = DOMAIN_DIVISOR,
    exposure_gain: float = EXPOSURE_GAIN,
) -> int:
    """Black level, white balance and tone curve for one photosite sample.

    Samples at or below the black level are returned unchanged.
    """

    if sample <= black_level:
        return sample
    balanced = float(sample - black_level) * wb_ratio
    return _to_sample(gamma(balanced, coefficients, domain_divisor) * exposure_gain)


def correct_array(
    samples: np.ndarray,
    black_level: int,
    wb_ratio: float,
    coefficients: GammaCoefficients,
    domain_divisor: float = DOMAIN_DIVISOR,
    exposure_gain: float = EXPOSURE_GAIN,
) -> np.ndarray:
    """Vectorized ``correct``; same float operations in the same order."""

    s = np.asarray(samples, dtype=np.int64)
    passthrough = s <= black_level

    x = (s - black_level).astype(np.float64) * wb_ratio
    t = x / domain_divisor

    c = coefficients
    x5 = c.c5 * t * t * t * t * t
    x4 = c.c4 * t * t * t * t
    x3 = c.c3 * t * t * t
    x2 = c.c2 * t * t
    x1 = c.c1 * t
    x0 = c.c0 * 1
    poly = x5 + x4 + x3 + x2 + x1 + x0

    curve = np.where(x > GAMMA_CEILING, float(GAMMA_CEILING), poly)
    out = np.clip(np.trunc(curve * exposure_gain), 0, SAMPLE_MAX).astype(np.int64)
    out = np.where(passthrough, s, out)
    return out.astype(np.uint16)


class ChannelCorrector:
    """Per-image correction state: coefficients, black levels and WB ratios."""

    def __init__(
        self,
        coefficients: GammaCoefficients,
        black_level: Sequence[int],
        white_balance: Sequence[int],
        domain_divisor: float = DOMAIN_DIVISOR,
        exposure_gain: float = EXPOSURE_GAIN,
    ) -> None:
        if len(black_level) != 4:
            raise FormatError(f"expected 4 black levels, got {len(black_level)}")
        self.coefficients = coefficients
        self.black_level = tuple(int(v) for v in black_level)
        self.ratios = white_balance_ratios(white_balance)
        self.domain_divisor = domain_divisor
        self.exposure_gain = exposure_gain

    def apply(self, samples: np.ndarray, channel: int) -> np.ndarray:
        return correct_array(
            samples,
            self.black_level[channel],
            self.ratios[channel],
            self.coefficients,
            domain_divisor=self.domain_divisor,
            exposure_gain=self.exposure_gain,
        )
