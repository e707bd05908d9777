from __future__ import annotations

from typing import Sequence

import numpy as np

from arw_develop.errors import NumericError
from .types import GAMMA_CEILING, GammaCoefficients


DEGREE = 5
ABSCISSAS = np.arange(DEGREE + 1, dtype=np.float64)


def vandermonde(x: np.ndarray, degree: int = DEGREE) -> np.ndarray:
    """Row i holds x[i]**0 .. x[i]**degree."""

    return np.vander(np.asarray(x, dtype=np.float64), degree + 1, increasing=True)


def solve_gamma_curve(control_points: Sequence[int]) -> GammaCoefficients:
    """Fit the tone polynomial through (0, 0), (1..4, control points), (5, 0x3FFF).

    Six points and six unknowns, so the QR solve is an exact interpolation.
    """

    if len(control_points) < 4:
        raise NumericError(f"need 4 gamma control points, got {len(control_points)}")

    y = np.array(
        [0.0, *(float(v) for v in control_points[:4]), float(GAMMA_CEILING)],
        dtype=np.float64,
    )
    a = vandermonde(ABSCISSAS)
    q, r = np.linalg.qr(a)

    diag = np.abs(np.diag(r))
    if not np.all(np.isfinite(diag)) or float(np.min(diag)) <= np.finfo(np.float64).eps * float(np.max(diag)):
        raise NumericError("gamma curve design matrix is singular")

    try:
        c = np.linalg.solve(r, q.T @ y)
    except np.linalg.LinAlgError as exc:
        raise NumericError(f"gamma curve solve failed: {exc}") from exc

    if not np.all(np.isfinite(c)):
        raise NumericError("gamma curve solve produced non-finite coefficients")
    return GammaCoefficients(*(float(v) for v in c))


def evaluate_polynomial(coefficients: GammaCoefficients, t: float) -> float:
    c = coefficients
    x5 = c.c5 * t * t * t * t * t
    x4 = c.c4 * t * t * t * t
    x3 = c.c3 * t * t * t
    x2 = c.c2 * t * t
    x1 = c.c1 * t
    x0 = c.c0 * 1
    return x5 + x4 + x3 + x2 + x1 + x0
