from __future__ import annotations

from pathlib import Path

import numpy as np

from arw_develop.decode.types import CropRect
from arw_develop.raster import Raster


def write_rgb16_tiff(path: Path, raster: Raster, crop: CropRect | None = None) -> None:
    """Write the display-range (14-bit << 2) RGB of ``raster`` as a 16-bit TIFF."""

    try:
        import tifffile  # type: ignore
    except Exception as exc:  # pragma: no cover - dependency is declared
        raise RuntimeError("tifffile is required for TIFF output. Install with: pip install tifffile") from exc

    if crop is not None:
        rgb = raster.cropped(crop.x, crop.y, crop.width, crop.height)
    else:
        rgb = raster.to_rgb16()

    arr = np.ascontiguousarray(rgb, dtype=np.uint16)
    path.parent.mkdir(parents=True, exist_ok=True)
    tifffile.imwrite(str(path), arr, photometric="rgb")
