from __future__ import annotations

import numpy as np
import pytest

from arw_develop.raster import B, G, OPAQUE, R, Pixel16, Raster


def _raster() -> Raster:
    raster = Raster.allocate(3, 2, stride=4)
    raster.cells[0, 0, :3] = (1, 2, 3)
    raster.cells[1, 2, :3] = (0x3FFF, 0x2000, 0x4000)
    raster.cells[0, 3, :3] = (9, 9, 9)  # alignment column
    return raster


def test_allocate_with_stride() -> None:
    raster = Raster.allocate(3, 2, stride=4)
    assert raster.cells.shape == (2, 4, 4)
    assert raster.cells.dtype == np.uint16
    assert raster.stride == 4
    assert raster.bounds == (0, 0, 3, 2)
    assert raster.view.shape == (2, 3, 4)


@pytest.mark.parametrize("dims", [(0, 2, None), (2, -1, None), (4, 2, 3)])
def test_allocate_rejects_bad_dimensions(dims: tuple[int, int, int | None]) -> None:
    width, height, stride = dims
    with pytest.raises(ValueError):
        Raster.allocate(width, height, stride=stride)


def test_at_returns_rgb() -> None:
    raster = _raster()
    assert raster.at(0, 0) == Pixel16(1, 2, 3)
    assert raster.at(2, 1) == (0x3FFF, 0x2000, 0x4000)


@pytest.mark.parametrize("xy", [(-1, 0), (3, 0), (0, 2), (0, -1)])
def test_at_out_of_bounds(xy: tuple[int, int]) -> None:
    with pytest.raises(IndexError):
        _raster().at(*xy)


def test_rgba64_shifts_and_saturates() -> None:
    raster = _raster()
    assert raster.rgba64(0, 0) == (4, 8, 12, OPAQUE)
    assert raster.rgba64(2, 1) == (0xFFFC, 0x8000, 0xFFFF, 0xFFFF)


def test_bulk_conversions_match_per_pixel() -> None:
    raster = _raster()
    rgba = raster.to_rgba64()
    assert rgba.shape == (2, 3, 4)
    for y in range(2):
        for x in range(3):
            assert tuple(int(v) for v in rgba[y, x]) == raster.rgba64(x, y)
    assert raster.to_rgb16().shape == (2, 3, 3)


def test_cropped() -> None:
    raster = _raster()
    tile = raster.cropped(1, 1, 2, 1)
    assert tile.shape == (1, 2, 3)
    assert tile[0, 1].tolist() == [0xFFFC, 0x8000, 0xFFFF]
    with pytest.raises(ValueError):
        raster.cropped(2, 0, 2, 2)


def test_freeze_blocks_writes() -> None:
    raster = _raster().freeze()
    with pytest.raises(ValueError):
        raster.cells[0, 0, R] = 5
    assert raster.at(0, 0)[G] == 2
    assert raster.at(0, 0)[B] == 3
