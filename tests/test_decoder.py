from __future__ import annotations

import io
from pathlib import Path

import numpy as np
import pytest

from arw_develop.config import CorrectionConfig
from arw_develop.decode import ArwDecoder
from arw_develop.decode.correct import correct
from arw_develop.decode.gamma import solve_gamma_curve
from arw_develop.decode.reconstruct import LinearStrategy
from arw_develop.errors import FormatError, SourceIOError, UnsupportedFormatError
from arw_develop.raster import B, G, R

from conftest import build_arw, encode_group, linear_payload


SCENARIO_CURVE = (0x1000, 0x2000, 0x3000, 0x3FFF)


def _write(path: Path, data: bytes) -> Path:
    path.write_bytes(data)
    return path


def test_decode_linear_file(tmp_path: Path, bayer_samples: np.ndarray) -> None:
    height, width = bayer_samples.shape
    path = _write(tmp_path / "linear.arw", build_arw(linear_payload(bayer_samples), width, height))

    image = ArwDecoder().decode(path)

    assert image.source_path == path
    assert image.params.width == width
    reference = LinearStrategy().decode(linear_payload(bayer_samples), image.params, image.coefficients)
    assert np.array_equal(image.raster.cells, reference.cells)


def test_decode_compressed_file(tmp_path: Path) -> None:
    row = encode_group(900, 100, 15, 0, [3] * 14) + encode_group(700, 200, 0, 15, [5] * 14)
    payload = row * 2
    path = _write(tmp_path / "craw.arw", build_arw(payload, 32, 2, encoding=2))

    image = ArwDecoder().decode(path)
    c = image.coefficients

    # span 800 gives a delta shift of 3. (0, 0) is R from the first group, (1, 0) G from the second.
    assert image.raster.cells[0, 0, R] == correct(100, 0, 1.0, c)
    assert image.raster.cells[0, 1, G] == correct(700, 0, 1.0, c)
    assert image.raster.cells[0, 2, R] == correct(100 + (3 << 3), 0, 1.0, c)
    assert image.raster.cells[1, 31, B] == correct(200, 0, 1.0, c)


def test_flat_frame_is_reproducible() -> None:
    samples = np.full((2, 32), 0x1000, dtype=np.uint16)
    data = build_arw(linear_payload(samples), 32, 2, curve=SCENARIO_CURVE)

    decoder = ArwDecoder()
    first = decoder.decode_stream(io.BytesIO(data))
    second = decoder.decode_stream(io.BytesIO(data))

    expected = correct(0x1000, 0, 1.0, solve_gamma_curve(SCENARIO_CURVE))
    rgb = first.raster.view[..., :3]
    assert np.all(rgb == expected)
    assert np.array_equal(first.raster.cells, second.raster.cells)


def test_correction_config_reaches_strategies() -> None:
    samples = np.full((2, 4), 0x1000, dtype=np.uint16)
    data = build_arw(linear_payload(samples), 4, 2)

    default = ArwDecoder().decode_stream(io.BytesIO(data))
    doubled = ArwDecoder(correction=CorrectionConfig(exposure_gain=2 * 1.596472423)).decode_stream(io.BytesIO(data))
    assert int(doubled.raster.at(0, 0).r) > int(default.raster.at(0, 0).r)


def test_truncated_payload(tmp_path: Path, bayer_samples: np.ndarray) -> None:
    height, width = bayer_samples.shape
    data = build_arw(linear_payload(bayer_samples), width, height)[:-10]
    with pytest.raises(FormatError):
        ArwDecoder().decode(_write(tmp_path / "short.arw", data))


def test_lossless_encoding_unsupported(bayer_samples: np.ndarray) -> None:
    height, width = bayer_samples.shape
    data = build_arw(linear_payload(bayer_samples), width, height, encoding=3)
    with pytest.raises(UnsupportedFormatError):
        ArwDecoder().decode_stream(io.BytesIO(data))


def test_missing_file_is_source_error(tmp_path: Path) -> None:
    with pytest.raises(SourceIOError):
        ArwDecoder().decode(tmp_path / "nope.arw")


def test_decode_batch_continues_past_failures(tmp_path: Path, bayer_samples: np.ndarray) -> None:
    height, width = bayer_samples.shape
    good = _write(tmp_path / "good.arw", build_arw(linear_payload(bayer_samples), width, height))
    bad = _write(
        tmp_path / "bad.arw",
        build_arw(linear_payload(bayer_samples), width, height, include_sub_ifd=False),
    )
    missing = tmp_path / "missing.arw"

    outcomes = list(ArwDecoder().decode_batch([good, bad, missing]))

    assert [o.path for o in outcomes] == [good, bad, missing]
    assert [o.ok for o in outcomes] == [True, False, False]
    assert isinstance(outcomes[1].error, FormatError)
    assert isinstance(outcomes[2].error, SourceIOError)


def test_decode_package_exports_the_error_hierarchy() -> None:
    from arw_develop import decode, errors
    from arw_develop.decode import base

    for name in ("DecodeError", "FormatError", "UnsupportedFormatError", "CryptoError", "NumericError", "SourceIOError"):
        assert getattr(decode, name) is getattr(errors, name)
        assert not hasattr(base, name)
