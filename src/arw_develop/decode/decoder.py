from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator

from arw_develop.config import CorrectionConfig
from arw_develop.errors import DecodeError, FormatError, SourceIOError
from arw_develop.raster import Raster
from arw_develop.tiff.reader import parse_tag_tree

from .base import BlockCodec, Decryptor, TagTreeReader
from .gamma import solve_gamma_curve
from .params import extract_parameters
from .registry import StrategyRegistry
from .types import GammaCoefficients, RawParameters


logger = logging.getLogger(__name__)


@dataclass
class DecodedImage:
    params: RawParameters
    coefficients: GammaCoefficients
    raster: Raster
    source_path: Path | None = None


@dataclass
class DecodeOutcome:
    path: Path
    image: DecodedImage | None = None
    error: DecodeError | None = None

    @property
    def ok(self) -> bool:
        return self.image is not None


def _read_payload(source: BinaryIO, offset: int, length: int) -> bytes:
    try:
        source.seek(offset)
        payload = source.read(length)
    except OSError as exc:
        raise SourceIOError(f"reading pixel payload at {offset} failed: {exc}") from exc
    if len(payload) < length:
        raise FormatError(f"pixel payload truncated: StripByteCounts={length}, file holds {len(payload)} bytes")
    return payload


class ArwDecoder:
    """ARW file -> corrected 14-bit raster."""

    def __init__(
        self,
        correction: CorrectionConfig | None = None,
        reader: TagTreeReader = parse_tag_tree,
        decryptor: Decryptor | None = None,
        codec: BlockCodec | None = None,
    ) -> None:
        correction = correction or CorrectionConfig()
        self._reader = reader
        self._decryptor = decryptor
        self._strategies = StrategyRegistry(
            codec=codec,
            domain_divisor=correction.domain_divisor,
            exposure_gain=correction.exposure_gain,
        )

    def read_parameters(self, source: BinaryIO) -> RawParameters:
        return extract_parameters(source, reader=self._reader, decryptor=self._decryptor)

    def decode_stream(self, source: BinaryIO) -> DecodedImage:
        params = self.read_parameters(source)
        coefficients = solve_gamma_curve(params.control_points)
        strategy = self._strategies.for_encoding(params.encoding)
        payload = _read_payload(source, params.offset, params.length)

        logger.debug("reconstructing with %s", type(strategy).__name__)
        raster = strategy.decode(payload, params, coefficients)
        return DecodedImage(params=params, coefficients=coefficients, raster=raster)

    def decode(self, path: Path) -> DecodedImage:
        try:
            with path.open("rb") as f:
                image = self.decode_stream(f)
        except OSError as exc:
            if isinstance(exc, DecodeError):
                raise
            raise SourceIOError(f"cannot read {path}: {exc}") from exc
        image.source_path = path
        return image

    def decode_batch(self, paths: Iterable[Path]) -> Iterator[DecodeOutcome]:
        """Decode each file in turn; failures are reported per file and do not stop the batch."""

        for path in paths:
            try:
                image = self.decode(path)
            except DecodeError as exc:
                logger.warning("decode failed for %s: %s", path, exc)
                yield DecodeOutcome(path=path, error=exc)
                continue
            yield DecodeOutcome(path=path, image=image)
