from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Iterable

from arw_develop import __version__
from arw_develop.config import AppConfig
from arw_develop.decode import ArwDecoder, DecodedImage
from arw_develop.write import DecodeRecord, utc_now_iso, write_decode_record, write_rgb16_tiff


logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    outputs: list[Path] = field(default_factory=list)
    failures: dict[Path, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


def _output_path(config: AppConfig, input_path: Path, output_dir: Path | None) -> Path:
    root = output_dir or config.output.output_dir or input_path.parent
    return root / f"{input_path.stem}.tiff"


def _write_outputs(config: AppConfig, image: DecodedImage, out_path: Path) -> Path:
    if out_path.exists() and not config.output.overwrite:
        raise FileExistsError(f"output exists and overwrite is disabled: {out_path}")

    crop = image.params.crop if config.output.apply_crop else None
    write_rgb16_tiff(out_path, image.raster, crop=crop)

    if config.output.write_decode_record:
        record = DecodeRecord(
            source_filename=image.source_path.name if image.source_path else "",
            output_filename=out_path.name,
            parameters=image.params.to_json_dict(),
            gamma_coefficients=list(image.coefficients.as_tuple()),
            tool_version=__version__,
            created_at_utc=utc_now_iso(),
        )
        write_decode_record(out_path.with_suffix(".json"), record)

    logger.info("developed %s -> %s", image.source_path, out_path)
    return out_path


def develop_one(config: AppConfig, input_path: Path, output_dir: Path | None = None) -> Path:
    decoder = ArwDecoder(correction=config.correction)
    image = decoder.decode(input_path)
    return _write_outputs(config, image, _output_path(config, input_path, output_dir))


def develop_batch(config: AppConfig, input_paths: Iterable[Path], output_dir: Path | None = None) -> BatchReport:
    """Develop every input; a file that fails to decode is recorded and skipped."""

    decoder = ArwDecoder(correction=config.correction)
    report = BatchReport()
    for outcome in decoder.decode_batch(input_paths):
        if outcome.image is None:
            report.failures[outcome.path] = str(outcome.error)
            continue
        out_path = _output_path(config, outcome.path, output_dir)
        try:
            report.outputs.append(_write_outputs(config, outcome.image, out_path))
        except OSError as exc:
            logger.error("writing %s failed: %s", out_path, exc)
            report.failures[outcome.path] = str(exc)
    return report
