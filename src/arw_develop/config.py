from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class CorrectionConfig:
    # Divides a 14-bit value into the tone polynomial's 0..5 domain.
    domain_divisor: float = float(0xCCC)
    exposure_gain: float = 1.596472423


@dataclass
class OutputConfig:
    output_dir: Path | None = None
    apply_crop: bool = False
    write_decode_record: bool = True
    overwrite: bool = True


@dataclass
class AppConfig:
    correction: CorrectionConfig = field(default_factory=CorrectionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log_level: str = "INFO"
    log_file: Path | None = None


def _expand_path(value: str | None, base: Path) -> Path | None:
    if value in (None, ""):
        return None
    path = Path(value)
    if not path.is_absolute():
        path = (base / path).resolve()
    return path


def _positive_float(data: dict[str, Any], key: str, default: float) -> float:
    value = float(data.get(key, default))
    if value <= 0.0:
        raise ValueError(f"correction.{key} must be positive, got {value}")
    return value


def load_config(path: str | Path) -> AppConfig:
    try:
        import yaml  # type: ignore
    except Exception as exc:
        raise RuntimeError("PyYAML is required for config loading. Install with: pip install PyYAML") from exc

    cfg_path = Path(path).expanduser().resolve()
    with cfg_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"config root must be a mapping: {cfg_path}")

    base = cfg_path.parent
    correction_raw = raw.get("correction", {}) or {}
    output_raw = raw.get("output", {}) or {}

    defaults = CorrectionConfig()
    correction = CorrectionConfig(
        domain_divisor=_positive_float(correction_raw, "domain_divisor", defaults.domain_divisor),
        exposure_gain=_positive_float(correction_raw, "exposure_gain", defaults.exposure_gain),
    )

    output = OutputConfig(
        output_dir=_expand_path(output_raw.get("output_dir"), base),
        apply_crop=bool(output_raw.get("apply_crop", False)),
        write_decode_record=bool(output_raw.get("write_decode_record", True)),
        overwrite=bool(output_raw.get("overwrite", True)),
    )

    app = AppConfig(
        correction=correction,
        output=output,
        log_level=str(raw.get("log_level", "INFO")),
        log_file=_expand_path(raw.get("log_file"), base),
    )

    ensure_dirs(app)
    return app


def ensure_dirs(config: AppConfig) -> None:
    if config.output.output_dir is not None:
        config.output.output_dir.mkdir(parents=True, exist_ok=True)
    if config.log_file is not None:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
