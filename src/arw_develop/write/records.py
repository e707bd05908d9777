from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any


@dataclass
class DecodeRecord:
    source_filename: str
    output_filename: str
    parameters: dict[str, Any]
    gamma_coefficients: list[float]
    tool_version: str
    created_at_utc: str


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def write_decode_record(path: Path, record: DecodeRecord) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(asdict(record), f, indent=2, sort_keys=True)
        f.write("\n")
