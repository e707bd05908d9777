from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from arw_develop import __version__
from arw_develop.config import AppConfig, load_config
from arw_develop.utils.logging_utils import configure_logging


logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="arw-develop")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    info = sub.add_parser("info", help="Print the raw parameters of one ARW file")
    info.add_argument("input", help="Input ARW path")
    info.add_argument("--json", action="store_true", help="Emit machine-readable JSON")

    one = sub.add_parser("decode", help="Develop one ARW file into a 16-bit RGB TIFF")
    one.add_argument("input", help="Input ARW path")
    one.add_argument("--config", default=None, help="Optional path to YAML config")
    one.add_argument("--out", default=None, help="Optional output directory override")

    batch = sub.add_parser("batch", help="Develop several ARW files, skipping the ones that fail")
    batch.add_argument("inputs", nargs="+", help="Input ARW paths")
    batch.add_argument("--config", default=None, help="Optional path to YAML config")
    batch.add_argument("--out", default=None, help="Optional output directory override")
    batch.add_argument("--json", action="store_true", help="Emit machine-readable JSON report")

    return parser


def _load(args: argparse.Namespace) -> AppConfig:
    config = load_config(args.config) if getattr(args, "config", None) else AppConfig()
    configure_logging(config.log_level, config.log_file)
    return config


def _out_dir(args: argparse.Namespace) -> Path | None:
    return Path(args.out).expanduser().resolve() if args.out else None


def _cmd_info(args: argparse.Namespace) -> int:
    from arw_develop.decode import ArwDecoder

    config = _load(args)
    input_path = Path(args.input).expanduser().resolve()
    with input_path.open("rb") as f:
        params = ArwDecoder(correction=config.correction).read_parameters(f)

    payload = params.to_json_dict()
    if args.json:
        print(json.dumps(payload, indent=2))
        return 0

    print(f"Input ARW: {input_path}")
    for key, value in payload.items():
        print(f"  {key:>14}: {value}")
    return 0


def _cmd_decode(args: argparse.Namespace) -> int:
    from arw_develop.service import develop_one

    config = _load(args)
    input_path = Path(args.input).expanduser().resolve()
    out_path = develop_one(config, input_path=input_path, output_dir=_out_dir(args))
    print(str(out_path))
    return 0


def _cmd_batch(args: argparse.Namespace) -> int:
    from arw_develop.service import develop_batch

    config = _load(args)
    inputs = [Path(p).expanduser().resolve() for p in args.inputs]
    report = develop_batch(config, inputs, output_dir=_out_dir(args))

    if args.json:
        payload = {
            "count": len(report.outputs),
            "outputs": [str(p) for p in report.outputs],
            "failures": {str(k): v for k, v in report.failures.items()},
        }
        print(json.dumps(payload, indent=2))
    else:
        print(f"Developed: {len(report.outputs)}")
        for p in report.outputs:
            print(f"  {p}")
        if report.failures:
            print(f"Failed: {len(report.failures)}")
            for p, err in report.failures.items():
                print(f"  {p.name}: {err}")
    return 0 if report.ok else 1


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "info":
            return _cmd_info(args)
        if args.command == "decode":
            return _cmd_decode(args)
        if args.command == "batch":
            return _cmd_batch(args)

        parser.error(f"unknown command: {args.command}")
        return 2
    except Exception as exc:
        logger.exception("fatal error")
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
