"""Command line entry point for ffnn training runs."""

from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Iterable

from ffnn.training import pipelines

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _format_result(result) -> str:
    payload = {
        "epochs": result.epochs,
        "samples_seen": result.samples_seen,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
    }
    if result.snapshot_path:
        payload["snapshot"] = result.snapshot_path
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="mnist-sigmoid",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument("--enable-plots", action="store_true", help="Write a cost curve plot")
    parser.add_argument(
        "--progress", action="store_true", help="Draw a console progress bar while training"
    )
    parser.add_argument(
        "--offline",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Force offline dataset usage",
    )
    parser.add_argument("--seed", type=int, help="Seed used for initialisation and shuffling")
    parser.add_argument("--epochs", type=int, help="Override the number of epochs")
    parser.add_argument("--batch-size", type=int, help="Override the mini-batch size")
    parser.add_argument("--lr", type=float, help="Override the learning rate")
    parser.add_argument("--run-dir", type=Path, help="Directory receiving run artefacts")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("FFNN_LOG_LEVEL", "WARNING"),
        help="Logging level (default: $FFNN_LOG_LEVEL or WARNING)",
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def _load_override(path: Path) -> dict:
    text = path.read_text()
    if path.suffix in {".yml", ".yaml"}:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load YAML configs") from exc
        return yaml.safe_load(text)
    return json.loads(text)


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=str(args.log_level).upper(), format=LOG_FORMAT)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        override = _load_override(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = _merge(config, override)

    train_cfg = config.setdefault("train", {})
    if args.enable_plots:
        train_cfg["enable_plots"] = True
    if args.progress:
        train_cfg["progress"] = True
    if args.seed is not None:
        train_cfg["seed"] = int(args.seed)
    if args.epochs is not None:
        train_cfg["epochs"] = int(args.epochs)
    if args.batch_size is not None:
        train_cfg["batch_size"] = int(args.batch_size)
    if args.lr is not None:
        train_cfg["lr"] = float(args.lr)
    if args.run_dir is not None:
        train_cfg["run_dir"] = str(args.run_dir)

    config["offline"] = bool(args.offline)
    os.environ["FFNN_DATA_OFFLINE"] = "1" if args.offline else "0"

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))


if __name__ == "__main__":
    main()
