"""Config-driven training runs: presets, network assembly and artefacts."""

from __future__ import annotations

import json
import logging
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np

from ..core.layer import Layer
from ..core.network import Network, NetworkBuilder
from ..core.types import RunResult
from ..data import registry
from ..reporting.artifacts import write_manifest
from ..reporting.console import ConsoleProgress
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from .metrics import evaluate

logger = logging.getLogger(__name__)

_PRESETS: Dict[str, Mapping[str, object]] = {
    "mnist-sigmoid": {
        "data": {"name": "mnist", "options": {"max_items": 256, "test_items": 64}},
        "model": {
            "layers": [
                {"neurons": 16, "activation": "sigmoid", "initializer": "xavier_uniform"},
                {"neurons": 16, "activation": "sigmoid", "initializer": "xavier_uniform"},
                {"activation": "sigmoid", "initializer": "xavier_uniform"},
            ],
            "cost": "half_quadratic",
            "derivative_at": "output",
        },
        "train": {
            "epochs": 3,
            "batch_size": 8,
            "lr": 0.5,
            "seed": 1,
            "shuffle": True,
            "flush_partial_batch": True,
            "run_dir": "runs/mnist-sigmoid",
            "enable_plots": False,
            "save_snapshot": True,
        },
    },
    "emnist-letters-tanh": {
        "data": {"name": "emnist_letters", "options": {"max_items": 256, "test_items": 64}},
        "model": {
            "layers": [
                {"neurons": 32, "activation": "tanh", "initializer": "xavier_normal"},
                {"activation": "sigmoid", "initializer": "xavier_uniform"},
            ],
            "cost": "mse",
            "derivative_at": "preactivation",
        },
        "train": {
            "epochs": 2,
            "batch_size": 4,
            "lr": 0.1,
            "seed": 3,
            "shuffle": True,
            "run_dir": "runs/emnist-letters-tanh",
            "enable_plots": False,
            "save_snapshot": False,
        },
    },
    "blobs-relu": {
        "data": {"name": "blobs", "options": {"n_points": 120, "n_features": 4, "num_classes": 3}},
        "model": {
            "layers": [
                {"neurons": 8, "activation": "leaky_relu", "initializer": "kaiming"},
                {"activation": "sigmoid", "initializer": "xavier_uniform"},
            ],
            "cost": "quadratic",
            "derivative_at": "preactivation",
        },
        "train": {
            "epochs": 5,
            "batch_size": 4,
            "lr": 0.05,
            "seed": 0,
            "shuffle": True,
            "run_dir": "runs/blobs-relu",
            "enable_plots": False,
            "save_snapshot": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None


def _read_preset_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load preset files in YAML format") from exc
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported preset file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Preset {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = _read_preset_file(file)
                missing = {"data", "model", "train"} - set(data)
                if missing:
                    raise KeyError(
                        f"Preset {file.name} is missing required sections: "
                        f"{', '.join(sorted(missing))}"
                    )
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return file_overrides[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        available = ", ".join(sorted(presets()))
        raise KeyError(f"Unknown preset: {name}. Available presets: {available}") from exc


class _MetricsCapture:
    def __init__(self) -> None:
        self.history: list[tuple[int, Mapping[str, float]]] = []

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.history.append((int(epoch), {k: float(v) for k, v in metrics.items()}))


def build_network(
    input_size: int,
    output_size: int,
    model_cfg: Mapping[str, object],
    *,
    learning_rate: float,
    seed: int | None = None,
) -> Network:
    """Assemble a network from a ``model`` config section.

    Each entry of ``model_cfg["layers"]`` describes one layer; its fan-in is
    the previous layer's size (``input_size`` for the first).  The last entry
    may omit ``neurons``, in which case it gets ``output_size``.
    """

    specs: Sequence[Mapping[str, object]] = list(model_cfg.get("layers") or [{}])
    rng = np.random.default_rng(seed)
    builder = NetworkBuilder()
    fan_in = int(input_size)
    for idx, spec in enumerate(specs):
        last = idx == len(specs) - 1
        neurons = int(spec.get("neurons", output_size if last else 0))
        layer = Layer(
            fan_in,
            neurons,
            activation=str(spec.get("activation", "sigmoid")),
            initializer=str(spec.get("initializer", "xavier_uniform")),
            rng=rng,
        )
        builder.add_layer(layer)
        fan_in = neurons
    builder.set_learning_rate(learning_rate)
    builder.set_cost_function(str(model_cfg.get("cost", "half_quadratic")))
    builder.set_derivative_at(str(model_cfg.get("derivative_at", "output")))
    return builder.finalize()


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Load data, build and train a network, evaluate it and write artefacts."""

    data_cfg = dict(config["data"])
    model_cfg = dict(config["model"])
    train_cfg = dict(config["train"])

    offline = config.get("offline")
    dataset = registry.get_dataset(
        str(data_cfg["name"]),
        offline=None if offline is None else bool(offline),
        cache_dir=train_cfg.get("cache_dir"),
        **dict(data_cfg.get("options", {})),
    )

    epochs = int(train_cfg.get("epochs", 1))
    batch_size = int(train_cfg.get("batch_size", 1))
    seed = int(train_cfg.get("seed", 0))
    learning_rate = float(train_cfg.get("lr", 0.05))

    network = build_network(
        dataset.input_size,
        dataset.num_classes,
        model_cfg,
        learning_rate=learning_rate,
        seed=seed,
    )

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)
    logger.info(
        "Training %s on %s (%d train / %d test) for %d epochs, batch size %d, lr %s",
        network.describe(),
        dataset.name,
        len(dataset.train),
        len(dataset.test),
        epochs,
        batch_size,
        learning_rate,
    )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", split="train", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv", split="train")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    capture = _MetricsCapture()
    observers: List[object] = [jsonl, csv_sink, plots, capture]
    if train_cfg.get("progress", False):
        observers.append(ConsoleProgress(every=max(1, len(dataset.train) // 100)))
    for observer in observers:
        network.add_observer(observer)

    network.train(
        dataset.train,
        batch_size=batch_size,
        epochs=epochs,
        flush_partial_batch=bool(train_cfg.get("flush_partial_batch", True)),
        shuffle=bool(train_cfg.get("shuffle", False)),
        rng=np.random.default_rng(seed),
    )
    plots.close()

    results: Dict[str, object] = {
        "train": dict(evaluate(network, dataset.train)),
        "history": [dict(metrics, epoch=epoch) for epoch, metrics in capture.history],
    }
    if len(dataset.test):
        results["test"] = dict(evaluate(network, dataset.test))
    (run_dir / "metrics_eval.json").write_text(json.dumps(results, indent=2))

    snapshot_path = ""
    if train_cfg.get("save_snapshot", False):
        target = run_dir / "network.npz"
        if network.save(target):
            snapshot_path = str(target)

    safe_config = json.loads(json.dumps(config))
    (run_dir / "config.json").write_text(json.dumps(safe_config, indent=2))
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=safe_config,
        dataset_provenance=dataset.provenance,
        network={
            "dims": network.describe(),
            "parameters": network.parameter_count(),
            "cost_function": network.cost_function.name,
            "derivative_at": network.derivative_at,
        },
        results=results,
    )

    return RunResult(
        epochs=epochs,
        samples_seen=epochs * len(dataset.train),
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        snapshot_path=snapshot_path,
    )


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


__all__ = ["build_network", "load_preset", "presets", "run_pipeline"]
