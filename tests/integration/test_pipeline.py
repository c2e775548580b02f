import json
from pathlib import Path

import numpy as np
import pytest

from ffnn.training import pipelines


def _blobs_config(tmp_path, **train):
    config = {
        "data": {"name": "blobs", "options": {"n_points": 40, "n_features": 3, "num_classes": 2}},
        "model": {
            "layers": [
                {"neurons": 5, "activation": "tanh", "initializer": "xavier_normal"},
                {"activation": "sigmoid"},
            ],
            "cost": "half_quadratic",
        },
        "train": {
            "epochs": 2,
            "batch_size": 4,
            "lr": 0.3,
            "seed": 5,
            "run_dir": str(tmp_path / "run"),
            "save_snapshot": True,
        },
    }
    config["train"].update(train)
    return config


def test_pipeline_produces_artifacts(tmp_path):
    result = pipelines.run_pipeline(_blobs_config(tmp_path))
    assert result.epochs == 2
    assert result.samples_seen == 64
    metrics = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert [m["epoch"] for m in metrics] == [1, 2]
    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["network"]["dims"] == [3, 5, 2]
    assert manifest["config"]["train"]["seed"] == 5
    assert manifest["dataset"]["type"] == "synthetic"
    assert set(manifest["results"]) >= {"train", "test", "history"}
    assert Path(result.snapshot_path).name == "network.npz"
    assert (tmp_path / "run" / "config.json").exists()
    assert (tmp_path / "run" / "metrics.csv").exists()


def test_pipeline_is_reproducible(tmp_path):
    a = pipelines.run_pipeline(_blobs_config(tmp_path / "a"))
    b = pipelines.run_pipeline(_blobs_config(tmp_path / "b"))
    ma = json.loads(Path(a.manifest_path).read_text())["results"]
    mb = json.loads(Path(b.manifest_path).read_text())["results"]
    assert ma["history"] == mb["history"]


def test_build_network_infers_sizes():
    network = pipelines.build_network(
        6,
        4,
        {"layers": [{"neurons": 3}, {}], "derivative_at": "preactivation"},
        learning_rate=0.1,
        seed=0,
    )
    assert network.describe() == [6, 3, 4]
    assert network.derivative_at == "preactivation"
    assert all(layer.learning_rate == pytest.approx(0.1) for layer in network.layers)


def test_presets_include_builtin_and_file_presets():
    names = set(pipelines.presets())
    assert {"mnist-sigmoid", "emnist-letters-tanh", "blobs-relu"} <= names
    assert "blobs-sigmoid" in names
    with pytest.raises(KeyError):
        pipelines.load_preset("missing")


def test_yaml_preset_directory(tmp_path, monkeypatch):
    pytest.importorskip("yaml")
    (tmp_path / "tiny.yaml").write_text(
        "data: {name: blobs, options: {n_points: 10}}\nmodel: {}\ntrain: {epochs: 1}\n"
    )
    monkeypatch.setattr(pipelines, "_PRESET_DIR", tmp_path)
    monkeypatch.setattr(pipelines, "_FILE_PRESETS_CACHE", None)
    assert pipelines.load_preset("tiny")["train"] == {"epochs": 1}


def test_mnist_preset_runs_offline(tmp_path):
    config = pipelines.load_preset("mnist-sigmoid")
    config["data"]["options"].update({"max_items": 20, "test_items": 10})
    config["train"].update({"epochs": 1, "run_dir": str(tmp_path / "mnist"), "save_snapshot": False})
    result = pipelines.run_pipeline(config)
    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["network"]["dims"] == [784, 16, 16, 10]
    assert manifest["results"]["test"]["samples"] == 10
    assert result.snapshot_path == ""
    assert np.isfinite(manifest["results"]["train"]["cost"])
