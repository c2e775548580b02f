import csv
import io
import json
from pathlib import Path

import pytest

from ffnn.core.types import NetworkState, TrainingProgress
from ffnn.reporting import ConsoleProgress, CsvSink, JsonlSink, PlotAdapter, progress_bar, write_manifest


def test_progress_bar():
    assert progress_bar(3, 10) == "3/10\t" + "/" * 8 + "." * 17
    assert progress_bar(10, 10) == "10/10\t" + "/" * 25
    assert progress_bar(0, 4, ratio=False) == "." * 25
    assert progress_bar(5, 10, percentage=True, ratio=False).startswith(" 52.00 %\t")


def test_console_progress_renders_and_reports_status():
    stream = io.StringIO()
    console = ConsoleProgress(stream)
    console.on_progress(TrainingProgress(1, 2, 1, 4))
    console.on_status(NetworkState.SAVED, Path("runs/net.npz"))
    console.on_status(NetworkState.NOT_RESTORED, Path("other.npz"))
    text = stream.getvalue()
    assert "\rTraining...\tEpoch 1/2\tProgress 1/4\t" in text
    assert "Saved successfully in <net.npz>\n" in text
    assert "Unable to restore from <other.npz>\n" in text


def test_console_progress_throttles():
    stream = io.StringIO()
    console = ConsoleProgress(stream, every=3)
    for sample in range(1, 8):
        console.on_progress(TrainingProgress(1, 1, sample, 7))
    assert stream.getvalue().count("Training...") == 3


def test_metric_sinks(tmp_path):
    jsonl = JsonlSink(tmp_path / "m.jsonl", seed=3)
    sink = CsvSink(tmp_path / "m.csv")
    for epoch, cost in [(1, 0.5), (2, 0.25)]:
        jsonl.on_epoch(epoch, {"cost": cost})
        sink.on_epoch(epoch, {"cost": cost})
    records = [json.loads(line) for line in (tmp_path / "m.jsonl").read_text().splitlines()]
    assert records[1] == {"epoch": 2, "split": "train", "seed": 3, "cost": 0.25}
    with (tmp_path / "m.csv").open() as handle:
        rows = list(csv.DictReader(handle))
    assert [row["cost"] for row in rows] == ["0.5", "0.25"]


def test_write_manifest(tmp_path):
    path = write_manifest(
        tmp_path / "manifest.json",
        config={"train": {"seed": 1}},
        dataset_provenance={"name": "blobs"},
        network={"dims": [2, 3]},
        results={"train": {"accuracy": 1.0}},
    )
    payload = json.loads(Path(path).read_text())
    assert payload["network"]["dims"] == [2, 3]
    assert "numpy" in payload["environment"]


def test_plot_adapter_headless(tmp_path):
    pytest.importorskip("matplotlib")
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    adapter.on_epoch(1, {"cost": 1.0})
    adapter.on_epoch(2, {"cost": 0.5})
    assert adapter.close() == tmp_path / "cost.png"
    assert (tmp_path / "cost.png").exists()


def test_plot_adapter_disabled(tmp_path):
    adapter = PlotAdapter(tmp_path / "plots", enable_plots=False)
    adapter.on_epoch(1, {"cost": 1.0})
    assert adapter.close() is None
    assert not (tmp_path / "plots").exists()
