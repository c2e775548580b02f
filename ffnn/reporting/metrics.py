"""Metric sinks that record per-epoch training results."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Mapping


class JsonlSink:
    """Append-only JSONL writer for epoch metrics."""

    def __init__(self, path: str | Path, *, split: str = "train", seed: int | None = None) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split
        self.seed = seed

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        record = {"epoch": int(epoch), "split": self.split, "seed": self.seed}
        record.update({k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))})
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")

    __call__ = on_epoch


class CsvSink:
    """Write epoch metrics to CSV with a header taken from the first row."""

    def __init__(self, path: str | Path, *, split: str = "train") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        row = {"epoch": int(epoch), "split": self.split}
        row.update({k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))})
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=sorted(row.keys()))
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)

    __call__ = on_epoch


__all__ = ["CsvSink", "JsonlSink"]
