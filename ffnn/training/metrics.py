"""Evaluation helpers for trained networks."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping

import numpy as np

from ..core.network import Network
from ..core.types import DTYPE, Array
from ..data.dataset import DataSet


def predict_all(network: Network, dataset: DataSet) -> Array:
    """Stack the network's outputs for every sample in ``dataset``."""

    if len(dataset) == 0:
        return np.zeros((0, network.output_size), dtype=DTYPE)
    return np.stack([network.predict(match.inputs) for match in dataset])


def accuracy(predictions: Array, labels: Array) -> float:
    """Fraction of labelled rows whose argmax equals the label.

    Rows with a negative label (no label) are ignored.
    """

    labels = np.asarray(labels).reshape(-1)
    mask = labels >= 0
    if not np.any(mask):
        return 0.0
    return float(np.mean(np.argmax(predictions[mask], axis=1) == labels[mask]))


def mean_cost(network: Network, predictions: Array, labels: Array) -> float:
    labels = np.asarray(labels).reshape(-1)
    targets = np.eye(network.output_size, dtype=DTYPE)
    costs = [
        network.cost_function.total(row, targets[label])
        for row, label in zip(predictions, labels)
        if 0 <= label < network.output_size
    ]
    return float(np.mean(costs)) if costs else 0.0


def evaluate(
    network: Network,
    dataset: DataSet,
    names: Iterable[str] = ("accuracy", "cost"),
) -> Mapping[str, float]:
    """Run inference over ``dataset`` and compute the requested metrics."""

    predictions = predict_all(network, dataset)
    labels = dataset.labels()
    results: Dict[str, float] = {}
    for name in names:
        key = name.lower()
        if key == "accuracy":
            value = accuracy(predictions, labels)
        elif key == "cost":
            value = mean_cost(network, predictions, labels)
        else:
            raise KeyError(f"Unknown metric: {name}")
        results[key] = value
    results["samples"] = float(len(dataset))
    return results


__all__ = ["accuracy", "evaluate", "mean_cost", "predict_all"]
