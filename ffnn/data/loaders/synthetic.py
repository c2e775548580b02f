"""Pure in-memory synthetic classification data."""

from __future__ import annotations

from pathlib import Path

import numpy as np

from ...core.types import DTYPE
from ..dataset import DataSet
from ..registry import DatasetSpec, register_dataset


def make_blobs(
    n_points: int,
    n_features: int,
    num_classes: int,
    *,
    spread: float = 0.15,
    seed: int = 0,
) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(inputs, labels)`` with one Gaussian cluster per class.

    Cluster centres are drawn in ``[0.2, 0.8]`` so inputs stay roughly within
    the unit cube, like normalised pixels.
    """

    rng = np.random.default_rng(seed)
    centres = rng.uniform(0.2, 0.8, size=(num_classes, n_features))
    labels = np.arange(n_points) % num_classes
    rng.shuffle(labels)
    noise = spread * rng.standard_normal((n_points, n_features))
    inputs = (centres[labels] + noise).astype(DTYPE)
    return inputs, labels.astype(np.int64)


def _factory(
    n_points: int = 200,
    n_features: int = 4,
    num_classes: int = 3,
    spread: float = 0.15,
    test_split: float = 0.2,
    seed: int = 0,
    *,
    offline: bool | None = None,
    cache_dir: str | Path | None = None,
    **_: object,
) -> DatasetSpec:
    inputs, labels = make_blobs(
        n_points, n_features, num_classes, spread=spread, seed=seed
    )
    n_test = int(round(n_points * test_split))
    n_train = n_points - n_test
    train = DataSet.from_arrays(inputs[:n_train], labels[:n_train])
    test = DataSet.from_arrays(inputs[n_train:], labels[n_train:])
    provenance = {
        "type": "synthetic",
        "n_points": n_points,
        "n_features": n_features,
        "num_classes": num_classes,
        "spread": spread,
        "test_split": test_split,
        "seed": seed,
    }
    return DatasetSpec(
        name="blobs",
        train=train,
        test=test,
        input_size=n_features,
        num_classes=num_classes,
        provenance=provenance,
    )


register_dataset("blobs", _factory)
