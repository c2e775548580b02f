"""MNIST digits and EMNIST letters read from IDX files."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping

import numpy as np

from ..cache import default_cache_dir, fetch
from ..idx import read_dataset, write_images, write_labels
from ..registry import DatasetSpec, register_dataset

_MNIST_URL = "https://storage.googleapis.com/cvdf-datasets/mnist/"
_MNIST_FILES = {
    "train_images": "train-images-idx3-ubyte.gz",
    "train_labels": "train-labels-idx1-ubyte.gz",
    "test_images": "t10k-images-idx3-ubyte.gz",
    "test_labels": "t10k-labels-idx1-ubyte.gz",
}
_EMNIST_FILES = {
    "train_images": "emnist-letters-train-images-idx3-ubyte.gz",
    "train_labels": "emnist-letters-train-labels-idx1-ubyte.gz",
    "test_images": "emnist-letters-test-images-idx3-ubyte.gz",
    "test_labels": "emnist-letters-test-labels-idx1-ubyte.gz",
}
_SIDE = 28


def _fixture_arrays(count: int, num_classes: int, label_offset: int, reverse: bool):
    """Procedural 28x28 images: class ``k`` lights up the ``k``-th band of rows.

    Everything derives from ``np.arange`` so the files are byte-identical
    across platforms and NumPy releases.
    """

    labels = np.arange(count) % num_classes
    if reverse:
        labels = labels[::-1]
    images = np.zeros((count, _SIDE, _SIDE), dtype=np.uint8)
    texture = (np.arange(_SIDE * _SIDE).reshape(_SIDE, _SIDE) % 7) * 20 + 120
    for idx, label in enumerate(labels):
        start = label * _SIDE // num_classes
        stop = max(start + 1, (label + 1) * _SIDE // num_classes)
        images[idx, start:stop, :] = texture[start:stop, :]
    return images, (labels + label_offset).astype(np.uint8)


def _fixture_builder(key: str, num_classes: int, label_offset: int):
    split, kind = key.split("_")
    count = 256 if split == "train" else 64

    def _build(path: Path) -> None:
        images, labels = _fixture_arrays(count, num_classes, label_offset, split == "test")
        if kind == "images":
            write_images(path, images)
        else:
            write_labels(path, labels)

    return _build


def _resolve_files(
    name: str,
    files: Mapping[str, str],
    *,
    num_classes: int,
    label_offset: int,
    data_dir: str | Path | None,
    base_url: str | None,
    offline: bool | None,
    cache_dir: str | Path | None,
) -> tuple[Dict[str, Path], Dict[str, object]]:
    if data_dir is not None:
        root = Path(data_dir)
        paths = {}
        for key, filename in files.items():
            candidate = root / filename
            if not candidate.exists() and candidate.suffix == ".gz":
                candidate = candidate.with_suffix("")
            paths[key] = candidate
        return paths, {"mode": "local", "data_dir": str(root)}

    base_cache = Path(cache_dir) if cache_dir is not None else default_cache_dir()
    paths = {}
    modes = set()
    for key, filename in files.items():
        path, record = fetch(
            name=f"{name}:{key}",
            url=(base_url or "") + filename,
            offline_path=base_cache / "offline" / name / filename.replace(".gz", ""),
            offline_builder=_fixture_builder(key, num_classes, label_offset),
            filename=filename,
            offline=offline if base_url else True,
            cache_dir=base_cache,
        )
        paths[key] = path
        modes.add(str(record["mode"]))
    return paths, {"mode": ",".join(sorted(modes))}


def _build_spec(
    name: str,
    files: Mapping[str, str],
    *,
    num_classes: int,
    label_offset: int,
    base_url: str | None,
    data_dir: str | Path | None,
    max_items: int | None,
    test_items: int | None,
    offline: bool | None,
    cache_dir: str | Path | None,
) -> DatasetSpec:
    paths, provenance = _resolve_files(
        name,
        files,
        num_classes=num_classes,
        label_offset=label_offset,
        data_dir=data_dir,
        base_url=base_url,
        offline=offline,
        cache_dir=cache_dir,
    )
    train = read_dataset(
        paths["train_images"], paths["train_labels"], limit=max_items, label_offset=label_offset
    )
    test = read_dataset(
        paths["test_images"], paths["test_labels"], limit=test_items, label_offset=label_offset
    )
    sample = train[0] if len(train) else test[0]
    provenance.update(
        {
            "name": name,
            "max_items": max_items,
            "test_items": test_items,
            "num_classes": num_classes,
        }
    )
    return DatasetSpec(
        name=name,
        train=train,
        test=test,
        input_size=int(sample.inputs.shape[0]),
        num_classes=num_classes,
        provenance=provenance,
    )


def _mnist_factory(
    max_items: int | None = None,
    test_items: int | None = None,
    data_dir: str | Path | None = None,
    *,
    offline: bool | None = None,
    cache_dir: str | Path | None = None,
    **_: object,
) -> DatasetSpec:
    return _build_spec(
        "mnist",
        _MNIST_FILES,
        num_classes=10,
        label_offset=0,
        base_url=_MNIST_URL,
        data_dir=data_dir,
        max_items=max_items,
        test_items=test_items,
        offline=offline,
        cache_dir=cache_dir,
    )


def _emnist_letters_factory(
    max_items: int | None = None,
    test_items: int | None = None,
    data_dir: str | Path | None = None,
    *,
    offline: bool | None = None,
    cache_dir: str | Path | None = None,
    **_: object,
) -> DatasetSpec:
    # Letters are labelled 1..26 on disk; no public per-file mirror exists,
    # so without data_dir the procedural fixture is used.
    return _build_spec(
        "emnist_letters",
        _EMNIST_FILES,
        num_classes=26,
        label_offset=1,
        base_url=None,
        data_dir=data_dir,
        max_items=max_items,
        test_items=test_items,
        offline=offline,
        cache_dir=cache_dir,
    )


register_dataset("mnist", _mnist_factory)
register_dataset("emnist_letters", _emnist_letters_factory)
