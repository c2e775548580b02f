"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, MutableMapping

from .dataset import DataSet


@dataclass(frozen=True)
class DatasetSpec:
    """A loaded classification dataset.

    Attributes
    ----------
    name:
        Registry key the dataset was built from.
    train, test:
        Sample collections; ``test`` may be empty.
    input_size:
        Length of every input vector.
    num_classes:
        Number of label values, i.e. the output layer size a network needs.
    provenance:
        Where the data came from; copied verbatim into run manifests.
    """

    name: str
    train: DataSet
    test: DataSet
    input_size: int
    num_classes: int
    provenance: Dict[str, Any] = field(default_factory=dict)

    @property
    def splits(self) -> Dict[str, int]:
        return {"train": len(self.train), "test": len(self.test)}


DatasetFactory = Callable[..., DatasetSpec]

_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory, directly or as a decorator::

        @register_dataset("blobs")
        def make_blobs(**kwargs):
            ...
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    return _decorator


def get_dataset(
    name: str,
    /,
    *,
    offline: bool | None = None,
    cache_dir: str | Path | None = None,
    **options: Any,
) -> DatasetSpec:
    """Build the dataset registered under ``name``."""

    if name not in _REGISTRY:
        available = ", ".join(available_datasets())
        raise KeyError(f"Unknown dataset {name!r}. Available datasets: {available}")
    spec = _REGISTRY[name](offline=offline, cache_dir=cache_dir, **options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    if spec.input_size <= 0:
        raise ValueError(f"Dataset {spec.name!r} has input_size {spec.input_size}")
    if spec.num_classes <= 0:
        raise ValueError(f"Dataset {spec.name!r} has num_classes {spec.num_classes}")
    for split, data in (("train", spec.train), ("test", spec.test)):
        for match in data:
            if match.inputs.shape[0] != spec.input_size:
                raise ValueError(
                    f"{spec.name}/{split} sample of length {match.inputs.shape[0]} "
                    f"!= input_size {spec.input_size}"
                )


__all__ = [
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
