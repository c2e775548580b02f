"""Datasets, decoders and the dataset registry."""

from .dataset import DataSet, Match
from .loaders import mnist as _mnist  # noqa: F401
from .loaders import synthetic as _synthetic  # noqa: F401
from .registry import DatasetSpec, available_datasets, get_dataset, register_dataset

__all__ = [
    "DataSet",
    "DatasetSpec",
    "Match",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
