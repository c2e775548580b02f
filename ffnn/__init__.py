"""ffnn: a small feed-forward neural network engine on NumPy."""

from .core.activations import get_activation
from .core.errors import (
    DimensionMismatchError,
    FFNNError,
    InvalidArgumentError,
    InvalidDimensionError,
    LabelOutOfRangeError,
    TopologyMismatchError,
)
from .core.initializers import get_initializer
from .core.layer import Layer
from .core.network import Network, NetworkBuilder
from .core.types import NetworkState, RunResult, TrainingProgress
from .data import DataSet, Match, available_datasets, get_dataset, register_dataset
from .persistence import NetworkSerializer, SnapshotError, load_snapshot, restore_network, save_snapshot
from .training.losses import get_cost
from .training.pipelines import load_preset, presets, run_pipeline

__all__ = [
    "DataSet",
    "DimensionMismatchError",
    "FFNNError",
    "InvalidArgumentError",
    "InvalidDimensionError",
    "LabelOutOfRangeError",
    "Layer",
    "Match",
    "Network",
    "NetworkBuilder",
    "NetworkSerializer",
    "NetworkState",
    "RunResult",
    "SnapshotError",
    "TopologyMismatchError",
    "TrainingProgress",
    "available_datasets",
    "get_activation",
    "get_cost",
    "get_dataset",
    "get_initializer",
    "load_preset",
    "load_snapshot",
    "presets",
    "register_dataset",
    "restore_network",
    "run_pipeline",
    "save_snapshot",
]
