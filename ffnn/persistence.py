"""Network snapshots: a binary ``.npz`` format and a readable JSON projection.

Both formats carry the full layer sequence (shapes, weights, biases,
activation and initializer names, learning rate) plus the network's cost
function.  Transient buffers such as the last activation and the gradient
accumulators are never stored; restoring allocates them fresh.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping

import numpy as np

from .core.errors import FFNNError
from .core.layer import Layer
from .core.network import Network
from .core.types import DTYPE

logger = logging.getLogger(__name__)

SNAPSHOT_SUFFIX = ".npz"
FORMAT_NAME = "ffnn.network"
FORMAT_VERSION = 1


class SnapshotError(FFNNError):
    """Raised when a snapshot cannot be written or read back."""


class NetworkSerializer:
    """Convert networks to and from plain mappings and JSON text.

    Instances are cheap and stateless apart from their formatting options;
    construct one wherever it is needed and pass it along.
    """

    def __init__(self, *, indent: int | None = 2, sort_keys: bool = False) -> None:
        self.indent = indent
        self.sort_keys = sort_keys

    def header(self, network: Network) -> Dict[str, Any]:
        """Everything except the parameter arrays."""

        return {
            "format": FORMAT_NAME,
            "version": FORMAT_VERSION,
            "cost_function": network.cost_function.name,
            "learning_rate": network.learning_rate,
            "derivative_at": network.derivative_at,
            "layers": [
                {
                    "neuron_count": layer.neuron_count,
                    "input_count": layer.input_count,
                    "activation": layer.activation.name,
                    "initializer": layer.initializer.name,
                    "learning_rate": layer.learning_rate,
                }
                for layer in network.layers
            ],
        }

    def to_dict(self, network: Network) -> Dict[str, Any]:
        payload = self.header(network)
        for entry, layer in zip(payload["layers"], network.layers):
            entry["weights"] = layer.weights.tolist()
            entry["biases"] = layer.biases.tolist()
        return payload

    def from_dict(self, payload: Mapping[str, Any]) -> Network:
        entries = payload.get("layers")
        if not entries:
            raise SnapshotError("Snapshot does not describe any layer")
        return self.build(payload, [(e["weights"], e["biases"]) for e in entries])

    def build(self, header: Mapping[str, Any], parameters: List[tuple]) -> Network:
        """Reconstruct a network from ``header`` and per-layer ``(weights, biases)``."""

        if header.get("format") != FORMAT_NAME:
            raise SnapshotError(f"Unknown snapshot format: {header.get('format')!r}")
        if int(header.get("version", 0)) > FORMAT_VERSION:
            raise SnapshotError(f"Unsupported snapshot version: {header.get('version')}")
        layers: List[Layer] = []
        for idx, (entry, (weights, biases)) in enumerate(zip(header["layers"], parameters)):
            weights = np.asarray(weights, dtype=DTYPE)
            expected = (int(entry["neuron_count"]), int(entry["input_count"]))
            if weights.shape != expected:
                raise SnapshotError(
                    f"layer[{idx}] weights shape {weights.shape} != declared {expected}"
                )
            layers.append(
                Layer.from_parameters(
                    weights,
                    biases,
                    activation=entry["activation"],
                    initializer=entry["initializer"],
                    learning_rate=float(entry.get("learning_rate", header["learning_rate"])),
                )
            )
        return Network(
            layers,
            cost_function=header["cost_function"],
            learning_rate=float(header["learning_rate"]),
            derivative_at=str(header.get("derivative_at", "output")),
        )

    def dumps(self, network: Network) -> str:
        return json.dumps(self.to_dict(network), indent=self.indent, sort_keys=self.sort_keys)

    def loads(self, text: str) -> Network:
        return self.from_dict(json.loads(text))


def _check_suffix(path: Path) -> None:
    if path.suffix != SNAPSHOT_SUFFIX:
        raise SnapshotError(f"Invalid file type: {path.name} (expected *{SNAPSHOT_SUFFIX})")


def save_snapshot(
    network: Network,
    path: str | Path,
    serializer: NetworkSerializer | None = None,
) -> Path:
    """Write ``network`` to ``path`` as a compressed ``.npz`` archive."""

    serializer = serializer or NetworkSerializer(indent=None)
    path = Path(path)
    _check_suffix(path)
    payload: Dict[str, np.ndarray] = {
        "header": np.array(json.dumps(serializer.header(network)))
    }
    for idx, layer in enumerate(network.layers):
        payload[f"layer_{idx}_weights"] = layer.weights
        payload[f"layer_{idx}_biases"] = layer.biases
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        np.savez_compressed(handle, **payload)
    return path


def load_snapshot(
    path: str | Path,
    serializer: NetworkSerializer | None = None,
) -> Network:
    """Read a network written by :func:`save_snapshot`."""

    serializer = serializer or NetworkSerializer()
    path = Path(path)
    _check_suffix(path)
    with np.load(path, allow_pickle=False) as data:
        if "header" not in data.files:
            raise SnapshotError(f"{path.name} has no snapshot header")
        header = json.loads(str(data["header"]))
        parameters = []
        for idx in range(len(header.get("layers", []))):
            try:
                parameters.append(
                    (data[f"layer_{idx}_weights"], data[f"layer_{idx}_biases"])
                )
            except KeyError as exc:
                raise SnapshotError(f"{path.name} is missing parameters for layer {idx}") from exc
    if not parameters:
        raise SnapshotError(f"{path.name} does not describe any layer")
    network = serializer.build(header, parameters)
    logger.debug("Loaded snapshot %s with dims %s", path, network.describe())
    return network


def restore_network(path: str | Path) -> Network:
    """Build a new :class:`Network` from a snapshot file."""

    return load_snapshot(path)


__all__ = [
    "NetworkSerializer",
    "SNAPSHOT_SUFFIX",
    "SnapshotError",
    "load_snapshot",
    "restore_network",
    "save_snapshot",
]
