"""Layer pipeline orchestration: forward pass, backpropagation and training."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Mapping, Sequence

import numpy as np

from . import kernel
from .errors import (
    DimensionMismatchError,
    InvalidArgumentError,
    LabelOutOfRangeError,
    TopologyMismatchError,
)
from .layer import Layer
from .types import DTYPE, Array, NetworkState, TrainingProgress
from ..training.losses import Cost, get_cost

if TYPE_CHECKING:  # pragma: no cover
    from ..data.dataset import DataSet
    from ..persistence import NetworkSerializer

logger = logging.getLogger(__name__)

DEFAULT_LEARNING_RATE = 0.05
DEFAULT_COST = "half_quadratic"
DERIVATIVE_POINTS = ("output", "preactivation")


def check_topology(layers: Sequence[Layer]) -> None:
    """Raise :class:`TopologyMismatchError` unless adjacent layers line up."""

    if not layers:
        raise TopologyMismatchError("A network needs at least one layer")
    for idx in range(1, len(layers)):
        if layers[idx].input_count != layers[idx - 1].neuron_count:
            raise TopologyMismatchError(
                f"Error in layer[{idx}]: input_count[{layers[idx].input_count}] "
                f"!= layer[{idx - 1}].neuron_count[{layers[idx - 1].neuron_count}]"
            )


class NetworkBuilder:
    """Collect layers and hyperparameters, then validate and freeze them."""

    def __init__(self, input_layer: Layer | None = None) -> None:
        self._layers: List[Layer] = []
        self._cost: Cost = get_cost(DEFAULT_COST)
        self._learning_rate = DEFAULT_LEARNING_RATE
        self._derivative_at = "output"
        if input_layer is not None:
            self._layers.append(input_layer)

    def add_layer(self, layer: Layer) -> "NetworkBuilder":
        self._layers.append(layer)
        return self

    def add_layers(self, *layers: Layer) -> "NetworkBuilder":
        self._layers.extend(layers)
        return self

    def set_learning_rate(self, learning_rate: float) -> "NetworkBuilder":
        self._learning_rate = float(learning_rate)
        return self

    def set_cost_function(self, cost: str | Cost) -> "NetworkBuilder":
        self._cost = get_cost(cost)
        return self

    def set_derivative_at(self, point: str) -> "NetworkBuilder":
        if point not in DERIVATIVE_POINTS:
            raise InvalidArgumentError(
                f"derivative_at must be one of {DERIVATIVE_POINTS}, got {point!r}"
            )
        self._derivative_at = point
        return self

    def finalize(self) -> "Network":
        check_topology(self._layers)
        network = Network(
            self._layers,
            cost_function=self._cost,
            learning_rate=self._learning_rate,
            derivative_at=self._derivative_at,
        )
        logger.info(
            "Finalized network %s cost=%s lr=%s",
            network.describe(),
            network.cost_function.name,
            network.learning_rate,
        )
        return network

    build = finalize


class Network:
    """An ordered, immutable pipeline of :class:`Layer` objects sharing one cost.

    Use :class:`NetworkBuilder` to assemble one.  Inference (:meth:`predict`)
    and training (:meth:`train`) are callable in any state; the state only
    drives what observers are told.

    Observers are plain objects; any of ``on_progress(progress)``,
    ``on_epoch(epoch, metrics)`` and ``on_status(state, path)`` that they
    define is invoked after the matching transition.
    """

    def __init__(
        self,
        layers: Sequence[Layer],
        *,
        cost_function: str | Cost = DEFAULT_COST,
        learning_rate: float = DEFAULT_LEARNING_RATE,
        derivative_at: str = "output",
        observers: Iterable[object] | None = None,
    ) -> None:
        check_topology(layers)
        if derivative_at not in DERIVATIVE_POINTS:
            raise InvalidArgumentError(
                f"derivative_at must be one of {DERIVATIVE_POINTS}, got {derivative_at!r}"
            )
        self._layers = tuple(layers)
        self.cost_function = get_cost(cost_function)
        self.learning_rate = float(learning_rate)
        self.derivative_at = derivative_at
        for layer in self._layers:
            layer.set_learning_rate(self.learning_rate)

        self.observers: List[object] = list(observers or [])
        self._verbose = True
        self.state = NetworkState.READY
        self.last_path: Path | None = None
        self.current_epoch = 0
        self.total_epochs = 0
        self.current_sample = 0
        self.total_samples = 0

    # ------------------------------------------------------------------
    # Structure

    @property
    def layers(self) -> tuple[Layer, ...]:
        return self._layers

    @property
    def input_layer(self) -> Layer:
        return self._layers[0]

    @property
    def output_layer(self) -> Layer:
        return self._layers[-1]

    @property
    def input_size(self) -> int:
        return self.input_layer.input_count

    @property
    def output_size(self) -> int:
        return self.output_layer.neuron_count

    def describe(self) -> List[int]:
        return [self.input_size, *(layer.neuron_count for layer in self._layers)]

    def parameter_count(self) -> int:
        return sum(layer.parameter_count() for layer in self._layers)

    # ------------------------------------------------------------------
    # Observers

    def add_observer(self, observer: object) -> None:
        self.observers.append(observer)

    def remove_observer(self, observer: object) -> None:
        self.observers.remove(observer)

    def verbose(self, flag: bool) -> None:
        self._verbose = bool(flag)

    def _notify(self, hook: str, *args) -> None:
        if not self._verbose:
            return
        for observer in self.observers:
            callback = getattr(observer, hook, None)
            if callable(callback):
                callback(*args)

    def _set_state(self, state: NetworkState) -> None:
        self.state = state
        self._notify("on_status", state, self.last_path)

    def progress(self) -> TrainingProgress:
        return TrainingProgress(
            current_epoch=self.current_epoch,
            total_epochs=self.total_epochs,
            current_sample=self.current_sample,
            total_samples=self.total_samples,
        )

    # ------------------------------------------------------------------
    # Inference

    def predict(self, inputs) -> Array:
        """Run ``inputs`` through every layer and return a copy of the output."""

        return self._forward(inputs).copy()

    def _forward(self, inputs) -> Array:
        inputs = kernel.as_vector(inputs, name="input")
        if inputs.shape[0] != self.input_size:
            raise DimensionMismatchError(
                f"input.length[{inputs.shape[0]}] != input_layer.input_count[{self.input_size}]"
            )
        activation = inputs
        for layer in self._layers:
            activation = layer.activate(activation)
        return activation

    # ------------------------------------------------------------------
    # Training

    def _feed_forward_with_target(self, inputs, target: Array) -> Array:
        inputs = kernel.as_vector(inputs, name="input")
        output = self._forward(inputs)
        self._backpropagate(inputs, target)
        return output

    def _backpropagate(self, inputs: Array, target: Array) -> None:
        layers = self._layers
        d_cost = self.cost_function.gradient(layers[-1].last_output, target)
        for idx in range(len(layers) - 1, -1, -1):
            layer = layers[idx]
            if self.derivative_at == "output":
                point = layer.last_output
            else:
                point = layer.last_preactivation
            delta_biases = kernel.derivative_product(layer.activation, point, d_cost)
            previous = layers[idx - 1].last_output if idx > 0 else inputs
            delta_weights = kernel.outer(delta_biases, previous)
            layer.accumulate_gradient(delta_weights, delta_biases)
            d_cost = kernel.vec_mat(delta_biases, layer.weights)

    def _apply_updates(self) -> None:
        for layer in self._layers:
            layer.apply_update()

    def _discard_pending(self) -> None:
        for layer in self._layers:
            layer.reset_gradients()

    def _validate_dataset(self, dataset: "DataSet") -> None:
        output_size = self.output_size
        for position, match in enumerate(dataset):
            if match.inputs.shape[0] != self.input_size:
                raise DimensionMismatchError(
                    f"sample[{position}].length[{match.inputs.shape[0]}] "
                    f"!= input_layer.input_count[{self.input_size}]"
                )
            if not match.has_label or not 0 <= match.label < output_size:
                raise LabelOutOfRangeError(
                    f"sample[{position}].label[{match.label}] outside [0, {output_size})"
                )

    def train(
        self,
        dataset: "DataSet",
        batch_size: int = 1,
        epochs: int = 1,
        *,
        flush_partial_batch: bool = True,
        shuffle: bool = False,
        rng: np.random.Generator | None = None,
    ) -> None:
        """Train on ``dataset`` with mini-batch gradient descent.

        Parameters are updated after the samples at positions ``0``,
        ``batch_size``, ``2 * batch_size``... of every epoch, each time with
        the gradient averaged over the samples accumulated since the previous
        update.  Whatever is still pending when the last epoch ends is applied
        when ``flush_partial_batch`` is true and discarded otherwise.
        Pass ``epochs`` by keyword to train sample by sample, e.g.
        ``train(dataset, epochs=5)``.  If a step or an observer raises, any
        pending gradient is dropped before the exception propagates.
        """

        size = len(dataset)
        if batch_size < 1:
            raise InvalidArgumentError("Batch size must be more than or equal to one.")
        if batch_size > size:
            raise InvalidArgumentError(
                "Batch size must be less than or equal to the number of samples "
                "in the training dataset."
            )
        if epochs < 1:
            raise InvalidArgumentError("The number of epochs must be more than or equal to one.")
        self._validate_dataset(dataset)

        targets = np.eye(self.output_size, dtype=DTYPE)
        self.total_epochs = int(epochs)
        self.total_samples = size
        self._set_state(NetworkState.TRAINING)
        try:
            for epoch in range(1, epochs + 1):
                if shuffle:
                    dataset.shuffle(rng)
                self.current_epoch = epoch
                self.current_sample = 0
                epoch_cost = 0.0
                logger.debug("Epoch %d/%d started", epoch, epochs)
                for position, match in enumerate(dataset):
                    target = targets[match.label]
                    output = self._feed_forward_with_target(match.inputs, target)
                    epoch_cost += self.cost_function.total(output, target)
                    self.current_sample = position + 1
                    self._notify("on_progress", self.progress())
                    if position % batch_size == 0:
                        self._apply_updates()
                self._notify("on_epoch", epoch, {"cost": epoch_cost / size})
            if flush_partial_batch:
                self._apply_updates()
            else:
                self._discard_pending()
        except BaseException:
            self._discard_pending()
            raise
        finally:
            self._set_state(NetworkState.READY)

    # ------------------------------------------------------------------
    # Persistence

    def save(self, path: str | Path) -> bool:
        """Write a binary snapshot to ``path``; report failure instead of raising."""

        from ..persistence import save_snapshot

        self.last_path = Path(path)
        self._set_state(NetworkState.SAVING)
        try:
            save_snapshot(self, self.last_path)
        except Exception:  # noqa: BLE001 - reported through state and observers
            logger.exception("Unable to save network to %s", self.last_path)
            self._set_state(NetworkState.NOT_SAVED)
            return False
        logger.info("Saved network to %s", self.last_path)
        self._set_state(NetworkState.SAVED)
        return True

    def restore(self, path: str | Path) -> bool:
        """Replace this network's layers and cost with a saved snapshot."""

        from ..persistence import load_snapshot

        self.last_path = Path(path)
        self._set_state(NetworkState.RESTORING)
        try:
            restored = load_snapshot(self.last_path)
        except Exception:  # noqa: BLE001 - reported through state and observers
            logger.exception("Unable to restore network from %s", self.last_path)
            self._set_state(NetworkState.NOT_RESTORED)
            return False
        self._layers = restored.layers
        self.cost_function = restored.cost_function
        self.learning_rate = restored.learning_rate
        self.derivative_at = restored.derivative_at
        logger.info("Restored network %s from %s", self.describe(), self.last_path)
        self._set_state(NetworkState.RESTORED)
        return True

    def to_json(self, serializer: "NetworkSerializer | None" = None) -> str:
        from ..persistence import NetworkSerializer

        return (serializer or NetworkSerializer()).dumps(self)

    @classmethod
    def from_json(cls, text: str, serializer: "NetworkSerializer | None" = None) -> "Network":
        from ..persistence import NetworkSerializer

        return (serializer or NetworkSerializer()).loads(text)

    def __repr__(self) -> str:
        return (
            f"Network(dims={self.describe()}, cost={self.cost_function.name!r}, "
            f"learning_rate={self.learning_rate})"
        )


__all__ = ["DEFAULT_LEARNING_RATE", "Network", "NetworkBuilder", "check_topology"]
