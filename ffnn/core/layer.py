"""Fully-connected layer with batched gradient accumulation."""

from __future__ import annotations

import logging

import numpy as np

from . import kernel
from .activations import Activation, get_activation
from .errors import DimensionMismatchError, InvalidDimensionError
from .initializers import Initializer, get_initializer
from .types import DTYPE, Array

logger = logging.getLogger(__name__)

DEFAULT_LEARNING_RATE = 0.5


class Layer:
    """One affine transform followed by an elementwise activation.

    ``weights`` has shape ``(neuron_count, input_count)`` and ``biases`` has
    shape ``(neuron_count,)``.  During training the owning network feeds
    per-sample deltas through :meth:`accumulate_gradient`; nothing changes in
    the parameters until :meth:`apply_update` averages the accumulated deltas
    over the number of samples seen and steps against them.
    """

    def __init__(
        self,
        input_count: int,
        neuron_count: int,
        activation: str | Activation = "sigmoid",
        initializer: str | Initializer = "xavier_uniform",
        *,
        rng: np.random.Generator | None = None,
    ) -> None:
        if int(neuron_count) <= 0:
            raise InvalidDimensionError(f"neuron_count can't be <= 0 (got {neuron_count})")
        if int(input_count) <= 0:
            raise InvalidDimensionError(f"input_count can't be <= 0 (got {input_count})")
        self.input_count = int(input_count)
        self.neuron_count = int(neuron_count)
        self.activation = get_activation(activation)
        self.initializer = get_initializer(initializer)
        self.learning_rate = DEFAULT_LEARNING_RATE

        self.weights = np.zeros((self.neuron_count, self.input_count), dtype=DTYPE)
        self.biases = np.zeros(self.neuron_count, dtype=DTYPE)
        self.initializer.initialize(self.weights, self.biases, rng)
        self._allocate_transients()
        logger.debug(
            "Created layer %dx%d activation=%s initializer=%s",
            self.neuron_count,
            self.input_count,
            self.activation.name,
            self.initializer.name,
        )

    @classmethod
    def from_parameters(
        cls,
        weights,
        biases,
        activation: str | Activation = "sigmoid",
        initializer: str | Initializer = "xavier_uniform",
        learning_rate: float = DEFAULT_LEARNING_RATE,
    ) -> "Layer":
        """Rebuild a layer around existing parameters.

        ``initializer`` is recorded for provenance only; it is not invoked.
        Transient buffers are re-allocated as zeros.
        """

        weights = kernel.as_matrix(weights, name="weights")
        layer = cls.__new__(cls)
        layer.neuron_count, layer.input_count = (int(d) for d in weights.shape)
        if layer.neuron_count <= 0 or layer.input_count <= 0:
            raise InvalidDimensionError(f"weights shape {weights.shape} has an empty dimension")
        layer.activation = get_activation(activation)
        layer.initializer = get_initializer(initializer)
        layer.learning_rate = float(learning_rate)
        layer.weights = np.zeros_like(weights)
        layer.biases = np.zeros(layer.neuron_count, dtype=DTYPE)
        layer.set_weights(weights)
        layer.set_biases(biases)
        layer._allocate_transients()
        return layer

    def _allocate_transients(self) -> None:
        self.last_output = np.zeros(self.neuron_count, dtype=DTYPE)
        self.last_preactivation = np.zeros(self.neuron_count, dtype=DTYPE)
        self.reset_gradients()

    # ------------------------------------------------------------------
    # Parameters

    @property
    def shape(self) -> tuple[int, int]:
        return self.neuron_count, self.input_count

    def set_weights(self, weights) -> None:
        weights = kernel.as_matrix(weights, name="weights")
        if weights.shape != self.weights.shape:
            raise DimensionMismatchError(
                f"this.weights.shape{self.weights.shape} != weights.shape{weights.shape}"
            )
        self.weights = weights.copy()

    def set_biases(self, biases) -> None:
        biases = kernel.as_vector(biases, name="biases")
        if biases.shape != self.biases.shape:
            raise DimensionMismatchError(
                f"this.biases.length[{self.biases.shape[0]}] != biases.length[{biases.shape[0]}]"
            )
        self.biases = biases.copy()

    def set_learning_rate(self, learning_rate: float) -> None:
        self.learning_rate = float(learning_rate)

    # ------------------------------------------------------------------
    # Forward

    def activate(self, inputs) -> Array:
        """Compute and remember this layer's activation for ``inputs``."""

        inputs = kernel.as_vector(inputs, name="input")
        if inputs.shape[0] != self.input_count:
            raise DimensionMismatchError(
                f"input.length[{inputs.shape[0]}] != input_count[{self.input_count}]"
            )
        z = kernel.mat_vec(self.weights, inputs) + self.biases
        self.last_preactivation = z
        self.last_output = self.activation.value(z)
        return self.last_output

    # ------------------------------------------------------------------
    # Gradient bookkeeping

    @property
    def accumulated_count(self) -> int:
        return self._accumulated_count

    def accumulate_gradient(self, delta_weights, delta_biases) -> None:
        """Add one sample's deltas to the running batch totals.

        Both shapes are validated before either accumulator is touched.
        """

        delta_weights = kernel.as_matrix(delta_weights, name="delta_weights")
        delta_biases = kernel.as_vector(delta_biases, name="delta_biases")
        kernel.check_same_shape(self.grad_weights, delta_weights, names=("grad_weights", "delta_weights"))
        kernel.check_same_shape(self.grad_biases, delta_biases, names=("grad_biases", "delta_biases"))
        self.grad_weights += delta_weights
        self.grad_biases += delta_biases
        self._accumulated_count += 1

    def apply_update(self) -> bool:
        """Step the parameters against the averaged accumulated gradient.

        Returns ``False`` without touching anything when no gradient has been
        accumulated since the last update.
        """

        if self._accumulated_count == 0:
            logger.debug("apply_update on layer %s ignored: nothing accumulated", self.shape)
            return False
        rate = DTYPE(self.learning_rate)
        count = DTYPE(self._accumulated_count)
        self.weights -= (self.grad_weights * rate) / count
        self.biases -= (self.grad_biases * rate) / count
        self.reset_gradients()
        return True

    def reset_gradients(self) -> None:
        self.grad_weights = np.zeros((self.neuron_count, self.input_count), dtype=DTYPE)
        self.grad_biases = np.zeros(self.neuron_count, dtype=DTYPE)
        self._accumulated_count = 0

    def parameter_count(self) -> int:
        return int(self.weights.size + self.biases.size)

    def __repr__(self) -> str:
        return (
            f"Layer(input_count={self.input_count}, neuron_count={self.neuron_count}, "
            f"activation={self.activation.name!r}, initializer={self.initializer.name!r})"
        )


__all__ = ["DEFAULT_LEARNING_RATE", "Layer"]
