"""Activation functions and their registry."""

from __future__ import annotations

from typing import Dict, Iterable

import numpy as np

from .types import DTYPE, Array


class Activation:
    """Scalar activation applied elementwise to arrays.

    Subclasses implement :meth:`_value` and :meth:`_derivative` on float
    arrays; the public methods take care of coercion so that scalars, lists
    and arrays are all accepted.
    """

    name: str = ""

    def value(self, z) -> Array:
        return self._value(np.asarray(z, dtype=DTYPE)).astype(DTYPE, copy=False)

    def derivative(self, z) -> Array:
        return self._derivative(np.asarray(z, dtype=DTYPE)).astype(DTYPE, copy=False)

    __call__ = value

    def apply_value(self, z: Array) -> Array:
        """Overwrite ``z`` with ``value(z)``."""

        z[...] = self.value(z)
        return z

    def apply_derivative(self, z: Array) -> Array:
        """Overwrite ``z`` with ``derivative(z)``."""

        z[...] = self.derivative(z)
        return z

    def _value(self, z: Array) -> Array:  # pragma: no cover - abstract
        raise NotImplementedError

    def _derivative(self, z: Array) -> Array:  # pragma: no cover - abstract
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Sigmoid(Activation):
    name = "sigmoid"

    def _value(self, z: Array) -> Array:
        with np.errstate(over="ignore"):
            return 1.0 / (1.0 + np.exp(-z))

    def _derivative(self, z: Array) -> Array:
        s = self._value(z)
        return s * (1.0 - s)


class TanH(Activation):
    name = "tanh"

    def _value(self, z: Array) -> Array:
        return np.tanh(z)

    def _derivative(self, z: Array) -> Array:
        t = np.tanh(z)
        return 1.0 - t * t


class ReLU(Activation):
    name = "relu"

    def _value(self, z: Array) -> Array:
        return np.where(z <= 0, 0.0, z)

    def _derivative(self, z: Array) -> Array:
        return np.where(z <= 0, 0.0, 1.0)


class LeakyReLU(Activation):
    name = "leaky_relu"

    slope = 0.01

    def _value(self, z: Array) -> Array:
        return np.where(z > 0, z, self.slope * z)

    def _derivative(self, z: Array) -> Array:
        return np.where(z <= 0, self.slope, 1.0)


class ArcTan(Activation):
    name = "arctan"

    def _value(self, z: Array) -> Array:
        return np.arctan(z)

    def _derivative(self, z: Array) -> Array:
        return 1.0 / (z * z + 1.0)


class ActivationRegistry:
    """Name -> activation lookup; new variants register without touching callers."""

    def __init__(self) -> None:
        self._registry: Dict[str, Activation] = {}

    def register(self, activation: Activation, *aliases: str) -> Activation:
        for key in (activation.name, *aliases):
            self._registry[key.lower()] = activation
        return activation

    def get(self, name: str | Activation) -> Activation:
        if isinstance(name, Activation):
            return name
        key = str(name).lower()
        if key not in self._registry:
            available = ", ".join(self.names())
            raise KeyError(f"Unknown activation {name!r}. Available activations: {available}")
        return self._registry[key]

    def names(self) -> Iterable[str]:
        return sorted({act.name for act in self._registry.values()})


REGISTRY = ActivationRegistry()

SIGMOID = REGISTRY.register(Sigmoid())
TANH = REGISTRY.register(TanH())
RELU = REGISTRY.register(ReLU())
LEAKY_RELU = REGISTRY.register(LeakyReLU(), "leakyrelu")
ARCTAN = REGISTRY.register(ArcTan(), "atan")


def get_activation(name: str | Activation) -> Activation:
    return REGISTRY.get(name)


__all__ = [
    "Activation",
    "ActivationRegistry",
    "ArcTan",
    "LeakyReLU",
    "REGISTRY",
    "ReLU",
    "Sigmoid",
    "TanH",
    "get_activation",
]
