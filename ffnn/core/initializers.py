"""Weight and bias initialisation strategies.

Each strategy fills a ``(neurons, inputs)`` weight matrix and a ``(neurons,)``
bias vector in place.  Draws come from a :class:`numpy.random.Generator`;
when none is supplied a fresh, unseeded generator is used, so runs are only
reproducible when the caller passes a seeded one.
"""

from __future__ import annotations

from typing import Dict, Iterable

import numpy as np

from .types import DTYPE, Array


def _uniform(rng: np.random.Generator, shape) -> Array:
    return rng.uniform(-1.0, 1.0, size=shape).astype(DTYPE)


class Initializer:
    name: str = ""

    def init_weights(self, weights: Array, rng: np.random.Generator) -> None:  # pragma: no cover - abstract
        raise NotImplementedError

    def init_biases(self, biases: Array, rng: np.random.Generator) -> None:
        biases[...] = _uniform(rng, biases.shape)

    def initialize(
        self,
        weights: Array,
        biases: Array,
        rng: np.random.Generator | None = None,
    ) -> None:
        rng = rng if rng is not None else np.random.default_rng()
        self.init_weights(weights, rng)
        self.init_biases(biases, rng)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class XavierUniform(Initializer):
    name = "xavier_uniform"

    def init_weights(self, weights: Array, rng: np.random.Generator) -> None:
        neurons, inputs = weights.shape
        factor = np.sqrt(6.0 / (inputs + neurons))
        weights[...] = _uniform(rng, weights.shape) * DTYPE(factor)


class XavierNormal(Initializer):
    name = "xavier_normal"

    def init_weights(self, weights: Array, rng: np.random.Generator) -> None:
        neurons, inputs = weights.shape
        factor = np.sqrt(2.0 / (inputs + neurons))
        weights[...] = (rng.standard_normal(weights.shape) * factor).astype(DTYPE)


class Kaiming(Initializer):
    name = "kaiming"

    def init_weights(self, weights: Array, rng: np.random.Generator) -> None:
        _, inputs = weights.shape
        factor = np.sqrt(inputs / 2.0)
        weights[...] = _uniform(rng, weights.shape) * DTYPE(factor)


class Zero(Initializer):
    name = "zero"

    def init_weights(self, weights: Array, rng: np.random.Generator) -> None:
        weights.fill(0.0)

    def init_biases(self, biases: Array, rng: np.random.Generator) -> None:
        biases.fill(0.0)


class InitializerRegistry:
    """Name -> initializer lookup mirroring the activation registry."""

    def __init__(self) -> None:
        self._registry: Dict[str, Initializer] = {}

    def register(self, initializer: Initializer, *aliases: str) -> Initializer:
        for key in (initializer.name, *aliases):
            self._registry[key.lower()] = initializer
        return initializer

    def get(self, name: str | Initializer) -> Initializer:
        if isinstance(name, Initializer):
            return name
        key = str(name).lower()
        if key not in self._registry:
            available = ", ".join(self.names())
            raise KeyError(f"Unknown initializer {name!r}. Available initializers: {available}")
        return self._registry[key]

    def names(self) -> Iterable[str]:
        return sorted({init.name for init in self._registry.values()})


REGISTRY = InitializerRegistry()

XAVIER_UNIFORM = REGISTRY.register(XavierUniform(), "xavieruniform")
XAVIER_NORMAL = REGISTRY.register(XavierNormal(), "xaviernormal")
KAIMING = REGISTRY.register(Kaiming(), "he")
ZERO = REGISTRY.register(Zero(), "zeros")


def get_initializer(name: str | Initializer) -> Initializer:
    return REGISTRY.get(name)


__all__ = [
    "Initializer",
    "InitializerRegistry",
    "Kaiming",
    "REGISTRY",
    "XavierNormal",
    "XavierUniform",
    "Zero",
    "get_initializer",
]
