"""Cost functions and the registry used to look them up by name."""

from __future__ import annotations

from typing import Dict, Iterable

import numpy as np

from ..core.kernel import as_vector
from ..core.errors import DimensionMismatchError
from ..core.types import DTYPE, Array


class Cost:
    """Cost wrapper returning both the scalar total and dC/dy.

    ``total`` is a diagnostic only; training consumes :meth:`gradient`.
    """

    name: str = ""

    def total(self, guess, target) -> float:
        guess, target = self._check(guess, target)
        return float(self._total(guess, target))

    def gradient(self, guess, target) -> Array:
        guess, target = self._check(guess, target)
        return self._gradient(guess, target).astype(DTYPE, copy=False)

    def __call__(self, guess, target) -> tuple[float, Array]:
        return self.total(guess, target), self.gradient(guess, target)

    @staticmethod
    def _check(guess, target) -> tuple[Array, Array]:
        guess = as_vector(guess, name="guess")
        target = as_vector(target, name="target")
        if guess.shape != target.shape:
            raise DimensionMismatchError(
                f"guess.length[{guess.shape[0]}] != target.length[{target.shape[0]}]"
            )
        return guess, target

    def _total(self, guess: Array, target: Array) -> float:  # pragma: no cover - abstract
        raise NotImplementedError

    def _gradient(self, guess: Array, target: Array) -> Array:  # pragma: no cover - abstract
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class MSE(Cost):
    name = "mse"

    def _total(self, guess: Array, target: Array) -> float:
        diff = guess.astype(np.float64) - target
        return float(np.mean(np.square(diff)))

    def _gradient(self, guess: Array, target: Array) -> Array:
        return (guess - target) * DTYPE(2.0 / guess.shape[0])


class Quadratic(Cost):
    name = "quadratic"

    def _total(self, guess: Array, target: Array) -> float:
        diff = guess.astype(np.float64) - target
        return float(np.sum(np.square(diff)))

    def _gradient(self, guess: Array, target: Array) -> Array:
        return (guess - target) * DTYPE(2.0)


class HalfQuadratic(Cost):
    name = "half_quadratic"

    def _total(self, guess: Array, target: Array) -> float:
        diff = guess.astype(np.float64) - target
        return float(0.5 * np.sum(np.square(diff)))

    def _gradient(self, guess: Array, target: Array) -> Array:
        return guess - target


class CostRegistry:
    """Central registry for cost functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Cost] = {}

    def register(self, cost: Cost, *aliases: str) -> Cost:
        for key in (cost.name, *aliases):
            self._registry[key.lower()] = cost
        return cost

    def get(self, name: str | Cost) -> Cost:
        if isinstance(name, Cost):
            return name
        key = str(name).lower()
        if key not in self._registry:
            available = ", ".join(self.names())
            raise KeyError(f"Unknown cost {name!r}. Available costs: {available}")
        return self._registry[key]

    def names(self) -> Iterable[str]:
        return sorted({cost.name for cost in self._registry.values()})


REGISTRY = CostRegistry()

MSE_COST = REGISTRY.register(MSE())
QUADRATIC = REGISTRY.register(Quadratic())
HALF_QUADRATIC = REGISTRY.register(HalfQuadratic(), "halfquadratic")


def get_cost(name: str | Cost) -> Cost:
    return REGISTRY.get(name)


__all__ = [
    "Cost",
    "CostRegistry",
    "HalfQuadratic",
    "MSE",
    "Quadratic",
    "REGISTRY",
    "get_cost",
]
