"""Exception taxonomy raised by the ffnn engine."""

from __future__ import annotations


class FFNNError(Exception):
    """Base class for every error raised by ffnn."""


class InvalidDimensionError(FFNNError, ValueError):
    """A layer was requested with a non-positive input or neuron count."""


class DimensionMismatchError(FFNNError, ValueError):
    """Vector or matrix shapes are incompatible for the requested operation."""


class TopologyMismatchError(FFNNError, ValueError):
    """Adjacent layers disagree on the size of the vector passed between them."""


class InvalidArgumentError(FFNNError, ValueError):
    """A training hyperparameter is outside its accepted range."""


class LabelOutOfRangeError(FFNNError, ValueError):
    """A sample label cannot index the output layer's one-hot target."""


__all__ = [
    "FFNNError",
    "InvalidDimensionError",
    "DimensionMismatchError",
    "TopologyMismatchError",
    "InvalidArgumentError",
    "LabelOutOfRangeError",
]
