"""Core numerical primitives for ffnn."""

from . import activations, errors, initializers, kernel, types
from .layer import Layer
from .network import Network, NetworkBuilder

__all__ = [
    "Layer",
    "Network",
    "NetworkBuilder",
    "activations",
    "errors",
    "initializers",
    "kernel",
    "types",
]
