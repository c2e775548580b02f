"""Shape-checked vector and matrix primitives.

Every function coerces its operands to :data:`~ffnn.core.types.DTYPE` arrays
and validates shapes before computing anything, raising
:class:`~ffnn.core.errors.DimensionMismatchError` on disagreement.  Only
:func:`scale_in_place` mutates its argument.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .errors import DimensionMismatchError
from .types import DTYPE, Array

if TYPE_CHECKING:  # pragma: no cover
    from .activations import Activation


def as_vector(values, *, name: str = "vector") -> Array:
    arr = np.asarray(values, dtype=DTYPE)
    if arr.ndim != 1:
        raise DimensionMismatchError(f"{name} must be 1-D, got shape {arr.shape}")
    return arr


def as_matrix(values, *, name: str = "matrix") -> Array:
    arr = np.asarray(values, dtype=DTYPE)
    if arr.ndim != 2:
        raise DimensionMismatchError(f"{name} must be 2-D, got shape {arr.shape}")
    return arr


def check_same_shape(a: Array, b: Array, *, names: tuple[str, str] = ("a", "b")) -> None:
    if a.shape != b.shape:
        raise DimensionMismatchError(
            f"{names[0]}.shape{a.shape} != {names[1]}.shape{b.shape}"
        )


def dot(a, b) -> float:
    """Return the scalar product of two equal-length vectors."""

    a = as_vector(a, name="a")
    b = as_vector(b, name="b")
    if a.shape[0] != b.shape[0]:
        raise DimensionMismatchError(f"a.length[{a.shape[0]}] != b.length[{b.shape[0]}]")
    return float(np.dot(a, b))


def mat_vec(matrix, vector) -> Array:
    """Return ``matrix @ vector``; element ``i`` is ``dot(matrix[i], vector)``."""

    matrix = as_matrix(matrix)
    vector = as_vector(vector)
    if matrix.shape[1] != vector.shape[0]:
        raise DimensionMismatchError(
            f"matrix.cols[{matrix.shape[1]}] != vector.length[{vector.shape[0]}]"
        )
    return matrix @ vector


def vec_mat(vector, matrix) -> Array:
    """Treat ``vector`` as a row vector and return ``vector @ matrix``."""

    vector = as_vector(vector)
    matrix = as_matrix(matrix)
    if vector.shape[0] != matrix.shape[0]:
        raise DimensionMismatchError(
            f"vector.length[{vector.shape[0]}] != matrix.rows[{matrix.shape[0]}]"
        )
    return vector @ matrix


def mat_mul(left, right) -> Array:
    left = as_matrix(left, name="left")
    right = as_matrix(right, name="right")
    if left.shape[1] != right.shape[0]:
        raise DimensionMismatchError(
            f"left.cols[{left.shape[1]}] != right.rows[{right.shape[0]}]"
        )
    return left @ right


def outer(col_vec, row_vec) -> Array:
    """Return the ``len(col_vec) x len(row_vec)`` outer product."""

    col_vec = as_vector(col_vec, name="col_vec")
    row_vec = as_vector(row_vec, name="row_vec")
    return np.outer(col_vec, row_vec).astype(DTYPE, copy=False)


def add(a, b) -> Array:
    """Elementwise sum of two vectors or two matrices of identical shape."""

    a = np.asarray(a, dtype=DTYPE)
    b = np.asarray(b, dtype=DTYPE)
    check_same_shape(a, b)
    return a + b


def sub(a, b) -> Array:
    """Elementwise difference of two vectors or two matrices of identical shape."""

    a = np.asarray(a, dtype=DTYPE)
    b = np.asarray(b, dtype=DTYPE)
    check_same_shape(a, b)
    return a - b


def scale_in_place(matrix: Array, scalar: float) -> Array:
    """Multiply every element of ``matrix`` by ``scalar`` without copying."""

    if not isinstance(matrix, np.ndarray):
        raise TypeError("scale_in_place requires a numpy array")
    matrix *= matrix.dtype.type(scalar)
    return matrix


def transpose(matrix) -> Array:
    """Return a new matrix with rows and columns swapped."""

    return np.array(as_matrix(matrix).T, dtype=DTYPE, copy=True)


def derivative_product(activation: "Activation", values, upstream) -> Array:
    """Return ``upstream * activation.derivative(values)`` elementwise.

    This is the per-neuron error signal used by backpropagation: ``values``
    are the points the derivative is evaluated at and ``upstream`` is the
    cost gradient with respect to the layer output.
    """

    values = as_vector(values, name="values")
    upstream = as_vector(upstream, name="upstream")
    check_same_shape(values, upstream, names=("values", "upstream"))
    return (upstream * activation.derivative(values)).astype(DTYPE, copy=False)


def format_matrix(matrix) -> str:
    """Render ``matrix`` as tab-separated rows followed by a blank line."""

    matrix = as_matrix(matrix)
    rows = ["\t".join(repr(float(value)) for value in row) for row in matrix]
    return "\n".join(rows) + "\n\n"


__all__ = [
    "add",
    "as_matrix",
    "as_vector",
    "derivative_product",
    "dot",
    "format_matrix",
    "mat_mul",
    "mat_vec",
    "outer",
    "scale_in_place",
    "sub",
    "transpose",
    "vec_mat",
]
