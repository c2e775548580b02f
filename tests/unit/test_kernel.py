import numpy as np
import pytest
from numpy.testing import assert_allclose

from ffnn.core import kernel
from ffnn.core.activations import TANH
from ffnn.core.errors import DimensionMismatchError
from ffnn.core.types import DTYPE


def test_dot_and_mismatch():
    assert kernel.dot([1, 2, 3], [4, 5, 6]) == pytest.approx(32.0)
    with pytest.raises(DimensionMismatchError):
        kernel.dot([1, 2], [1, 2, 3])


def test_mat_vec_rows_are_dot_products():
    matrix = np.arange(6, dtype=DTYPE).reshape(2, 3)
    vector = np.array([1.0, -1.0, 2.0])
    result = kernel.mat_vec(matrix, vector)
    assert result.dtype == DTYPE
    assert_allclose(result, [kernel.dot(row, vector) for row in matrix])
    with pytest.raises(DimensionMismatchError):
        kernel.mat_vec(matrix, [1.0, 2.0])


def test_vec_mat_treats_vector_as_row():
    matrix = np.arange(6, dtype=DTYPE).reshape(2, 3)
    assert_allclose(kernel.vec_mat([1.0, 2.0], matrix), [6.0, 9.0, 12.0])
    with pytest.raises(DimensionMismatchError):
        kernel.vec_mat([1.0, 2.0, 3.0], matrix)


def test_mat_mul_and_transpose():
    left = np.arange(6, dtype=DTYPE).reshape(2, 3)
    assert kernel.mat_mul(left, kernel.transpose(left)).shape == (2, 2)
    with pytest.raises(DimensionMismatchError):
        kernel.mat_mul(left, left)


def test_outer_shape():
    result = kernel.outer([1.0, 2.0], [1.0, 0.0, -1.0])
    assert result.shape == (2, 3)
    assert_allclose(result[1], [2.0, 0.0, -2.0])


def test_add_sub_require_same_shape():
    assert_allclose(kernel.add([1, 2], [3, 4]), [4, 6])
    assert_allclose(kernel.sub(np.ones((2, 2)), np.ones((2, 2))), np.zeros((2, 2)))
    with pytest.raises(DimensionMismatchError):
        kernel.add(np.ones((2, 2)), np.ones((2, 3)))
    with pytest.raises(DimensionMismatchError):
        kernel.sub([1, 2], [1, 2, 3])


def test_scale_in_place_mutates():
    matrix = np.ones((2, 2), dtype=DTYPE)
    out = kernel.scale_in_place(matrix, 3.0)
    assert out is matrix
    assert_allclose(matrix, np.full((2, 2), 3.0))
    with pytest.raises(TypeError):
        kernel.scale_in_place([[1.0]], 2.0)


def test_derivative_product():
    values = np.array([0.0, 1.0], dtype=DTYPE)
    upstream = np.array([2.0, 2.0], dtype=DTYPE)
    expected = upstream * (1.0 - np.tanh(values) ** 2)
    assert_allclose(kernel.derivative_product(TANH, values, upstream), expected, rtol=1e-6)
    with pytest.raises(DimensionMismatchError):
        kernel.derivative_product(TANH, values, [1.0])


def test_format_matrix():
    text = kernel.format_matrix([[1.0, 2.0], [3.0, 4.0]])
    assert text == "1.0\t2.0\n3.0\t4.0\n\n"


def test_non_vector_rejected():
    with pytest.raises(DimensionMismatchError):
        kernel.as_vector(np.ones((2, 2)))
