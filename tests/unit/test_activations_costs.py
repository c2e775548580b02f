import numpy as np
import pytest
from numpy.testing import assert_allclose

from ffnn.core import activations
from ffnn.core.errors import DimensionMismatchError
from ffnn.core.types import DTYPE
from ffnn.training import losses


def test_sigmoid_values():
    sig = activations.get_activation("sigmoid")
    assert_allclose(sig([0.0]), [0.5])
    assert_allclose(sig.derivative([0.0]), [0.25])
    # saturates without overflow warnings
    assert_allclose(sig([-1000.0, 1000.0]), [0.0, 1.0])


def test_relu_family():
    relu = activations.get_activation("relu")
    leaky = activations.get_activation("leakyrelu")
    z = np.array([-2.0, 0.0, 3.0], dtype=DTYPE)
    assert_allclose(relu(z), [0.0, 0.0, 3.0])
    assert_allclose(relu.derivative(z), [0.0, 0.0, 1.0])
    assert_allclose(leaky(z), [-0.02, 0.0, 3.0], rtol=1e-6)
    assert_allclose(leaky.derivative(z), [0.01, 0.01, 1.0], rtol=1e-6)


def test_tanh_and_arctan():
    z = np.array([-1.0, 0.5], dtype=DTYPE)
    assert_allclose(activations.TANH(z), np.tanh(z), rtol=1e-6)
    assert_allclose(activations.get_activation("atan")(z), np.arctan(z), rtol=1e-6)
    assert_allclose(activations.ARCTAN.derivative(z), 1.0 / (1.0 + z * z), rtol=1e-6)


def test_apply_in_place():
    z = np.array([0.0, 0.0], dtype=DTYPE)
    activations.SIGMOID.apply_value(z)
    assert_allclose(z, [0.5, 0.5])
    z = np.array([0.0], dtype=DTYPE)
    activations.SIGMOID.apply_derivative(z)
    assert_allclose(z, [0.25])


def test_unknown_activation_lists_names():
    with pytest.raises(KeyError, match="sigmoid"):
        activations.get_activation("softplus")


def test_cost_totals_and_gradients():
    guess = np.array([1.0, 0.0, 0.5], dtype=DTYPE)
    target = np.array([0.0, 0.0, 1.0], dtype=DTYPE)
    sq = np.square(guess - target)

    assert losses.get_cost("mse").total(guess, target) == pytest.approx(sq.mean())
    assert_allclose(losses.get_cost("mse").gradient(guess, target), 2.0 / 3.0 * (guess - target))

    assert losses.QUADRATIC.total(guess, target) == pytest.approx(sq.sum())
    assert_allclose(losses.QUADRATIC.gradient(guess, target), 2.0 * (guess - target))

    total, grad = losses.get_cost("HalfQuadratic")(guess, target)
    assert total == pytest.approx(0.5 * sq.sum())
    assert_allclose(grad, guess - target)


def test_cost_length_mismatch():
    with pytest.raises(DimensionMismatchError):
        losses.HALF_QUADRATIC.gradient([1.0, 2.0], [1.0])


def test_unknown_cost():
    with pytest.raises(KeyError, match="half_quadratic"):
        losses.get_cost("cross_entropy")
