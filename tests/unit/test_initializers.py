import numpy as np
import pytest

from ffnn.core import initializers
from ffnn.core.types import DTYPE


def _buffers(neurons=20, inputs=30):
    return np.zeros((neurons, inputs), dtype=DTYPE), np.zeros(neurons, dtype=DTYPE)


def test_xavier_uniform_bounds():
    weights, biases = _buffers()
    initializers.get_initializer("xavier_uniform").initialize(
        weights, biases, np.random.default_rng(0)
    )
    limit = np.sqrt(6.0 / 50)
    assert np.all(np.abs(weights) <= limit + 1e-6)
    assert np.all(np.abs(biases) <= 1.0)
    assert np.any(weights != 0)


def test_kaiming_uses_fan_in():
    weights, biases = _buffers(neurons=4, inputs=8)
    initializers.get_initializer("he").initialize(weights, biases, np.random.default_rng(1))
    assert np.all(np.abs(weights) <= 2.0 + 1e-6)


def test_xavier_normal_spread():
    weights, biases = _buffers(neurons=200, inputs=200)
    initializers.XAVIER_NORMAL.initialize(weights, biases, np.random.default_rng(2))
    assert weights.std() == pytest.approx(np.sqrt(2.0 / 400), rel=0.1)


def test_zero_initializer():
    weights, biases = _buffers()
    weights += 1
    biases += 1
    initializers.ZERO.initialize(weights, biases)
    assert not weights.any()
    assert not biases.any()


def test_seeded_generator_is_reproducible():
    a, b = _buffers(), _buffers()
    initializers.XAVIER_UNIFORM.initialize(*a, np.random.default_rng(5))
    initializers.XAVIER_UNIFORM.initialize(*b, np.random.default_rng(5))
    np.testing.assert_array_equal(a[0], b[0])
    np.testing.assert_array_equal(a[1], b[1])


def test_unknown_initializer():
    with pytest.raises(KeyError):
        initializers.get_initializer("orthogonal")
