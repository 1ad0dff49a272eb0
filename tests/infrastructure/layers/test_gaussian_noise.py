import unittest

import numpy as np

from src.gradstack.domain._errors import ConstructionInvariantError
from src.gradstack.infrastructure.layers._noise import GaussianNoise


class TestGaussianNoise(unittest.TestCase):
    def test_invalid_arguments_raise(self):
        with self.assertRaises(ConstructionInvariantError):
            GaussianNoise(2, 1.5, 0.1)
        with self.assertRaises(ConstructionInvariantError):
            GaussianNoise(2, 0.5, -1.0)

    def test_calc_is_identity(self):
        n = GaussianNoise(3, 1.0, 0.5, rng=np.random.default_rng(0))
        x = np.array([1.0, 2.0, 3.0])
        np.testing.assert_array_equal(n.calc(x).output(), x)

    def test_zero_probability_leaves_input_unchanged(self):
        n = GaussianNoise(5, 0.0, 3.0, rng=np.random.default_rng(0))
        x = np.arange(5, dtype=np.float64)
        np.testing.assert_array_equal(n.forward(x).output(), x)

    def test_zero_sd_leaves_input_unchanged(self):
        n = GaussianNoise(5, 1.0, 0.0, rng=np.random.default_rng(0))
        x = np.arange(5, dtype=np.float64)
        np.testing.assert_allclose(n.forward(x).output(), x)

    def test_backward_multiplies_by_same_mask(self):
        n = GaussianNoise(10, 0.5, 0.2, rng=np.random.default_rng(3))
        x = np.ones(10)
        y = np.array(n.forward(x).output())
        n.backward(x, np.full(10, 2.0))
        np.testing.assert_allclose(n.input_gradient(), 2.0 * y)

    def test_multiplier_statistics(self):
        n = GaussianNoise(50000, 1.0, 0.1, rng=np.random.default_rng(11))
        y = n.forward(np.ones(50000)).output()
        self.assertAlmostEqual(float(np.mean(y)), 1.0, delta=0.01)
        self.assertAlmostEqual(float(np.std(y)), 0.1, delta=0.01)


if __name__ == "__main__":
    unittest.main()
