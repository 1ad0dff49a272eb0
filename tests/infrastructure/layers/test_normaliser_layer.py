import unittest

import numpy as np

from src.gradstack.domain._errors import ConstructionInvariantError
from src.gradstack.infrastructure.layers._normaliser import Normaliser


class TestNormaliser(unittest.TestCase):
    def test_starts_as_identity_for_calc(self):
        n = Normaliser(3)
        x = np.array([1.0, -2.0, 3.0])
        np.testing.assert_allclose(n.calc(x).output(), x)

    def test_calc_does_not_update_statistics(self):
        n = Normaliser(2, learn_rate=0.5)
        n.calc(np.array([4.0, 4.0]))
        np.testing.assert_array_equal(n.acc_mean, [0.0, 0.0])
        np.testing.assert_array_equal(n.acc_ss, [1.0, 1.0])

    def test_forward_updates_then_normalises(self):
        n = Normaliser(1, learn_rate=0.5, min_sd=1e-3)
        x = np.array([2.0])
        y = n.forward(x).output()
        # acc_mean = 0 + 0.5 * (2 - 0) = 1 ; acc_ss = 1 + 0.5 * (4 - 1) = 2.5
        np.testing.assert_allclose(n.acc_mean, [1.0])
        np.testing.assert_allclose(n.acc_ss, [2.5])
        np.testing.assert_allclose(n.mean, [1.0])
        np.testing.assert_allclose(n.sd, [np.sqrt(1.5)])
        np.testing.assert_allclose(y, [(2.0 - 1.0) / np.sqrt(1.5)])

    def test_refresh_every_delays_statistics(self):
        n = Normaliser(1, learn_rate=0.5, refresh_every=2)
        n.forward(np.array([2.0]))
        np.testing.assert_allclose(n.mean, [0.0])
        np.testing.assert_allclose(n.sd, [1.0])
        n.forward(np.array([2.0]))
        np.testing.assert_allclose(n.mean, [1.5])

    def test_sd_is_floored(self):
        n = Normaliser(1, learn_rate=1.0, min_sd=0.5)
        n.forward(np.array([3.0]))
        # variance = 9 - 9 = 0 -> sd = min_sd
        np.testing.assert_allclose(n.sd, [0.5])

    def test_backward_divides_by_sd(self):
        n = Normaliser(1, learn_rate=0.5)
        x = np.array([2.0])
        n.forward(x).backward(x, np.array([3.0]))
        np.testing.assert_allclose(n.input_gradient(), [3.0 / np.sqrt(1.5)])

    def test_converges_to_input_distribution(self):
        rng = np.random.default_rng(0)
        n = Normaliser(2, learn_rate=0.002)
        for _ in range(8000):
            n.forward(rng.normal([1.0, -1.0], [2.0, 0.5]))
        np.testing.assert_allclose(n.mean, [1.0, -1.0], atol=0.3)
        np.testing.assert_allclose(n.sd, [2.0, 0.5], rtol=0.25)

    def test_has_no_trainable_parameters(self):
        n = Normaliser(4)
        self.assertEqual(n.parameter_count(), 0)
        self.assertEqual(
            [name for name, _ in n.named_buffers()],
            ["mean", "sd", "acc_mean", "acc_ss", "steps"],
        )

    def test_invalid_arguments_raise(self):
        with self.assertRaises(ConstructionInvariantError):
            Normaliser(2, learn_rate=0.0)
        with self.assertRaises(ConstructionInvariantError):
            Normaliser(2, refresh_every=0)
        with self.assertRaises(ConstructionInvariantError):
            Normaliser(2, min_sd=0.0)


if __name__ == "__main__":
    unittest.main()
