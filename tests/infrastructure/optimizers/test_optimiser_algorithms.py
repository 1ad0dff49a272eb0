import unittest

import numpy as np

from src.gradstack.domain._errors import ConstructionInvariantError, ShapeMismatchError
from src.gradstack.domain._optimizers import IOptimizer
from src.gradstack.infrastructure._optimizers import SGD, AdaDelta, Adam


class TestSGD(unittest.TestCase):
    def test_plain_step(self):
        opt = SGD(0.1)
        p = np.array([1.0, 2.0])
        opt.compute_parameters(np.array([0.5, -1.0]), p)
        np.testing.assert_allclose(opt.parameters(), [0.95, 2.1])
        np.testing.assert_array_equal(p, [1.0, 2.0])

    def test_momentum_accumulates_velocity(self):
        opt = SGD(0.1, momentum=0.5)
        g = np.array([1.0])
        p = np.array([0.0])
        p = opt.compute_parameters(g, p).parameters()
        np.testing.assert_allclose(p, [-0.1])
        p = opt.compute_parameters(g, p).parameters()
        np.testing.assert_allclose(p, [-0.1 - 0.15])

    def test_weight_decay_is_added_to_gradient(self):
        opt = SGD(0.1, weight_decay=0.5)
        opt.compute_parameters(np.array([0.0]), np.array([2.0]))
        np.testing.assert_allclose(opt.parameters(), [2.0 - 0.1 * 1.0])

    def test_invalid_hyperparameters_raise(self):
        with self.assertRaises(ConstructionInvariantError):
            SGD(0.0)
        with self.assertRaises(ConstructionInvariantError):
            SGD(0.1, momentum=1.0)
        with self.assertRaises(ConstructionInvariantError):
            SGD(0.1, weight_decay=-1.0)

    def test_length_mismatch_raises(self):
        with self.assertRaises(ShapeMismatchError):
            SGD(0.1).compute_parameters(np.zeros(2), np.zeros(3))

    def test_satisfies_protocol(self):
        self.assertIsInstance(SGD(0.1), IOptimizer)


class TestAdam(unittest.TestCase):
    def test_first_step_moves_by_learning_rate(self):
        opt = Adam(learn_rate=0.01)
        opt.compute_parameters(np.array([3.0, -0.2]), np.array([1.0, 1.0]))
        np.testing.assert_allclose(opt.parameters(), [0.99, 1.01], rtol=1e-6)
        self.assertEqual(opt.step_count, 1)

    def test_resize_resets_state(self):
        opt = Adam()
        opt.compute_parameters(np.ones(2), np.zeros(2))
        opt.compute_parameters(np.ones(2), opt.parameters())
        self.assertEqual(opt.step_count, 2)
        opt.compute_parameters(np.ones(3), np.zeros(3))
        self.assertEqual(opt.step_count, 1)
        self.assertEqual(opt.size, 3)

    def test_same_size_keeps_state(self):
        opt = Adam()
        opt.resize(4)
        opt.compute_parameters(np.ones(4), np.zeros(4))
        opt.resize(4)
        self.assertEqual(opt.step_count, 1)

    def test_invalid_hyperparameters_raise(self):
        with self.assertRaises(ConstructionInvariantError):
            Adam(learn_rate=-1.0)
        with self.assertRaises(ConstructionInvariantError):
            Adam(betas=(1.0, 0.999))
        with self.assertRaises(ConstructionInvariantError):
            Adam(eps=0.0)


class TestAdaDelta(unittest.TestCase):
    def test_first_step(self):
        d, eps = 0.1, 1e-6
        opt = AdaDelta(decay=d, epsilon=eps)
        g = np.array([2.0, -1.0])
        opt.compute_parameters(g, np.zeros(2))
        expected = -np.sqrt(eps) / np.sqrt(d * g * g + eps) * g
        np.testing.assert_allclose(opt.parameters(), expected)

    def test_step_size_grows_from_accumulated_updates(self):
        opt = AdaDelta()
        g = np.array([1.0])
        p = np.zeros(1)
        steps = []
        for _ in range(5):
            new = opt.compute_parameters(g, p).parameters()
            steps.append(float(p[0] - new[0]))
            p = new
        self.assertTrue(all(s > 0.0 for s in steps))
        self.assertGreater(steps[-1], steps[0])

    def test_invalid_hyperparameters_raise(self):
        with self.assertRaises(ConstructionInvariantError):
            AdaDelta(decay=0.0)
        with self.assertRaises(ConstructionInvariantError):
            AdaDelta(epsilon=0.0)


if __name__ == "__main__":
    unittest.main()
