import unittest

import numpy as np

from src.gradstack.infrastructure._linear import Linear
from src.gradstack.infrastructure._optimizers import SGD, Adam, optimise
from src.gradstack.infrastructure.models._stack import Stack


def _module_with_gradient():
    m = Linear([[1.0, 2.0]], [0.5])
    x = np.array([1.0, -1.0])
    m.forward(x).backward(x, np.array([2.0]))
    return m


class TestOptimiseStep(unittest.TestCase):
    def test_applies_averaged_gradient(self):
        m = _module_with_gradient()
        before = m.parameters().copy()
        grad = m.gradient().copy()
        opt, m2 = optimise(SGD(0.1), m, batch_count=2)
        self.assertIs(m2, m)
        np.testing.assert_allclose(m.parameters(), before - 0.1 * grad / 2.0)

    def test_batch_count_zero_skips_division(self):
        m = _module_with_gradient()
        before = m.parameters().copy()
        grad = m.gradient().copy()
        optimise(SGD(0.1), m, batch_count=0)
        np.testing.assert_allclose(m.parameters(), before - 0.1 * grad)

    def test_gradients_are_zero_afterwards(self):
        m = _module_with_gradient()
        optimise(SGD(0.1), m)
        np.testing.assert_array_equal(m.gradient(), np.zeros(3))

    def test_buffers_follow_parameter_count(self):
        opt = Adam()
        opt, _ = optimise(opt, _module_with_gradient())
        self.assertEqual(opt.size, 3)
        self.assertEqual(opt.step_count, 1)

        bigger = Stack([Linear.from_sizes(2, 3), Linear.from_sizes(3, 1)])
        opt, _ = optimise(opt, bigger)
        self.assertEqual(opt.size, bigger.parameter_count())
        self.assertEqual(opt.step_count, 1)

    def test_zero_gradient_leaves_sgd_parameters_unchanged(self):
        m = Linear([[1.0, 2.0]], [0.5])
        before = m.parameters().copy()
        optimise(SGD(0.1), m)
        np.testing.assert_allclose(m.parameters(), before)


if __name__ == "__main__":
    unittest.main()
