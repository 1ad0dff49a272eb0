import unittest

import numpy as np

from src.gradstack.domain._errors import ConstructionInvariantError, ShapeMismatchError
from src.gradstack.infrastructure._activations import Scale
from src.gradstack.infrastructure._linear import Linear
from src.gradstack.infrastructure.models._split import Split


class TestSplitConstruction(unittest.TestCase):
    def test_empty_raises(self):
        with self.assertRaises(ConstructionInvariantError):
            Split([])

    def test_input_shape_mismatch_raises(self):
        with self.assertRaises(ShapeMismatchError):
            Split([Scale(2, 2.0), Scale(3, 2.0)])

    def test_output_size_is_sum_of_members(self):
        s = Split([Linear.from_sizes(3, 2), Linear.from_sizes(3, 4)])
        self.assertEqual(s.input_shape, (3,))
        self.assertEqual(s.output_shape, (6,))
        self.assertEqual(len(s), 2)


class TestSplitPasses(unittest.TestCase):
    def test_outputs_are_concatenated_in_order(self):
        s = Split([Scale(2, 2.0), Scale(2, -1.0, 1.0)])
        np.testing.assert_allclose(s(np.array([1.0, 3.0])), [2.0, 6.0, 0.0, -2.0])

    def test_input_gradients_are_summed(self):
        s = Split([Scale(2, 2.0), Scale(2, -1.0)])
        x = np.array([1.0, 3.0])
        s.forward(x).backward(x, np.array([1.0, 1.0, 5.0, 0.0]))
        np.testing.assert_allclose(s.input_gradient(), [2.0 - 5.0, 2.0])

    def test_members_receive_their_gradient_slice(self):
        a = Linear([[1.0, 0.0]], [0.0])
        b = Linear([[0.0, 1.0], [1.0, 1.0]], [0.0, 0.0])
        s = Split([a, b])
        x = np.array([2.0, 3.0])
        s.forward(x).backward(x, np.array([1.0, 10.0, 100.0]))
        np.testing.assert_allclose(a.bias.grad, [1.0])
        np.testing.assert_allclose(b.bias.grad, [10.0, 100.0])


if __name__ == "__main__":
    unittest.main()
