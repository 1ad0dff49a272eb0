import unittest

import numpy as np

from src.gradstack.domain._errors import ShapeMismatchError, StatePreconditionError
from src.gradstack.domain._module import IModule
from src.gradstack.domain._windowing import ConvolutionConfig
from src.gradstack.infrastructure._activations import (
    Logistic,
    RectifiedLinear,
    Scale,
    Softmax,
    Softplus,
    Tanh,
)
from src.gradstack.infrastructure._autoencoder import Autoencoder
from src.gradstack.infrastructure._linear import Linear
from src.gradstack.infrastructure._module import Module
from src.gradstack.infrastructure._parameter import Parameter
from src.gradstack.infrastructure.convolution._convolution_module import Convolution
from src.gradstack.infrastructure.layers._dropout import Dropout
from src.gradstack.infrastructure.layers._noise import GaussianNoise
from src.gradstack.infrastructure.layers._normaliser import Normaliser
from src.gradstack.infrastructure.models._combine import Combine, FunctionModule
from src.gradstack.infrastructure.models._split import Split
from src.gradstack.infrastructure.models._stack import Stack
from src.gradstack.infrastructure.pooling._pooling_module import MaxPooling


class CountingAffine(Module):
    """y = w * x with one scalar parameter; counts `_calc` invocations."""

    def __init__(self, n):
        super().__init__(n, n)
        self.w = Parameter(np.array([2.0]))
        self.calls = 0

    def _calc(self, x):
        self.calls += 1
        self._output[...] = self.w.data[0] * x

    def _backward(self, x, g):
        self.w.accumulate_grad(np.array([np.sum(g * x)]))
        self._input_grad[...] = self.w.data[0] * g


def _two_layer_stack():
    l1 = Linear([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]], [0.1, 0.2, 0.3])
    l2 = Linear([[1.0, -1.0, 0.5]], [7.0])
    return Stack([l1, l2]), l1, l2


def _every_module(rng):
    conv_cfg = ConvolutionConfig(
        input_width=4, input_height=3, num_input_channels=2,
        kernel_width=2, kernel_height=2, pad_x=1, num_kernels=3,
    )
    pool_cfg = ConvolutionConfig(
        input_width=4, input_height=4, num_input_channels=1,
        kernel_width=2, kernel_height=2, stride_x=2, stride_y=2,
    )
    return [
        Logistic(3),
        Tanh(3),
        Softplus(3),
        Softmax(3),
        RectifiedLinear(3, negval=0.1),
        Scale(3, 2.0, 1.0),
        Dropout(3, 0.5, rng=rng),
        GaussianNoise(3, 0.5, 0.2, rng=rng),
        Linear.from_sizes(3, 2, rng=rng),
        Convolution(conv_cfg, rng=rng),
        MaxPooling(pool_cfg),
        Normaliser((2, 3), learn_rate=0.5),
        Autoencoder(Linear.from_sizes(3, 2, rng=rng), Linear.from_sizes(2, 3, rng=rng)),
        Stack([Linear.from_sizes(3, 4, rng=rng), Tanh(4), Linear.from_sizes(4, 2, rng=rng)]),
        Split([Linear.from_sizes(3, 2, rng=rng), Logistic(3)]),
        FunctionModule(np.tanh, (2, 2), gradient_fn=lambda x, g: g * (1.0 - np.tanh(x) ** 2)),
        Combine(
            lambda a, b: a * np.sum(b),
            [2, (1, 3)],
            gradient_fn=lambda xs, g: (g * np.sum(xs[1]), np.full((1, 3), np.dot(g, xs[0]))),
        ),
        Combine(
            lambda a, b: a + b,
            modules=[Linear.from_sizes(3, 2, rng=rng), Linear.from_sizes(3, 2, rng=rng)],
            gradient_fn=lambda xs, g: (g, g),
        ),
    ]


def _sample_input(module, rng):
    shape = module.input_shape
    if shape and isinstance(shape[0], tuple):
        return tuple(rng.normal(size=s) for s in shape)
    return rng.normal(size=shape)


class TestModuleStatePreconditions(unittest.TestCase):
    def test_output_before_calc_raises(self):
        with self.assertRaises(StatePreconditionError):
            Logistic(3).output()

    def test_input_gradient_before_backward_raises(self):
        m = Logistic(3)
        m.calc(np.zeros(3))
        with self.assertRaises(StatePreconditionError):
            m.input_gradient()

    def test_backward_before_forward_raises(self):
        with self.assertRaises(StatePreconditionError):
            Logistic(3).backward(np.zeros(3), np.ones(3))


class TestModuleShapeChecks(unittest.TestCase):
    def test_calc_rejects_wrong_input_shape(self):
        with self.assertRaises(ShapeMismatchError):
            Logistic(3).calc(np.zeros(4))

    def test_forward_rejects_wrong_input_shape(self):
        with self.assertRaises(ShapeMismatchError):
            Logistic(3).forward(np.zeros((3, 1)))

    def test_backward_rejects_wrong_gradient_shape(self):
        m = Logistic(3)
        m.forward(np.zeros(3))
        with self.assertRaises(ShapeMismatchError):
            m.backward(np.zeros(3), np.ones(2))

    def test_backward_input_gradient_has_input_shape(self):
        stack, _, _ = _two_layer_stack()
        x = np.array([1.0, 2.0])
        stack.forward(x)
        stack.backward(x, np.array([1.0]))
        self.assertEqual(stack.input_gradient().shape, stack.input_shape)
        self.assertEqual(stack.output().shape, stack.output_shape)

    def test_every_module_returns_input_gradient_of_input_shape(self):
        rng = np.random.default_rng(0)
        for module in _every_module(rng):
            with self.subTest(module=type(module).__name__):
                x = _sample_input(module, rng)
                module.forward(x)
                self.assertEqual(module.output().shape, module.output_shape)
                module.backward(x, rng.normal(size=module.output_shape))
                grad = module.input_gradient()
                if isinstance(x, tuple):
                    self.assertIsInstance(grad, tuple)
                    self.assertEqual(tuple(g.shape for g in grad), module.input_shape)
                else:
                    self.assertEqual(grad.shape, x.shape)
                    self.assertEqual(grad.shape, module.input_shape)


class TestModuleBuffers(unittest.TestCase):
    def test_output_is_read_only(self):
        m = Logistic(2)
        out = m.calc(np.zeros(2)).output()
        with self.assertRaises(ValueError):
            out[0] = 1.0

    def test_input_gradient_is_read_only(self):
        m = Logistic(2)
        m.forward(np.zeros(2)).backward(np.zeros(2), np.ones(2))
        with self.assertRaises(ValueError):
            m.input_gradient()[0] = 1.0

    def test_call_returns_calc_output(self):
        m = Logistic(1)
        np.testing.assert_allclose(m(np.zeros(1)), [0.5])


class TestCalcIdempotence(unittest.TestCase):
    def test_repeated_calc_with_equal_input_is_noop(self):
        m = CountingAffine(2)
        m.calc(np.array([1.0, 2.0]))
        m.calc(np.array([1.0, 2.0]))
        self.assertEqual(m.calls, 1)
        np.testing.assert_allclose(m.output(), [2.0, 4.0])

    def test_calc_with_new_input_recomputes(self):
        m = CountingAffine(2)
        m.calc(np.array([1.0, 2.0]))
        m.calc(np.array([1.0, 3.0]))
        self.assertEqual(m.calls, 2)

    def test_calc_snapshot_is_not_aliased_to_caller_array(self):
        m = CountingAffine(2)
        x = np.array([1.0, 2.0])
        m.calc(x)
        x[0] = 5.0
        m.calc(x)
        self.assertEqual(m.calls, 2)
        np.testing.assert_allclose(m.output(), [10.0, 4.0])

    def test_forward_invalidates_calc_cache(self):
        m = CountingAffine(2)
        x = np.array([1.0, 2.0])
        m.calc(x)
        m.forward(x)
        m.calc(x)
        self.assertEqual(m.calls, 3)

    def test_update_parameters_invalidates_calc_cache(self):
        m = CountingAffine(2)
        x = np.array([1.0, 2.0])
        m.calc(x)
        m.update_parameters(np.array([3.0]))
        m.calc(x)
        self.assertEqual(m.calls, 2)
        np.testing.assert_allclose(m.output(), [3.0, 6.0])

    def test_container_calc_sees_member_parameter_update(self):
        def stack(l):
            return Stack([l])

        def split(l):
            return Split([l])

        def autoencoder(l):
            return Autoencoder(l, Linear([[1.0]], [0.0]))

        for build in (stack, split, autoencoder):
            with self.subTest(container=build.__name__):
                l = Linear([[1.0]], [0.0])
                container = build(l)
                np.testing.assert_allclose(container.calc([2.0]).output(), [2.0])
                l.update_parameters([3.0, 0.0])
                np.testing.assert_allclose(container.calc([2.0]).output(), [6.0])

    def test_container_calc_sees_member_forward(self):
        n = Normaliser(1, learn_rate=0.5)
        s = Stack([n])
        np.testing.assert_allclose(s.calc([2.0]).output(), [2.0])
        # acc_mean = 1, acc_ss = 2.5, so mean = 1 and sd = sqrt(1.5)
        n.forward([2.0])
        np.testing.assert_allclose(s.calc([2.0]).output(), [1.0 / np.sqrt(1.5)])

    def test_container_recalc_reuses_member_caches(self):
        inner = CountingAffine(2)
        s = Stack([inner])
        s.calc(np.array([1.0, 2.0]))
        s.calc(np.array([1.0, 2.0]))
        self.assertEqual(inner.calls, 1)


class TestParameterPacking(unittest.TestCase):
    def test_parameters_are_pre_order_concatenation(self):
        stack, l1, l2 = _two_layer_stack()
        expected = np.concatenate(
            [
                l1.weight.data.ravel(),
                l1.bias.data,
                l2.weight.data.ravel(),
                l2.bias.data,
            ]
        )
        np.testing.assert_allclose(stack.parameters(), expected)
        self.assertEqual(stack.parameter_count(), expected.size)
        self.assertEqual(stack.gradient().shape, expected.shape)

    def test_named_parameters_follow_registration_order(self):
        stack, _, _ = _two_layer_stack()
        names = [n for n, _ in stack.named_parameters()]
        self.assertEqual(names, ["0.weight", "0.bias", "1.weight", "1.bias"])

    def test_parameterless_module_has_empty_vectors(self):
        m = Logistic(4)
        self.assertEqual(m.parameters().shape, (0,))
        self.assertEqual(m.gradient().shape, (0,))
        self.assertEqual(m.parameter_count(), 0)

    def test_update_parameters_round_trip(self):
        stack, _, _ = _two_layer_stack()
        before = stack.parameters().copy()
        stack.update_parameters(before)
        np.testing.assert_allclose(stack.parameters(), before)

    def test_update_parameters_writes_in_packing_order(self):
        stack, l1, l2 = _two_layer_stack()
        flat = np.arange(stack.parameter_count(), dtype=np.float64)
        stack.update_parameters(flat)
        np.testing.assert_allclose(l1.weight.data.ravel(), flat[:6])
        np.testing.assert_allclose(l1.bias.data, flat[6:9])
        np.testing.assert_allclose(l2.weight.data.ravel(), flat[9:12])
        np.testing.assert_allclose(l2.bias.data, flat[12:])

    def test_update_parameters_rejects_wrong_length(self):
        stack, _, _ = _two_layer_stack()
        with self.assertRaises(ShapeMismatchError):
            stack.update_parameters(np.zeros(stack.parameter_count() + 1))

    def test_update_parameters_zeroes_gradients(self):
        stack, _, _ = _two_layer_stack()
        x = np.array([1.0, -1.0])
        stack.forward(x).backward(x, np.array([1.0]))
        self.assertTrue(np.any(stack.gradient() != 0.0))
        stack.update_parameters(stack.parameters())
        np.testing.assert_array_equal(stack.gradient(), np.zeros(stack.parameter_count()))

    def test_gradients_accumulate_across_backward_calls(self):
        m = Linear([[1.0, 2.0]], [0.0])
        x = np.array([3.0, 4.0])
        m.forward(x).backward(x, np.array([1.0]))
        once = m.gradient().copy()
        m.backward(x, np.array([1.0]))
        np.testing.assert_allclose(m.gradient(), 2.0 * once)


class TestClone(unittest.TestCase):
    def test_clone_shares_no_state(self):
        stack, _, _ = _two_layer_stack()
        original = stack.parameters().copy()
        twin = stack.clone()
        twin.update_parameters(np.zeros(twin.parameter_count()))
        np.testing.assert_allclose(stack.parameters(), original)
        np.testing.assert_allclose(twin.parameters(), 0.0)

    def test_clone_computes_same_output(self):
        stack, _, _ = _two_layer_stack()
        x = np.array([0.5, -0.25])
        np.testing.assert_allclose(stack.clone()(x), stack(x))


class TestProtocolConformance(unittest.TestCase):
    def test_modules_satisfy_imodule(self):
        stack, l1, _ = _two_layer_stack()
        self.assertIsInstance(stack, IModule)
        self.assertIsInstance(l1, IModule)
        self.assertIsInstance(Logistic(2), IModule)


if __name__ == "__main__":
    unittest.main()
