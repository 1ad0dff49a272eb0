import io
import unittest
from contextlib import redirect_stdout

import numpy as np

from src.gradstack.infrastructure._linear import Linear
from src.gradstack.infrastructure._losses import MSELoss, SSELoss
from src.gradstack.infrastructure._optimizers import SGD
from src.gradstack.infrastructure.models._history import History
from src.gradstack.infrastructure.models._training import evaluate, fit, train_on_batch


def _line_data(n=8):
    xs = np.linspace(-1.0, 1.0, n)
    inputs = [np.array([x]) for x in xs]
    targets = [np.array([2.0 * x + 1.0]) for x in xs]
    return inputs, targets


class TestTrainOnBatch(unittest.TestCase):
    def test_single_step_uses_mean_gradient(self):
        m = Linear([[1.0]], [0.0])
        logs = train_on_batch(
            m,
            SGD(0.1),
            [np.array([1.0]), np.array([2.0])],
            [np.array([0.0]), np.array([0.0])],
            SSELoss(),
        )
        self.assertAlmostEqual(logs["loss"], 2.5)
        np.testing.assert_allclose(m.weight.data, [[0.5]])
        np.testing.assert_allclose(m.bias.data, [-0.3])
        np.testing.assert_array_equal(m.gradient(), np.zeros(2))

    def test_empty_batch_raises(self):
        with self.assertRaises(ValueError):
            train_on_batch(Linear([[1.0]], [0.0]), SGD(0.1), [], [], MSELoss())

    def test_length_mismatch_raises(self):
        with self.assertRaises(ValueError):
            train_on_batch(
                Linear([[1.0]], [0.0]), SGD(0.1), [np.zeros(1)], [], MSELoss()
            )


class TestEvaluate(unittest.TestCase):
    def test_mean_loss_without_updates(self):
        m = Linear([[1.0]], [0.0])
        before = m.parameters().copy()
        value = evaluate(
            m,
            [np.array([1.0]), np.array([3.0])],
            [np.array([0.0]), np.array([0.0])],
            SSELoss(),
        )
        self.assertAlmostEqual(value, 5.0)
        np.testing.assert_allclose(m.parameters(), before)


class TestFit(unittest.TestCase):
    def test_learns_a_line(self):
        inputs, targets = _line_data()
        m = Linear([[0.0]], [0.0])
        hist = fit(
            m,
            SGD(0.05),
            inputs,
            targets,
            loss=MSELoss(),
            batch_size=4,
            epochs=300,
            rng=np.random.default_rng(0),
            verbose=0,
        )
        self.assertIsInstance(hist, History)
        self.assertEqual(len(hist.history["loss"]), 300)
        self.assertLess(hist.history["loss"][-1], hist.history["loss"][0])
        np.testing.assert_allclose(m.weight.data, [[2.0]], atol=1e-3)
        np.testing.assert_allclose(m.bias.data, [1.0], atol=1e-3)

    def test_validation_loss_is_recorded(self):
        inputs, targets = _line_data()
        hist = fit(
            Linear([[0.0]], [0.0]),
            SGD(0.05),
            inputs,
            targets,
            loss=MSELoss(),
            epochs=2,
            validation_data=(inputs, targets),
            shuffle=False,
            verbose=0,
        )
        self.assertEqual(hist.epoch, [0, 1])
        self.assertIn("val_loss", hist.last())
        self.assertEqual(len(hist.history["val_loss"]), 2)

    def test_verbose_prints_epoch_lines(self):
        inputs, targets = _line_data(4)
        buf = io.StringIO()
        with redirect_stdout(buf):
            fit(
                Linear([[0.0]], [0.0]),
                SGD(0.05),
                inputs,
                targets,
                loss=MSELoss(),
                epochs=2,
                rng=np.random.default_rng(1),
            )
        text = buf.getvalue()
        self.assertIn("Epoch 1/2", text)
        self.assertIn("Epoch 2/2", text)
        self.assertIn("seen: 4", text)

    def test_invalid_arguments_raise(self):
        inputs, targets = _line_data(2)
        m = Linear([[0.0]], [0.0])
        with self.assertRaises(ValueError):
            fit(m, SGD(0.1), inputs, targets, loss=MSELoss(), epochs=0, verbose=0)
        with self.assertRaises(ValueError):
            fit(m, SGD(0.1), inputs, targets, loss=MSELoss(), batch_size=0, verbose=0)
        with self.assertRaises(ValueError):
            fit(m, SGD(0.1), [], [], loss=MSELoss(), verbose=0)


if __name__ == "__main__":
    unittest.main()
