import unittest

import numpy as np

from src.gradstack.domain._windowing import ConvolutionConfig
from src.gradstack.infrastructure.ops.conv2d_cpu import col2im, im2col
from src.gradstack.infrastructure.ops.pool2d_cpu import window_index_map


def _cfg(**kw):
    base = dict(
        input_width=4,
        input_height=3,
        num_input_channels=2,
        kernel_width=2,
        kernel_height=2,
        pad_x=1,
        pad_y=0,
        stride_x=2,
        stride_y=1,
    )
    base.update(kw)
    return ConvolutionConfig(**base)


class TestIm2Col(unittest.TestCase):
    def test_shape(self):
        cfg = _cfg()
        cols = im2col(np.zeros(cfg.input_size), cfg)
        self.assertEqual(cols.shape, (cfg.window_count, cfg.patch_size))

    def test_rows_are_channel_major_patches(self):
        cfg = _cfg(pad_x=0, stride_x=1)
        x = np.arange(cfg.input_size, dtype=np.float64)
        cols = im2col(x, cfg)
        planes = x.reshape(2, 3, 4)
        # window (oy=1, ox=2) is row 1 * output_width + 2
        row = cols[1 * cfg.output_width + 2]
        np.testing.assert_array_equal(row, planes[:, 1:3, 2:4].ravel())

    def test_padding_uses_fill_value(self):
        cfg = _cfg()
        cols = im2col(np.ones(cfg.input_size), cfg, fill=-7.0)
        # the first window starts in the left padding column
        first = cols[0].reshape(2, 2, 2)
        np.testing.assert_array_equal(first[:, :, 0], -7.0)
        np.testing.assert_array_equal(first[:, :, 1], 1.0)


class TestCol2Im(unittest.TestCase):
    def test_is_adjoint_of_im2col(self):
        cfg = _cfg()
        rng = np.random.default_rng(3)
        x = rng.standard_normal(cfg.input_size)
        c = rng.standard_normal((cfg.window_count, cfg.patch_size))
        lhs = float(np.sum(im2col(x, cfg) * c))
        rhs = float(np.dot(x, col2im(c, cfg)))
        self.assertAlmostEqual(lhs, rhs, places=10)

    def test_overlapping_windows_accumulate(self):
        cfg = ConvolutionConfig(
            input_width=3, input_height=1, num_input_channels=1,
            kernel_width=2, kernel_height=1,
        )
        out = col2im(np.ones((cfg.window_count, cfg.patch_size)), cfg)
        np.testing.assert_array_equal(out, [1.0, 2.0, 1.0])


class TestWindowIndexMap(unittest.TestCase):
    def test_padding_cells_are_marked(self):
        cfg = ConvolutionConfig(
            input_width=2, input_height=1, num_input_channels=1,
            kernel_width=2, kernel_height=1, pad_x=1, stride_x=2,
        )
        idx = window_index_map(cfg)
        self.assertEqual(idx.shape, (2, 1, 2))
        np.testing.assert_array_equal(idx[:, 0, :], [[-1, 0], [1, -1]])


if __name__ == "__main__":
    unittest.main()
