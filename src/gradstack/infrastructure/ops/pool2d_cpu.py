"""
CPU (NumPy) max-pooling kernels over a single planar input.

Design notes
------------
- Windows are gathered with the same `im2col` used by convolution, padded
  with ``-inf`` so padded cells never become maxima.
- The forward pass returns, next to the output, the flat input index each
  window's maximum came from. Ties resolve to the first maximal element in
  ``(ky, kx)`` order, and the backward pass routes gradients to exactly that
  index.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from ...domain._windowing import ConvolutionConfig
from .conv2d_cpu import im2col


def window_index_map(cfg: ConvolutionConfig) -> np.ndarray:
    """
    Map each ``(window, channel, kernel offset)`` cell to its flat input
    index, or ``-1`` for padding.

    Returns
    -------
    np.ndarray
        Integer array of shape
        ``(window_count, num_input_channels, kernel_height * kernel_width)``.
    """
    idx = im2col(np.arange(cfg.input_size, dtype=np.int64), cfg, fill=-1)
    return idx.reshape(
        cfg.window_count,
        cfg.num_input_channels,
        cfg.kernel_height * cfg.kernel_width,
    )


def maxpool2d_forward_cpu(
    x_flat: np.ndarray, cfg: ConvolutionConfig, index_map: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Max pooling forward pass.

    Parameters
    ----------
    x_flat : np.ndarray
        Planar input vector of length ``cfg.input_size``.
    cfg : ConvolutionConfig
        Window geometry.
    index_map : np.ndarray
        Output of `window_index_map(cfg)`.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        y :
            Planar output of length ``num_input_channels * window_count``.
        argmax_idx :
            Integer array ``(window_count, num_input_channels)`` of flat input
            indices that produced each maximum.
    """
    C = cfg.num_input_channels
    patches = im2col(np.asarray(x_flat, dtype=np.float64), cfg, fill=-np.inf)
    patches = patches.reshape(cfg.window_count, C, -1)

    arg = np.argmax(patches, axis=2)
    y = np.take_along_axis(patches, arg[:, :, None], axis=2)[:, :, 0]
    argmax_idx = np.take_along_axis(index_map, arg[:, :, None], axis=2)[:, :, 0]

    return y.T.reshape(-1), argmax_idx


def maxpool2d_backward_cpu(
    grad_out: np.ndarray, argmax_idx: np.ndarray, cfg: ConvolutionConfig
) -> np.ndarray:
    """
    Max pooling backward pass.

    Each window's gradient goes to the input element recorded in
    `argmax_idx`; elements that win several overlapping windows receive the
    sum.

    Returns
    -------
    np.ndarray
        Input gradient vector of length ``cfg.input_size``.
    """
    G = np.asarray(grad_out).reshape(cfg.num_input_channels, cfg.window_count).T
    grad_x = np.zeros(cfg.input_size, dtype=np.float64)
    np.add.at(grad_x, argmax_idx.ravel(), G.ravel())
    return grad_x
