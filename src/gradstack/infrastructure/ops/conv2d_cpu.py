"""
CPU (NumPy) windowing kernels for convolution.

This module implements convolution over a single planar input vector as
patch extraction followed by a matrix multiply:

1. `im2col` gathers every window into a row of a
   ``(window_count, patch_size)`` matrix.
2. The layer's ``(num_kernels, patch_size)`` weight matrix is applied to all
   rows at once, plus the bias.
3. `col2im` scatters patch gradients back onto the input, summing the
   contributions of overlapping windows.

Layout
------
- Input vector: ``(C, H, W)`` planar, flattened row-major.
- Patch row: ``(C, ky, kx)`` flattened row-major.
- Window index: ``oy * out_w + ox``.
- Output vector: ``(num_kernels, out_h, out_w)`` planar, flattened.

The loops run over kernel offsets only (``kh * kw`` iterations); each
iteration copies a strided slab covering every window at once.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from ...domain._windowing import ConvolutionConfig


def _padded(x_flat: np.ndarray, cfg: ConvolutionConfig, fill) -> np.ndarray:
    x = np.asarray(x_flat).reshape(
        cfg.num_input_channels, cfg.input_height, cfg.input_width
    )
    if cfg.pad_x == 0 and cfg.pad_y == 0:
        return x
    return np.pad(
        x,
        pad_width=((0, 0), (cfg.pad_y, cfg.pad_y), (cfg.pad_x, cfg.pad_x)),
        mode="constant",
        constant_values=fill,
    )


def im2col(x_flat: np.ndarray, cfg: ConvolutionConfig, fill=0) -> np.ndarray:
    """
    Gather all windows of a planar input into a patch matrix.

    Parameters
    ----------
    x_flat : np.ndarray
        Planar input vector of length ``cfg.input_size``.
    cfg : ConvolutionConfig
        Window geometry.
    fill : scalar, optional
        Value used for padding cells. Default 0.

    Returns
    -------
    np.ndarray
        Matrix of shape ``(cfg.window_count, cfg.patch_size)`` with the same
        dtype as `x_flat`.
    """
    xp = _padded(x_flat, cfg, fill)
    C = cfg.num_input_channels
    k_h, k_w = cfg.kernel_height, cfg.kernel_width
    s_h, s_w = cfg.stride_y, cfg.stride_x
    H_out, W_out = cfg.output_height, cfg.output_width

    cols = np.empty((C, k_h, k_w, H_out, W_out), dtype=xp.dtype)
    for ky in range(k_h):
        y_end = ky + s_h * H_out
        for kx in range(k_w):
            x_end = kx + s_w * W_out
            cols[:, ky, kx, :, :] = xp[:, ky:y_end:s_h, kx:x_end:s_w]

    return cols.reshape(cfg.patch_size, cfg.window_count).T


def col2im(cols: np.ndarray, cfg: ConvolutionConfig) -> np.ndarray:
    """
    Scatter-add a patch matrix back onto a planar input vector.

    Parameters
    ----------
    cols : np.ndarray
        Matrix of shape ``(cfg.window_count, cfg.patch_size)``.
    cfg : ConvolutionConfig
        Window geometry.

    Returns
    -------
    np.ndarray
        Planar vector of length ``cfg.input_size``. Padding cells are
        discarded; overlapping windows accumulate.
    """
    C = cfg.num_input_channels
    k_h, k_w = cfg.kernel_height, cfg.kernel_width
    s_h, s_w = cfg.stride_y, cfg.stride_x
    H_out, W_out = cfg.output_height, cfg.output_width
    H_pad = cfg.input_height + 2 * cfg.pad_y
    W_pad = cfg.input_width + 2 * cfg.pad_x

    cols6 = np.asarray(cols).T.reshape(C, k_h, k_w, H_out, W_out)
    xp = np.zeros((C, H_pad, W_pad), dtype=cols6.dtype)
    for ky in range(k_h):
        y_end = ky + s_h * H_out
        for kx in range(k_w):
            x_end = kx + s_w * W_out
            xp[:, ky:y_end:s_h, kx:x_end:s_w] += cols6[:, ky, kx, :, :]

    x = xp[
        :,
        cfg.pad_y : cfg.pad_y + cfg.input_height,
        cfg.pad_x : cfg.pad_x + cfg.input_width,
    ]
    return np.ascontiguousarray(x).reshape(-1)


def conv2d_forward_cpu(
    x_flat: np.ndarray,
    w: np.ndarray,
    b: Optional[np.ndarray],
    cfg: ConvolutionConfig,
) -> np.ndarray:
    """
    Compute a convolution of one planar input.

    Parameters
    ----------
    x_flat : np.ndarray
        Planar input vector of length ``cfg.input_size``.
    w : np.ndarray
        Kernel matrix of shape ``(cfg.num_kernels, cfg.patch_size)``.
    b : Optional[np.ndarray]
        Bias of shape ``(cfg.num_kernels,)``, or None.
    cfg : ConvolutionConfig
        Window geometry.

    Returns
    -------
    np.ndarray
        Planar output vector of length ``num_kernels * window_count``.
    """
    patches = im2col(x_flat, cfg)
    out = patches @ w.T
    if b is not None:
        out += b
    return out.T.reshape(-1)


def conv2d_backward_cpu(
    x_flat: np.ndarray,
    w: np.ndarray,
    grad_out: np.ndarray,
    cfg: ConvolutionConfig,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Compute convolution gradients for one planar input.

    Parameters
    ----------
    x_flat : np.ndarray
        Input used in the forward pass.
    w : np.ndarray
        Kernel matrix used in the forward pass.
    grad_out : np.ndarray
        Planar output gradient of length ``num_kernels * window_count``.
    cfg : ConvolutionConfig
        Window geometry.

    Returns
    -------
    tuple[np.ndarray, np.ndarray, np.ndarray]
        ``(grad_x, grad_w, grad_b)`` with the shapes of the input vector, the
        kernel matrix and the bias.
    """
    patches = im2col(x_flat, cfg)
    G = np.asarray(grad_out).reshape(cfg.num_kernels, cfg.window_count).T
    grad_w = G.T @ patches
    grad_b = G.sum(axis=0)
    grad_x = col2im(G @ w, cfg)
    return grad_x, grad_w, grad_b
