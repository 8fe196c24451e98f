"""Vectorized escape-time rendering on TensorFlow."""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

from .escape import HORIZON
from .renderer import ITERATION_LIMIT, PixelBuffer, _byte_view, _check_buffer


@tf.function
def _mandelbrot_step(
    i: tf.Tensor,
    zr: tf.Tensor,
    zi: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    counts: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Check every live orbit against the horizon, then advance the survivors one step."""

    norm = zr * zr + zi * zi
    escaped = tf.logical_and(active, norm > tf.constant(HORIZON, dtype=norm.dtype))
    counts = tf.where(escaped, tf.fill(tf.shape(counts), i), counts)
    active = tf.logical_and(active, tf.logical_not(escaped))
    zr_new = zr * zr - zi * zi + cr
    zi_new = zr * zi + zi * zr + ci
    zr = tf.where(active, zr_new, zr)
    zi = tf.where(active, zi_new, zi)
    return zr, zi, counts, active


@tf.function
def _mandelbrot_run(cr: tf.Tensor, ci: tf.Tensor, limit: tf.Tensor) -> tf.Tensor:
    """Iterate every point with a TensorFlow while loop; returns escape counts, ``limit`` for members."""

    limit = tf.cast(limit, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    counts = tf.fill(tf.shape(cr), limit)
    active = tf.ones_like(cr, tf.bool)

    def cond(i, zr, zi, counts, active):
        return tf.logical_and(tf.less(i, limit), tf.reduce_any(active))

    def body(i, zr, zi, counts, active):
        zr, zi, counts, active = _mandelbrot_step(i, zr, zi, cr, ci, counts, active)
        return i + 1, zr, zi, counts, active

    _, _, _, counts, _ = tf.while_loop(cond, body, (i, zr, zi, counts, active))
    return counts


def sample_grid(bounds: tuple[int, int], upper_left: complex, lower_right: complex) -> tuple[np.ndarray, np.ndarray]:
    """Return the real and imaginary parts of every pixel's point, shaped ``(height, width)``.

    The arithmetic matches :func:`mandel.plane.pixel_to_point` operation for
    operation so the points are bit-identical.
    """

    width, height = bounds
    plane_width = np.float64(lower_right.real - upper_left.real)
    plane_height = np.float64(upper_left.imag - lower_right.imag)
    columns = np.arange(width, dtype=np.float64)
    rows = np.arange(height, dtype=np.float64)
    re = np.float64(upper_left.real) + columns * plane_width / np.float64(width)
    im = np.float64(upper_left.imag) - rows * plane_height / np.float64(height)
    return np.meshgrid(re, im)


def render_tensor(
    pixels: PixelBuffer,
    bounds: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
    *,
    device: Optional[str] = None,
) -> None:
    """Render like :func:`mandel.renderer.render`, evaluating all pixels at once.

    ``pixels`` must be a byte buffer (``bytearray`` or a flat ``numpy.uint8`` array).
    """

    _check_buffer(pixels, bounds)
    view = _byte_view(pixels)
    if len(pixels) == 0:
        return

    re, im = sample_grid(bounds, upper_left, lower_right)

    with tf.device(device if device is not None else "/CPU:0"):
        cr = tf.convert_to_tensor(re, dtype=tf.float64)
        ci = tf.convert_to_tensor(im, dtype=tf.float64)
        counts = _mandelbrot_run(cr, ci, tf.constant(ITERATION_LIMIT, dtype=tf.int32))
        gray = tf.where(counts < ITERATION_LIMIT, ITERATION_LIMIT - counts, tf.zeros_like(counts))

    flat = gray.numpy().astype(np.uint8).ravel()
    view[:] = flat.tobytes()
