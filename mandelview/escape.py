"""Escape-time evaluation of the Mandelbrot iteration."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
import tensorflow as tf

# Escape test is |z|^2 > HORIZON.
HORIZON = 4.0
ESCAPE_RADIUS = 2.0
EPS = 1e-12


@dataclass(frozen=True)
class EscapeResult:
    """Outcome of iterating a single point.

    ``smoothed`` is the continuous escape value in ``[0, max_iter]``; it is
    only meaningful when ``escaped`` is true.
    """

    iterations: int
    smoothed: float
    escaped: bool


@dataclass(frozen=True)
class EscapeField:
    """Per-pixel escape results of a whole grid, as ``(rows, cols)`` arrays."""

    iterations: np.ndarray
    smoothed: np.ndarray
    escaped: np.ndarray
    max_iterations: int

    @property
    def shape(self) -> tuple[int, ...]:
        return self.iterations.shape

    def at(self, row: int, col: int) -> EscapeResult:
        return EscapeResult(
            iterations=int(self.iterations[row, col]),
            smoothed=float(self.smoothed[row, col]),
            escaped=bool(self.escaped[row, col]),
        )


def _check_max_iter(max_iter: int) -> None:
    if max_iter < 1:
        raise ValueError(f"max_iter must be at least 1, got {max_iter}.")


def _outside_disc(re, im):
    # Every point with re >= 2 or |im| >= 2 escapes; -2 stays excluded.
    return (re >= ESCAPE_RADIUS) | (abs(im) >= ESCAPE_RADIUS)


def smooth_value(iterations: int, modulus: float, max_iter: int) -> float:
    """Continuous escape value ``n + 1 - log2(log2 |z_n|)`` clamped to ``[0, max_iter]``."""

    log_modulus = math.log2(max(modulus, 1.0 + EPS))
    value = iterations + 1.0 - math.log2(max(log_modulus, EPS))
    if math.isnan(value):
        return 0.0
    return min(max(value, 0.0), float(max_iter))


def evaluate(c: complex, max_iter: int) -> EscapeResult:
    """Iterate ``z <- z^2 + c`` from ``z = 0`` until ``|z|^2 > 4`` or ``max_iter``."""

    _check_max_iter(max_iter)
    c = complex(c)
    cr, ci = c.real, c.imag
    if _outside_disc(cr, ci):
        return EscapeResult(0, smooth_value(0, math.hypot(cr, ci), max_iter), True)

    x = 0.0
    y = 0.0
    for n in range(1, max_iter + 1):
        x, y = x * x - y * y + cr, 2.0 * x * y + ci
        if x * x + y * y > HORIZON:
            return EscapeResult(n, smooth_value(n, math.hypot(x, y), max_iter), True)
    return EscapeResult(max_iter, float(max_iter), False)


_GRID_SIGNATURE = (
    tf.TensorSpec(shape=[None, None], dtype=tf.float64),
    tf.TensorSpec(shape=[None, None], dtype=tf.float64),
    tf.TensorSpec(shape=[], dtype=tf.int32),
)


@tf.function(input_signature=_GRID_SIGNATURE)
def _escape_run(cr: tf.Tensor, ci: tf.Tensor, max_iterations: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor]:
    """Iterate every point of the grid that has not diverged, in a TensorFlow while loop."""

    horizon = tf.constant(HORIZON, dtype=tf.float64)
    two = tf.constant(2.0, dtype=tf.float64)
    outside = _outside_disc(cr, ci)

    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    ns = tf.zeros_like(cr, dtype=tf.int32)
    active = tf.logical_not(outside)

    def cond(i, zr, zi, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, ns, active):
        zr_new = zr * zr - zi * zi + cr
        zi_new = two * zr * zi + ci
        zr = tf.where(active, zr_new, zr)
        zi = tf.where(active, zi_new, zi)
        ns = ns + tf.cast(active, tf.int32)
        active = tf.logical_and(active, zr * zr + zi * zi <= horizon)
        return i + 1, zr, zi, ns, active

    _, zr, zi, ns, _ = tf.while_loop(cond, body, (i, zr, zi, ns, active))
    return zr, zi, ns


def evaluate_grid(re: np.ndarray, im: np.ndarray, max_iter: int, *, device: Optional[str] = None) -> EscapeField:
    """Evaluate a grid of points given as broadcastable real and imaginary parts.

    Semantics match :func:`evaluate` point for point.
    """

    _check_max_iter(max_iter)
    cr, ci = np.broadcast_arrays(np.asarray(re, dtype=np.float64), np.asarray(im, dtype=np.float64))
    if cr.ndim != 2:
        raise ValueError("evaluate_grid expects a two-dimensional grid.")

    with tf.device(device if device is not None else "/CPU:0"):
        zr, zi, ns = _escape_run(
            tf.convert_to_tensor(cr, dtype=tf.float64),
            tf.convert_to_tensor(ci, dtype=tf.float64),
            tf.constant(max_iter, dtype=tf.int32),
        )
    zr = zr.numpy()
    zi = zi.numpy()
    iterations = ns.numpy().astype(np.int64)

    outside = _outside_disc(cr, ci)
    escaped = outside | (zr * zr + zi * zi > HORIZON)
    modulus = np.where(outside, np.hypot(cr, ci), np.hypot(zr, zi))

    with np.errstate(invalid="ignore", divide="ignore"):
        log_modulus = np.log2(np.maximum(modulus, 1.0 + EPS))
        smooth = iterations + 1.0 - np.log2(np.maximum(log_modulus, EPS))
    smooth = np.nan_to_num(smooth, nan=0.0)
    smooth = np.clip(np.where(escaped, smooth, float(max_iter)), 0.0, float(max_iter))

    return EscapeField(
        iterations=iterations,
        smoothed=smooth,
        escaped=escaped,
        max_iterations=int(max_iter),
    )
