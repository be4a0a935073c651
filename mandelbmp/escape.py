"""Escape-time evaluation of the Mandelbrot recurrence."""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

ESCAPE_RADIUS = 2.0
DEFAULT_MAX_ITERATION = 1000


def escape_time(x0: float, y0: float, max_iteration: int = DEFAULT_MAX_ITERATION, radius: float = ESCAPE_RADIUS) -> int:
    """Count iterations of ``z -> z**2 + c`` before ``|z|`` reaches ``radius``.

    Returns ``max_iteration`` when the orbit has not escaped within the bound.
    """

    limit = radius * radius
    x = 0.0
    y = 0.0
    iteration = 0
    while x * x + y * y < limit and iteration < max_iteration:
        x, y = x * x - y * y + x0, 2 * x * y + y0
        iteration += 1
    return iteration


@tf.function
def _escape_step(x: tf.Tensor, y: tf.Tensor, x0: tf.Tensor, y0: tf.Tensor, ns: tf.Tensor, active: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every orbit that is still inside the escape radius by one step."""

    x_new = x * x - y * y + x0
    y_new = 2.0 * x * y + y0
    x = tf.where(active, x_new, x)
    y = tf.where(active, y_new, y)
    ns = ns + tf.cast(active, tf.int32)
    return x, y, ns


@tf.function
def _escape_run(x0: tf.Tensor, y0: tf.Tensor, max_iteration: tf.Tensor, limit: tf.Tensor) -> tf.Tensor:
    """Iterate the recurrence for a whole grid using a TensorFlow while loop."""

    max_iteration = tf.cast(max_iteration, tf.int32)
    x = tf.zeros_like(x0)
    y = tf.zeros_like(y0)
    ns = tf.zeros(tf.shape(x0), tf.int32)
    active = tf.logical_and(x * x + y * y < limit, ns < max_iteration)
    i = tf.constant(0, dtype=tf.int32)

    def cond(i, x, y, ns, active):
        return tf.logical_and(tf.less(i, max_iteration), tf.reduce_any(active))

    def body(i, x, y, ns, active):
        x, y, ns = _escape_step(x, y, x0, y0, ns, active)
        still_bounded = tf.logical_and(x * x + y * y < limit, ns < max_iteration)
        return i + 1, x, y, ns, tf.logical_and(active, still_bounded)

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, x, y, ns, active))
    return ns


def escape_time_grid(
    xs: np.ndarray,
    ys: np.ndarray,
    max_iteration: int = DEFAULT_MAX_ITERATION,
    radius: float = ESCAPE_RADIUS,
    *,
    device: Optional[str] = None,
) -> np.ndarray:
    """Evaluate :func:`escape_time` for every ``(xs[c], ys[r])`` pair.

    The result has shape ``(len(ys), len(xs))`` so that rows follow the
    imaginary axis, matching the scan order of the output image.
    """

    xs = np.asarray(xs, dtype=np.float64).reshape(-1)
    ys = np.asarray(ys, dtype=np.float64).reshape(-1)

    with tf.device(device if device is not None else "/CPU:0"):
        x_tf = tf.convert_to_tensor(xs, dtype=tf.float64)
        y_tf = tf.convert_to_tensor(ys, dtype=tf.float64)
        X, Y = tf.meshgrid(x_tf, y_tf)
        limit = tf.constant(float(radius) * float(radius), dtype=tf.float64)
        ns = _escape_run(X, Y, tf.constant(max_iteration, dtype=tf.int32), limit)

    return ns.numpy()


def select_device() -> str:
    """Return the TensorFlow device used for evaluation, preferring a GPU."""

    gpus = tf.config.list_physical_devices("GPU")
    if not gpus:
        return "/CPU:0"
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError:
        # Memory growth can only be configured before the GPU is initialised.
        return "/CPU:0"
    return "/GPU:0"
