"""Colour palettes mapping escape times to 24-bit pixels.

Every palette is a fixed integer formula over the column ``i``, the row ``j``
and the escape time. The arithmetic is 32-bit signed: products and sums wrap
around, division truncates toward zero and each channel is finally narrowed
to its low byte. The wraparound produces the characteristic banding of the
images and is part of the palette, not an error.

Channels are returned in the order they are stored in a bitmap file:
blue, green, red.
"""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

DEFAULT_PALETTE = 3
INSIDE_COLOR = (0, 0, 0)

_INT32_OFFSET = 2 ** 31
_INT32_MODULUS = 2 ** 32


def wrap_int32(values):
    """Reduce integers to the signed 32-bit range with two's complement wraparound."""

    values = np.asarray(values, dtype=np.int64)
    return (values + _INT32_OFFSET) % _INT32_MODULUS - _INT32_OFFSET


def c_div(numerator, denominator):
    """Integer division truncating toward zero."""

    numerator = np.asarray(numerator, dtype=np.int64)
    denominator = np.asarray(denominator, dtype=np.int64)
    quotient = np.abs(numerator) // np.abs(denominator)
    return wrap_int32(np.where((numerator < 0) ^ (denominator < 0), -quotient, quotient))


def to_byte(values) -> np.ndarray:
    """Keep the low eight bits, as an unsigned byte."""

    return (np.asarray(values, dtype=np.int64) & 0xFF).astype(np.uint8)


def _mul(a, b):
    return wrap_int32(np.asarray(a, dtype=np.int64) * np.asarray(b, dtype=np.int64))


def _add(a, b):
    return wrap_int32(np.asarray(a, dtype=np.int64) + np.asarray(b, dtype=np.int64))


def _sub(a, b):
    return wrap_int32(np.asarray(a, dtype=np.int64) - np.asarray(b, dtype=np.int64))


def _palette_one(i, j, it):
    blue = _add(i, c_div(j, _add(j, 1)))
    green = _add(_add(i, j), c_div(_mul(c_div(i, 3), j), _add(i, 1)))
    red = np.int64(0x50)
    return blue, green, red


def _palette_two(i, j, it):
    blue = _sub(c_div(_mul(_mul(j, it), i), 5255), 5)
    green = _sub(c_div(_mul(_mul(i, i), it), 31250), 52)
    red = c_div(_mul(i, it), 51250)
    return blue, green, red


def _palette_three(i, j, it):
    blue = _sub(_mul(_sub(255, c_div(_mul(j, it), 17855)), j), _mul(4, i))
    green = _sub(255, c_div(_mul(_mul(i, j), it), 312500))
    red = _sub(255, c_div(_mul(i, it), 31250))
    return blue, green, red


PALETTES: dict[int, Callable] = {
    1: _palette_one,
    2: _palette_two,
    3: _palette_three,
}


def palette_formula(palette: int) -> Callable:
    try:
        return PALETTES[palette]
    except (KeyError, TypeError):
        raise ValueError(f"Unknown palette {palette!r}. Valid choices: {', '.join(map(str, sorted(PALETTES)))}.") from None


def map_colors(cols, rows, iterations, max_iteration: int, palette: int = DEFAULT_PALETTE) -> np.ndarray:
    """Colour a grid of escape times.

    ``cols``, ``rows`` and ``iterations`` are broadcast against each other;
    the result has their broadcast shape plus a trailing axis of three bytes.
    Samples whose escape time equals ``max_iteration`` are black.
    """

    formula = palette_formula(palette)
    i, j, it = np.broadcast_arrays(*(np.asarray(v, dtype=np.int64) for v in (cols, rows, iterations)))
    channels = [np.broadcast_to(to_byte(c), it.shape) for c in formula(i, j, it)]
    pixels = np.stack(channels, axis=-1)
    inside = (it == max_iteration)[..., np.newaxis]
    return np.where(inside, np.array(INSIDE_COLOR, dtype=np.uint8), pixels).astype(np.uint8)


def map_color(i: int, j: int, iteration: int, max_iteration: int, palette: int = DEFAULT_PALETTE) -> tuple[int, int, int]:
    """Colour of the pixel in column ``i``, row ``j`` as a (blue, green, red) triple."""

    blue, green, red = map_colors(i, j, iteration, max_iteration, palette)
    return int(blue), int(green), int(red)


def random_palette(seed: Optional[int] = None) -> int:
    """Draw a palette selector uniformly from the available palettes."""

    rng = np.random.default_rng(seed)
    choices = sorted(PALETTES)
    return int(choices[rng.integers(len(choices))])
