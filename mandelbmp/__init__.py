"""Public API for the Mandelbrot bitmap generator."""

from .bitmap import BitmapInfo, BitmapWriter, SinkOpenError, build_headers, encode_bitmap, read_headers
from .escape import DEFAULT_MAX_ITERATION, ESCAPE_RADIUS, escape_time, escape_time_grid, select_device
from .palette import DEFAULT_PALETTE, PALETTES, map_color, map_colors, random_palette
from .pipeline import ProgressReporter, iter_blocks, render, render_pixels
from .viewport import REFERENCE_VIEWPORT, RenderConfig, Viewport, pixel_to_complex

__all__ = [
    "BitmapInfo",
    "BitmapWriter",
    "DEFAULT_MAX_ITERATION",
    "DEFAULT_PALETTE",
    "ESCAPE_RADIUS",
    "PALETTES",
    "ProgressReporter",
    "REFERENCE_VIEWPORT",
    "RenderConfig",
    "SinkOpenError",
    "Viewport",
    "build_headers",
    "encode_bitmap",
    "escape_time",
    "escape_time_grid",
    "iter_blocks",
    "map_color",
    "map_colors",
    "pixel_to_complex",
    "random_palette",
    "read_headers",
    "render",
    "render_pixels",
    "select_device",
]
