"""Drive a full render: sample, evaluate, colour and write."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator, Optional, TextIO

import numpy as np

from .bitmap import BitmapWriter
from .escape import escape_time_grid
from .palette import map_colors
from .viewport import RenderConfig


class ProgressReporter:
    """Coarse console feedback: one marker per finished block of rows."""

    marker = "#"

    def __init__(self, stream: Optional[TextIO] = None, *, quiet: bool = False):
        self.stream = stream if stream is not None else sys.stdout
        self.quiet = quiet
        self.blocks_done = 0

    def announce(self, message: str) -> None:
        if not self.quiet:
            print(message, file=self.stream)

    def advance(self) -> None:
        self.blocks_done += 1
        if not self.quiet:
            print(self.marker, end="", file=self.stream, flush=True)

    def finish(self) -> None:
        self.announce("\n\nProcess Completed")


def iter_blocks(config: RenderConfig, *, device: Optional[str] = None) -> Iterator[tuple[int, np.ndarray]]:
    """Yield ``(first_row, pixels)`` for consecutive blocks of rows.

    Each block is evaluated as a whole; blocks come out in increasing row
    order, which is the order the bitmap stores them in.
    """

    viewport = config.viewport
    xs = viewport.columns()
    cols = np.arange(viewport.width, dtype=np.int64)

    for start in range(0, viewport.height, config.rows_per_block):
        stop = min(start + config.rows_per_block, viewport.height)
        iterations = escape_time_grid(
            xs,
            viewport.rows(start, stop),
            config.max_iteration,
            config.escape_radius,
            device=device,
        )
        rows = np.arange(start, stop, dtype=np.int64)[:, np.newaxis]
        yield start, map_colors(cols, rows, iterations, config.max_iteration, config.palette)


def render_pixels(config: RenderConfig, *, device: Optional[str] = None) -> np.ndarray:
    """Return the whole image as a ``(height, width, 3)`` array, bottom row first."""

    blocks = [block for _, block in iter_blocks(config, device=device)]
    return np.concatenate(blocks, axis=0)


def render(
    config: RenderConfig,
    *,
    device: Optional[str] = None,
    progress: Optional[ProgressReporter] = None,
) -> Path:
    """Render ``config`` to ``config.output_path`` and return that path."""

    progress = progress if progress is not None else ProgressReporter()
    viewport = config.viewport
    path = config.output_path

    progress.announce(f"Color Scheme: {config.palette}")
    with BitmapWriter(path, viewport.width, viewport.height, pad_rows=config.pad_rows) as writer:
        progress.announce("File created :)")
        progress.announce(f"Generating {path.name} now...")
        for _, block in iter_blocks(config, device=device):
            writer.write_rows(block)
            progress.advance()
    progress.finish()
    return path
