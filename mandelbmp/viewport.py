"""Viewport geometry and run configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .escape import DEFAULT_MAX_ITERATION, ESCAPE_RADIUS
from .palette import DEFAULT_PALETTE, PALETTES

PROGRESS_INTERVAL = 135


@dataclass(frozen=True)
class Viewport:
    """Rectangle of the complex plane sampled by a ``width`` x ``height`` grid."""

    width: int
    height: int
    x_min: float
    x_max: float
    y_min: float
    y_max: float

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

    def columns(self) -> np.ndarray:
        """Real coordinate of every column."""

        return _axis(0, self.width, self.width, self.x_min, self.x_max)

    def rows(self, start: int = 0, stop: int | None = None) -> np.ndarray:
        """Imaginary coordinate of rows ``start`` up to (excluding) ``stop``."""

        stop = self.height if stop is None else stop
        return _axis(start, stop, self.height, self.y_min, self.y_max)


def _axis(start: int, stop: int, count: int, low: float, high: float) -> np.ndarray:
    if count == 1:
        return np.full(max(stop - start, 0), np.float64(low), dtype=np.float64)
    # (index * span) / (count - 1) + low, evaluated in that order for every sample
    indices = np.arange(start, stop, dtype=np.float64)
    return indices * np.float64(high - low) / np.float64(count - 1) + np.float64(low)


def pixel_to_complex(viewport: Viewport, col: int, row: int) -> tuple[float, float]:
    """Map a pixel index to its sample point in the complex plane."""

    if viewport.width > 1:
        x0 = (col * (viewport.x_max - viewport.x_min)) / (viewport.width - 1) + viewport.x_min
    else:
        x0 = viewport.x_min
    if viewport.height > 1:
        y0 = (row * (viewport.y_max - viewport.y_min)) / (viewport.height - 1) + viewport.y_min
    else:
        y0 = viewport.y_min
    return float(x0), float(y0)


REFERENCE_VIEWPORT = Viewport(width=8000, height=4571, x_min=-2.5, x_max=1.0, y_min=-1.0, y_max=1.0)


@dataclass(frozen=True)
class RenderConfig:
    """Everything a single run needs; immutable for the duration of the run."""

    viewport: Viewport = REFERENCE_VIEWPORT
    max_iteration: int = DEFAULT_MAX_ITERATION
    escape_radius: float = ESCAPE_RADIUS
    palette: int = DEFAULT_PALETTE
    pad_rows: bool = False
    rows_per_block: int = PROGRESS_INTERVAL
    output_dir: Path = field(default_factory=Path)

    def __post_init__(self) -> None:
        if self.max_iteration < 1:
            raise ValueError(f"max_iteration must be at least 1, got {self.max_iteration}")
        if not self.escape_radius > 0:
            raise ValueError(f"escape_radius must be positive, got {self.escape_radius}")
        if self.palette not in PALETTES:
            raise ValueError(f"palette must be one of {sorted(PALETTES)}, got {self.palette}")
        if self.rows_per_block < 1:
            raise ValueError(f"rows_per_block must be at least 1, got {self.rows_per_block}")
        object.__setattr__(self, "output_dir", Path(self.output_dir))

    @property
    def output_name(self) -> str:
        return f"mandelbrot_{self.palette}.bmp"

    @property
    def output_path(self) -> Path:
        return self.output_dir / self.output_name
