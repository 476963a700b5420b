# layout.py
# Viewport rectangle, frame bounds and the row-major matrix grid.

from __future__ import annotations
from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True)
class Rect:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def min_x(self) -> float:
        return float(self.x)

    @property
    def min_y(self) -> float:
        return float(self.y)

    @property
    def max_x(self) -> float:
        return float(self.x + self.width)

    @property
    def max_y(self) -> float:
        return float(self.y + self.height)

    @property
    def mid_x(self) -> float:
        return float(self.x + self.width * 0.5)

    @property
    def mid_y(self) -> float:
        return float(self.y + self.height * 0.5)

    @property
    def center(self) -> tuple[float, float]:
        return (self.mid_x, self.mid_y)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0.0 or self.height <= 0.0

    def expanded(self, padding: float) -> "Rect":
        p = float(padding)
        return Rect(self.x - p, self.y - p, self.width + 2.0 * p, self.height + 2.0 * p)

    @classmethod
    def of_size(cls, width: float, height: float) -> "Rect":
        return cls(0.0, 0.0, float(width), float(height))


@dataclass(frozen=True)
class MatrixGeometry:
    center: tuple[float, float] = (0.0, 0.0)
    half_size: tuple[float, float] = (0.0, 0.0)   # (width/2, height/2)


def frame_bounds(bounds, padding):
    return bounds.expanded(padding)


def matrix_size(rows, columns, gap):
    return (max(0, int(columns) - 1) * float(gap), max(0, int(rows) - 1) * float(gap))


def matrix_geometry(bounds: Rect, rows: int, columns: int, gap: float) -> MatrixGeometry:
    w, h = matrix_size(rows, columns, gap)
    return MatrixGeometry(center=bounds.center, half_size=(w * 0.5, h * 0.5))


def grid_targets(bounds: Rect, rows: int, columns: int, gap: float) -> np.ndarray:
    """
    Target slot for every particle, row-major:
      index -> (row = index // columns, col = index % columns)
    The grid is centered on the viewport.
    """
    rows = max(0, int(rows))
    columns = max(0, int(columns))
    w, h = matrix_size(rows, columns, gap)
    start_x = bounds.mid_x - w * 0.5
    start_y = bounds.mid_y - h * 0.5

    idx = np.arange(rows * columns)
    if columns == 0:
        return np.zeros((0, 2), dtype=np.float64)
    row = idx // columns
    col = idx % columns

    out = np.empty((rows * columns, 2), dtype=np.float64)
    out[:, 0] = start_x + col * float(gap)
    out[:, 1] = start_y + row * float(gap)
    return out
