"""
2D bounding boxes for the extent reduction pass.
"""

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass
class BoundingBox:
    """Axis-aligned 2D box. Starts invalid and only grows."""
    min_x: float = math.inf
    min_y: float = math.inf
    max_x: float = -math.inf
    max_y: float = -math.inf

    @property
    def valid(self) -> bool:
        return self.min_x <= self.max_x and self.min_y <= self.max_y

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        return (
            (self.min_x + self.max_x) / 2,
            (self.min_y + self.max_y) / 2
        )

    def update(self, x: float, y: float) -> None:
        self.min_x = min(self.min_x, x)
        self.min_y = min(self.min_y, y)
        self.max_x = max(self.max_x, x)
        self.max_y = max(self.max_y, y)

    def update_points(self, points: np.ndarray) -> None:
        """Fold an (N, 2) array of points into the box."""
        points = np.asarray(points, dtype=np.float64)
        if len(points) == 0:
            return
        lo = points.min(axis=0)
        hi = points.max(axis=0)
        self.update(float(lo[0]), float(lo[1]))
        self.update(float(hi[0]), float(hi[1]))

    def merge(self, other: "BoundingBox") -> None:
        """Merge another box in place. Invalid boxes are ignored."""
        if not other.valid:
            return
        self.update(other.min_x, other.min_y)
        self.update(other.max_x, other.max_y)


def global_center(box: BoundingBox) -> Tuple[float, float]:
    """Centering origin; no centering when nothing was measured."""
    if not box.valid:
        return (0.0, 0.0)
    return box.center
