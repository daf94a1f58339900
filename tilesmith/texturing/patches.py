"""
Texture patches.

A UvPatch accumulates the pixel-space bounding box of the texture
coordinates used within one region. A Patch is the unit handed to the
rectangle packer: its source rectangle comes from the UvPatch and its
destination rectangle is the placement in the new atlas.
"""

import math
from dataclasses import dataclass
from typing import List, Optional

from tilesmith.exceptions import PackingError

# Fixed-point regions land a fraction of a pixel off whole pixels; snap within this distance
SNAP_TOLERANCE = 0.05


@dataclass(frozen=True)
class Rect:
    """Integer pixel rectangle."""
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_extents(cls, x0: float, y0: float, x1: float, y1: float) -> "Rect":
        """Smallest integer rectangle covering the float box (up to SNAP_TOLERANCE)."""
        left = int(math.floor(x0 + SNAP_TOLERANCE))
        top = int(math.floor(y0 + SNAP_TOLERANCE))
        right = max(left, int(math.ceil(x1 - SNAP_TOLERANCE)))
        bottom = max(top, int(math.ceil(y1 - SNAP_TOLERANCE)))
        return cls(left, top, right - left, bottom - top)

    @property
    def area(self) -> int:
        return self.width * self.height

    def intersects(self, other: "Rect") -> bool:
        if self.area == 0 or other.area == 0:
            return False
        return (self.x < other.x + other.width and other.x < self.x + self.width
                and self.y < other.y + other.height and other.y < self.y + self.height)


class UvPatch:
    """Growable float bounding box. Starts empty, never shrinks."""

    def __init__(self):
        self.min_x = math.inf
        self.min_y = math.inf
        self.max_x = -math.inf
        self.max_y = -math.inf

    @property
    def valid(self) -> bool:
        return self.min_x <= self.max_x and self.min_y <= self.max_y

    def update(self, point: List[float]) -> None:
        x, y = point[0], point[1]
        self.min_x = min(self.min_x, x)
        self.min_y = min(self.min_y, y)
        self.max_x = max(self.max_x, x)
        self.max_y = max(self.max_y, y)

    def rect(self) -> Rect:
        """Covering integer rectangle; zero-size for an empty patch."""
        if not self.valid:
            return Rect(0, 0, 0, 0)
        rect = Rect.from_extents(self.min_x, self.min_y, self.max_x, self.max_y)
        # A degenerate patch still samples one texel
        return Rect(rect.x, rect.y, max(1, rect.width), max(1, rect.height))

    def __repr__(self):
        return f"UvPatch({self.min_x}, {self.min_y}, {self.max_x}, {self.max_y})"


class Patch:
    """Source rectangle plus its placement in the packed atlas."""

    def __init__(self, src: Rect):
        self.src = src
        self.dst: Optional[Rect] = None

    @classmethod
    def from_uv_patch(cls, uv_patch: UvPatch) -> "Patch":
        return cls(uv_patch.rect())

    @property
    def placed(self) -> bool:
        return self.dst is not None

    def place(self, x: int, y: int, width: int, height: int) -> None:
        if (width, height) != (self.src.width, self.src.height):
            raise PackingError(
                f"Packer changed patch size from {self.src.width}x{self.src.height} to {width}x{height}"
            )
        self.dst = Rect(x, y, width, height)

    def map(self, tc: List[float]) -> List[float]:
        """
        Translate a pixel coordinate from the source into the destination rectangle (in place).

        The source rectangle is snapped to whole pixels, so a coordinate may sit up
        to SNAP_TOLERANCE outside it; the result is clamped into the destination.
        """
        if self.dst is None:
            raise PackingError("Patch has not been placed")
        dst = self.dst
        x = tc[0] + dst.x - self.src.x
        y = tc[1] + dst.y - self.src.y
        tc[0] = min(max(x, dst.x), dst.x + dst.width)
        tc[1] = min(max(y, dst.y), dst.y + dst.height)
        return tc

    def __repr__(self):
        return f"Patch(src={self.src}, dst={self.dst})"
