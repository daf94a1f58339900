"""
Coordinate system conversion.

pyproj transformers must not be shared across threads, so every worker gets
its own converter built from the same SRS definitions (see ``clone``).
"""

import copy
import logging
from typing import Sequence, Union

import numpy as np
from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

from tilesmith.exceptions import ProjectionError

logger = logging.getLogger(__name__)

SrsDefinition = Union[str, int]


def normalize_srs(srs: SrsDefinition) -> str:
    """Normalize an SRS definition; bare integers are EPSG codes."""
    if isinstance(srs, int):
        return f"EPSG:{srs}"
    srs = str(srs).strip()
    if srs.isdigit():
        return f"EPSG:{srs}"
    return srs


class CsConverter:
    """
    Converts 3D points from a source to a destination spatial reference.

    Args:
        src: Source SRS definition (EPSG code, WKT or PROJ string)
        dst: Destination SRS definition

    Example:
        >>> conv = CsConverter("EPSG:4326", "EPSG:3857")
        >>> conv.convert([14.0, 50.0, 300.0])
    """

    def __init__(self, src: SrsDefinition, dst: SrsDefinition):
        self.src = normalize_srs(src)
        self.dst = normalize_srs(dst)
        try:
            self._transformer = Transformer.from_crs(
                CRS.from_user_input(self.src),
                CRS.from_user_input(self.dst),
                always_xy=True
            )
        except CRSError as e:
            raise ProjectionError(f"Invalid SRS definition ({self.src} -> {self.dst}): {e}") from e

    def clone(self) -> "CsConverter":
        """Independent converter with identical SRS parameters."""
        return CsConverter(self.src, self.dst)

    def __copy__(self):
        return self.clone()

    def __deepcopy__(self, memo):
        return self.clone()

    def __repr__(self):
        return f"CsConverter({self.src!r}, {self.dst!r})"

    def convert(self, point: Sequence[float]) -> np.ndarray:
        """Convert a single [x, y, z] point."""
        return self.convert_many(np.asarray([point], dtype=np.float64))[0]

    def __call__(self, point: Sequence[float]) -> np.ndarray:
        return self.convert(point)

    def convert_many(self, points: np.ndarray) -> np.ndarray:
        """Convert an (N, 3) array of points."""
        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(f"Expected (N, 3) points, got shape {points.shape}")
        if len(points) == 0:
            return points.copy()

        try:
            x, y, z = self._transformer.transform(
                points[:, 0], points[:, 1], points[:, 2], errcheck=True
            )
        except ProjError as e:
            raise ProjectionError(f"Cannot convert points from {self.src} to {self.dst}: {e}") from e

        result = np.column_stack([x, y, z])
        finite = np.isfinite(result).all(axis=1)
        if not finite.all():
            bad = points[np.argmin(finite)].tolist()
            raise ProjectionError(
                f"Point {bad} is outside the valid domain of {self.src} -> {self.dst}"
            )
        return result


def clone_converter(conv: CsConverter) -> CsConverter:
    """Value copy handed to each worker task."""
    return copy.copy(conv)
