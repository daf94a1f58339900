"""
Geometry sinks.

The geometry decoder pushes decoded attribute arrays into sinks. Capabilities
are split into two small protocols so a consumer only implements what it
needs:

- VertexSink: receives vertex positions
- FaceSink: receives texture coordinates, regions, normals and faces

MeshBuilder implements both and assembles a SubMesh. ExtentsSink only
measures converted vertex positions.
"""

import logging
from typing import List, Optional, Protocol, Sequence

import numpy as np

from tilesmith.scene.types import Face, Mesh, Region, SubMesh

logger = logging.getLogger(__name__)


class VertexSink(Protocol):
    def add_vertices(self, points: np.ndarray) -> Optional[np.ndarray]:
        """Receive (N, 3) positions. Returns slot index per point (or None)."""
        ...


class FaceSink(Protocol):
    def add_regions(self, regions: Sequence[Region]) -> None:
        ...

    def add_tcoords(self, uvs: np.ndarray, region_ids: np.ndarray) -> np.ndarray:
        """Receive (N, 2) coordinates and per-coordinate region index. Returns slot index per coordinate."""
        ...

    def add_normals(self, normals: np.ndarray) -> None:
        ...

    def add_faces(self, vertex_ids: np.ndarray, tc_ids: np.ndarray, image_ids: np.ndarray) -> None:
        ...


def dedupe_rows(rows: np.ndarray):
    """
    Deduplicate rows keeping first-appearance order.

    Returns:
        Tuple of (unique rows, slot index per input row)
    """
    if len(rows) == 0:
        return rows, np.zeros(0, dtype=np.int64)
    _, first, inverse = np.unique(rows, axis=0, return_index=True, return_inverse=True)
    inverse = inverse.reshape(-1)
    order = np.argsort(first)
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))
    return rows[first[order]], rank[inverse]


class MeshBuilder:
    """Builds a SubMesh, deduplicating vertex and texture-coordinate slots."""

    def __init__(self, href: str = ""):
        self.href = href
        self._vertices: List[np.ndarray] = []
        self._tcoords: List[np.ndarray] = []
        self._normals: List[np.ndarray] = []
        self._faces: List[Face] = []
        self._regions: List[Region] = []
        self._vertex_count = 0
        self._tc_count = 0

    def add_vertices(self, points: np.ndarray) -> np.ndarray:
        unique, slots = dedupe_rows(np.asarray(points, dtype=np.float64))
        self._vertices.append(unique)
        slots = slots + self._vertex_count
        self._vertex_count += len(unique)
        return slots

    def add_regions(self, regions: Sequence[Region]) -> None:
        self._regions.extend(regions)

    def add_tcoords(self, uvs: np.ndarray, region_ids: np.ndarray) -> np.ndarray:
        # Same (u, v) in different regions addresses different texels
        keyed = np.column_stack([
            np.asarray(uvs, dtype=np.float64),
            np.asarray(region_ids, dtype=np.float64)
        ])
        unique, slots = dedupe_rows(keyed)
        self._tcoords.append(unique[:, :2])
        slots = slots + self._tc_count
        self._tc_count += len(unique)
        return slots

    def add_normals(self, normals: np.ndarray) -> None:
        self._normals.append(np.asarray(normals, dtype=np.float64))

    def add_faces(self, vertex_ids: np.ndarray, tc_ids: np.ndarray, image_ids: np.ndarray) -> None:
        for (a, b, c), (ta, tb, tc), image_id in zip(vertex_ids.tolist(), tc_ids.tolist(), image_ids.tolist()):
            self._faces.append(Face(a, b, c, ta, tb, tc, int(image_id)))

    def build(self) -> SubMesh:
        def _rows(chunks):
            return [list(row) for chunk in chunks for row in chunk.tolist()]

        mesh = Mesh(
            vertices=_rows(self._vertices),
            tcoords=_rows(self._tcoords),
            faces=self._faces,
            normals=_rows(self._normals),
        )
        logger.debug(
            f"Built submesh {self.href}: {len(mesh.vertices)} vertices, "
            f"{len(mesh.tcoords)} tcoords, {len(mesh.faces)} faces, {len(self._regions)} regions"
        )
        return SubMesh(mesh=mesh, regions=list(self._regions), href=self.href)


class ExtentsSink:
    """Converts incoming vertices and folds them into a bounding box."""

    def __init__(self, converter, extents):
        self.converter = converter
        self.extents = extents

    def add_vertices(self, points: np.ndarray) -> None:
        if len(points) == 0:
            return None
        converted = self.converter.convert_many(points)
        self.extents.update_points(converted[:, :2])
        return None
