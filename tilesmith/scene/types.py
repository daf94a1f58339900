"""
Scene data model.

Node tree (read-only after load) and per-node mesh data (loaded just in
time, transformed in place by the exporter, then discarded).

TEXTURE REGIONS:
A region addresses a sub-rectangle of a shared source texture in
fixed-point space [0, 65535]^2. A face samples the region selected by its
``image_id``. Submeshes without regions sample the whole texture.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

# Fixed-point range of region coordinates
REGION_SCALE = 65535


@dataclass(frozen=True)
class Node:
    """A single node of the scene tree."""
    id: str
    level: int
    geometry_hrefs: tuple = ()  # Archive-relative paths, e.g. 'nodes/3/geometries/0'
    texture_hrefs: tuple = ()
    mbs: tuple = (0.0, 0.0, 0.0, 0.0)  # Minimum bounding sphere [x, y, z, r]

    @property
    def has_geometry(self) -> bool:
        return bool(self.geometry_hrefs)


class Tree:
    """Mapping of node id -> Node."""

    def __init__(self, nodes: Optional[Dict[str, Node]] = None):
        self.nodes: Dict[str, Node] = dict(nodes or {})

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes.values())

    def __getitem__(self, node_id: str) -> Node:
        return self.nodes[node_id]

    def add(self, node: Node) -> None:
        self.nodes[node.id] = node

    def top_level(self) -> Optional[int]:
        """Coarsest (minimum) level among nodes carrying geometry."""
        levels = [node.level for node in self if node.has_geometry]
        return min(levels) if levels else None

    def top_level_nodes(self) -> List[Node]:
        """Nodes with geometry at the top level, in id order."""
        level = self.top_level()
        if level is None:
            return []
        return sorted(
            (n for n in self if n.has_geometry and n.level == level),
            key=lambda n: n.id
        )


@dataclass(frozen=True)
class Region:
    """Fixed-point texture region [u_min, v_min, u_max, v_max]."""
    u_min: int
    v_min: int
    u_max: int
    v_max: int

    def __post_init__(self):
        for value in (self.u_min, self.v_min, self.u_max, self.v_max):
            if not 0 <= value <= REGION_SCALE:
                raise ValueError(f"Region coordinate {value} outside [0, {REGION_SCALE}]")


@dataclass
class Face:
    """Triangle: vertex indices, texture-coordinate indices and region index."""
    a: int
    b: int
    c: int
    ta: int
    tb: int
    tc: int
    image_id: int = 0

    @property
    def tc_indices(self):
        return (self.ta, self.tb, self.tc)


@dataclass
class Mesh:
    """Mesh body. Vertex and texture-coordinate slots are shared across faces."""
    vertices: List[List[float]] = field(default_factory=list)
    tcoords: List[List[float]] = field(default_factory=list)
    faces: List[Face] = field(default_factory=list)
    normals: List[List[float]] = field(default_factory=list)


@dataclass
class SubMesh:
    """
    One mesh body plus the texture regions its faces address.

    Attributes:
        mesh: Mesh data
        regions: Texture regions (empty for non-atlased submeshes)
        href: Archive-relative geometry path, mirrored for output paths
    """
    mesh: Mesh = field(default_factory=Mesh)
    regions: List[Region] = field(default_factory=list)
    href: str = ""

    @property
    def atlased(self) -> bool:
        return bool(self.regions)
