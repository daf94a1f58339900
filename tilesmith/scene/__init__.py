"""Scene archive access and mesh data model."""
from .types import Node, Tree, Region, Face, Mesh, SubMesh, REGION_SCALE
from .sinks import VertexSink, FaceSink, MeshBuilder, ExtentsSink
from .archive import Archive

__all__ = [
    'Node',
    'Tree',
    'Region',
    'Face',
    'Mesh',
    'SubMesh',
    'REGION_SCALE',
    'VertexSink',
    'FaceSink',
    'MeshBuilder',
    'ExtentsSink',
    'Archive',
]
