"""Conversion pipeline: extent measurement and mesh export."""
from .exporter import convert_archive, export_node, export_submesh, localize_vertices
from .measure import measure_extents, measure_node
from .pool import run_parallel

__all__ = [
    'convert_archive',
    'export_node',
    'export_submesh',
    'localize_vertices',
    'measure_extents',
    'measure_node',
    'run_parallel',
]
