"""Coordinate conversion and extent measurement."""
from .converter import CsConverter, clone_converter, normalize_srs
from .extents import BoundingBox, global_center

__all__ = [
    'CsConverter',
    'clone_converter',
    'normalize_srs',
    'BoundingBox',
    'global_center',
]
