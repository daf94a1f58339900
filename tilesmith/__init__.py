"""
TileSmith - Convert tiled 3D scene archives into textured meshes

Unpacks SLPK scene layers into standalone OBJ meshes with one material and
one non-atlased texture per submesh, reprojected and centered for easy use
in modelling tools.
"""

from tilesmith.config import ConversionOptions
from tilesmith.pipeline.exporter import convert_archive

__version__ = "0.1.0"
__all__ = ["ConversionOptions", "convert_archive"]
