"""
Wavefront OBJ/MTL writer.

Texture coordinates are kept in image space (origin top-left) throughout the
pipeline; OBJ puts the origin bottom-left, so v is flipped on output.
"""

import logging
from pathlib import Path
from typing import TextIO, Union

from tilesmith.exceptions import OutputError
from tilesmith.scene.types import Mesh

logger = logging.getLogger(__name__)

# Single material per mesh
MATERIAL_NAME = "0"


def _fmt(value: float) -> str:
    return f"{value:.12g}"


def save_as_obj(mesh: Mesh, out: TextIO, mtl_name: str) -> None:
    """Serialize positions, texture coordinates and faces."""
    out.write(f"mtllib {mtl_name}\n")
    for v in mesh.vertices:
        out.write(f"v {_fmt(v[0])} {_fmt(v[1])} {_fmt(v[2])}\n")
    for tc in mesh.tcoords:
        out.write(f"vt {_fmt(tc[0])} {_fmt(1.0 - tc[1])}\n")
    out.write(f"usemtl {MATERIAL_NAME}\n")
    for f in mesh.faces:
        out.write(f"f {f.a + 1}/{f.ta + 1} {f.b + 1}/{f.tb + 1} {f.c + 1}/{f.tc + 1}\n")


def write_obj(path: Union[str, Path], mesh: Mesh, mtl_name: str) -> None:
    path = Path(path)
    logger.info(f"Writing {path}")
    try:
        with open(path, 'w', newline='\n') as f:
            save_as_obj(mesh, f, mtl_name)
    except OSError as e:
        raise OutputError(f"Cannot write mesh {path}: {e}") from e


def write_mtl(path: Union[str, Path], texture_name: str) -> None:
    """Material file binding the material name to the texture."""
    path = Path(path)
    logger.info(f"Writing {path}")
    try:
        with open(path, 'w', newline='\n') as f:
            f.write(f"newmtl {MATERIAL_NAME}\n")
            f.write(f"map_Kd {texture_name}\n")
    except OSError as e:
        raise OutputError(f"Cannot write material {path}: {e}") from e
