"""
Scene conversion: SLPK archive -> textured OBJ meshes.

Every geometry reference ``<href>`` of every node produces

    <output>/<href>.obj   mesh (positions centered in destination SRS)
    <output>/<href>.mtl   material binding the texture
    <output>/<href>.jpg   repacked atlas, or <href>.<ext> for verbatim copies
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from tilesmith.config import ConversionOptions
from tilesmith.exceptions import OutputError, TileSmithError
from tilesmith.geo.converter import CsConverter, clone_converter
from tilesmith.geo.extents import global_center
from tilesmith.pipeline.measure import measure_extents
from tilesmith.pipeline.pool import run_parallel
from tilesmith.scene.archive import Archive
from tilesmith.scene.types import Node, SubMesh
from tilesmith.texturing.atlas_repacker import rebuild_texture
from tilesmith.texturing.image_io import sniff_extension, write_bytes
from tilesmith.writers.obj import write_mtl, write_obj

logger = logging.getLogger(__name__)


def add_extension(path: Path, ext: str) -> Path:
    """Append an extension (``geometries/0`` -> ``geometries/0.obj``)."""
    return path.with_name(path.name + ext)


def ensure_directory(path: Path) -> None:
    # Sibling workers may create overlapping directories concurrently
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputError(f"Cannot create directory {path}: {e}") from e


def localize_vertices(submesh: SubMesh, conv: CsConverter, center: Tuple[float, float]) -> None:
    """Convert vertices to the destination SRS and subtract the center (in place)."""
    mesh = submesh.mesh
    if not mesh.vertices:
        return
    converted = conv.convert_many(np.asarray(mesh.vertices, dtype=np.float64))
    converted[:, 0] -= center[0]
    converted[:, 1] -= center[1]
    mesh.vertices = converted.tolist()


def export_submesh(
    archive: Archive,
    node: Node,
    index: int,
    submesh: SubMesh,
    output: Path,
    options: ConversionOptions
) -> Path:
    """Write mesh, material and texture of one submesh. Returns the mesh path."""
    path = output / submesh.href
    mesh_path = add_extension(path, '.obj')
    mtl_path = add_extension(path, '.mtl')
    ensure_directory(mesh_path.parent)

    tx_name, tx_data = archive.texture(node, index)

    if not submesh.atlased:
        # copy texture as-is
        tex_path = add_extension(path, sniff_extension(tx_data, tx_name))
        write_bytes(tex_path, tx_data)
    else:
        # texture atlas, need to repack
        tex_path = add_extension(path, '.jpg')
        rebuild_texture(submesh, tx_data, tex_path, tx_name, quality=options.jpeg_quality)

    write_obj(mesh_path, submesh.mesh, mtl_path.name)
    write_mtl(mtl_path, tex_path.name)
    return mesh_path


def export_node(
    archive: Archive,
    node: Node,
    conv: CsConverter,
    center: Tuple[float, float],
    output: Path,
    options: ConversionOptions
) -> int:
    """Convert all submeshes of a node. Returns the number of meshes written."""
    logger.info(f"Converting <{node.id}>.")

    try:
        submeshes = archive.load_geometry(node)
        for index, submesh in enumerate(submeshes):
            localize_vertices(submesh, conv, center)
            export_submesh(archive, node, index, submesh, output, options)
    except TileSmithError as e:
        logger.error(f"Converting <{node.id}> failed: {e}")
        raise

    return len(submeshes)


def prepare_output(output: Path, overwrite: bool) -> None:
    if output.exists():
        if not output.is_dir():
            raise OutputError(f"Output {output} exists and is not a directory")
        if not overwrite:
            raise OutputError(f"Output directory {output} already exists (use --overwrite)")
    ensure_directory(output)


def write(archive: Archive, output: Path, options: ConversionOptions) -> int:
    """Convert an opened archive into ``output``. Returns the number of meshes written."""
    srs = archive.scene_layer_info().spatial_reference.srs()
    conv = CsConverter(srs, options.srs)

    tree = archive.load_tree()

    # find extents in destination SRS to localize mesh
    extents = measure_extents(tree, archive, conv, options.workers)
    center = global_center(extents)
    logger.info(f"Centering meshes at ({center[0]:.3f}, {center[1]:.3f})")

    nodes = sorted(tree, key=lambda n: n.id)

    def convert(node: Node) -> int:
        return export_node(archive, node, clone_converter(conv), center, output, options)

    counts = run_parallel(nodes, convert, options.workers)
    return sum(counts)


def convert_archive(
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    options: Optional[ConversionOptions] = None
) -> int:
    """
    Convert an SLPK archive into textured OBJ meshes.

    Args:
        input_path: Path to .slpk archive or extracted directory
        output_path: Destination directory
        options: Conversion options (destination SRS, overwrite, workers)

    Returns:
        Number of meshes written

    Raises:
        TileSmithError: On any fatal condition; output is then incomplete

    Example:
        >>> convert_archive("city.slpk", "out", ConversionOptions(srs="EPSG:32633"))
    """
    options = options or ConversionOptions()
    output = Path(output_path)

    logger.info(f"Opening SLPK archive at {input_path}.")
    with Archive(input_path) as archive:
        prepare_output(output, options.overwrite)
        logger.info(f"Generating textured meshes at {output}.")
        count = write(archive, output, options)

    logger.info(f"Wrote {count} meshes")
    return count
