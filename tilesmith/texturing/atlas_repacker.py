"""
Texture atlas repacker.

Turns a submesh whose faces sample regions of one shared source texture into
a submesh with a single compact texture:

1. Regions (fixed-point [0, 65535]^2) are converted to source pixel space.
2. Every texture coordinate is scaled into its region's pixel space and
   folded into that region's UvPatch (each coordinate slot exactly once).
3. Patches are packed into a new canvas.
4. Every coordinate is moved into its patch's placement and normalized by
   the canvas size (again exactly once per slot).
5. Faces drop the region indirection (image_id = 0).
6. Pixel blocks are copied from the source regions into the new canvas,
   wrapping around each region so tiled coordinates (outside [0, 1] within
   a region) keep sampling the region's texels.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence, Tuple, Union

import numpy as np
from PIL import Image

from tilesmith.config import JPEG_QUALITY
from tilesmith.exceptions import DecodeError, PackingError
from tilesmith.scene.types import REGION_SCALE, Region, SubMesh
from tilesmith.texturing.image_io import decode_image, encode_jpeg, write_bytes
from tilesmith.texturing.patches import Patch, Rect, UvPatch
from tilesmith.texturing.rect_packer import pack_rectangles

logger = logging.getLogger(__name__)

Packer = Callable[[List[Tuple[int, int, Any]]], Tuple[List[Dict[str, Any]], int, int]]


def remap_coord(size: int, coord: int) -> float:
    """Fixed-point region coordinate -> pixels."""
    return size * (coord / float(REGION_SCALE))


def region_extents(size: Tuple[int, int], region: Region) -> Tuple[float, float, float, float]:
    """Region -> (x0, y0, x1, y1) in source pixel space."""
    width, height = size
    return (
        remap_coord(width, region.u_min),
        remap_coord(height, region.v_min),
        remap_coord(width, region.u_max),
        remap_coord(height, region.v_max),
    )


def _check_image_id(submesh: SubMesh, image_id: int) -> None:
    if not 0 <= image_id < len(submesh.regions):
        raise DecodeError(
            f"Face of {submesh.href} references region {image_id}, "
            f"but only {len(submesh.regions)} regions exist",
            path=submesh.href
        )


def build_uv_patches(submesh: SubMesh, extents: Sequence[Tuple[float, float, float, float]]) -> List[UvPatch]:
    """
    Scale texture coordinates into region pixel space and grow one UvPatch per region.

    Coordinates are modified in place.
    """
    mesh = submesh.mesh
    uv_patches = [UvPatch() for _ in extents]
    seen = bytearray(len(mesh.tcoords))

    for face in mesh.faces:
        _check_image_id(submesh, face.image_id)
        x0, y0, x1, y1 = extents[face.image_id]
        rwidth, rheight = x1 - x0, y1 - y0
        uv_patch = uv_patches[face.image_id]

        for index in face.tc_indices:
            # skip mapped tc
            if seen[index]:
                continue
            tc = mesh.tcoords[index]
            tc[0] *= rwidth
            tc[1] *= rheight
            uv_patch.update(tc)
            seen[index] = 1

    return uv_patches


def pack_patches(patches: List[Patch], packer: Packer = pack_rectangles) -> Tuple[int, int]:
    """Place all patches. Returns the canvas (width, height)."""
    placements, width, height = packer(
        [(patch.src.width, patch.src.height, i) for i, patch in enumerate(patches)]
    )

    for placement in placements:
        patches[placement['id']].place(
            placement['x'], placement['y'], placement['width'], placement['height']
        )

    unplaced = [i for i, patch in enumerate(patches) if not patch.placed]
    if unplaced:
        raise PackingError(f"Packer left patches {unplaced} unplaced")
    if width <= 0 or height <= 0:
        raise PackingError(f"Packer produced an empty {width}x{height} canvas")
    for patch in patches:
        dst = patch.dst
        if dst.area and (dst.x < 0 or dst.y < 0 or dst.x + dst.width > width or dst.y + dst.height > height):
            raise PackingError(f"Patch placement {dst} outside {width}x{height} canvas")

    return width, height


def map_tcoords(submesh: SubMesh, patches: List[Patch], canvas: Tuple[int, int]) -> None:
    """Move every coordinate into its placed patch, normalize and reset image ids."""
    mesh = submesh.mesh
    width, height = canvas
    seen = bytearray(len(mesh.tcoords))

    for face in mesh.faces:
        patch = patches[face.image_id]
        for index in face.tc_indices:
            # skip mapped tc
            if seen[index]:
                continue
            tc = mesh.tcoords[index]
            patch.map(tc)
            tc[0] /= width
            tc[1] /= height
            seen[index] = 1

        # single texture from now on
        face.image_id = 0


def copy_patch(source: np.ndarray, target: np.ndarray, region: Rect, patch: Patch) -> None:
    """
    Copy one patch's texels from its source region into the target canvas.

    Destination pixels wrap around the region per axis, relative to the UV
    patch origin. Addresses outside the canvas or the source raster are
    skipped (left as background).
    """
    dst = patch.dst
    if dst is None or dst.area == 0 or region.area == 0:
        return

    src_h, src_w = source.shape[:2]
    dst_h, dst_w = target.shape[:2]

    rows = np.arange(dst.y, dst.y + dst.height)
    src_rows = region.y + (rows - dst.y + patch.src.y) % region.height
    keep = (rows >= 0) & (rows < dst_h) & (src_rows >= 0) & (src_rows < src_h)
    rows, src_rows = rows[keep], src_rows[keep]

    cols = np.arange(dst.x, dst.x + dst.width)
    src_cols = region.x + (cols - dst.x + patch.src.x) % region.width
    keep = (cols >= 0) & (cols < dst_w) & (src_cols >= 0) & (src_cols < src_w)
    cols, src_cols = cols[keep], src_cols[keep]

    if len(rows) == 0 or len(cols) == 0:
        return

    target[np.ix_(rows, cols)] = source[np.ix_(src_rows, src_cols)]


def repack_submesh(submesh: SubMesh, image: Image.Image, packer: Packer = pack_rectangles) -> Image.Image:
    """
    Repack an atlased submesh in place and return its new texture.

    Args:
        submesh: Submesh with non-empty regions; coordinates and faces are rewritten
        image: Decoded source texture
        packer: Rectangle packing primitive (see ``pack_rectangles``)

    Returns:
        New RGB atlas sized to the packed canvas
    """
    if not submesh.regions:
        raise ValueError(f"Submesh {submesh.href} has no texture regions to repack")

    tx = np.asarray(image.convert('RGB'))
    size = (tx.shape[1], tx.shape[0])

    extents = [region_extents(size, region) for region in submesh.regions]
    region_rects = [Rect.from_extents(*e) for e in extents]

    uv_patches = build_uv_patches(submesh, extents)
    patches = [Patch.from_uv_patch(uv_patch) for uv_patch in uv_patches]

    canvas = pack_patches(patches, packer)
    logger.debug(f"{submesh.href}: {len(patches)} patches packed into {canvas[0]}x{canvas[1]}")

    map_tcoords(submesh, patches, canvas)

    otx = np.zeros((canvas[1], canvas[0], 3), dtype=np.uint8)
    for region_rect, patch in zip(region_rects, patches):
        copy_patch(tx, otx, region_rect, patch)

    return Image.fromarray(otx)


def rebuild_texture(
    submesh: SubMesh,
    data: bytes,
    tex_path: Union[str, Path],
    source_path: str = "<texture>",
    quality: int = JPEG_QUALITY,
    packer: Packer = pack_rectangles
) -> Image.Image:
    """
    Decode the shared source texture, repack the submesh and write the new atlas as JPEG.

    Returns:
        The written atlas image
    """
    image = decode_image(data, source_path)
    atlas = repack_submesh(submesh, image, packer)
    write_bytes(tex_path, encode_jpeg(atlas, quality))
    return atlas
