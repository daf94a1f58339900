"""
Texture utilities.

Includes atlas repacking (region extraction, rectangle packing, coordinate
remapping and pixel compositing) and image I/O helpers.
"""
from .atlas_repacker import repack_submesh, rebuild_texture, region_extents, remap_coord
from .rect_packer import pack_rectangles
from .patches import Patch, Rect, UvPatch
from .image_io import decode_image, encode_jpeg, sniff_extension

__all__ = [
    'repack_submesh',
    'rebuild_texture',
    'region_extents',
    'remap_coord',
    'pack_rectangles',
    'Patch',
    'Rect',
    'UvPatch',
    'decode_image',
    'encode_jpeg',
    'sniff_extension',
]
