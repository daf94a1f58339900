"""Mesh and material writers"""

from tilesmith.writers.obj import save_as_obj, write_obj, write_mtl, MATERIAL_NAME

__all__ = [
    "save_as_obj",
    "write_obj",
    "write_mtl",
    "MATERIAL_NAME",
]
