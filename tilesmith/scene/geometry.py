"""
Binary geometry decoding.

Decodes an I3S geometry buffer according to the layer's default geometry
schema and pushes the attributes into sinks (see ``tilesmith.scene.sinks``).
"""

import logging
from typing import Dict, Optional, Sequence

import numpy as np

from tilesmith.exceptions import DecodeError
from tilesmith.schema.i3s import GEOMETRY_TYPE, TOPOLOGY, VALUE_TYPES, GeometrySchema
from tilesmith.scene.sinks import FaceSink, VertexSink, dedupe_rows
from tilesmith.scene.types import Region

logger = logging.getLogger(__name__)


def _read_block(data: bytes, offset: int, dtype: str, count: int, per_element: int, path: str):
    size = np.dtype(dtype).itemsize * count * per_element
    if offset + size > len(data):
        raise DecodeError(
            f"Geometry buffer {path} truncated: need {offset + size} bytes, have {len(data)}",
            path=path
        )
    block = np.frombuffer(data, dtype=dtype, count=count * per_element, offset=offset)
    return block.reshape(count, per_element), offset + size


def read_attributes(data: bytes, schema: GeometrySchema, path: str = "<geometry>") -> Dict[str, np.ndarray]:
    """
    Split a geometry buffer into per-attribute arrays.

    Returns:
        Dict of attribute name -> (count, valuesPerElement) array, plus
        'vertexCount' and 'featureCount' scalars from the header
    """
    if schema.geometry_type != GEOMETRY_TYPE or schema.topology != TOPOLOGY:
        raise DecodeError(
            f"Unsupported geometry {schema.geometry_type}/{schema.topology} in {path}, "
            f"expected {GEOMETRY_TYPE}/{TOPOLOGY}",
            path=path
        )

    offset = 0
    header: Dict[str, int] = {}
    for attr in schema.header:
        if attr.type not in VALUE_TYPES:
            raise DecodeError(f"Unsupported header type {attr.type} in {path}", path=path)
        block, offset = _read_block(data, offset, VALUE_TYPES[attr.type], 1, 1, path)
        header[attr.property] = int(block[0, 0])

    if 'vertexCount' not in header:
        raise DecodeError(f"Geometry header of {path} has no vertexCount", path=path)

    vertex_count = header['vertexCount']
    feature_count = header.get('featureCount', 0)
    if vertex_count % 3:
        raise DecodeError(f"Vertex count {vertex_count} of {path} is not a triangle list", path=path)

    attributes: Dict[str, np.ndarray] = {}
    for name in schema.ordering:
        definition = schema.vertex_attributes.get(name)
        if definition is None:
            raise DecodeError(f"Attribute {name} of {path} has no definition", path=path)
        attributes[name], offset = _read_block(
            data, offset, definition.dtype, vertex_count, definition.values_per_element, path
        )

    for name in schema.feature_attribute_order:
        definition = schema.feature_attributes.get(name)
        if definition is None:
            continue
        if offset >= len(data):
            # Feature blocks are optional in many packages
            break
        attributes[name], offset = _read_block(
            data, offset, definition.dtype, feature_count, definition.values_per_element, path
        )

    attributes['vertexCount'] = vertex_count
    attributes['featureCount'] = feature_count
    return attributes


def decode_geometry(
    data: bytes,
    schema: GeometrySchema,
    origin: Sequence[float],
    vertex_sink: VertexSink,
    face_sink: Optional[FaceSink] = None,
    path: str = "<geometry>"
) -> None:
    """
    Decode a geometry buffer into sinks.

    Args:
        data: Raw (decompressed) geometry bytes
        schema: Geometry schema of the layer
        origin: Node centre added to every position offset
        vertex_sink: Receives absolute vertex positions
        face_sink: Receives texture coordinates, regions, normals and faces;
                   None when only positions are needed
        path: Archive-relative path used in error messages
    """
    attributes = read_attributes(data, schema, path)
    vertex_count = attributes['vertexCount']

    if 'position' not in attributes:
        raise DecodeError(f"Geometry {path} has no position attribute", path=path)

    positions = attributes['position'].astype(np.float64) + np.asarray(origin[:3], dtype=np.float64)
    vertex_ids = vertex_sink.add_vertices(positions)

    if face_sink is None:
        return

    if 'uv0' in attributes:
        uvs = attributes['uv0'].astype(np.float64)
    else:
        uvs = np.zeros((vertex_count, 2), dtype=np.float64)

    region_ids = np.zeros(vertex_count, dtype=np.int64)
    if 'region' in attributes:
        unique, region_ids = dedupe_rows(attributes['region'].astype(np.int64))
        face_sink.add_regions([Region(*(int(v) for v in row)) for row in unique.tolist()])

    tc_ids = face_sink.add_tcoords(uvs, region_ids)

    if 'normal' in attributes:
        face_sink.add_normals(attributes['normal'].astype(np.float64))

    triangles = vertex_count // 3
    face_sink.add_faces(
        np.asarray(vertex_ids).reshape(triangles, 3),
        np.asarray(tc_ids).reshape(triangles, 3),
        region_ids.reshape(triangles, 3)[:, 0]
    )
    logger.debug(f"Decoded {triangles} faces from {path}")
