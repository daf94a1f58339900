"""
Shared fixtures: builds small SLPK packages on disk.
"""

import gzip
import json
import zipfile
from io import BytesIO
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

REGION_SCALE = 65535


def region_for(x0, y0, x1, y1, size):
    """Pixel rectangle -> fixed-point region tuple."""
    w, h = size
    return (
        int(round(x0 / w * REGION_SCALE)),
        int(round(y0 / h * REGION_SCALE)),
        int(round(x1 / w * REGION_SCALE)),
        int(round(y1 / h * REGION_SCALE)),
    )


def image_bytes(image, fmt='PNG'):
    buf = BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


def two_region_texture(size=(800, 600)):
    """Red block at (0,0)-(100,100), blue block at (100,0)-(200,100), grey elsewhere."""
    image = Image.new('RGB', size, (128, 128, 128))
    image.paste(Image.new('RGB', (100, 100), (255, 0, 0)), (0, 0))
    image.paste(Image.new('RGB', (100, 100), (0, 0, 255)), (100, 0))
    return image


def geometry_schema(with_region):
    ordering = ['position', 'normal', 'uv0', 'color']
    attributes = {
        'position': {'valueType': 'Float32', 'valuesPerElement': 3},
        'normal': {'valueType': 'Float32', 'valuesPerElement': 3},
        'uv0': {'valueType': 'Float32', 'valuesPerElement': 2},
        'color': {'valueType': 'UInt8', 'valuesPerElement': 4},
    }
    if with_region:
        ordering.append('region')
        attributes['region'] = {'valueType': 'UInt16', 'valuesPerElement': 4}
    return {
        'geometryType': 'triangles',
        'topology': 'PerAttributeArray',
        'header': [
            {'property': 'vertexCount', 'type': 'UInt32'},
            {'property': 'featureCount', 'type': 'UInt32'},
        ],
        'ordering': ordering,
        'vertexAttributes': attributes,
        'featureAttributeOrder': ['id', 'faceRange'],
        'featureAttributes': {
            'id': {'valueType': 'UInt64', 'valuesPerElement': 1},
            'faceRange': {'valueType': 'UInt32', 'valuesPerElement': 2},
        },
    }


def geometry_bytes(positions, uvs, regions=None):
    """Encode a non-indexed triangle list."""
    positions = np.asarray(positions, dtype='<f4').reshape(-1, 3)
    count = len(positions)
    uvs = np.asarray(uvs, dtype='<f4').reshape(count, 2)
    normals = np.tile(np.asarray([0, 0, 1], dtype='<f4'), (count, 1))
    colors = np.full((count, 4), 255, dtype='<u1')

    parts = [
        np.asarray([count, 1], dtype='<u4').tobytes(),
        positions.tobytes(),
        normals.tobytes(),
        uvs.tobytes(),
        colors.tobytes(),
    ]
    if regions is not None:
        parts.append(np.asarray(regions, dtype='<u2').reshape(count, 4).tobytes())
    parts.append(np.asarray([1], dtype='<u8').tobytes())
    parts.append(np.asarray([0, count // 3 - 1], dtype='<u4').tobytes())
    return b''.join(parts)


def quad(x0, y0, x1, y1, uv=(0.0, 0.0, 1.0, 1.0)):
    """Two triangles covering a rectangle; returns (positions, uvs)."""
    u0, v0, u1, v1 = uv
    positions = [
        [x0, y0, 0], [x1, y0, 0], [x1, y1, 0],
        [x0, y0, 0], [x1, y1, 0], [x0, y1, 0],
    ]
    uvs = [
        [u0, v0], [u1, v0], [u1, v1],
        [u0, v0], [u1, v1], [u0, v1],
    ]
    return positions, uvs


class SlpkBuilder:
    """Writes an SLPK package (directory or zip) from node definitions."""

    def __init__(self, wkid=3857, with_region=True, compress=False):
        self.wkid = wkid
        self.with_region = with_region
        self.compress = compress
        self.entries = {}
        self.nodes = {}

    def add_node(self, node_id, level, children=(), geometry=None, texture=None, mbs=(0, 0, 0, 1)):
        """
        Args:
            geometry: (positions, uvs, regions) or None
            texture: Encoded image bytes or None
        """
        self.nodes[node_id] = dict(level=level, children=list(children),
                                   geometry=geometry, texture=texture, mbs=list(mbs))
        return self

    def _put(self, name, data):
        if self.compress and not name.endswith(('.jpg', '.png')):
            self.entries[name + '.gz'] = gzip.compress(data)
        else:
            self.entries[name] = data

    def _build_entries(self):
        self.entries = {}
        layer = {
            'id': 0,
            'layerType': 'IntegratedMesh',
            'spatialReference': {'wkid': self.wkid, 'latestWkid': self.wkid},
            'store': {
                'rootNode': './nodes/root',
                'defaultGeometrySchema': geometry_schema(self.with_region),
            },
        }
        self._put('3dSceneLayer.json', json.dumps(layer).encode('utf-8'))

        for node_id, node in self.nodes.items():
            base = f'nodes/{node_id}'
            document = {
                'id': node_id,
                'level': node['level'],
                'mbs': node['mbs'],
                'children': [{'id': c, 'href': f'../{c}'} for c in node['children']],
            }
            if node['geometry'] is not None:
                document['geometryData'] = [{'href': './geometries/0'}]
                positions, uvs, regions = node['geometry']
                self._put(f'{base}/geometries/0.bin', geometry_bytes(positions, uvs, regions))
            if node['texture'] is not None:
                document['textureData'] = [{'href': './textures/0_0'}]
                ext = '.png' if node['texture'][:4] == b'\x89PNG' else '.jpg'
                self._put(f'{base}/textures/0_0{ext}', node['texture'])
            self._put(f'{base}/3dNodeIndexDocument.json', json.dumps(document).encode('utf-8'))

    def write_dir(self, root: Path) -> Path:
        self._build_entries()
        for name, data in self.entries.items():
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        return root

    def write_zip(self, path: Path) -> Path:
        self._build_entries()
        with zipfile.ZipFile(path, 'w', compression=zipfile.ZIP_STORED) as zf:
            for name, data in self.entries.items():
                zf.writestr(name, data)
        return path


def atlased_builder(compress=False):
    """
    Root node (level 0) with one atlased quad pair and two level-1 children.

    The root geometry samples two 100x100 regions of an 800x600 texture.
    """
    size = (800, 600)
    texture = image_bytes(two_region_texture(size))
    r0 = region_for(0, 0, 100, 100, size)
    r1 = region_for(100, 0, 200, 100, size)

    p0, uv0 = quad(0, 0, 10, 10)
    p1, uv1 = quad(20, 0, 30, 10)
    positions = p0 + p1
    uvs = uv0 + uv1
    regions = [r0] * 6 + [r1] * 6

    builder = SlpkBuilder(compress=compress)
    builder.add_node('root', 0, children=['1', '2'], geometry=(positions, uvs, regions),
                     texture=texture, mbs=(1000.0, 2000.0, 0.0, 50.0))

    c1_pos, c1_uv = quad(0, 0, 5, 5)
    builder.add_node('1', 1, geometry=(c1_pos, c1_uv, [r0] * 6), texture=texture,
                     mbs=(1000.0, 2000.0, 0.0, 25.0))
    c2_pos, c2_uv = quad(5, 0, 10, 5, uv=(0.0, 0.0, 2.0, 1.0))
    builder.add_node('2', 1, geometry=(c2_pos, c2_uv, [r1] * 6), texture=texture,
                     mbs=(1010.0, 2000.0, 0.0, 25.0))
    return builder


def plain_builder():
    """Single node with one non-atlased submesh and a PNG texture."""
    texture = image_bytes(Image.new('RGB', (64, 32), (10, 200, 30)))
    positions, uvs = quad(-5, -5, 5, 5)
    builder = SlpkBuilder(with_region=False)
    builder.add_node('root', 0, geometry=(positions, uvs, None), texture=texture,
                     mbs=(500.0, 500.0, 10.0, 10.0))
    return builder


@pytest.fixture
def atlased_slpk(tmp_path):
    return atlased_builder().write_dir(tmp_path / 'atlased')


@pytest.fixture
def plain_slpk(tmp_path):
    return plain_builder().write_dir(tmp_path / 'plain')
