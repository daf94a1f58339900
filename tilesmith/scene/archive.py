"""
SLPK archive reader.

An SLPK package is a zip archive (or an extracted directory) holding the
scene layer document, one index document per node, binary geometries and
textures. Any entry may be stored gzipped under ``<name>.gz``.

    3dSceneLayer.json(.gz)
    nodes/<id>/3dNodeIndexDocument.json(.gz)
    nodes/<id>/geometries/<n>.bin(.gz)
    nodes/<id>/textures/<n>_<m>.jpg|.png|.bin(.gz)
"""

import gzip
import json
import logging
import posixpath
import threading
import zipfile
from pathlib import Path
from typing import List, Optional, Tuple, Union

from pydantic import ValidationError

from tilesmith.exceptions import ArchiveError, DecodeError
from tilesmith.schema.i3s import NODE_INDEX_DOCUMENT, SCENE_LAYER_DOCUMENT, NodeIndexDocument, SceneLayerInfo
from tilesmith.scene.geometry import decode_geometry
from tilesmith.scene.sinks import FaceSink, MeshBuilder, VertexSink
from tilesmith.scene.types import Node, SubMesh, Tree

logger = logging.getLogger(__name__)

# Texture variants in order of preference; DDS is never used
TEXTURE_SUFFIXES = ('.jpg', '.png', '.bin', '')


def _resolve(base: str, href: str) -> str:
    """Resolve a document-relative href into an archive-relative path."""
    path = posixpath.normpath(posixpath.join(base, href))
    if path.startswith('..'):
        raise ArchiveError(f"Reference {href} from {base} escapes the archive")
    return path


class Archive:
    """
    Read-only access to an SLPK package.

    Args:
        path: Path to an .slpk zip archive or an extracted directory

    Example:
        >>> archive = Archive("city.slpk")
        >>> tree = archive.load_tree()
        >>> for submesh in archive.load_geometry(tree["root"]):
        ...     print(submesh.href, len(submesh.mesh.faces))
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._zip: Optional[zipfile.ZipFile] = None
        self._names = None
        self._lock = threading.Lock()

        if self.path.is_dir():
            pass
        elif self.path.is_file():
            try:
                self._zip = zipfile.ZipFile(self.path)
            except zipfile.BadZipFile as e:
                raise ArchiveError(f"Cannot open archive {self.path}: {e}") from e
            self._names = set(self._zip.namelist())
        else:
            raise ArchiveError(f"Input archive not found: {self.path}")

        self._sli = self._load_scene_layer_info()

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # Generic I/O

    def exists(self, name: str) -> bool:
        if self._zip is not None:
            return name in self._names
        return (self.path / name).is_file()

    def _read_raw(self, name: str) -> bytes:
        if self._zip is not None:
            with self._lock:
                return self._zip.read(name)
        return (self.path / name).read_bytes()

    def locate(self, name: str) -> str:
        """Actual entry name of ``name`` (plain or gzipped)."""
        for candidate in (name, name + '.gz'):
            if self.exists(candidate):
                return candidate
        raise ArchiveError(f"Entry {name} not found in {self.path}")

    def read(self, name: str) -> bytes:
        """Read an entry, transparently decompressing gzipped variants."""
        entry = self.locate(name)
        data = self._read_raw(entry)
        if entry.endswith('.gz'):
            try:
                data = gzip.decompress(data)
            except (OSError, EOFError) as e:
                raise DecodeError(f"Cannot decompress {entry}: {e}", path=entry) from e
        return data

    def read_json(self, name: str) -> dict:
        data = self.read(name)
        try:
            return json.loads(data.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f"Cannot parse JSON document {name}: {e}", path=name) from e

    # Scene structure

    def _load_scene_layer_info(self) -> SceneLayerInfo:
        document = self.read_json(SCENE_LAYER_DOCUMENT)
        try:
            return SceneLayerInfo.model_validate(document)
        except ValidationError as e:
            raise DecodeError(f"Invalid scene layer document: {e}", path=SCENE_LAYER_DOCUMENT) from e

    def scene_layer_info(self) -> SceneLayerInfo:
        return self._sli

    def load_node_index(self, node_dir: str) -> Tuple[Node, List[str]]:
        """
        Load the node index document stored in ``node_dir``.

        Returns:
            Tuple of (node, archive-relative directories of its children)
        """
        name = posixpath.join(node_dir, NODE_INDEX_DOCUMENT)
        try:
            document = NodeIndexDocument.model_validate(self.read_json(name))
        except ValidationError as e:
            raise DecodeError(f"Invalid node index document {name}: {e}", path=name) from e

        return Node(
            id=document.id,
            level=document.level,
            geometry_hrefs=tuple(_resolve(node_dir, g.href) for g in document.geometry_data),
            texture_hrefs=tuple(_resolve(node_dir, t.href) for t in document.texture_data),
            mbs=tuple(document.mbs),
        ), [_resolve(node_dir, child.href) for child in document.children]

    def load_tree(self) -> Tree:
        """Load the whole node tree starting at the root node."""
        root_dir = _resolve('', self._sli.store.root_node)
        tree = Tree()
        pending = [root_dir]
        visited = set()

        while pending:
            node_dir = pending.pop()
            if node_dir in visited:
                continue
            visited.add(node_dir)

            node, children = self.load_node_index(node_dir)
            tree.add(node)
            pending.extend(reversed(children))

        logger.info(f"Loaded tree with {len(tree)} nodes")
        return tree

    def _geometry_entry(self, href: str) -> str:
        for candidate in (href + '.bin', href):
            for name in (candidate, candidate + '.gz'):
                if self.exists(name):
                    return candidate
        raise ArchiveError(f"Geometry {href} not found in {self.path}")

    def load_geometry(
        self,
        node: Node,
        vertex_sink: Optional[VertexSink] = None,
        face_sink: Optional[FaceSink] = None
    ) -> List[SubMesh]:
        """
        Load node geometry. Possibly more submeshes than just one.

        Without sinks every geometry reference is decoded into a SubMesh. With
        a ``vertex_sink`` the attributes are pushed into the given sinks instead
        and an empty list is returned.
        """
        schema = self._sli.store.default_geometry_schema
        submeshes = []

        for href in node.geometry_hrefs:
            entry = self._geometry_entry(href)
            data = self.read(entry)

            if vertex_sink is not None:
                decode_geometry(data, schema, node.mbs, vertex_sink, face_sink, path=entry)
                continue

            builder = MeshBuilder(href)
            decode_geometry(data, schema, node.mbs, builder, builder, path=entry)
            submeshes.append(builder.build())

        return submeshes

    def texture(self, node: Node, index: int = 0) -> Tuple[str, bytes]:
        """
        Open the texture of the given geometry.

        If there are more versions of the same texture, JPEG or PNG is
        returned. DDS is ignored.

        Returns:
            Tuple of (archive path, raw bytes)
        """
        if not 0 <= index < len(node.texture_hrefs):
            raise ArchiveError(
                f"Node {node.id} has no texture for geometry {index} "
                f"({len(node.texture_hrefs)} textures)"
            )
        href = node.texture_hrefs[index]

        for suffix in TEXTURE_SUFFIXES:
            name = href + suffix
            for candidate in (name, name + '.gz'):
                if self.exists(candidate):
                    return name, self.read(name)

        raise ArchiveError(f"Texture {href} of node {node.id} not found in {self.path}")
