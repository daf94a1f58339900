"""
Extent reduction pass.

Measures the top-level (coarsest) geometry in the destination SRS to find a
centering origin for exported vertices.
"""

import logging
import threading

from tilesmith.exceptions import TileSmithError
from tilesmith.geo.converter import CsConverter, clone_converter
from tilesmith.geo.extents import BoundingBox
from tilesmith.pipeline.pool import run_parallel
from tilesmith.scene.archive import Archive
from tilesmith.scene.sinks import ExtentsSink
from tilesmith.scene.types import Node, Tree

logger = logging.getLogger(__name__)


def measure_node(archive: Archive, node: Node, conv: CsConverter) -> BoundingBox:
    """Bounding box of a node's converted vertices."""
    extents = BoundingBox()
    archive.load_geometry(node, vertex_sink=ExtentsSink(conv, extents))
    return extents


def measure_extents(tree: Tree, archive: Archive, conv: CsConverter, workers: int = 1) -> BoundingBox:
    """
    Extents of all top-level nodes in the destination SRS.

    Each task converts with its own converter copy; local boxes are merged
    into the result under a lock. The result is invalid when no node carries
    geometry.
    """
    nodes = tree.top_level_nodes()
    logger.info(f"Measuring {len(nodes)} nodes at level {tree.top_level()}")

    extents = BoundingBox()
    lock = threading.Lock()

    def measure(node: Node) -> None:
        try:
            local = measure_node(archive, node, clone_converter(conv))
        except TileSmithError as e:
            logger.error(f"Measuring <{node.id}> failed: {e}")
            raise
        with lock:
            extents.merge(local)

    run_parallel(nodes, measure, workers)

    if extents.valid:
        logger.info(
            f"Extents: ({extents.min_x:.3f}, {extents.min_y:.3f}) - "
            f"({extents.max_x:.3f}, {extents.max_y:.3f})"
        )
    else:
        logger.warning("No geometry found, vertices will not be centered")
    return extents
