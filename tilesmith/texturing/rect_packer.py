"""
Rectangle Packer

Packs generic rectangles into a compact atlas without resizing them.
The canvas is the tight bound of all placements (no power-of-2 rounding).
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from tilesmith.exceptions import PackingError

logger = logging.getLogger(__name__)

MAX_SIZE = 16384


def _layout(
    sorted_rects: List[Tuple[int, int, int]],
    shelf_width: int,
    max_size: int
) -> Optional[Tuple[List[Dict[str, Any]], int, int]]:
    """
    Greedy shelf layout for a fixed shelf width.

    Each rectangle goes onto the first shelf with room left, otherwise onto a
    new shelf below the last one.

    Returns:
        (placements, used width, used height), or None if the layout exceeds max_size
    """
    # Shelves as [y, height, next free x]
    shelves: List[List[int]] = []
    placements = []
    used_w = used_h = 0

    for w, h, rid in sorted_rects:
        if w > shelf_width:
            return None

        shelf = next((s for s in shelves if w <= shelf_width - s[2] and h <= s[1]), None)
        if shelf is None:
            top = shelves[-1][0] + shelves[-1][1] if shelves else 0
            if top + h > max_size:
                return None
            shelf = [top, h, 0]
            shelves.append(shelf)

        x, y = shelf[2], shelf[0]
        shelf[2] += w
        placements.append({'id': rid, 'x': x, 'y': y, 'width': w, 'height': h})
        used_w = max(used_w, x + w)
        used_h = max(used_h, y + h)

    return placements, used_w, used_h


def pack_rectangles(
    rects: List[Tuple[int, int, Any]],
    max_size: int = MAX_SIZE
) -> Tuple[List[Dict[str, Any]], int, int]:
    """
    Pack rectangles into the smallest canvas found.

    Every candidate shelf width (widest rectangle up to all rectangles in one
    row) is tried; the layout with the smallest area wins, ties going to the
    smaller height. Identical input always yields identical output.

    Args:
        rects: List of (width, height, id) tuples
        max_size: Maximum canvas width/height

    Returns:
        Tuple of:
        - List of dicts with keys 'id', 'x', 'y', 'width', 'height' (input order)
        - Canvas width
        - Canvas height

    Raises:
        PackingError: If the rectangles cannot fit into max_size x max_size
    """
    if not rects:
        return [], 1, 1

    for w, h, rid in rects:
        if w < 0 or h < 0:
            raise PackingError(f"Invalid rectangle {w}x{h} ({rid})")
        if w > max_size or h > max_size:
            raise PackingError(f"Rectangle {w}x{h} ({rid}) exceeds maximum atlas size {max_size}")

    # Track input positions so results come back in input order
    indexed = [(w, h, i) for i, (w, h, _) in enumerate(rects)]

    # Zero-area rectangles take no space
    empty = [r for r in indexed if r[0] == 0 or r[1] == 0]
    solid = [r for r in indexed if r[0] > 0 and r[1] > 0]

    # Sort by height (tallest first); stable for equal sizes
    sorted_rects = sorted(solid, key=lambda r: (r[1], r[0]), reverse=True)

    candidates = []
    if sorted_rects:
        running = 0
        for w, _, _ in sorted_rects:
            running += w
            candidates.append(min(running, max_size))
        candidates.append(max(r[0] for r in sorted_rects))

    best = None
    for shelf_width in sorted(set(candidates)):
        result = _layout(sorted_rects, shelf_width, max_size)
        if result is None:
            continue
        _, width, height = result
        key = (width * height, height, width)
        if best is None or key < best[0]:
            best = (key, result)

    if sorted_rects and best is None:
        raise PackingError(f"Could not pack {len(sorted_rects)} rectangles into atlas up to {max_size}x{max_size}")

    placements, width, height = best[1] if best else ([], 0, 0)
    ordered: List[Dict[str, Any]] = [None] * len(rects)
    for p in placements:
        ordered[p['id']] = p
    for w, h, i in empty:
        ordered[i] = {'id': i, 'x': 0, 'y': 0, 'width': w, 'height': h}
    for i, p in enumerate(ordered):
        p['id'] = rects[i][2]

    width, height = max(1, width), max(1, height)
    logger.debug(f"Packed {len(rects)} rectangles into {width}x{height} canvas")
    return ordered, width, height
