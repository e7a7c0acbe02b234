"""
Bounding box spatial helpers for receipt parsing.

Boxes are normalized to the image (0.0 - 1.0), so distances are
resolution independent.
"""

import math
from typing import Iterable, List, Optional, Tuple

from receipt_fields.models.blocks import BoundingBox, TextBlock


def box_center(box: Optional[BoundingBox]) -> Optional[Tuple[float, float]]:
    """Center point of a box, or None if the box is missing."""
    if box is None:
        return None
    return box.center


def calculate_distance(box1: Optional[BoundingBox], box2: Optional[BoundingBox]) -> float:
    """
    Euclidean distance between the centers of two boxes.

    Returns:
        Distance in normalized units, or math.inf if either box is missing
    """
    center1 = box_center(box1)
    center2 = box_center(box2)
    if center1 is None or center2 is None:
        return math.inf

    dx = center1[0] - center2[0]
    dy = center1[1] - center2[1]
    return math.hypot(dx, dy)


def in_vertical_band(
    block: TextBlock,
    top: Optional[float] = None,
    bottom: Optional[float] = None
) -> bool:
    """
    Check whether a block's top edge lies strictly inside (top, bottom).

    Either bound may be None for an open band. Blocks without a bounding
    box are never inside a band.
    """
    y = block.top
    if y is None:
        return False
    if top is not None and not y > top:
        return False
    if bottom is not None and not y < bottom:
        return False
    return True


def find_nearby_blocks(
    target: TextBlock,
    blocks: Iterable[TextBlock],
    max_distance: float
) -> List[Tuple[TextBlock, float]]:
    """
    Find blocks whose centers lie within max_distance of the target's center.

    The target itself is included (distance 0). Results are sorted by
    distance, closest first.
    """
    nearby = []
    for block in blocks:
        distance = calculate_distance(target.bounding_box, block.bounding_box)
        if distance <= max_distance:
            nearby.append((block, distance))

    nearby.sort(key=lambda item: item[1])
    return nearby
