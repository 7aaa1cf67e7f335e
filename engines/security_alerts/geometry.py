"""
Geometry utilities for bounding boxes.
"""

import math

from engines.security_alerts.types import BoundingBox


def aspect_ratio(box: BoundingBox) -> float:
    """Width / height, or 0.0 for boxes without a positive height."""
    if not box.is_finite or box.height <= 0:
        return 0.0
    return box.width / box.height


def intersection_over_union(box_a: BoundingBox, box_b: BoundingBox) -> float:
    """
    Compute Intersection over Union between two boxes.

    Returns 0.0 when the boxes do not overlap, when either box has a
    non-positive area or when any coordinate is not finite.
    """
    if not (box_a.is_finite and box_b.is_finite):
        return 0.0
    if box_a.width <= 0 or box_a.height <= 0 or box_b.width <= 0 or box_b.height <= 0:
        return 0.0

    x1 = max(box_a.left, box_b.left)
    y1 = max(box_a.top, box_b.top)
    x2 = min(box_a.right, box_b.right)
    y2 = min(box_a.bottom, box_b.bottom)

    inter = max(0.0, x2 - x1) * max(0.0, y2 - y1)
    if inter <= 0:
        return 0.0

    union = box_a.area + box_b.area - inter
    if union <= 0:
        return 0.0
    return min(1.0, inter / union)


def center_distance(box_a: BoundingBox, box_b: BoundingBox) -> float:
    """Euclidean distance between box centers."""
    ax, ay = box_a.center
    bx, by = box_b.center
    return math.hypot(ax - bx, ay - by)


def are_nearby(box_a: BoundingBox, box_b: BoundingBox, threshold_ratio: float) -> bool:
    """
    True when the center distance is below threshold_ratio times the
    average of the four side lengths of both boxes.
    """
    if not (box_a.is_finite and box_b.is_finite):
        return False
    avg_side = (box_a.width + box_a.height + box_b.width + box_b.height) / 4.0
    if avg_side <= 0:
        return False
    return center_distance(box_a, box_b) < threshold_ratio * avg_side
