"""
Tests for bounding-box geometry helpers.
"""

import math

import numpy as np
import pytest

from engines.security_alerts.geometry import (
    are_nearby, aspect_ratio, center_distance, intersection_over_union,
)
from engines.security_alerts.types import BoundingBox


def _random_boxes(n=50, seed=7):
    rng = np.random.default_rng(seed)
    boxes = []
    for _ in range(n):
        x, y = rng.uniform(0, 500, size=2)
        w, h = rng.uniform(1, 200, size=2)
        boxes.append(BoundingBox(float(x), float(y), float(x + w), float(y + h)))
    return boxes


class TestIntersectionOverUnion:
    def test_symmetric_and_bounded(self):
        boxes = _random_boxes()
        for a in boxes:
            for b in boxes:
                iou_ab = intersection_over_union(a, b)
                assert iou_ab == intersection_over_union(b, a)
                assert 0.0 <= iou_ab <= 1.0

    def test_identical_boxes(self):
        box = BoundingBox(10, 20, 110, 220)
        assert intersection_over_union(box, box) == pytest.approx(1.0)

    def test_half_overlap(self):
        a = BoundingBox(0, 0, 100, 100)
        b = BoundingBox(50, 0, 150, 100)
        # inter 5000, union 15000
        assert intersection_over_union(a, b) == pytest.approx(1 / 3)

    def test_disjoint_boxes(self):
        a = BoundingBox(0, 0, 10, 10)
        b = BoundingBox(20, 20, 30, 30)
        assert intersection_over_union(a, b) == 0.0

    def test_touching_edges(self):
        a = BoundingBox(0, 0, 10, 10)
        b = BoundingBox(10, 0, 20, 10)
        assert intersection_over_union(a, b) == 0.0

    def test_degenerate_box(self):
        a = BoundingBox(5, 5, 5, 50)  # zero width
        b = BoundingBox(0, 0, 100, 100)
        assert intersection_over_union(a, b) == 0.0
        assert intersection_over_union(b, a) == 0.0

    def test_inverted_box(self):
        a = BoundingBox(100, 100, 0, 0)
        b = BoundingBox(0, 0, 100, 100)
        assert intersection_over_union(a, b) == 0.0

    def test_nan_coordinates(self):
        a = BoundingBox(math.nan, 0, 10, 10)
        b = BoundingBox(0, 0, 10, 10)
        assert intersection_over_union(a, b) == 0.0


class TestAreNearby:
    def test_concentric_boxes_are_nearby(self):
        person = BoundingBox(100, 100, 200, 300)
        bag = BoundingBox(120, 170, 180, 230)
        assert are_nearby(person, bag, 0.3) is True

    def test_far_boxes_not_nearby(self):
        a = BoundingBox(0, 0, 100, 100)
        b = BoundingBox(400, 400, 500, 500)
        assert are_nearby(a, b, 0.3) is False

    def test_threshold_is_average_side(self):
        a = BoundingBox(0, 0, 100, 100)
        b = BoundingBox(20, 0, 120, 100)
        # center distance 20, average side 100
        assert are_nearby(a, b, 0.3) is True
        assert are_nearby(a, b, 0.2) is False

    def test_degenerate_boxes(self):
        a = BoundingBox(10, 10, 10, 10)
        assert are_nearby(a, a, 0.3) is False
        assert are_nearby(BoundingBox(math.inf, 0, 1, 1), a, 0.3) is False


class TestHelpers:
    def test_aspect_ratio(self):
        assert aspect_ratio(BoundingBox(0, 0, 200, 100)) == pytest.approx(2.0)
        assert aspect_ratio(BoundingBox(0, 0, 200, 0)) == 0.0

    def test_center_distance(self):
        a = BoundingBox(0, 0, 10, 10)
        b = BoundingBox(30, 40, 40, 50)
        assert center_distance(a, b) == pytest.approx(50.0)
