"""
Tests for the YOLO pose adapter's result conversion. No model weights are loaded.
"""

from types import SimpleNamespace

import numpy as np
import pytest

from engines.activity_detection import detector as detector_module
from engines.activity_detection.detector import PoseDetector


class FakeTensor:
    def __init__(self, data):
        self._data = np.asarray(data, dtype=np.float32)
        self.shape = self._data.shape

    def cpu(self):
        return self

    def numpy(self):
        return self._data


@pytest.fixture
def detector(monkeypatch):
    monkeypatch.setattr(detector_module, 'YOLO_AVAILABLE', False)
    return PoseDetector(min_keypoint_confidence=0.4)


def _result(n_people, boxes=True):
    kps = np.zeros((n_people, 17, 3), dtype=np.float32)
    for i in range(n_people):
        kps[i, :, 0] = 100 * (i + 1)
        kps[i, :, 1] = np.arange(17) * 10
        kps[i, :, 2] = 0.5
    kps[0, 0, 2] = 0.35  # nose below the adapter threshold
    xyxy = [[100 * (i + 1) - 20, 0, 100 * (i + 1) + 20, 170] for i in range(n_people)]
    return SimpleNamespace(
        keypoints=SimpleNamespace(data=FakeTensor(kps)),
        boxes=SimpleNamespace(xyxy=FakeTensor(xyxy)) if boxes else None,
    )


class TestPoseDetector:
    def test_unavailable_without_model(self, detector):
        assert detector.available is False
        assert detector.detect(np.zeros((480, 640, 3), dtype=np.uint8)) == []

    def test_from_result(self, detector):
        poses = detector.from_result(_result(2))
        assert len(poses) == 2
        assert poses[1].keypoints.shape == (17, 2)
        assert poses[1].landmark('left_shoulder') == (200.0, 50.0)
        assert poses[0].bbox == [80.0, 0.0, 120.0, 170.0]

    def test_adapter_threshold_applied(self, detector):
        pose = detector.from_result(_result(1))[0]
        assert pose.min_confidence == 0.4
        assert pose.landmark('nose') is None
        assert pose.visible_count == 16

    def test_missing_boxes(self, detector):
        poses = detector.from_result(_result(1, boxes=False))
        assert poses[0].bbox is None

    def test_empty_result(self, detector):
        assert detector.from_result(SimpleNamespace(keypoints=None, boxes=None)) == []
        empty = SimpleNamespace(keypoints=SimpleNamespace(data=FakeTensor(np.zeros((0, 17, 3)))),
                                boxes=None)
        assert detector.from_result(empty) == []
