"""
Pose geometry helpers used by the activity detectors.
Missing keypoints never raise; each helper documents its fallback value.
"""

import math
from typing import Optional, Sequence

import numpy as np

from engines.activity_detection.detector import PersonPose
from engines.activity_detection.history import Position


def _distance(p1, p2) -> float:
    """Euclidean distance between two 2D points."""
    return float(np.sqrt((p1[0] - p2[0])**2 + (p1[1] - p2[1])**2))


def _angle_deg(a, b, c) -> float:
    """Compute angle at point b formed by points a-b-c, in degrees."""
    ba = np.array([a[0] - b[0], a[1] - b[1]])
    bc = np.array([c[0] - b[0], c[1] - b[1]])
    cos_angle = np.dot(ba, bc) / (np.linalg.norm(ba) * np.linalg.norm(bc) + 1e-6)
    return float(np.degrees(np.arccos(np.clip(cos_angle, -1.0, 1.0))))


def body_angle(pose: PersonPose) -> Optional[float]:
    """
    Vertical extent of the torso: |shoulder midpoint y - left hip y| in px.
    Small values mean a folded or horizontal body. None when keypoints are missing.
    """
    left_shoulder = pose.landmark('left_shoulder')
    right_shoulder = pose.landmark('right_shoulder')
    left_hip = pose.landmark('left_hip')
    if left_shoulder is None or right_shoulder is None or left_hip is None:
        return None
    shoulder_mid_y = (left_shoulder[1] + right_shoulder[1]) / 2.0
    return abs(shoulder_mid_y - left_hip[1])


def knee_angle(pose: PersonPose, left: bool) -> float:
    """Hip-knee-ankle angle in degrees; 180 (straight leg) when keypoints are missing."""
    side = 'left' if left else 'right'
    hip = pose.landmark(f'{side}_hip')
    knee = pose.landmark(f'{side}_knee')
    ankle = pose.landmark(f'{side}_ankle')
    if hip is None or knee is None or ankle is None:
        return 180.0
    return _angle_deg(hip, knee, ankle)


def average_movement(positions: Sequence[Position]) -> float:
    """Mean displacement between consecutive samples (px/frame)."""
    if len(positions) < 2:
        return 0.0
    total = sum(
        math.hypot(positions[i].x - positions[i - 1].x, positions[i].y - positions[i - 1].y)
        for i in range(1, len(positions))
    )
    return total / (len(positions) - 1)


def hands_above_head(pose: PersonPose) -> bool:
    """Both wrists above the nose (smaller y in image coordinates)."""
    nose = pose.landmark('nose')
    left_wrist = pose.landmark('left_wrist')
    right_wrist = pose.landmark('right_wrist')
    if nose is None or left_wrist is None or right_wrist is None:
        return False
    return left_wrist[1] < nose[1] and right_wrist[1] < nose[1]


def hands_near_face(pose: PersonPose, max_distance: float) -> bool:
    """Both wrists within max_distance px of the nose."""
    nose = pose.landmark('nose')
    left_wrist = pose.landmark('left_wrist')
    right_wrist = pose.landmark('right_wrist')
    if nose is None or left_wrist is None or right_wrist is None:
        return False
    return (_distance(left_wrist, nose) < max_distance
            and _distance(right_wrist, nose) < max_distance)


def average_wrist_height(pose: PersonPose) -> Optional[float]:
    """Mean y of the visible wrists, None when neither is visible."""
    ys = [p[1] for p in (pose.landmark('left_wrist'), pose.landmark('right_wrist')) if p is not None]
    if not ys:
        return None
    return sum(ys) / len(ys)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))
