"""
Activity History — rolling pose and position buffers shared by all detectors.
"""

from collections import deque
from dataclasses import dataclass
from typing import List

from engines.activity_detection.detector import PersonPose


@dataclass(frozen=True)
class PoseFrame:
    pose: PersonPose
    timestamp: float


@dataclass(frozen=True)
class Position:
    """Centroid of the visible keypoints of one pose."""
    x: float
    y: float
    timestamp: float


class ActivityHistory:
    """
    Fixed-capacity pose and centroid history (~5s at 30fps).

    Queries filter by timestamp relative to the caller's `now`, so dropped or
    irregular frames do not distort the windows.
    """

    def __init__(self, max_size: int = 150):
        self.max_size = max_size
        self.poses: deque = deque(maxlen=max_size)
        self.positions: deque = deque(maxlen=max_size)

    def add_pose_frame(self, pose: PersonPose, timestamp: float) -> None:
        self.poses.append(PoseFrame(pose, timestamp))
        center = pose.centroid()
        if center is not None:
            self.positions.append(Position(center[0], center[1], timestamp))

    def add_position(self, x: float, y: float, timestamp: float) -> None:
        self.positions.append(Position(x, y, timestamp))

    def recent_poses(self, duration_ms: float, now: float) -> List[PoseFrame]:
        cutoff = now - duration_ms
        return [f for f in self.poses if cutoff <= f.timestamp <= now]

    def recent_positions(self, duration_ms: float, now: float) -> List[Position]:
        cutoff = now - duration_ms
        return [p for p in self.positions if cutoff <= p.timestamp <= now]

    @property
    def latest_timestamp(self) -> float:
        """Timestamp of the newest sample, or 0.0 when empty."""
        stamps = [b[-1].timestamp for b in (self.poses, self.positions) if b]
        return max(stamps) if stamps else 0.0

    def clear(self) -> None:
        self.poses.clear()
        self.positions.clear()

    def __len__(self) -> int:
        return len(self.poses)
