"""
Activity Detectors — one class per suspicious activity.

Each detector is stateless: all temporal evidence comes from the shared
ActivityHistory passed into analyze(). A detector reports a raw verdict; the
engine decides whether it clears the detector's confidence_threshold.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from engines.activity_detection.detector import PersonPose
from engines.activity_detection.history import ActivityHistory, PoseFrame, Position
from engines.activity_detection.pose_utils import (
    average_movement, average_wrist_height, body_angle, clamp,
    hands_above_head, hands_near_face, knee_angle,
)
from engines.activity_detection.rules import ActivityRules, ActivityType


@dataclass
class AnalysisResult:
    """Raw verdict of a single detector."""
    is_detected: bool
    confidence: float
    duration_ms: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)


NOT_DETECTED = AnalysisResult(False, 0.0)


class ActivityDetector(ABC):
    """Base class for pose activity detectors."""

    activity_type: ActivityType

    def __init__(self, rules: Optional[ActivityRules] = None):
        self.rules = rules or ActivityRules()

    @property
    @abstractmethod
    def confidence_threshold(self) -> float:
        """Minimum confidence for a detection to be reported."""

    @abstractmethod
    def analyze(self, pose: PersonPose, history: ActivityHistory,
                now: float) -> AnalysisResult:
        """Analyze the current pose against the shared history at frame time `now` (ms)."""


def _span(samples: Sequence) -> float:
    if len(samples) < 2:
        return 0.0
    return samples[-1].timestamp - samples[0].timestamp


class LoiteringDetector(ActivityDetector):
    """Very little movement over a long period."""

    activity_type = ActivityType.LOITERING

    @property
    def confidence_threshold(self) -> float:
        return self.rules.loiter_confidence

    def analyze(self, pose, history, now):
        r = self.rules
        positions = history.recent_positions(r.loiter_window_ms, now)
        if len(positions) < r.loiter_min_samples:
            return NOT_DETECTED

        avg = average_movement(positions)
        detected = avg < r.loiter_max_movement and len(positions) >= r.loiter_full_samples
        confidence = clamp(1.0 - avg / 10.0) if detected else 0.0

        return AnalysisResult(
            is_detected=detected,
            confidence=confidence,
            duration_ms=_span(positions),
            details={'avg_movement': avg},
        )


class PacingDetector(ActivityDetector):
    """Moderate movement with repeated back-and-forth direction changes."""

    activity_type = ActivityType.PACING

    @property
    def confidence_threshold(self) -> float:
        return self.rules.pacing_confidence

    def analyze(self, pose, history, now):
        r = self.rules
        positions = history.recent_positions(r.pacing_window_ms, now)
        if len(positions) < r.pacing_min_samples:
            return NOT_DETECTED

        reversals = self.count_direction_changes(positions)
        avg = average_movement(positions)
        detected = (reversals >= r.pacing_min_reversals
                    and r.pacing_min_movement <= avg <= r.pacing_max_movement)
        confidence = clamp(reversals / 6.0) if detected else 0.0

        return AnalysisResult(
            is_detected=detected,
            confidence=confidence,
            duration_ms=_span(positions),
            details={'direction_changes': reversals, 'avg_movement': avg},
        )

    def count_direction_changes(self, positions: Sequence[Position]) -> int:
        """
        Count changes of horizontal direction. Motion inside the dead zone keeps
        the previous direction; the first committed direction counts as a change.
        """
        if len(positions) < 3:
            return 0

        dead_zone = self.rules.pacing_dead_zone
        changes = 0
        prev_direction = 0  # -1 left, 1 right, 0 not yet moving

        for i in range(1, len(positions)):
            dx = positions[i].x - positions[i - 1].x
            if dx > dead_zone:
                direction = 1
            elif dx < -dead_zone:
                direction = -1
            else:
                direction = prev_direction

            if direction != 0 and direction != prev_direction:
                changes += 1
            prev_direction = direction

        return changes


class CrouchingDetector(ActivityDetector):
    """Compressed torso with at least one bent knee."""

    activity_type = ActivityType.CROUCHING

    @property
    def confidence_threshold(self) -> float:
        return self.rules.crouch_confidence

    def analyze(self, pose, history, now):
        r = self.rules
        torso = body_angle(pose)
        if torso is None:
            return NOT_DETECTED

        left_knee = knee_angle(pose, left=True)
        right_knee = knee_angle(pose, left=False)
        detected = (torso < r.crouch_max_body_angle
                    and (left_knee < r.crouch_max_knee_angle or right_knee < r.crouch_max_knee_angle))

        confidence = 0.0
        if detected:
            angle_score = 1.0 - torso / 150.0
            knee_score = 1.0 - min(left_knee, right_knee) / 180.0
            confidence = clamp((angle_score + knee_score) / 2.0)

        return AnalysisResult(
            is_detected=detected,
            confidence=confidence,
            details={
                'body_angle': torso,
                'left_knee_angle': left_knee,
                'right_knee_angle': right_knee,
            },
        )


class HidingDetector(ActivityDetector):
    """Occluded body, folded posture, or both hands covering the face."""

    activity_type = ActivityType.HIDING

    @property
    def confidence_threshold(self) -> float:
        return self.rules.hiding_confidence

    def analyze(self, pose, history, now):
        r = self.rules
        visible = pose.visible_count
        if visible < r.hiding_min_landmarks:
            return AnalysisResult(
                is_detected=True,
                confidence=r.hiding_occluded_confidence,
                details={'visible_landmarks': visible},
            )

        torso = body_angle(pose)
        covering_face = hands_near_face(pose, r.hiding_hand_face_distance)
        detected = (torso is not None and torso < r.hiding_max_body_angle) or covering_face

        return AnalysisResult(
            is_detected=detected,
            confidence=r.hiding_pose_confidence if detected else 0.0,
            details={'body_angle': torso, 'hands_near_face': covering_face},
        )


class ClimbingDetector(ActivityDetector):
    """Hands above the head while the body moves upward."""

    activity_type = ActivityType.CLIMBING

    @property
    def confidence_threshold(self) -> float:
        return self.rules.climb_confidence

    def analyze(self, pose, history, now):
        r = self.rules
        positions = history.recent_positions(r.climb_window_ms, now)
        if len(positions) < r.climb_min_samples:
            return NOT_DETECTED

        # Image y grows downward: positive means moving up
        rise = positions[0].y - positions[-1].y
        raised = hands_above_head(pose)
        detected = raised and rise > r.climb_min_rise
        confidence = clamp((rise / 50.0) * 0.7 + 0.3) if detected else 0.0

        return AnalysisResult(
            is_detected=detected,
            confidence=confidence,
            duration_ms=_span(positions),
            details={'hands_above_head': raised, 'vertical_movement': rise},
        )


class AggressiveGestureDetector(ActivityDetector):
    """Rapid arm movement over the last second."""

    activity_type = ActivityType.AGGRESSIVE_GESTURE

    @property
    def confidence_threshold(self) -> float:
        return self.rules.aggression_confidence

    def analyze(self, pose, history, now):
        r = self.rules
        frames = history.recent_poses(r.aggression_window_ms, now)
        if len(frames) < r.aggression_min_samples:
            return NOT_DETECTED

        movement = self.arm_movement_speed(frames)
        detected = movement > r.aggression_min_movement
        confidence = clamp(movement / 100.0) if detected else 0.0

        return AnalysisResult(
            is_detected=detected,
            confidence=confidence,
            duration_ms=_span(frames),
            details={'arm_movement': movement},
        )

    @staticmethod
    def arm_movement_speed(frames: Sequence[PoseFrame]) -> float:
        """Average per-frame |dx| + |dy| summed over both wrists."""
        if len(frames) < 2:
            return 0.0
        total = 0.0
        for i in range(1, len(frames)):
            prev, curr = frames[i - 1].pose, frames[i].pose
            for name in ('left_wrist', 'right_wrist'):
                a, b = prev.landmark(name), curr.landmark(name)
                if a is not None and b is not None:
                    total += abs(b[0] - a[0]) + abs(b[1] - a[1])
        return total / (len(frames) - 1)


class VandalismDetector(ActivityDetector):
    """Repeated downward striking motions of the arms."""

    activity_type = ActivityType.VANDALISM

    @property
    def confidence_threshold(self) -> float:
        return self.rules.vandalism_confidence

    def analyze(self, pose, history, now):
        r = self.rules
        frames = history.recent_poses(r.vandalism_window_ms, now)
        if len(frames) < r.vandalism_min_samples:
            return NOT_DETECTED

        strikes = self.count_strikes(frames)
        detected = strikes >= r.vandalism_min_strikes
        confidence = clamp(strikes / 4.0) if detected else 0.0

        return AnalysisResult(
            is_detected=detected,
            confidence=confidence,
            duration_ms=_span(frames),
            details={'strike_motions': strikes},
        )

    def count_strikes(self, frames: Sequence[PoseFrame]) -> int:
        """Frames where the mean wrist height drops sharply (y grows) versus the previous frame."""
        strikes = 0
        prev_height = None
        for frame in frames:
            height = average_wrist_height(frame.pose)
            if height is not None and prev_height is not None:
                if height - prev_height > self.rules.vandalism_strike_drop:
                    strikes += 1
            prev_height = height
        return strikes


class RunningDetector(ActivityDetector):
    """Sustained fast movement of the body centroid."""

    activity_type = ActivityType.RUNNING

    @property
    def confidence_threshold(self) -> float:
        return self.rules.running_confidence

    def analyze(self, pose, history, now):
        r = self.rules
        positions = history.recent_positions(r.running_window_ms, now)
        if len(positions) < r.running_min_samples:
            return NOT_DETECTED

        avg = average_movement(positions)
        detected = avg > r.running_min_movement
        confidence = clamp(avg / 80.0) if detected else 0.0

        return AnalysisResult(
            is_detected=detected,
            confidence=confidence,
            duration_ms=_span(positions),
            details={'avg_movement': avg},
        )


def default_detectors(rules: Optional[ActivityRules] = None) -> List[ActivityDetector]:
    """The fixed detector registry, in evaluation order."""
    rules = rules or ActivityRules()
    return [
        LoiteringDetector(rules),
        PacingDetector(rules),
        CrouchingDetector(rules),
        HidingDetector(rules),
        ClimbingDetector(rules),
        AggressiveGestureDetector(rules),
        VandalismDetector(rules),
        RunningDetector(rules),
    ]
