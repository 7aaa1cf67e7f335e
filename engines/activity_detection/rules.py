"""
Activity Rules — configurable thresholds and metadata for pose activity detection.
All tunable parameters live here for easy adjustment.

IMPORTANT: Pixel thresholds assume a ~30 fps stream; windows are always
measured in milliseconds of frame time, never in frame counts.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class Severity(Enum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class ActivityType(Enum):
    """Detectable activities with display name and severity."""
    LOITERING = ('Loitering', Severity.MEDIUM)
    PACING = ('Pacing', Severity.MEDIUM)
    CROUCHING = ('Crouching', Severity.HIGH)
    HIDING = ('Hiding/Concealing', Severity.HIGH)
    CLIMBING = ('Climbing', Severity.HIGH)
    AGGRESSIVE_GESTURE = ('Aggressive Gesture', Severity.HIGH)
    VANDALISM = ('Vandalism Motion', Severity.CRITICAL)
    RUNNING = ('Running', Severity.LOW)

    def __init__(self, display_name: str, severity: Severity):
        self.display_name = display_name
        self.severity = severity


# Activity metadata — severity label and key for export
ACTIVITY_METADATA: Dict[ActivityType, dict] = {
    t: {'name': t.display_name, 'severity': t.severity.name.lower(), 'is_abnormal': True}
    for t in ActivityType
}


@dataclass
class ActivityRules:
    """
    Thresholds for the pose activity detectors.
    Defaults reproduce the field-tuned values; override per deployment.
    """

    # ── History ──
    history_size: int = 150               # ~5s at 30fps
    min_keypoint_confidence: float = 0.3  # keypoints below this are treated as missing

    # ── Loitering ──
    loiter_window_ms: float = 10000.0
    loiter_min_samples: int = 30
    loiter_full_samples: int = 150
    loiter_max_movement: float = 5.0      # px/frame
    loiter_confidence: float = 0.7

    # ── Pacing ──
    pacing_window_ms: float = 5000.0
    pacing_min_samples: int = 50
    pacing_dead_zone: float = 2.0         # px — x motion ignored inside this band
    pacing_min_reversals: int = 3
    pacing_min_movement: float = 10.0
    pacing_max_movement: float = 40.0
    pacing_confidence: float = 0.65

    # ── Crouching ──
    crouch_max_body_angle: float = 100.0
    crouch_max_knee_angle: float = 120.0  # degrees
    crouch_confidence: float = 0.75

    # ── Hiding ──
    hiding_min_landmarks: int = 10
    hiding_occluded_confidence: float = 0.8
    hiding_max_body_angle: float = 80.0
    hiding_hand_face_distance: float = 100.0  # px
    hiding_pose_confidence: float = 0.75
    hiding_confidence: float = 0.7

    # ── Climbing ──
    climb_window_ms: float = 2000.0
    climb_min_samples: int = 20
    climb_min_rise: float = 20.0          # px upward over the window
    climb_confidence: float = 0.7

    # ── Aggressive gesture ──
    aggression_window_ms: float = 1000.0
    aggression_min_samples: int = 10
    aggression_min_movement: float = 50.0
    aggression_confidence: float = 0.65

    # ── Vandalism ──
    vandalism_window_ms: float = 2000.0
    vandalism_min_samples: int = 20
    vandalism_strike_drop: float = 30.0   # px wrist drop between frames
    vandalism_min_strikes: int = 2
    vandalism_confidence: float = 0.7

    # ── Running ──
    running_window_ms: float = 1000.0
    running_min_samples: int = 20
    running_min_movement: float = 40.0    # px/frame
    running_confidence: float = 0.6

    def __post_init__(self):
        if self.history_size < 1:
            raise ValueError("history_size must be >= 1")

    @classmethod
    def from_config(cls, config) -> 'ActivityRules':
        """Build rules from a Config-like object (see config.Config)."""
        return cls(
            history_size=config.POSE_HISTORY_SIZE,
            min_keypoint_confidence=config.MIN_KEYPOINT_CONFIDENCE,
        )
