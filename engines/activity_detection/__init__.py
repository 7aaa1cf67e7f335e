"""
Activity Detection Engine
Provides pose-based suspicious activity detection over a rolling pose history.

Usage:
    from engines.activity_detection import PoseDetector, ActivityEngine, ActivityRules

    detector = PoseDetector(gpu_id=0)
    engine   = ActivityEngine(rules=ActivityRules())

    poses = detector.detect(frame)
    result = engine.analyze(poses, timestamp_ms)
"""

from engines.activity_detection.detector import PoseDetector, PersonPose
from engines.activity_detection.rules import (
    ActivityRules, ActivityType, Severity, ACTIVITY_METADATA,
)
from engines.activity_detection.history import ActivityHistory, PoseFrame, Position
from engines.activity_detection.detectors import (
    ActivityDetector, AnalysisResult, default_detectors,
    LoiteringDetector, PacingDetector, CrouchingDetector, HidingDetector,
    ClimbingDetector, AggressiveGestureDetector, VandalismDetector, RunningDetector,
)
from engines.activity_detection.engine import (
    ActivityEngine, ActivityFinding, DetectionResult, Detected, Normal, NoPoseDetected,
)

__all__ = [
    'PoseDetector', 'PersonPose',
    'ActivityRules', 'ActivityType', 'Severity', 'ACTIVITY_METADATA',
    'ActivityHistory', 'PoseFrame', 'Position',
    'ActivityDetector', 'AnalysisResult', 'default_detectors',
    'LoiteringDetector', 'PacingDetector', 'CrouchingDetector', 'HidingDetector',
    'ClimbingDetector', 'AggressiveGestureDetector', 'VandalismDetector', 'RunningDetector',
    'ActivityEngine', 'ActivityFinding', 'DetectionResult',
    'Detected', 'Normal', 'NoPoseDetected',
]
