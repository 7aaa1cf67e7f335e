"""
Activity Engine — runs every registered activity detector on each pose frame.

The engine owns the ActivityHistory and threads it through every detector call.
Not thread-safe: one frame must finish before the next starts
(see services.detection_pipeline for a locked wrapper).
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence

from engines.activity_detection.detector import PersonPose
from engines.activity_detection.detectors import ActivityDetector, default_detectors
from engines.activity_detection.history import ActivityHistory
from engines.activity_detection.rules import ActivityRules, ActivityType

logger = logging.getLogger(__name__)


@dataclass
class ActivityFinding:
    """A detector result that cleared its confidence threshold."""
    activity_type: ActivityType
    confidence: float
    duration_ms: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'type': self.activity_type.name.lower(),
            'name': self.activity_type.display_name,
            'severity': self.activity_type.severity.name.lower(),
            'confidence': round(self.confidence, 2),
            'duration_ms': self.duration_ms,
            'details': self.details,
        }


class DetectionResult:
    """Base for the three per-frame outcomes of the activity engine."""
    status = ''
    findings: Sequence[ActivityFinding] = ()

    @property
    def is_abnormal(self) -> bool:
        return bool(self.findings)

    def to_dict(self) -> dict:
        return {
            'status': self.status,
            'is_abnormal': self.is_abnormal,
            'activities': [f.to_dict() for f in self.findings],
        }

    def __repr__(self) -> str:
        return f'{type(self).__name__}()'


class NoPoseDetected(DetectionResult):
    """The pose model returned nothing for this frame."""
    status = 'no_pose'


class Normal(DetectionResult):
    """A pose was analyzed and no detector fired."""
    status = 'normal'


class Detected(DetectionResult):
    status = 'detected'

    def __init__(self, findings: List[ActivityFinding]):
        self.findings = list(findings)

    def __eq__(self, other) -> bool:
        return isinstance(other, Detected) and self.findings == other.findings

    def __repr__(self) -> str:
        return f'Detected({self.findings!r})'


class ActivityEngine:
    """
    Pose-based activity analysis over a rolling history window.

    Per frame: ask each detector for a verdict on the primary pose against the
    history of earlier frames, keep those at or above the detector's threshold,
    then record the pose in the history.
    """

    def __init__(self, rules: Optional[ActivityRules] = None,
                 detectors: Optional[List[ActivityDetector]] = None):
        self.rules = rules or ActivityRules()
        self.detectors = detectors if detectors is not None else default_detectors(self.rules)
        self.history = ActivityHistory(self.rules.history_size)

    def analyze(self, poses: Optional[Sequence[PersonPose]], timestamp: float) -> DetectionResult:
        """
        Analyze one frame.

        Args:
            poses: poses returned by the pose model for this frame (may be empty)
            timestamp: monotonic frame time (ms)
        """
        if not poses:
            return NoPoseDetected()

        pose = self.select_primary(poses)
        if pose.min_confidence != self.rules.min_keypoint_confidence:
            pose = replace(pose, min_confidence=self.rules.min_keypoint_confidence)

        findings = []
        for detector in self.detectors:
            result = detector.analyze(pose, self.history, timestamp)
            if result.is_detected and result.confidence >= detector.confidence_threshold:
                findings.append(ActivityFinding(
                    activity_type=detector.activity_type,
                    confidence=result.confidence,
                    duration_ms=result.duration_ms,
                    details=result.details,
                ))
        self.history.add_pose_frame(pose, timestamp)

        if not findings:
            return Normal()

        findings.sort(key=lambda f: (f.activity_type.severity.value, f.confidence), reverse=True)
        logger.debug(
            "Activities detected: "
            + ', '.join(f'{f.activity_type.name} ({f.confidence:.2f})' for f in findings)
        )
        return Detected(findings)

    @staticmethod
    def select_primary(poses: Sequence[PersonPose]) -> PersonPose:
        """The pose with the most visible keypoints; the first one wins ties."""
        best = poses[0]
        for pose in poses[1:]:
            if pose.visible_count > best.visible_count:
                best = pose
        return best

    def reset(self) -> None:
        """Clear the pose and position history."""
        self.history.clear()

    def get_stats(self) -> dict:
        return {
            'history_size': len(self.history),
            'positions': len(self.history.positions),
            'detectors': [d.activity_type.name for d in self.detectors],
        }
