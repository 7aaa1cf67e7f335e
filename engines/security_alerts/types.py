"""
Security alert data types — detections, tracked detections, alert kinds and results.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box in image pixel coordinates."""
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.left + self.right) / 2.0, (self.top + self.bottom) / 2.0)

    @property
    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.left, self.top, self.right, self.bottom))

    @classmethod
    def from_xyxy(cls, xyxy) -> 'BoundingBox':
        x1, y1, x2, y2 = (float(v) for v in xyxy[:4])
        return cls(left=x1, top=y1, right=x2, bottom=y2)

    def to_dict(self) -> dict:
        return {'left': self.left, 'top': self.top, 'right': self.right, 'bottom': self.bottom}


@dataclass(frozen=True)
class Detection:
    """One object observation in one frame, as produced by the object detector."""
    label: str
    confidence: float
    bbox: BoundingBox
    class_id: int = -1

    def to_dict(self) -> dict:
        return {
            'label': self.label,
            'confidence': round(self.confidence, 3),
            'bbox': self.bbox.to_dict(),
            'class_id': self.class_id,
        }


@dataclass(frozen=True)
class TrackedDetection:
    """A detection with the identity of the track it was associated to."""
    detection: Detection
    tracking_id: int
    frame_count: int

    @property
    def label(self) -> str:
        return self.detection.label

    @property
    def confidence(self) -> float:
        return self.detection.confidence

    @property
    def bbox(self) -> BoundingBox:
        return self.detection.bbox

    def to_dict(self) -> dict:
        d = self.detection.to_dict()
        d['tracking_id'] = self.tracking_id
        d['frame_count'] = self.frame_count
        return d


class SecurityAlertKind(Enum):
    """Alert kinds with an explicit severity (higher = more important)."""
    NONE = ('Normal', 0)
    HIGH_CONFIDENCE_PERSON = ('Person Detected', 1)
    SUSPICIOUS_ITEMS = ('Suspicious Items', 2)
    MASKED_PERSON = ('Masked Person Detected', 3)
    VEHICLE_WITH_PERSON = ('Vehicle with Person', 3)
    MULTIPLE_INTRUDERS = ('Multiple People', 4)
    WEAPON_DETECTED = ('Weapon Detected!', 5)

    def __init__(self, display_name: str, severity: int):
        self.display_name = display_name
        self.severity = severity

    @property
    def is_alert(self) -> bool:
        return self is not SecurityAlertKind.NONE


@dataclass
class SecurityAlertResult:
    """Per-frame output of the security analyzer."""
    kind: SecurityAlertKind = SecurityAlertKind.NONE
    confidence: float = 0.0
    should_trigger: bool = False
    reason: str = ''
    score: float = 0.0
    tracked: List[TrackedDetection] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'kind': self.kind.name,
            'display_name': self.kind.display_name,
            'severity': self.kind.severity,
            'confidence': round(self.confidence, 2),
            'should_trigger': self.should_trigger,
            'reason': self.reason,
            'score': round(self.score, 3),
            'detections': [t.to_dict() for t in self.tracked],
        }
