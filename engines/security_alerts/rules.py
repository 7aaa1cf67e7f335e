"""
Alert Rules — configurable thresholds for the object-detection alert pipeline.
All tunable parameters live here for easy adjustment.

Times are milliseconds on the caller's monotonic clock.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Tuple


# Per-class (min, max) width/height ratio. A box must also pass the global range.
CLASS_ASPECT_RATIOS: Dict[str, Tuple[float, float]] = {
    'person':     (0.3, 3.0),
    'knife':      (2.0, 10.0),
    'car':        (0.8, 4.0),
    'truck':      (0.8, 4.0),
    'bus':        (0.8, 4.0),
    'motorcycle': (0.5, 2.5),
    'bicycle':    (0.5, 2.5),
    'backpack':   (0.4, 2.0),
    'handbag':    (0.4, 2.5),
    'bottle':     (0.2, 1.0),
}

PERSON_LABEL = 'person'
WEAPON_LABELS: FrozenSet[str] = frozenset({'knife', 'gun', 'pistol', 'rifle'})
VEHICLE_LABELS: FrozenSet[str] = frozenset({'car', 'truck', 'motorcycle', 'bus'})
SUSPICIOUS_ITEM_LABELS: FrozenSet[str] = frozenset({'backpack', 'handbag'})


@dataclass
class AlertRules:
    """
    Thresholds for filtering, tracking, smoothing, scoring and alerting.
    Validated once at construction; treat as immutable afterwards.
    """

    # ── Detection filter ──
    min_object_size_percent: float = 0.02   # fraction of frame area
    max_object_size_percent: float = 0.95
    min_aspect_ratio: float = 0.2
    max_aspect_ratio: float = 5.0
    min_box_side_px: float = 10.0
    class_aspect_ratios: Dict[str, Tuple[float, float]] = field(
        default_factory=lambda: dict(CLASS_ASPECT_RATIOS)
    )

    # ── Tracking ──
    max_tracking_age_ms: float = 1000.0
    tracking_iou_threshold: float = 0.3     # looser than NMS IoU to tolerate motion

    # ── Smoothing / history ──
    max_history_size: int = 10
    confidence_smoothing_weight: float = 0.7
    smoothing_window: int = 5

    # ── Scoring ──
    presence_weight: float = 0.4
    count_weight: float = 0.3
    interaction_weight: float = 0.3
    count_saturation: int = 5               # detections for a full count score
    interaction_saturation: int = 3         # pairs for a full interaction score
    proximity_ratio: float = 0.3
    min_alert_score: float = 0.3
    bypass_severity: int = 4                # this severity skips temporal corroboration
    corroboration_window: int = 3
    corroboration_required: int = 2

    # ── Classification ──
    weapon_confidence: float = 0.7
    intruder_confidence: float = 0.7
    min_intruders: int = 3
    vehicle_person_confidence: float = 0.65
    min_suspicious_items: int = 2
    high_person_confidence: float = 0.85

    # ── Alerting ──
    alert_cooldown_ms: float = 5000.0
    alert_stability_frames: int = 3

    def __post_init__(self):
        if self.alert_stability_frames < 1:
            raise ValueError("alert_stability_frames must be >= 1")
        if self.max_history_size < 1:
            raise ValueError("max_history_size must be >= 1")
        if not 0.0 < self.confidence_smoothing_weight < 1.0:
            raise ValueError("confidence_smoothing_weight must be in (0, 1)")
        if self.min_object_size_percent > self.max_object_size_percent:
            raise ValueError("min_object_size_percent exceeds max_object_size_percent")
        if self.min_aspect_ratio > self.max_aspect_ratio:
            raise ValueError("min_aspect_ratio exceeds max_aspect_ratio")
        for label, (lo, hi) in self.class_aspect_ratios.items():
            if lo > hi:
                raise ValueError(f"Inverted aspect ratio range for '{label}': {lo} > {hi}")

    @classmethod
    def from_config(cls, config) -> 'AlertRules':
        """Build rules from a Config-like object (see config.Config)."""
        return cls(
            min_object_size_percent=config.MIN_OBJECT_SIZE_PERCENT,
            max_object_size_percent=config.MAX_OBJECT_SIZE_PERCENT,
            max_tracking_age_ms=config.MAX_TRACKING_AGE_MS,
            tracking_iou_threshold=config.TRACKING_IOU_THRESHOLD,
            max_history_size=config.MAX_HISTORY_SIZE,
            confidence_smoothing_weight=config.CONFIDENCE_SMOOTHING_WEIGHT,
            alert_cooldown_ms=config.ALERT_COOLDOWN_MS,
            alert_stability_frames=config.ALERT_STABILITY_FRAMES,
        )
