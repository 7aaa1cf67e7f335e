"""
Multi-Factor Scorer — composite risk score from presence, count and interaction.
"""

import logging
from typing import Optional, Sequence

from engines.security_alerts.geometry import are_nearby
from engines.security_alerts.rules import PERSON_LABEL, AlertRules
from engines.security_alerts.smoothing import DetectionHistory
from engines.security_alerts.types import SecurityAlertKind, TrackedDetection

logger = logging.getLogger(__name__)


class MultiFactorScorer:
    """
    score = presence_weight * smoothed_confidence
          + count_weight * min(count / count_saturation, 1)
          + interaction_weight * min(pairs / interaction_saturation, 1)

    The three weights must sum to 1.0; this is checked once at construction.
    """

    def __init__(self, rules: Optional[AlertRules] = None):
        self.rules = rules or AlertRules()
        total = self.rules.presence_weight + self.rules.count_weight + self.rules.interaction_weight
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Scorer weights must sum to 1.0, got {total:.4f}")

    def count_interacting_pairs(self, detections: Sequence[TrackedDetection]) -> int:
        """Person / non-person pairs whose boxes are close to each other."""
        people = [d for d in detections if d.label == PERSON_LABEL]
        objects = [d for d in detections if d.label != PERSON_LABEL]
        return sum(
            1
            for p in people
            for o in objects
            if are_nearby(p.bbox, o.bbox, self.rules.proximity_ratio)
        )

    def interaction_score(self, detections: Sequence[TrackedDetection]) -> float:
        pairs = self.count_interacting_pairs(detections)
        return min(pairs / self.rules.interaction_saturation, 1.0)

    def score(self, detections: Sequence[TrackedDetection], smoothed_confidence: float) -> float:
        rules = self.rules
        count_score = min(len(detections) / rules.count_saturation, 1.0)
        return (
            rules.presence_weight * smoothed_confidence
            + rules.count_weight * count_score
            + rules.interaction_weight * self.interaction_score(detections)
        )

    def validate(self, score: float, preliminary: SecurityAlertKind,
                 history: DetectionHistory) -> bool:
        """
        Whether a scored alert is actionable.

        Low scores are rejected. High-severity alerts pass on their own; the
        rest need corroboration from recent frames.
        """
        if score < self.rules.min_alert_score:
            return False
        if preliminary.severity >= self.rules.bypass_severity:
            return True
        recent = history.recent(self.rules.corroboration_window)
        corroborating = sum(1 for e in recent if e.classified_alert.is_alert)
        return corroborating >= self.rules.corroboration_required
