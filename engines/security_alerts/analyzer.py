"""
Security Analyzer — turns per-frame object detections into stable alerts.

Pipeline per frame:
    filter -> track -> classify -> smooth + score -> validate -> cooldown -> debounce

Key design: NO single-frame detection triggers an alert.
An alert kind must be classified and validated on `alert_stability_frames`
consecutive frames, and the same kind is suppressed for `alert_cooldown_ms`
after it fires.

Not thread-safe: one frame must finish before the next starts
(see services.detection_pipeline for a locked wrapper).
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from engines.security_alerts.filter import DetectionFilter
from engines.security_alerts.rules import (
    PERSON_LABEL, SUSPICIOUS_ITEM_LABELS, VEHICLE_LABELS, WEAPON_LABELS, AlertRules,
)
from engines.security_alerts.scorer import MultiFactorScorer
from engines.security_alerts.smoothing import (
    DetectionHistory, DetectionHistoryEntry, calculate_smoothed_confidence,
)
from engines.security_alerts.tracker import ObjectTracker
from engines.security_alerts.types import (
    Detection, SecurityAlertKind, SecurityAlertResult, TrackedDetection,
)

logger = logging.getLogger(__name__)


@dataclass
class AlertState:
    """The single pending alert being debounced."""
    kind: SecurityAlertKind
    first_detected: float
    last_detected: float
    consecutive_count: int
    smoothed_confidence: float


def classify(detections: Sequence[TrackedDetection],
             rules: Optional[AlertRules] = None) -> SecurityAlertKind:
    """Preliminary alert kind for one frame; the first matching rule wins."""
    rules = rules or AlertRules()
    if not detections:
        return SecurityAlertKind.NONE

    people = [d for d in detections if d.label == PERSON_LABEL]
    vehicles = [d for d in detections if d.label in VEHICLE_LABELS]
    weapons = [d for d in detections if d.label in WEAPON_LABELS]
    suspicious = [d for d in detections if d.label in SUSPICIOUS_ITEM_LABELS]

    if any(w.confidence > rules.weapon_confidence for w in weapons):
        return SecurityAlertKind.WEAPON_DETECTED

    confident_people = [p for p in people if p.confidence > rules.intruder_confidence]
    if len(confident_people) >= rules.min_intruders:
        return SecurityAlertKind.MULTIPLE_INTRUDERS

    person_present = any(p.confidence > rules.vehicle_person_confidence for p in people)
    if person_present and any(v.confidence > rules.vehicle_person_confidence for v in vehicles):
        return SecurityAlertKind.VEHICLE_WITH_PERSON

    if len(suspicious) >= rules.min_suspicious_items and person_present:
        return SecurityAlertKind.SUSPICIOUS_ITEMS

    if any(p.confidence > rules.high_person_confidence for p in people):
        return SecurityAlertKind.HIGH_CONFIDENCE_PERSON

    return SecurityAlertKind.NONE


class SecurityAnalyzer:
    """
    Stateful per-camera alert pipeline.

    Owns the tracker, the detection history, the pending AlertState and the
    per-kind trigger times used for cooldown.
    """

    def __init__(self, rules: Optional[AlertRules] = None):
        self.rules = rules or AlertRules()
        self.detection_filter = DetectionFilter(self.rules)
        self.tracker = ObjectTracker(self.rules)
        self.scorer = MultiFactorScorer(self.rules)
        self.history = DetectionHistory(self.rules.max_history_size)

        self.alert_state: Optional[AlertState] = None
        # alert kind -> last trigger time (ms)
        self._last_triggered: Dict[SecurityAlertKind, float] = {}

    def process_frame(self, detections: List[Detection], frame_width: float,
                      frame_height: float, timestamp: float) -> SecurityAlertResult:
        """
        Analyze one frame of raw detections.

        Args:
            detections: raw detector output for the frame
            frame_width, frame_height: frame size in pixels
            timestamp: monotonic frame time (ms)
        """
        filtered = self.detection_filter.filter(detections, frame_width, frame_height)
        tracked = self.tracker.update(filtered, timestamp)

        # Prefer detections seen on more than one frame
        stable = [t for t in tracked if t.frame_count >= 2]
        analysis_set = stable or tracked

        preliminary = classify(analysis_set, self.rules)
        smoothed = calculate_smoothed_confidence(
            analysis_set, self.history,
            weight=self.rules.confidence_smoothing_weight,
            window=self.rules.smoothing_window,
        )
        score = self.scorer.score(analysis_set, smoothed)
        valid = preliminary.is_alert and self.scorer.validate(score, preliminary, self.history)

        self.history.append(DetectionHistoryEntry(
            timestamp=timestamp,
            detections=list(tracked),
            classified_alert=preliminary,
        ))

        if not preliminary.is_alert:
            if self.alert_state is not None:
                logger.debug(f"Alert {self.alert_state.kind.name} cleared")
            self.alert_state = None
            return SecurityAlertResult(
                confidence=smoothed, reason='No threat classified',
                score=score, tracked=tracked,
            )

        # A different kind, even one that cannot advance, breaks the pending run
        if self.alert_state is not None and self.alert_state.kind is not preliminary:
            logger.debug(f"Alert {self.alert_state.kind.name} interrupted by {preliminary.name}")
            self.alert_state = None

        if self._is_on_cooldown(preliminary, timestamp):
            return SecurityAlertResult(
                confidence=smoothed,
                reason=f'{preliminary.display_name} suppressed (cooldown)',
                score=score, tracked=tracked,
            )

        if not valid:
            return SecurityAlertResult(
                confidence=smoothed,
                reason=f'{preliminary.display_name} not validated (score {score:.2f})',
                score=score, tracked=tracked,
            )

        state = self._advance_state(preliminary, smoothed, timestamp)
        stability = self.rules.alert_stability_frames

        if state.consecutive_count >= stability:
            self._last_triggered[preliminary] = timestamp
            self.alert_state = None
            logger.info(
                f"Alert triggered: {preliminary.name} "
                f"(confidence {smoothed:.2f}, score {score:.2f})"
            )
            return SecurityAlertResult(
                kind=preliminary,
                confidence=smoothed,
                should_trigger=True,
                reason=f'{preliminary.display_name} confirmed over {state.consecutive_count} frames',
                score=score,
                tracked=tracked,
            )

        return SecurityAlertResult(
            kind=preliminary,
            confidence=smoothed,
            reason=f'{preliminary.display_name} pending ({state.consecutive_count}/{stability})',
            score=score,
            tracked=tracked,
        )

    def _advance_state(self, kind: SecurityAlertKind, smoothed: float,
                       timestamp: float) -> AlertState:
        state = self.alert_state
        if state is None or state.kind is not kind:
            state = AlertState(
                kind=kind,
                first_detected=timestamp,
                last_detected=timestamp,
                consecutive_count=1,
                smoothed_confidence=smoothed,
            )
        else:
            state.consecutive_count += 1
            state.last_detected = timestamp
            state.smoothed_confidence = smoothed
        self.alert_state = state
        return state

    def _is_on_cooldown(self, kind: SecurityAlertKind, now: float) -> bool:
        last = self._last_triggered.get(kind)
        return last is not None and (now - last) < self.rules.alert_cooldown_ms

    def reset(self) -> None:
        """Clear tracks, history, pending alert and cooldowns."""
        self.tracker.reset()
        self.history.clear()
        self.alert_state = None
        self._last_triggered.clear()

    def get_stats(self) -> dict:
        state = self.alert_state
        return {
            'tracker': self.tracker.get_stats(),
            'history_size': len(self.history),
            'pending_alert': state.kind.name if state else None,
            'pending_count': state.consecutive_count if state else 0,
            'cooldowns': {k.name: v for k, v in self._last_triggered.items()},
        }
