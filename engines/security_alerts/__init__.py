"""
Security Alert Engine
Turns raw per-frame object detections into stable, debounced security alerts.

Usage:
    from engines.security_alerts import SecurityAnalyzer, AlertRules

    analyzer = SecurityAnalyzer(rules=AlertRules())
    result = analyzer.process_frame(detections, width, height, timestamp_ms)
    if result.should_trigger:
        ...
"""

from engines.security_alerts.types import (
    BoundingBox, Detection, TrackedDetection, SecurityAlertKind, SecurityAlertResult,
)
from engines.security_alerts.rules import AlertRules
from engines.security_alerts.filter import DetectionFilter
from engines.security_alerts.tracker import ObjectTracker, Track
from engines.security_alerts.smoothing import (
    DetectionHistory, DetectionHistoryEntry, calculate_smoothed_confidence,
)
from engines.security_alerts.scorer import MultiFactorScorer
from engines.security_alerts.analyzer import SecurityAnalyzer, AlertState, classify

__all__ = [
    'BoundingBox', 'Detection', 'TrackedDetection',
    'SecurityAlertKind', 'SecurityAlertResult',
    'AlertRules', 'DetectionFilter',
    'ObjectTracker', 'Track',
    'DetectionHistory', 'DetectionHistoryEntry', 'calculate_smoothed_confidence',
    'MultiFactorScorer',
    'SecurityAnalyzer', 'AlertState', 'classify',
]
