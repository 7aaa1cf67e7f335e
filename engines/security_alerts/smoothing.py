"""
Detection history ring and exponentially weighted confidence smoothing.
"""

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Iterator, List, Sequence

from engines.security_alerts.types import SecurityAlertKind, TrackedDetection


@dataclass(frozen=True)
class DetectionHistoryEntry:
    """What the analyzer saw in one frame."""
    timestamp: float
    detections: List[TrackedDetection] = field(default_factory=list)
    classified_alert: SecurityAlertKind = SecurityAlertKind.NONE

    @property
    def max_confidence(self) -> float:
        return max((d.confidence for d in self.detections), default=0.0)


class DetectionHistory:
    """Bounded per-frame history; the oldest entry is dropped on overflow."""

    def __init__(self, max_size: int = 10):
        self.max_size = max_size
        self._entries: deque = deque(maxlen=max_size)

    def append(self, entry: DetectionHistoryEntry) -> None:
        self._entries.append(entry)

    def recent(self, n: int) -> List[DetectionHistoryEntry]:
        """The last n entries, oldest first."""
        if n <= 0:
            return []
        return list(self._entries)[-n:]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DetectionHistoryEntry]:
        return iter(self._entries)


def calculate_smoothed_confidence(current: Sequence[TrackedDetection],
                                  history: DetectionHistory,
                                  weight: float = 0.7,
                                  window: int = 5) -> float:
    """
    Blend the current frame's max confidence with recent history.

    Walks the last `window` entries newest to oldest; entry k (0-based) is
    mixed in with weight alpha * (1 - alpha) ** (k + 1).
    """
    smoothed = max((d.confidence for d in current), default=0.0)

    for k, entry in enumerate(reversed(history.recent(window))):
        w = weight * math.pow(1.0 - weight, k + 1)
        smoothed = smoothed * (1.0 - w) + entry.max_confidence * w

    return smoothed
