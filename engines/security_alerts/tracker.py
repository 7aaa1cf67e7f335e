"""
Object Tracker — greedy IoU tracker for temporal stabilization.
Assigns persistent IDs to detections across frames and ages out lost tracks.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from engines.security_alerts.geometry import intersection_over_union
from engines.security_alerts.rules import AlertRules
from engines.security_alerts.types import BoundingBox, Detection, TrackedDetection

logger = logging.getLogger(__name__)


@dataclass
class Track:
    """Internal tracker state for one object."""
    id: int
    label: str
    last_bbox: BoundingBox
    last_seen: float
    confidence: float
    frame_count: int
    first_seen: float

    @property
    def age_ms(self) -> float:
        return self.last_seen - self.first_seen


class ObjectTracker:
    """
    Label-aware IoU tracker.

    Matching is greedy in input order: each detection takes the unclaimed
    same-label track with the highest IoU above the threshold. This is not a
    globally optimal assignment; when two detections overlap one track the
    earlier detection wins.
    """

    def __init__(self, rules: Optional[AlertRules] = None):
        self.rules = rules or AlertRules()
        self.tracks: Dict[int, Track] = {}
        self._next_id = 1

    def update(self, detections: List[Detection], timestamp: float) -> List[TrackedDetection]:
        """
        Associate this frame's detections with existing tracks.

        Args:
            detections: filtered detections for the frame
            timestamp: frame time (ms)

        Returns:
            one TrackedDetection per input detection, in input order
        """
        self._evict_stale(timestamp)

        claimed: Set[int] = set()
        tracked: List[TrackedDetection] = []

        for det in detections:
            best_track = None
            best_iou = self.rules.tracking_iou_threshold

            for track in self.tracks.values():
                if track.id in claimed or track.label != det.label:
                    continue
                iou_val = intersection_over_union(det.bbox, track.last_bbox)
                if iou_val > best_iou:
                    best_iou = iou_val
                    best_track = track

            if best_track is None:
                best_track = Track(
                    id=self._next_id,
                    label=det.label,
                    last_bbox=det.bbox,
                    last_seen=timestamp,
                    confidence=det.confidence,
                    frame_count=1,
                    first_seen=timestamp,
                )
                self.tracks[best_track.id] = best_track
                self._next_id += 1
                logger.debug(f"New track {best_track.id} ({det.label})")
            else:
                best_track.last_bbox = det.bbox
                best_track.last_seen = timestamp
                best_track.confidence = det.confidence
                best_track.frame_count += 1

            claimed.add(best_track.id)
            tracked.append(TrackedDetection(
                detection=det,
                tracking_id=best_track.id,
                frame_count=best_track.frame_count,
            ))

        return tracked

    def _evict_stale(self, timestamp: float) -> None:
        stale = [tid for tid, t in self.tracks.items()
                 if timestamp - t.last_seen > self.rules.max_tracking_age_ms]
        for tid in stale:
            logger.debug(f"Evicting track {tid} ({self.tracks[tid].label})")
            del self.tracks[tid]

    def reset(self) -> None:
        """Drop all tracks. IDs keep increasing so they are never reused."""
        self.tracks.clear()

    @property
    def active_tracks(self) -> int:
        return len(self.tracks)

    def get_stats(self) -> dict:
        return {
            'active_tracks': len(self.tracks),
            'next_id': self._next_id,
        }
