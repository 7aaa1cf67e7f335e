"""
Detection Filter — drops physically implausible detections before tracking.
"""

import logging
import math
from typing import List, Optional

from engines.security_alerts.geometry import aspect_ratio
from engines.security_alerts.rules import AlertRules
from engines.security_alerts.types import Detection

logger = logging.getLogger(__name__)


class DetectionFilter:
    """
    Rejects detections whose size or aspect ratio is implausible for the frame
    or for their class. Never raises: malformed boxes are simply dropped.
    """

    def __init__(self, rules: Optional[AlertRules] = None):
        self.rules = rules or AlertRules()

    def filter(self, detections: List[Detection], frame_width: float,
               frame_height: float) -> List[Detection]:
        """Return the detections that pass every check, in input order."""
        if not detections:
            return []
        try:
            frame_area = float(frame_width) * float(frame_height)
        except (TypeError, ValueError):
            frame_area = 0.0
        if not math.isfinite(frame_area) or frame_area <= 0:
            logger.debug(f"Invalid frame size {frame_width}x{frame_height}, dropping all detections")
            return []

        kept = []
        for det in detections:
            reason = self.rejection_reason(det, frame_area)
            if reason:
                logger.debug(f"Filtered {det.label} ({det.confidence:.2f}): {reason}")
            else:
                kept.append(det)
        return kept

    def rejection_reason(self, det: Detection, frame_area: float) -> Optional[str]:
        """Why a detection fails the checks, or None when it passes."""
        rules = self.rules
        box = det.bbox

        if not box.is_finite or not math.isfinite(det.confidence):
            return 'non-finite values'

        width, height = box.width, box.height
        if width < rules.min_box_side_px or height < rules.min_box_side_px:
            return f'box too small ({width:.0f}x{height:.0f}px)'

        size_ratio = box.area / frame_area
        if not rules.min_object_size_percent <= size_ratio <= rules.max_object_size_percent:
            return f'size {size_ratio:.3f} of frame out of range'

        ratio = aspect_ratio(box)
        if not rules.min_aspect_ratio <= ratio <= rules.max_aspect_ratio:
            return f'aspect ratio {ratio:.2f} out of global range'

        class_range = rules.class_aspect_ratios.get(det.label)
        if class_range and not class_range[0] <= ratio <= class_range[1]:
            return f'aspect ratio {ratio:.2f} implausible for {det.label}'

        return None
