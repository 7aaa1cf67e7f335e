"""Detection Pipeline Service - serialized per-frame access to both detection engines

Pipeline:
    Objects: detections -> SecurityAnalyzer -> SecurityAlertResult
    Poses:   poses      -> ActivityEngine   -> DetectionResult

The engines keep unsynchronized per-frame state, so every frame update and
every reset runs under one lock.
"""
import logging
import os
from dataclasses import dataclass
from threading import Lock
from typing import List, Optional, Sequence

import numpy as np

from config import Config
from engines.activity_detection import ActivityEngine, ActivityRules, DetectionResult, PersonPose
from engines.security_alerts import AlertRules, Detection, SecurityAlertResult, SecurityAnalyzer

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Set up root logging the same way for every entry point."""
    level = level or Config.LOG_LEVEL
    log_file = Config.LOG_FILE if log_file is None else log_file

    handlers = [logging.StreamHandler()]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


@dataclass
class FrameAnalysis:
    """Both pipeline outputs for one camera frame."""
    alert: SecurityAlertResult
    activity: DetectionResult

    def to_dict(self) -> dict:
        return {
            'alert': self.alert.to_dict(),
            'activity': self.activity.to_dict(),
        }


class DetectionPipeline:
    """
    Owns one SecurityAnalyzer and one ActivityEngine for a single camera.

    Inference adapters are optional; without them callers feed detections and
    poses directly through process_detections() / process_poses().
    """

    def __init__(self, alert_rules: Optional[AlertRules] = None,
                 activity_rules: Optional[ActivityRules] = None,
                 object_detector=None, pose_detector=None):
        self.analyzer = SecurityAnalyzer(alert_rules or AlertRules.from_config(Config))
        self.activity_engine = ActivityEngine(activity_rules or ActivityRules.from_config(Config))
        self.object_detector = object_detector
        self.pose_detector = pose_detector
        self._lock = Lock()
        self.frames_processed = 0

    def process_detections(self, detections: List[Detection], frame_width: float,
                           frame_height: float, timestamp: float) -> SecurityAlertResult:
        """Run the object pipeline for one frame (timestamp in ms)."""
        with self._lock:
            result = self.analyzer.process_frame(detections, frame_width, frame_height, timestamp)
            self.frames_processed += 1
        if result.should_trigger:
            logger.info(f"Security alert: {result.kind.display_name} ({result.confidence:.0%})")
        return result

    def process_poses(self, poses: Sequence[PersonPose], timestamp: float) -> DetectionResult:
        """Run the pose pipeline for one frame (timestamp in ms)."""
        with self._lock:
            self.frames_processed += 1
            return self.activity_engine.analyze(poses, timestamp)

    def analyze_frame(self, frame: np.ndarray, timestamp: float) -> FrameAnalysis:
        """Run both inference adapters on a BGR frame, then both pipelines under one lock."""
        height, width = frame.shape[:2]
        detections = self.object_detector.detect(frame) if self.object_detector else []
        poses = self.pose_detector.detect(frame) if self.pose_detector else []

        with self._lock:
            alert = self.analyzer.process_frame(detections, width, height, timestamp)
            activity = self.activity_engine.analyze(poses, timestamp)
            self.frames_processed += 1

        if alert.should_trigger:
            logger.info(f"Security alert: {alert.kind.display_name} ({alert.confidence:.0%})")
        return FrameAnalysis(alert=alert, activity=activity)

    def reset(self) -> None:
        """Clear tracks, alert state and pose history atomically."""
        with self._lock:
            self.analyzer.reset()
            self.activity_engine.reset()
            self.frames_processed = 0
        logger.info("Detection pipeline reset")

    def get_stats(self) -> dict:
        with self._lock:
            return {
                'frames_processed': self.frames_processed,
                'security': self.analyzer.get_stats(),
                'activity': self.activity_engine.get_stats(),
                'object_detector': self.object_detector.get_stats() if self.object_detector else None,
                'pose_detector': self.pose_detector.get_stats() if self.pose_detector else None,
            }


def create_pipeline(with_models: bool = False) -> DetectionPipeline:
    """Build a pipeline from Config, optionally loading the YOLO adapters."""
    object_detector = pose_detector = None
    if with_models:
        from engines.activity_detection.detector import PoseDetector
        from engines.security_alerts.detector import ObjectDetector

        object_detector = ObjectDetector(model_name=Config.OBJECT_DETECT_MODEL, gpu_id=Config.GPU_ID)
        pose_detector = PoseDetector(
            model_name=Config.POSE_MODEL,
            gpu_id=Config.GPU_ID,
            min_keypoint_confidence=Config.MIN_KEYPOINT_CONFIDENCE,
        )
        if not object_detector.available:
            logger.warning("Object detector unavailable — alerts will stay NONE")
        if not pose_detector.available:
            logger.warning("Pose detector unavailable — activity results will be NoPoseDetected")
    return DetectionPipeline(object_detector=object_detector, pose_detector=pose_detector)
