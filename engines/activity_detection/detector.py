"""
Pose Detector — YOLOv8-pose wrapper.
Detects human poses and extracts 17 COCO keypoints per person.
GPU-accelerated with FP16 on CUDA.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

try:
    from ultralytics import YOLO
    YOLO_AVAILABLE = True
except ImportError:
    YOLO_AVAILABLE = False
    logger.warning("Ultralytics YOLO not installed — pose detection unavailable")


# COCO 17-keypoint indices
KEYPOINT_NAMES = {
    'nose': 0, 'left_eye': 1, 'right_eye': 2,
    'left_ear': 3, 'right_ear': 4,
    'left_shoulder': 5, 'right_shoulder': 6,
    'left_elbow': 7, 'right_elbow': 8,
    'left_wrist': 9, 'right_wrist': 10,
    'left_hip': 11, 'right_hip': 12,
    'left_knee': 13, 'right_knee': 14,
    'left_ankle': 15, 'right_ankle': 16,
}

DEFAULT_MIN_KEYPOINT_CONFIDENCE = 0.3


@dataclass
class PersonPose:
    """A detected person with pose keypoints."""
    keypoints: np.ndarray          # (17, 2) — x, y coordinates
    confidences: np.ndarray        # (17,) — per-keypoint confidence
    bbox: Optional[List[float]] = None  # [x1, y1, x2, y2]
    min_confidence: float = DEFAULT_MIN_KEYPOINT_CONFIDENCE

    def is_visible(self, index: int) -> bool:
        if index >= len(self.confidences) or index >= len(self.keypoints):
            return False
        return bool(self.confidences[index] >= self.min_confidence
                    and np.all(np.isfinite(self.keypoints[index])))

    @property
    def visible_mask(self) -> np.ndarray:
        n = min(len(self.keypoints), len(self.confidences))
        return np.array([self.is_visible(i) for i in range(n)], dtype=bool)

    @property
    def visible_count(self) -> int:
        return int(self.visible_mask.sum())

    def landmark(self, name: str) -> Optional[Tuple[float, float]]:
        """A visible keypoint as (x, y), or None when missing or unreliable."""
        idx = KEYPOINT_NAMES[name]
        if not self.is_visible(idx):
            return None
        x, y = self.keypoints[idx][:2]
        return float(x), float(y)

    def centroid(self) -> Optional[Tuple[float, float]]:
        """Mean position of all visible keypoints."""
        mask = self.visible_mask
        if not mask.any():
            return None
        pts = np.asarray(self.keypoints)[:len(mask)][mask]
        return float(pts[:, 0].mean()), float(pts[:, 1].mean())

    def to_dict(self) -> dict:
        return {
            'keypoints': np.asarray(self.keypoints).tolist(),
            'confidences': np.asarray(self.confidences).tolist(),
            'bbox': self.bbox,
        }


class PoseDetector:
    """
    Detects human poses in frames using YOLOv8s-pose (or compatible).

    Uses GPU with FP16 for optimal throughput on T4.
    Returns structured PersonPose objects with COCO-17 keypoints.
    """

    def __init__(self, model_name: str = 'yolov8s-pose.pt',
                 gpu_id: int = 0, conf_threshold: float = 0.5,
                 use_half: bool = True,
                 min_keypoint_confidence: float = DEFAULT_MIN_KEYPOINT_CONFIDENCE):
        self.model = None
        self.gpu_id = gpu_id
        self.conf_threshold = conf_threshold
        self.model_name = model_name
        self.use_half = use_half
        self.min_keypoint_confidence = min_keypoint_confidence
        self.device = f'cuda:{gpu_id}'

        if YOLO_AVAILABLE:
            self._init_model()

    @property
    def available(self) -> bool:
        return YOLO_AVAILABLE and self.model is not None

    def _init_model(self):
        try:
            import torch
            if not torch.cuda.is_available():
                self.device = 'cpu'
                self.use_half = False
                logger.warning("CUDA not available — pose detector will use CPU")

            self.model = YOLO(self.model_name)

            # Warm up with a dummy frame to load weights onto GPU
            dummy = np.zeros((640, 640, 3), dtype=np.uint8)
            self.model(dummy, device=self.device,
                       half=self.use_half, verbose=False)

            logger.info(
                f"PoseDetector: {self.model_name} loaded on {self.device} "
                f"(half={self.use_half})"
            )
        except Exception as e:
            logger.error(f"PoseDetector: failed to load {self.model_name}: {e}")
            self.model = None

    def detect(self, frame: np.ndarray) -> List[PersonPose]:
        """
        Detect human poses in a BGR frame.

        Returns:
            List of PersonPose with keypoints, confidences, and bounding boxes
        """
        if not self.available:
            return []

        try:
            results = self.model(
                frame,
                device=self.device,
                conf=self.conf_threshold,
                half=self.use_half,
                verbose=False,
            )

            if not results or len(results) == 0:
                return []

            return self.from_result(results[0])

        except Exception as e:
            logger.error(f"Pose detection error: {e}")
            return []

    def from_result(self, result) -> List[PersonPose]:
        """Convert one Ultralytics pose result into PersonPose objects."""
        persons = []
        if result.keypoints is None or result.keypoints.data.shape[0] == 0:
            return persons

        kps_data = result.keypoints.data.cpu().numpy()  # (N, 17, 3)
        boxes = result.boxes.xyxy.cpu().numpy() if result.boxes is not None else []

        for i in range(kps_data.shape[0]):
            kps = kps_data[i]  # (17, 3) — x, y, conf
            persons.append(PersonPose(
                keypoints=kps[:, :2],
                confidences=kps[:, 2],
                bbox=boxes[i].tolist() if i < len(boxes) else None,
                min_confidence=self.min_keypoint_confidence,
            ))
        return persons

    def get_stats(self) -> dict:
        return {
            'available': self.available,
            'model': self.model_name,
            'device': self.device,
            'half': self.use_half,
            'conf_threshold': self.conf_threshold,
        }
