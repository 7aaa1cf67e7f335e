"""
Object Detector — Ultralytics YOLO wrapper.
Converts model output into Detection objects for the security analyzer,
keeping only security-relevant classes and applying per-class NMS.
"""

import logging
from typing import List, Sequence

import numpy as np

from engines.security_alerts.geometry import intersection_over_union
from engines.security_alerts.types import BoundingBox, Detection

logger = logging.getLogger(__name__)

try:
    from ultralytics import YOLO
    YOLO_AVAILABLE = True
except ImportError:
    YOLO_AVAILABLE = False
    logger.warning("Ultralytics YOLO not installed — object detection unavailable")


SECURITY_CLASSES = (
    'person', 'car', 'truck', 'motorcycle', 'bus',
    'bicycle', 'backpack', 'handbag', 'knife', 'bottle',
)


def non_max_suppression(detections: Sequence[Detection],
                        iou_threshold: float = 0.5) -> List[Detection]:
    """Greedy per-class NMS: within a label, keep the most confident of overlapping boxes."""
    kept: List[Detection] = []
    labels = []
    for det in detections:
        if det.label not in labels:
            labels.append(det.label)

    for label in labels:
        same_class = sorted(
            (d for d in detections if d.label == label),
            key=lambda d: d.confidence,
            reverse=True,
        )
        selected: List[Detection] = []
        for det in same_class:
            if all(intersection_over_union(det.bbox, k.bbox) <= iou_threshold for k in selected):
                selected.append(det)
        kept.extend(selected)
    return kept


class ObjectDetector:
    """
    Detects security-relevant objects in frames using a YOLO model.

    Returns structured Detection objects in original frame pixel coordinates.
    Inference failures are logged and yield an empty list.
    """

    def __init__(self, model_name: str = 'yolov8n.pt', gpu_id: int = 0,
                 conf_threshold: float = 0.6, iou_threshold: float = 0.5,
                 classes: Sequence[str] = SECURITY_CLASSES):
        self.model = None
        self.model_name = model_name
        self.gpu_id = gpu_id
        self.conf_threshold = conf_threshold
        self.iou_threshold = iou_threshold
        self.classes = set(classes)
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
                logger.warning("CUDA not available — object detector will use CPU")

            self.model = YOLO(self.model_name)
            logger.info(f"ObjectDetector: {self.model_name} loaded on {self.device}")
        except Exception as e:
            logger.error(f"ObjectDetector: failed to load {self.model_name}: {e}")
            self.model = None

    def detect(self, frame: np.ndarray) -> List[Detection]:
        """Detect objects in a BGR frame."""
        if not self.available:
            return []

        try:
            results = self.model(frame, device=self.device,
                                 conf=self.conf_threshold, verbose=False)
            if not results:
                return []
            return self.from_result(results[0])
        except Exception as e:
            logger.error(f"Object detection error: {e}")
            return []

    def from_result(self, result) -> List[Detection]:
        """Convert one Ultralytics result into filtered, NMS-suppressed detections."""
        boxes = getattr(result, 'boxes', None)
        if boxes is None or len(boxes) == 0:
            return []

        names = getattr(result, 'names', None) or {}
        xyxy = np.asarray(boxes.xyxy.cpu().numpy() if hasattr(boxes.xyxy, 'cpu') else boxes.xyxy)
        confs = np.asarray(boxes.conf.cpu().numpy() if hasattr(boxes.conf, 'cpu') else boxes.conf)
        class_ids = np.asarray(boxes.cls.cpu().numpy() if hasattr(boxes.cls, 'cpu') else boxes.cls)

        detections = []
        for box, conf, cls_id in zip(xyxy, confs, class_ids):
            cls_id = int(cls_id)
            label = names.get(cls_id, 'unknown')
            if label not in self.classes or float(conf) <= self.conf_threshold:
                continue
            detections.append(Detection(
                label=label,
                confidence=float(conf),
                bbox=BoundingBox.from_xyxy(box),
                class_id=cls_id,
            ))
        return non_max_suppression(detections, self.iou_threshold)

    def get_stats(self) -> dict:
        return {
            'available': self.available,
            'model': self.model_name,
            'device': self.device,
            'conf_threshold': self.conf_threshold,
        }
