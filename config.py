"""
Configuration Management for the CrimiCam detection core
Loads environment variables and provides configuration settings
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

class Config:
    """Detection core configuration"""

    # Alerting (object pipeline)
    ALERT_COOLDOWN_MS = int(os.getenv('ALERT_COOLDOWN_MS', 5000))
    ALERT_STABILITY_FRAMES = int(os.getenv('ALERT_STABILITY_FRAMES', 3))
    MAX_HISTORY_SIZE = int(os.getenv('MAX_HISTORY_SIZE', 10))
    CONFIDENCE_SMOOTHING_WEIGHT = float(os.getenv('CONFIDENCE_SMOOTHING_WEIGHT', 0.7))

    # Tracking
    MAX_TRACKING_AGE_MS = int(os.getenv('MAX_TRACKING_AGE_MS', 1000))
    TRACKING_IOU_THRESHOLD = float(os.getenv('TRACKING_IOU_THRESHOLD', 0.3))

    # Detection filter
    MIN_OBJECT_SIZE_PERCENT = float(os.getenv('MIN_OBJECT_SIZE_PERCENT', 0.02))
    MAX_OBJECT_SIZE_PERCENT = float(os.getenv('MAX_OBJECT_SIZE_PERCENT', 0.95))

    # Pose activity
    POSE_HISTORY_SIZE = int(os.getenv('POSE_HISTORY_SIZE', 150))  # ~5s at 30fps
    MIN_KEYPOINT_CONFIDENCE = float(os.getenv('MIN_KEYPOINT_CONFIDENCE', 0.3))

    # Inference adapters
    OBJECT_DETECT_MODEL = os.getenv('OBJECT_DETECT_MODEL', 'yolov8n.pt')
    POSE_MODEL = os.getenv('POSE_MODEL', 'yolov8s-pose.pt')
    GPU_ID = int(os.getenv('GPU_ID', 0))

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE', '')
