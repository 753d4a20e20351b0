from pathlib import Path

# ===============================
# CONFIG / TUNING PARAMETERS
# ===============================

# --- Model download/cache ---
MODEL_DIR = Path("models")
DEFAULT_MODEL_NAME = "yolov8n-pose.pt"
DEFAULT_MODEL_URL = (
    "https://github.com/ultralytics/assets/releases/download/v0.0.0/yolov8n-pose.pt"
)
DEFAULT_MODEL_PATH = MODEL_DIR / DEFAULT_MODEL_NAME

# --- Pose & detection ---
# Every one of nose, ears and shoulders must be ABOVE this to use a frame.
MIN_KEYPOINT_CONFIDENCE = 0.7   # TUNE_ME: lower if "reposition" shows too often

# --- Neck tilt thresholds ---
# Angle is signed: positive = right tilt, negative = left tilt.
# |angle| <= TILT_ANGLE_THRESHOLD is the dead-zone (no direction).
TILT_ANGLE_THRESHOLD = 15.0     # TUNE_ME: degrees past center to count as a tilt
HOLD_TIME_THRESHOLD = 3.0       # TUNE_ME: seconds a tilt must be held for a rep

# --- Session ---
TARGET_REPS_PER_SIDE = 5        # total target = 2x (left + right)

# --- Overlay (pixels) ---
PROGRESS_RING_RADIUS = 30
ANGLE_LABEL_OFFSET = 20

# --- Capture ---
DEFAULT_FRAME_WIDTH = 640
DEFAULT_FRAME_HEIGHT = 480
