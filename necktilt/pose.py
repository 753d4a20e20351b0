import math
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple, Optional, Tuple
from urllib.error import URLError
from urllib.request import urlretrieve

import numpy as np

from .config import (
    DEFAULT_MODEL_NAME,
    DEFAULT_MODEL_PATH,
    DEFAULT_MODEL_URL,
    MIN_KEYPOINT_CONFIDENCE,
)

# ===============================
# KEYPOINT INDEX MAP (COCO order)
# ===============================

KEYPOINT_NAMES = [
    "nose",            # 0
    "left_eye",        # 1
    "right_eye",       # 2
    "left_ear",        # 3
    "right_ear",       # 4
    "left_shoulder",   # 5
    "right_shoulder",  # 6
    "left_elbow",      # 7
    "right_elbow",     # 8
    "left_wrist",      # 9
    "right_wrist",     # 10
    "left_hip",        # 11
    "right_hip",       # 12
    "left_knee",       # 13
    "right_knee",      # 14
    "left_ankle",      # 15
    "right_ankle"      # 16
]

REQUIRED_KEYPOINTS = ("nose", "left_ear", "right_ear", "left_shoulder", "right_shoulder")

# Where the required keypoints sit in each supported landmark layout.
LANDMARK_SCHEMES = {
    "coco": {"nose": 0, "left_ear": 3, "right_ear": 4, "left_shoulder": 5, "right_shoulder": 6},
    "blazepose": {"nose": 0, "left_ear": 7, "right_ear": 8, "left_shoulder": 11, "right_shoulder": 12},
}


class Keypoint(NamedTuple):
    x: float
    y: float
    visibility: float


@dataclass(frozen=True)
class PoseSample:
    nose: Keypoint
    left_ear: Keypoint
    right_ear: Keypoint
    left_shoulder: Keypoint
    right_shoulder: Keypoint

    @property
    def min_confidence(self) -> float:
        return min(
            self.nose.visibility,
            self.left_ear.visibility,
            self.right_ear.visibility,
            self.left_shoulder.visibility,
            self.right_shoulder.visibility,
        )

    def is_valid(self, floor: float = MIN_KEYPOINT_CONFIDENCE) -> bool:
        return self.min_confidence > floor


@dataclass(frozen=True)
class TiltMeasurement:
    angle: float                        # degrees, + right / - left
    shoulder_mid: Tuple[float, float]   # normalized
    nose: Tuple[float, float]           # normalized


def get_keypoints_dict(result):
    """
    Convert YOLO keypoints for the first detected person into
    {name: Keypoint(x, y, conf)} with x/y normalized to [0,1].

    Returns None if no people detected.
    """
    if result.keypoints is None or len(result.keypoints) == 0:
        return None

    frame_h, frame_w = result.orig_shape[:2]

    # Take the first detected person
    kpts = result.keypoints.data[0].cpu().numpy()  # shape: (17, 3) -> x, y, conf

    kp_dict = {}
    for idx, name in enumerate(KEYPOINT_NAMES):
        x, y, c = kpts[idx]
        kp_dict[name] = Keypoint(float(x) / frame_w, float(y) / frame_h, float(c))

    return kp_dict


def keypoints_from_sequence(points, scheme="blazepose"):
    """
    Pick the required keypoints out of an ordered landmark sequence.

    Items may be landmark objects (.x, .y, .visibility) or (x, y, visibility)
    tuples. Returns None if the sequence is empty.
    """
    if not points:
        return None

    kp_dict = {}
    for name, idx in LANDMARK_SCHEMES[scheme].items():
        if idx >= len(points) or points[idx] is None:
            continue
        p = points[idx]
        if hasattr(p, "visibility"):
            kp_dict[name] = Keypoint(float(p.x), float(p.y), float(p.visibility))
        else:
            x, y, v = p
            kp_dict[name] = Keypoint(float(x), float(y), float(v))
    return kp_dict


def extract_pose_sample(kp_dict) -> Optional[PoseSample]:
    """Returns None when any of the required keypoints is missing."""
    if kp_dict is None:
        return None
    if any(kp_dict.get(name) is None for name in REQUIRED_KEYPOINTS):
        return None
    return PoseSample(**{name: Keypoint(*kp_dict[name]) for name in REQUIRED_KEYPOINTS})


def shoulder_midpoint(sample: PoseSample) -> Tuple[float, float]:
    mid = np.mean(
        [[sample.left_shoulder.x, sample.left_shoulder.y],
         [sample.right_shoulder.x, sample.right_shoulder.y]],
        axis=0,
    )
    return float(mid[0]), float(mid[1])


def compute_tilt(sample: PoseSample) -> TiltMeasurement:
    """
    Signed head tilt from the shoulder midpoint to the nose.

    angle = -degrees(atan2(dx, dy)); a rightward tilt in image coordinates is
    positive, leftward negative. No smoothing, each frame stands alone.
    """
    mx, my = shoulder_midpoint(sample)
    dx = sample.nose.x - mx
    dy = sample.nose.y - my
    angle = -math.degrees(math.atan2(dx, dy))
    return TiltMeasurement(angle=angle, shoulder_mid=(mx, my), nose=(sample.nose.x, sample.nose.y))


def ensure_model_path(model_arg):
    model_path = DEFAULT_MODEL_PATH if model_arg is None else model_arg
    if not hasattr(model_path, "is_file"):
        model_path = Path(model_path)

    if model_path.is_file():
        return model_path

    if model_path.name == DEFAULT_MODEL_NAME:
        target = model_path
        if model_path.parent == Path("."):
            target = DEFAULT_MODEL_PATH

        target.parent.mkdir(parents=True, exist_ok=True)
        if not target.exists():
            print(f"[MODEL] Downloading {DEFAULT_MODEL_NAME} to {target}...")
            try:
                urlretrieve(DEFAULT_MODEL_URL, target)
            except URLError as exc:
                raise RuntimeError(
                    f"Failed to download model from {DEFAULT_MODEL_URL}: {exc}"
                ) from exc
        return target

    return model_path
