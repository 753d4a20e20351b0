import math

import pytest

from necktilt.pose import Keypoint, PoseSample

SHOULDER_Y = 0.6
NECK_LENGTH = 0.2


def sample_at(angle, confidence=0.95, nose_confidence=None):
    """PoseSample whose computed tilt is `angle` degrees."""
    rad = math.radians(angle)
    nose = Keypoint(
        0.5 - NECK_LENGTH * math.sin(rad),
        SHOULDER_Y + NECK_LENGTH * math.cos(rad),
        confidence if nose_confidence is None else nose_confidence,
    )
    return PoseSample(
        nose=nose,
        left_ear=Keypoint(0.45, 0.3, confidence),
        right_ear=Keypoint(0.55, 0.3, confidence),
        left_shoulder=Keypoint(0.4, SHOULDER_Y, confidence),
        right_shoulder=Keypoint(0.6, SHOULDER_Y, confidence),
    )


@pytest.fixture
def make_sample():
    return sample_at


class FakeClock:
    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
