from dataclasses import dataclass, replace
from enum import Enum
from typing import Tuple

from .config import (
    HOLD_TIME_THRESHOLD,
    MIN_KEYPOINT_CONFIDENCE,
    TARGET_REPS_PER_SIDE,
    TILT_ANGLE_THRESHOLD,
)


@dataclass(frozen=True)
class TiltConfig:
    angle_threshold: float = TILT_ANGLE_THRESHOLD
    hold_seconds: float = HOLD_TIME_THRESHOLD
    target_per_side: int = TARGET_REPS_PER_SIDE
    min_confidence: float = MIN_KEYPOINT_CONFIDENCE

    def __post_init__(self):
        if self.angle_threshold <= 0:
            raise ValueError(f"angle_threshold must be positive, got {self.angle_threshold}")
        if self.hold_seconds <= 0:
            raise ValueError(f"hold_seconds must be positive, got {self.hold_seconds}")
        if self.target_per_side < 1:
            raise ValueError(f"target_per_side must be at least 1, got {self.target_per_side}")
        if not 0.0 <= self.min_confidence < 1.0:
            raise ValueError(f"min_confidence must be in [0, 1), got {self.min_confidence}")

    @property
    def target_total(self) -> int:
        return self.target_per_side * 2


DEFAULT_CONFIG = TiltConfig()


class TiltDirection(str, Enum):
    NONE = "none"
    LEFT = "left"
    RIGHT = "right"


def classify_tilt(angle: float, threshold: float = TILT_ANGLE_THRESHOLD) -> TiltDirection:
    # Dead-zone is inclusive: exactly +-threshold is still center.
    if angle > threshold:
        return TiltDirection.RIGHT
    if angle < -threshold:
        return TiltDirection.LEFT
    return TiltDirection.NONE


@dataclass(frozen=True)
class HoldEpisode:
    """
    One continuous run of a single tilt direction.

    The default instance (direction NONE) is the idle state. `completed`
    latches once hold_seconds reaches the threshold so that the episode
    produces exactly one rep.
    """
    direction: TiltDirection = TiltDirection.NONE
    start_time: float = 0.0
    hold_seconds: float = 0.0
    completed: bool = False

    @property
    def active(self) -> bool:
        return self.direction is not TiltDirection.NONE


IDLE_EPISODE = HoldEpisode()


def update_hold(episode: HoldEpisode, direction: TiltDirection, now: float,
                hold_threshold: float = HOLD_TIME_THRESHOLD) -> Tuple[HoldEpisode, bool]:
    """
    Advance the hold state machine by one valid frame.

    Returns (episode, threshold_reached). threshold_reached is an edge: it is
    True only on the frame where the episode first reaches hold_threshold.
    """
    if direction is TiltDirection.NONE:
        return IDLE_EPISODE, False

    # New episode from idle, or a side flip without a center frame in between.
    if episode.direction is not direction:
        return HoldEpisode(direction=direction, start_time=now), False

    held = now - episode.start_time
    reached = held >= hold_threshold and not episode.completed
    episode = replace(episode, hold_seconds=held, completed=episode.completed or reached)
    return episode, reached


class SessionStatus(str, Enum):
    STOPPED = "stopped"
    ACTIVE = "active"
    COMPLETE = "complete"


STARTED_MESSAGE = "Exercise started. Tilt your neck to the left or right."
STOPPED_MESSAGE = "Exercise stopped."
COMPLETE_MESSAGE = "Exercise complete! Great job!"
IDLE_MESSAGE = "Press start to begin the neck tilt exercise."


@dataclass(frozen=True)
class ExerciseSession:
    status: SessionStatus = SessionStatus.STOPPED
    reps: int = 0
    target_per_side: int = TARGET_REPS_PER_SIDE
    episode: HoldEpisode = IDLE_EPISODE
    last_angle: float = 0.0
    message: str = IDLE_MESSAGE

    @property
    def target_total(self) -> int:
        return self.target_per_side * 2

    @property
    def direction(self) -> TiltDirection:
        return self.episode.direction


def rep_message(direction: TiltDirection, reps: int, target_total: int) -> str:
    return f"Good! {direction.value} tilt completed. {reps}/{target_total} reps done."


def count_rep(session: ExerciseSession, direction: TiltDirection) -> ExerciseSession:
    """
    Apply one "hold threshold reached" event.

    Either side counts toward a single combined total; alternation is left
    to the user. Completion is terminal until the next start.
    """
    if session.status is not SessionStatus.ACTIVE:
        return session

    reps = session.reps + 1
    if reps >= session.target_total:
        return replace(session, reps=reps, status=SessionStatus.COMPLETE, message=COMPLETE_MESSAGE)
    return replace(session, reps=reps, message=rep_message(direction, reps, session.target_total))
