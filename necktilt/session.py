import time
from dataclasses import replace
from typing import Callable, Optional, Tuple

from .feedback import Feedback, project_feedback
from .pose import PoseSample, compute_tilt
from .rep_counter import (
    DEFAULT_CONFIG,
    STARTED_MESSAGE,
    STOPPED_MESSAGE,
    ExerciseSession,
    SessionStatus,
    TiltConfig,
    classify_tilt,
    count_rep,
    update_hold,
)


def start_session(config: TiltConfig = DEFAULT_CONFIG) -> ExerciseSession:
    """Fresh ACTIVE session: zero reps, idle episode."""
    return ExerciseSession(
        status=SessionStatus.ACTIVE,
        target_per_side=config.target_per_side,
        message=STARTED_MESSAGE,
    )


def stop_session(session: ExerciseSession) -> ExerciseSession:
    # Reps stay visible until the next start discards them.
    if session.status is not SessionStatus.ACTIVE:
        return session
    return replace(session, status=SessionStatus.STOPPED, message=STOPPED_MESSAGE)


def process_frame(session: ExerciseSession, sample: Optional[PoseSample], now: float,
                  config: TiltConfig = DEFAULT_CONFIG) -> Tuple[ExerciseSession, Feedback]:
    """
    One synchronous step: sample -> tilt -> hold -> reps -> feedback.

    A missing or low-confidence sample leaves the session (including a hold
    in progress) exactly as it was and only reports reposition guidance.
    """
    if session.status is not SessionStatus.ACTIVE:
        return session, project_feedback(session, config=config)

    if sample is None or not sample.is_valid(config.min_confidence):
        return session, project_feedback(session, config=config, signal_lost=True)

    measurement = compute_tilt(sample)
    direction = classify_tilt(measurement.angle, config.angle_threshold)
    episode, reached = update_hold(session.episode, direction, now, config.hold_seconds)

    session = replace(session, episode=episode, last_angle=measurement.angle)
    if reached:
        session = count_rep(session, direction)

    return session, project_feedback(session, measurement, config)


class ExerciseController:
    """
    Owns the single ExerciseSession and gates frame processing.

    STOPPED/COMPLETE -> start() -> ACTIVE; ACTIVE -> stop() -> STOPPED;
    ACTIVE -> COMPLETE happens inside process() once the rep target is met.
    Frames that arrive while not ACTIVE are ignored and the last feedback is
    returned unchanged.
    """

    def __init__(self, config: TiltConfig = DEFAULT_CONFIG,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config
        self.clock = clock
        self.session = ExerciseSession(target_per_side=config.target_per_side)
        self.last_feedback: Feedback = project_feedback(self.session, config=config)

    @property
    def status(self) -> SessionStatus:
        return self.session.status

    @property
    def active(self) -> bool:
        return self.session.status is SessionStatus.ACTIVE

    def start(self) -> Feedback:
        self.session = start_session(self.config)
        self.last_feedback = project_feedback(self.session, config=self.config)
        return self.last_feedback

    def stop(self) -> Feedback:
        if self.active:
            self.session = stop_session(self.session)
            self.last_feedback = project_feedback(self.session, config=self.config)
        return self.last_feedback

    def toggle(self) -> Feedback:
        return self.stop() if self.active else self.start()

    def process(self, sample: Optional[PoseSample], now: Optional[float] = None) -> Feedback:
        if not self.active:
            return self.last_feedback

        if now is None:
            now = self.clock()
        self.session, self.last_feedback = process_frame(self.session, sample, now, self.config)
        return self.last_feedback
