from dataclasses import dataclass
from typing import Optional, Tuple

from .config import ANGLE_LABEL_OFFSET, PROGRESS_RING_RADIUS
from .pose import TiltMeasurement
from .rep_counter import (
    DEFAULT_CONFIG,
    ExerciseSession,
    SessionStatus,
    TiltConfig,
    TiltDirection,
)

REPOSITION_MESSAGE = "Please position yourself so your face and shoulders are clearly visible."
INTRO_INSTRUCTION = "This application will guide you through neck tilt exercises."
RETURN_INSTRUCTION = "Return to center, then tilt to the other side."

# Angle line tones
TONE_NEUTRAL = "neutral"
TONE_HOLDING = "holding"
TONE_HELD = "held"

Point = Tuple[float, float]


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _to_px(point: Point, width: int, height: int) -> Tuple[int, int]:
    return int(round(point[0] * width)), int(round(point[1] * height))


@dataclass(frozen=True)
class ProgressRing:
    center: Point
    radius: int        # pixels
    fraction: float    # [0, 1]


@dataclass(frozen=True)
class OverlayGeometry:
    """Normalized overlay primitives; call scaled() for pixel coordinates."""
    reference_line: Tuple[Point, Point]
    angle_line: Tuple[Point, Point]
    label_anchor: Point
    label_text: str
    tone: str
    ring: Optional[ProgressRing] = None

    def scaled(self, width: int, height: int) -> dict:
        lx, ly = _to_px(self.label_anchor, width, height)
        scaled = {
            "reference_line": tuple(_to_px(p, width, height) for p in self.reference_line),
            "angle_line": tuple(_to_px(p, width, height) for p in self.angle_line),
            "label_pos": (lx, ly - ANGLE_LABEL_OFFSET),
            "ring": None,
        }
        if self.ring is not None:
            scaled["ring"] = (_to_px(self.ring.center, width, height), self.ring.radius, self.ring.fraction)
        return scaled


@dataclass(frozen=True)
class Feedback:
    status_text: str
    instruction_text: str
    status: SessionStatus
    direction: TiltDirection
    reps: int
    target_total: int
    hold_seconds: float
    countdown: float
    angle: float           # absolute, degrees
    progress: float        # reps / target_total
    overlay: Optional[OverlayGeometry] = None


def _fmt(value: float) -> str:
    return f"{value:g}"


def start_instruction(config: TiltConfig = DEFAULT_CONFIG) -> str:
    return (
        f"Tilt your head to either side until you reach {_fmt(config.angle_threshold)}° "
        f"and hold for {_fmt(config.hold_seconds)} seconds. "
        f"Complete {config.target_per_side} reps on each side."
    )


def instruction_for(session: ExerciseSession, config: TiltConfig = DEFAULT_CONFIG) -> str:
    episode = session.episode
    if episode.completed:
        return RETURN_INSTRUCTION
    if not episode.active:
        return (
            f"Tilt your head to either side until you reach {_fmt(config.angle_threshold)}° "
            f"and hold for {_fmt(config.hold_seconds)} seconds."
        )
    remaining = max(0.0, config.hold_seconds - episode.hold_seconds)
    return f"Good! Hold your {episode.direction.value} tilt for {remaining:.1f} more seconds."


def project_overlay(session: ExerciseSession, measurement: TiltMeasurement,
                    config: TiltConfig = DEFAULT_CONFIG) -> OverlayGeometry:
    mx, my = measurement.shoulder_mid
    nx, ny = measurement.nose
    episode = session.episode

    if not episode.active:
        tone = TONE_NEUTRAL
    elif abs(measurement.angle) > config.angle_threshold and episode.hold_seconds >= config.hold_seconds:
        tone = TONE_HELD
    else:
        tone = TONE_HOLDING

    ring = None
    if episode.active:
        ring = ProgressRing(
            center=(mx + (nx - mx) * 0.5, my + (ny - my) * 0.5),
            radius=PROGRESS_RING_RADIUS,
            fraction=clamp01(episode.hold_seconds / config.hold_seconds),
        )

    return OverlayGeometry(
        reference_line=((mx, 0.0), (mx, 1.0)),
        angle_line=((mx, my), (nx, ny)),
        label_anchor=(nx, ny),
        label_text=f"{abs(measurement.angle):.1f} deg",
        tone=tone,
        ring=ring,
    )


def project_feedback(session: ExerciseSession, measurement: Optional[TiltMeasurement] = None,
                     config: TiltConfig = DEFAULT_CONFIG, signal_lost: bool = False) -> Feedback:
    """
    Read-only view of the session for the display.

    measurement is the current frame's tilt (None when there is no usable
    frame). signal_lost swaps the status for reposition guidance and leaves
    everything else as the session has it.
    """
    episode = session.episode

    if session.status is SessionStatus.STOPPED:
        instruction = INTRO_INSTRUCTION
    elif session.status is SessionStatus.ACTIVE and measurement is None and not signal_lost \
            and session.reps == 0 and not episode.active:
        instruction = start_instruction(config)
    else:
        instruction = instruction_for(session, config)

    overlay = None
    if measurement is not None and not signal_lost:
        overlay = project_overlay(session, measurement, config)

    return Feedback(
        status_text=REPOSITION_MESSAGE if signal_lost else session.message,
        instruction_text=instruction,
        status=session.status,
        direction=episode.direction,
        reps=session.reps,
        target_total=session.target_total,
        hold_seconds=episode.hold_seconds,
        countdown=max(0.0, config.hold_seconds - episode.hold_seconds),
        angle=abs(session.last_angle),
        progress=clamp01(session.reps / session.target_total),
        overlay=overlay,
    )
