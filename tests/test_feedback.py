import pytest

from necktilt.feedback import (
    INTRO_INSTRUCTION,
    REPOSITION_MESSAGE,
    RETURN_INSTRUCTION,
    TONE_HELD,
    TONE_HOLDING,
    TONE_NEUTRAL,
    project_feedback,
    start_instruction,
)
from necktilt.pose import TiltMeasurement
from necktilt.rep_counter import (
    ExerciseSession,
    HoldEpisode,
    SessionStatus,
    TiltConfig,
    TiltDirection,
)

MEASUREMENT = TiltMeasurement(angle=20.0, shoulder_mid=(0.5, 0.6), nose=(0.4, 0.8))


def _active(**kwargs):
    return ExerciseSession(status=SessionStatus.ACTIVE, **kwargs)


def _holding(direction=TiltDirection.RIGHT, seconds=0.0, completed=False):
    return HoldEpisode(direction=direction, start_time=0.0, hold_seconds=seconds, completed=completed)


def test_stopped_session_shows_intro():
    fb = project_feedback(ExerciseSession())
    assert fb.instruction_text == INTRO_INSTRUCTION
    assert fb.overlay is None
    assert fb.reps == 0 and fb.progress == 0.0


def test_start_instruction_text():
    assert start_instruction() == (
        "Tilt your head to either side until you reach 15° and hold for 3 seconds. "
        "Complete 5 reps on each side."
    )
    fb = project_feedback(_active())
    assert fb.instruction_text == start_instruction()


def test_idle_instruction_once_frames_arrive():
    fb = project_feedback(_active(), MEASUREMENT)
    assert fb.instruction_text == (
        "Tilt your head to either side until you reach 15° and hold for 3 seconds."
    )


def test_holding_instruction_counts_down():
    fb = project_feedback(_active(episode=_holding(seconds=2.0)), MEASUREMENT)
    assert fb.instruction_text == "Good! Hold your right tilt for 1.0 more seconds."
    assert fb.countdown == pytest.approx(1.0)
    assert fb.hold_seconds == 2.0
    assert fb.direction is TiltDirection.RIGHT


def test_completed_episode_asks_to_return_to_center():
    fb = project_feedback(_active(reps=1, episode=_holding(seconds=3.4, completed=True)), MEASUREMENT)
    assert fb.instruction_text == RETURN_INSTRUCTION
    assert fb.countdown == 0.0


def test_progress_fraction():
    assert project_feedback(_active(reps=3)).progress == pytest.approx(0.3)
    assert project_feedback(_active(reps=10)).progress == 1.0
    assert project_feedback(_active(reps=3, target_per_side=1)).progress == 1.0


def test_signal_lost_keeps_state_but_changes_status():
    session = _active(reps=2, episode=_holding(seconds=1.5), last_angle=-22.0)
    fb = project_feedback(session, config=TiltConfig(), signal_lost=True)
    assert fb.status_text == REPOSITION_MESSAGE
    assert fb.overlay is None
    assert fb.reps == 2
    assert fb.hold_seconds == 1.5
    assert fb.angle == 22.0


def test_overlay_neutral_has_no_ring():
    geo = project_feedback(_active(), MEASUREMENT).overlay
    assert geo.tone == TONE_NEUTRAL
    assert geo.ring is None
    assert geo.reference_line == ((0.5, 0.0), (0.5, 1.0))
    assert geo.angle_line == ((0.5, 0.6), (0.4, 0.8))
    assert geo.label_text == "20.0 deg"


def test_overlay_ring_while_holding():
    geo = project_feedback(_active(episode=_holding(seconds=1.5)), MEASUREMENT).overlay
    assert geo.tone == TONE_HOLDING
    assert geo.ring.center == pytest.approx((0.45, 0.7))
    assert geo.ring.fraction == pytest.approx(0.5)
    assert geo.ring.radius == 30


def test_overlay_ring_fraction_is_clamped_and_tone_held():
    geo = project_feedback(_active(episode=_holding(seconds=4.5, completed=True)), MEASUREMENT).overlay
    assert geo.tone == TONE_HELD
    assert geo.ring.fraction == 1.0


def test_overlay_scaled_to_pixels():
    geo = project_feedback(_active(episode=_holding(seconds=1.5)), MEASUREMENT).overlay
    px = geo.scaled(640, 480)
    assert px["reference_line"] == ((320, 0), (320, 480))
    assert px["angle_line"] == ((320, 288), (256, 384))
    assert px["label_pos"] == (256, 364)
    assert px["ring"] == ((288, 336), 30, pytest.approx(0.5))


def test_custom_thresholds_in_texts():
    config = TiltConfig(angle_threshold=10.0, hold_seconds=2.5, target_per_side=3)
    fb = project_feedback(ExerciseSession(status=SessionStatus.ACTIVE, target_per_side=3), config=config)
    assert "10°" in fb.instruction_text
    assert "2.5 seconds" in fb.instruction_text
    assert "Complete 3 reps" in fb.instruction_text
    assert fb.target_total == 6
