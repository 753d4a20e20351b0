import cv2

from .feedback import TONE_HELD, TONE_HOLDING, TONE_NEUTRAL

# BGR
REFERENCE_COLOR = (0, 51, 0)
LABEL_COLOR = (0, 255, 0)
RING_COLOR = (0, 255, 0)
TONE_COLORS = {
    TONE_NEUTRAL: (0, 255, 255),   # yellow
    TONE_HOLDING: (0, 153, 255),   # orange
    TONE_HELD: (0, 255, 0),        # green
}

BAR_HEIGHT = 150


def _wrap(text, max_chars):
    words = text.split()
    lines, line = [], ""
    for word in words:
        candidate = f"{line} {word}".strip()
        if len(candidate) > max_chars and line:
            lines.append(line)
            line = word
        else:
            line = candidate
    if line:
        lines.append(line)
    return lines


def draw_geometry(frame, geometry):
    """Reference line, angle line + label and the hold progress ring."""
    h, w = frame.shape[:2]
    px = geometry.scaled(w, h)

    p1, p2 = px["reference_line"]
    cv2.line(frame, p1, p2, REFERENCE_COLOR, 3)

    a1, a2 = px["angle_line"]
    cv2.line(frame, a1, a2, TONE_COLORS.get(geometry.tone, TONE_COLORS[TONE_NEUTRAL]), 5)

    (tw, _), _ = cv2.getTextSize(geometry.label_text, cv2.FONT_HERSHEY_SIMPLEX, 0.8, 2)
    lx, ly = px["label_pos"]
    cv2.putText(frame, geometry.label_text, (lx - tw // 2, ly),
                cv2.FONT_HERSHEY_SIMPLEX, 0.8, LABEL_COLOR, 2)

    if px["ring"] is not None:
        center, radius, fraction = px["ring"]
        cv2.circle(frame, center, radius, RING_COLOR, 3)
        if fraction > 0:
            # Arc starts at 12 o'clock and sweeps clockwise.
            cv2.ellipse(frame, center, (radius, radius), 0, -90, -90 + 360 * fraction, RING_COLOR, 5)
    return frame


def draw_feedback(frame, feedback):
    """
    Draw status/instructions/stats, the rep progress bar and, when present,
    the tilt geometry. Returns the (new) frame.
    """
    h, w = frame.shape[:2]

    if feedback.overlay is not None:
        draw_geometry(frame, feedback.overlay)

    # translucent top bar
    overlay = frame.copy()
    cv2.rectangle(overlay, (0, 0), (w, BAR_HEIGHT), (0, 0, 0), -1)
    frame = cv2.addWeighted(overlay, 0.4, frame, 0.6, 0)

    max_chars = max(20, w // 12)
    y = 28
    for line in _wrap(feedback.status_text, max_chars)[:2]:
        cv2.putText(frame, line, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 255), 2)
        y += 26
    for line in _wrap(feedback.instruction_text, max_chars)[:2]:
        cv2.putText(frame, line, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2)
        y += 24

    stats = (f"Reps: {feedback.reps}/{feedback.target_total}   "
             f"Hold: {feedback.hold_seconds:.1f}s   "
             f"Angle: {feedback.angle:.1f} deg")
    cv2.putText(frame, stats, (10, BAR_HEIGHT - 12), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 0), 2)

    # rep progress bar along the bottom
    bar_w = int(round(w * feedback.progress))
    cv2.rectangle(frame, (0, h - 12), (w, h), (60, 60, 60), -1)
    if bar_w > 0:
        cv2.rectangle(frame, (0, h - 12), (bar_w, h), (0, 200, 0), -1)

    return frame


def draw_keypoints(frame, kp_dict, names):
    h, w = frame.shape[:2]
    for name in names:
        kp = kp_dict.get(name)
        if kp is None:
            continue
        cv2.circle(frame, (int(kp.x * w), int(kp.y * h)), 4, (0, 255, 0), -1)


def draw_camera_off(frame):
    h, _ = frame.shape[:2]
    cv2.putText(frame, "CAMERA OFF (press c)", (10, h - 30),
                cv2.FONT_HERSHEY_SIMPLEX, 1.2, (0, 0, 255), 3)


def draw_exercise_button(frame, active):
    """Draw the start/stop exercise button and return its rectangle."""
    frame_h, frame_w = frame.shape[:2]
    btn_w, btn_h = 150, 50
    margin = 10
    x2 = frame_w - margin
    y2 = frame_h - margin - 12
    x1 = x2 - btn_w
    y1 = y2 - btn_h
    cv2.rectangle(frame, (x1, y1), (x2, y2), (30, 30, 30), -1)
    label = "STOP" if active else "START"
    cv2.putText(frame, label, (x1 + 25, y1 + 35),
                cv2.FONT_HERSHEY_SIMPLEX, 1.1, (255, 255, 255), 3)
    return (x1, y1, x2, y2)
