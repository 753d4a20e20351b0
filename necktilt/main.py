import argparse
import sys
import time
from pathlib import Path

import cv2
import numpy as np
from ultralytics import YOLO

from . import overlay
from .config import (
    DEFAULT_FRAME_HEIGHT,
    DEFAULT_FRAME_WIDTH,
    DEFAULT_MODEL_PATH,
    HOLD_TIME_THRESHOLD,
    MIN_KEYPOINT_CONFIDENCE,
    TARGET_REPS_PER_SIDE,
    TILT_ANGLE_THRESHOLD,
)
from .pose import REQUIRED_KEYPOINTS, ensure_model_path, extract_pose_sample, get_keypoints_dict
from .rep_counter import SessionStatus, TiltConfig
from .session import ExerciseController


def build_parser():
    parser = argparse.ArgumentParser(description="Neck tilt exercise coach (YOLO pose).")
    parser.add_argument("--model", type=str, default=str(DEFAULT_MODEL_PATH),
                        help="Path to YOLO pose model (e.g., yolov8n-pose.pt)")
    parser.add_argument("--video", type=str, default=None,
                        help="Path to video file. If not set, use webcam.")
    parser.add_argument("--camera", type=int, default=0,
                        help="Camera index (webcam mode only).")
    parser.add_argument("--backend", type=str, default=None,
                        choices=["avfoundation", "any", "default"],
                        help="OpenCV backend: avfoundation, any, or default.")
    parser.add_argument("--target-reps", type=int, default=TARGET_REPS_PER_SIDE,
                        help="Reps per side (total target is twice this).")
    parser.add_argument("--hold-seconds", type=float, default=HOLD_TIME_THRESHOLD,
                        help="Seconds a tilt must be held to count.")
    parser.add_argument("--angle-threshold", type=float, default=TILT_ANGLE_THRESHOLD,
                        help="Degrees past center that count as a tilt.")
    parser.add_argument("--min-confidence", type=float, default=MIN_KEYPOINT_CONFIDENCE,
                        help="Keypoint confidence floor for nose/ears/shoulders.")
    parser.add_argument("--autostart", action="store_true",
                        help="Start the exercise as soon as the camera is open.")
    parser.add_argument("--debug", action="store_true",
                        help="Print per-frame angle/hold traces.")
    return parser


def open_capture(args):
    if args.video is not None:
        return cv2.VideoCapture(args.video)

    backend_choice = "avfoundation" if sys.platform == "darwin" else "default"
    if args.backend is not None:
        backend_choice = args.backend
    if backend_choice == "avfoundation" and sys.platform == "darwin":
        print(f"[CAMERA] Opening camera index {args.camera} with backend=avfoundation")
        cap = cv2.VideoCapture(args.camera, cv2.CAP_AVFOUNDATION)
        if cap.isOpened():
            return cap
        print("[CAMERA] AVFoundation open failed, retrying with default backend...")
    print(f"[CAMERA] Opening camera index {args.camera} with backend=default")
    cap = cv2.VideoCapture(args.camera)
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, DEFAULT_FRAME_WIDTH)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, DEFAULT_FRAME_HEIGHT)
    cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
    return cap


def report(prev, feedback):
    """Print session transitions and new reps."""
    if prev is None or feedback.status != prev.status:
        print(f"[SESSION] {feedback.status.value}: {feedback.status_text}")
    elif feedback.reps != prev.reps:
        print(f"[REP] {feedback.reps}/{feedback.target_total} {feedback.status_text}")


def main():
    parser = build_parser()
    args = parser.parse_args()

    try:
        config = TiltConfig(
            angle_threshold=args.angle_threshold,
            hold_seconds=args.hold_seconds,
            target_per_side=args.target_reps,
            min_confidence=args.min_confidence,
        )
    except ValueError as exc:
        parser.error(str(exc))

    model_path = ensure_model_path(Path(args.model))
    print(f"[MODEL] Loading model: {model_path}")
    model = YOLO(str(model_path))

    controller = ExerciseController(config)
    window_name = "Neck Tilt Exercise"
    button_rect = (0, 0, 0, 0)
    cap = None
    camera_status = "Camera stopped."

    def toggle_exercise():
        if cap is None:
            return
        report(controller.last_feedback, controller.toggle())

    def on_mouse(event, x, y, flags, userdata):
        if event == cv2.EVENT_LBUTTONDOWN:
            x1, y1, x2, y2 = button_rect
            if x1 <= x <= x2 and y1 <= y <= y2:
                toggle_exercise()

    def start_camera():
        nonlocal cap, camera_status
        cap = open_capture(args)
        if not cap.isOpened():
            print("[CAMERA] Error: Could not open video source.")
            cap = None
            camera_status = "Camera unavailable."
            return
        camera_status = "Camera active. Position yourself so your face and shoulders are visible."
        print(f"[CAMERA] {camera_status}")
        if args.autostart:
            toggle_exercise()

    def stop_camera():
        nonlocal cap, camera_status
        if cap is not None:
            cap.release()
            cap = None
        if controller.active:
            report(controller.last_feedback, controller.stop())
        camera_status = "Camera stopped."
        print(f"[CAMERA] {camera_status}")

    cv2.namedWindow(window_name, cv2.WINDOW_NORMAL)
    cv2.setMouseCallback(window_name, on_mouse)
    print("Press 'c' to start/stop the camera, SPACE to start/stop the exercise, 'q' to quit.")

    start_camera()
    consecutive_failures = 0
    last_fail_log = 0.0

    try:
        while True:
            frame = None
            if cap is not None:
                ret, frame = cap.read()
                if not ret or frame is None:
                    frame = None
                    consecutive_failures += 1
                    now = time.time()
                    if (now - last_fail_log) > 1.0:
                        print("[CAMERA] cap.read() failed; keeping window open; press q to quit")
                        last_fail_log = now
                    if args.video is None and consecutive_failures > 30:
                        print("[CAMERA] Reopening camera after 30 consecutive failures...")
                        cap.release()
                        cap = open_capture(args)
                        consecutive_failures = 0
                else:
                    consecutive_failures = 0

            if frame is None:
                frame = np.zeros((DEFAULT_FRAME_HEIGHT, DEFAULT_FRAME_WIDTH, 3), dtype=np.uint8)
                if cap is None:
                    overlay.draw_camera_off(frame)
                    cv2.putText(frame, camera_status, (10, 30),
                                cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)
            else:
                results = model(frame, verbose=False)
                kp_dict = get_keypoints_dict(results[0])
                if kp_dict is not None:
                    overlay.draw_keypoints(frame, kp_dict, REQUIRED_KEYPOINTS)

                if controller.active:
                    prev = controller.last_feedback
                    feedback = controller.process(extract_pose_sample(kp_dict))
                    report(prev, feedback)
                    if args.debug:
                        print(f"[DEBUG] dir={feedback.direction.value} angle={feedback.angle:.1f} "
                              f"hold={feedback.hold_seconds:.2f} reps={feedback.reps}")

                if controller.status is not SessionStatus.STOPPED:
                    frame = overlay.draw_feedback(frame, controller.last_feedback)
                else:
                    cv2.putText(frame, camera_status if controller.session.reps == 0
                                else controller.last_feedback.status_text,
                                (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)

            if cap is not None:
                button_rect = overlay.draw_exercise_button(frame, controller.active)
            else:
                button_rect = (0, 0, 0, 0)

            cv2.imshow(window_name, frame)
            key = cv2.waitKey(1) & 0xFF
            if key == ord("q"):
                return
            if key == ord("c"):
                if cap is None:
                    start_camera()
                else:
                    stop_camera()
            elif key == 32:
                toggle_exercise()
    finally:
        if cap is not None:
            cap.release()
        cv2.destroyAllWindows()
        print("Finished.")


if __name__ == "__main__":
    main()
