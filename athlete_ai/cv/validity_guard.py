"""
Per-frame validity and cheat detection.

Independent checks run on every frame and are merged into one verdict:

- Framing: at least 3 of 9 key points visible, face visible
- Extra person: shoulder or hip width over 0.6 of the frame
- Camera angle: off-center, too close or too far
- Video cut: nose or left shoulder jumping more than 0.3 since the previous frame
- Malpractice: body configuration inconsistent with the selected activity
- Lighting: mean brightness of a small pixel window, and sudden changes in it

Alerts (extra person, cut, malpractice, framing) invalidate the frame and
ask for the red overlay; warnings are advisory only. Nothing is latched:
each frame is judged on its own apart from the one-frame snapshot the
cut detector needs, which lives in a per-session ValidityState.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple
import logging
import time

import numpy as np

from athlete_ai.config import Settings, get_settings
from athlete_ai.cv.activities.base import ActivityKind
from athlete_ai.cv.geometry import Vec2, angle_at_vertex, distance
from athlete_ai.cv.landmarks import NUM_LANDMARKS, Landmark, PoseLandmark, coerce_landmarks

logger = logging.getLogger(__name__)


VISIBILITY_THRESHOLD = 0.3

# nose, eyes, shoulders, elbows, hips
PRESENCE_INDICES = (0, 2, 5, 11, 12, 13, 14, 23, 24)
MIN_VISIBLE_POINTS = 3

MAX_BODY_WIDTH = 0.6
CUT_DISTANCE = 0.3
STANDING_KNEE_ANGLE = 160.0

MIN_BRIGHTNESS = 30.0
MAX_BRIGHTNESS_CHANGE = 50.0

ALERT_EXTRA_PERSON = "Multiple people detected - only one person allowed"
ALERT_VIDEO_CUT = "Suspicious video cut/edit detected"
WARNING_NO_PERSON = "No person detected in frame"
WARNING_FACE_HIDDEN = "Face not clearly visible"
WARNING_LOW_LIGHT = "Insufficient lighting detected"
WARNING_LIGHTING_CHANGE = "Sudden lighting change detected"


@dataclass
class ValidityState:
    """Cross-frame memory for one session's guard. Never shared between sessions."""
    prev_nose: Optional[Vec2] = None
    prev_shoulder: Optional[Vec2] = None
    previous_brightness: Optional[float] = None
    last_alert_sound_at: Optional[float] = None

    def reset_snapshot(self) -> None:
        self.prev_nose = None
        self.prev_shoulder = None


@dataclass(frozen=True)
class AlertEvent:
    """Emitted with every red-overlay frame; the caller decides how to render or sound it."""
    timestamp: float
    messages: Tuple[str, ...]
    should_sound: bool


@dataclass
class CheatDetectionResult:
    is_valid: bool = True
    warnings: List[str] = field(default_factory=list)
    alerts: List[str] = field(default_factory=list)
    should_show_red_overlay: bool = False
    current_brightness: Optional[float] = None
    cut: bool = False
    alert_event: Optional[AlertEvent] = None


# =============================================================================
# Individual checks (stateless)
# =============================================================================

def _visible(lm: Landmark) -> bool:
    return lm.visibility > VISIBILITY_THRESHOLD


def check_single_person(landmarks: Sequence[Landmark]) -> bool:
    """True when enough key points are visible to consider a person present."""
    if not landmarks:
        return False
    visible = sum(
        1 for i in PRESENCE_INDICES
        if i < len(landmarks) and _visible(landmarks[i])
    )
    return visible >= MIN_VISIBLE_POINTS


def check_no_extra_people(landmarks: Sequence[Landmark]) -> bool:
    """False when the shoulder or hip span is implausibly wide for one body."""
    if len(landmarks) < NUM_LANDMARKS:
        return True
    shoulder_width = abs(landmarks[PoseLandmark.LEFT_SHOULDER].x - landmarks[PoseLandmark.RIGHT_SHOULDER].x)
    hip_width = abs(landmarks[PoseLandmark.LEFT_HIP].x - landmarks[PoseLandmark.RIGHT_HIP].x)
    return not (shoulder_width > MAX_BODY_WIDTH or hip_width > MAX_BODY_WIDTH)


def check_face_visible(landmarks: Sequence[Landmark]) -> bool:
    if len(landmarks) < NUM_LANDMARKS:
        return False
    return all(
        _visible(landmarks[i])
        for i in (PoseLandmark.NOSE, PoseLandmark.LEFT_EYE, PoseLandmark.RIGHT_EYE)
    )


def check_camera_angle(landmarks: Sequence[Landmark]) -> Tuple[bool, str]:
    """
    Check the athlete is framed usably.

    Returns:
        Tuple of (valid, issue message)
    """
    if len(landmarks) < NUM_LANDMARKS:
        return True, ""
    nose = landmarks[PoseLandmark.NOSE]
    left_hip = landmarks[PoseLandmark.LEFT_HIP]
    right_hip = landmarks[PoseLandmark.RIGHT_HIP]

    if nose.visibility < VISIBILITY_THRESHOLD:
        return True, ""
    if nose.x < 0.1 or nose.x > 0.9:
        return False, "Person too far to the side - center the camera"
    if nose.y < 0.05:
        return False, "Camera too close - step back"
    if _visible(left_hip) and _visible(right_hip):
        body_height = abs(nose.y - (left_hip.y + right_hip.y) / 2)
        if body_height < 0.1:
            return False, "Camera too far - move closer"
    return True, ""


def check_for_video_cut(landmarks: Optional[Sequence[Landmark]], state: ValidityState) -> bool:
    """
    Compare nose and left shoulder to the previous frame's snapshot.

    Updates the snapshot in `state`; frames without a pose clear it.
    """
    if not landmarks or len(landmarks) < NUM_LANDMARKS:
        state.reset_snapshot()
        return False

    nose = landmarks[PoseLandmark.NOSE]
    shoulder = landmarks[PoseLandmark.LEFT_SHOULDER]
    current_nose = Vec2(nose.x, nose.y)
    current_shoulder = Vec2(shoulder.x, shoulder.y)

    cut = False
    if state.prev_nose is not None and state.prev_shoulder is not None:
        cut = (
            distance(current_nose, state.prev_nose) > CUT_DISTANCE
            or distance(current_shoulder, state.prev_shoulder) > CUT_DISTANCE
        )

    state.prev_nose = current_nose
    state.prev_shoulder = current_shoulder
    return cut


def check_malpractice(activity: Optional[ActivityKind], landmarks: Sequence[Landmark]) -> Tuple[bool, str]:
    """
    Activity-specific posture sanity test.

    Returns:
        Tuple of (malpractice detected, reason)
    """
    if activity is None or len(landmarks) < NUM_LANDMARKS:
        return False, ""

    nose = landmarks[PoseLandmark.NOSE]
    left_shoulder = landmarks[PoseLandmark.LEFT_SHOULDER]
    left_hip = landmarks[PoseLandmark.LEFT_HIP]
    right_hip = landmarks[PoseLandmark.RIGHT_HIP]
    left_knee = landmarks[PoseLandmark.LEFT_KNEE]
    left_ankle = landmarks[PoseLandmark.LEFT_ANKLE]
    right_ankle = landmarks[PoseLandmark.RIGHT_ANKLE]

    if nose.visibility < VISIBILITY_THRESHOLD or left_shoulder.visibility < VISIBILITY_THRESHOLD:
        return False, ""

    hip_y = (left_hip.y + right_hip.y) / 2
    nose_to_hip = abs(nose.y - hip_y)

    if activity is ActivityKind.PUSH_UPS:
        # Expect a roughly horizontal body
        if _visible(left_hip) and _visible(right_hip):
            if nose.y < hip_y - 0.25 and nose_to_hip > 0.3:
                return True, "You appear to be standing - get into push-up position"
    elif activity is ActivityKind.SQUATS:
        # Expect an upright body
        if _visible(left_hip) and nose_to_hip < 0.05:
            return True, "Incorrect position - stand upright for squats"
    elif activity is ActivityKind.WALL_SIT:
        # Expect bent knees; a straight leg means standing
        if _visible(left_knee) and _visible(left_ankle):
            if angle_at_vertex(left_hip, left_knee, left_ankle) > STANDING_KNEE_ANGLE:
                return True, "Sit down against the wall - knees should be bent"
    elif activity in (ActivityKind.VERTICAL_JUMP, ActivityKind.BROAD_JUMP):
        # Expect a standing start
        if _visible(left_ankle):
            ankle_y = (left_ankle.y + right_ankle.y) / 2
            if abs(ankle_y - nose.y) < 0.1:
                return True, "Stand upright for jump test"

    return False, ""


def sample_brightness(frame_image: Any, sample_size: int = 50) -> Optional[float]:
    """
    Mean brightness of a sample_size x sample_size window at (width/4, height/4).

    Pixels are averaged over their RGB channels. Any failure to read the
    image returns None, which the guard treats as "no issue".
    """
    if frame_image is None:
        return None
    try:
        frame = np.asarray(frame_image)
        height, width = frame.shape[:2]
        top, left = height // 4, width // 4
        window = frame[top:top + sample_size, left:left + sample_size]
        if window.ndim == 3:
            pixel_luma = window[..., :3].astype(np.float64).mean(axis=-1)
        else:
            pixel_luma = window.astype(np.float64)
        # Pixels outside the frame count as black
        return float(pixel_luma.sum() / (sample_size * sample_size))
    except Exception as e:
        logger.warning(f"Brightness sampling failed, skipping lighting check: {e}")
        return None


def check_brightness(brightness: Optional[float]) -> bool:
    return brightness is None or brightness > MIN_BRIGHTNESS


def check_no_sudden_lighting_change(current: Optional[float], previous: Optional[float]) -> bool:
    if current is None or previous is None:
        return True
    return abs(current - previous) < MAX_BRIGHTNESS_CHANGE


# =============================================================================
# Composite guard
# =============================================================================

class ValidityGuard:
    """
    Runs every check for one session.

    Owns the session's ValidityState; create one guard per assessment.
    """

    def __init__(self, activity: Optional[ActivityKind] = None, settings: Optional[Settings] = None):
        self.activity = activity
        self.settings = settings or get_settings()
        self.state = ValidityState()

    def run_cheat_detection(
        self,
        landmarks: Optional[Sequence[Any]],
        frame_image: Any = None,
        timestamp: Optional[float] = None,
    ) -> CheatDetectionResult:
        """
        Judge one frame.

        Args:
            landmarks: Raw keypoints for the frame (may be empty or short)
            frame_image: Optional HxWxC pixel array for the lighting checks
            timestamp: Frame time in seconds, used to throttle alert sounds

        Returns:
            CheatDetectionResult with is_valid false exactly when an alert was raised
        """
        now = timestamp if timestamp is not None else time.monotonic()
        points = coerce_landmarks(landmarks) or []
        result = CheatDetectionResult()

        if not check_no_extra_people(points):
            result.alerts.append(ALERT_EXTRA_PERSON)

        if not check_single_person(points):
            result.warnings.append(WARNING_NO_PERSON)

        camera_ok, issue = check_camera_angle(points)
        if not camera_ok:
            result.alerts.append(issue)

        result.cut = check_for_video_cut(points, self.state)
        if result.cut:
            result.alerts.append(ALERT_VIDEO_CUT)

        malpractice, reason = check_malpractice(self.activity, points)
        if malpractice:
            result.alerts.append(reason)

        if len(points) >= NUM_LANDMARKS and not check_face_visible(points):
            result.warnings.append(WARNING_FACE_HIDDEN)

        brightness = sample_brightness(frame_image, self.settings.brightness_sample_size)
        result.current_brightness = brightness
        if not check_brightness(brightness):
            result.warnings.append(WARNING_LOW_LIGHT)
        if not check_no_sudden_lighting_change(brightness, self.state.previous_brightness):
            result.warnings.append(WARNING_LIGHTING_CHANGE)
        if brightness is not None:
            self.state.previous_brightness = brightness

        result.is_valid = not result.alerts
        result.should_show_red_overlay = bool(result.alerts)
        if result.should_show_red_overlay:
            result.alert_event = self._emit_alert(result.alerts, now)

        return result

    def _emit_alert(self, alerts: List[str], now: float) -> AlertEvent:
        last = self.state.last_alert_sound_at
        should_sound = last is None or now - last > self.settings.alert_repeat_seconds
        if should_sound:
            self.state.last_alert_sound_at = now
            logger.info(f"Validity alert: {'; '.join(alerts)}")
        return AlertEvent(timestamp=now, messages=tuple(alerts), should_sound=should_sound)
