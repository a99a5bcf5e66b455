import numpy as np
import pytest

from athlete_ai.cv.activities import ActivityKind
from athlete_ai.cv.landmarks import PoseLandmark, coerce_landmarks
from athlete_ai.cv.validity_guard import (
    ALERT_EXTRA_PERSON,
    ALERT_VIDEO_CUT,
    WARNING_FACE_HIDDEN,
    WARNING_LIGHTING_CHANGE,
    WARNING_LOW_LIGHT,
    WARNING_NO_PERSON,
    ValidityGuard,
    ValidityState,
    check_camera_angle,
    check_for_video_cut,
    check_malpractice,
    sample_brightness,
)
from tests.poses import knee_angle_landmarks, make_landmarks


def nose_at(x):
    return make_landmarks({PoseLandmark.NOSE: (x, 0.15)})


class TestVideoCut:
    def test_large_jump_is_a_cut(self):
        state = ValidityState()
        assert check_for_video_cut(coerce_landmarks(nose_at(0.3)), state) is False
        assert check_for_video_cut(coerce_landmarks(nose_at(0.9)), state) is True

    def test_small_jump_is_not_a_cut(self):
        state = ValidityState()
        check_for_video_cut(coerce_landmarks(nose_at(0.3)), state)
        assert check_for_video_cut(coerce_landmarks(nose_at(0.35)), state) is False

    def test_missing_pose_clears_snapshot(self):
        state = ValidityState()
        check_for_video_cut(coerce_landmarks(nose_at(0.3)), state)
        check_for_video_cut([], state)
        assert state.prev_nose is None
        assert check_for_video_cut(coerce_landmarks(nose_at(0.9)), state) is False

    def test_guards_do_not_share_snapshots(self):
        first, second = ValidityGuard(ActivityKind.SQUATS), ValidityGuard(ActivityKind.SQUATS)
        first.run_cheat_detection(nose_at(0.3), timestamp=0.0)

        assert second.run_cheat_detection(nose_at(0.9), timestamp=0.1).cut is False
        result = first.run_cheat_detection(nose_at(0.9), timestamp=0.1)
        assert result.cut is True
        assert ALERT_VIDEO_CUT in result.alerts
        assert result.is_valid is False
        assert result.should_show_red_overlay is True


class TestGuard:
    def test_clean_frame(self):
        result = ValidityGuard(ActivityKind.SQUATS).run_cheat_detection(make_landmarks(), timestamp=0.0)

        assert result.is_valid is True
        assert result.warnings == []
        assert result.alerts == []
        assert result.alert_event is None

    def test_no_person_is_a_warning_only(self):
        result = ValidityGuard(ActivityKind.SQUATS).run_cheat_detection([], timestamp=0.0)

        assert WARNING_NO_PERSON in result.warnings
        assert result.is_valid is True

    def test_hidden_face(self):
        landmarks = make_landmarks()
        landmarks[PoseLandmark.LEFT_EYE]["visibility"] = 0.1
        result = ValidityGuard(ActivityKind.SQUATS).run_cheat_detection(landmarks, timestamp=0.0)

        assert WARNING_FACE_HIDDEN in result.warnings

    def test_extra_person(self):
        landmarks = make_landmarks({
            PoseLandmark.LEFT_SHOULDER: (0.1, 0.3),
            PoseLandmark.RIGHT_SHOULDER: (0.8, 0.3),
        })
        result = ValidityGuard(ActivityKind.SQUATS).run_cheat_detection(landmarks, timestamp=0.0)

        assert ALERT_EXTRA_PERSON in result.alerts
        assert result.is_valid is False

    def test_off_center_camera(self):
        result = ValidityGuard(ActivityKind.SQUATS).run_cheat_detection(nose_at(0.95), timestamp=0.0)

        assert result.is_valid is False
        assert any("center the camera" in alert for alert in result.alerts)

    def test_validity_is_not_latched(self):
        guard = ValidityGuard(ActivityKind.SQUATS)
        guard.run_cheat_detection(nose_at(0.3), timestamp=0.0)
        assert guard.run_cheat_detection(nose_at(0.9), timestamp=0.1).is_valid is False
        assert guard.run_cheat_detection(nose_at(0.9), timestamp=0.2).is_valid is True

    def test_alert_sound_is_throttled(self, settings):
        guard = ValidityGuard(ActivityKind.SQUATS, settings)
        wide = make_landmarks({PoseLandmark.LEFT_HIP: (0.1, 0.55), PoseLandmark.RIGHT_HIP: (0.8, 0.55)})

        sounds = [guard.run_cheat_detection(wide, timestamp=t).alert_event.should_sound for t in (0.0, 1.0, 2.5)]
        assert sounds == [True, False, True]


class TestMalpractice:
    def test_standing_during_push_ups(self):
        flagged, reason = check_malpractice(ActivityKind.PUSH_UPS, coerce_landmarks(make_landmarks()))
        assert flagged is True
        assert "push-up position" in reason

    def test_wall_sit_requires_bent_knees(self):
        assert check_malpractice(ActivityKind.WALL_SIT, coerce_landmarks(knee_angle_landmarks(175)))[0] is True
        assert check_malpractice(ActivityKind.WALL_SIT, coerce_landmarks(knee_angle_landmarks(90)))[0] is False

    def test_squats_upright(self):
        assert check_malpractice(ActivityKind.SQUATS, coerce_landmarks(make_landmarks()))[0] is False
        lying = make_landmarks({PoseLandmark.NOSE: (0.5, 0.53)})
        assert check_malpractice(ActivityKind.SQUATS, coerce_landmarks(lying))[0] is True


class TestLighting:
    def test_sample_window(self):
        frame = np.full((200, 200, 3), 120, dtype=np.uint8)
        assert sample_brightness(frame, 50) == 120.0

    def test_unreadable_image_is_ignored(self):
        assert sample_brightness("not an image", 50) is None
        assert sample_brightness(None, 50) is None

    def test_dark_frame_warns_without_invalidating(self):
        result = ValidityGuard(ActivityKind.SQUATS).run_cheat_detection(
            make_landmarks(), frame_image=np.zeros((120, 160, 3), dtype=np.uint8), timestamp=0.0
        )
        assert WARNING_LOW_LIGHT in result.warnings
        assert result.is_valid is True
        assert result.current_brightness == 0.0

    def test_sudden_lighting_change(self):
        guard = ValidityGuard(ActivityKind.SQUATS)
        guard.run_cheat_detection(make_landmarks(), np.full((120, 160, 3), 200, dtype=np.uint8), timestamp=0.0)
        result = guard.run_cheat_detection(
            make_landmarks(), np.full((120, 160, 3), 100, dtype=np.uint8), timestamp=0.1
        )
        assert WARNING_LIGHTING_CHANGE in result.warnings
        assert WARNING_LOW_LIGHT not in result.warnings


class TestCameraAngle:
    @pytest.mark.parametrize("nose, issue", [
        ((0.95, 0.15), "center the camera"),
        ((0.05, 0.15), "center the camera"),
        ((0.5, 0.03), "Camera too close"),
        ((0.5, 0.48), "Camera too far"),
    ])
    def test_framing_problems_invalidate(self, nose, issue):
        landmarks = make_landmarks({PoseLandmark.NOSE: nose})
        valid, message = check_camera_angle(coerce_landmarks(landmarks))
        assert valid is False
        assert issue in message

        result = ValidityGuard(ActivityKind.SQUATS).run_cheat_detection(landmarks, timestamp=0.0)
        assert result.is_valid is False
        assert any(issue in alert for alert in result.alerts)

    def test_distance_needs_both_hips(self):
        landmarks = make_landmarks({PoseLandmark.NOSE: (0.5, 0.48)})
        landmarks[PoseLandmark.RIGHT_HIP]["visibility"] = 0.1
        assert check_camera_angle(coerce_landmarks(landmarks)) == (True, "")


class TestJumpMalpractice:
    @pytest.mark.parametrize("activity", [ActivityKind.VERTICAL_JUMP, ActivityKind.BROAD_JUMP])
    def test_lying_down_is_flagged(self, activity):
        lying = make_landmarks({
            PoseLandmark.NOSE: (0.2, 0.8),
            PoseLandmark.LEFT_ANKLE: (0.8, 0.82),
            PoseLandmark.RIGHT_ANKLE: (0.8, 0.84),
        })
        flagged, reason = check_malpractice(activity, coerce_landmarks(lying))
        assert flagged is True
        assert reason == "Stand upright for jump test"

    @pytest.mark.parametrize("activity", [ActivityKind.VERTICAL_JUMP, ActivityKind.BROAD_JUMP])
    def test_standing_start_is_accepted(self, activity):
        assert check_malpractice(activity, coerce_landmarks(make_landmarks())) == (False, "")
