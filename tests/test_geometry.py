import pytest

from athlete_ai.cv.geometry import (
    QUALITY_BAD, QUALITY_GOOD, QUALITY_WARNING, Vec2, angle_at_vertex, distance, midpoint, quality_band
)
from athlete_ai.cv.landmarks import Landmark, NamedPose, coerce_landmarks, extract_named
from athlete_ai.numeric import clamp, round_half_up
from tests.poses import make_landmarks


def test_right_angle():
    assert angle_at_vertex(Vec2(0, 0), Vec2(0, 1), Vec2(1, 1)) == pytest.approx(90.0)


@pytest.mark.parametrize("a, b, c", [
    ((0.1, 0.9), (0.5, 0.5), (0.9, 0.9)),
    ((0.9, 0.1), (0.5, 0.5), (0.1, 0.2)),
    ((0.0, 0.5), (0.5, 0.5), (1.0, 0.5)),
    ((0.2, 0.2), (0.5, 0.5), (0.2, 0.21)),
    ((0.5, 0.0), (0.5, 0.5), (0.4, 0.0)),
])
def test_angle_always_within_half_turn(a, b, c):
    angle = angle_at_vertex(Vec2(*a), Vec2(*b), Vec2(*c))
    assert 0.0 <= angle <= 180.0


def test_straight_line_is_180():
    assert angle_at_vertex(Vec2(0, 0.5), Vec2(0.5, 0.5), Vec2(1, 0.5)) == pytest.approx(180.0)


def test_distance_and_midpoint():
    assert distance(Vec2(0, 0), Vec2(0.3, 0.4)) == pytest.approx(0.5)
    assert midpoint(Vec2(0.2, 0.4), Vec2(0.6, 0.8)) == (pytest.approx(0.4), pytest.approx(0.6))


def test_quality_band():
    assert quality_band(90, 85, 100) == QUALITY_GOOD
    assert quality_band(75, 85, 100) == QUALITY_WARNING
    assert quality_band(40, 85, 100) == QUALITY_BAD


def test_round_half_up_and_clamp():
    assert round_half_up(70.5) == 71
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2
    assert clamp(120) == 100
    assert clamp(-5) == 0


class TestLandmarks:
    def test_short_frame_is_no_pose(self):
        assert extract_named(make_landmarks()[:32]) is None
        assert extract_named([]) is None
        assert extract_named(None) is None

    def test_named_projection(self):
        pose = extract_named(make_landmarks())
        assert isinstance(pose, NamedPose)
        assert pose.left_hip.x == pytest.approx(0.46)
        assert pose.right_ankle.y == pytest.approx(0.9)
        assert pose.hip_mid_y == pytest.approx(0.55)

    def test_coerce_accepts_objects(self):
        class Point:
            x = 0.25
            y = 0.75

        lm = Landmark.coerce(Point())
        assert lm == Landmark(0.25, 0.75, 1.0)
        assert coerce_landmarks([{"x": 0.1, "y": 0.2, "visibility": 0.4}]) == [Landmark(0.1, 0.2, 0.4)]
        assert coerce_landmarks(None) is None
