import pytest

from athlete_ai.cv.activities import (
    ActivityKind,
    ActivitySession,
    BroadJumpStateMachine,
    FrameContext,
    PhaseTransitionError,
    PushUpStateMachine,
    SitUpStateMachine,
    SquatStateMachine,
    WallSitStateMachine,
    create_state_machine,
)
from athlete_ai.cv.activities.squats import SquatState
from tests.poses import body_at, knee_angle_pose, push_up_pose, torso_angle_pose


def feed(machine, poses, start=0.0, fps=10.0):
    """Run poses through a fresh ActivitySession, returning it and the step results."""
    session = ActivitySession(machine)
    results = []
    for i, pose in enumerate(poses):
        result = machine.step(session.state, pose, FrameContext(timestamp=start + i / fps, frame_number=i))
        session.apply(result)
        results.append(result)
    return session, results


class TestActivityKind:
    def test_aliases(self):
        assert ActivityKind.parse("pushups") is ActivityKind.PUSH_UPS
        assert ActivityKind.parse("Wall Sit") is ActivityKind.WALL_SIT
        assert ActivityKind.parse("t_test") is ActivityKind.T_TEST

    def test_unknown_selector_falls_back(self):
        assert ActivityKind.parse("underwater-basket-weaving") is ActivityKind.SQUATS
        assert ActivityKind.parse(None, default=ActivityKind.KICK) is ActivityKind.KICK

    def test_registry_builds_every_kind(self):
        for kind in ActivityKind:
            assert create_state_machine(kind).kind is kind


def test_undeclared_transition_raises():
    machine = SquatStateMachine()
    with pytest.raises(PhaseTransitionError):
        machine.advance(SquatState(phase="idle"), "down")


class TestSquats:
    def test_full_squat_counts_one_rep(self):
        session, results = feed(SquatStateMachine(), [knee_angle_pose(a) for a in (170, 170, 90, 90, 170)])

        events = [r.event for r in results if r.event]
        assert session.rep_count == 1
        assert len(events) == 1
        assert events[0].metrics["depth_percent"] > 60
        assert session.form_score_history == [events[0].form_score]
        assert session.phase == "up"

    def test_half_squat_is_not_counted(self):
        session, results = feed(SquatStateMachine(), [knee_angle_pose(a) for a in (170, 110, 110, 170)])

        assert session.rep_count == 0
        assert results[1].display_metrics["form_quality"] == "warning"

    def test_rep_count_never_decreases(self):
        angles = [170, 90, 170, 130, 90, 100, 170, 60, 175, 120, 170] * 3
        machine = SquatStateMachine()
        session = ActivitySession(machine)
        previous = 0
        for i, angle in enumerate(angles):
            session.apply(machine.step(session.state, knee_angle_pose(angle), FrameContext(timestamp=i * 0.1)))
            assert session.rep_count >= previous
            previous = session.rep_count
        assert session.rep_count == 9


class TestSitUps:
    def test_crunch_and_lie_back_counts(self):
        session, results = feed(SitUpStateMachine(), [torso_angle_pose(a) for a in (170, 60, 170)])

        assert session.rep_count == 1
        assert results[-1].event.form_score == 100

    def test_shallow_crunch_scores_lower(self):
        session, _ = feed(SitUpStateMachine(), [torso_angle_pose(a) for a in (170, 80, 170)])

        assert session.form_score_history == [90]


class TestWallSit:
    def test_steady_hold_is_fully_stable(self):
        session, results = feed(WallSitStateMachine(), [knee_angle_pose(90)] * 100)

        assert results[-1].display_metrics["stability_score"] == 100
        assert results[-1].display_metrics["form_quality"] == "good"
        assert session.rep_count == 0

    @pytest.mark.parametrize("knee_angle, quality", [
        (85, "good"), (100, "good"), (76, "warning"), (110, "warning"), (74, "bad"), (111, "bad"),
    ])
    def test_knee_angle_bands(self, knee_angle, quality):
        assert WallSitStateMachine().classify(knee_angle) == quality

    def test_out_of_band_frames_reduce_stability_proportionally(self):
        poses = [knee_angle_pose(90)] * 50 + [knee_angle_pose(60)] * 10 + [knee_angle_pose(90)] * 40
        _, results = feed(WallSitStateMachine(), poses)

        assert results[-1].display_metrics["stability_score"] == 90

    def test_timer_keeps_running_after_posture_breaks(self):
        machine = WallSitStateMachine()
        poses = [knee_angle_pose(150)] * 5 + [knee_angle_pose(90)] * 20 + [knee_angle_pose(150)] * 25
        session, results = feed(machine, poses, fps=5.0)

        # Started at frame 5 (t=1.0), last frame at t=9.8
        summary = machine.summarize(session.state, FrameContext(timestamp=9.8))
        assert summary["duration_seconds"] == 8.0
        assert results[-1].display_metrics["form_quality"] == "bad"
        assert summary["stability_score"] == 44


class TestBroadJump:
    def test_jump_distance(self):
        machine = BroadJumpStateMachine()
        poses = [body_at(0.3, 0.55), body_at(0.3, 0.50), body_at(0.6, 0.52)]
        session, results = feed(machine, poses)

        event = results[-1].event
        assert event.value == 90.0
        assert event.form_score == 93
        assert session.rep_count == 1
        assert machine.summarize(session.state, FrameContext(timestamp=1.0))["distance_cm"] == 90.0

    def test_short_hop_is_ignored(self):
        session, _ = feed(BroadJumpStateMachine(), [body_at(0.3, 0.55), body_at(0.3, 0.50), body_at(0.32, 0.52)])

        assert session.rep_count == 0
        assert session.phase == "landed"


class TestPushUps:
    def test_extended_aligned_rep(self):
        session, results = feed(PushUpStateMachine(), [push_up_pose(a) for a in (170, 90, 170)])

        assert session.rep_count == 1
        assert results[-1].event.form_score == 95

    def test_partial_lockout_and_piked_hips_score_lower(self):
        poses = [push_up_pose(170), push_up_pose(90), push_up_pose(158),
                 push_up_pose(90, aligned=False), push_up_pose(170, aligned=False)]
        session, results = feed(PushUpStateMachine(), poses)

        assert session.form_score_history == [80, 55]
        assert session.rep_count == 2
        assert results[-1].display_metrics["form_quality"] == "bad"

    def test_fatigue_rate(self):
        assert PushUpStateMachine.fatigue_rate((0.0, 5.0, 10.0, 20.0, 35.0, 40.0)) == 50
        assert PushUpStateMachine.fatigue_rate((0.0, 5.0, 10.0)) == 0
