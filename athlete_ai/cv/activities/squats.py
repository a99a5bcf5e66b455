"""
Squat rep counter.

Phase graph: idle → up → down → up. A rep is counted on down → up.
Knee angles between the two thresholds (half squats) update the display
but never move the phase, so they are not counted.
"""

from dataclasses import dataclass

from athlete_ai.cv.activities.base import (
    ActivityEvent, ActivityKind, ActivityStateMachine, FrameContext, StepResult
)
from athlete_ai.cv.geometry import QUALITY_GOOD, QUALITY_WARNING, angle_at_vertex
from athlete_ai.cv.landmarks import NamedPose
from athlete_ai.numeric import clamp, round_half_up


@dataclass(frozen=True)
class SquatState:
    phase: str = "idle"
    max_depth_percent: float = 0.0  # Deepest point of the rep in progress


class SquatStateMachine(ActivityStateMachine):
    """Average hip-knee-ankle angle with hysteresis between 165° (up) and 95° (down)."""

    kind = ActivityKind.SQUATS
    TRANSITIONS = {
        "idle": frozenset({"up"}),
        "up": frozenset({"down"}),
        "down": frozenset({"up"}),
    }

    UP_ANGLE = 165.0
    DOWN_ANGLE = 95.0
    HALF_SQUAT_MAX = 120.0

    # Depth scale: 180° standing = 0 %, 70° deep squat = 100 %
    STANDING_ANGLE = 180.0
    DEEP_ANGLE = 70.0

    GOOD_DEPTH_PERCENT = 60.0
    SYMMETRY_TOLERANCE = 10.0

    def initial_state(self) -> SquatState:
        return SquatState()

    @classmethod
    def depth_percent(cls, knee_angle: float) -> float:
        return clamp((cls.STANDING_ANGLE - knee_angle) / (cls.STANDING_ANGLE - cls.DEEP_ANGLE) * 100)

    @classmethod
    def rep_form_score(cls, depth_percent: float, symmetry: float) -> int:
        depth_component = 100 if depth_percent > cls.GOOD_DEPTH_PERCENT else depth_percent * 1.5
        symmetry_component = 100 if symmetry < cls.SYMMETRY_TOLERANCE else max(0.0, 100 - symmetry * 3)
        return min(100, round_half_up(depth_component * 0.6 + symmetry_component * 0.4))

    def step(self, state: SquatState, pose: NamedPose, ctx: FrameContext) -> StepResult:
        left = angle_at_vertex(pose.left_hip, pose.left_knee, pose.left_ankle)
        right = angle_at_vertex(pose.right_hip, pose.right_knee, pose.right_ankle)
        knee_angle = (left + right) / 2

        is_down = knee_angle < self.DOWN_ANGLE
        is_up = knee_angle > self.UP_ANGLE
        is_half = self.DOWN_ANGLE <= knee_angle <= self.HALF_SQUAT_MAX
        depth = self.depth_percent(knee_angle)

        event = None
        if state.phase == "idle" and is_up:
            state = self.advance(state, "up", max_depth_percent=0.0)
        elif state.phase == "up" and is_down:
            state = self.advance(state, "down", max_depth_percent=max(state.max_depth_percent, depth))
        elif state.phase == "down" and is_up:
            rep_depth = state.max_depth_percent
            symmetry = abs(left - right)
            event = ActivityEvent(
                activity=self.kind,
                timestamp=ctx.timestamp,
                form_score=self.rep_form_score(rep_depth, symmetry),
                value=round_half_up(rep_depth),
                metrics={"depth_percent": round_half_up(rep_depth), "symmetry_deg": round(symmetry, 1)},
            )
            state = self.advance(state, "up", max_depth_percent=0.0)
        elif state.phase == "up" and is_up:
            # Standing again after a half squat: discard its depth
            state = self.advance(state, "up", max_depth_percent=0.0)
        elif state.phase in ("up", "down"):
            state = self.advance(state, state.phase, max_depth_percent=max(state.max_depth_percent, depth))

        metrics = {
            "phase": state.phase,
            "depth_percent": round_half_up(depth),
            "joint_angles": {"left_knee": round_half_up(left), "right_knee": round_half_up(right)},
            "form_quality": QUALITY_WARNING if is_half else QUALITY_GOOD,
        }
        return StepResult(state=state, event=event, display_metrics=metrics)
