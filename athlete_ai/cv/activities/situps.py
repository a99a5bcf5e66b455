"""
Sit-up rep counter.

Phase graph: idle → down → up → down. A rep is counted on up → down
(lying back after sitting up).
"""

from dataclasses import dataclass

from athlete_ai.cv.activities.base import (
    ActivityEvent, ActivityKind, ActivityStateMachine, FrameContext, StepResult
)
from athlete_ai.cv.geometry import QUALITY_GOOD, QUALITY_WARNING, angle_at_vertex
from athlete_ai.cv.landmarks import NamedPose
from athlete_ai.numeric import round_half_up


@dataclass(frozen=True)
class SitUpState:
    phase: str = "idle"
    min_torso_angle: float = 180.0  # Tightest crunch of the rep in progress
    crunch_asymmetry: float = 0.0  # Left/right difference at that crunch


class SitUpStateMachine(ActivityStateMachine):
    """Average knee-hip-shoulder angle: lying above 140°, upright below 90°."""

    kind = ActivityKind.SIT_UPS
    TRANSITIONS = {
        "idle": frozenset({"down"}),
        "down": frozenset({"up"}),
        "up": frozenset({"down"}),
    }

    LYING_ANGLE = 140.0
    UPRIGHT_ANGLE = 90.0
    FULL_CRUNCH_ANGLE = 70.0
    SYMMETRY_TOLERANCE = 15.0

    def initial_state(self) -> SitUpState:
        return SitUpState()

    @classmethod
    def rep_form_score(cls, min_torso_angle: float, asymmetry: float) -> int:
        crunch = 100 if min_torso_angle < cls.FULL_CRUNCH_ANGLE else 80
        symmetry = 100 if asymmetry < cls.SYMMETRY_TOLERANCE else 60
        return min(100, round_half_up(crunch * 0.5 + symmetry * 0.5))

    def step(self, state: SitUpState, pose: NamedPose, ctx: FrameContext) -> StepResult:
        left = angle_at_vertex(pose.left_knee, pose.left_hip, pose.left_shoulder)
        right = angle_at_vertex(pose.right_knee, pose.right_hip, pose.right_shoulder)
        torso_angle = (left + right) / 2

        is_lying = torso_angle > self.LYING_ANGLE
        is_upright = torso_angle < self.UPRIGHT_ANGLE

        event = None
        if state.phase == "idle" and is_lying:
            state = self.advance(state, "down")
        elif state.phase == "down" and is_upright:
            state = self.advance(state, "up", min_torso_angle=torso_angle, crunch_asymmetry=abs(left - right))
        elif state.phase == "up" and is_lying:
            event = ActivityEvent(
                activity=self.kind,
                timestamp=ctx.timestamp,
                form_score=self.rep_form_score(state.min_torso_angle, state.crunch_asymmetry),
                metrics={"min_torso_angle": round_half_up(state.min_torso_angle)},
            )
            state = self.advance(state, "down", min_torso_angle=180.0, crunch_asymmetry=0.0)
        elif state.phase == "up" and torso_angle < state.min_torso_angle:
            state = self.advance(state, "up", min_torso_angle=torso_angle, crunch_asymmetry=abs(left - right))

        metrics = {
            "phase": state.phase,
            "joint_angles": {"torso": round_half_up(torso_angle)},
            "form_quality": QUALITY_GOOD if (is_upright or is_lying) else QUALITY_WARNING,
        }
        return StepResult(state=state, event=event, display_metrics=metrics)
