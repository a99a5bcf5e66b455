"""
Standing broad jump.

Phase graph: idle → takeoff → landed (→ takeoff for the next attempt).
Takeoff is a hip rising faster than 0.03 units/frame; landing is the first
frame the hip drops by more than 0.01. Distance is the horizontal hip
displacement between the two, scaled to centimetres.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from athlete_ai.cv.activities.base import (
    ActivityEvent, ActivityKind, ActivityStateMachine, FrameContext, StepResult
)
from athlete_ai.cv.geometry import QUALITY_BAD, QUALITY_GOOD, angle_at_vertex, midpoint
from athlete_ai.cv.landmarks import NamedPose
from athlete_ai.numeric import round_half_up


@dataclass(frozen=True)
class BroadJumpState:
    phase: str = "idle"
    prev_hip_y: Optional[float] = None
    takeoff_hip_x: Optional[float] = None
    best_distance_cm: int = 0
    valid_jumps: int = 0


class BroadJumpStateMachine(ActivityStateMachine):
    """Hip-Y velocity takeoff/landing detector with a forward-lean validity check."""

    kind = ActivityKind.BROAD_JUMP
    TRANSITIONS = {
        "idle": frozenset({"takeoff"}),
        "takeoff": frozenset({"landed"}),
        "landed": frozenset({"takeoff"}),
    }

    TAKEOFF_VELOCITY = 0.03  # upward hip motion per frame
    LANDING_VELOCITY = 0.01  # downward hip motion per frame
    CM_PER_UNIT = 300.0  # Rough scale for a typical side-on camera setup
    MAX_LEAN = 0.15  # hip-ankle horizontal offset
    MIN_DISTANCE_CM = 10

    def initial_state(self) -> BroadJumpState:
        return BroadJumpState()

    @staticmethod
    def jump_form_score(distance_cm: int, is_valid: bool) -> int:
        return min(100, round_half_up(min(distance_cm, 100) * 0.7 + (100 if is_valid else 40) * 0.3))

    def step(self, state: BroadJumpState, pose: NamedPose, ctx: FrameContext) -> StepResult:
        hip = midpoint(pose.left_hip, pose.right_hip)
        ankle = midpoint(pose.left_ankle, pose.right_ankle)
        knee_angle = angle_at_vertex(pose.left_hip, pose.left_knee, pose.left_ankle)

        metrics: Dict[str, Any] = {"joint_angles": {"knee": round_half_up(knee_angle)}}
        event = None

        if state.prev_hip_y is not None:
            hip_delta = state.prev_hip_y - hip.y  # positive = moving up

            if state.phase != "takeoff" and hip_delta > self.TAKEOFF_VELOCITY:
                state = self.advance(state, "takeoff", takeoff_hip_x=hip.x)
            elif state.phase == "takeoff" and hip_delta < -self.LANDING_VELOCITY:
                distance_cm = round_half_up(abs(hip.x - state.takeoff_hip_x) * self.CM_PER_UNIT)
                lean = abs(hip.x - ankle.x)
                is_valid = lean < self.MAX_LEAN

                if is_valid and distance_cm > self.MIN_DISTANCE_CM:
                    form_score = self.jump_form_score(distance_cm, is_valid)
                    event = ActivityEvent(
                        activity=self.kind,
                        timestamp=ctx.timestamp,
                        form_score=form_score,
                        value=float(distance_cm),
                        label=f"{distance_cm} cm",
                        metrics={"lean": round(lean, 3)},
                    )
                    state = self.advance(
                        state, "landed",
                        takeoff_hip_x=None,
                        best_distance_cm=max(state.best_distance_cm, distance_cm),
                        valid_jumps=state.valid_jumps + 1,
                    )
                    metrics.update({"form_score": form_score, "form_quality": QUALITY_GOOD})
                else:
                    state = self.advance(state, "landed", takeoff_hip_x=None)
                    if not is_valid:
                        metrics["form_quality"] = QUALITY_BAD

        state = self.advance(state, state.phase, prev_hip_y=hip.y)
        metrics.update({"phase": state.phase, "jump_distance": state.best_distance_cm})
        return StepResult(state=state, event=event, display_metrics=metrics)

    def summarize(self, state: BroadJumpState, ctx: FrameContext) -> Dict[str, Any]:
        return {"distance_cm": float(state.best_distance_cm), "valid_jumps": state.valid_jumps}
