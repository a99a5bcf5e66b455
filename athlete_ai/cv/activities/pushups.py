"""
Push-up rep counter.

Phase graph: idle → up → down → up, driven by the average elbow angle.
Body straightness (shoulder-hip-ankle) is checked when the rep completes
and decides its form score; only reps scoring above 50 are counted, the
rest are tallied as incomplete.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from athlete_ai.cv.activities.base import (
    ActivityEvent, ActivityKind, ActivityStateMachine, FrameContext, StepResult
)
from athlete_ai.cv.geometry import QUALITY_BAD, QUALITY_GOOD, QUALITY_WARNING, angle_at_vertex
from athlete_ai.cv.landmarks import NamedPose
from athlete_ai.numeric import round_half_up


@dataclass(frozen=True)
class PushUpState:
    phase: str = "idle"
    incomplete_reps: int = 0
    rep_times: Tuple[float, ...] = ()  # Timestamps of counted reps


class PushUpStateMachine(ActivityStateMachine):
    """Elbow angle up above 155°, down below 100°; straight body above 150°."""

    kind = ActivityKind.PUSH_UPS
    TRANSITIONS = {
        "idle": frozenset({"up"}),
        "up": frozenset({"down"}),
        "down": frozenset({"up"}),
    }

    UP_ANGLE = 155.0
    DOWN_ANGLE = 100.0
    FULL_EXTENSION_ANGLE = 160.0
    STRAIGHT_BODY_ANGLE = 150.0

    ALIGNED_EXTENDED_SCORE = 95
    ALIGNED_SCORE = 80
    MISALIGNED_SCORE = 55
    MIN_COUNTED_SCORE = 50

    # Fatigue: compare reps in the first and second half of the minute
    FATIGUE_SPLIT_SECONDS = 30.0
    MIN_REPS_FOR_FATIGUE = 4

    def initial_state(self) -> PushUpState:
        return PushUpState()

    @classmethod
    def rep_form_score(cls, elbow_angle: float, body_aligned: bool) -> int:
        if not body_aligned:
            return cls.MISALIGNED_SCORE
        return cls.ALIGNED_EXTENDED_SCORE if elbow_angle > cls.FULL_EXTENSION_ANGLE else cls.ALIGNED_SCORE

    @classmethod
    def fatigue_rate(cls, rep_times: Tuple[float, ...]) -> int:
        """Percentage drop in reps from the first to the second half of the test."""
        if len(rep_times) < cls.MIN_REPS_FOR_FATIGUE:
            return 0
        split = rep_times[0] + cls.FATIGUE_SPLIT_SECONDS
        first_half = sum(1 for t in rep_times if t < split)
        second_half = len(rep_times) - first_half
        if first_half == 0:
            return 0
        return round_half_up((first_half - second_half) / first_half * 100)

    def step(self, state: PushUpState, pose: NamedPose, ctx: FrameContext) -> StepResult:
        left = angle_at_vertex(pose.left_shoulder, pose.left_elbow, pose.left_wrist)
        right = angle_at_vertex(pose.right_shoulder, pose.right_elbow, pose.right_wrist)
        elbow_angle = (left + right) / 2
        body_angle = angle_at_vertex(pose.left_shoulder, pose.left_hip, pose.left_ankle)
        body_aligned = body_angle > self.STRAIGHT_BODY_ANGLE

        is_down = elbow_angle < self.DOWN_ANGLE
        is_up = elbow_angle > self.UP_ANGLE

        event = None
        if state.phase == "idle" and is_up:
            state = self.advance(state, "up")
        elif state.phase == "up" and is_down:
            state = self.advance(state, "down")
        elif state.phase == "down" and is_up:
            form_score = self.rep_form_score(elbow_angle, body_aligned)
            counted = form_score > self.MIN_COUNTED_SCORE
            event = ActivityEvent(
                activity=self.kind,
                timestamp=ctx.timestamp,
                form_score=form_score,
                counted=counted,
                metrics={"body_angle": round_half_up(body_angle), "aligned": body_aligned},
            )
            if counted:
                state = self.advance(state, "up", rep_times=state.rep_times + (ctx.timestamp,))
            else:
                state = self.advance(state, "up", incomplete_reps=state.incomplete_reps + 1)

        if not body_aligned:
            quality = QUALITY_BAD
        elif is_up or is_down:
            quality = QUALITY_GOOD
        else:
            quality = QUALITY_WARNING

        metrics = {
            "phase": state.phase,
            "incomplete_reps": state.incomplete_reps,
            "joint_angles": {
                "left_elbow": round_half_up(left),
                "right_elbow": round_half_up(right),
                "body": round_half_up(body_angle),
            },
            "form_quality": quality,
        }
        return StepResult(state=state, event=event, display_metrics=metrics)

    def summarize(self, state: PushUpState, ctx: FrameContext) -> Dict[str, Any]:
        return {
            "incomplete_reps": state.incomplete_reps,
            "fatigue_rate": self.fatigue_rate(state.rep_times),
        }
