"""
Wall-sit hold timer.

No reps: the timer starts on the first frame with a valid knee angle and
then accrues wall-clock time for the rest of the session. It is not reset
when posture later breaks; stability reflects how much of the hold was
spent in band.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import math

from athlete_ai.cv.activities.base import ActivityKind, ActivityStateMachine, FrameContext, StepResult
from athlete_ai.cv.geometry import QUALITY_BAD, QUALITY_GOOD, QUALITY_WARNING, angle_at_vertex, quality_band
from athlete_ai.cv.landmarks import NamedPose
from athlete_ai.numeric import round_half_up


@dataclass(frozen=True)
class WallSitState:
    phase: str = "idle"
    started_at: Optional[float] = None
    stable_frames: int = 0
    total_frames: int = 0  # Counted from the first valid frame
    last_timestamp: Optional[float] = None


class WallSitStateMachine(ActivityStateMachine):
    """Knee angle 85-100° is good, 75-110° a warning, anything else bad."""

    kind = ActivityKind.WALL_SIT
    TRANSITIONS = {
        "idle": frozenset({"active"}),
        "active": frozenset({"rest"}),
        "rest": frozenset({"active"}),
    }

    GOOD_MIN = 85.0
    GOOD_MAX = 100.0
    TOLERANCE = 10.0

    POSTURE_ACCURACY = {QUALITY_GOOD: 100, QUALITY_WARNING: 70, QUALITY_BAD: 30}

    def initial_state(self) -> WallSitState:
        return WallSitState()

    def classify(self, knee_angle: float) -> str:
        return quality_band(knee_angle, self.GOOD_MIN, self.GOOD_MAX, tolerance=self.TOLERANCE)

    @staticmethod
    def stability_score(state: WallSitState) -> int:
        if state.total_frames == 0:
            return 0
        return round_half_up(state.stable_frames / state.total_frames * 100)

    @staticmethod
    def hold_duration(state: WallSitState, now: float) -> int:
        if state.started_at is None:
            return 0
        return int(math.floor(now - state.started_at))

    def step(self, state: WallSitState, pose: NamedPose, ctx: FrameContext) -> StepResult:
        left = angle_at_vertex(pose.left_hip, pose.left_knee, pose.left_ankle)
        right = angle_at_vertex(pose.right_hip, pose.right_knee, pose.right_ankle)
        knee_angle = (left + right) / 2

        quality = self.classify(knee_angle)
        in_band = quality == QUALITY_GOOD

        if state.started_at is None and not in_band:
            # Timer has not started yet
            state = self.advance(state, state.phase, last_timestamp=ctx.timestamp)
        else:
            started_at = state.started_at if state.started_at is not None else ctx.timestamp
            phase = "active" if in_band else "rest"
            state = self.advance(
                state, phase,
                started_at=started_at,
                stable_frames=state.stable_frames + (1 if in_band else 0),
                total_frames=state.total_frames + 1,
                last_timestamp=ctx.timestamp,
            )

        stability = self.stability_score(state)
        metrics = {
            "phase": state.phase,
            "hold_duration": self.hold_duration(state, ctx.timestamp),
            "stability_score": stability,
            "posture_accuracy": self.POSTURE_ACCURACY[quality],
            "joint_angles": {"left_knee": round_half_up(left), "right_knee": round_half_up(right)},
            "form_quality": quality,
            "form_score": stability,
        }
        return StepResult(state=state, display_metrics=metrics)

    def summarize(self, state: WallSitState, ctx: FrameContext) -> Dict[str, Any]:
        end = state.last_timestamp if state.last_timestamp is not None else ctx.timestamp
        return {
            "duration_seconds": float(self.hold_duration(state, end)),
            "stability_score": self.stability_score(state),
        }
