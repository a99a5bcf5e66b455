"""
Vertical jump.

Phase graph: idle → calibrating → ready → jumping → landed → idle.

The athlete starts calibration manually ("start") and raises their arms
so the standing reach is captured as the highest wrist position; "ready"
arms takeoff detection. Takeoff is the hip rising more than 0.04 in one
frame, the running minimum of hip Y is the peak, and landing is the hip
falling 0.03 below that peak. The attempt completes once 15 landed frames
have been collected for the landing-stability window.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
import logging

import numpy as np

from athlete_ai.cv.activities.base import (
    ActivityEvent, ActivityKind, ActivityStateMachine, FrameContext, StepResult
)
from athlete_ai.cv.landmarks import NamedPose
from athlete_ai.numeric import clamp, round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerticalJumpState:
    phase: str = "idle"
    standing_reach: Optional[float] = None  # min wrist Y seen while calibrating
    prev_hip_y: Optional[float] = None
    peak_hip_y: Optional[float] = None
    jump_height_cm: int = 0
    power_score: int = 0
    landing_samples: Tuple[float, ...] = ()
    best_height_cm: int = 0
    attempts: int = 0


class VerticalJumpStateMachine(ActivityStateMachine):
    """Standing reach vs hip peak, with a trailing landing-stability window."""

    kind = ActivityKind.VERTICAL_JUMP
    TRANSITIONS = {
        "idle": frozenset({"calibrating"}),
        "calibrating": frozenset({"ready"}),
        "ready": frozenset({"jumping"}),
        "jumping": frozenset({"landed"}),
        "landed": frozenset({"idle"}),
    }

    TAKEOFF_VELOCITY = 0.04
    LANDING_DROP = 0.03
    CM_PER_UNIT = 300.0
    ELITE_HEIGHT_CM = 70.0
    STABILITY_WINDOW = 15
    DEFAULT_REACH = 0.5  # used when calibration saw no wrist

    def initial_state(self) -> VerticalJumpState:
        return VerticalJumpState()

    @classmethod
    def landing_stability(cls, samples) -> int:
        variance = float(np.var(np.asarray(samples, dtype=float)))
        return round_half_up(clamp(100 - variance * 10000))

    @classmethod
    def power_for(cls, height_cm: float) -> int:
        return round_half_up(min(100.0, height_cm / cls.ELITE_HEIGHT_CM * 100))

    def handle_command(self, state: VerticalJumpState, command: str, ctx: FrameContext) -> VerticalJumpState:
        if command == "start" and state.phase == "idle":
            return self.advance(
                state, "calibrating",
                standing_reach=None, prev_hip_y=None, peak_hip_y=None,
                jump_height_cm=0, power_score=0, landing_samples=(),
            )
        if command == "ready" and state.phase == "calibrating":
            return self.advance(state, "ready", prev_hip_y=None)
        logger.warning(f"{self.kind.value}: command {command!r} ignored in phase {state.phase}")
        return state

    def step(self, state: VerticalJumpState, pose: NamedPose, ctx: FrameContext) -> StepResult:
        hip_y = pose.hip_mid_y
        wrist_y = min(pose.left_wrist.y, pose.right_wrist.y)
        event = None

        if state.phase == "calibrating":
            if state.standing_reach is None or wrist_y < state.standing_reach:
                state = self.advance(state, "calibrating", standing_reach=wrist_y)

        elif state.phase == "ready":
            if state.prev_hip_y is not None and state.prev_hip_y - hip_y > self.TAKEOFF_VELOCITY:
                state = self.advance(state, "jumping", peak_hip_y=hip_y)
            state = self.advance(state, state.phase, prev_hip_y=hip_y)

        elif state.phase == "jumping":
            peak = min(state.peak_hip_y, hip_y) if state.peak_hip_y is not None else hip_y
            if hip_y > peak + self.LANDING_DROP:
                reach = state.standing_reach if state.standing_reach is not None else self.DEFAULT_REACH
                height_cm = round_half_up(max(0.0, (reach - peak) * self.CM_PER_UNIT))
                state = self.advance(
                    state, "landed",
                    peak_hip_y=peak,
                    jump_height_cm=height_cm,
                    power_score=self.power_for(height_cm),
                    landing_samples=(),
                )
            else:
                state = self.advance(state, "jumping", peak_hip_y=peak)
            state = self.advance(state, state.phase, prev_hip_y=hip_y)

        elif state.phase == "landed":
            samples = state.landing_samples + (hip_y,)
            if len(samples) >= self.STABILITY_WINDOW:
                stability = self.landing_stability(samples)
                event = ActivityEvent(
                    activity=self.kind,
                    timestamp=ctx.timestamp,
                    form_score=stability,
                    value=float(state.jump_height_cm),
                    label=f"{state.jump_height_cm} cm",
                    metrics={"power_score": state.power_score, "landing_stability": stability},
                )
                state = self.advance(
                    state, "idle",
                    landing_samples=(),
                    best_height_cm=max(state.best_height_cm, state.jump_height_cm),
                    attempts=state.attempts + 1,
                )
            else:
                state = self.advance(state, "landed", landing_samples=samples)

        reach_cm = None
        if state.standing_reach is not None:
            reach_cm = round_half_up((1 - state.standing_reach) * self.CM_PER_UNIT)
        metrics: Dict[str, Any] = {
            "phase": state.phase,
            "standing_reach": reach_cm,
            "jump_height": state.jump_height_cm,
            "power_score": state.power_score,
        }
        if event is not None:
            metrics["landing_stability"] = event.form_score
        return StepResult(state=state, event=event, display_metrics=metrics)

    def summarize(self, state: VerticalJumpState, ctx: FrameContext) -> Dict[str, Any]:
        best, attempts = state.best_height_cm, state.attempts
        # A landing still inside its stability window counts
        if state.phase == "landed":
            best, attempts = max(best, state.jump_height_cm), attempts + 1
        return {
            "distance_cm": float(best),
            "attempts": attempts,
            "power_score": self.power_for(best),
        }
