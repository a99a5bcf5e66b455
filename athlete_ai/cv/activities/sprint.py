"""
Sprint and T-test timing.

These are event counters rather than phase machines: the clock runs from
the first frame of the session, and every sign reversal of the tracked
signal beyond a dead-zone is one stride (sprint, ankle Y) or one
direction change (T-test, hip X). The final time is scored against the
benchmark band for the distance or drill.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import math

from athlete_ai.cv.activities.base import (
    ActivityEvent, ActivityKind, ActivityStateMachine, FrameContext, StepResult
)
from athlete_ai.cv.geometry import midpoint
from athlete_ai.cv.landmarks import NamedPose
from athlete_ai.scoring.benchmarks import T_TEST_BENCHMARK, TimeBenchmark, sprint_benchmark

DEAD_ZONE = 0.01


@dataclass(frozen=True)
class SprintState:
    phase: str = "running"
    started_at: Optional[float] = None
    last_timestamp: Optional[float] = None
    prev_ankle_y: Optional[float] = None
    moving_up: bool = False
    strides: int = 0


@dataclass(frozen=True)
class TTestState:
    phase: str = "running"
    started_at: Optional[float] = None
    last_timestamp: Optional[float] = None
    prev_hip_x: Optional[float] = None
    direction: Optional[str] = None
    direction_changes: int = 0


def _elapsed(started_at: Optional[float], now: Optional[float]) -> float:
    if started_at is None or now is None:
        return 0.0
    return max(0.0, now - started_at)


class SprintStateMachine(ActivityStateMachine):
    """Counts strides from the rise and fall of the mid-ankle point."""

    kind = ActivityKind.SPRINT
    INITIAL_PHASE = "running"
    TRANSITIONS = {"running": frozenset()}

    STRIDE_LENGTH_M = 1.8

    def __init__(self, distance: int = 20):
        if distance not in (20, 40):
            raise ValueError(f"Unsupported sprint distance: {distance} m")
        self.distance = distance
        self.benchmark: TimeBenchmark = sprint_benchmark(distance)

    def initial_state(self) -> SprintState:
        return SprintState()

    def step(self, state: SprintState, pose: NamedPose, ctx: FrameContext) -> StepResult:
        ankle_y = midpoint(pose.left_ankle, pose.right_ankle).y
        started_at = state.started_at if state.started_at is not None else ctx.timestamp

        event = None
        moving_up = state.moving_up
        strides = state.strides
        if state.prev_ankle_y is not None:
            delta = ankle_y - state.prev_ankle_y
            if delta < -DEAD_ZONE and not moving_up:
                moving_up = True
            elif delta > DEAD_ZONE and moving_up:
                moving_up = False
                strides += 1
                event = ActivityEvent(activity=self.kind, timestamp=ctx.timestamp, label="stride")

        state = self.advance(
            state, state.phase,
            started_at=started_at,
            last_timestamp=ctx.timestamp,
            prev_ankle_y=ankle_y,
            moving_up=moving_up,
            strides=strides,
        )
        metrics = {
            "phase": state.phase,
            "elapsed_seconds": round(_elapsed(started_at, ctx.timestamp), 2),
            "strides": strides,
        }
        return StepResult(state=state, event=event, display_metrics=metrics)

    def summarize(self, state: SprintState, ctx: FrameContext) -> Dict[str, Any]:
        end = state.last_timestamp if state.last_timestamp is not None else ctx.timestamp
        total_time = round(_elapsed(state.started_at, end), 2)
        return {
            "duration_seconds": total_time,
            "distance_m": self.distance,
            "strides": max(state.strides, math.floor(self.distance / self.STRIDE_LENGTH_M)),
            "rating": self.benchmark.rating(total_time),
            "score": self.benchmark.score(total_time),
        }


class TTestStateMachine(ActivityStateMachine):
    """Counts left/right direction changes of the mid-hip point."""

    kind = ActivityKind.T_TEST
    INITIAL_PHASE = "running"
    TRANSITIONS = {"running": frozenset()}

    benchmark = T_TEST_BENCHMARK

    def initial_state(self) -> TTestState:
        return TTestState()

    def step(self, state: TTestState, pose: NamedPose, ctx: FrameContext) -> StepResult:
        hip_x = pose.hip_mid_x
        started_at = state.started_at if state.started_at is not None else ctx.timestamp

        event = None
        direction = state.direction
        changes = state.direction_changes
        if state.prev_hip_x is not None:
            dx = hip_x - state.prev_hip_x
            if abs(dx) > DEAD_ZONE:
                new_direction = "right" if dx > 0 else "left"
                if direction is not None and new_direction != direction:
                    changes += 1
                    event = ActivityEvent(activity=self.kind, timestamp=ctx.timestamp, label=new_direction)
                direction = new_direction

        state = self.advance(
            state, state.phase,
            started_at=started_at,
            last_timestamp=ctx.timestamp,
            prev_hip_x=hip_x,
            direction=direction,
            direction_changes=changes,
        )
        metrics = {
            "phase": state.phase,
            "elapsed_seconds": round(_elapsed(started_at, ctx.timestamp), 1),
            "direction_changes": changes,
        }
        return StepResult(state=state, event=event, display_metrics=metrics)

    def summarize(self, state: TTestState, ctx: FrameContext) -> Dict[str, Any]:
        end = state.last_timestamp if state.last_timestamp is not None else ctx.timestamp
        total_time = round(_elapsed(state.started_at, end), 1)
        return {
            "duration_seconds": total_time,
            "direction_changes": state.direction_changes,
            "rating": self.benchmark.rating(total_time),
            "score": self.benchmark.score(total_time),
        }
