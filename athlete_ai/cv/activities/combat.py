"""
Combat drills: punch speed, kick height and the reaction challenge.

Punch and kick are start/end hysteresis detectors on a per-frame signal
(wrist speed, ankle lift) with a duration ceiling; an effort that stays
above the end threshold past the ceiling is dropped without an event.
The reaction challenge shows a randomly delayed prompt and times the
first movement after it, resolving to a 3000 ms timeout exactly once.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
import logging
import random

from athlete_ai.config import Settings, get_settings
from athlete_ai.cv.activities.base import (
    ActivityEvent, ActivityKind, ActivityStateMachine, FrameContext, StepResult
)
from athlete_ai.cv.geometry import Vec2, distance, midpoint
from athlete_ai.cv.landmarks import NamedPose
from athlete_ai.numeric import round_half_up
from athlete_ai.scoring.calculators import kick_rating, reaction_rating

logger = logging.getLogger(__name__)


# =============================================================================
# Punch
# =============================================================================

@dataclass(frozen=True)
class PunchState:
    phase: str = "idle"
    prev_left_wrist: Optional[Vec2] = None
    prev_right_wrist: Optional[Vec2] = None
    started_at: Optional[float] = None
    peak_speed: float = 0.0
    hand: str = ""
    speeds: Tuple[float, ...] = ()


class PunchStateMachine(ActivityStateMachine):
    """Wrist speed above 2.0 m/s starts a punch, below 0.8 m/s ends it."""

    kind = ActivityKind.PUNCH
    TRANSITIONS = {
        "idle": frozenset({"punching"}),
        "punching": frozenset({"idle"}),
    }

    METERS_PER_UNIT = 1.5  # camera field of view at arm's length
    MAX_FRAME_GAP = 0.2  # seconds; longer gaps give no velocity sample
    START_SPEED = 2.0
    END_SPEED = 0.8
    MIN_SPEED = 1.5
    MAX_DURATION = 1.0

    def initial_state(self) -> PunchState:
        return PunchState()

    def step(self, state: PunchState, pose: NamedPose, ctx: FrameContext) -> StepResult:
        left = Vec2(pose.left_wrist.x, pose.left_wrist.y)
        right = Vec2(pose.right_wrist.x, pose.right_wrist.y)
        event = None
        speed = 0.0

        dt = ctx.dt
        if state.prev_left_wrist is not None and 0 < dt < self.MAX_FRAME_GAP:
            left_speed = distance(left, state.prev_left_wrist) * self.METERS_PER_UNIT / dt
            right_speed = distance(right, state.prev_right_wrist) * self.METERS_PER_UNIT / dt
            speed = max(left_speed, right_speed)
            hand = "Left" if left_speed > right_speed else "Right"

            if state.phase == "idle" and speed > self.START_SPEED:
                state = self.advance(state, "punching", started_at=ctx.timestamp, peak_speed=speed, hand=hand)
            elif state.phase == "punching":
                state = self.advance(state, "punching", peak_speed=max(state.peak_speed, speed))
                duration = ctx.timestamp - state.started_at
                if speed < self.END_SPEED:
                    peak = round(state.peak_speed, 1)
                    if duration < self.MAX_DURATION and peak > self.MIN_SPEED:
                        event = ActivityEvent(
                            activity=self.kind,
                            timestamp=ctx.timestamp,
                            value=peak,
                            label=state.hand,
                            metrics={"duration_ms": round_half_up(duration * 1000), "hand": state.hand},
                        )
                        state = self.advance(state, "punching", speeds=state.speeds + (peak,))
                    state = self.advance(state, "idle", started_at=None, peak_speed=0.0, hand="")

        state = self._expire(state, ctx)
        state = self.advance(state, state.phase, prev_left_wrist=left, prev_right_wrist=right)
        metrics = {"phase": state.phase, "punch_speed": round(speed, 1)}
        return StepResult(state=state, event=event, display_metrics=metrics)

    def _expire(self, state: PunchState, ctx: FrameContext) -> PunchState:
        if state.phase == "punching" and ctx.timestamp - state.started_at > self.MAX_DURATION:
            logger.debug(f"punch: effort exceeded {self.MAX_DURATION}s, discarded")
            return self.advance(state, "idle", started_at=None, peak_speed=0.0, hand="")
        return state

    def on_missing_pose(self, state: PunchState, ctx: FrameContext) -> StepResult:
        # No velocity sample across a gap in the pose stream
        state = self._expire(state, ctx)
        return StepResult(state=self.advance(state, state.phase, prev_left_wrist=None, prev_right_wrist=None))

    def summarize(self, state: PunchState, ctx: FrameContext) -> Dict[str, Any]:
        speeds = state.speeds
        return {
            "punches": len(speeds),
            "average_speed": round(sum(speeds) / len(speeds), 1) if speeds else 0.0,
            "best_speed": max(speeds) if speeds else 0.0,
        }


# =============================================================================
# Kick
# =============================================================================

@dataclass(frozen=True)
class KickBaseline:
    body_height: float
    left_ankle_y: float
    right_ankle_y: float


@dataclass(frozen=True)
class KickState:
    phase: str = "calibrating"
    first_seen_at: Optional[float] = None
    baseline: Optional[KickBaseline] = None
    started_at: Optional[float] = None
    peak_lift: float = 0.0
    leg: str = ""
    heights: Tuple[int, ...] = ()


class KickStateMachine(ActivityStateMachine):
    """
    Ankle lift relative to a standing baseline, as a percentage of
    shoulder-to-ankle body height: above 15 % starts a kick, below 8 % ends it.
    """

    kind = ActivityKind.KICK
    INITIAL_PHASE = "calibrating"
    TRANSITIONS = {
        "calibrating": frozenset({"idle"}),
        "idle": frozenset({"kicking"}),
        "kicking": frozenset({"idle"}),
    }

    CALIBRATION_SECONDS = 2.0
    START_LIFT = 15.0
    END_LIFT = 8.0
    MIN_HEIGHT = 10
    MAX_DURATION = 2.0

    def initial_state(self) -> KickState:
        return KickState()

    def step(self, state: KickState, pose: NamedPose, ctx: FrameContext) -> StepResult:
        shoulder = midpoint(pose.left_shoulder, pose.right_shoulder)
        ankle = midpoint(pose.left_ankle, pose.right_ankle)
        body_height = abs(shoulder.y - ankle.y)

        if state.phase == "calibrating":
            first_seen = state.first_seen_at if state.first_seen_at is not None else ctx.timestamp
            if ctx.timestamp - first_seen >= self.CALIBRATION_SECONDS and body_height > 0:
                baseline = KickBaseline(body_height, pose.left_ankle.y, pose.right_ankle.y)
                state = self.advance(state, "idle", first_seen_at=first_seen, baseline=baseline)
            else:
                state = self.advance(state, "calibrating", first_seen_at=first_seen)
            return StepResult(state=state, display_metrics={"phase": state.phase, "kick_height": 0})

        baseline = state.baseline
        left_lift = (baseline.left_ankle_y - pose.left_ankle.y) / baseline.body_height * 100
        right_lift = (baseline.right_ankle_y - pose.right_ankle.y) / baseline.body_height * 100
        lift = max(left_lift, right_lift)
        leg = "Left" if left_lift > right_lift else "Right"

        event = None
        if state.phase == "idle" and lift > self.START_LIFT:
            state = self.advance(state, "kicking", started_at=ctx.timestamp, peak_lift=lift, leg=leg)
        elif state.phase == "kicking":
            state = self.advance(state, "kicking", peak_lift=max(state.peak_lift, lift))
            if lift < self.END_LIFT:
                height = round_half_up(state.peak_lift)
                duration = ctx.timestamp - state.started_at
                if height > self.MIN_HEIGHT and duration < self.MAX_DURATION:
                    rating = kick_rating(height)
                    event = ActivityEvent(
                        activity=self.kind,
                        timestamp=ctx.timestamp,
                        value=float(height),
                        label=f"{state.leg} {rating}",
                        metrics={"duration_ms": round_half_up(duration * 1000), "leg": state.leg, "rating": rating},
                    )
                    state = self.advance(state, "kicking", heights=state.heights + (height,))
                state = self.advance(state, "idle", started_at=None, peak_lift=0.0, leg="")

        state = self._expire(state, ctx)
        metrics = {"phase": state.phase, "kick_height": round_half_up(max(0.0, lift))}
        return StepResult(state=state, event=event, display_metrics=metrics)

    def _expire(self, state: KickState, ctx: FrameContext) -> KickState:
        if state.phase == "kicking" and ctx.timestamp - state.started_at > self.MAX_DURATION:
            logger.debug(f"kick: effort exceeded {self.MAX_DURATION}s, discarded")
            return self.advance(state, "idle", started_at=None, peak_lift=0.0, leg="")
        return state

    def on_missing_pose(self, state: KickState, ctx: FrameContext) -> StepResult:
        return StepResult(state=self._expire(state, ctx))

    def summarize(self, state: KickState, ctx: FrameContext) -> Dict[str, Any]:
        heights = state.heights
        return {
            "kicks": len(heights),
            "average_height": round_half_up(sum(heights) / len(heights)) if heights else 0,
            "best_height": max(heights) if heights else 0,
        }


# =============================================================================
# Reaction challenge
# =============================================================================

@dataclass(frozen=True)
class CombatPrompt:
    text: str
    side: str  # left, right or any


PROMPTS: Tuple[CombatPrompt, ...] = (
    CombatPrompt("LEFT JAB", "left"),
    CombatPrompt("RIGHT HOOK", "right"),
    CombatPrompt("LEFT UPPERCUT", "left"),
    CombatPrompt("RIGHT CROSS", "right"),
    CombatPrompt("BLOCK!", "any"),
    CombatPrompt("LEFT KICK", "left"),
    CombatPrompt("RIGHT KICK", "right"),
)


@dataclass(frozen=True)
class ReactionState:
    phase: str = "idle"
    prompt_due_at: Optional[float] = None
    prompt: Optional[CombatPrompt] = None
    prompt_at: Optional[float] = None
    prev_points: Optional[Tuple[Vec2, ...]] = None  # wrists and ankles, previous frame
    rounds: int = 0
    last_reaction_ms: Optional[int] = None
    reaction_times: Tuple[int, ...] = ()


class ReactionStateMachine(ActivityStateMachine):
    """
    Reaction challenge: waiting → prompt → result.

    "start" (or "next_round") schedules the next prompt after a random
    delay. While the prompt is shown, any wrist or ankle moving more than
    0.04 units in one frame is the response.
    """

    kind = ActivityKind.REACTION
    TRANSITIONS = {
        "idle": frozenset({"waiting"}),
        "waiting": frozenset({"prompt"}),
        "prompt": frozenset({"result"}),
        "result": frozenset({"waiting"}),
    }

    MOVEMENT_THRESHOLD = 0.04  # normalized units per frame
    TIMEOUT_MS = 3000

    def __init__(self, settings: Optional[Settings] = None, rng: Optional[random.Random] = None):
        self.settings = settings or get_settings()
        self.rng = rng or random.Random()

    def initial_state(self) -> ReactionState:
        return ReactionState()

    def handle_command(self, state: ReactionState, command: str, ctx: FrameContext) -> ReactionState:
        if command in ("start", "next_round") and state.phase in ("idle", "result"):
            delay_ms = self.settings.reaction_min_delay_ms + self.rng.random() * self.settings.reaction_max_extra_delay_ms
            return self.advance(
                state, "waiting",
                prompt_due_at=ctx.timestamp + delay_ms / 1000,
                prompt=None,
                prompt_at=None,
                prev_points=None,
            )
        logger.warning(f"reaction: command {command!r} ignored in phase {state.phase}")
        return state

    def _tick(self, state: ReactionState, ctx: FrameContext) -> Tuple[ReactionState, Optional[ActivityEvent]]:
        """Clock-driven transitions: show a due prompt, expire an unanswered one."""
        if state.phase == "waiting" and ctx.timestamp >= state.prompt_due_at:
            prompt = self.rng.choice(PROMPTS)
            state = self.advance(
                state, "prompt",
                prompt=prompt, prompt_at=ctx.timestamp, prev_points=None, rounds=state.rounds + 1,
            )
            logger.debug(f"reaction: round {state.rounds} prompt {prompt.text}")
        elif state.phase == "prompt" and (ctx.timestamp - state.prompt_at) * 1000 >= self.TIMEOUT_MS:
            event = ActivityEvent(
                activity=self.kind,
                timestamp=ctx.timestamp,
                value=float(self.TIMEOUT_MS),
                label="Timeout",
                metrics={"prompt": state.prompt.text, "timed_out": True},
            )
            return self.advance(
                state, "result",
                last_reaction_ms=self.TIMEOUT_MS,
                reaction_times=state.reaction_times + (self.TIMEOUT_MS,),
            ), event
        return state, None

    def step(self, state: ReactionState, pose: NamedPose, ctx: FrameContext) -> StepResult:
        state, event = self._tick(state, ctx)
        points = (
            Vec2(pose.left_wrist.x, pose.left_wrist.y),
            Vec2(pose.right_wrist.x, pose.right_wrist.y),
            Vec2(pose.left_ankle.x, pose.left_ankle.y),
            Vec2(pose.right_ankle.x, pose.right_ankle.y),
        )

        if event is None and state.phase == "prompt":
            if state.prev_points is not None:
                movement = max(distance(a, b) for a, b in zip(points, state.prev_points))
                if movement > self.MOVEMENT_THRESHOLD:
                    elapsed_ms = round_half_up((ctx.timestamp - state.prompt_at) * 1000)
                    event = ActivityEvent(
                        activity=self.kind,
                        timestamp=ctx.timestamp,
                        value=float(elapsed_ms),
                        label=f"{state.prompt.text} {elapsed_ms}ms",
                        metrics={"prompt": state.prompt.text, "timed_out": False},
                    )
                    state = self.advance(
                        state, "result",
                        last_reaction_ms=elapsed_ms,
                        reaction_times=state.reaction_times + (elapsed_ms,),
                    )
            if state.phase == "prompt":
                state = self.advance(state, "prompt", prev_points=points)

        return StepResult(state=state, event=event, display_metrics=self._display(state))

    def on_missing_pose(self, state: ReactionState, ctx: FrameContext) -> StepResult:
        state, event = self._tick(state, ctx)
        return StepResult(state=state, event=event, display_metrics=self._display(state))

    @staticmethod
    def _display(state: ReactionState) -> Dict[str, Any]:
        return {
            "phase": state.phase,
            "prompt": state.prompt.text if state.prompt and state.phase == "prompt" else None,
            "reaction_ms": state.last_reaction_ms,
            "rounds": state.rounds,
        }

    def summarize(self, state: ReactionState, ctx: FrameContext) -> Dict[str, Any]:
        times = state.reaction_times
        average = round_half_up(sum(times) / len(times)) if times else 0
        return {
            "rounds": len(times),
            "average_ms": average,
            "best_ms": min(times) if times else 0,
            "rating": reaction_rating(average) if times else None,
        }
