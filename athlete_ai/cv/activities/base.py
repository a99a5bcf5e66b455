"""
Shared contract for the per-activity state machines.

Every detector is a pure reducer:

    step(state, pose, ctx) -> StepResult(state', event?, display_metrics)

States are frozen dataclasses, so a machine instance holds configuration
only and can be shared; the mutable bookkeeping lives in ActivitySession,
which is owned by exactly one assessment session.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple
import logging

from athlete_ai.cv.landmarks import NamedPose
from athlete_ai.numeric import round_half_up

logger = logging.getLogger(__name__)


# =============================================================================
# Activity selection
# =============================================================================

class ActivityKind(str, Enum):
    """Supported assessment activities."""
    SQUATS = "squats"
    SIT_UPS = "sit-ups"
    WALL_SIT = "wall-sit"
    BROAD_JUMP = "broad-jump"
    PUSH_UPS = "push-ups"
    SPRINT = "sprint"
    T_TEST = "t-test"
    VERTICAL_JUMP = "vertical-jump"
    PUNCH = "punch"
    KICK = "kick"
    REACTION = "reaction"

    @classmethod
    def parse(
        cls, value: Any, default: Optional["ActivityKind"] = None, settings: Any = None
    ) -> "ActivityKind":
        """
        Resolve a selector to an ActivityKind.

        Unknown selectors fall back to `default`, else to the configured
        default activity, instead of failing.
        """
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower().replace("_", "-").replace(" ", "-")
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            fallback = default or _default_activity(settings)
            logger.warning(f"Unknown activity selector {value!r}, falling back to {fallback.value}")
            return fallback


_ALIASES = {
    "pushups": "push-ups",
    "pushup": "push-ups",
    "push-up": "push-ups",
    "situps": "sit-ups",
    "situp": "sit-ups",
    "sit-up": "sit-ups",
    "squat": "squats",
    "wallsit": "wall-sit",
    "ttest": "t-test",
    "t-test-drill": "t-test",
    "agility": "t-test",
    "combat-reaction": "reaction",
}


def _default_activity(settings: Any = None) -> ActivityKind:
    from athlete_ai.config import get_settings

    settings = settings or get_settings()
    try:
        return ActivityKind(_ALIASES.get(settings.default_activity, settings.default_activity))
    except ValueError:
        return ActivityKind.SQUATS


class ActivityType:
    """How an activity's result is measured."""
    REPS = "reps"
    TIMED = "timed"
    DISTANCE = "distance"
    TIMING = "timing"
    COMBAT = "combat"


@dataclass(frozen=True)
class ActivityConfig:
    """Display configuration for an activity."""
    name: str
    type: str
    metrics: Tuple[str, ...]


ACTIVITIES: Dict[ActivityKind, ActivityConfig] = {
    ActivityKind.WALL_SIT: ActivityConfig("Wall Sit", ActivityType.TIMED,
                                          ("hold_duration", "stability_score", "posture_accuracy")),
    ActivityKind.SIT_UPS: ActivityConfig("Sit Ups", ActivityType.REPS, ("rep_count", "form_score")),
    ActivityKind.SQUATS: ActivityConfig("Squats", ActivityType.REPS,
                                        ("rep_count", "depth_percent", "form_score")),
    ActivityKind.BROAD_JUMP: ActivityConfig("Standing Broad Jump", ActivityType.DISTANCE,
                                            ("jump_distance", "form_score")),
    ActivityKind.PUSH_UPS: ActivityConfig("Push Ups", ActivityType.REPS,
                                          ("rep_count", "incomplete_reps", "form_score")),
    ActivityKind.SPRINT: ActivityConfig("Sprint", ActivityType.TIMING, ("elapsed_seconds", "strides")),
    ActivityKind.T_TEST: ActivityConfig("T-Test Agility Drill", ActivityType.TIMING,
                                        ("elapsed_seconds", "direction_changes")),
    ActivityKind.VERTICAL_JUMP: ActivityConfig("Vertical Jump", ActivityType.DISTANCE,
                                               ("jump_height", "power_score", "landing_stability")),
    ActivityKind.PUNCH: ActivityConfig("Punch Speed", ActivityType.COMBAT, ("punch_speed",)),
    ActivityKind.KICK: ActivityConfig("Kick Height", ActivityType.COMBAT, ("kick_height",)),
    ActivityKind.REACTION: ActivityConfig("Reaction Challenge", ActivityType.COMBAT, ("reaction_ms",)),
}


# =============================================================================
# Reducer contract
# =============================================================================

@dataclass(frozen=True)
class FrameContext:
    """Timing for the frame being processed."""
    timestamp: float  # seconds, monotonic
    frame_number: int = 0
    dt: float = 0.0  # seconds since previous frame, 0 on the first


@dataclass(frozen=True)
class ActivityEvent:
    """One completed rep/event."""
    activity: ActivityKind
    timestamp: float
    form_score: Optional[int] = None
    value: Optional[float] = None
    label: str = ""
    counted: bool = True  # False for attempts that do not increment the rep count
    metrics: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StepResult:
    """Output of one reducer step."""
    state: Any
    event: Optional[ActivityEvent] = None
    display_metrics: Mapping[str, Any] = field(default_factory=dict)

    @property
    def event_completed(self) -> bool:
        return self.event is not None

    @property
    def event_form_score(self) -> Optional[int]:
        return self.event.form_score if self.event else None


class PhaseTransitionError(RuntimeError):
    """A detector attempted a transition its state graph does not declare."""


class ActivityStateMachine(ABC):
    """
    Base class for activity detectors.

    Subclasses declare their phase graph in TRANSITIONS and implement step().
    """

    kind: ActivityKind
    INITIAL_PHASE: str = "idle"
    TRANSITIONS: Dict[str, FrozenSet[str]] = {}

    @abstractmethod
    def initial_state(self) -> Any:
        """State at session start."""

    @abstractmethod
    def step(self, state: Any, pose: NamedPose, ctx: FrameContext) -> StepResult:
        """Advance the machine by one frame with a detected pose."""

    def on_missing_pose(self, state: Any, ctx: FrameContext) -> StepResult:
        """Frames without a pose leave the state untouched unless a detector has a deadline."""
        return StepResult(state=state)

    def handle_command(self, state: Any, command: str, ctx: FrameContext) -> Any:
        """Manual commands (start, ready, ...). Unknown commands are ignored."""
        logger.warning(f"{self.kind.value}: ignoring unsupported command {command!r}")
        return state

    def summarize(self, state: Any, ctx: FrameContext) -> Dict[str, Any]:
        """Final measurements for the session result record."""
        return {}

    def can_transition(self, source: str, target: str) -> bool:
        return source == target or target in self.TRANSITIONS.get(source, frozenset())

    def advance(self, state: Any, phase: str, **changes: Any) -> Any:
        """Return a copy of state in `phase`, enforcing the declared graph."""
        if not self.can_transition(state.phase, phase):
            raise PhaseTransitionError(
                f"{self.kind.value}: {state.phase} -> {phase} is not a declared transition"
            )
        if phase != state.phase:
            logger.info(f"{self.kind.value}: {state.phase} → {phase}")
        return replace(state, phase=phase, **changes)


# =============================================================================
# Session bookkeeping
# =============================================================================

class ActivitySession:
    """
    Mutable per-session record fed by one state machine.

    rep_count never decreases and form_score_history only grows,
    one entry per completed event that carries a form score.
    """

    def __init__(self, machine: ActivityStateMachine):
        self.machine = machine
        self.activity_kind = machine.kind
        self.state = machine.initial_state()
        self.rep_count = 0
        self.form_score_history: List[int] = []
        self.events: List[ActivityEvent] = []
        self.cumulative_metrics: Dict[str, Any] = {}

    @property
    def phase(self) -> str:
        return self.state.phase

    def apply(self, result: StepResult) -> None:
        """Fold one reducer output into the session."""
        self.state = result.state
        self.cumulative_metrics.update(result.display_metrics)
        event = result.event
        if event is None:
            return
        self.events.append(event)
        if event.counted:
            self.rep_count += 1
        if event.form_score is not None:
            self.form_score_history.append(event.form_score)
        logger.info(
            f"{self.activity_kind.value}: event #{len(self.events)} "
            f"(count={self.rep_count}, form={event.form_score}, value={event.value})"
        )

    @property
    def average_form_score(self) -> int:
        if not self.form_score_history:
            return 0
        return round_half_up(sum(self.form_score_history) / len(self.form_score_history))
