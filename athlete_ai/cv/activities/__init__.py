"""Per-activity state machines."""

from athlete_ai.cv.activities.base import (
    ACTIVITIES,
    ActivityConfig,
    ActivityEvent,
    ActivityKind,
    ActivitySession,
    ActivityStateMachine,
    ActivityType,
    FrameContext,
    PhaseTransitionError,
    StepResult,
)
from athlete_ai.cv.activities.broad_jump import BroadJumpStateMachine
from athlete_ai.cv.activities.combat import KickStateMachine, PunchStateMachine, ReactionStateMachine
from athlete_ai.cv.activities.pushups import PushUpStateMachine
from athlete_ai.cv.activities.situps import SitUpStateMachine
from athlete_ai.cv.activities.sprint import SprintStateMachine, TTestStateMachine
from athlete_ai.cv.activities.squats import SquatStateMachine
from athlete_ai.cv.activities.vertical_jump import VerticalJumpStateMachine
from athlete_ai.cv.activities.wall_sit import WallSitStateMachine
from athlete_ai.cv.activities.registry import STATE_MACHINES, create_state_machine

__all__ = [
    "ACTIVITIES",
    "ActivityConfig",
    "ActivityEvent",
    "ActivityKind",
    "ActivitySession",
    "ActivityStateMachine",
    "ActivityType",
    "FrameContext",
    "PhaseTransitionError",
    "StepResult",
    "BroadJumpStateMachine",
    "KickStateMachine",
    "PunchStateMachine",
    "ReactionStateMachine",
    "PushUpStateMachine",
    "SitUpStateMachine",
    "SprintStateMachine",
    "TTestStateMachine",
    "SquatStateMachine",
    "VerticalJumpStateMachine",
    "WallSitStateMachine",
    "STATE_MACHINES",
    "create_state_machine",
]
