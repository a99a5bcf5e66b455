"""Activity kind → state machine dispatch."""

from typing import Any, Dict, Optional, Type
import random

from athlete_ai.config import Settings
from athlete_ai.cv.activities.base import ActivityKind, ActivityStateMachine
from athlete_ai.cv.activities.broad_jump import BroadJumpStateMachine
from athlete_ai.cv.activities.combat import KickStateMachine, PunchStateMachine, ReactionStateMachine
from athlete_ai.cv.activities.pushups import PushUpStateMachine
from athlete_ai.cv.activities.situps import SitUpStateMachine
from athlete_ai.cv.activities.sprint import SprintStateMachine, TTestStateMachine
from athlete_ai.cv.activities.squats import SquatStateMachine
from athlete_ai.cv.activities.vertical_jump import VerticalJumpStateMachine
from athlete_ai.cv.activities.wall_sit import WallSitStateMachine


STATE_MACHINES: Dict[ActivityKind, Type[ActivityStateMachine]] = {
    ActivityKind.SQUATS: SquatStateMachine,
    ActivityKind.SIT_UPS: SitUpStateMachine,
    ActivityKind.WALL_SIT: WallSitStateMachine,
    ActivityKind.BROAD_JUMP: BroadJumpStateMachine,
    ActivityKind.PUSH_UPS: PushUpStateMachine,
    ActivityKind.SPRINT: SprintStateMachine,
    ActivityKind.T_TEST: TTestStateMachine,
    ActivityKind.VERTICAL_JUMP: VerticalJumpStateMachine,
    ActivityKind.PUNCH: PunchStateMachine,
    ActivityKind.KICK: KickStateMachine,
    ActivityKind.REACTION: ReactionStateMachine,
}


def create_state_machine(
    activity: Any,
    settings: Optional[Settings] = None,
    rng: Optional[random.Random] = None,
    sprint_distance: int = 20,
) -> ActivityStateMachine:
    """
    Factory function to create the state machine for an activity.

    Args:
        activity: ActivityKind or selector string; unknown selectors fall
            back to the configured default activity
        settings: Settings for the reaction challenge delays
        rng: Random source for the reaction challenge
        sprint_distance: 20 or 40 (sprint only)

    Returns:
        ActivityStateMachine instance
    """
    kind = ActivityKind.parse(activity, settings=settings)
    if kind is ActivityKind.SPRINT:
        return SprintStateMachine(distance=sprint_distance)
    if kind is ActivityKind.REACTION:
        return ReactionStateMachine(settings=settings, rng=rng)
    return STATE_MACHINES[kind]()
