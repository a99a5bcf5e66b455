"""
Achievement badges.

Each badge is a named predicate over a stats snapshot. Badges are derived,
never stored: evaluate all of them against the latest stats and collect the
matches. A predicate that fails (missing or malformed data) does not match.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Mapping
import logging

logger = logging.getLogger(__name__)

Stats = Mapping[str, Any]


@dataclass(frozen=True)
class Badge:
    id: str
    name: str
    description: str
    condition: Callable[[Stats], bool]

    def matches(self, stats: Stats) -> bool:
        try:
            return bool(self.condition(stats))
        except Exception as e:
            logger.debug(f"Badge {self.id} not awarded: {e}")
            return False


def _all_modules_at_least(stats: Stats, threshold: float) -> bool:
    modules = stats.get("module_scores") or {}
    return all(
        modules[name] >= threshold
        for name in ("speed", "strength", "endurance", "skill", "reaction")
    )


BADGES: List[Badge] = [
    Badge("sprint-demon", "Sprint Demon", "Score 90+ on sprint test",
          lambda s: (s.get("sprint_score") or 0) >= 90),
    Badge("iron-arms", "Iron Arms", "40+ push-ups in 1 minute",
          lambda s: (s.get("push_up_reps") or 0) >= 40),
    Badge("sky-high", "Sky High", "Jump 50cm+ vertical",
          lambda s: (s.get("jump_height") or 0) >= 50),
    Badge("endurance-king", "Endurance King", "Reach Level 10 on Beep Test",
          lambda s: (s.get("beep_level") or 0) >= 10),
    Badge("sharpshooter", "Sharpshooter", "80%+ target accuracy",
          lambda s: (s.get("target_accuracy") or 0) >= 80),
    Badge("lightning-reflexes", "Lightning Reflexes", "Sub-200ms reaction time",
          lambda s: (s.get("reaction_avg") or 999) < 200),
    Badge("all-rounder", "All Rounder", "70+ in all 5 modules",
          lambda s: _all_modules_at_least(s, 70)),
    Badge("agility-master", "Agility Master", "Score 85+ on T-Test",
          lambda s: (s.get("agility_score") or 0) >= 85),
    Badge("combat-elite", "Combat Elite", "Sub-250ms combat reaction time",
          lambda s: (s.get("combat_reaction_avg") or 999) < 250),
]


def check_badges(stats: Stats) -> List[Badge]:
    """Return every badge whose predicate holds for the stats snapshot."""
    return [badge for badge in BADGES if badge.matches(stats)]
