"""Composite athlete score across the five modules."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from athlete_ai.config import Settings
from athlete_ai.scoring.badges import Badge, check_badges
from athlete_ai.scoring.calculators import (
    MODULE_WEIGHTS,
    calculate_national_rank,
    calculate_overall_score,
    calculate_percentile,
    calculate_speed_module,
    calculate_strength_module,
    get_level,
    get_level_progress,
    get_level_progress_fraction,
)
from athlete_ai.numeric import clamp, round_half_up


@dataclass
class CompositeScore:
    """
    Five module sub-scores plus everything derived from them.

    Only the module scores and XP are inputs; overall, percentile, rank,
    level and badges are recomputed on demand and never stored.
    """
    speed: int = 0
    strength: int = 0
    endurance: int = 0
    skill: int = 0
    reaction: int = 0
    xp: int = 0
    total_athletes: Optional[int] = None
    stats: Dict[str, Any] = field(default_factory=dict)
    settings: Optional[Settings] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        for module in MODULE_WEIGHTS:
            setattr(self, module, round_half_up(clamp(getattr(self, module) or 0)))

    @classmethod
    def from_tests(
        cls,
        sprint: float = 0,
        agility: float = 0,
        push_up: float = 0,
        jump: float = 0,
        endurance: float = 0,
        skill: float = 0,
        reaction: float = 0,
        xp: int = 0,
        **kwargs: Any,
    ) -> "CompositeScore":
        """Build module scores from per-test scores (speed and strength are averages)."""
        return cls(
            speed=calculate_speed_module(sprint, agility),
            strength=calculate_strength_module(push_up, jump),
            endurance=endurance,
            skill=skill,
            reaction=reaction,
            xp=xp,
            **kwargs,
        )

    @property
    def module_scores(self) -> Dict[str, int]:
        return {module: getattr(self, module) for module in MODULE_WEIGHTS}

    @property
    def overall(self) -> int:
        return calculate_overall_score(self.module_scores)

    @property
    def percentile(self) -> int:
        return calculate_percentile(self.overall)

    @property
    def national_rank(self) -> int:
        return calculate_national_rank(self.percentile, self.total_athletes, settings=self.settings)

    @property
    def level(self) -> int:
        return get_level(self.xp)

    @property
    def level_progress(self) -> Dict[str, int]:
        return get_level_progress(self.xp)

    @property
    def level_progress_fraction(self) -> float:
        return get_level_progress_fraction(self.xp)

    def badges(self, stats: Optional[Mapping[str, Any]] = None) -> List[Badge]:
        snapshot = dict(self.stats)
        if stats:
            snapshot.update(stats)
        snapshot.setdefault("module_scores", self.module_scores)
        return check_badges(snapshot)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module_scores": self.module_scores,
            "overall": self.overall,
            "percentile": self.percentile,
            "national_rank": self.national_rank,
            "xp": self.xp,
            "level": self.level,
            "level_progress": self.level_progress,
            "badges": [badge.id for badge in self.badges()],
        }
