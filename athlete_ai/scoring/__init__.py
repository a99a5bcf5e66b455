"""Scoring engine: per-test scores, composite score, ranking, XP and badges."""

from athlete_ai.scoring.benchmarks import SPRINT_BENCHMARKS, T_TEST_BENCHMARK, TimeBenchmark
from athlete_ai.scoring.calculators import (
    MODULE_WEIGHTS,
    calculate_accuracy_score,
    calculate_agility_score,
    calculate_beep_score,
    calculate_combat_score,
    calculate_consistency,
    calculate_form_score,
    calculate_jump_score,
    calculate_national_rank,
    calculate_overall_score,
    calculate_percentile,
    calculate_push_up_score,
    calculate_reaction_score,
    calculate_speed_module,
    calculate_sprint_score,
    calculate_strength_module,
    calculate_xp,
    get_level,
    get_level_progress,
    get_level_progress_fraction,
)
from athlete_ai.scoring.badges import BADGES, Badge, check_badges
from athlete_ai.scoring.composite import CompositeScore

__all__ = [
    "SPRINT_BENCHMARKS",
    "T_TEST_BENCHMARK",
    "TimeBenchmark",
    "MODULE_WEIGHTS",
    "calculate_accuracy_score",
    "calculate_agility_score",
    "calculate_beep_score",
    "calculate_combat_score",
    "calculate_consistency",
    "calculate_form_score",
    "calculate_jump_score",
    "calculate_national_rank",
    "calculate_overall_score",
    "calculate_percentile",
    "calculate_push_up_score",
    "calculate_reaction_score",
    "calculate_speed_module",
    "calculate_sprint_score",
    "calculate_strength_module",
    "calculate_xp",
    "get_level",
    "get_level_progress",
    "get_level_progress_fraction",
    "BADGES",
    "Badge",
    "check_badges",
    "CompositeScore",
]
