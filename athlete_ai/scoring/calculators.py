"""
Score calculators.

Each test's raw measurement is mapped onto 0-100, the module sub-scores
are blended into one overall score, and the overall score is banded into
a percentile and national rank. XP and level are derived from reps.

Every returned score is clamped to [0, 100] and rounded half-up.
"""

from typing import Dict, Mapping, Optional, Sequence

import numpy as np

from athlete_ai.config import Settings, get_settings
from athlete_ai.numeric import clamp, round_half_up
from athlete_ai.scoring.benchmarks import T_TEST_BENCHMARK, sprint_benchmark


MODULE_WEIGHTS: Dict[str, float] = {
    "speed": 0.25,
    "strength": 0.25,
    "endurance": 0.20,
    "skill": 0.15,
    "reaction": 0.15,
}

XP_PER_LEVEL = 200


# =============================================================================
# Per-test scores
# =============================================================================

def calculate_form_score(
    form_accuracy: float,
    endurance: float,
    consistency: float,
    ai_confidence: float,
) -> int:
    """Generic score for a form-based test."""
    score = form_accuracy * 0.4 + endurance * 0.3 + consistency * 0.2 + ai_confidence * 0.1
    return round_half_up(clamp(score))


def calculate_sprint_score(time_seconds: float, distance: int = 20) -> int:
    return sprint_benchmark(distance).score(time_seconds)


def calculate_agility_score(time_seconds: float) -> int:
    return T_TEST_BENCHMARK.score(time_seconds)


def calculate_push_up_score(reps: int, form_accuracy: float, fatigue_rate: float) -> int:
    """
    Push-up composite: 50 reps in the minute scores full marks on the rep
    component; a lower fatigue rate earns a larger bonus.
    """
    rep_score = min(100.0, reps / 50 * 100)
    fatigue_bonus = max(0.0, 100 - fatigue_rate)
    return round_half_up(clamp(rep_score * 0.4 + form_accuracy * 0.4 + fatigue_bonus * 0.2))


def calculate_jump_score(height_cm: float) -> int:
    # 70 cm = elite
    return round_half_up(clamp(height_cm / 70 * 100))


def calculate_consistency(form_scores: Sequence[float]) -> int:
    """100 minus the mean absolute deviation of the per-rep form scores."""
    if len(form_scores) < 2:
        return 100
    mean = float(np.mean(form_scores))
    deviation = float(np.mean(np.abs(np.asarray(form_scores, dtype=float) - mean)))
    return round_half_up(clamp(100 - deviation))


def calculate_beep_score(level: float) -> int:
    return round_half_up(clamp(level / 15 * 100))


def calculate_accuracy_score(accuracy: float, consistency: float) -> int:
    return round_half_up(clamp(accuracy * 0.7 + consistency * 0.3))


def calculate_reaction_score(avg_ms: float) -> int:
    """150 ms scores 100, 500 ms scores 0; no measurement scores 0."""
    if avg_ms <= 0:
        return 0
    return round_half_up(clamp((500 - avg_ms) / 350 * 100))


def calculate_punch_score(speed_ms: float) -> int:
    # 2 m/s = 0, 8 m/s = 100
    return round_half_up(clamp((speed_ms - 2) / 6 * 100))


def calculate_kick_score(height_percent: float) -> int:
    # 15 % of body height = 0, 80 % = 100
    return round_half_up(clamp((height_percent - 15) / 65 * 100))


def calculate_combat_score(avg_reaction_ms: float, punch_speed: float = 0.0, kick_height_percent: float = 0.0) -> int:
    reaction = calculate_reaction_score(avg_reaction_ms)
    punch = calculate_punch_score(punch_speed)
    kick = calculate_kick_score(kick_height_percent)
    return round_half_up(clamp(reaction * 0.4 + punch * 0.3 + kick * 0.3))


def reaction_rating(reaction_ms: float) -> str:
    if reaction_ms < 200:
        return "Elite"
    if reaction_ms < 280:
        return "Fast"
    if reaction_ms < 350:
        return "Average"
    return "Slow"


def kick_rating(height_percent: float) -> str:
    if height_percent > 80:
        return "Head Height"
    if height_percent > 50:
        return "Torso Height"
    if height_percent > 30:
        return "Waist Height"
    return "Low Kick"


# =============================================================================
# Composite
# =============================================================================

def calculate_speed_module(sprint_score: float, agility_score: float) -> int:
    return round_half_up(clamp((sprint_score + agility_score) / 2))


def calculate_strength_module(push_up_score: float, jump_score: float) -> int:
    return round_half_up(clamp((push_up_score + jump_score) / 2))


def calculate_overall_score(module_scores: Mapping[str, Optional[float]]) -> int:
    """Weighted sum of the five module scores; missing modules count as 0."""
    overall = sum(
        (module_scores.get(module) or 0) * weight
        for module, weight in MODULE_WEIGHTS.items()
    )
    return round_half_up(clamp(overall))


def calculate_percentile(score: float) -> int:
    if score >= 95:
        return 99
    if score >= 90:
        return 95
    if score >= 80:
        return 85
    if score >= 70:
        return 72
    if score >= 60:
        return 55
    if score >= 50:
        return 40
    if score >= 40:
        return 25
    return 10


def calculate_national_rank(
    percentile: float,
    total_athletes: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> int:
    if total_athletes is None:
        total_athletes = (settings or get_settings()).total_athletes
    return round_half_up(total_athletes * (1 - percentile / 100))


# =============================================================================
# XP & leveling
# =============================================================================

def calculate_xp(reps: int, form_accuracy: float) -> int:
    base_xp = reps * 10
    form_bonus = reps * 5 if form_accuracy >= 90 else 0
    return base_xp + form_bonus


def get_level(total_xp: int) -> int:
    return total_xp // XP_PER_LEVEL + 1


def get_level_progress_fraction(total_xp: int) -> float:
    return (total_xp % XP_PER_LEVEL) / XP_PER_LEVEL


def get_level_progress(total_xp: int) -> Dict[str, int]:
    xp_in_level = total_xp % XP_PER_LEVEL
    return {
        "current": xp_in_level,
        "needed": XP_PER_LEVEL,
        "percent": round_half_up(xp_in_level / XP_PER_LEVEL * 100),
    }
