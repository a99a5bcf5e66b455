import pytest

from athlete_ai.config import Settings
from athlete_ai.scoring import (
    SPRINT_BENCHMARKS,
    T_TEST_BENCHMARK,
    CompositeScore,
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
    calculate_sprint_score,
    calculate_xp,
    check_badges,
    get_level,
    get_level_progress,
)
from athlete_ai.scoring.calculators import kick_rating, reaction_rating

MODULES = {"speed": 80, "strength": 70, "endurance": 60, "skill": 90, "reaction": 50}


class TestComposite:
    def test_overall_and_percentile(self):
        # 20 + 17.5 + 12 + 13.5 + 7.5 = 70.5
        assert calculate_overall_score(MODULES) == 71
        assert calculate_percentile(71) == 72

    def test_missing_modules_count_as_zero(self):
        assert calculate_overall_score({"speed": 100}) == 25
        assert calculate_overall_score({}) == 0

    def test_national_rank(self):
        assert calculate_national_rank(72, total_athletes=150000) == 42000
        assert calculate_national_rank(99, total_athletes=150000) == 1500

    def test_national_rank_uses_given_settings(self):
        settings = Settings(_env_file=None, total_athletes=10000)
        assert calculate_national_rank(72, settings=settings) == 2800
        assert CompositeScore(**MODULES, settings=settings).national_rank == 2800

    def test_composite_score_derives_everything(self):
        composite = CompositeScore(**MODULES, xp=450, total_athletes=150000)

        assert composite.overall == 71
        assert composite.percentile == 72
        assert composite.national_rank == 42000
        assert composite.level == 3
        assert composite.level_progress == {"current": 50, "needed": 200, "percent": 25}
        assert composite.to_dict()["module_scores"] == MODULES

    def test_module_scores_are_clamped(self):
        composite = CompositeScore(speed=130, strength=-4, endurance=55.5)
        assert composite.module_scores["speed"] == 100
        assert composite.module_scores["strength"] == 0
        assert composite.module_scores["endurance"] == 56

    def test_from_tests_averages_speed_and_strength(self):
        composite = CompositeScore.from_tests(sprint=90, agility=70, push_up=60, jump=81)
        assert composite.speed == 80
        assert composite.strength == 71


@pytest.mark.parametrize("score, percentile", [
    (97, 99), (90, 95), (85, 85), (70, 72), (65, 55), (50, 40), (45, 25), (10, 10),
])
def test_percentile_bands(score, percentile):
    assert calculate_percentile(score) == percentile


class TestTests:
    def test_benchmarks(self):
        assert SPRINT_BENCHMARKS[20].rating(2.8) == "Elite"
        assert SPRINT_BENCHMARKS[40].rating(6.0) == "Average"
        assert T_TEST_BENCHMARK.rating(14.0) == "Poor"
        assert calculate_sprint_score(2.5) == 100
        assert calculate_sprint_score(7.5, distance=40) == 0
        assert calculate_agility_score(11.25) == 50

    def test_form_score(self):
        assert calculate_form_score(90, 50, 100, 80) == 79

    def test_push_up_score(self):
        assert calculate_push_up_score(50, 95, 0) == 98
        assert calculate_push_up_score(25, 80, 50) == 62

    def test_consistency(self):
        assert calculate_consistency([90]) == 100
        assert calculate_consistency([80, 100]) == 90

    def test_jump_and_beep(self):
        assert calculate_jump_score(35) == 50
        assert calculate_jump_score(90) == 100
        assert calculate_beep_score(7.5) == 50

    def test_reaction_score(self):
        assert calculate_reaction_score(150) == 100
        assert calculate_reaction_score(500) == 0
        assert calculate_reaction_score(0) == 0
        assert reaction_rating(190) == "Elite"
        assert reaction_rating(300) == "Average"

    def test_combat_score(self):
        assert calculate_combat_score(150, punch_speed=8, kick_height_percent=80) == 100
        assert kick_rating(85) == "Head Height"
        assert kick_rating(20) == "Low Kick"


class TestXp:
    def test_xp_bonus_for_good_form(self):
        assert calculate_xp(10, 95) == 150
        assert calculate_xp(10, 89) == 100

    def test_levels(self):
        assert get_level(0) == 1
        assert get_level(199) == 1
        assert get_level(200) == 2
        assert get_level_progress(250) == {"current": 50, "needed": 200, "percent": 25}


class TestBadges:
    def test_earned_badges(self):
        stats = {
            "sprint_score": 92,
            "push_up_reps": 12,
            "reaction_avg": 180,
            "module_scores": {"speed": 75, "strength": 72, "endurance": 70, "skill": 90, "reaction": 71},
        }
        ids = {badge.id for badge in check_badges(stats)}
        assert ids == {"sprint-demon", "lightning-reflexes", "all-rounder"}

    def test_malformed_stats_never_raise(self):
        stats = {"module_scores": {"speed": 90}, "jump_height": "high", "beep_level": None}
        assert check_badges(stats) == []

    def test_composite_badges_use_module_scores(self):
        composite = CompositeScore(speed=70, strength=70, endurance=70, skill=70, reaction=70)
        assert "all-rounder" in {badge.id for badge in composite.badges()}
