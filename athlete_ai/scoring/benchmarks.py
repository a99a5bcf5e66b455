"""Benchmark bands for timed tests (seconds, lower is better)."""

from dataclasses import dataclass
from typing import Dict

from athlete_ai.numeric import clamp, round_half_up


@dataclass(frozen=True)
class TimeBenchmark:
    elite: float
    good: float
    average: float
    poor: float

    def rating(self, time_seconds: float) -> str:
        if time_seconds <= self.elite:
            return "Elite"
        if time_seconds <= self.good:
            return "Good"
        if time_seconds <= self.average:
            return "Average"
        return "Poor"

    def score(self, time_seconds: float) -> int:
        """Linear between poor (0) and elite (100)."""
        return round_half_up(clamp((self.poor - time_seconds) / (self.poor - self.elite) * 100))


SPRINT_BENCHMARKS: Dict[int, TimeBenchmark] = {
    20: TimeBenchmark(elite=2.8, good=3.2, average=3.8, poor=4.5),
    40: TimeBenchmark(elite=4.8, good=5.4, average=6.2, poor=7.5),
}

T_TEST_BENCHMARK = TimeBenchmark(elite=9.5, good=10.5, average=11.5, poor=13.0)


def sprint_benchmark(distance: int) -> TimeBenchmark:
    """Benchmarks for a sprint distance; anything but 20 m uses the 40 m band."""
    return SPRINT_BENCHMARKS[20] if distance == 20 else SPRINT_BENCHMARKS[40]
