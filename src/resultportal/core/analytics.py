from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from resultportal.core.results import OverallSummary

# Histogram bucket name -> inclusive lower bound on overall percentage.
SCORE_BRACKETS: tuple[tuple[str, int], ...] = (
    ("above90", 90),
    ("above80", 80),
    ("above70", 70),
    ("above60", 60),
    ("above50", 50),
    ("above40", 40),
)
BELOW_BRACKET = ("below40", 40)


@dataclass(frozen=True)
class StudentStanding:
    student_id: str
    summary: OverallSummary

    @property
    def overall_pass(self) -> bool:
        return self.summary.overall_pass

    @property
    def percentage(self) -> float:
        return self.summary.percentage


@dataclass(frozen=True)
class CohortAnalytics:
    total_students: int
    pass_count: int
    fail_count: int
    pass_percentage: float
    fail_percentage: float
    score_distribution: dict[str, int]


def _share(count: int, total: int) -> float:
    return count / total * 100 if total else 0.0


def score_distribution(percentages: Iterable[float]) -> dict[str, int]:
    """Cumulative histogram: a student counts in every bracket they clear."""
    percentages = list(percentages)
    distribution = {name: sum(1 for p in percentages if p >= low) for name, low in SCORE_BRACKETS}
    name, high = BELOW_BRACKET
    distribution[name] = sum(1 for p in percentages if p < high)
    return distribution


def aggregate_cohort(standings: Iterable[StudentStanding]) -> CohortAnalytics:
    standings = list(standings)
    total = len(standings)
    pass_count = sum(1 for s in standings if s.overall_pass)
    fail_count = total - pass_count
    return CohortAnalytics(
        total_students=total,
        pass_count=pass_count,
        fail_count=fail_count,
        pass_percentage=_share(pass_count, total),
        fail_percentage=_share(fail_count, total),
        score_distribution=score_distribution(s.percentage for s in standings),
    )
