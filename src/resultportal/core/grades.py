from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from resultportal.core.catalog import SubjectScheme

PASS = "Pass"
FAIL = "Fail"
ABSENT = "Ab"

# (lower bound inclusive, letter, grade point), highest first.
GRADE_BANDS: tuple[tuple[int, str, int], ...] = (
    (90, "S", 10),
    (80, "A", 9),
    (70, "B", 8),
    (60, "C", 7),
    (50, "D", 6),
    (40, "Y", 5),
)
FAIL_GRADE = ("F", 0)

TOTAL_PASS_RATIO = 0.4
INTERNAL_PASS = 15
EXTERNAL_PASS = 25
# Double-weight schemes (60 internal / 140 external) carry scaled bounds.
INTERNAL_PASS_BY_MAX = {60: 24}
EXTERNAL_PASS_BY_MAX = {140: 56}


@dataclass(frozen=True)
class GradedDetail:
    subject_name: str
    semester: int
    is_lab: bool
    internal_marks: int
    external_marks: int
    total_marks: int
    max_marks: int
    percentage: float
    grade: str
    grade_points: int
    pass_status: str
    credits_offered: float
    credits_earned: float

    @property
    def passed(self) -> bool:
        return self.pass_status == PASS

    @property
    def credit_points(self) -> float:
        """Grade points weighted by credits; only passed subjects contribute."""
        return (self.grade_points if self.passed else 0) * self.credits_offered


def normalize_marks(value: Any) -> int:
    """Coerce raw mark input to a non-negative integer, never raising.

    The whole string must be numeric: ``"12abc"`` is 0 rather than a
    prefix parse, and ``"1e2"`` reads as 100.
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, int(number))


def grade_from_percentage(percentage: float) -> tuple[str, int]:
    for low, letter, points in GRADE_BANDS:
        if percentage >= low:
            return letter, points
    return FAIL_GRADE


def calc_percentage(total_marks: float, max_marks: float) -> float:
    if max_marks <= 0:
        return 0.0
    return total_marks / max_marks * 100


def internal_pass_mark(scheme: SubjectScheme) -> int:
    return INTERNAL_PASS_BY_MAX.get(scheme.max_internal, INTERNAL_PASS)


def external_pass_mark(scheme: SubjectScheme) -> int:
    return EXTERNAL_PASS_BY_MAX.get(scheme.max_external, EXTERNAL_PASS)


def is_special_case_fail(internal_marks: int, external_marks: int, scheme: SubjectScheme) -> bool:
    is_standard_theory = scheme.max_internal == 30 and scheme.max_external == 70
    return is_standard_theory and internal_marks <= 10 and external_marks < 30


def pass_status(internal_marks: int, external_marks: int, scheme: SubjectScheme) -> str:
    total_marks = internal_marks + external_marks
    if total_marks == 0 and scheme.max_total > 0:
        return ABSENT

    passed_internal = internal_marks >= internal_pass_mark(scheme) if scheme.max_internal > 0 else True
    passed_external = external_marks >= external_pass_mark(scheme) if scheme.max_external > 0 else True
    passed_total = total_marks >= scheme.max_total * TOTAL_PASS_RATIO

    if (
        passed_internal
        and passed_external
        and passed_total
        and not is_special_case_fail(internal_marks, external_marks, scheme)
    ):
        return PASS
    return FAIL


def grade_subject(internal_marks: int, external_marks: int, scheme: SubjectScheme) -> GradedDetail:
    total_marks = internal_marks + external_marks
    percentage = calc_percentage(total_marks, scheme.max_total)
    letter, points = grade_from_percentage(percentage)
    status = pass_status(internal_marks, external_marks, scheme)
    return GradedDetail(
        subject_name=scheme.subject_name,
        semester=scheme.semester,
        is_lab=scheme.is_lab,
        internal_marks=internal_marks,
        external_marks=external_marks,
        total_marks=total_marks,
        max_marks=scheme.max_total,
        percentage=percentage,
        grade=letter,
        grade_points=points,
        pass_status=status,
        credits_offered=scheme.credits,
        credits_earned=scheme.credits if status == PASS else 0,
    )
