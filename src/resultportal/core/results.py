from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from resultportal.core.catalog import SubjectCatalog
from resultportal.core.grades import ABSENT, FAIL, GradedDetail, calc_percentage, grade_subject
from resultportal.models.entities import RawMarkRecord


@dataclass(frozen=True)
class SemesterSummary:
    semester: int
    details: tuple[GradedDetail, ...]
    total_marks: int
    max_marks: int
    credits_offered: float
    credits_earned: float
    credit_points: float

    @property
    def percentage(self) -> float:
        return calc_percentage(self.total_marks, self.max_marks)

    @property
    def sgpa(self) -> float:
        return calc_cgpa(self.credit_points, self.credits_offered, self.total_marks, self.max_marks)


@dataclass(frozen=True)
class OverallSummary:
    semesters: tuple[SemesterSummary, ...]
    total_marks: int
    max_marks: int
    credits_offered: float
    credits_earned: float
    credit_points: float
    cgpa: float
    overall_pass: bool

    @property
    def percentage(self) -> float:
        return calc_percentage(self.total_marks, self.max_marks)

    @property
    def details(self) -> tuple[GradedDetail, ...]:
        return tuple(detail for summary in self.semesters for detail in summary.details)


def calc_cgpa(
    credit_points: float,
    credits_offered: float,
    total_marks: float,
    max_marks: float,
    *,
    round_to: int = 2,
) -> float:
    """
    CGPA = Σ(grade_points * credits) / Σ(credits)

    With no credits offered yet, fall back to the overall percentage / 10.
    """
    if credits_offered > 0:
        return round(credit_points / credits_offered, round_to)
    return round(calc_percentage(total_marks, max_marks) / 10, round_to)


def is_overall_pass(details: Iterable[GradedDetail], *, absent_counts_as_fail: bool = False) -> bool:
    failing = {FAIL, ABSENT} if absent_counts_as_fail else {FAIL}
    return not any(detail.pass_status in failing for detail in details)


def aggregate_semester(details: Iterable[GradedDetail], semester: int | None = None) -> SemesterSummary:
    details = tuple(details)
    if semester is None:
        semester = details[0].semester if details else 0
    return SemesterSummary(
        semester=semester,
        details=details,
        total_marks=sum(d.total_marks for d in details),
        max_marks=sum(d.max_marks for d in details),
        credits_offered=sum(d.credits_offered for d in details),
        credits_earned=sum(d.credits_earned for d in details),
        credit_points=sum(d.credit_points for d in details),
    )


def aggregate_overall(
    summaries: Iterable[SemesterSummary],
    semesters: int | None = None,
    *,
    absent_counts_as_fail: bool = False,
) -> OverallSummary:
    """Fold semester summaries for semesters ``1..semesters`` (all when None)."""
    in_scope = sorted(
        (s for s in summaries if semesters is None or 1 <= s.semester <= semesters),
        key=lambda s: s.semester,
    )
    total_marks = sum(s.total_marks for s in in_scope)
    max_marks = sum(s.max_marks for s in in_scope)
    credits_offered = sum(s.credits_offered for s in in_scope)
    credit_points = sum(s.credit_points for s in in_scope)
    return OverallSummary(
        semesters=tuple(in_scope),
        total_marks=total_marks,
        max_marks=max_marks,
        credits_offered=credits_offered,
        credits_earned=sum(s.credits_earned for s in in_scope),
        credit_points=credit_points,
        cgpa=calc_cgpa(credit_points, credits_offered, total_marks, max_marks),
        overall_pass=is_overall_pass(
            (d for s in in_scope for d in s.details),
            absent_counts_as_fail=absent_counts_as_fail,
        ),
    )


def grade_records(records: Iterable[RawMarkRecord], catalog: SubjectCatalog) -> list[GradedDetail]:
    graded = []
    for record in records:
        scheme = catalog.resolve_scheme(record.semester, record.subject_name, record.is_lab)
        graded.append(grade_subject(record.internal_marks, record.external_marks, scheme))
    return graded


def build_report(
    records: Iterable[RawMarkRecord],
    catalog: SubjectCatalog,
    semesters: int | None = None,
    *,
    absent_counts_as_fail: bool = False,
) -> OverallSummary:
    """Grade one student's raw marks and roll them up per semester and overall."""
    by_semester: dict[int, list[GradedDetail]] = defaultdict(list)
    for detail in grade_records(records, catalog):
        by_semester[detail.semester].append(detail)

    summaries = [aggregate_semester(details, semester) for semester, details in by_semester.items()]
    return aggregate_overall(summaries, semesters, absent_counts_as_fail=absent_counts_as_fail)
