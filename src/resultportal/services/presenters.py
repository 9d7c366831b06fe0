"""Plain-dict views of engine results for the HTTP layer."""

from typing import Any, Dict

from resultportal.core.analytics import CohortAnalytics
from resultportal.core.grades import GradedDetail
from resultportal.core.results import OverallSummary, SemesterSummary
from resultportal.models.entities import Student, Subject


def _pct(value: float) -> float:
    return round(value, 2)


def detail_to_dict(detail: GradedDetail) -> Dict[str, Any]:
    return {
        "subject": detail.subject_name,
        "is_lab": detail.is_lab,
        "internal_marks": detail.internal_marks,
        "external_marks": detail.external_marks,
        "marks": detail.total_marks,
        "max_marks": detail.max_marks,
        "percentage": _pct(detail.percentage),
        "grade": detail.grade,
        "grade_points": detail.grade_points,
        "pass_status": detail.pass_status,
        "credits": detail.credits_offered,
        "credits_earned": detail.credits_earned,
    }


def semester_to_dict(summary: SemesterSummary) -> Dict[str, Any]:
    return {
        "semester": summary.semester,
        "total_marks": summary.total_marks,
        "max_marks": summary.max_marks,
        "percentage": _pct(summary.percentage),
        "credits_offered": summary.credits_offered,
        "credits_earned": summary.credits_earned,
        "sgpa": summary.sgpa,
        "details": [detail_to_dict(d) for d in summary.details],
    }


def overall_to_dict(summary: OverallSummary) -> Dict[str, Any]:
    return {
        "total_marks": summary.total_marks,
        "max_marks": summary.max_marks,
        "percentage": _pct(summary.percentage),
        "credits_offered": summary.credits_offered,
        "credits_earned": summary.credits_earned,
        "cgpa": summary.cgpa,
        "overall_pass": summary.overall_pass,
        "semesters": [semester_to_dict(s) for s in summary.semesters],
    }


def analytics_to_dict(analytics: CohortAnalytics) -> Dict[str, Any]:
    return {
        "total_students": analytics.total_students,
        "pass_count": analytics.pass_count,
        "fail_count": analytics.fail_count,
        "pass_percentage": _pct(analytics.pass_percentage),
        "fail_percentage": _pct(analytics.fail_percentage),
        "score_distribution": dict(analytics.score_distribution),
    }


def student_to_dict(student: Student) -> Dict[str, Any]:
    return {"id": student.id, "name": student.name, "branch": student.branch, "email": student.email}


def subject_to_dict(subject: Subject) -> Dict[str, Any]:
    return {
        "id": subject.id,
        "name": subject.name,
        "code": subject.code,
        "semester": subject.semester,
        "max_internal": subject.max_internal,
        "max_external": subject.max_external,
        "max_marks": subject.max_marks,
        "credits": subject.credits,
        "is_lab": subject.is_lab,
    }
