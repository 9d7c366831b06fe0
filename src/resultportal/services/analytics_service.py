import logging
from typing import Any, Dict

from resultportal.core.analytics import StudentStanding, aggregate_cohort
from resultportal.core.catalog import SubjectCatalog
from resultportal.core.cohorts import CohortDirectory, semesters_for_year, year_label
from resultportal.core.results import build_report
from resultportal.services.presenters import analytics_to_dict, overall_to_dict, student_to_dict
from resultportal.services.storage import Storage
from resultportal.services.subject_service import snapshot_catalog

logger = logging.getLogger(__name__)


class AnalyticsService:
    def __init__(
        self,
        storage: Storage,
        catalog: SubjectCatalog,
        cohorts: CohortDirectory,
        *,
        absent_counts_as_fail: bool = False,
    ) -> None:
        self.storage = storage
        self.catalog = catalog
        self.cohorts = cohorts
        self.absent_counts_as_fail = absent_counts_as_fail

    def cohort_report(self, year: int) -> Dict[str, Any]:
        # Both raise InvalidCohortSelector before any data is read.
        semesters = semesters_for_year(year)
        prefix = self.cohorts.prefix_for_year(year)

        students = self.storage.list_students_with_prefix(prefix)
        marks = self.storage.list_marks_for_prefix(prefix)
        catalog = snapshot_catalog(self.catalog, self.storage)

        rows = []
        standings = []
        for student in students:
            summary = build_report(
                marks.get(student.id, []),
                catalog,
                semesters,
                absent_counts_as_fail=self.absent_counts_as_fail,
            )
            standings.append(StudentStanding(student.id, summary))
            rows.append({**student_to_dict(student), **overall_to_dict(summary)})

        analytics = aggregate_cohort(standings)
        logger.info(
            "Cohort report for year %s (batch %s): %d students, %d passing",
            year,
            prefix,
            analytics.total_students,
            analytics.pass_count,
        )
        return {
            "year": year,
            "year_label": year_label(year),
            "batch_prefix": prefix,
            "semesters": semesters,
            "students": rows,
            "analytics": analytics_to_dict(analytics),
        }
