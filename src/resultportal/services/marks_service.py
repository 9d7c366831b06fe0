import logging
from typing import Any, Dict, Mapping, Optional

from resultportal.core.catalog import SubjectCatalog
from resultportal.core.cohorts import CohortDirectory, semesters_for_year, year_label
from resultportal.core.grades import normalize_marks
from resultportal.core.results import build_report
from resultportal.services.presenters import overall_to_dict, student_to_dict
from resultportal.services.storage import Storage
from resultportal.services.subject_service import MAX_SEMESTER, MIN_SEMESTER, snapshot_catalog

logger = logging.getLogger(__name__)


class MarksServiceError(Exception):
    pass


class StudentNotFound(MarksServiceError):
    pass


class MarksService:
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

    def save_marks(
        self,
        student_id: str,
        semester: int,
        marks: Mapping[Any, Optional[Mapping[str, Any]]],
    ) -> int:
        """Replace a student's marks for ``semester``.

        ``marks`` maps subject id to ``{"internal": ..., "external": ...}``.
        Values are clamped to non-negative integers and pairs that come out as
        0/0 are dropped. Returns the number of subjects stored.
        """
        student_id = (student_id or "").strip()
        if not student_id or not marks:
            raise MarksServiceError("Invalid mark submission data: Missing student ID or marks.")
        if not MIN_SEMESTER <= semester <= MAX_SEMESTER:
            raise MarksServiceError(f"Semester must be between {MIN_SEMESTER} and {MAX_SEMESTER}.")

        # Rejects unknown batches before touching storage.
        self.cohorts.year_for_student(student_id)
        if self.storage.get_student(student_id) is None:
            raise StudentNotFound(f"Student {student_id} not found")

        entries = []
        for subject_key, split in marks.items():
            try:
                subject_id = int(subject_key)
            except (TypeError, ValueError) as exc:
                raise MarksServiceError(f"Invalid subject id: {subject_key!r}") from exc
            subject = self.storage.get_subject(subject_id)
            if subject is None:
                raise MarksServiceError(f"Unknown subject id: {subject_id}")
            if subject.semester != semester:
                raise MarksServiceError(
                    f"Subject {subject.code} belongs to semester {subject.semester}, not semester {semester}."
                )

            split = split or {}
            internal = normalize_marks(split.get("internal"))
            external = normalize_marks(split.get("external"))
            if internal == 0 and external == 0:
                continue
            entries.append((subject_id, internal, external))

        written = self.storage.replace_marks(student_id, semester, entries)
        logger.info("Saved %d subject marks for %s semester %s", written, student_id, semester)
        return written

    def dashboard(self, student_id: str) -> Dict[str, Any]:
        year = self.cohorts.year_for_student(student_id)
        student = self.storage.get_student(student_id)
        if student is None:
            raise StudentNotFound(f"Student {student_id} not found")

        semesters = semesters_for_year(year)
        records = self.storage.list_marks(student_id)
        summary = build_report(
            records,
            snapshot_catalog(self.catalog, self.storage),
            semesters,
            absent_counts_as_fail=self.absent_counts_as_fail,
        )
        return {
            "student": student_to_dict(student),
            "year": year,
            "year_label": year_label(year),
            "semesters_to_show": semesters,
            "summary": overall_to_dict(summary),
        }
