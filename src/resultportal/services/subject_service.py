import logging
from typing import List, Optional

from resultportal.core.catalog import SubjectCatalog, default_scheme, normalize_subject_name
from resultportal.models.entities import Subject
from resultportal.services.storage import Storage, StorageError

logger = logging.getLogger(__name__)

MIN_SEMESTER = 1
MAX_SEMESTER = 8


class SubjectServiceError(Exception):
    pass


def snapshot_catalog(catalog: SubjectCatalog, storage: Storage) -> SubjectCatalog:
    """Layer the subjects currently stored over the configured curriculum."""
    return catalog.with_subjects(storage.list_subjects())


class SubjectService:
    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    def list_subjects(self, semester: Optional[int] = None) -> List[Subject]:
        return self.storage.list_subjects(semester)

    def add_subject(
        self,
        *,
        name: str,
        code: str,
        semester: int,
        max_internal: int,
        max_external: int,
        is_lab: bool = False,
        credits: Optional[float] = None,
        pass_internal: Optional[int] = None,
        pass_external: Optional[int] = None,
    ) -> Subject:
        name = name.strip()
        code = code.strip()
        if not name:
            raise SubjectServiceError("Subject name is required.")
        if not code:
            raise SubjectServiceError("Subject code is required.")
        if not MIN_SEMESTER <= semester <= MAX_SEMESTER:
            raise SubjectServiceError(f"Semester must be between {MIN_SEMESTER} and {MAX_SEMESTER}.")
        if max_internal < 0 or max_external < 0:
            raise SubjectServiceError("Maximum marks cannot be negative.")
        if (pass_internal is not None and pass_internal > max_internal) or (
            pass_external is not None and pass_external > max_external
        ):
            raise SubjectServiceError("Pass marks cannot exceed maximum marks.")
        if credits is None:
            credits = default_scheme(semester, name, is_lab).credits
        if credits <= 0:
            raise SubjectServiceError("Credits must be greater than 0.")

        if self.storage.get_subject_by_code(code) is not None:
            raise SubjectServiceError("Subject code already exists.")
        key = normalize_subject_name(name)
        for existing in self.storage.list_subjects(semester):
            if existing.is_lab == is_lab and normalize_subject_name(existing.name) == key:
                raise SubjectServiceError(f"Subject {name!r} already exists in semester {semester}.")

        try:
            subject_id = self.storage.add_subject(name, code, semester, max_internal, max_external, credits, is_lab)
        except StorageError as exc:
            raise SubjectServiceError("Could not add subject.") from exc

        logger.info("Added subject %s (%s) to semester %s", code, name, semester)
        return Subject(
            id=subject_id,
            name=name,
            code=code,
            semester=semester,
            max_internal=max_internal,
            max_external=max_external,
            credits=float(credits),
            is_lab=is_lab,
        )
