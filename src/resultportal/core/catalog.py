from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from resultportal.config.settings import settings
from resultportal.models.entities import Subject

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemeLimits:
    max_internal: int
    max_external: int
    credits: float

    def __post_init__(self) -> None:
        if self.max_internal < 0 or self.max_external < 0:
            raise ValueError("max marks must be non-negative")
        if self.credits <= 0:
            raise ValueError("credits must be greater than 0")


@dataclass(frozen=True)
class SubjectScheme:
    semester: int
    subject_name: str
    is_lab: bool
    max_internal: int
    max_external: int
    credits: float

    @property
    def max_total(self) -> int:
        return self.max_internal + self.max_external

    @classmethod
    def from_limits(cls, semester: int, subject_name: str, is_lab: bool, limits: SchemeLimits) -> "SubjectScheme":
        return cls(
            semester=semester,
            subject_name=subject_name,
            is_lab=is_lab,
            max_internal=limits.max_internal,
            max_external=limits.max_external,
            credits=limits.credits,
        )

    @classmethod
    def from_subject(cls, subject: Subject) -> "SubjectScheme":
        return cls(
            semester=subject.semester,
            subject_name=subject.name,
            is_lab=subject.is_lab,
            max_internal=subject.max_internal,
            max_external=subject.max_external,
            credits=subject.credits,
        )


THEORY_LIMITS = SchemeLimits(30, 70, 3)
LAB_LIMITS = SchemeLimits(30, 70, 1.5)

# Curriculum used when no CURRICULUM_FILE is configured. The named subjects
# below are sample entries; deployments supply their own file.
DEFAULT_CURRICULUM: dict[str, Any] = {
    "semesters": {
        str(semester): {
            "theory": {"max_internal": 30, "max_external": 70, "credits": 3},
            "lab": {"max_internal": 30, "max_external": 70, "credits": 1.5},
            "subjects": [],
        }
        for semester in range(1, 9)
    }
}
DEFAULT_CURRICULUM["semesters"]["1"]["subjects"] = [
    {"name": "Communicative English", "is_lab": False, "max_internal": 30, "max_external": 70, "credits": 2},
]
DEFAULT_CURRICULUM["semesters"]["7"]["subjects"] = [
    {"name": "Summer Internship", "is_lab": False, "max_internal": 0, "max_external": 100, "credits": 2},
]
DEFAULT_CURRICULUM["semesters"]["8"]["subjects"] = [
    {"name": "Project Work", "is_lab": False, "max_internal": 60, "max_external": 140, "credits": 12},
]


def normalize_subject_name(name: str) -> str:
    return " ".join(str(name).split()).casefold()


def default_scheme(semester: int, subject_name: str, is_lab: bool) -> SubjectScheme:
    return SubjectScheme.from_limits(semester, subject_name, is_lab, LAB_LIMITS if is_lab else THEORY_LIMITS)


def _limits_from(data: Mapping[str, Any]) -> SchemeLimits:
    return SchemeLimits(
        max_internal=int(data["max_internal"]),
        max_external=int(data["max_external"]),
        credits=float(data["credits"]),
    )


class SubjectCatalog:
    """Read-only lookup from ``(semester, subject, is_lab)`` to a mark scheme.

    Three levels are consulted in order: a named subject entry, the semester's
    theory/lab default, and finally the global default scheme.
    """

    def __init__(
        self,
        schemes: Iterable[SubjectScheme] = (),
        semester_defaults: Mapping[tuple[int, bool], SchemeLimits] | None = None,
    ) -> None:
        named: dict[tuple[int, str, bool], SubjectScheme] = {}
        for scheme in schemes:
            named[(scheme.semester, normalize_subject_name(scheme.subject_name), scheme.is_lab)] = scheme
        self._named = MappingProxyType(named)
        self._semester_defaults = MappingProxyType(dict(semester_defaults or {}))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SubjectCatalog":
        schemes: list[SubjectScheme] = []
        semester_defaults: dict[tuple[int, bool], SchemeLimits] = {}
        for key, config in (data.get("semesters") or {}).items():
            semester = int(key)
            if config.get("theory"):
                semester_defaults[(semester, False)] = _limits_from(config["theory"])
            if config.get("lab"):
                semester_defaults[(semester, True)] = _limits_from(config["lab"])
            for entry in config.get("subjects", []):
                is_lab = bool(entry.get("is_lab", False))
                schemes.append(SubjectScheme.from_limits(semester, str(entry["name"]), is_lab, _limits_from(entry)))
        return cls(schemes, semester_defaults)

    @classmethod
    def from_file(cls, path: str | Path) -> "SubjectCatalog":
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        logger.info("Loaded curriculum from %s", path)
        return cls.from_mapping(data)

    @classmethod
    def default(cls) -> "SubjectCatalog":
        return cls.from_mapping(DEFAULT_CURRICULUM)

    @classmethod
    def from_settings(cls) -> "SubjectCatalog":
        if settings.curriculum_file:
            return cls.from_file(settings.curriculum_file)
        return cls.default()

    def with_schemes(self, schemes: Iterable[SubjectScheme]) -> "SubjectCatalog":
        """Return a new catalog with ``schemes`` layered over this one's entries."""
        return SubjectCatalog([*self._named.values(), *schemes], self._semester_defaults)

    def with_subjects(self, subjects: Iterable[Subject]) -> "SubjectCatalog":
        return self.with_schemes(SubjectScheme.from_subject(subject) for subject in subjects)

    def __len__(self) -> int:
        return len(self._named)

    def resolve_scheme(self, semester: int, subject_name: str, is_lab: bool) -> SubjectScheme:
        named = self._named.get((semester, normalize_subject_name(subject_name), is_lab))
        if named is not None:
            return named

        limits = self._semester_defaults.get((semester, is_lab))
        if limits is not None:
            logger.debug("Semester %s default scheme used for %r", semester, subject_name)
            return SubjectScheme.from_limits(semester, subject_name, is_lab, limits)

        logger.warning(
            "No scheme configured for %r (semester %s, lab=%s); using default scheme",
            subject_name,
            semester,
            is_lab,
        )
        return default_scheme(semester, subject_name, is_lab)
