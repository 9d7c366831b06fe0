from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Student:
    id: str
    name: str
    branch: str
    email: str


@dataclass(frozen=True)
class Admin:
    id: str
    name: str


@dataclass(frozen=True)
class Subject:
    id: int
    name: str
    code: str
    semester: int
    max_internal: int
    max_external: int
    credits: float
    is_lab: bool

    @property
    def max_marks(self) -> int:
        return self.max_internal + self.max_external


@dataclass(frozen=True)
class RawMarkRecord:
    student_id: str
    semester: int
    subject_name: str
    is_lab: bool
    internal_marks: int = 0
    external_marks: int = 0
    subject_id: int | None = None
