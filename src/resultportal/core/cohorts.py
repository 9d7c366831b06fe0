from __future__ import annotations

import re
from typing import Iterable, Mapping

from resultportal.config.settings import settings

SEMESTERS_PER_YEAR = 2
PREFIX_LENGTH = 2
YEAR_LABELS = {1: "1st Year", 2: "2nd Year", 3: "3rd Year", 4: "4th Year"}


class InvalidCohortSelector(ValueError):
    pass


class CohortDirectory:
    """Maps enrollment-batch prefixes (first two ID digits) to academic years.

    The mapping shifts every academic year, so it is injected rather than
    hard-coded; see ``BATCH_PREFIXES`` in settings.
    """

    def __init__(self, prefixes: Mapping[str, int] | Iterable[tuple[str, int]]) -> None:
        pairs = dict(prefixes.items() if isinstance(prefixes, Mapping) else prefixes)
        for prefix, year in pairs.items():
            if len(prefix) != PREFIX_LENGTH or not prefix.isdigit():
                raise ValueError(f"Batch prefix must be {PREFIX_LENGTH} digits: {prefix!r}")
            if year not in YEAR_LABELS:
                raise ValueError(f"Academic year must be 1-4, got {year} for prefix {prefix}")
        if len(set(pairs.values())) != len(pairs):
            raise ValueError("Each academic year may map to only one batch prefix")
        self._year_by_prefix = pairs
        self._prefix_by_year = {year: prefix for prefix, year in pairs.items()}

    @classmethod
    def from_settings(cls) -> "CohortDirectory":
        return cls(settings.batch_prefixes)

    @property
    def prefixes(self) -> tuple[str, ...]:
        return tuple(self._year_by_prefix)

    def prefix_for_year(self, year: int) -> str:
        try:
            return self._prefix_by_year[year]
        except KeyError as exc:
            raise InvalidCohortSelector(f"No batch found for academic year {year}") from exc

    def year_for_student(self, student_id: str) -> int:
        prefix = str(student_id)[:PREFIX_LENGTH]
        try:
            return self._year_by_prefix[prefix]
        except KeyError as exc:
            raise InvalidCohortSelector(f"Invalid student ID prefix: {prefix}") from exc

    def semesters_for_student(self, student_id: str) -> int:
        return semesters_for_year(self.year_for_student(student_id))

    def student_id_pattern(self) -> re.Pattern[str]:
        batches = "|".join(re.escape(p) for p in self.prefixes)
        return re.compile(rf"^({batches})BC1A05[0-5][0-9]$")


def semesters_for_year(year: int) -> int:
    if year not in YEAR_LABELS:
        raise InvalidCohortSelector(f"Invalid academic year (must be 1-4): {year}")
    return year * SEMESTERS_PER_YEAR


def year_label(year: int) -> str:
    return YEAR_LABELS.get(year, "")
