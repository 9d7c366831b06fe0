import json
import os
import tempfile
import unittest

from resultportal.core.catalog import (
    SchemeLimits,
    SubjectCatalog,
    SubjectScheme,
    normalize_subject_name,
)
from resultportal.models.entities import Subject


class CatalogTests(unittest.TestCase):
    def setUp(self):
        self.catalog = SubjectCatalog.default()

    def test_unknown_subject_falls_back_to_default_scheme(self):
        with self.assertLogs("resultportal.core.catalog", level="WARNING"):
            resolved = self.catalog.resolve_scheme(9, "Unknown Subject", False)
        self.assertEqual(resolved.max_total, 100)
        self.assertEqual((resolved.max_internal, resolved.max_external), (30, 70))
        self.assertEqual(resolved.credits, 3)

    def test_unknown_lab_falls_back_to_lab_credits(self):
        with self.assertLogs("resultportal.core.catalog", level="WARNING"):
            resolved = self.catalog.resolve_scheme(9, "Unknown Lab", True)
        self.assertEqual(resolved.credits, 1.5)

    def test_semester_default_used_for_unlisted_subject(self):
        resolved = self.catalog.resolve_scheme(2, "Data Structures", False)
        self.assertEqual((resolved.max_internal, resolved.max_external, resolved.credits), (30, 70, 3))
        self.assertEqual(resolved.subject_name, "Data Structures")

    def test_named_subject_lookup_is_normalized(self):
        resolved = self.catalog.resolve_scheme(8, "  project   WORK ", False)
        self.assertEqual((resolved.max_internal, resolved.max_external), (60, 140))
        self.assertEqual(resolved.credits, 12)

    def test_lab_flag_distinguishes_schemes(self):
        catalog = SubjectCatalog(
            [
                SubjectScheme(3, "Networks", False, 30, 70, 3),
                SubjectScheme(3, "Networks", True, 40, 60, 2),
            ]
        )
        self.assertEqual(catalog.resolve_scheme(3, "networks", True).credits, 2)
        self.assertEqual(catalog.resolve_scheme(3, "networks", False).credits, 3)

    def test_with_subjects_returns_new_catalog(self):
        subject = Subject(1, "Compiler Design", "CS601", 6, 40, 60, 4, False)
        extended = self.catalog.with_subjects([subject])
        self.assertEqual(extended.resolve_scheme(6, "compiler design", False).credits, 4)
        self.assertEqual(self.catalog.resolve_scheme(6, "compiler design", False).credits, 3)
        self.assertEqual(len(extended), len(self.catalog) + 1)

    def test_from_file(self):
        data = {
            "semesters": {
                "1": {
                    "theory": {"max_internal": 25, "max_external": 75, "credits": 4},
                    "subjects": [
                        {"name": "Workshop", "is_lab": True, "max_internal": 50, "max_external": 0, "credits": 1}
                    ],
                }
            }
        }
        with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False) as fh:
            json.dump(data, fh)
        self.addCleanup(os.remove, fh.name)

        catalog = SubjectCatalog.from_file(fh.name)
        self.assertEqual(catalog.resolve_scheme(1, "Physics", False).max_external, 75)
        self.assertEqual(catalog.resolve_scheme(1, "Workshop", True).max_internal, 50)

    def test_invalid_limits_rejected(self):
        with self.assertRaises(ValueError):
            SchemeLimits(-1, 70, 3)
        with self.assertRaises(ValueError):
            SchemeLimits(30, 70, 0)

    def test_normalize_subject_name(self):
        self.assertEqual(normalize_subject_name("  Data\tStructures  "), "data structures")


if __name__ == "__main__":
    unittest.main()
