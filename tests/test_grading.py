import unittest

from resultportal.core.catalog import SubjectScheme
from resultportal.core.grades import (
    ABSENT,
    FAIL,
    PASS,
    grade_from_percentage,
    grade_subject,
    normalize_marks,
)


def scheme(max_internal=30, max_external=70, credits=3, is_lab=False):
    return SubjectScheme(1, "Mathematics I", is_lab, max_internal, max_external, credits)


THEORY = scheme()


class GradeBandTests(unittest.TestCase):
    def test_grade_bands(self):
        self.assertEqual(grade_from_percentage(95), ("S", 10))
        self.assertEqual(grade_from_percentage(90), ("S", 10))
        self.assertEqual(grade_from_percentage(89.99), ("A", 9))
        self.assertEqual(grade_from_percentage(70), ("B", 8))
        self.assertEqual(grade_from_percentage(60), ("C", 7))
        self.assertEqual(grade_from_percentage(50), ("D", 6))
        self.assertEqual(grade_from_percentage(40), ("Y", 5))
        self.assertEqual(grade_from_percentage(39.99), ("F", 0))


class PassStatusTests(unittest.TestCase):
    def test_zero_marks_on_scored_subject_is_absent(self):
        for s in (THEORY, scheme(0, 100), scheme(60, 140), scheme(50, 0), scheme(30, 70, 1.5, True)):
            detail = grade_subject(0, 0, s)
            self.assertEqual(detail.pass_status, ABSENT)
            self.assertEqual(detail.credits_earned, 0)

    def test_unscored_scheme_is_never_absent(self):
        detail = grade_subject(0, 0, scheme(0, 0))
        self.assertEqual(detail.percentage, 0)
        self.assertEqual(detail.grade, "F")
        self.assertEqual(detail.pass_status, PASS)

    def test_pass_at_exact_bounds(self):
        detail = grade_subject(15, 25, THEORY)
        self.assertEqual(detail.pass_status, PASS)
        self.assertEqual(detail.grade, "Y")
        self.assertEqual(detail.credits_earned, 3)

    def test_standard_theory_override(self):
        self.assertEqual(grade_subject(10, 29, THEORY).pass_status, FAIL)
        # total clears 28 but the internal bound of 15 is still missed
        self.assertEqual(grade_subject(10, 30, THEORY).pass_status, FAIL)

    def test_total_bound_checked_independently(self):
        external_only = scheme(0, 100)
        self.assertEqual(grade_subject(0, 30, external_only).pass_status, FAIL)
        self.assertEqual(grade_subject(0, 45, external_only).pass_status, PASS)

    def test_double_weight_scheme_bounds(self):
        project = scheme(60, 140, 12)
        self.assertEqual(grade_subject(24, 56, project).pass_status, PASS)
        self.assertEqual(grade_subject(23, 100, project).pass_status, FAIL)
        self.assertEqual(grade_subject(60, 55, project).pass_status, FAIL)

    def test_internal_only_scheme_skips_external_bound(self):
        self.assertEqual(grade_subject(20, 0, scheme(50, 0)).pass_status, PASS)

    def test_failed_subject_keeps_grade_but_earns_no_points(self):
        detail = grade_subject(5, 60, THEORY)
        self.assertEqual(detail.pass_status, FAIL)
        self.assertEqual((detail.grade, detail.grade_points), ("C", 7))
        self.assertEqual(detail.credit_points, 0)
        self.assertEqual(detail.credits_earned, 0)

    def test_credits_earned_follow_pass_status(self):
        for internal in range(0, 31, 5):
            for external in range(0, 71, 7):
                detail = grade_subject(internal, external, THEORY)
                self.assertIn(detail.credits_earned, (0, THEORY.credits))
                self.assertEqual(detail.credits_earned == THEORY.credits, detail.pass_status == PASS)

    def test_more_external_marks_never_lower_the_grade(self):
        for internal in range(0, 31, 3):
            previous = grade_subject(internal, 0, THEORY)
            for external in range(1, 71):
                current = grade_subject(internal, external, THEORY)
                self.assertGreaterEqual(current.percentage, previous.percentage)
                self.assertGreaterEqual(current.grade_points, previous.grade_points)
                previous = current

    def test_grading_is_repeatable(self):
        self.assertEqual(grade_subject(22, 51, THEORY), grade_subject(22, 51, THEORY))


class NormalizeMarksTests(unittest.TestCase):
    def test_bad_input_becomes_zero(self):
        for value in (None, "", "abc", -5, "-3", True, float("nan"), float("inf")):
            self.assertEqual(normalize_marks(value), 0, value)

    def test_numbers_truncate(self):
        self.assertEqual(normalize_marks("12"), 12)
        self.assertEqual(normalize_marks(12.7), 12)
        self.assertEqual(normalize_marks(" 7.9 "), 7)

    def test_numeric_strings_parse_whole(self):
        self.assertEqual(normalize_marks("1e2"), 100)
        self.assertEqual(normalize_marks("12abc"), 0)
        self.assertEqual(normalize_marks("45 "), 45)


if __name__ == "__main__":
    unittest.main()
