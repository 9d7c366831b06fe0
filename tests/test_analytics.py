import unittest

from resultportal.core.analytics import StudentStanding, aggregate_cohort, score_distribution
from resultportal.core.results import OverallSummary, calc_cgpa


def standing(student_id, total_marks, overall_pass, max_marks=100):
    summary = OverallSummary(
        semesters=(),
        total_marks=total_marks,
        max_marks=max_marks,
        credits_offered=0,
        credits_earned=0,
        credit_points=0,
        cgpa=calc_cgpa(0, 0, total_marks, max_marks),
        overall_pass=overall_pass,
    )
    return StudentStanding(student_id, summary)


class CohortTests(unittest.TestCase):
    def test_two_student_cohort(self):
        analytics = aggregate_cohort([standing("28BC1A0501", 95, True), standing("28BC1A0502", 35, False)])
        self.assertEqual(analytics.total_students, 2)
        self.assertEqual((analytics.pass_count, analytics.fail_count), (1, 1))
        self.assertEqual(analytics.pass_percentage, 50.0)
        self.assertEqual(analytics.fail_percentage, 50.0)
        self.assertEqual(
            analytics.score_distribution,
            {
                "above90": 1,
                "above80": 1,
                "above70": 1,
                "above60": 1,
                "above50": 1,
                "above40": 1,
                "below40": 1,
            },
        )

    def test_empty_cohort_has_zero_percentages(self):
        analytics = aggregate_cohort([])
        self.assertEqual(analytics.total_students, 0)
        self.assertEqual(analytics.pass_percentage, 0.0)
        self.assertEqual(analytics.fail_percentage, 0.0)
        self.assertEqual(sum(analytics.score_distribution.values()), 0)

    def test_histogram_is_cumulative(self):
        distribution = score_distribution([92, 81, 40, 39.9])
        self.assertEqual(distribution["above90"], 1)
        self.assertEqual(distribution["above80"], 2)
        self.assertEqual(distribution["above50"], 2)
        self.assertEqual(distribution["above40"], 3)
        self.assertEqual(distribution["below40"], 1)

    def test_student_with_no_marks_lands_below40(self):
        analytics = aggregate_cohort([standing("28BC1A0503", 0, True, max_marks=0)])
        self.assertEqual(analytics.pass_count, 1)
        self.assertEqual(analytics.score_distribution["below40"], 1)


if __name__ == "__main__":
    unittest.main()
