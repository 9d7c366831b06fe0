import unittest

from resultportal.services.storage import Storage, StorageError


class StorageTests(unittest.TestCase):
    def setUp(self):
        self.storage = Storage(":memory:")
        self.addCleanup(self.storage.close)
        self.storage.create_student("28BC1A0501", "Asha", "Information Technology", "asha@example.com", "pw")
        self.maths = self.storage.add_subject("Mathematics I", "MA101", 1, 30, 70, 3, False)
        self.lab = self.storage.add_subject("Physics Lab", "PH101L", 1, 30, 70, 1.5, True)

    def test_login(self):
        self.assertEqual(self.storage.login_student("28BC1A0501", "pw").name, "Asha")
        self.assertIsNone(self.storage.login_student("28BC1A0501", "wrong"))
        self.storage.create_admin("ADM001", "Ravi", "adminpw")
        self.assertEqual(self.storage.login_admin("ADM001", "adminpw").name, "Ravi")

    def test_duplicate_subject_code_rejected(self):
        with self.assertRaises(StorageError):
            self.storage.add_subject("Maths again", "MA101", 2, 30, 70, 3, False)

    def test_subjects_round_trip(self):
        lab = self.storage.get_subject(self.lab)
        self.assertTrue(lab.is_lab)
        self.assertEqual(lab.credits, 1.5)
        self.assertEqual(lab.max_marks, 100)
        self.assertEqual(len(self.storage.list_subjects(1)), 2)
        self.assertEqual(self.storage.list_subjects(2), [])

    def test_replace_marks(self):
        self.storage.replace_marks("28BC1A0501", 1, [(self.maths, 20, 50), (self.lab, 25, 60)])
        self.storage.replace_marks("28BC1A0501", 1, [(self.maths, 22, 55)])

        marks = self.storage.list_marks("28BC1A0501")
        self.assertEqual(len(marks), 1)
        self.assertEqual(marks[0].subject_name, "Mathematics I")
        self.assertEqual((marks[0].internal_marks, marks[0].external_marks), (22, 55))
        self.assertEqual(marks[0].subject_id, self.maths)

    def test_failed_replacement_keeps_previous_marks(self):
        self.storage.replace_marks("28BC1A0501", 1, [(self.maths, 20, 50)])
        with self.assertRaises(StorageError):
            self.storage.replace_marks("28BC1A0501", 1, [(self.lab, 25, 60), (9999, 10, 10)])

        marks = self.storage.list_marks("28BC1A0501")
        self.assertEqual([(m.subject_name, m.internal_marks) for m in marks], [("Mathematics I", 20)])

    def test_marks_for_prefix(self):
        self.storage.create_student("27BC1A0501", "Kiran", "Civil Engineering", "kiran@example.com", "pw")
        self.storage.replace_marks("28BC1A0501", 1, [(self.maths, 20, 50)])
        self.storage.replace_marks("27BC1A0501", 1, [(self.maths, 25, 60)])

        grouped = self.storage.list_marks_for_prefix("28")
        self.assertEqual(list(grouped), ["28BC1A0501"])
        self.assertEqual([s.id for s in self.storage.list_students_with_prefix("27")], ["27BC1A0501"])


if __name__ == "__main__":
    unittest.main()
