import unittest

from coursedesk.errors import DecodeError
from coursedesk.model import Course, CourseCreate, Instance, InstanceCreate


class TestCourseDecoding(unittest.TestCase):
    def test_full_course(self) -> None:
        c = Course.from_dict(
            {
                "id": 7,
                "title": "Algorithms",
                "course_code": "CS301",
                "description": "...",
                "credits": 4,
                "department": "CS",
            }
        )
        self.assertEqual(c.id, 7)
        self.assertTrue(c.persisted)
        self.assertEqual(c.credits, 4)

    def test_non_ascii_digit_id_is_not_an_id(self) -> None:
        c = Course.from_dict({"id": "\u00b2", "title": "A", "course_code": "A1", "credits": "\u0664"})
        self.assertIsNone(c.id)
        self.assertIsNone(c.credits)

    def test_partial_course_is_tolerated(self) -> None:
        c = Course.from_dict({"title": "Algorithms"})
        self.assertIsNone(c.id)
        self.assertFalse(c.persisted)
        self.assertEqual(c.course_code, "")
        self.assertIsNone(c.credits)

    def test_non_object_is_decode_error(self) -> None:
        with self.assertRaises(DecodeError):
            Course.from_dict(["not", "a", "course"])


class TestInstanceDecoding(unittest.TestCase):
    def test_embedded_details_are_kept_when_consistent(self) -> None:
        i = Instance.from_dict(
            {
                "id": 3,
                "course": 7,
                "year": 2024,
                "semester": "1",
                "course_details": {"id": 7, "title": "Algorithms", "course_code": "CS301"},
            }
        )
        self.assertIsNotNone(i.course_details)
        assert i.course_details is not None
        self.assertEqual(i.course_details.course_code, "CS301")
        self.assertEqual(i.course_title, "Algorithms")

    def test_mismatched_embed_is_discarded(self) -> None:
        with self.assertLogs("coursedesk.model", level="WARNING"):
            i = Instance.from_dict(
                {
                    "id": 3,
                    "course": 7,
                    "year": 2024,
                    "semester": "1",
                    "course_details": {"id": 8, "title": "Other", "course_code": "X"},
                }
            )
        self.assertIsNone(i.course_details)
        self.assertEqual(i.course_title, "")

    def test_missing_course_reference_is_decode_error(self) -> None:
        with self.assertRaises(DecodeError):
            Instance.from_dict({"id": 3, "year": 2024, "semester": "1"})

    def test_non_ascii_digit_year_is_decode_error(self) -> None:
        with self.assertRaises(DecodeError):
            Instance.from_dict({"id": 3, "course": 1, "year": "\u00b2", "semester": "1"})


class TestPayloads(unittest.TestCase):
    def test_course_payload_has_no_id(self) -> None:
        body = CourseCreate("Algorithms", "CS301", "...", 4, "CS").to_json()
        self.assertNotIn("id", body)
        self.assertEqual(set(body), {"title", "course_code", "description", "credits", "department"})

    def test_instance_payload_requests_course_details(self) -> None:
        body = InstanceCreate(course=7, year=2024, semester="1").to_json()
        self.assertEqual(body, {"course": 7, "year": 2024, "semester": "1", "include_course": True})


if __name__ == "__main__":
    unittest.main()
