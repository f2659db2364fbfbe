"""
Scripted runs of the interactive menu. _prompt is replaced by a list of answers.
"""

import unittest
from unittest.mock import patch

from fakes import FakeApi

import coursedesk.interactive as interactive


def _script(*answers: str):
    return patch.object(interactive, "_prompt", side_effect=list(answers))


class TestInteractive(unittest.TestCase):
    def test_create_course_keeps_input_after_failure(self) -> None:
        api = FakeApi(next_id=7)
        with _script(
            "1",  # create course
            "Algorithms", "CS301", "...", "0", "",  # credits 0 is rejected
            "",  # try again
            "", "", "", "4", "",  # keep everything, fix credits
            "0",
        ):
            interactive.run_interactive(api)  # type: ignore[arg-type]

        self.assertEqual(len(api.calls_to("create_course")), 1)
        created = api.courses[7]
        self.assertEqual(created.course_code, "CS301")
        self.assertEqual(created.credits, 4)
        self.assertEqual(created.department, "Computer Science")

    def test_delete_course_declined(self) -> None:
        api = FakeApi()
        api.seed_course("Algorithms", "CS301")
        with _script("4", "1", "n", "n", "0"):
            interactive.run_interactive(api)  # type: ignore[arg-type]

        self.assertEqual(api.calls_to("delete_course"), [])
        self.assertIn(1, api.courses)

    def test_create_instance_flow(self) -> None:
        api = FakeApi()
        api.seed_course("Algorithms", "CS301")
        with _script("5", "1", "2024", "Summer", "0"):
            interactive.run_interactive(api)  # type: ignore[arg-type]

        (inst,) = api.instances.values()
        self.assertEqual((inst.course, inst.year, inst.semester), (1, 2024, "Summer"))


if __name__ == "__main__":
    unittest.main()
