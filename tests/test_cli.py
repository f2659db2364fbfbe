"""
Tests for CLI entry points.

These tests focus on:
- Basic argument validation (bad ids, invalid forms) and exit codes
- Commands talking to an in-memory FakeApi instead of a real server
"""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout

from fakes import FakeApi

from coursedesk.cli import build_parser, main
from coursedesk.errors import RequestError


def _run(api: FakeApi, *argv: str) -> tuple[int, str]:
    out = io.StringIO()
    with redirect_stdout(out):
        try:
            main(list(argv), api=api)  # type: ignore[arg-type]
        except SystemExit as exc:
            return exc.code, out.getvalue()
    raise AssertionError("main() returned without SystemExit")


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self.api = FakeApi(next_id=7)

    def test_parser_requires_command(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            build_parser().parse_args([])
        self.assertNotEqual(ctx.exception.code, 0)

    def test_parser_rejects_non_positive_timeout(self) -> None:
        for bad in ("0", "-1", "soon"):
            with self.subTest(timeout=bad):
                with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as ctx:
                    build_parser().parse_args(["--timeout", bad, "courses", "list"])
                self.assertEqual(ctx.exception.code, 2)
        args = build_parser().parse_args(["--timeout", "2.5", "courses", "list"])
        self.assertEqual(args.timeout, 2.5)

    def test_courses_show_rejects_bad_id(self) -> None:
        code, out = _run(self.api, "courses", "show", "abc")
        self.assertNotEqual(code, 0)
        self.assertIn("Invalid course ID provided.", out)
        self.assertEqual(self.api.calls, [])

    def test_courses_add_validation_blocks_request(self) -> None:
        code, out = _run(self.api, "courses", "add", "--title", "Algorithms", "--code", "CS301")
        self.assertEqual(code, 1)
        self.assertIn("All course fields are required.", out)
        self.assertEqual(self.api.calls_to("create_course"), [])

    def test_courses_add_and_list(self) -> None:
        code, out = _run(
            self.api,
            "courses", "add",
            "--title", "Algorithms",
            "--code", "CS301",
            "--description", "...",
            "--credits", "4",
            "--department", "CS",
        )
        self.assertEqual(code, 0)
        self.assertIn("Created: 7 | CS301 | Algorithms | 4 credits | CS", out)

        code, out = _run(self.api, "courses", "list")
        self.assertEqual(code, 0)
        self.assertIn("7 | CS301 | Algorithms", out)

    def test_courses_list_error_exit_code(self) -> None:
        self.api.fail["list_courses"] = RequestError("Failed to fetch courses: Bad Gateway", status=502)
        code, out = _run(self.api, "courses", "list")
        self.assertEqual(code, 1)
        self.assertIn("Bad Gateway", out)

    def test_instances_list_empty_404(self) -> None:
        self.api.not_found_when_empty = True
        code, out = _run(self.api, "instances", "list", "--year", "2024", "--semester", "1")
        self.assertEqual(code, 0)
        self.assertIn("No instances found", out)

    def test_instances_add_out_of_range_year(self) -> None:
        c = self.api.seed_course("Algorithms", "CS301")
        code, out = _run(self.api, "instances", "add", "--course", str(c.id), "--year", "1999", "--semester", "1")
        self.assertEqual(code, 1)
        self.assertIn("between 2000 and 2100", out)
        self.assertEqual(self.api.calls_to("create_instance"), [])

    def test_delete_course_with_yes(self) -> None:
        c = self.api.seed_course("Algorithms", "CS301")
        code, out = _run(self.api, "courses", "delete", str(c.id), "--yes")
        self.assertEqual(code, 0)
        self.assertIn(f"Deleted course {c.id}", out)
        self.assertNotIn(c.id, self.api.courses)

    def test_delete_course_failure_reports_error(self) -> None:
        c = self.api.seed_course("Algorithms", "CS301")
        self.api.fail["delete_course"] = RequestError("Course is referenced by existing instances", status=409)
        code, out = _run(self.api, "courses", "delete", str(c.id), "--yes")
        self.assertEqual(code, 1)
        self.assertIn("referenced", out)


if __name__ == "__main__":
    unittest.main()
