"""
CLI (Command Line Interface).

This module provides quick terminal commands for scripting and for testing, e.g.:

    coursedesk courses list
    coursedesk courses add --title Algorithms --code CS301 --description "..." --credits 4 --department CS
    coursedesk courses show <id>
    coursedesk courses delete <id> [--yes]
    coursedesk instances list [--year 2024] [--semester 1]
    coursedesk instances add --course <id> --year 2024 --semester 1
    coursedesk instances show <year> <semester> <id>
    coursedesk instances delete <id> [--yes]
    coursedesk interactive

Note:
- The interactive UI lives in coursedesk/interactive.py
- This CLI prints plain text (no rich formatting) so output is easy to grep
- Every command exits via SystemExit: 0 on success, 1 on failure
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Callable

from coursedesk.api import CourseApi
from coursedesk.config import load_settings, parse_timeout, setup_logging
from coursedesk.errors import ValidationError
from coursedesk.forms import parse_id
from coursedesk.home import HomeView, build_home, course_detail, instance_detail
from coursedesk.model import SEMESTERS, Course, Instance
from coursedesk.sync import ListSync

logger = logging.getLogger(__name__)


def course_line(c: Course) -> str:
    bits = [str(c.id), c.course_code or "(no code)", c.title or "(no title)"]
    if c.credits is not None:
        bits.append(f"{c.credits} credits")
    if c.department:
        bits.append(c.department)
    return " | ".join(bits)


def instance_line(i: Instance) -> str:
    if i.course_details is not None:
        course = f"{i.course_details.course_code} {i.course_details.title}".strip()
    else:
        course = ""
    course = course or f"course {i.course} (details unavailable)"
    return f"{i.id} | {i.year} Sem {i.semester} | {course}"


def _ask_confirm(prompt: str) -> bool:
    return input(f"{prompt} [y/N]: ").strip().lower() in ("y", "yes")


def _print_list(lst: ListSync, fmt: Callable, empty: str) -> int:
    if lst.error:
        print(lst.error)
        return 1
    if not lst.items:
        print(empty)
        return 0
    for item in lst.items:
        print(fmt(item))
    return 0


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _cmd_courses_list(args: argparse.Namespace, home: HomeView) -> int:
    await home.course_list.show()
    return _print_list(home.course_list, course_line, "No courses.")


async def _cmd_courses_add(args: argparse.Namespace, home: HomeView) -> int:
    ctl = home.create_course
    ctl.form.title = args.title or ""
    ctl.form.course_code = args.code or ""
    ctl.form.description = args.description or ""
    ctl.form.credits = args.credits
    ctl.form.department = args.department

    course = await ctl.submit()
    if course is None:
        print(ctl.error)
        return 1
    print(f"Created: {course_line(course)}")
    return 0


async def _cmd_courses_show(args: argparse.Namespace, home: HomeView) -> int:
    try:
        course_id = parse_id(args.id, "course")
    except ValidationError as exc:
        print(exc.message)
        return 1

    detail = course_detail(home.api, course_id)
    await detail.load()
    if detail.item is None:
        print(detail.error)
        return 1

    c = detail.item
    print(f"Title:       {c.title}")
    print(f"Code:        {c.course_code}")
    print(f"Credits:     {'' if c.credits is None else c.credits}")
    print(f"Department:  {c.department or ''}")
    print(f"Description: {c.description}")
    return 0


async def _delete(args: argparse.Namespace, lst: ListSync, delete: Callable, kind: str) -> int:
    try:
        item_id = parse_id(args.id, kind)
    except ValidationError as exc:
        print(exc.message)
        return 1

    await lst.show()
    if lst.error:
        print(lst.error)
        return 1

    if await delete(item_id):
        print(f"Deleted {kind} {item_id} ({len(lst.items)} left).")
        return 0
    if lst.error:
        print(lst.error)
        return 1
    print("Cancelled.")
    return 0


async def _cmd_courses_delete(args: argparse.Namespace, home: HomeView) -> int:
    return await _delete(args, home.course_list, home.delete_course.delete, "course")


async def _cmd_instances_list(args: argparse.Namespace, home: HomeView) -> int:
    home.instance_list.set_filters(args.year or "", args.semester or "")
    await home.instance_list.show()
    return _print_list(home.instance_list, instance_line, "No instances found for the selected year and semester.")


async def _cmd_instances_add(args: argparse.Namespace, home: HomeView) -> int:
    await home.start()
    if home.course_options.error:
        print(home.course_options.error)
        return 1

    ctl = home.create_instance
    try:
        ctl.form.course = parse_id(args.course, "course")
    except ValidationError:
        ctl.form.course = None
    ctl.form.year = args.year or ""
    ctl.form.semester = args.semester or ""

    instance = await ctl.submit()
    if instance is None:
        print(ctl.error)
        return 1
    print(f"Created: {instance_line(instance)}")
    return 0


async def _cmd_instances_show(args: argparse.Namespace, home: HomeView) -> int:
    try:
        instance_id = parse_id(args.id, "instance")
    except ValidationError as exc:
        print(exc.message)
        return 1

    detail = instance_detail(home.api, args.year, args.semester, instance_id)
    await detail.load()
    if detail.item is None:
        print(detail.error)
        return 1

    i = detail.item
    print(f"Instance:    {i.id}")
    print(f"Year:        {i.year}")
    print(f"Semester:    {i.semester}")
    if i.course_details is not None:
        print(f"Course:      {i.course_details.course_code} {i.course_details.title}")
        if i.course_details.description:
            print(f"Description: {i.course_details.description}")
    else:
        print(f"Course:      {i.course} (details unavailable)")
    return 0


async def _cmd_instances_delete(args: argparse.Namespace, home: HomeView) -> int:
    home.instance_list.set_filters(args.year or "", args.semester or "")
    return await _delete(args, home.instance_list, home.delete_instance.delete, "instance")


COMMANDS = {
    ("courses", "list"): _cmd_courses_list,
    ("courses", "add"): _cmd_courses_add,
    ("courses", "show"): _cmd_courses_show,
    ("courses", "delete"): _cmd_courses_delete,
    ("instances", "list"): _cmd_instances_list,
    ("instances", "add"): _cmd_instances_add,
    ("instances", "show"): _cmd_instances_show,
    ("instances", "delete"): _cmd_instances_delete,
}


def _timeout_arg(raw: str) -> float:
    value = parse_timeout(raw)
    if value is None:
        raise argparse.ArgumentTypeError(f"expected a positive number of seconds, got {raw!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="coursedesk", description="CourseDesk – course & instance admin console")
    parser.add_argument("--api-url", type=str, default=None, help="API base URL (env: COURSEDESK_API_URL)")
    parser.add_argument("--timeout", type=_timeout_arg, default=None, help="Request timeout in seconds")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every request")
    sub = parser.add_subparsers(dest="command", required=True)

    # courses
    p_courses = sub.add_parser("courses", help="Manage courses")
    csub = p_courses.add_subparsers(dest="action", required=True)

    csub.add_parser("list", help="List all courses")

    p_cadd = csub.add_parser("add", help="Create a course")
    p_cadd.add_argument("--title", type=str, default="")
    p_cadd.add_argument("--code", type=str, default="", help="Course code (e.g. CS301)")
    p_cadd.add_argument("--description", type=str, default="")
    p_cadd.add_argument("--credits", type=str, default="3")
    p_cadd.add_argument("--department", type=str, default="Computer Science")

    p_cshow = csub.add_parser("show", help="Show one course")
    p_cshow.add_argument("id", type=str)

    p_cdel = csub.add_parser("delete", help="Delete a course")
    p_cdel.add_argument("id", type=str)
    p_cdel.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    # instances
    p_inst = sub.add_parser("instances", help="Manage course instances")
    isub = p_inst.add_subparsers(dest="action", required=True)

    p_ilist = isub.add_parser("list", help="List instances")
    p_ilist.add_argument("--year", type=str, default="")
    p_ilist.add_argument("--semester", type=str, default="", help="One of: " + ", ".join(SEMESTERS))

    p_iadd = isub.add_parser("add", help="Create an instance")
    p_iadd.add_argument("--course", type=str, default="", help="Course id")
    p_iadd.add_argument("--year", type=str, default="")
    p_iadd.add_argument("--semester", type=str, default="", help="One of: " + ", ".join(SEMESTERS))

    p_ishow = isub.add_parser("show", help="Show one instance")
    p_ishow.add_argument("year", type=str)
    p_ishow.add_argument("semester", type=str)
    p_ishow.add_argument("id", type=str)

    p_idel = isub.add_parser("delete", help="Delete an instance")
    p_idel.add_argument("id", type=str)
    p_idel.add_argument("--year", type=str, default="")
    p_idel.add_argument("--semester", type=str, default="")
    p_idel.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


def main(argv: list[str] | None = None, api: CourseApi | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    if api is None:
        api = CourseApi.from_settings(load_settings(args.api_url, args.timeout))

    if args.command == "interactive":
        from coursedesk.interactive import run_interactive

        run_interactive(api)
        raise SystemExit(0)

    handler = COMMANDS.get((args.command, args.action))
    if handler is None:
        raise SystemExit(2)

    confirm = (lambda prompt: True) if getattr(args, "yes", False) else _ask_confirm
    home = build_home(api, confirm)
    raise SystemExit(asyncio.run(handler(args, home)))
