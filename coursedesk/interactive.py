from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Optional, TypeVar

from rich import box
from rich.console import Console
from rich.table import Table

from coursedesk.api import CourseApi
from coursedesk.errors import ValidationError
from coursedesk.forms import parse_id
from coursedesk.home import HomeView, build_home, course_detail, instance_detail
from coursedesk.model import SEMESTERS, Course, Instance
from coursedesk.sync import ListSync, LoadState

logger = logging.getLogger(__name__)

console = Console()

R = TypeVar("R")


def _println(msg: str = "") -> None:
    console.print(msg)


def _prompt(msg: str) -> str:
    return console.input(msg)


def _run(coro: Coroutine[Any, Any, R]) -> R:
    return asyncio.run(coro)


def _safe_str(x: Any) -> str:
    return "" if x is None else str(x)


def _confirm(prompt: str) -> bool:
    return _prompt(f"{prompt} [y/N]: ").strip().lower() in ("y", "yes")


def _ask(label: str, current: str) -> str:
    """
    Prompt for one form field. Blank keeps the current value.
    """
    shown = f" [{current}]" if current else ""
    answer = _prompt(f"{label}{shown}: ").strip()
    return answer if answer else current


def run_interactive(api: CourseApi) -> None:
    """
    Interactive menu loop over one HomeView.
    """
    home = build_home(api, _confirm)
    _run(home.start())

    while True:
        _print_header(home)

        choice = _prompt(
            "\n[1] Create course\n"
            "[2] List courses\n"
            "[3] View course\n"
            "[4] Delete course\n"
            "[5] Create instance\n"
            "[6] List instances\n"
            "[7] View instance\n"
            "[8] Delete instance\n"
            "[0] Exit\n"
            "Select: "
        ).strip()

        if choice == "0":
            _println("Bye.")
            return

        if choice == "1":
            _flow_create_course(home)
        elif choice == "2":
            _flow_list_courses(home)
        elif choice == "3":
            _flow_view_course(home)
        elif choice == "4":
            _flow_delete_course(home)
        elif choice == "5":
            _flow_create_instance(home)
        elif choice == "6":
            _flow_list_instances(home)
        elif choice == "7":
            _flow_view_instance(home)
        elif choice == "8":
            _flow_delete_instance(home)
        else:
            _println("Invalid choice.")


def _print_header(home: HomeView) -> None:
    _println("\n=== CourseDesk (interactive) ===")
    _println(f"API: {home.api.base_url}")

    opts = home.course_options
    if opts.state is LoadState.ERRORED:
        _println(f"[red]Courses unavailable:[/] {opts.error}")
    else:
        _println(f"Courses: {len(opts.items)}")

    pending = home.instance_form.course
    if pending is not None:
        c = opts.find(pending)
        label = c.course_code if c else str(pending)
        _println(f"Pending instance form: course {label}")


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def _courses_table(courses: list[Course], title: str) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("ID", justify="right")
    table.add_column("Code", style="bold cyan")
    table.add_column("Title")
    table.add_column("Credits", justify="right")
    table.add_column("Department", style="green")
    for n, c in enumerate(courses, start=1):
        table.add_row(
            str(n),
            _safe_str(c.id),
            c.course_code,
            c.title or "(no title)",
            _safe_str(c.credits),
            _safe_str(c.department),
        )
    return table


def _instances_table(instances: list[Instance], title: str) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("ID", justify="right")
    table.add_column("Course", style="bold cyan")
    table.add_column("Title")
    table.add_column("Year", justify="right")
    table.add_column("Semester")
    for n, i in enumerate(instances, start=1):
        if i.course_details is not None:
            code = i.course_details.course_code
            ctitle = i.course_details.title
        else:
            code = f"#{i.course}"
            ctitle = "[yellow](details unavailable)[/]"
        table.add_row(str(n), _safe_str(i.id), code, ctitle, str(i.year), i.semester)
    return table


def _show_list(lst: ListSync, table: Table, empty: str) -> None:
    if lst.error:
        _println(f"[red]{lst.error}[/]")
    if lst.items:
        console.print(table)
    elif lst.state is LoadState.READY:
        _println(empty)


def _pick(lst: ListSync, label: str) -> Optional[int]:
    """
    Let the user choose a row by its number. Returns the row's id.
    """
    pick = _prompt(f"Enter number to {label} (or blank to cancel): ").strip()
    if not pick:
        return None
    if not pick.isdigit():
        _println("Not a number.")
        return None
    n = int(pick)
    if not (1 <= n <= len(lst.items)):
        _println("Out of range.")
        return None
    return lst.items[n - 1].id


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------


def _flow_create_course(home: HomeView) -> None:
    """
    Fill the course form and submit. A failed submit keeps what was typed,
    so "try again" only needs the broken field fixed.
    """
    ctl = home.create_course
    form = ctl.form

    while True:
        form.title = _ask("Title", form.title)
        form.course_code = _ask("Course code", form.course_code)
        form.description = _ask("Description", form.description)
        form.credits = _ask("Credits", form.credits)
        form.department = _ask("Department", form.department)

        course = _run(ctl.submit())
        if course is not None:
            _println(f"[green]Created course[/] {course.course_code} (id {course.id}).")
            ctl.acknowledge()
            return

        _println(f"[red]{ctl.error}[/]")
        again = _prompt("Try again? [Y/n]: ").strip().lower()
        if again == "n":
            return


def _flow_list_courses(home: HomeView) -> None:
    _run(home.course_list.show())
    _show_list(home.course_list, _courses_table(home.course_list.items, "Courses"), "No courses.")


def _flow_view_course(home: HomeView) -> None:
    raw = _prompt("Course ID: ").strip()
    try:
        course_id = parse_id(raw, "course")
    except ValidationError as exc:
        _println(exc.message)
        return

    detail = course_detail(home.api, course_id)
    _run(detail.load())
    if detail.item is None:
        _println(f"[red]{detail.error}[/]")
        return

    c = detail.item
    _println(f"\n[bold]{c.title}[/] ({c.course_code})")
    _println(f"Credits: {_safe_str(c.credits)} | Department: {_safe_str(c.department)}")
    _println(c.description or "(no description)")


def _flow_delete_course(home: HomeView) -> None:
    lst = home.course_list
    if not lst.visible:
        _run(lst.show())

    while True:
        if not lst.items:
            _show_list(lst, _courses_table([], "Delete course"), "No courses.")
            return

        console.print(_courses_table(lst.items, "Delete course"))
        course_id = _pick(lst, "delete")
        if course_id is None:
            return

        if _run(home.delete_course.delete(course_id)):
            _println(f"Deleted course {course_id}.")
        elif lst.error:
            _println(f"[red]{lst.error}[/]")

        more = _prompt("Delete another course? [y/N]: ").strip().lower()
        if more != "y":
            return


# ---------------------------------------------------------------------------
# Instances
# ---------------------------------------------------------------------------


def _flow_create_instance(home: HomeView) -> None:
    ctl = home.create_instance
    opts = home.course_options
    form = ctl.form

    if opts.state is not LoadState.READY:
        _run(opts.load())
    if opts.error:
        _println(f"[red]{opts.error}[/]")
        return
    if not opts.items:
        _println("No courses yet. Create a course first.")
        return

    while True:
        console.print(_courses_table(opts.items, "Choose course"))
        current = opts.find(form.course) if form.course is not None else None
        hint = f" [{current.course_code}]" if current else ""
        pick = _prompt(f"Course number{hint}: ").strip()
        if pick:
            if pick.isdigit() and 1 <= int(pick) <= len(opts.items):
                form.course = opts.items[int(pick) - 1].id
            else:
                _println("Out of range.")
                continue

        form.year = _ask("Year", form.year)
        form.semester = _ask("Semester (" + ", ".join(SEMESTERS) + ")", form.semester)

        instance = _run(ctl.submit())
        if instance is not None:
            title = instance.course_title or f"course {instance.course}"
            _println(f"[green]Created instance[/] {title} {instance.year} Sem {instance.semester} (id {instance.id}).")
            ctl.acknowledge()
            return

        _println(f"[red]{ctl.error}[/]")
        again = _prompt("Try again? [Y/n]: ").strip().lower()
        if again == "n":
            return


def _flow_list_instances(home: HomeView) -> None:
    lst = home.instance_list
    year = _ask("Filter year (blank = any)", lst.year)
    semester = _ask("Filter semester (blank = any)", lst.semester)
    lst.set_filters(year, semester)

    _run(lst.show())
    _show_list(
        lst,
        _instances_table(lst.items, "Instances"),
        "No instances found for the selected year and semester.",
    )


def _flow_view_instance(home: HomeView) -> None:
    year = _prompt("Year: ").strip()
    semester = _prompt("Semester: ").strip()
    raw = _prompt("Instance ID: ").strip()
    if not year or not semester:
        _println("Missing required parameters")
        return
    try:
        instance_id = parse_id(raw, "instance")
    except ValidationError as exc:
        _println(exc.message)
        return

    detail = instance_detail(home.api, year, semester, instance_id)
    _run(detail.load())
    if detail.item is None:
        _println(f"[red]{detail.error}[/]")
        return

    i = detail.item
    if i.course_details is not None:
        _println(f"\n[bold]{i.course_details.title}[/] ({i.course_details.course_code})")
        _println(i.course_details.description or "(no description)")
    else:
        _println(f"\nCourse {i.course} (details unavailable)")
    _println(f"Year: {i.year} | Semester: {i.semester}")


def _flow_delete_instance(home: HomeView) -> None:
    lst = home.instance_list
    if not lst.visible:
        _flow_list_instances(home)

    while True:
        if not lst.items:
            return

        console.print(_instances_table(lst.items, "Delete instance"))
        instance_id = _pick(lst, "delete")
        if instance_id is None:
            return

        if _run(home.delete_instance.delete(instance_id)):
            _println(f"Deleted instance {instance_id}.")
        elif lst.error:
            _println(f"[red]{lst.error}[/]")

        more = _prompt("Delete another instance? [y/N]: ").strip().lower()
        if more != "y":
            return
