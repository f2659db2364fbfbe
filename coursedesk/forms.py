"""
Form state and the parse-and-validate boundary.

Form fields are held as text exactly as the user typed them. The only way to
turn a form into a request payload is parse_course_form() / parse_instance_form(),
which either return a typed payload or raise ValidationError. Nothing is
coerced silently: "4.5", "4abc" or " -1" are errors, not 4 or 1.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from coursedesk.errors import ValidationError
from coursedesk.model import MAX_YEAR, MIN_YEAR, SEMESTERS, Course, CourseCreate, InstanceCreate


DEFAULT_CREDITS = "3"
DEFAULT_DEPARTMENT = "Computer Science"

MSG_COURSE_REQUIRED = "All course fields are required."
MSG_CREDITS = "Credits must be a positive number."
MSG_INSTANCE_REQUIRED = "Course, Year, and Semester are required for an instance."
MSG_YEAR = f"Please enter a valid year between {MIN_YEAR} and {MAX_YEAR}."
MSG_SEMESTER = "Please choose a semester: " + ", ".join(SEMESTERS) + "."
MSG_COURSE_NOT_FOUND = "Selected course not found. Please try again."


@dataclass
class CourseForm:
    title: str = ""
    course_code: str = ""
    description: str = ""
    credits: str = DEFAULT_CREDITS
    department: str = DEFAULT_DEPARTMENT

    def reset(self) -> None:
        self.title = ""
        self.course_code = ""
        self.description = ""
        self.credits = DEFAULT_CREDITS
        self.department = DEFAULT_DEPARTMENT


@dataclass
class InstanceForm:
    # None means "no course selected"
    course: Optional[int] = None
    year: str = ""
    semester: str = ""

    def reset(self) -> None:
        self.course = None
        self.year = ""
        self.semester = ""

    def clear_course(self, course_id: int) -> bool:
        """
        Drop the course selection if it points at course_id.
        Returns True when something was cleared.
        """
        if self.course is not None and self.course == course_id:
            self.course = None
            return True
        return False


def parse_positive_int(text: str) -> Optional[int]:
    """
    Strict integer parsing: optional surrounding whitespace, digits only.
    Returns None for anything else (signs, decimals, trailing garbage).
    """
    s = (text or "").strip()
    if not s.isdigit() or not s.isascii():
        return None
    value = int(s)
    return value if value > 0 else None


def parse_id(text: str, kind: str = "course") -> int:
    value = parse_positive_int(text)
    if value is None:
        raise ValidationError(f"Invalid {kind} ID provided.")
    return value


def parse_course_form(form: CourseForm) -> CourseCreate:
    fields = [form.title, form.course_code, form.description, form.credits, form.department]
    if any(not (f or "").strip() for f in fields):
        raise ValidationError(MSG_COURSE_REQUIRED)

    credits = parse_positive_int(form.credits)
    if credits is None:
        raise ValidationError(MSG_CREDITS)

    return CourseCreate(
        title=form.title.strip(),
        course_code=form.course_code.strip(),
        description=form.description.strip(),
        credits=credits,
        department=form.department.strip(),
    )


def parse_year(text: str) -> int:
    year = parse_positive_int(text)
    if year is None or not (MIN_YEAR <= year <= MAX_YEAR):
        raise ValidationError(MSG_YEAR)
    return year


def parse_semester(text: str) -> str:
    s = (text or "").strip()
    if s not in SEMESTERS:
        raise ValidationError(MSG_SEMESTER)
    return s


def parse_instance_form(form: InstanceForm, known_courses: Iterable[Course]) -> InstanceCreate:
    """
    Validate an instance form against the courses currently offered for selection.

    The course reference must resolve to a persisted course in known_courses,
    otherwise the selection is stale (e.g. the course was deleted meanwhile).
    """
    if form.course is None or not (form.year or "").strip() or not (form.semester or "").strip():
        raise ValidationError(MSG_INSTANCE_REQUIRED)

    year = parse_year(form.year)
    semester = parse_semester(form.semester)

    if not any(c.id == form.course for c in known_courses):
        raise ValidationError(MSG_COURSE_NOT_FOUND)

    return InstanceCreate(course=form.course, year=year, semester=semester)
