"""
Central data model definitions used across the project.

This module defines the canonical structure of Course and Instance objects so that:
- the gateway, the controllers and the UI share the same field names
- JSON decoding happens in exactly one place
- an entity is either unsaved (id is None) or persisted (id is set, never changed)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from coursedesk.errors import DecodeError

logger = logging.getLogger(__name__)


SEMESTERS = ("1", "2", "Summer", "Winter")

MIN_YEAR = 2000
MAX_YEAR = 2100


def _opt_int(value: Any) -> Optional[int]:
    # bool is an int subclass; a JSON true is not an id
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    # isdigit() alone also accepts digits int() rejects, such as "²"
    if isinstance(value, str) and value.strip().isdigit() and value.strip().isascii():
        return int(value.strip())
    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class Course:
    """
    Represents one catalog course as returned by /courses.
    """

    id: Optional[int]
    title: str
    course_code: str
    description: str = ""
    credits: Optional[int] = None
    department: Optional[str] = None

    @property
    def persisted(self) -> bool:
        return self.id is not None

    @classmethod
    def from_dict(cls, data: Any) -> "Course":
        if not isinstance(data, dict):
            raise DecodeError(f"Expected a course object, got {type(data).__name__}")
        department = data.get("department")
        return cls(
            id=_opt_int(data.get("id")),
            title=_text(data.get("title")),
            course_code=_text(data.get("course_code")),
            description=_text(data.get("description")),
            credits=_opt_int(data.get("credits")),
            department=None if department is None else str(department),
        )


@dataclass(frozen=True)
class Instance:
    """
    One offering of a course in a given year and semester.

    course_details is the denormalized copy of the referenced course, present
    when the server honoured include_course. It is never allowed to disagree
    with `course`.
    """

    id: Optional[int]
    course: int
    year: int
    semester: str
    course_details: Optional[Course] = None

    @property
    def persisted(self) -> bool:
        return self.id is not None

    @property
    def course_title(self) -> str:
        if self.course_details and self.course_details.title:
            return self.course_details.title
        return ""

    @classmethod
    def from_dict(cls, data: Any) -> "Instance":
        if not isinstance(data, dict):
            raise DecodeError(f"Expected an instance object, got {type(data).__name__}")

        course_id = _opt_int(data.get("course"))
        if course_id is None:
            raise DecodeError(f"Instance without a course reference: {data!r}")
        year = _opt_int(data.get("year"))
        if year is None:
            raise DecodeError(f"Instance without a valid year: {data!r}")

        details: Optional[Course] = None
        raw_details = data.get("course_details")
        if isinstance(raw_details, dict):
            details = Course.from_dict(raw_details)
            if details.id is not None and details.id != course_id:
                logger.warning(
                    "Discarding course_details of instance %s: embedded id %s != course %s",
                    data.get("id"),
                    details.id,
                    course_id,
                )
                details = None

        if details is None or not details.title or not details.course_code:
            logger.warning("Instance %s is missing course data", data.get("id"))

        return cls(
            id=_opt_int(data.get("id")),
            course=course_id,
            year=year,
            semester=_text(data.get("semester")),
            course_details=details,
        )


@dataclass(frozen=True)
class CourseCreate:
    """Validated fields for POST /courses (never carries an id)."""

    title: str
    course_code: str
    description: str
    credits: int
    department: str

    def to_json(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "course_code": self.course_code,
            "description": self.description,
            "credits": self.credits,
            "department": self.department,
        }


@dataclass(frozen=True)
class InstanceCreate:
    """Validated fields for POST /instances."""

    course: int
    year: int
    semester: str

    def to_json(self) -> dict[str, Any]:
        return {
            "course": self.course,
            "year": self.year,
            "semester": self.semester,
            "include_course": True,
        }
