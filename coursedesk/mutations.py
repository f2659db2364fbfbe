"""
Mutation controllers: create and delete.

Create:
- the form is validated locally first; invalid input never reaches the gateway
- the form is only reset after the server confirmed the create
- on failure the user's input stays untouched

Delete:
- asks for confirmation, declining changes nothing
- removes the row optimistically, then calls the gateway
- rolls the row back if the gateway call fails
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from coursedesk.api import CourseApi
from coursedesk.consistency import COURSE_CREATED, COURSE_DELETED, MutationEvents
from coursedesk.errors import CourseDeskError, ValidationError, describe, strip_create_instance_prefix
from coursedesk.forms import CourseForm, InstanceForm, parse_course_form, parse_instance_form
from coursedesk.model import Course, Instance
from coursedesk.optimistic import OptimisticRemoval
from coursedesk.sync import HasId, ListSync

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=HasId)

ConfirmFn = Callable[[str], bool]


class SubmitStatus(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class _CreateBase:
    def __init__(self) -> None:
        self.status = SubmitStatus.IDLE
        self.error: Optional[str] = None

    @property
    def submitting(self) -> bool:
        return self.status is SubmitStatus.SUBMITTING

    @property
    def succeeded(self) -> bool:
        return self.status is SubmitStatus.SUCCEEDED

    def acknowledge(self) -> None:
        """The success notice was shown; go back to idle."""
        if self.status is SubmitStatus.SUCCEEDED:
            self.status = SubmitStatus.IDLE

    def _reject(self, message: str) -> None:
        self.error = message
        self.status = SubmitStatus.FAILED


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class CreateCourseController(_CreateBase):
    def __init__(self, api: CourseApi, course_list: ListSync[Course], events: MutationEvents) -> None:
        super().__init__()
        self.api = api
        self.course_list = course_list
        self.events = events
        self.form = CourseForm()
        self.last_created: Optional[Course] = None

    async def submit(self) -> Optional[Course]:
        self.error = None
        try:
            payload = parse_course_form(self.form)
        except ValidationError as exc:
            self._reject(exc.message)
            return None

        self.status = SubmitStatus.SUBMITTING
        try:
            course = await self.api.create_course(payload)
        except CourseDeskError as exc:
            self._reject(describe(exc, "Failed to create course."))
            return None

        self.form.reset()
        self.last_created = course
        self.status = SubmitStatus.SUCCEEDED
        logger.info("Created course %s (%s)", course.id, course.course_code)

        await self.events.publish(COURSE_CREATED, course=course)
        await self.course_list.refresh_if_visible()
        return course


class CreateInstanceController(_CreateBase):
    """
    course_options is the course list backing the course selection; a
    selection is only valid while that list still contains the course.
    """

    def __init__(
        self,
        api: CourseApi,
        course_options: ListSync[Course],
        instance_list: ListSync[Instance],
        form: Optional[InstanceForm] = None,
    ) -> None:
        super().__init__()
        self.api = api
        self.course_options = course_options
        self.instance_list = instance_list
        self.form = form if form is not None else InstanceForm()
        self.last_created: Optional[Instance] = None

    async def submit(self) -> Optional[Instance]:
        self.error = None
        try:
            payload = parse_instance_form(self.form, self.course_options.items)
        except ValidationError as exc:
            self._reject(exc.message)
            return None

        self.status = SubmitStatus.SUBMITTING
        try:
            instance = await self.api.create_instance(payload)
        except CourseDeskError as exc:
            self._reject(strip_create_instance_prefix(describe(exc, "Failed to create instance.")))
            return None

        if instance.course_details is None or not instance.course_details.title:
            logger.warning("Created instance %s is missing course details", instance.id)

        self.form.reset()
        self.last_created = instance
        self.status = SubmitStatus.SUCCEEDED
        logger.info("Created instance %s (%s %s)", instance.id, instance.year, instance.semester)

        await self.instance_list.refresh_if_visible()
        return instance


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


def course_delete_prompt(course: Course) -> str:
    return "Are you sure you want to delete this course?"


def instance_delete_prompt(instance: Instance) -> str:
    title = instance.course_title or "this instance"
    return f"Are you sure you want to delete {title} - {instance.year} Sem {instance.semester}?"


class DeleteController(Generic[T]):
    """
    Delete one row of a list controller.

    refresh_after: after a successful delete, re-fetch the list (if visible)
    to reconcile with the server. Without it the optimistic copy is kept.
    topic: if set, published on events with <id_field>=<id> after success.
    """

    def __init__(
        self,
        kind: str,
        remove: Callable[[int], Awaitable[None]],
        target: ListSync[T],
        confirm: ConfirmFn,
        prompt: Callable[[T], str],
        refresh_after: bool = True,
        events: Optional[MutationEvents] = None,
        topic: Optional[str] = None,
        id_field: str = "id",
    ) -> None:
        self.kind = kind
        self._remove = remove
        self.target = target
        self.confirm = confirm
        self.prompt = prompt
        self.refresh_after = refresh_after
        self.events = events
        self.topic = topic
        self.id_field = id_field

    async def delete(self, item_id: int) -> bool:
        """
        Returns True if the item was deleted on the server.
        """
        item = self.target.find(item_id)
        if item is None:
            self.target.set_error(f"Cannot delete {self.kind} {item_id}: not in the current list.")
            return False

        if not self.confirm(self.prompt(item)):
            logger.debug("Delete of %s %s declined", self.kind, item_id)
            return False

        txn = OptimisticRemoval(self.target, item_id)
        txn.apply()
        self.target.set_error(None)

        try:
            await self._remove(item_id)
        except CourseDeskError as exc:
            txn.revert()
            self.target.set_error(describe(exc, f"Failed to delete {self.kind}."))
            logger.info("Delete of %s %s failed, rolled back: %s", self.kind, item_id, exc)
            return False

        txn.commit()
        logger.info("Deleted %s %s", self.kind, item_id)

        if self.events is not None and self.topic:
            await self.events.publish(self.topic, **{self.id_field: item_id})
        if self.refresh_after:
            await self.target.refresh_if_visible()
        return True


def course_deleter(
    api: CourseApi,
    course_list: ListSync[Course],
    confirm: ConfirmFn,
    events: MutationEvents,
    refresh_after: bool = True,
) -> DeleteController[Course]:
    return DeleteController(
        "course",
        api.delete_course,
        course_list,
        confirm,
        course_delete_prompt,
        refresh_after=refresh_after,
        events=events,
        topic=COURSE_DELETED,
        id_field="course_id",
    )


def instance_deleter(
    api: CourseApi,
    instance_list: ListSync[Instance],
    confirm: ConfirmFn,
    refresh_after: bool = True,
) -> DeleteController[Instance]:
    return DeleteController(
        "instance",
        api.delete_instance,
        instance_list,
        confirm,
        instance_delete_prompt,
        refresh_after=refresh_after,
    )

