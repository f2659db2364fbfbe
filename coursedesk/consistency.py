"""
Cross-entity consistency.

Course mutations are announced on a MutationEvents hub. CourseConsistencyRule
reacts to them so that everything derived from the course set stays current:

- the course list that feeds the instance form's course selection is reloaded
- a pending instance form selection pointing at a deleted course is cleared
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable

from coursedesk.forms import InstanceForm
from coursedesk.model import Course
from coursedesk.sync import ListSync

logger = logging.getLogger(__name__)

COURSE_CREATED = "course_created"
COURSE_DELETED = "course_deleted"

Handler = Callable[..., Awaitable[Any]]


class MutationEvents:
    """
    Minimal async publish/subscribe hub, one per HomeView.
    Handlers run in subscription order and are awaited one after another.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> None:
        self._handlers[topic].append(handler)

    async def publish(self, topic: str, **payload: Any) -> None:
        handlers = list(self._handlers.get(topic, []))
        logger.debug("publish %s %s -> %d handler(s)", topic, payload, len(handlers))
        for handler in handlers:
            await handler(**payload)


class CourseConsistencyRule:
    def __init__(self, events: MutationEvents, course_options: ListSync[Course], instance_form: InstanceForm) -> None:
        self.course_options = course_options
        self.instance_form = instance_form
        events.subscribe(COURSE_CREATED, self.on_course_created)
        events.subscribe(COURSE_DELETED, self.on_course_deleted)

    async def on_course_created(self, course: Course) -> None:
        await self.course_options.load()

    async def on_course_deleted(self, course_id: int) -> None:
        # clear first: the form must never point at a deleted course,
        # not even while the options are reloading
        if self.instance_form.clear_course(course_id):
            logger.info("Cleared instance form selection of deleted course %s", course_id)
        await self.course_options.load()
