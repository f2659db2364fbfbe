"""
One console "page": the controllers a session works with, wired together.

Each HomeView owns its own collections; nothing is shared between views
except the gateway.
"""

from __future__ import annotations

from dataclasses import dataclass

from coursedesk.api import CourseApi
from coursedesk.consistency import CourseConsistencyRule, MutationEvents
from coursedesk.forms import InstanceForm
from coursedesk.model import Course, Instance
from coursedesk.mutations import (
    ConfirmFn,
    CreateCourseController,
    CreateInstanceController,
    DeleteController,
    course_deleter,
    instance_deleter,
)
from coursedesk.sync import DetailSync, InstanceListSync, ListSync


@dataclass
class HomeView:
    api: CourseApi
    events: MutationEvents
    # courses shown in the course table
    course_list: ListSync[Course]
    # courses offered in the instance form's course selection
    course_options: ListSync[Course]
    instance_list: InstanceListSync
    instance_form: InstanceForm
    create_course: CreateCourseController
    create_instance: CreateInstanceController
    delete_course: DeleteController[Course]
    delete_instance: DeleteController[Instance]
    rule: CourseConsistencyRule

    async def start(self) -> None:
        """Populate the course selection, as the page does when it opens."""
        await self.course_options.load()


def build_home(api: CourseApi, confirm: ConfirmFn, refresh_after_delete: bool = True) -> HomeView:
    events = MutationEvents()
    course_list: ListSync[Course] = ListSync("courses", api.list_courses)
    course_options: ListSync[Course] = ListSync("courses", api.list_courses)
    instance_list = InstanceListSync(api.list_instances)
    instance_form = InstanceForm()

    return HomeView(
        api=api,
        events=events,
        course_list=course_list,
        course_options=course_options,
        instance_list=instance_list,
        instance_form=instance_form,
        create_course=CreateCourseController(api, course_list, events),
        create_instance=CreateInstanceController(api, course_options, instance_list, instance_form),
        delete_course=course_deleter(api, course_list, confirm, events, refresh_after=refresh_after_delete),
        delete_instance=instance_deleter(api, instance_list, confirm, refresh_after=refresh_after_delete),
        rule=CourseConsistencyRule(events, course_options, instance_form),
    )


def course_detail(api: CourseApi, course_id: int) -> DetailSync[Course]:
    return DetailSync("Course", lambda: api.get_course(course_id))


def instance_detail(api: CourseApi, year: str, semester: str, instance_id: int) -> DetailSync[Instance]:
    return DetailSync("Instance", lambda: api.get_instance(year, semester, instance_id))
