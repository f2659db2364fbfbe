"""
Gateway tests.

The real requests.Session is kept, only Session.request is replaced, so the
URLs, query params and JSON bodies the gateway produces are checked exactly.
"""

import asyncio
import json
import threading
import time
import unittest
from typing import Any, Optional
from unittest.mock import patch

import requests

from coursedesk.api import CourseApi
from coursedesk.errors import DecodeError, NotFoundError, RequestError
from coursedesk.model import CourseCreate, InstanceCreate
from coursedesk.sync import ListSync, LoadState


BASE = "http://api.test"

COURSE_7 = {
    "id": 7,
    "title": "Algorithms",
    "course_code": "CS301",
    "description": "...",
    "credits": 4,
    "department": "CS",
}


def _response(status: int, body: Any = None, reason: str = "", raw: Optional[bytes] = None) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason
    resp.encoding = "utf-8"
    if raw is not None:
        resp._content = raw
    elif body is None:
        resp._content = b""
    else:
        resp._content = json.dumps(body).encode("utf-8")
    return resp


class TestCourseApi(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.api = CourseApi(base_url=BASE + "/", timeout=5)

    def tearDown(self) -> None:
        self.api.close()

    def _patch(self, *responses: Any):
        return patch.object(self.api.session, "request", side_effect=list(responses))

    async def test_list_courses(self) -> None:
        with self._patch(_response(200, [COURSE_7])) as req:
            courses = await self.api.list_courses()
        self.assertEqual([c.id for c in courses], [7])
        args, kwargs = req.call_args
        self.assertEqual(args, ("GET", f"{BASE}/courses"))
        self.assertEqual(kwargs["timeout"], 5)

    async def test_repeated_list_is_stable(self) -> None:
        with self._patch(_response(200, [COURSE_7]), _response(200, [COURSE_7])):
            first = await self.api.list_courses()
            second = await self.api.list_courses()
        self.assertEqual(set(first), set(second))

    async def test_create_course_sends_payload_without_id(self) -> None:
        payload = CourseCreate("Algorithms", "CS301", "...", 4, "CS")
        with self._patch(_response(201, COURSE_7)) as req:
            course = await self.api.create_course(payload)
        self.assertEqual(course.id, 7)
        _, kwargs = req.call_args
        self.assertEqual(kwargs["json"], payload.to_json())

    async def test_server_detail_becomes_message(self) -> None:
        payload = CourseCreate("Algorithms", "CS301", "...", 4, "CS")
        with self._patch(_response(400, {"detail": "Course code already exists"}, reason="Bad Request")):
            with self.assertRaises(RequestError) as ctx:
                await self.api.create_course(payload)
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.detail, "Course code already exists")
        self.assertEqual(ctx.exception.message, "Course code already exists")

    async def test_validation_detail_list_is_joined(self) -> None:
        body = {"detail": [{"msg": "field required"}, {"msg": "value is not a valid integer"}]}
        with self._patch(_response(422, body, reason="Unprocessable Entity")):
            with self.assertRaises(RequestError) as ctx:
                await self.api.list_courses()
        self.assertEqual(ctx.exception.message, "field required; value is not a valid integer")

    async def test_no_body_falls_back_to_status_text(self) -> None:
        with self._patch(_response(500, reason="Internal Server Error")):
            with self.assertRaises(RequestError) as ctx:
                await self.api.list_courses()
        self.assertNotIsInstance(ctx.exception, NotFoundError)
        self.assertEqual(ctx.exception.status, 500)
        self.assertEqual(ctx.exception.message, "Failed to fetch courses: Internal Server Error")

    async def test_get_course_404_is_not_found(self) -> None:
        with self._patch(_response(404, reason="Not Found")) as req:
            with self.assertRaises(NotFoundError) as ctx:
                await self.api.get_course(99)
        self.assertEqual(req.call_args[0], ("GET", f"{BASE}/courses/99"))
        self.assertEqual(ctx.exception.status, 404)

    async def test_transport_failure(self) -> None:
        with self._patch(requests.ConnectionError("connection refused")):
            with self.assertRaises(RequestError) as ctx:
                await self.api.list_courses()
        self.assertIsNone(ctx.exception.status)
        self.assertIn("connection refused", ctx.exception.message)

    async def test_timeout_is_request_error(self) -> None:
        with self._patch(requests.Timeout("read timed out")):
            with self.assertRaises(RequestError):
                await self.api.delete_course(7)

    async def test_invalid_json_is_decode_error(self) -> None:
        with self._patch(_response(200, raw=b"<html>oops</html>")):
            with self.assertRaises(DecodeError) as ctx:
                await self.api.list_courses()
        self.assertIsInstance(ctx.exception, RequestError)

    async def test_wrong_shape_is_decode_error(self) -> None:
        with self._patch(_response(200, {"courses": []})):
            with self.assertRaises(DecodeError):
                await self.api.list_courses()

    async def test_bad_field_in_listing_settles_list_as_errored(self) -> None:
        bad = {"id": 3, "course": 7, "year": "²", "semester": "1"}
        lst = ListSync("instances", self.api.list_instances)
        with self._patch(_response(200, [bad])):
            ok = await lst.load()
        self.assertFalse(ok)
        self.assertIs(lst.state, LoadState.ERRORED)
        self.assertEqual(lst.error, "Failed to fetch instances: unexpected response format")

    async def test_overlapping_calls_take_turns_on_the_session(self) -> None:
        active = 0
        peak = 0
        guard = threading.Lock()

        def slow_request(*args: Any, **kwargs: Any) -> requests.Response:
            nonlocal active, peak
            with guard:
                active += 1
                peak = max(peak, active)
            time.sleep(0.05)
            with guard:
                active -= 1
            return _response(200, [COURSE_7])

        with patch.object(self.api.session, "request", side_effect=slow_request) as req:
            results = await asyncio.gather(*(self.api.list_courses() for _ in range(3)))

        self.assertEqual(req.call_count, 3)
        self.assertEqual(peak, 1)
        self.assertEqual([[c.id for c in r] for r in results], [[7], [7], [7]])

    async def test_list_instances_params(self) -> None:
        with self._patch(_response(200, []), _response(200, [])) as req:
            await self.api.list_instances()
            await self.api.list_instances("2024", "Summer")
        first, second = req.call_args_list
        self.assertEqual(first[1]["params"], {"include_course": "true"})
        self.assertEqual(second[1]["params"], {"year": "2024", "semester": "Summer", "include_course": "true"})

    async def test_create_instance_requests_embedded_course(self) -> None:
        body = {
            "id": 3,
            "course": 7,
            "year": 2024,
            "semester": "1",
            "course_details": COURSE_7,
        }
        with self._patch(_response(201, body)) as req:
            inst = await self.api.create_instance(InstanceCreate(course=7, year=2024, semester="1"))
        self.assertTrue(req.call_args[1]["json"]["include_course"])
        assert inst.course_details is not None
        self.assertEqual(inst.course_details.id, 7)

    async def test_get_instance_path(self) -> None:
        body = {"id": 3, "course": 7, "year": 2024, "semester": "1", "course_details": COURSE_7}
        with self._patch(_response(200, body)) as req:
            inst = await self.api.get_instance(2024, "1", 3)
        self.assertEqual(req.call_args[0], ("GET", f"{BASE}/instances/2024/1/3"))
        self.assertEqual(inst.id, 3)

    async def test_delete_accepts_empty_body(self) -> None:
        with self._patch(_response(204)) as req:
            result = await self.api.delete_instance(3)
        self.assertIsNone(result)
        self.assertEqual(req.call_args[0], ("DELETE", f"{BASE}/instances/3"))


if __name__ == "__main__":
    unittest.main()
