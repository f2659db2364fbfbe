"""
Remote Data Gateway.

Typed request/response functions for the Course and Instance endpoints:

    GET    /courses
    POST   /courses
    GET    /courses/{id}
    DELETE /courses/{id}
    GET    /instances?year=&semester=&include_course=true
    POST   /instances
    GET    /instances/{year}/{semester}/{id}
    DELETE /instances/{id}

Every public method is a coroutine. The blocking requests call runs in a
worker thread so the event loop is never blocked. Calls are single-shot
(no retry) and every failure, whether transport, HTTP status or JSON, is
raised as a RequestError (or one of its subclasses).
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable, List, Optional, TypeVar

import requests

from coursedesk.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, Settings
from coursedesk.errors import DecodeError, NotFoundError, RequestError
from coursedesk.model import Course, CourseCreate, Instance, InstanceCreate

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _format_detail(detail: Any) -> Optional[str]:
    """
    Server error bodies look like {"detail": "..."}.

    FastAPI style validation errors carry a list of {"msg": ...} objects
    instead of a string; those are joined into one line.
    """
    if isinstance(detail, str):
        return detail.strip() or None
    if isinstance(detail, list):
        msgs: List[str] = []
        for item in detail:
            if isinstance(item, dict) and item.get("msg"):
                msgs.append(str(item["msg"]))
            elif isinstance(item, str):
                msgs.append(item)
        return "; ".join(msgs) or None
    return None


def _error_detail(resp: requests.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    return _format_detail(body.get("detail"))


def _error_for(resp: requests.Response, action: str) -> RequestError:
    detail = _error_detail(resp)
    reason = (resp.reason or "").strip() or f"HTTP {resp.status_code}"
    message = detail or f"{action}: {reason}"
    if resp.status_code == 404:
        return NotFoundError(message, detail=detail)
    return RequestError(message, status=resp.status_code, detail=detail)


def _decode_list(data: Any, decode: Callable[[Any], T], action: str) -> List[T]:
    if not isinstance(data, list):
        raise DecodeError(f"{action}: unexpected response format")
    try:
        return [decode(item) for item in data]
    except (DecodeError, TypeError, ValueError) as exc:
        logger.warning("%s: %s", action, exc)
        raise DecodeError(f"{action}: unexpected response format") from exc


def _decode_one(data: Any, decode: Callable[[Any], T], action: str) -> T:
    try:
        return decode(data)
    except (DecodeError, TypeError, ValueError) as exc:
        logger.warning("%s: %s", action, exc)
        raise DecodeError(f"{action}: unexpected response format") from exc


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class CourseApi:
    """
    Client for the course administration REST API.

    The gateway holds no entity state; each call is independent.
    requests.Session is not thread-safe, so worker threads take turns on it:
    overlapping calls are allowed but reach the server one at a time.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.session.headers.setdefault("Accept", "application/json")
        self._session_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "CourseApi":
        return cls(base_url=settings.base_url, timeout=settings.timeout)

    def close(self) -> None:
        self.session.close()

    # -- transport ----------------------------------------------------------

    def _call(
        self,
        method: str,
        path: str,
        action: str,
        params: Optional[dict[str, str]] = None,
        body: Optional[dict[str, Any]] = None,
        expect_body: bool = True,
    ) -> Any:
        """
        Perform one HTTP request and return the decoded JSON body.

        Blocking; only ever called through _run().
        """
        url = f"{self.base_url}{path}"
        logger.debug("%s %s params=%s body=%s", method, url, params, body)

        try:
            with self._session_lock:
                resp = self.session.request(method, url, params=params, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise RequestError(f"{action}: {exc}") from exc

        if not resp.ok:
            err = _error_for(resp, action)
            logger.warning("%s %s -> %s: %s", method, url, resp.status_code, err.message)
            raise err

        if not expect_body:
            return None

        try:
            return resp.json()
        except ValueError as exc:
            logger.warning("%s %s returned undecodable body", method, url)
            raise DecodeError(f"{action}: invalid JSON in response", status=resp.status_code) from exc

    async def _run(self, *args: Any, **kwargs: Any) -> Any:
        return await asyncio.to_thread(self._call, *args, **kwargs)

    # -- courses ------------------------------------------------------------

    async def list_courses(self) -> List[Course]:
        action = "Failed to fetch courses"
        data = await self._run("GET", "/courses", action)
        return _decode_list(data, Course.from_dict, action)

    async def create_course(self, payload: CourseCreate) -> Course:
        action = "Failed to create course"
        data = await self._run("POST", "/courses", action, body=payload.to_json())
        return _decode_one(data, Course.from_dict, action)

    async def get_course(self, course_id: int) -> Course:
        action = f"Failed to fetch course {course_id}"
        data = await self._run("GET", f"/courses/{course_id}", action)
        return _decode_one(data, Course.from_dict, action)

    async def delete_course(self, course_id: int) -> None:
        await self._run("DELETE", f"/courses/{course_id}", "Failed to delete course", expect_body=False)

    # -- instances ----------------------------------------------------------

    async def list_instances(self, year: Optional[str] = None, semester: Optional[str] = None) -> List[Instance]:
        """
        List instances, optionally filtered by year and/or semester.

        Empty filters are omitted from the query string. include_course is
        always requested so rows carry course_details.
        """
        params: dict[str, str] = {}
        if year:
            params["year"] = str(year)
        if semester:
            params["semester"] = str(semester)
        params["include_course"] = "true"

        action = "Failed to fetch instances"
        data = await self._run("GET", "/instances", action, params=params)
        return _decode_list(data, Instance.from_dict, action)

    async def create_instance(self, payload: InstanceCreate) -> Instance:
        action = "Failed to create instance"
        data = await self._run("POST", "/instances", action, body=payload.to_json())
        return _decode_one(data, Instance.from_dict, action)

    async def get_instance(self, year: int | str, semester: str, instance_id: int) -> Instance:
        action = f"Failed to fetch instance {year}-{semester}-{instance_id}"
        data = await self._run("GET", f"/instances/{year}/{semester}/{instance_id}", action)
        return _decode_one(data, Instance.from_dict, action)

    async def delete_instance(self, instance_id: int) -> None:
        await self._run("DELETE", f"/instances/{instance_id}", "Failed to delete instance", expect_body=False)
