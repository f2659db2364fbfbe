"""
Error taxonomy shared by the gateway, the controllers and the UI.

- ValidationError: raised locally before any network call
- RequestError: non-2xx response or transport failure (status + optional detail)
- NotFoundError: a RequestError with status 404
- DecodeError: a response body that is not the expected JSON

Controllers never let these escape to the presentation layer;
they turn them into display strings via describe().
"""

from __future__ import annotations

from typing import Optional


class CourseDeskError(Exception):
    """Base class for all errors raised by this package."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(CourseDeskError):
    """User input rejected by a parse-and-validate boundary."""


class RequestError(CourseDeskError):
    """
    A failed gateway call.

    status is None for transport failures (connection refused, timeout, ...).
    detail is the server supplied {"detail": ...} text, if any.
    """

    def __init__(self, message: str, status: Optional[int] = None, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.detail = detail


class NotFoundError(RequestError):
    def __init__(self, message: str, detail: Optional[str] = None) -> None:
        super().__init__(message, status=404, detail=detail)


class DecodeError(RequestError):
    """Response body could not be decoded into the expected shape."""


CREATE_INSTANCE_PREFIX = "Failed to create instance:"


def describe(exc: BaseException, fallback: str) -> str:
    """
    Convert any error into a message suitable for display.
    """
    if isinstance(exc, CourseDeskError):
        return exc.message or fallback
    text = str(exc).strip()
    return text if text else fallback


def strip_create_instance_prefix(message: str) -> str:
    """
    Remove a redundant nested "Failed to create instance:" prefix.

    "Failed to create instance: Bad Request" -> "Bad Request"
    """
    if CREATE_INSTANCE_PREFIX in message:
        rest = message.split(CREATE_INSTANCE_PREFIX, 1)[1].strip()
        if rest:
            return rest
    return message
