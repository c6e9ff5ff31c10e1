"""Failure classification for remote provider calls.

Every failure coming out of a producer is normalized into a
:class:`ClassifiedFailure` before the retry policy sees it, so callers only
ever have to handle one exception type.
"""

import asyncio
import json
from collections.abc import Mapping
from enum import Enum
from typing import Any

import httpx


class FailureKind(str, Enum):
    """Kinds of failure a remote call can end in."""

    TRANSPORT = "transport"
    DOMAIN_ERROR = "domain_error"
    UNEXPECTED = "unexpected"


class ClassifiedFailure(Exception):
    """A remote call failure with a normalized kind and message."""

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.kind = kind
        self.message = message or kind.value
        self.status_code = status_code
        self.attempts: int | None = None
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"ClassifiedFailure({self.kind.value}, {self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "status_code": self.status_code,
            "attempts": self.attempts,
        }


def _dump(value: Any) -> str:
    """Best-effort JSON rendering, falling back to repr."""
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return repr(value)


def _response_body(response: Any) -> Any:
    """Extract a serializable body from an httpx or SDK-style response."""
    if isinstance(response, httpx.Response):
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return response.text or None
    for attr in ("result", "body", "data"):
        body = getattr(response, attr, None)
        if body:
            return body
    return None


def _response_status(response: Any) -> int | None:
    for attr in ("status_code", "status"):
        status = getattr(response, attr, None)
        if isinstance(status, int):
            return status
    return None


def _transport_failure(response: Any) -> ClassifiedFailure:
    status = _response_status(response)
    reason = getattr(response, "reason_phrase", None) or getattr(
        response, "status_text", None
    )
    message = reason or (f"HTTP {status}" if status is not None else "HTTP error")
    body = _response_body(response)
    if body:
        details = body if isinstance(body, str) else _dump(body)
        message = f"{message}: {details}"
    return ClassifiedFailure(FailureKind.TRANSPORT, message, status_code=status)


def _format_error_list(errors: list[Any]) -> str:
    parts = []
    for err in errors:
        if isinstance(err, Mapping):
            title = err.get("title") or "API Error"
            detail = err.get("detail") or err.get("code") or "Unknown error"
            parts.append(f"{title}: {detail}")
        else:
            parts.append(str(err))
    return "; ".join(parts)


def find_payload_error(payload: Any) -> ClassifiedFailure | None:
    """
    Detect a domain error embedded in an otherwise successful response.

    Args:
        payload: Value returned by a producer

    Returns:
        A DomainError failure, or None if the payload looks healthy
    """
    if not isinstance(payload, Mapping):
        return None

    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        return ClassifiedFailure(FailureKind.DOMAIN_ERROR, _format_error_list(errors))

    error = payload.get("error")
    if error:
        if isinstance(error, Mapping):
            message = error.get("message") or error.get("description") or "API Error"
        else:
            message = str(error)
        return ClassifiedFailure(FailureKind.DOMAIN_ERROR, message)

    return None


def classify(raw: Any) -> ClassifiedFailure:
    """
    Normalize a raw failure into a ClassifiedFailure.

    Args:
        raw: An exception raised by a producer, or an error-shaped payload

    Returns:
        ClassifiedFailure with a non-empty message
    """
    if isinstance(raw, ClassifiedFailure):
        return raw

    if isinstance(raw, httpx.HTTPStatusError):
        return _transport_failure(raw.response)

    if isinstance(raw, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        detail = str(raw)
        message = f"Request timed out: {detail}" if detail else "Request timed out"
        return ClassifiedFailure(FailureKind.TRANSPORT, message)

    if isinstance(raw, (httpx.TransportError, ConnectionError)):
        return ClassifiedFailure(
            FailureKind.TRANSPORT,
            str(raw) or f"Connection error ({type(raw).__name__})",
        )

    # SDK-style errors that carry the failed response
    response = getattr(raw, "response", None)
    if isinstance(raw, Exception) and response is not None:
        if _response_status(response) is not None:
            return _transport_failure(response)

    payload_error = find_payload_error(raw)
    if payload_error is not None:
        return payload_error

    if isinstance(raw, BaseException):
        detail = str(raw)
        name = type(raw).__name__
        return ClassifiedFailure(
            FailureKind.UNEXPECTED, f"{name}: {detail}" if detail else name
        )

    return ClassifiedFailure(FailureKind.UNEXPECTED, f"Unexpected error: {_dump(raw)}")
