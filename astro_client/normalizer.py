"""Single rule mapping backend payloads to call outcomes.

Every endpoint answers with a JSON object carrying a boolean ``success`` flag
and, on failure, an optional ``error`` string. A response is a success only
when the HTTP status is 2xx *and* ``success`` is ``True``. The failure message
prefers the payload's ``error`` and falls back to the HTTP status, so a
transport error code is never hidden behind a missing payload message.
"""

from __future__ import annotations

from typing import Any

from astro_client.models import CallOutcome, Failure, FailureKind, Success


def is_http_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def failure_message(status_code: int, payload: Any) -> str:
    """Return the payload error if present, else a status-derived message."""

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, str) and error.strip():
            return error
    return f"HTTP error {status_code}"


def normalize(status_code: int, payload: Any) -> CallOutcome:
    """Convert an HTTP status and decoded body into a CallOutcome."""

    if is_http_success(status_code) and isinstance(payload, dict) and payload.get("success") is True:
        return Success(payload)
    kind = FailureKind.APPLICATION if is_http_success(status_code) else FailureKind.TRANSPORT
    return Failure(kind, failure_message(status_code, payload))


def from_exception(exc: BaseException) -> Failure:
    """Build a transport failure from a raised exception."""

    message = str(exc).strip() or exc.__class__.__name__
    return Failure(FailureKind.TRANSPORT, message)


def normalize_item(entry: Any) -> CallOutcome:
    """Normalize one entry of a per-item mapping returned by a batch endpoint."""

    if not isinstance(entry, dict):
        return Failure(FailureKind.APPLICATION, "Missing result")
    error = entry.get("error")
    if error:
        return Failure(FailureKind.APPLICATION, str(error))
    return Success(entry)
