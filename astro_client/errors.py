"""Error taxonomy for backend orchestration."""

from __future__ import annotations


class AstroClientError(Exception):
    """Base class for errors raised by the client layer."""


class TransportError(AstroClientError):
    """The request could not complete or returned a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApplicationError(AstroClientError):
    """The request completed but the backend reported ``success: false``."""


class ValidationError(AstroClientError):
    """Required user input is missing; raised before any request is issued."""
