"""Presentation handles the orchestration layer drives."""

from __future__ import annotations

from abc import ABC, abstractmethod

from astro_client.models import ConnectionStatus


class LoadingIndicator(ABC):
    """Spinner-like indicator toggled around each request."""

    @abstractmethod
    def activate(self) -> None:
        """Show the indicator."""

    @abstractmethod
    def deactivate(self) -> None:
        """Hide the indicator."""


class ResultTarget(ABC):
    """Area where results and error messages are rendered."""

    @abstractmethod
    def clear(self) -> None:
        """Remove any previous content."""

    @abstractmethod
    def show(self, text: str) -> None:
        """Render a successful result."""

    @abstractmethod
    def show_error(self, message: str) -> None:
        """Render a failure message."""


class StatusIndicator(ABC):
    """Connection badge next to the model selector."""

    @abstractmethod
    def set_status(self, status: ConnectionStatus, text: str) -> None:
        """Display a status and its label."""


class Confirmer(ABC):
    """Obtains explicit user consent before long-running work."""

    @abstractmethod
    async def confirm(self, prompt: str) -> bool:
        """Return True only when the user agreed."""
