"""Terminal implementations of the presentation handles."""

from __future__ import annotations

import asyncio

import typer

from astro_client.models import ConnectionStatus
from astro_client.ui.base import Confirmer, LoadingIndicator, ResultTarget, StatusIndicator


class ConsoleLoading(LoadingIndicator):
    """Prints a progress line on stderr while a request is in flight."""

    def __init__(self, label: str = "Working") -> None:
        self._label = label
        self.active = False

    def activate(self) -> None:
        self.active = True
        typer.secho(f"{self._label}...", fg=typer.colors.CYAN, err=True)

    def deactivate(self) -> None:
        self.active = False


class ConsoleTarget(ResultTarget):
    def clear(self) -> None:
        return None

    def show(self, text: str) -> None:
        typer.echo(text)

    def show_error(self, message: str) -> None:
        typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)


class ConsoleStatus(StatusIndicator):
    _COLORS = {
        ConnectionStatus.CONNECTED: typer.colors.GREEN,
        ConnectionStatus.CONFIRMING: typer.colors.CYAN,
        ConnectionStatus.DEGRADED: typer.colors.RED,
    }

    def set_status(self, status: ConnectionStatus, text: str) -> None:
        typer.secho(f"[{status.value}] {text}", fg=self._COLORS.get(status), err=True)


class ConsoleConfirmer(Confirmer):
    """Asks on the terminal; ``assume_yes`` answers every prompt with yes."""

    def __init__(self, assume_yes: bool = False) -> None:
        self._assume_yes = assume_yes

    async def confirm(self, prompt: str) -> bool:
        if self._assume_yes:
            return True
        return await asyncio.to_thread(typer.confirm, prompt, default=False)
