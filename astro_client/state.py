"""Process-wide client state: generation model selection and chat transcript."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterator, Literal

from astro_client.backend import BackendClient
from astro_client.config import DEFAULT_MODEL
from astro_client.db import SELECTED_MODEL_KEY, Database
from astro_client.errors import ValidationError
from astro_client.models import ChatMessage, ConnectionStatus, ModelInfo
from astro_client.ui.base import StatusIndicator

LOGGER = logging.getLogger(__name__)

OFFLINE_TEXT = "Ollama offline"


class ConfigurationState:
    """Owns the active model and the set of models the backend offers.

    All mutation goes through :meth:`select_model` and
    :meth:`refresh_available_models`. After the first successful refresh the
    active model is always one of the available models.
    """

    def __init__(
        self,
        db: Database,
        backend: BackendClient,
        default_model: str = DEFAULT_MODEL,
        status: StatusIndicator | None = None,
        confirmation_seconds: float = 1.5,
    ) -> None:
        self._db = db
        self._backend = backend
        self._status = status
        self._confirmation_seconds = confirmation_seconds
        self._selected = default_model
        self._available: tuple[ModelInfo, ...] = ()
        self._refreshed = False
        self._connection = ConnectionStatus.UNKNOWN
        self._status_text = ""
        self._settled_status: tuple[ConnectionStatus, str] = (ConnectionStatus.UNKNOWN, "")
        self._revert_handle: asyncio.TimerHandle | None = None

    @property
    def selected_model(self) -> str:
        return self._selected

    @property
    def available_models(self) -> tuple[ModelInfo, ...]:
        return self._available

    @property
    def available_names(self) -> tuple[str, ...]:
        return tuple(model.name for model in self._available)

    @property
    def has_refreshed(self) -> bool:
        return self._refreshed

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._connection

    @property
    def status_text(self) -> str:
        return self._status_text

    def select_model(self, name: str) -> None:
        """Activate and persist a model, then briefly show a confirmation state."""

        name = name.strip()
        if not name:
            raise ValidationError("Please choose a model.")
        if self._refreshed and name not in self.available_names:
            raise ValidationError(f"Unknown model: {name}")
        self._selected = name
        self._db.set_preference(SELECTED_MODEL_KEY, name)
        LOGGER.info("Selected model %s", name)
        self._show(ConnectionStatus.CONFIRMING, f"Active: {name.split(':')[0]}")
        self._schedule_revert()

    async def refresh_available_models(self) -> bool:
        """Reload the model list; on failure keep the selection and mark the link degraded."""

        outcome = await self._backend.list_models()
        if not outcome.ok:
            LOGGER.warning("Model refresh failed: %s", outcome.message)
            self._settle(ConnectionStatus.DEGRADED, OFFLINE_TEXT)
            return False

        self._available = outcome.payload
        self._refreshed = True
        names = self.available_names
        preferred = self._db.get_preference(SELECTED_MODEL_KEY) or self._selected
        if preferred in names:
            self._selected = preferred
        else:
            LOGGER.info("Model %s is not available, falling back to %s", preferred, names[0])
            self._selected = names[0]
        self._settle(ConnectionStatus.CONNECTED, f"{len(names)} models")
        return True

    def _schedule_revert(self) -> None:
        if self._revert_handle is not None:
            self._revert_handle.cancel()
            self._revert_handle = None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._end_confirmation()
            return
        self._revert_handle = loop.call_later(self._confirmation_seconds, self._end_confirmation)

    def _end_confirmation(self) -> None:
        self._revert_handle = None
        self._show(*self._settled_status)

    def _settle(self, status: ConnectionStatus, text: str) -> None:
        self._settled_status = (status, text)
        if self._revert_handle is None:
            self._show(status, text)

    def _show(self, status: ConnectionStatus, text: str) -> None:
        self._connection = status
        self._status_text = text
        if self._status is not None:
            self._status.set_status(status, text)


class ChatTranscript:
    """Append-only chat history kept for the lifetime of the process."""

    def __init__(self) -> None:
        self._messages: list[ChatMessage] = []

    def append(self, content: str, author: Literal["user", "assistant"]) -> ChatMessage:
        message = ChatMessage(content=content, author=author)
        self._messages.append(message)
        return message

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self._messages)
