"""Chat turns against the currently selected model."""

from __future__ import annotations

import logging

from astro_client.backend import BackendClient
from astro_client.models import ChatMessage
from astro_client.state import ChatTranscript, ConfigurationState
from astro_client.ui.base import LoadingIndicator

LOGGER = logging.getLogger(__name__)


class ChatSession:
    """Sends user messages and records both sides in the transcript."""

    def __init__(
        self,
        backend: BackendClient,
        config: ConfigurationState,
        transcript: ChatTranscript | None = None,
    ) -> None:
        self._backend = backend
        self._config = config
        self.transcript = transcript if transcript is not None else ChatTranscript()

    async def send(self, text: str, loading: LoadingIndicator | None = None) -> ChatMessage | None:
        """Send one message; returns the assistant entry, or None for blank input."""

        text = text.strip()
        if not text:
            return None
        self.transcript.append(text, "user")
        outcome = await self._backend.chat(text, self._config.selected_model, loading=loading)
        if outcome.ok:
            return self.transcript.append(str(outcome.payload), "assistant")
        return self.transcript.append(f"Connection error: {outcome.message}", "assistant")
