"""Typed access to the generation backend.

Each method issues exactly one call through the request envelope and picks
its own piece out of the endpoint's payload. Handles are optional so the same
method serves interactive calls and batch items.
"""

from __future__ import annotations

import logging
from typing import Any

from astro_client import endpoints
from astro_client.envelope import RequestEnvelope
from astro_client.models import CallOutcome, Failure, FailureKind, ModelInfo, Success
from astro_client.ui.base import LoadingIndicator, ResultTarget

LOGGER = logging.getLogger(__name__)

PLATFORMS = ("youtube", "tiktok")


class BackendClient:
    """Endpoint wrappers over a shared RequestEnvelope."""

    def __init__(self, envelope: RequestEnvelope) -> None:
        self._envelope = envelope

    async def check_health(self) -> bool:
        payload = await self._envelope.probe(endpoints.HEALTH)
        return payload is not None and payload.get("status") == "healthy"

    async def list_models(self) -> CallOutcome:
        outcome = await self._envelope.call(endpoints.LIST_MODELS)
        if not outcome.ok:
            return outcome
        raw_models = outcome.payload.get("models") or []
        models = tuple(ModelInfo.from_payload(m) for m in raw_models if isinstance(m, dict) and m.get("name"))
        if not models:
            return Failure(FailureKind.APPLICATION, "No models found")
        return Success(models)

    async def chat(
        self,
        message: str,
        model: str,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome:
        outcome = await self._envelope.call(
            endpoints.CHAT, json={"message": message, "model": model}, loading=loading, target=target
        )
        return _pick(outcome, "response")

    async def single_horoscope(
        self,
        sign: str,
        date: str,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome:
        outcome = await self._envelope.call(
            endpoints.SINGLE_HOROSCOPE, json={"sign": sign, "date": date}, loading=loading, target=target
        )
        return _pick(outcome, "result")

    async def daily_horoscopes(
        self,
        date: str,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome:
        outcome = await self._envelope.call(
            endpoints.DAILY_HOROSCOPES, json={"date": date}, loading=loading, target=target
        )
        outcome = _pick(outcome, "result")
        if not outcome.ok:
            return outcome
        return _pick(Success(outcome.payload or {}), "horoscopes")

    async def astral_context(
        self,
        date: str,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome:
        outcome = await self._envelope.call(
            endpoints.ASTRAL_CONTEXT, json={"date": date}, loading=loading, target=target
        )
        return _pick(outcome, "result")

    async def chart_image(
        self,
        date: str,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome:
        outcome = await self._envelope.call(
            endpoints.CHART_IMAGE, json={"date": date}, loading=loading, target=target
        )
        return _pick(outcome, "chart_image_path")

    async def generate_video(
        self,
        sign: str,
        video_format: str,
        custom_prompt: str | None = None,
        seed: int | None = None,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome:
        body = {"sign": sign, "format": video_format, "custom_prompt": custom_prompt or None, "seed": seed}
        outcome = await self._envelope.call(endpoints.GENERATE_VIDEO, json=body, loading=loading, target=target)
        return _pick(outcome, "result")

    async def complete_sign_workflow(
        self,
        sign: str,
        video_format: str,
        add_music: bool = True,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome:
        body = {"sign": sign, "format": video_format, "add_music": add_music}
        return await self._envelope.call(endpoints.SIGN_WORKFLOW, json=body, loading=loading, target=target)

    async def upload_sign(
        self,
        sign: str,
        platform: str,
        privacy: str = "private",
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome:
        if platform == "youtube":
            endpoint = endpoints.YOUTUBE_UPLOAD.format(sign=sign)
            body: dict[str, Any] | None = {"privacy": privacy}
        elif platform == "tiktok":
            endpoint = endpoints.TIKTOK_UPLOAD.format(sign=sign)
            body = None
        else:
            raise ValueError(f"Unknown platform: {platform}")
        return await self._envelope.call(endpoint, json=body, loading=loading, target=target)

    async def comfyui_status(self, target: ResultTarget | None = None) -> CallOutcome:
        return await self._envelope.call(endpoints.COMFYUI_STATUS, target=target)

    async def youtube_status(self, target: ResultTarget | None = None) -> CallOutcome:
        return await self._envelope.call(endpoints.YOUTUBE_STATUS, target=target)


def _pick(outcome: CallOutcome, key: str) -> CallOutcome:
    """Narrow a success payload to one field; a missing field is a failure."""

    if not outcome.ok:
        return outcome
    payload = outcome.payload
    if not isinstance(payload, dict) or key not in payload:
        LOGGER.warning("Response payload is missing %r", key)
        return Failure(FailureKind.APPLICATION, f"Response is missing '{key}'")
    return Success(payload[key])
