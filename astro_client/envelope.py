"""Request envelope: the one place that talks to the backend over HTTP."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from astro_client.config import Settings
from astro_client.endpoints import Endpoint
from astro_client.models import CallOutcome, PendingCall
from astro_client.normalizer import from_exception, is_http_success, normalize
from astro_client.ui.base import LoadingIndicator, ResultTarget

LOGGER = logging.getLogger(__name__)

# Exceptions treated as a failed call rather than a programming error.
_TRANSPORT_EXCEPTIONS = (httpx.HTTPError, ValueError)


class RequestEnvelope:
    """Wraps every backend call with loading state, a duration floor and error rendering.

    The loading indicator is switched on before the request is dispatched and
    switched off in a ``finally`` block, so it never outlives the call. The
    request and a ``min_loading_seconds`` timer run concurrently: fast answers
    are held until the timer fires, slow answers are not delayed further.
    """

    def __init__(self, client: httpx.AsyncClient, min_loading_seconds: float = 0.5) -> None:
        self._client = client
        self._min_loading_seconds = min_loading_seconds
        self._owns_client = False
        self._pending: list[PendingCall] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> RequestEnvelope:
        client = httpx.AsyncClient(
            base_url=settings.backend_url,
            timeout=httpx.Timeout(settings.request_timeout_seconds),
        )
        envelope = cls(client, min_loading_seconds=settings.min_loading_seconds)
        envelope._owns_client = True
        return envelope

    @property
    def pending_calls(self) -> tuple[PendingCall, ...]:
        return tuple(self._pending)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def call(
        self,
        endpoint: Endpoint,
        *,
        json: dict[str, Any] | None = None,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome:
        """Issue one request and return exactly one CallOutcome."""

        pending = PendingCall(endpoint=str(endpoint), loading=loading, target=target)
        self._pending.append(pending)
        try:
            if loading is not None:
                loading.activate()
            if target is not None:
                target.clear()
            outcome = await self._dispatch(endpoint, json)
            if not outcome.ok:
                LOGGER.warning(
                    "Request failed: endpoint=%s kind=%s message=%r",
                    endpoint,
                    outcome.kind.value,
                    outcome.message,
                )
                if target is not None:
                    target.show_error(outcome.message)
            return outcome
        finally:
            if loading is not None:
                loading.deactivate()
            self._pending.remove(pending)

    async def request(
        self,
        endpoint: Endpoint,
        *,
        json: dict[str, Any] | None = None,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> dict[str, Any] | None:
        """Return the parsed payload on confirmed success, otherwise None."""

        outcome = await self.call(endpoint, json=json, loading=loading, target=target)
        return outcome.payload if outcome.ok else None

    async def probe(self, endpoint: Endpoint) -> dict[str, Any] | None:
        """Fetch a payload without the ``success`` contract (health checks)."""

        pending = PendingCall(endpoint=str(endpoint))
        self._pending.append(pending)
        try:
            _, payload = await self._send(endpoint, None)
        except _TRANSPORT_EXCEPTIONS as exc:
            LOGGER.warning("Probe %s failed: %s", endpoint, exc)
            return None
        finally:
            self._pending.remove(pending)
        return payload if isinstance(payload, dict) else None

    async def _dispatch(self, endpoint: Endpoint, body: dict[str, Any] | None) -> CallOutcome:
        response, _ = await asyncio.gather(
            self._send(endpoint, body),
            asyncio.sleep(self._min_loading_seconds),
            return_exceptions=True,
        )
        if isinstance(response, _TRANSPORT_EXCEPTIONS):
            LOGGER.error("Request to %s raised %s: %s", endpoint, type(response).__name__, response)
            return from_exception(response)
        if isinstance(response, BaseException):
            raise response
        status_code, payload = response
        return normalize(status_code, payload)

    async def _send(self, endpoint: Endpoint, body: dict[str, Any] | None) -> tuple[int, Any]:
        response = await self._client.request(endpoint.method, endpoint.path, json=body)
        try:
            payload = response.json()
        except ValueError as exc:
            if is_http_success(response.status_code):
                raise ValueError(f"Malformed JSON payload (HTTP {response.status_code})") from exc
            payload = None
        return response.status_code, payload
