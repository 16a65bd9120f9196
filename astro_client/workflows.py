"""Workflow coordinator for single-unit and batch pipelines.

A single-unit pipeline is one backend call, even when the backend runs several
stages behind it (text, audio, video, mux); its failure ends the invocation.
A batch runs one single-unit call per item, in declared order and one at a
time. Item failures are recorded and the batch moves on, so the report always
has one entry per declared item. Batches never start without confirmation.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Awaitable, Callable, Sequence

from astro_client.aggregator import summarize
from astro_client.backend import PLATFORMS, BackendClient
from astro_client.errors import ValidationError
from astro_client.models import (
    BatchItemResult,
    BatchReport,
    CallOutcome,
    Failure,
    FailureKind,
    Success,
)
from astro_client.normalizer import normalize_item
from astro_client.signs import ALL_SIGNS, SIGN_NAMES
from astro_client.ui.base import Confirmer, LoadingIndicator, ResultTarget

LOGGER = logging.getLogger(__name__)

ItemRunner = Callable[[str], Awaitable[CallOutcome]]


class CancellationToken:
    """Stops a running batch before its next item starts."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class WorkflowCoordinator:
    """Sequences backend calls for generation and upload jobs."""

    def __init__(
        self,
        backend: BackendClient,
        confirmer: Confirmer,
        video_format: str = "youtube_short",
        item_timeout_seconds: float | None = None,
        upload_privacy: str = "private",
    ) -> None:
        self._backend = backend
        self._confirmer = confirmer
        self._video_format = video_format
        self._item_timeout_seconds = item_timeout_seconds
        self._upload_privacy = upload_privacy

    async def generate_horoscope(
        self,
        sign: str | None,
        day: str | None = None,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome:
        try:
            sign = _require_sign(sign)
        except ValidationError as exc:
            return _reject(exc, target)
        return await self._backend.single_horoscope(sign, _day(day), loading=loading, target=target)

    async def daily_horoscopes(
        self,
        day: str | None = None,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> BatchReport | Failure:
        """Fetch all twelve horoscopes in one call and report them per sign."""

        outcome = await self._backend.daily_horoscopes(_day(day), loading=loading, target=target)
        if not outcome.ok:
            return outcome
        horoscopes = outcome.payload if isinstance(outcome.payload, dict) else {}
        return BatchReport(tuple(BatchItemResult(sign, normalize_item(horoscopes.get(sign))) for sign in ALL_SIGNS))

    async def astral_context(
        self,
        day: str | None = None,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome:
        return await self._backend.astral_context(_day(day), loading=loading, target=target)

    async def chart_image(
        self,
        day: str | None = None,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome:
        return await self._backend.chart_image(_day(day), loading=loading, target=target)

    async def generate_video(
        self,
        sign: str | None,
        video_format: str | None = None,
        custom_prompt: str | None = None,
        seed: int | None = None,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome:
        try:
            sign = _require_sign(sign)
        except ValidationError as exc:
            return _reject(exc, target)
        return await self._backend.generate_video(
            sign,
            video_format or self._video_format,
            custom_prompt=custom_prompt,
            seed=seed,
            loading=loading,
            target=target,
        )

    async def complete_sign(
        self,
        sign: str | None,
        video_format: str | None = None,
        add_music: bool = True,
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome | None:
        """Run the full text, audio, video and mux workflow for one sign.

        Returns None when the user declines, otherwise the synchronized video
        entry of the workflow results.
        """

        try:
            sign = _require_sign(sign)
        except ValidationError as exc:
            return _reject(exc, target)
        prompt = f"Run the complete workflow for {SIGN_NAMES[sign]}? This can take a few minutes."
        if not await self._confirm(prompt):
            return None
        outcome = await self._backend.complete_sign_workflow(
            sign, video_format or self._video_format, add_music=add_music, loading=loading, target=target
        )
        if not outcome.ok:
            return outcome
        video = _final_video(outcome)
        if not video.ok and target is not None:
            target.show_error(video.message)
        return video

    async def upload_sign(
        self,
        sign: str | None,
        platform: str = "youtube",
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
    ) -> CallOutcome | None:
        try:
            sign = _require_sign(sign)
            platform = _require_platform(platform)
        except ValidationError as exc:
            return _reject(exc, target)
        if not await self._confirm(f"Upload the {SIGN_NAMES[sign]} video to {_platform_label(platform)}?"):
            return None
        return await self._backend.upload_sign(
            sign, platform, privacy=self._upload_privacy, loading=loading, target=target
        )

    async def batch_videos(
        self,
        video_format: str | None = None,
        loading: LoadingIndicator | None = None,
        token: CancellationToken | None = None,
    ) -> BatchReport | None:
        video_format = video_format or self._video_format
        prompt = "Generate constellation videos for all 12 signs? This can take more than 20 minutes."
        if not await self._confirm(prompt):
            return None
        return await self._run_batch(
            ALL_SIGNS, lambda sign: self._backend.generate_video(sign, video_format), loading, token
        )

    async def batch_complete(
        self,
        video_format: str | None = None,
        add_music: bool = True,
        loading: LoadingIndicator | None = None,
        token: CancellationToken | None = None,
    ) -> BatchReport | None:
        video_format = video_format or self._video_format

        async def run(sign: str) -> CallOutcome:
            outcome = await self._backend.complete_sign_workflow(sign, video_format, add_music=add_music)
            return _final_video(outcome)

        prompt = "Run the complete workflow for all 12 signs? This can take more than 30 minutes."
        if not await self._confirm(prompt):
            return None
        return await self._run_batch(ALL_SIGNS, run, loading, token)

    async def upload_batch(
        self,
        signs: Sequence[str],
        platform: str = "youtube",
        loading: LoadingIndicator | None = None,
        target: ResultTarget | None = None,
        token: CancellationToken | None = None,
    ) -> BatchReport | Failure | None:
        """Upload the generated videos of ``signs``, the artifacts that exist on the backend."""

        try:
            platform = _require_platform(platform)
            items = tuple(_require_sign(sign) for sign in signs)
            if not items:
                raise ValidationError("No videos to upload.")
        except ValidationError as exc:
            return _reject(exc, target)
        prompt = f"Upload all {len(items)} videos to {_platform_label(platform)}?"
        if not await self._confirm(prompt):
            return None
        return await self._run_batch(
            items,
            lambda sign: self._backend.upload_sign(sign, platform, privacy=self._upload_privacy),
            loading,
            token,
        )

    async def _confirm(self, prompt: str) -> bool:
        confirmed = await self._confirmer.confirm(prompt)
        if not confirmed:
            LOGGER.info("Workflow declined by user: %s", prompt)
        return confirmed

    async def _run_batch(
        self,
        items: Sequence[str],
        runner: ItemRunner,
        loading: LoadingIndicator | None,
        token: CancellationToken | None,
    ) -> BatchReport:
        results: list[BatchItemResult] = []
        if loading is not None:
            loading.activate()
        try:
            for index, item_id in enumerate(items):
                if token is not None and token.cancelled:
                    LOGGER.info("Batch cancelled with %d item(s) left", len(items) - index)
                    results.extend(
                        BatchItemResult(skipped, Failure(FailureKind.CANCELLED, "Cancelled before start"))
                        for skipped in items[index:]
                    )
                    break
                LOGGER.info("Batch item %d/%d: %s", index + 1, len(items), item_id)
                results.append(BatchItemResult(item_id, await self._run_item(item_id, runner)))
        finally:
            if loading is not None:
                loading.deactivate()
        report = BatchReport(tuple(results))
        LOGGER.info("Batch finished: %s", summarize(report))
        return report

    async def _run_item(self, item_id: str, runner: ItemRunner) -> CallOutcome:
        try:
            if self._item_timeout_seconds is None:
                return await runner(item_id)
            return await asyncio.wait_for(runner(item_id), timeout=self._item_timeout_seconds)
        except asyncio.TimeoutError:
            LOGGER.warning("Batch item %s timed out after %ss", item_id, self._item_timeout_seconds)
            return Failure(FailureKind.TIMEOUT, f"Timed out after {self._item_timeout_seconds:g}s")
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Batch item %s raised", item_id)
            return Failure(FailureKind.TRANSPORT, str(exc) or exc.__class__.__name__)


def _require_sign(sign: str | None) -> str:
    if not sign:
        raise ValidationError("Please select a zodiac sign.")
    sign = sign.strip().lower()
    if sign not in SIGN_NAMES:
        raise ValidationError(f"Unknown zodiac sign: {sign}")
    return sign


def _require_platform(platform: str) -> str:
    platform = platform.strip().lower()
    if platform not in PLATFORMS:
        raise ValidationError(f"Unknown platform: {platform}")
    return platform


def _platform_label(platform: str) -> str:
    return "YouTube (private)" if platform == "youtube" else "TikTok"


def _reject(exc: ValidationError, target: ResultTarget | None) -> Failure:
    if target is not None:
        target.show_error(str(exc))
    return Failure(FailureKind.VALIDATION, str(exc))


def _day(day: str | None) -> str:
    return day or date.today().isoformat()


def _final_video(outcome: CallOutcome) -> CallOutcome:
    """Narrow a workflow outcome to its synchronized video entry."""

    if not outcome.ok:
        return outcome
    payload = outcome.payload
    results = payload.get("workflow_results") if isinstance(payload, dict) else None
    video = results.get("synchronized_video") if isinstance(results, dict) else None
    if not isinstance(video, dict):
        LOGGER.warning("Workflow response is missing 'synchronized_video'")
        return Failure(FailureKind.APPLICATION, "Response is missing 'synchronized_video'")
    return Success(video)
