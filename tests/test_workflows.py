"""Tests for WorkflowCoordinator."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from astro_client.errors import ValidationError
from astro_client.models import BatchReport, Failure, FailureKind, Success
from astro_client.signs import ALL_SIGNS
from astro_client.ui.base import Confirmer
from astro_client.workflows import CancellationToken, WorkflowCoordinator


class FakeConfirmer(Confirmer):
    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.prompts: list[str] = []

    async def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.answer


def _coordinator(backend: MagicMock, answer: bool = True, **kwargs) -> tuple[WorkflowCoordinator, FakeConfirmer]:
    confirmer = FakeConfirmer(answer)
    return WorkflowCoordinator(backend=backend, confirmer=confirmer, **kwargs), confirmer


def _video_ok(sign: str) -> Success:
    return Success({"video_path": f"out/{sign}.mp4"})


class TestSingleUnit:
    @pytest.mark.asyncio
    async def test_workflow_failure_is_reported_as_is(self):
        backend = MagicMock()
        backend.complete_sign_workflow = AsyncMock(return_value=Failure(FailureKind.APPLICATION, "x"))
        coordinator, confirmer = _coordinator(backend)

        outcome = await coordinator.complete_sign("leo")

        assert outcome == Failure(FailureKind.APPLICATION, "x")
        assert len(confirmer.prompts) == 1
        backend.complete_sign_workflow.assert_awaited_once_with(
            "leo", "youtube_short", add_music=True, loading=None, target=None
        )

    @pytest.mark.asyncio
    async def test_workflow_success_unpacks_synchronized_video(self):
        backend = MagicMock()
        backend.complete_sign_workflow = AsyncMock(
            return_value=Success(
                {
                    "success": True,
                    "workflow_results": {
                        "horoscope": {"text": "..."},
                        "synchronized_video": {"video_path": "final/leo.mp4", "duration": 58.2},
                    },
                }
            )
        )
        coordinator, _ = _coordinator(backend)

        outcome = await coordinator.complete_sign("Leo", video_format="test", add_music=False)

        assert outcome == Success({"video_path": "final/leo.mp4", "duration": 58.2})
        backend.complete_sign_workflow.assert_awaited_once_with(
            "leo", "test", add_music=False, loading=None, target=None
        )

    @pytest.mark.asyncio
    async def test_workflow_without_synchronized_video_is_a_failure(self):
        backend = MagicMock()
        backend.complete_sign_workflow = AsyncMock(return_value=Success({"success": True, "workflow_results": {}}))
        target = MagicMock()
        coordinator, _ = _coordinator(backend)

        outcome = await coordinator.complete_sign("leo", target=target)

        assert outcome == Failure(FailureKind.APPLICATION, "Response is missing 'synchronized_video'")
        target.show_error.assert_called_once_with("Response is missing 'synchronized_video'")

    @pytest.mark.asyncio
    async def test_declined_workflow_issues_no_call(self):
        backend = MagicMock()
        backend.complete_sign_workflow = AsyncMock()
        coordinator, _ = _coordinator(backend, answer=False)

        assert await coordinator.complete_sign("leo") is None
        backend.complete_sign_workflow.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_sign_is_rejected_before_any_call(self):
        backend = MagicMock()
        backend.single_horoscope = AsyncMock()
        backend.complete_sign_workflow = AsyncMock()
        target = MagicMock()
        coordinator, confirmer = _coordinator(backend)

        horoscope = await coordinator.generate_horoscope("", target=target)
        workflow = await coordinator.complete_sign(None)

        assert horoscope == Failure(FailureKind.VALIDATION, "Please select a zodiac sign.")
        assert workflow.kind is FailureKind.VALIDATION
        target.show_error.assert_called_once_with("Please select a zodiac sign.")
        backend.single_horoscope.assert_not_called()
        backend.complete_sign_workflow.assert_not_called()
        assert confirmer.prompts == []

    @pytest.mark.asyncio
    async def test_validation_failure_unwraps_to_validation_error(self):
        coordinator, _ = _coordinator(MagicMock())

        outcome = await coordinator.generate_video("ophiuchus")

        with pytest.raises(ValidationError, match="ophiuchus"):
            outcome.unwrap()

    @pytest.mark.asyncio
    async def test_horoscope_defaults_to_today(self):
        backend = MagicMock()
        backend.single_horoscope = AsyncMock(return_value=Success({"text": "..."}))
        coordinator, _ = _coordinator(backend)

        await coordinator.generate_horoscope("aries")

        sign, day = backend.single_horoscope.await_args.args
        assert sign == "aries"
        assert len(day) == 10 and day[4] == "-"

    @pytest.mark.asyncio
    async def test_upload_sign_confirms_and_uses_private_mode(self):
        backend = MagicMock()
        backend.upload_sign = AsyncMock(return_value=Success({"title": "Leo"}))
        coordinator, confirmer = _coordinator(backend)

        outcome = await coordinator.upload_sign("leo", "YouTube")

        assert outcome.ok
        assert "YouTube" in confirmer.prompts[0]
        backend.upload_sign.assert_awaited_once_with("leo", "youtube", privacy="private", loading=None, target=None)

    @pytest.mark.asyncio
    async def test_upload_sign_unknown_platform(self):
        backend = MagicMock()
        backend.upload_sign = AsyncMock()
        coordinator, _ = _coordinator(backend)

        outcome = await coordinator.upload_sign("leo", "myspace")

        assert outcome.kind is FailureKind.VALIDATION
        backend.upload_sign.assert_not_called()


class TestBatch:
    @pytest.mark.asyncio
    async def test_partial_failures_keep_every_item_in_order(self):
        failing = {ALL_SIGNS[2], ALL_SIGNS[7]}

        async def generate_video(sign, video_format, **kwargs):
            if sign in failing:
                return Failure(FailureKind.APPLICATION, f"{sign} render failed")
            return _video_ok(sign)

        backend = MagicMock()
        backend.generate_video = AsyncMock(side_effect=generate_video)
        coordinator, _ = _coordinator(backend)

        report = await coordinator.batch_videos()

        assert isinstance(report, BatchReport)
        assert len(report) == 12
        assert [item.item_id for item in report] == list(ALL_SIGNS)
        assert [index for index, item in enumerate(report) if not item.ok] == [2, 7]
        assert report.summary.succeeded == 10
        assert report.summary.failed == 2
        assert report.items[2].outcome.message == "gemini render failed"

    @pytest.mark.asyncio
    async def test_batch_never_runs_without_confirmation(self):
        backend = MagicMock()
        backend.generate_video = AsyncMock()
        backend.complete_sign_workflow = AsyncMock()
        backend.upload_sign = AsyncMock()
        coordinator, confirmer = _coordinator(backend, answer=False)

        assert await coordinator.batch_videos() is None
        assert await coordinator.batch_complete() is None
        assert await coordinator.upload_batch(["leo"]) is None

        assert len(confirmer.prompts) == 3
        backend.generate_video.assert_not_called()
        backend.complete_sign_workflow.assert_not_called()
        backend.upload_sign.assert_not_called()

    @pytest.mark.asyncio
    async def test_items_run_one_at_a_time_in_declared_order(self):
        running = 0
        peak = 0
        order: list[str] = []

        async def upload(sign, platform, **kwargs):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            order.append(sign)
            await asyncio.sleep(0)
            running -= 1
            return Success({"title": sign})

        backend = MagicMock()
        backend.upload_sign = AsyncMock(side_effect=upload)
        coordinator, _ = _coordinator(backend)

        report = await coordinator.upload_batch(["pisces", "aries", "leo"], "tiktok")

        assert order == ["pisces", "aries", "leo"]
        assert peak == 1
        assert [item.item_id for item in report] == ["pisces", "aries", "leo"]
        backend.upload_sign.assert_awaited_with("leo", "tiktok", privacy="private")

    @pytest.mark.asyncio
    async def test_batch_complete_unpacks_each_item(self):
        async def workflow(sign, video_format, add_music=True):
            if sign == "leo":
                return Failure(FailureKind.TRANSPORT, "HTTP error 504")
            return Success({"workflow_results": {"synchronized_video": {"video_path": f"{sign}.mp4"}}})

        backend = MagicMock()
        backend.complete_sign_workflow = AsyncMock(side_effect=workflow)
        coordinator, _ = _coordinator(backend, video_format="test")

        report = await coordinator.batch_complete(add_music=False)

        assert report.items[0].outcome == Success({"video_path": "aries.mp4"})
        assert report.items[4].outcome == Failure(FailureKind.TRANSPORT, "HTTP error 504")
        backend.complete_sign_workflow.assert_any_await("aries", "test", add_music=False)

    @pytest.mark.asyncio
    async def test_batch_complete_item_without_video_fails(self):
        async def workflow(sign, video_format, add_music=True):
            if sign == "virgo":
                return Success({"success": True, "workflow_results": {"horoscope": {"text": "..."}}})
            return Success({"workflow_results": {"synchronized_video": {"video_path": f"{sign}.mp4"}}})

        backend = MagicMock()
        backend.complete_sign_workflow = AsyncMock(side_effect=workflow)
        coordinator, _ = _coordinator(backend)

        report = await coordinator.batch_complete()

        assert report.items[5].outcome == Failure(FailureKind.APPLICATION, "Response is missing 'synchronized_video'")
        assert report.summary.succeeded == 11

    @pytest.mark.asyncio
    async def test_upload_batch_covers_only_given_signs(self):
        backend = MagicMock()
        backend.upload_sign = AsyncMock(return_value=Success({"title": "ok"}))
        coordinator, confirmer = _coordinator(backend)

        report = await coordinator.upload_batch(["gemini", "virgo"])

        assert [item.item_id for item in report] == ["gemini", "virgo"]
        assert backend.upload_sign.await_count == 2
        assert confirmer.prompts == ["Upload all 2 videos to YouTube (private)?"]

    @pytest.mark.asyncio
    async def test_timed_out_item_is_recorded_and_batch_continues(self):
        async def generate_video(sign, video_format, **kwargs):
            if sign == "taurus":
                await asyncio.sleep(5)
            return _video_ok(sign)

        backend = MagicMock()
        backend.generate_video = AsyncMock(side_effect=generate_video)
        coordinator, _ = _coordinator(backend, item_timeout_seconds=0.05)

        report = await coordinator.batch_videos()

        assert len(report) == 12
        assert report.items[1].outcome == Failure(FailureKind.TIMEOUT, "Timed out after 0.05s")
        assert report.summary.succeeded == 11

    @pytest.mark.asyncio
    async def test_unexpected_item_error_does_not_abort_batch(self):
        async def generate_video(sign, video_format, **kwargs):
            if sign == "cancer":
                raise RuntimeError("renderer crashed")
            return _video_ok(sign)

        backend = MagicMock()
        backend.generate_video = AsyncMock(side_effect=generate_video)
        coordinator, _ = _coordinator(backend)

        report = await coordinator.batch_videos()

        assert len(report) == 12
        assert report.items[3].outcome == Failure(FailureKind.TRANSPORT, "renderer crashed")
        assert report.summary.failed == 1

    @pytest.mark.asyncio
    async def test_cancellation_keeps_report_length(self):
        token = CancellationToken()

        async def generate_video(sign, video_format, **kwargs):
            if sign == "gemini":
                token.cancel()
            return _video_ok(sign)

        backend = MagicMock()
        backend.generate_video = AsyncMock(side_effect=generate_video)
        coordinator, _ = _coordinator(backend)

        report = await coordinator.batch_videos(token=token)

        assert backend.generate_video.await_count == 3
        assert len(report) == 12
        assert all(item.ok for item in report.items[:3])
        assert all(item.outcome.kind is FailureKind.CANCELLED for item in report.items[3:])

    @pytest.mark.asyncio
    async def test_batch_holds_loading_indicator_for_whole_run(self):
        loading = MagicMock()
        seen: list[bool] = []

        async def generate_video(sign, video_format, **kwargs):
            seen.append(loading.activate.called and not loading.deactivate.called)
            return _video_ok(sign)

        backend = MagicMock()
        backend.generate_video = AsyncMock(side_effect=generate_video)
        coordinator, _ = _coordinator(backend)

        await coordinator.batch_videos("square", loading=loading)

        assert seen == [True] * 12
        loading.activate.assert_called_once()
        loading.deactivate.assert_called_once()
        backend.generate_video.assert_any_await("aries", "square")

    @pytest.mark.asyncio
    async def test_upload_batch_rejects_unknown_sign(self):
        backend = MagicMock()
        backend.upload_sign = AsyncMock()
        coordinator, confirmer = _coordinator(backend)

        outcome = await coordinator.upload_batch(signs=["leo", "dragon"])

        assert outcome.kind is FailureKind.VALIDATION
        assert confirmer.prompts == []
        backend.upload_sign.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_batch_with_no_artifacts(self):
        coordinator, _ = _coordinator(MagicMock())

        outcome = await coordinator.upload_batch(signs=[])

        assert outcome == Failure(FailureKind.VALIDATION, "No videos to upload.")


class TestDailyHoroscopes:
    @pytest.mark.asyncio
    async def test_mapping_becomes_ordered_report(self):
        backend = MagicMock()
        backend.daily_horoscopes = AsyncMock(
            return_value=Success(
                {
                    "leo": {"horoscope_text": "Shine"},
                    "aries": {"horoscope_text": "Charge"},
                    "virgo": {"error": "Model overloaded"},
                }
            )
        )
        coordinator, confirmer = _coordinator(backend)

        report = await coordinator.daily_horoscopes("2025-06-01")

        assert [item.item_id for item in report] == list(ALL_SIGNS)
        assert report.items[0].outcome == Success({"horoscope_text": "Charge"})
        assert report.items[5].outcome == Failure(FailureKind.APPLICATION, "Model overloaded")
        assert report.items[1].outcome == Failure(FailureKind.APPLICATION, "Missing result")
        assert report.summary.succeeded == 2
        assert confirmer.prompts == []

    @pytest.mark.asyncio
    async def test_call_failure_is_returned(self):
        backend = MagicMock()
        backend.daily_horoscopes = AsyncMock(return_value=Failure(FailureKind.TRANSPORT, "HTTP error 500"))
        coordinator, _ = _coordinator(backend)

        assert await coordinator.daily_horoscopes() == Failure(FailureKind.TRANSPORT, "HTTP error 500")
