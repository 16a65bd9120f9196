"""Application entrypoint."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional

import typer

from astro_client.aggregator import breakdown, summarize
from astro_client.backend import BackendClient
from astro_client.chat import ChatSession
from astro_client.config import Settings, load_settings
from astro_client.db import Database
from astro_client.envelope import RequestEnvelope
from astro_client.errors import ValidationError
from astro_client.models import BatchReport, CallOutcome
from astro_client.state import ConfigurationState
from astro_client.ui.base import Confirmer
from astro_client.ui.console import ConsoleConfirmer, ConsoleLoading, ConsoleStatus, ConsoleTarget
from astro_client.workflows import WorkflowCoordinator

logging.basicConfig(level=logging.INFO)
LOGGER = logging.getLogger(__name__)

app = typer.Typer(no_args_is_help=True, help="Astro Generator backend client.")


@dataclass(slots=True)
class Services:
    """Wired application layers shared by every command."""

    settings: Settings
    backend: BackendClient
    config: ConfigurationState
    coordinator: WorkflowCoordinator
    chat: ChatSession


@asynccontextmanager
async def open_services(settings: Settings, confirmer: Confirmer) -> AsyncIterator[Services]:
    """Initialize app layers, load models and probe health once."""

    db = Database(settings.database_path)
    db.initialize()

    envelope = RequestEnvelope.from_settings(settings)
    backend = BackendClient(envelope)
    config = ConfigurationState(
        db=db,
        backend=backend,
        default_model=settings.default_model,
        status=ConsoleStatus(),
        confirmation_seconds=settings.model_confirmation_seconds,
    )
    coordinator = WorkflowCoordinator(
        backend=backend,
        confirmer=confirmer,
        video_format=settings.video_format,
        item_timeout_seconds=settings.batch_item_timeout_seconds,
    )
    try:
        await config.refresh_available_models()
        healthy = await backend.check_health()
        LOGGER.info("System health check: %s", "OK" if healthy else "degraded")
        yield Services(
            settings=settings,
            backend=backend,
            config=config,
            coordinator=coordinator,
            chat=ChatSession(backend, config),
        )
    finally:
        await envelope.aclose()
        LOGGER.info("Client shutdown complete")


def _run(ctx: typer.Context, action: Callable[[Services], Awaitable[int]]) -> None:
    async def runner() -> int:
        confirmer = ConsoleConfirmer(assume_yes=ctx.obj.get("yes", False))
        async with open_services(load_settings(), confirmer) as services:
            return await action(services)

    code = asyncio.run(runner())
    if code:
        raise typer.Exit(code=code)


def _render_outcome(outcome: CallOutcome | None) -> int:
    if outcome is None:
        typer.echo("Cancelled.")
        return 0
    if not outcome.ok:
        # The envelope already rendered transport and application errors.
        return 1
    typer.echo(_format_payload(outcome.payload))
    return 0


def _render_report(report: BatchReport | CallOutcome | None) -> int:
    if report is None:
        typer.echo("Cancelled.")
        return 0
    if not isinstance(report, BatchReport):
        return _render_outcome(report)
    for line in breakdown(report):
        typer.echo(line)
    typer.echo(summarize(report))
    return 1 if report.summary.failed else 0


def _format_payload(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, indent=2, ensure_ascii=False)


@app.callback()
def main_callback(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer yes to confirmation prompts."),
) -> None:
    ctx.obj = {"yes": yes}


@app.command("models")
def models_command(ctx: typer.Context) -> None:
    """List available models; the active one is starred."""

    async def action(services: Services) -> int:
        if not services.config.has_refreshed:
            return 1
        for name in services.config.available_names:
            marker = "*" if name == services.config.selected_model else " "
            typer.echo(f"{marker} {name}")
        return 0

    _run(ctx, action)


@app.command("select-model")
def select_model_command(ctx: typer.Context, name: str = typer.Argument(..., help="Model name.")) -> None:
    """Make a model the active one for chat and generation."""

    async def action(services: Services) -> int:
        try:
            services.config.select_model(name)
        except ValidationError as exc:
            typer.secho(str(exc), fg=typer.colors.RED, err=True)
            return 2
        typer.echo(services.config.selected_model)
        return 0

    _run(ctx, action)


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Probe the backend health endpoint."""

    async def action(services: Services) -> int:
        healthy = await services.backend.check_health()
        typer.echo("healthy" if healthy else "degraded")
        return 0 if healthy else 1

    _run(ctx, action)


@app.command("status")
def status_command(ctx: typer.Context, service: str = typer.Argument(..., help="comfyui or youtube.")) -> None:
    """Show the status of a rendering or upload service."""

    async def action(services: Services) -> int:
        target = ConsoleTarget()
        if service == "comfyui":
            return _render_outcome(await services.backend.comfyui_status(target=target))
        if service == "youtube":
            return _render_outcome(await services.backend.youtube_status(target=target))
        typer.secho(f"Unknown service: {service}", fg=typer.colors.RED, err=True)
        return 2

    _run(ctx, action)


@app.command("horoscope")
def horoscope_command(
    ctx: typer.Context,
    sign: str = typer.Argument(..., help="Zodiac sign, e.g. aries."),
    day: Optional[str] = typer.Option(None, "--date", help="ISO date (defaults to today)."),
) -> None:
    """Generate the horoscope of one sign."""

    async def action(services: Services) -> int:
        outcome = await services.coordinator.generate_horoscope(
            sign, day, loading=ConsoleLoading("Generating horoscope"), target=ConsoleTarget()
        )
        return _render_outcome(outcome)

    _run(ctx, action)


@app.command("daily")
def daily_command(
    ctx: typer.Context,
    day: Optional[str] = typer.Option(None, "--date", help="ISO date (defaults to today)."),
) -> None:
    """Generate the horoscopes of all twelve signs."""

    async def action(services: Services) -> int:
        report = await services.coordinator.daily_horoscopes(
            day, loading=ConsoleLoading("Generating daily horoscopes"), target=ConsoleTarget()
        )
        return _render_report(report)

    _run(ctx, action)


@app.command("context")
def context_command(
    ctx: typer.Context,
    day: Optional[str] = typer.Option(None, "--date", help="ISO date (defaults to today)."),
) -> None:
    """Show lunar phase, season and influential planets."""

    async def action(services: Services) -> int:
        outcome = await services.coordinator.astral_context(
            day, loading=ConsoleLoading("Reading the sky"), target=ConsoleTarget()
        )
        return _render_outcome(outcome)

    _run(ctx, action)


@app.command("chart")
def chart_command(
    ctx: typer.Context,
    day: Optional[str] = typer.Option(None, "--date", help="ISO date (defaults to today)."),
) -> None:
    """Render the sky chart image and print its path."""

    async def action(services: Services) -> int:
        outcome = await services.coordinator.chart_image(
            day, loading=ConsoleLoading("Drawing chart"), target=ConsoleTarget()
        )
        return _render_outcome(outcome)

    _run(ctx, action)


@app.command("chat")
def chat_command(ctx: typer.Context, text: List[str] = typer.Argument(..., help="Message to send.")) -> None:
    """Send one chat message to the active model."""

    async def action(services: Services) -> int:
        reply = await services.chat.send(" ".join(text), loading=ConsoleLoading("Thinking"))
        if reply is None:
            typer.secho("Message is empty.", fg=typer.colors.RED, err=True)
            return 2
        typer.echo(reply.content)
        return 0

    _run(ctx, action)


@app.command("video")
def video_command(
    ctx: typer.Context,
    sign: str = typer.Argument(..., help="Zodiac sign."),
    video_format: Optional[str] = typer.Option(None, "--format", help="Video format preset."),
    prompt: Optional[str] = typer.Option(None, "--prompt", help="Custom generation prompt."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Generation seed."),
) -> None:
    """Generate the constellation clip of one sign."""

    async def action(services: Services) -> int:
        outcome = await services.coordinator.generate_video(
            sign,
            video_format,
            custom_prompt=prompt,
            seed=seed,
            loading=ConsoleLoading("Rendering video"),
            target=ConsoleTarget(),
        )
        return _render_outcome(outcome)

    _run(ctx, action)


@app.command("batch-videos")
def batch_videos_command(
    ctx: typer.Context,
    video_format: Optional[str] = typer.Option(None, "--format", help="Video format preset."),
) -> None:
    """Generate constellation clips for all twelve signs."""

    async def action(services: Services) -> int:
        report = await services.coordinator.batch_videos(video_format, loading=ConsoleLoading("Rendering videos"))
        return _render_report(report)

    _run(ctx, action)


@app.command("workflow")
def workflow_command(
    ctx: typer.Context,
    sign: str = typer.Argument(..., help="Zodiac sign."),
    video_format: Optional[str] = typer.Option(None, "--format", help="Video format preset."),
    music: bool = typer.Option(True, "--music/--no-music", help="Add background music."),
) -> None:
    """Run the complete text, audio, video and mux workflow for one sign."""

    async def action(services: Services) -> int:
        outcome = await services.coordinator.complete_sign(
            sign,
            video_format,
            add_music=music,
            loading=ConsoleLoading("Running workflow"),
            target=ConsoleTarget(),
        )
        return _render_outcome(outcome)

    _run(ctx, action)


@app.command("batch-workflow")
def batch_workflow_command(
    ctx: typer.Context,
    video_format: Optional[str] = typer.Option(None, "--format", help="Video format preset."),
    music: bool = typer.Option(True, "--music/--no-music", help="Add background music."),
) -> None:
    """Run the complete workflow for all twelve signs."""

    async def action(services: Services) -> int:
        report = await services.coordinator.batch_complete(
            video_format, add_music=music, loading=ConsoleLoading("Running workflows")
        )
        return _render_report(report)

    _run(ctx, action)


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    sign: str = typer.Argument(..., help="Zodiac sign."),
    platform: str = typer.Option("youtube", "--platform", help="youtube or tiktok."),
) -> None:
    """Upload the generated video of one sign."""

    async def action(services: Services) -> int:
        outcome = await services.coordinator.upload_sign(
            sign, platform, loading=ConsoleLoading("Uploading"), target=ConsoleTarget()
        )
        return _render_outcome(outcome)

    _run(ctx, action)


@app.command("upload-batch")
def upload_batch_command(
    ctx: typer.Context,
    signs: List[str] = typer.Argument(..., help="Signs whose videos have been generated."),
    platform: str = typer.Option("youtube", "--platform", help="youtube or tiktok."),
) -> None:
    """Upload the generated videos of several signs."""

    async def action(services: Services) -> int:
        report = await services.coordinator.upload_batch(
            signs, platform, loading=ConsoleLoading("Uploading videos"), target=ConsoleTarget()
        )
        return _render_report(report)

    _run(ctx, action)


def main() -> None:
    """Console script entry."""

    app()


if __name__ == "__main__":
    main()
