"""Generate command implementation."""

import asyncio

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from ..config import Config
from ..db import close_connection_pool, validate_connection
from ..errors import PressroomError
from ..pipeline import GenerationEvent, GenerationPipeline, GenerationResult, ProgressUpdate, progress

console = Console()

STEP_LABELS = {
    GenerationEvent.SOURCES_GATHERING: "Gathering sources",
    GenerationEvent.SOURCES_FOUND: "Sources found",
    GenerationEvent.CONTENT_GENERATED: "Article written",
    GenerationEvent.IMAGE_CREATED: "Image created",
    GenerationEvent.ARTICLE_SAVED: "Draft saved",
    GenerationEvent.AUDIO_CREATED: "Audio created",
    GenerationEvent.AUDIO_FAILED: "Audio failed",
}


def _describe(update: ProgressUpdate) -> str:
    payload = update.payload
    if update.event == GenerationEvent.SOURCES_FOUND:
        return f"{payload.get('count', 0)} links, {payload.get('usable', 0)} readable"
    if update.event == GenerationEvent.CONTENT_GENERATED:
        return payload.get("title", "")
    if update.event == GenerationEvent.ARTICLE_SAVED:
        return f"article #{payload.get('article_id')}"
    if update.event == GenerationEvent.AUDIO_FAILED:
        return payload.get("reason", "")
    return ""


def _print_summary(result: GenerationResult) -> None:
    """Print stage table and outcome panel."""
    table = Table(title="Pipeline Summary")
    table.add_column("Stage", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Duration", style="yellow")
    table.add_column("Details", style="dim")

    for stage in result.stages:
        status = "[green]✓[/green]" if stage.success else "[red]✗[/red]"
        duration = f"{stage.duration:.1f}s" if stage.duration > 0 else "-"
        details = stage.error or ", ".join(f"{k}={v}" for k, v in stage.stats.items())
        table.add_row(stage.name.title(), status, duration, details)

    console.print("\n")
    console.print(table)

    article = result.article
    usage = result.usage
    style = "green" if result.status == "success" else "yellow"
    console.print(Panel(
        f"[{style}]{result.message}[/{style}]\n\n"
        f"Article: #{article.id} {article.title}\n"
        f"Image: {article.image_url}\n"
        f"Thumbnail: {article.thumbnail_url or '-'}\n"
        f"Audio: {article.audio_url or '-'}\n"
        f"Sources: {len(result.source_links)}\n"
        f"Tokens: {usage.get('total_tokens', 0)} • Cost: ${usage.get('estimated_cost', 0.0):.3f}",
        style=style,
    ))


def generate_command(
    topic: str = typer.Argument(..., help="What the article should be about"),
    author: str = typer.Option(..., "--author", "-a", help="Wallet address of the author"),
) -> None:
    """Generate a sourced, illustrated and narrated draft article."""
    config = Config()

    console.print("[dim]Checking database connection...[/dim]")
    if not validate_connection(config.get_db_config()):
        console.print("[red]❌ Database connection failed![/red]")
        console.print("Please check your database configuration and ensure Postgres is running.")
        raise typer.Exit(1)

    console.print(Panel.fit(f"📰 Pressroom\nTopic: {topic}", style="bold blue"))

    try:
        pipeline = GenerationPipeline.from_config(config)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
        ) as bar:
            task = bar.add_task("Starting", total=len(STEP_LABELS) - 1)

            def on_progress(update: ProgressUpdate) -> None:
                detail = _describe(update)
                label = STEP_LABELS[update.event]
                bar.update(task, description=f"{label}: {detail}" if detail else label)
                if update.event != GenerationEvent.SOURCES_GATHERING:
                    bar.advance(task)
                if update.event == GenerationEvent.AUDIO_FAILED:
                    bar.console.print(f"[yellow]⚠ {update.payload.get('message', 'Audio failed')}[/yellow]")

            unsubscribe = progress.subscribe(on_progress)
            try:
                result = asyncio.run(pipeline.generate(topic, author))
            finally:
                unsubscribe()

    except PressroomError as e:
        console.print(f"[red]❌ Generation failed: {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Generation interrupted by user[/yellow]")
        raise typer.Exit(1)
    finally:
        close_connection_pool()

    _print_summary(result)
