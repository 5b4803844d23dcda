"""Article management commands."""

from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import Config
from ..db import PUBLISH_MESSAGE, PersistenceGateway
from ..errors import PressroomError
from ..models import Article

console = Console()
articles_app = typer.Typer(help="List, publish and delete articles")


def _gateway() -> PersistenceGateway:
    return PersistenceGateway(Config().get_db_config())


def _print_articles(articles: List[Article], title: str) -> None:
    if not articles:
        console.print("[yellow]No articles found.[/yellow]")
        return

    table = Table(title=title)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Author", style="magenta")
    table.add_column("Status", style="yellow")
    table.add_column("Audio", style="green")
    table.add_column("Created", style="dim")

    for article in articles:
        table.add_row(
            str(article.id),
            article.title,
            article.author_address,
            "draft" if article.is_draft else "published",
            "✓" if article.audio_url else "✗",
            article.created_at.strftime("%Y-%m-%d %H:%M") if article.created_at else "-",
        )

    console.print(table)


@articles_app.command("list")
def articles_list(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Show at most this many"),
) -> None:
    """List published articles, newest first."""
    _print_articles(_gateway().list_published(limit=limit), "Published Articles")


@articles_app.command("drafts")
def articles_drafts(address: str = typer.Argument(..., help="Author wallet address")) -> None:
    """List an author's drafts."""
    _print_articles(_gateway().list_drafts_by_author(address), f"Drafts of {address.lower()}")


@articles_app.command("published")
def articles_published(address: str = typer.Argument(..., help="Author wallet address")) -> None:
    """List an author's published articles."""
    _print_articles(_gateway().list_published_by_author(address), f"Published by {address.lower()}")


@articles_app.command("publish")
def articles_publish(
    article_id: int = typer.Argument(..., help="Article ID"),
    signature: str = typer.Option(
        ...,
        "--signature",
        "-s",
        help=f"Author's wallet signature of the message '{PUBLISH_MESSAGE}'",
    ),
) -> None:
    """Publish a draft with the author's signature."""
    try:
        article = _gateway().publish_article(article_id, signature)
    except PressroomError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Published article #{article.id}: {article.title}[/green]")


@articles_app.command("delete")
def articles_delete(
    article_id: int = typer.Argument(..., help="Article ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete an article permanently."""
    gateway = _gateway()
    try:
        article = gateway.get_article(article_id)
    except PressroomError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not force:
        confirm = typer.confirm(f"Delete article #{article.id} '{article.title}'?")
        if not confirm:
            console.print("Cancelled.")
            return

    gateway.delete_article(article_id)
    console.print(f"[green]✓ Deleted article #{article_id}[/green]")
