"""Init command implementation."""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import ConfigModel, save_config
from ..config.loader import DEFAULT_CONFIG_PATH
from ..db import init_database, validate_connection

console = Console()


def init_command(
    config_dir: Path = typer.Option(
        DEFAULT_CONFIG_PATH.parent,
        "--config-dir",
        "-c",
        help="Configuration directory",
    ),
    media_root: Path = typer.Option(
        Path.home() / "Pressroom" / "public",
        "--media-root",
        "-m",
        help="Directory for stored images and audio",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("pressroom", "--db-name", help="Database name"),
    db_user: str = typer.Option("pressroom_user", "--db-user", help="Database user"),
) -> None:
    """Initialize Pressroom configuration, media folders and database."""
    console.print(Panel.fit("📰 Pressroom - Initialization", style="bold blue"))

    # Create configuration directory
    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "config.yaml"

    config = ConfigModel(
        media_root=str(media_root),
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "PRESSROOM_DB_PASSWORD",
        },
    )

    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    for folder in ("images", "audio"):
        (media_root / folder).mkdir(parents=True, exist_ok=True)
    console.print(f"✅ Created media folders under: {media_root}")

    # Validate database connection
    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = config.postgres.model_dump()

    if not validate_connection(db_config):
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: [bold]export PRESSROOM_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print("✅ Database connection successful")

    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        init_database(db_config)
        console.print("✅ Database schema initialized")
    except Exception as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ Pressroom initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Media: {media_root}\n\n"
            f"Next steps:\n"
            f"1. Set database password: [bold]export PRESSROOM_DB_PASSWORD=your_password[/bold]\n"
            f"2. Set OpenAI API key: [bold]export OPENAI_API_KEY=your_key[/bold]\n"
            f"3. Optionally set search keys: [bold]GOOGLE_API_KEY[/bold] and [bold]GOOGLE_CSE_ID[/bold]\n"
            f"4. Run: [bold]pressroom generate \"your topic\" --author 0x...[/bold]",
            style="green",
        )
    )
