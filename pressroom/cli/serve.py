"""Serve command implementation."""

from typing import Optional

import typer
import uvicorn
from rich.console import Console

from ..api import create_app
from ..config import Config

console = Console()


def serve_command(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address. Default: from config"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port. Default: from config"),
) -> None:
    """Run the HTTP API."""
    config = Config()
    server = config.config.server
    host = host or server.host
    port = port or server.port

    console.print(f"[bold blue]Serving Pressroom API on http://{host}:{port}[/bold blue]")
    console.print(f"[dim]Media root: {config.media_root}[/dim]")

    uvicorn.run(create_app(config), host=host, port=port, log_config=None)
