"""Main CLI application."""

import logging

import typer
from dotenv import load_dotenv
from rich.logging import RichHandler

# Load .env file if it exists
load_dotenv()

from .articles import articles_app
from .generate import generate_command
from .init import init_command
from .serve import serve_command

app = typer.Typer(
    name="pressroom",
    help="Pressroom - Sourced Article Generator and Publishing API",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbose)],
    )
    # Request-level chatter from the HTTP clients
    logging.getLogger("httpx").setLevel(logging.WARNING)


# Register commands
app.command("init")(init_command)
app.command("generate")(generate_command)
app.command("serve")(serve_command)
app.add_typer(articles_app, name="articles", help="List, publish and delete articles")


if __name__ == "__main__":
    app()
