"""Main shopgrid CLI application."""

import typer
from rich.console import Console

from shopgrid import __version__
from shopgrid.commands import tenants


console = Console()

app = typer.Typer(
    name="shopgrid",
    help="Administer shopgrid tenants.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register command groups
app.add_typer(tenants.app, name="tenants")


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit."
    ),
) -> None:
    """shopgrid CLI - Administer tenants."""
    if version:
        console.print(f"[bold cyan]shopgrid[/bold cyan] version {__version__}")
        raise typer.Exit()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
