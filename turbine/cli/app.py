"""Main Typer application: imports and registers all CLI commands.

Entry point: ``turbine`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from turbine.cli.commands.demo import demo_cmd
from turbine.cli.commands.kinds import kinds_cmd
from turbine.config import config

app = typer.Typer(
    name="turbine",
    help="Turbine: dataflow routing over concurrent channels.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="kinds", help="List the route kinds and their shapes.")(kinds_cmd)
app.command(name="demo", help="Run a sample topology through every route kind.")(demo_cmd)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Logging level (defaults to TURBINE_LOG_LEVEL)."
    ),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
