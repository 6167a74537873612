import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from .config import load_settings
from .exceptions import GraphDemoError
from .orchestrator import run_demo

app = typer.Typer(add_completion=False)

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

SettingsOption = typer.Option(
    None,
    "--settings",
    "-s",
    help="Settings file (default: appsettings.json in the working directory).",
)
LogLevelOption = typer.Option("INFO", "--log-level", envvar="LOG_LEVEL", help="Log level.")


def configure_logging(level: str) -> None:
    """Send log records to stderr so stdout carries only results."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT, colorize=True)
    logger.debug("Logger configured with level: {}", level.upper())


@app.command()
def run(
    settings: Optional[Path] = SettingsOption,
    log_level: str = LogLevelOption,
) -> None:
    """Provision the graph, seed the sample people, and list who Thomas knows."""
    configure_logging(log_level)
    try:
        asyncio.run(run_demo(settings, echo=typer.echo))
    except GraphDemoError as exc:
        typer.secho(str(exc), fg="red", err=True)
        raise typer.Exit(1)
    except Exception as exc:
        logger.exception("Unexpected error while running the demo")
        typer.secho(f"Unexpected error: {exc}", fg="red", err=True)
        raise typer.Exit(1)


@app.command("show-config")
def show_config(
    settings: Optional[Path] = SettingsOption,
    log_level: str = typer.Option("WARNING", "--log-level", envvar="LOG_LEVEL"),
) -> None:
    """Print the loaded settings with secrets masked."""
    configure_logging(log_level)
    try:
        loaded = load_settings(settings)
    except GraphDemoError as exc:
        typer.secho(f"Configuration error: {exc}", fg="red", err=True)
        raise typer.Exit(1)
    for key, value in loaded.masked_dump().items():
        typer.echo(f"{key} = {value}")


if __name__ == "__main__":
    app()
