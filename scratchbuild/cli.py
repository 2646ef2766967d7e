"""Thin CLI wrapper for scratchbuild.

This module provides the command-line interface using Typer.
All build logic is delegated to the BuildEngine.
"""

from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from scratchbuild import __version__
from scratchbuild.core.engine import BuildEngine, BuildResult
from scratchbuild.core.errors import BuildError
from scratchbuild.core.publisher import TagStatus
from scratchbuild.core.settings import load_build_request, load_settings
from scratchbuild.infra.docker_client import DockerProvider

app = typer.Typer(
    name="scratchbuild",
    help="Build container images FROM scratch out of tarballs and directories",
    no_args_is_help=True,
)
console = Console()

STATUS_STYLES = {
    TagStatus.OK: "green",
    TagStatus.SKIPPED: "yellow",
    TagStatus.FAILED: "red",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"scratchbuild version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Build container images FROM scratch out of tarballs and directories."""


def _print_result(result: BuildResult) -> None:
    table = Table(title="Tags", show_header=True)
    table.add_column("Tag")
    table.add_column("Status")
    table.add_column("Details")

    primary_status = "loaded" if result.loaded else "not published"
    table.add_row(str(result.primary_tag), f"[green]{primary_status}[/green]", "primary")
    for outcome in result.tag_outcomes:
        style = STATUS_STYLES[outcome.status]
        table.add_row(outcome.tag, f"[{style}]{outcome.status.value}[/{style}]", outcome.error or "")

    console.print(table)
    console.print(
        Panel(
            f"[bold green]BUILD COMPLETE[/bold green]\n"
            f"Image: {result.image_id}\n"
            f"Layers: {len(result.image.layers)}  Arch: {result.image.architecture}\n"
            f"Registry push: {result.registry_push.value}",
            border_style="green",
        )
    )


@app.command()
def build(
    request_file: Annotated[
        Path,
        typer.Argument(help="YAML build request", exists=True, dir_okay=False),
    ],
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Engine settings YAML"),
    ] = None,
    daemon: Annotated[
        bool | None,
        typer.Option("--daemon/--no-daemon", help="Load the image into the local Docker daemon"),
    ] = None,
    registry: Annotated[
        bool | None,
        typer.Option("--registry/--no-registry", help="Push to a registry (not supported yet)"),
    ] = None,
    show_build_logs: Annotated[
        bool | None,
        typer.Option("--show-build-logs", help="Stream build logs (not supported yet)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show per-layer and per-file detail"),
    ] = False,
    tags: Annotated[
        list[str] | None,
        typer.Option("--tag", "-t", help="Extra tag (can be repeated)"),
    ] = None,
) -> None:
    """Build an image from a request file."""
    try:
        settings = load_settings(config)
        request = load_build_request(request_file)
    except (OSError, ValidationError) as e:
        console.print(f"[bold red][ERROR] Invalid input:[/bold red] {e}")
        raise typer.Exit(code=2) from e

    overrides = {
        "push_to_daemon": daemon,
        "push_to_registry": registry,
        "show_build_logs": show_build_logs,
        "verbose": verbose or None,
    }
    settings = settings.model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )
    if tags:
        request.tags = [*request.tags, *tags]

    engine = BuildEngine(
        settings.to_engine_config(),
        docker_provider=DockerProvider(docker_host=settings.docker_host),
    )

    try:
        result = engine.build(request)
    except BuildError as e:
        console.print(Panel(f"[bold red]{e}[/bold red]", title="BUILD FAILED", border_style="red"))
        raise typer.Exit(code=1) from e

    _print_result(result)


if __name__ == "__main__":
    app()
