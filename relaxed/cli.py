"""
ReLaXed command line.

Builds a master document to PDF and, unless --build-once is given, keeps
watching its directory (and any --watch locations) to rebuild on change.

Examples:\n

    relaxed report.pug                          # Build report.pdf, then watch

    relaxed report.pug out/final.pdf            # Custom output path

    relaxed report.md --build-once              # Build once and exit

    relaxed report.pug -w figures,data -w ../shared   # Watch extra locations

    relaxed report.pug -t /tmp --no-sandbox     # Temp HTML in /tmp, no sandbox
"""

from typing import List, Optional

import typer
from typing_extensions import Annotated

from relaxed import __version__
from relaxed.config import load_config
from relaxed.contexts.orchestration.exceptions import ConfigurationError
from relaxed.contexts.orchestration.logger import setup_orchestration_logger
from relaxed.contexts.orchestration.paths import parse_watch_locations, resolve_document_paths
from relaxed.contexts.orchestration.run_mode import RunMode, run
from relaxed.utils.event_logging import configure_events_file

app = typer.Typer(
    help="Build a master document to PDF and rebuild it when its sources change",
    add_completion=False,
)


def _fail(message: str) -> None:
    typer.secho(f"ReLaXed error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.command()
def main(
    input: Annotated[
        Optional[str],
        typer.Argument(help="Master document (.pug, .md or .html)", show_default=False),
    ] = None,
    output: Annotated[
        Optional[str],
        typer.Argument(
            help="Output PDF (default: input directory and name, with .pdf)", show_default=False
        ),
    ] = None,
    no_sandbox: Annotated[
        bool,
        typer.Option("--no-sandbox", help="Disable browser sandboxing"),
    ] = False,
    watch_locations: Annotated[
        Optional[List[str]],
        typer.Option(
            "--watch",
            "-w",
            help="Watch other locations (repeatable, comma-separated)",
            show_default=False,
        ),
    ] = None,
    temp: Annotated[
        Optional[str],
        typer.Option(
            "--temp",
            "-t",
            help="Directory for temp file",
            show_default=False,
            is_flag=False,
            flag_value="",
        ),
    ] = None,
    build_once: Annotated[
        bool,
        typer.Option("--build-once", help="Build only, do not watch"),
    ] = False,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show the version and exit",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
):
    """Build INPUT to PDF, then watch for changes unless --build-once is given."""
    try:
        paths = resolve_document_paths(
            input,
            output,
            temp=temp,
            watch_locations=parse_watch_locations(watch_locations),
        )
        config = load_config(paths.input_dir)
    except ConfigurationError as e:
        _fail(str(e))

    setup_orchestration_logger(paths.input_path, config.logging.log_dir, config.logging.level)
    configure_events_file(config.events.file)

    typer.secho("Launching ReLaXed...", fg=typer.colors.MAGENTA, bold=True)
    mode = RunMode.BUILD_ONCE if build_once else RunMode.WATCH

    try:
        exit_code = run(paths, config, mode, sandbox=not no_sandbox)
    except KeyboardInterrupt:
        exit_code = 0

    raise typer.Exit(code=exit_code)


if __name__ == "__main__":
    app()
