"""Typer CLI entrypoint."""

from __future__ import annotations

import io
import os
import signal
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.traceback import Traceback

from linepipe import __version__
from linepipe.config import PipelineOptions, load_options
from linepipe.engine import RunResult, run_sync
from linepipe.errors import ExitCode, ExpressionError, LinepipeError, PipelineError, classify_exception
from linepipe.pipeline import builtin_reducers
from linepipe.telemetry import LinepipeLogger, LogLevel

app = typer.Typer(
    add_completion=False,
    help="Filter, map and reduce lines of text with Python expressions.",
)
console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"linepipe {__version__}")
        raise typer.Exit()


def _configure_logging(level: str, log_format: str) -> None:
    try:
        parsed = LogLevel.parse(level)
    except ValueError:
        raise typer.BadParameter(
            f"unknown level {level!r}", param_hint="--log-level"
        ) from None
    if log_format not in ("text", "json"):
        raise typer.BadParameter(
            f"expected 'text' or 'json', got {log_format!r}", param_hint="--log-format"
        )
    LinepipeLogger.configure(level=parsed, format=log_format)


def _print_error(error: LinepipeError) -> None:
    label = "Invalid expression" if isinstance(error, ExpressionError) else "Error"
    console.print(f"[bold red]{label}:[/bold red] {escape(str(error))}")
    expression = getattr(error, "expression", None)
    if expression:
        console.print(f"  [dim]expression:[/dim] {escape(expression)}")

    cause = error.__cause__
    if isinstance(error, PipelineError) and cause is not None:
        console.print(Traceback.from_exception(type(cause), cause, cause.__traceback__))


def _silence_stdout() -> None:
    # Python flushes standard streams on exit; point stdout at devnull so a
    # closed pipe does not raise again at shutdown.
    try:
        fileno = sys.stdout.fileno()
    except (AttributeError, io.UnsupportedOperation):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, fileno)


def _finish(result: RunResult) -> None:
    if result.output_closed:
        _silence_stdout()
    if result.error is not None:
        _print_error(result.error)
    if not result.ok:
        raise typer.Exit(code=int(result.exit_code))


@app.command()
def main(
    ctx: typer.Context,
    files: Optional[List[str]] = typer.Argument(
        None, help="Files to read in order; none or '-' reads standard input"
    ),
    ignore: bool = typer.Option(
        False, "--ignore", "-i", help="Drop blank lines before filtering"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output JSON"),
    pretty: bool = typer.Option(False, "--pretty", "-p", help="Indent JSON output"),
    filter_expr: Optional[str] = typer.Option(
        None, "--filter", "-f", help="Keep lines where EXPR over line and i is truthy"
    ),
    map_expr: Optional[str] = typer.Option(
        None, "--map", "-m", help="Replace each line with EXPR over line and i"
    ),
    reduce_expr: Optional[str] = typer.Option(
        None,
        "--reduce",
        "-r",
        help=(
            f"Fold all lines with one of {', '.join(builtin_reducers())}, "
            "or an expression over prev, curr and i"
        ),
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML file with default options"
    ),
    log_level: str = typer.Option(
        "WARNING", "--log-level", envvar="LINEPIPE_LOG_LEVEL", help="Diagnostic log level"
    ),
    log_format: str = typer.Option("text", "--log-format", help="'text' or 'json'"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    _configure_logging(log_level, log_format)

    try:
        base = load_options(config_path) if config_path else PipelineOptions()
    except LinepipeError as e:
        _print_error(e)
        raise typer.Exit(code=int(classify_exception(e))) from None

    options = base.merged(
        filter=filter_expr,
        map=map_expr,
        reduce=reduce_expr,
        ignore_blank=ignore,
        json_output=json_output,
        pretty=pretty,
    )
    if not options.wants_output:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=int(ExitCode.OK))

    try:
        result = run_sync(options, files, sys.stdout)
    except KeyboardInterrupt:
        typer.echo(err=True)
        raise typer.Exit(code=128 + signal.SIGINT) from None

    _finish(result)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
