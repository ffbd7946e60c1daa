# src/fanout/cli.py
"""fanout Command Line Interface.

Entry point for the fanout CLI tool.
"""

from __future__ import annotations

import typer

from fanout import __version__
from fanout.contracts import CompletionRecord, RunSummary, SchedulerError, Status
from fanout.engine.apps import App, Fetcher, Notifier
from fanout.engine.clock import Stopwatch
from fanout.engine.scheduler import CompletionCallback
from fanout.pooling.config import LocatorErrorPolicy, load_config

__all__ = ["app"]

_HELP_OPTIONS = ["-h", "--help"]

# Unknown options are ignored rather than rejected
_TOLERANT_CONTEXT = {
    "allow_extra_args": True,
    "ignore_unknown_options": True,
    "help_option_names": _HELP_OPTIONS,
}

app = typer.Typer(
    name="fanout",
    help="fanout: bounded-concurrency HTTP notifications.",
    no_args_is_help=True,
    context_settings={"help_option_names": _HELP_OPTIONS},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"fanout version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """fanout: bounded-concurrency HTTP notifications."""
    from fanout.core.logging import configure_logging

    log_level = "DEBUG" if verbose else "INFO"
    configure_logging(json_output=json_logs, level=log_level)


def _report_success(record: CompletionRecord) -> Status:
    typer.echo(f"Handle for {record.handle.locator} has completed successfully")
    return Status.ok()


def _report_failure(record: CompletionRecord) -> Status:
    typer.echo(f"Handle for {record.handle.locator} has failed. Reason: {record.status.explain()}")
    return Status.ok()


def _report_fetch(record: CompletionRecord) -> Status:
    if record.succeeded:
        typer.echo(f"{record.handle.locator} -> {record.handle.response_code}")
    else:
        typer.echo(f"{record.handle.locator} failed: {record.status.explain()}")
    return Status.ok()


def _announce_interrupt() -> None:
    typer.echo("Received interruption signal", err=True)


def _run_app(application: App, *callbacks: CompletionCallback, failure: str) -> RunSummary:
    """Run an application, turning a fatal error into exit code 1."""
    try:
        return application.run(*callbacks)
    except SchedulerError as e:
        typer.echo(f"{failure}{e.explain()}", err=True)
        raise typer.Exit(1) from None


@app.command(context_settings=_TOLERANT_CONTEXT)
def notify(
    url: str = typer.Option(
        ...,
        "--url",
        "-u",
        help="Destination for every POST.",
    ),
    interval: float = typer.Option(
        5.0,
        "--interval",
        "-i",
        help="Seconds between polls of stdin for new payloads.",
    ),
    pool_size: int = typer.Option(
        100,
        "--pool-size",
        help="Maximum number of concurrent transfers.",
    ),
    read_timeout: float = typer.Option(
        5.0,
        "--read-timeout",
        help="Maximum seconds to wait for stdin on one poll.",
    ),
    exit_on_eof: bool = typer.Option(
        False,
        "--exit-on-eof",
        help="Stop once stdin is closed and every transfer has completed.",
    ),
    skip_bad_locators: bool = typer.Option(
        False,
        "--skip-bad-locators",
        help="Skip requests with a malformed URL instead of aborting.",
    ),
) -> None:
    """POST each line read from stdin to URL until interrupted.

    Press Ctrl-C to stop: queued payloads are dropped and the command exits
    once every in-flight transfer has completed.
    """
    failure = f"Post requests for url = {url} failed. Reason: "
    stopwatch = Stopwatch()
    try:
        config = load_config(
            pool_size=pool_size,
            refill_interval_seconds=interval,
            producer_timeout_seconds=read_timeout,
            exit_when_idle=exit_on_eof,
            locator_error_policy=LocatorErrorPolicy.SKIP if skip_bad_locators else LocatorErrorPolicy.ABORT,
        )
    except SchedulerError as e:
        typer.echo(f"{failure}{e.explain()}", err=True)
        raise typer.Exit(1) from None

    notifier = Notifier(url, config, on_interrupt=_announce_interrupt)
    _run_app(notifier, _report_success, _report_failure, failure=failure)

    stopwatch.tock()
    typer.echo(f"Post requests for url = {url} finished with success!")
    typer.echo(f"Elapsed time: {stopwatch.elapsed():.3f} s")


@app.command(context_settings=_TOLERANT_CONTEXT)
def fetch(
    urls: list[str] = typer.Argument(
        ...,
        help="URLs to GET.",
    ),
    max_parallel: int = typer.Option(
        Fetcher.DEFAULT_MAX_PARALLEL,
        "--max-parallel",
        help="Maximum number of concurrent transfers.",
    ),
    skip_bad_locators: bool = typer.Option(
        False,
        "--skip-bad-locators",
        help="Skip malformed URLs instead of aborting.",
    ),
) -> None:
    """GET every URL once with bounded parallelism.

    Unknown flags are ignored. The value of an unknown option (`--foo bar`)
    cannot be told apart from a URL and is fetched as one; pass
    --skip-bad-locators to skip such values instead of aborting.
    """
    # Unknown options land among the positional URLs
    urls = [u for u in urls if not u.startswith("-")]
    try:
        fetcher = Fetcher(urls, max_parallel=max_parallel, skip_bad_locators=skip_bad_locators)
    except SchedulerError as e:
        typer.echo(f"Error: {e.explain()}", err=True)
        raise typer.Exit(1) from None

    summary = _run_app(fetcher, _report_fetch, failure="Error: ")

    typer.echo(f"Fetched {summary.succeeded} of {len(urls)} URLs ({summary.failed} failed)")


if __name__ == "__main__":
    app()
