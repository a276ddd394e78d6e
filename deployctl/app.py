"""Main CLI application."""

import asyncio
import os
import signal
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from loguru import logger
from rich.markup import escape
from rich.text import Text

from deployctl import __version__
from deployctl.bootstrap import create_runtime, load_environment
from deployctl.commands.schema import CommandSpec
from deployctl.config.schemas import DeployctlSettings
from deployctl.errors import DeployctlError, DispatchCancelledError, HandlerFailure
from deployctl.pipeline.dispatcher import CancellationToken, DispatchRun
from deployctl.pipeline.expander import LifecycleExpander
from deployctl.utils.console import (
    QUIET_ENV,
    create_table,
    get_console,
    print_error,
    print_step,
    print_success,
    reset_console,
)
from deployctl.utils.logging import setup_logging

app = typer.Typer(
    name="deployctl",
    help="deployctl: lifecycle-driven service deployment",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)


class ProgressListener:
    """Prints the progress title of each hook that has one."""

    def __init__(self, command: CommandSpec):
        self.command = command

    def on_hook_start(self, run: DispatchRun, hook_name: str) -> None:
        title = self.command.progress_title(hook_name)
        if title:
            print_step(escape(title))
        logger.debug(f"[{run.current_index + 1}/{len(run.hooks)}] {hook_name}")


def version_callback(value: bool):
    if value:
        get_console().print(f"[bold cyan]deployctl[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Minimal output"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Service file path"),
):
    """deployctl: lifecycle-driven service deployment."""
    settings = DeployctlSettings()

    level = settings.log_level
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "ERROR"
        os.environ[QUIET_ENV] = "1"
        reset_console()
    setup_logging(level, settings.log_format)

    ctx.obj = {"settings": settings, "config": config, "verbose": verbose}


def _options(ctx: typer.Context) -> Dict[str, Any]:
    return ctx.obj or {"settings": DeployctlSettings(), "config": None, "verbose": False}


def _report(error: DeployctlError, verbose: bool) -> None:
    """Print the root cause of ``error`` and exit with status 1."""
    root = error.root_cause if isinstance(error, HandlerFailure) else error
    if isinstance(root, DeployctlError):
        message = root.format_for_cli(verbose)
    else:
        message = f"[red]Error[/red]: {escape(str(root))}"

    if isinstance(error, HandlerFailure) and not isinstance(error, DispatchCancelledError):
        source = f" ({error.plugin_name})" if error.plugin_name else ""
        message += f"\n[dim]Failed in hook {escape(error.hook_name + source)}[/dim]"

    print_error(message)
    raise typer.Exit(1)


def _install_interrupt_handler(token: CancellationToken):
    """First Ctrl+C cancels at the next hook boundary, the second aborts."""

    def handler(signum, frame):
        if token.cancelled:
            raise KeyboardInterrupt
        token.cancel("interrupted")
        get_console().print("[yellow]Stopping after the current hook (Ctrl+C again to abort)[/yellow]")

    return signal.signal(signal.SIGINT, handler)


@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def run(
    ctx: typer.Context,
    command: List[str] = typer.Argument(..., help="Command words followed by its options"),
    last_hook: Optional[str] = typer.Option(
        None, "--last-hook", help="Stop after this hook name"
    ),
):
    """Run a command through its lifecycle, e.g. [cyan]deployctl run deploy --stage prod[/cyan]."""
    opts = _options(ctx)
    token = CancellationToken()
    previous = _install_interrupt_handler(token)
    try:
        runtime = create_runtime(
            list(command) + list(ctx.args),
            settings=opts["settings"],
            config_path=opts["config"],
        )
        dispatch_run = asyncio.run(
            runtime.dispatch(
                cancel_token=token,
                last_hook=last_hook,
                listeners=[ProgressListener(runtime.command)],
            )
        )
    except DeployctlError as e:
        _report(e, opts["verbose"])
    finally:
        signal.signal(signal.SIGINT, previous)

    print_success(
        f"'{escape(dispatch_run.command)}' completed "
        f"({len(dispatch_run.invoked)} of {len(dispatch_run.hooks)} hooks had handlers)"
    )


@app.command("commands")
def list_commands(ctx: typer.Context):
    """List registered commands."""
    opts = _options(ctx)
    try:
        environment = load_environment(opts["settings"], config_path=opts["config"])
    except DeployctlError as e:
        _report(e, opts["verbose"])

    table = create_table("Commands", [])
    table.add_column("Command", style="cyan", overflow="fold")
    table.add_column("Service")
    table.add_column("Usage")
    for spec in sorted(environment.registry, key=lambda s: s.name):
        table.add_row(Text(spec.name), spec.service_dependency_mode.value, Text(spec.usage))
    get_console().print(table)


@app.command("hooks")
def show_hooks(
    ctx: typer.Context,
    command: List[str] = typer.Argument(..., help="Command path, e.g. 'deploy function'"),
):
    """Show the hook names a command dispatches, in order, with their handlers."""
    opts = _options(ctx)
    try:
        environment = load_environment(opts["settings"], config_path=opts["config"])
        spec = environment.registry.resolve(" ".join(command))
        hooks = LifecycleExpander(environment.registry).expand(spec.name)
    except DeployctlError as e:
        _report(e, opts["verbose"])

    table = create_table(f"Hooks of '{spec.name}'", [])
    table.add_column("Hook", style="cyan", overflow="fold")
    table.add_column("Handlers")
    table.add_column("Title")
    for name in hooks:
        handlers = ", ".join(r.label for r in environment.hook_table.registrations(name))
        table.add_row(Text(name), Text(handlers), Text(spec.progress_title(name) or ""))
    get_console().print(table)


def main():
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
