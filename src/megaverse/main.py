"""CLI entrypoint for megaverse."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import NoReturn

import rich_click as click

from megaverse import __version__
from megaverse.orchestrator.controllers import (
    CleanupCommand,
    DrawXCommand,
    GoalBuildCommand,
    MegaverseCliController,
)

click.rich_click.USE_MARKDOWN = True
CONTROLLER = MegaverseCliController()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
EXIT_USAGE = 1
EXIT_COMMAND_ERROR = 2
logger = logging.getLogger(__name__)


class CommandError(click.ClickException):
    """Uncaught failure while running a command."""

    exit_code = EXIT_COMMAND_ERROR


class MegaverseGroup(click.RichGroup):
    """Command group that answers a missing or unknown command with usage and exit 1."""

    def resolve_command(
        self,
        ctx: click.Context,
        args: list[str],
    ) -> tuple[str | None, click.Command | None, list[str]]:
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as error:
            click.echo(f"{error.format_message()}\n")
            _print_usage(ctx)


@click.group(cls=MegaverseGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="megaverse")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
    help="Logging verbosity.",
)
@click.pass_context
def megaverse(ctx: click.Context, log_level: str) -> None:
    """Build the megaverse map from its goal, under bounded concurrency."""

    logging.basicConfig(level=log_level.upper(), format=LOG_FORMAT)
    if ctx.invoked_subcommand is None:
        _print_usage(ctx)


@megaverse.command("phase1")
@click.argument("size", type=click.IntRange(min=1), required=False)
@click.option(
    "--size",
    "size_option",
    type=click.IntRange(min=1),
    default=None,
    help="Side of the square map. Overrides the positional SIZE.",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Max in-flight requests. Defaults to MEGAVERSE_CONCURRENCY.",
)
@click.option("--dry-run", "--dry", "dry_run", is_flag=True, help="Only log intended placements.")
def phase1(
    size: int | None,
    size_option: int | None,
    concurrency: int | None,
    dry_run: bool,
) -> None:
    """Draw an X of polyanets across a square map."""

    _run(
        lambda: CONTROLLER.draw_x(
            DrawXCommand(
                size=size_option if size_option is not None else size,
                concurrency=concurrency,
                dry_run=dry_run,
            ),
        ),
    )


@megaverse.command("phase2")
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Max in-flight requests. Defaults to MEGAVERSE_CONCURRENCY.",
)
@click.option("--dry-run", "--dry", "dry_run", is_flag=True, help="Only log intended placements.")
def phase2(concurrency: int | None, dry_run: bool) -> None:
    """Build the map from the goal fetched from the server, row by row."""

    _run(
        lambda: CONTROLLER.build_goal(
            GoalBuildCommand(concurrency=concurrency, dry_run=dry_run),
        ),
    )


@megaverse.command("validate")
def validate() -> None:
    """Ask the server whether the current map matches the goal."""

    _run(CONTROLLER.validate)


@megaverse.command("cleanup")
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Max in-flight requests. Defaults to MEGAVERSE_CONCURRENCY.",
)
@click.option("--dry-run", "--dry", "dry_run", is_flag=True, help="Only log intended deletions.")
def cleanup(concurrency: int | None, dry_run: bool) -> None:
    """Delete polyanets that are on the map but not in the goal."""

    _run(
        lambda: CONTROLLER.cleanup(
            CleanupCommand(concurrency=concurrency, dry_run=dry_run),
        ),
    )


def _run(action: Callable[[], list[str]]) -> None:
    try:
        lines = action()
    except Exception as error:
        logger.exception("Error running command")
        raise CommandError(str(error) or error.__class__.__name__) from error
    _emit_lines(lines)


def _print_usage(ctx: click.Context) -> NoReturn:
    click.echo(ctx.get_help())
    ctx.exit(EXIT_USAGE)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    megaverse()
