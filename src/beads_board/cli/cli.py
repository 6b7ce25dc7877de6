import logging
from pathlib import Path

import click

from beads_board.cli.commands import (
    board_cmd,
    column_cmd,
    count_cmd,
    health_cmd,
    show_cmd,
    status_cmd,
)
from beads_board.cli.context import create_board_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--workspace",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Workspace directory containing .beads/",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, workspace: Path, verbose: bool) -> None:
    """Browse a beads issue board from the command line."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s - %(levelname)s - %(message)s",
    )

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        try:
            ctx.obj = create_board_context(workspace.resolve())
        except ValueError as e:
            raise click.ClickException(str(e)) from e
    ctx.call_on_close(ctx.obj.backend.dispose)


cli.add_command(board_cmd)
cli.add_command(column_cmd)
cli.add_command(count_cmd)
cli.add_command(show_cmd)
cli.add_command(status_cmd)
cli.add_command(health_cmd)


def main() -> None:
    """CLI entry point used by the `beads-board` console script."""
    cli()
