"""Board commands."""

from typing import NoReturn

import click
from rich.console import Console
from rich.table import Table

from beads_board.cli.context import BoardContext
from beads_board.non_ideal_state import BoardError
from beads_board.types import BOARD_COLUMNS, COLUMN_KEYS, ISSUE_STATUSES, BoardCard, BoardData


def _fail(error: BoardError) -> NoReturn:
    click.echo(f"Error: {error.message}", err=True)
    if error.remedy is not None:
        click.echo(error.remedy, err=True)
    raise SystemExit(1)


def _print_table(table: Table) -> None:
    # Use width=200 to prevent truncation in terminal environments with narrow defaults
    Console(width=200).print(table)


def _card_table(cards: list[BoardCard], *, with_column: bool) -> Table:
    table = Table(show_header=True, header_style="bold", box=None)
    if with_column:
        table.add_column("Column", no_wrap=True)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("P", no_wrap=True)
    table.add_column("Title")
    table.add_column("Blocked by", style="yellow", no_wrap=True)
    for card in cards:
        row = [
            card.id,
            f"P{card.issue.priority}",
            card.issue.title,
            ", ".join(dep.id for dep in card.blocked_by) or "-",
        ]
        if with_column:
            row.insert(0, card.column_key)
        table.add_row(*row)
    return table


@click.command("board")
@click.pass_obj
def board_cmd(ctx: BoardContext) -> None:
    """Show every card, grouped by column."""
    board = ctx.backend.load_board()
    if not isinstance(board, BoardData):
        _fail(board)

    order = {column.key: index for index, column in enumerate(BOARD_COLUMNS)}
    cards = sorted(board.cards, key=lambda card: order.get(card.column_key, len(order)))
    _print_table(_card_table(cards, with_column=True))
    if board.has_more:
        click.echo(f"Showing the first {len(board.cards)} issues; more are available.")


@click.command("column")
@click.argument("column_key", type=click.Choice(COLUMN_KEYS))
@click.option("--offset", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--limit", type=click.IntRange(min=1), default=50, show_default=True)
@click.pass_obj
def column_cmd(ctx: BoardContext, column_key: str, offset: int, limit: int) -> None:
    """Show one page of a column."""
    page = ctx.backend.get_column_page(column_key, offset, limit)
    if isinstance(page, BoardError):
        _fail(page)
    if not page.cards:
        click.echo(f"No issues in {column_key} at offset {offset}.")
        return
    _print_table(_card_table(list(page.cards), with_column=False))


@click.command("count")
@click.argument("column_key", type=click.Choice(COLUMN_KEYS))
@click.pass_obj
def count_cmd(ctx: BoardContext, column_key: str) -> None:
    """Print the number of issues in a column."""
    count = ctx.backend.get_column_count(column_key)
    if not isinstance(count, int):
        _fail(count)
    click.echo(str(count))


@click.command("show")
@click.argument("issue_id")
@click.pass_obj
def show_cmd(ctx: BoardContext, issue_id: str) -> None:
    """Show an issue with its relationships and comments."""
    detail = ctx.backend.get_issue_detail(issue_id)
    if isinstance(detail, BoardError):
        _fail(detail)

    card = detail.card
    issue = card.issue
    click.echo(click.style(f"{issue.id}: {issue.title}", bold=True))
    click.echo(f"Status: {issue.status}  Priority: P{issue.priority}  Type: {issue.issue_type}")
    click.echo(f"Ready: {'yes' if card.is_ready else 'no'}")
    if issue.assignee:
        click.echo(f"Assignee: {issue.assignee}")
    if issue.labels:
        click.echo(f"Labels: {', '.join(issue.labels)}")
    if card.parent is not None:
        click.echo(f"Parent: {card.parent.id} {card.parent.title}")
    for heading, deps in (
        ("Children", card.children),
        ("Blocks", card.blocks),
        ("Blocked by", card.blocked_by),
    ):
        if deps:
            click.echo(f"{heading}: {', '.join(dep.id for dep in deps)}")
    if issue.description:
        click.echo("")
        click.echo(issue.description)
    for comment in detail.comments:
        click.echo("")
        click.echo(click.style(f"{comment.author} ({comment.created_at})", dim=True))
        click.echo(comment.text)


@click.command("status")
@click.argument("issue_id")
@click.argument("status", type=click.Choice(ISSUE_STATUSES))
@click.pass_obj
def status_cmd(ctx: BoardContext, issue_id: str, status: str) -> None:
    """Move an issue to a new status."""
    error = ctx.backend.set_status(issue_id, status)
    if error is not None:
        _fail(error)
    click.echo(f"{issue_id} is now {status}")


@click.command("health")
@click.pass_obj
def health_cmd(ctx: BoardContext) -> None:
    """Report daemon and circuit breaker health."""
    status = ctx.daemon_manager.get_status()
    health = ctx.daemon_manager.check_health()
    diagnostics = ctx.backend.circuit_diagnostics()

    table = Table(show_header=False, box=None)
    table.add_column("Check", style="bold", no_wrap=True)
    table.add_column("Result")
    if status.running:
        pid = f" (pid {status.pid})" if status.pid is not None else ""
        table.add_row("Daemon", f"[green]running[/green]{pid}")
    else:
        table.add_row("Daemon", f"[red]not running[/red] {status.error or ''}".rstrip())
    if health.healthy:
        table.add_row("Health", "[green]ok[/green]")
    else:
        table.add_row("Health", "[yellow]" + "; ".join(health.issues) + "[/yellow]")
    table.add_row(
        "Circuit",
        f"{diagnostics.state.value} ({diagnostics.consecutive_failures} consecutive failures)",
    )
    _print_table(table)

    if not status.running or not health.healthy:
        raise SystemExit(1)
