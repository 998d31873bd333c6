"""
Teamwerx CLI - Change commands.

Create, apply, resolve and archive changes.
"""

from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from teamwerx.cli.common import console, fail, get_workspace
from teamwerx.errors import TeamwerxApplyError, TeamwerxError
from teamwerx.models import ApplyResult, Change
from teamwerx.workspace import Teamwerx

app = typer.Typer(
    name="change",
    help="Manage spec changes",
    no_args_is_help=True,
)


def _read_change(workspace: Teamwerx, change_id: str) -> Change:
    if not change_id.strip():
        fail("change id is required")
    try:
        return workspace.read_change(change_id)
    except TeamwerxError as exc:
        fail(f"failed to read change: {exc}")


def _apply_failed(change_id: str, exc: TeamwerxError) -> str:
    if isinstance(exc, TeamwerxApplyError):
        return str(exc)
    return f"failed to apply change {change_id}: {exc}"


def _print_result(result: ApplyResult) -> None:
    for merge in result.merges:
        counts = ", ".join(f"{op} {n}" for op, n in merge.operations_applied.items() if n)
        forced = " [yellow](forced)[/yellow]" if merge.forced else ""
        console.print(
            f"  [cyan]{escape(merge.spec.domain)}[/cyan]: {counts or 'no changes'}{forced}"
        )
    for warning in result.warnings:
        console.print(f"  [yellow]Warning:[/yellow] {escape(warning.message)}")


@app.command(name="list")
def list_changes(ctx: typer.Context) -> None:
    """
    List changes; unreadable entries are skipped.

    Examples:
        teamwerx change list
    """
    changes = get_workspace(ctx).list_changes()
    if not changes:
        console.print("[yellow]No changes found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 1))
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Deltas", justify="right")
    for change in changes:
        table.add_row(
            escape(change.id), escape(change.title), change.status, str(len(change.spec_deltas))
        )
    console.print(f"[green]Found {len(changes)} change(s)[/green]")
    console.print(table)


@app.command(name="new")
def new_change(
    ctx: typer.Context,
    deltas: list[Path] = typer.Argument(..., help="Delta documents (markdown with front matter)"),
    change_id: str = typer.Option(..., "--id", help="Change id"),
    title: str = typer.Option("", "--title", "-t", help="Change title"),
    goal: str = typer.Option("", "--goal", help="Goal the change belongs to"),
) -> None:
    """
    Create a draft change from delta documents.

    The current fingerprints of the touched specs are recorded as the
    change's base.

    Examples:
        teamwerx change new --id 001-add-2fa --title "Add 2FA" auth-delta.md
    """
    workspace = get_workspace(ctx)
    try:
        change = workspace.create_change_from_documents(change_id, title, deltas, goal_id=goal)
    except TeamwerxError as exc:
        fail(f"failed to create change: {exc}")
    console.print(f"[green]Created change {escape(change.id)}: {escape(change.title)}[/green]")
    for delta in change.spec_deltas:
        console.print(
            f"  [cyan]{escape(delta.domain)}[/cyan]: {len(delta.operations)} operation(s), "
            f"base {delta.base_fingerprint or '-'}"
        )


@app.command(name="template")
def delta_template(
    ctx: typer.Context,
    domain: str = typer.Argument(..., help="Spec domain the delta targets"),
    change_id: str = typer.Option(..., "--id", help="Change id"),
) -> None:
    """
    Print a starter delta document.

    Examples:
        teamwerx change template auth --id 001-add-2fa > auth-delta.md
    """
    typer.echo(get_workspace(ctx).delta_parser.template(domain, change_id), nl=False)


@app.command(name="apply")
def apply_change(
    ctx: typer.Context,
    change_id: str = typer.Option(..., "--id", help="Change id"),
    force: bool = typer.Option(False, "--force", help="Apply even if a spec diverged"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Merge without writing anything"),
) -> None:
    """
    Apply a change to the specs.

    Refuses a change whose base no longer matches a spec; use
    'change resolve' to refresh it or --force to overwrite.

    Examples:
        teamwerx change apply --id 001-add-2fa
        teamwerx change apply --id 001-add-2fa --dry-run
    """
    workspace = get_workspace(ctx)
    change = _read_change(workspace, change_id)
    try:
        result = workspace.apply_change(change, force=force, dry_run=dry_run)
    except TeamwerxError as exc:
        fail(_apply_failed(change.id, exc))

    if dry_run:
        console.print(f"[bold]Dry run of change {escape(change.id)}:[/bold] {escape(change.title)}")
    else:
        console.print(f"[green]Applied change {escape(change.id)}: {escape(change.title)}[/green]")
    _print_result(result)


@app.command(name="resolve")
def resolve_change(
    ctx: typer.Context,
    change_id: str = typer.Option(..., "--id", help="Change id"),
) -> None:
    """
    Rebase a diverged change on the current specs and apply it.

    Examples:
        teamwerx change resolve --id 001-add-2fa
    """
    workspace = get_workspace(ctx)
    change = _read_change(workspace, change_id)
    try:
        result = workspace.resolve_change(change)
    except TeamwerxError as exc:
        fail(_apply_failed(change.id, exc))
    console.print(f"[green]Applied change {escape(change.id)}: {escape(change.title)}[/green]")
    _print_result(result)


@app.command(name="archive")
def archive_change(
    ctx: typer.Context,
    change_id: str = typer.Option(..., "--id", help="Change id"),
) -> None:
    """
    Move a change to the archive.

    Examples:
        teamwerx change archive --id 001-add-2fa
    """
    workspace = get_workspace(ctx)
    change = _read_change(workspace, change_id)
    try:
        workspace.archive_change(change)
    except TeamwerxError as exc:
        fail(f"failed to archive change: {exc}")
    console.print(f"[green]Archived change {escape(change.id)}: {escape(change.title)}[/green]")
