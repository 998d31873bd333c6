"""
Teamwerx CLI - Spec commands.

Inspect the specs of the workspace.
"""

import typer
from rich.markup import escape
from rich.table import Table

from teamwerx.cli.common import console, fail, get_workspace
from teamwerx.errors import TeamwerxError

app = typer.Typer(
    name="spec",
    help="Inspect specs",
    no_args_is_help=True,
)


@app.command(name="list")
def list_specs(ctx: typer.Context) -> None:
    """
    List every spec with its requirement count and fingerprint.

    Examples:
        teamwerx spec list
    """
    workspace = get_workspace(ctx)
    specs = workspace.list_specs()
    if not specs:
        console.print("[yellow]No specs found.[/yellow]")
        console.print(f"[dim]Specs live in {escape(str(workspace.config.specs_path))}/<domain>/spec.md[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 1))
    table.add_column("Domain", style="cyan")
    table.add_column("Requirements", justify="right")
    table.add_column("Fingerprint", style="dim")
    for spec in specs:
        table.add_row(escape(spec.domain), str(len(spec.requirements)), spec.fingerprint or "-")
    console.print(f"[green]Found {len(specs)} spec(s)[/green]")
    console.print(table)


@app.command(name="show")
def show_spec(
    ctx: typer.Context,
    domain: str = typer.Argument(..., help="Spec domain, e.g. 'auth'"),
) -> None:
    """
    Show the requirements of one spec with their fingerprints.

    Examples:
        teamwerx spec show auth
    """
    workspace = get_workspace(ctx)
    try:
        spec = workspace.read_spec(domain)
    except TeamwerxError as exc:
        fail(str(exc))

    fingerprints = spec.requirement_fingerprints(workspace.config.fingerprint_bytes)
    console.print(f"[bold]Domain:[/bold] {escape(spec.domain)}")
    console.print(f"[bold]Fingerprint:[/bold] {spec.fingerprint or '-'}")
    if not spec.requirements:
        console.print("[dim]No requirements.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 1))
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Fingerprint", style="dim")
    for req in spec.requirements:
        table.add_row(escape(req.id or "-"), escape(req.title), fingerprints.get(req.id, "-"))
    console.print(table)
