"""Helpers shared by the CLI command modules."""

from __future__ import annotations

from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from teamwerx.config import TeamwerxConfig
from teamwerx.workspace import Teamwerx

console = Console(soft_wrap=True)


def get_workspace(ctx: typer.Context) -> Teamwerx:
    """Build the workspace for the ``--root`` given to the top-level command."""
    obj = ctx.obj or {}
    return Teamwerx(TeamwerxConfig(root_dir=obj.get("root") or ".teamwerx"))


def fail(message: str) -> NoReturn:
    """Print *message* as an error and exit with status 1."""
    console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(1)
