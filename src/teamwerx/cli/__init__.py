"""
Teamwerx CLI - Main application entry point.

This module sets up the Typer CLI application with its subcommands.
"""

import logging

import typer

from teamwerx.cli import change, spec
from teamwerx.config import DEFAULT_ROOT_DIR
from teamwerx.observability import set_level

app = typer.Typer(
    name="teamwerx",
    help="Manage markdown specs and the changes that edit them",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)


@app.callback()
def main(
    ctx: typer.Context,
    root: str = typer.Option(
        DEFAULT_ROOT_DIR,
        "--root",
        envvar="TEAMWERX_ROOT",
        help="Workspace directory holding specs/ and changes/",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Emit debug logs (JSON lines on stderr)",
    ),
) -> None:
    """
    Teamwerx - spec merge engine.

    Specs are markdown documents under <root>/specs/<domain>/spec.md whose
    '### Requirement: <title>' blocks are edited by changes.

    Common Workflows:
        teamwerx spec list
        teamwerx change new --id 001-add-2fa --title "Add 2FA" delta.md
        teamwerx change apply --id 001-add-2fa
        teamwerx change resolve --id 001-add-2fa   # after a divergence
        teamwerx change archive --id 001-add-2fa
    """
    set_level(logging.DEBUG if verbose else logging.WARNING)
    ctx.obj = {"root": root, "verbose": verbose}


app.add_typer(spec.app, name="spec")
app.add_typer(change.app, name="change")
