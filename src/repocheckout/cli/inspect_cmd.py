from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from repocheckout.cli.manager_factory import build_manager
from repocheckout.git.errors import CheckoutError


def default_branch(
    url: str = typer.Argument(..., help="Remote repository URL"),
    path: Optional[Path] = typer.Option(None, "--path", help="Working directory (defaults to cwd)"),
) -> None:
    """Print the default branch of a remote repository."""
    manager = build_manager(path)
    try:
        typer.echo(manager.get_default_branch(url))
    except CheckoutError as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(code=1)


def working_base(
    path: Optional[Path] = typer.Argument(None, help="Working directory (defaults to cwd)"),
) -> None:
    """Print the type and ref/commit the working copy is based on."""
    manager = build_manager(path)
    try:
        base = manager.get_working_base_and_type()
    except CheckoutError as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(code=1)
    typer.echo(f"{base.working_base_type.value} {base.working_base}")


def branches(
    path: Optional[Path] = typer.Argument(None, help="Working directory (defaults to cwd)"),
    remote: bool = typer.Option(False, "--remote", help="List remote-tracking branches of origin"),
) -> None:
    """List branch names without their refs/ prefix."""
    manager = build_manager(path)
    try:
        names = manager.branch_list(remote)
    except CheckoutError as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(code=1)
    for name in names:
        typer.echo(name)
