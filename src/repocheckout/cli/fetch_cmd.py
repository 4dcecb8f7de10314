from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from repocheckout.cli.manager_factory import build_manager


def fetch(
    remote: str = typer.Argument(..., help="Remote name"),
    branch: str = typer.Argument(..., help="Branch to fetch"),
    path: Optional[Path] = typer.Option(None, "--path", help="Working directory (defaults to cwd)"),
) -> None:
    """Fetch one branch into refs/remotes/<remote>/<branch>, retrying on failure."""
    manager = build_manager(path)
    result = manager.fetch(remote, branch)
    if not result:
        typer.echo(f"Fetch failed ({result.status.value}): {result.error}")
        raise typer.Exit(code=1)
    typer.echo(f"Fetched {remote}/{branch}")
