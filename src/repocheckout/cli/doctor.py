from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from repocheckout.cli.manager_factory import build_manager
from repocheckout.git.command_manager import (
    MINIMUM_GIT_LFS_VERSION,
    MINIMUM_GIT_SPARSE_CHECKOUT_VERSION,
    MINIMUM_GIT_VERSION,
)


def doctor(
    path: Optional[Path] = typer.Argument(None, help="Working directory (defaults to cwd)"),
    lfs: Optional[bool] = typer.Option(None, "--lfs/--no-lfs", help="Also check git-lfs (default from config)"),
    sparse_checkout: Optional[bool] = typer.Option(
        None, "--sparse-checkout/--no-sparse-checkout", help="Also check sparse-checkout support (default from config)"
    ),
) -> None:
    """Check that git (and optionally git-lfs) can be used for a checkout."""
    manager = build_manager(path, lfs=lfs, sparse_checkout=sparse_checkout)

    typer.echo(f"git: {manager.git_path} ({manager.git_version}) >= {MINIMUM_GIT_VERSION}: OK")
    if manager.lfs:
        typer.echo(f"git-lfs >= {MINIMUM_GIT_LFS_VERSION}: OK")
    if manager.do_sparse_checkout:
        typer.echo(f"sparse-checkout (git >= {MINIMUM_GIT_SPARSE_CHECKOUT_VERSION}): OK")
    typer.echo(f"User agent: {manager.git_env['GIT_HTTP_USER_AGENT']}")
