from __future__ import annotations

import logging
from pathlib import Path

import typer

from repocheckout.config.settings import load_config
from repocheckout.events.dispatcher import EventDispatcher
from repocheckout.events.observer import LoggingObserver, StdoutObserver
from repocheckout.git.command_manager import GitCommandManager, create_git_command_manager
from repocheckout.git.errors import CheckoutError


def build_dispatcher() -> EventDispatcher:
    dispatcher = EventDispatcher()
    # With INFO logging on (--verbose) the log already carries retry and fetch lines.
    if not logging.getLogger("repocheckout").isEnabledFor(logging.INFO):
        dispatcher.add_observer(StdoutObserver())
    dispatcher.add_observer(LoggingObserver())
    return dispatcher


def build_manager(path: Path | None, lfs: bool | None = None, sparse_checkout: bool | None = None) -> GitCommandManager:
    """Create an initialized manager for ``path`` or exit with code 1."""
    working_directory = (path or Path.cwd()).resolve()

    try:
        config = load_config(start=working_directory if working_directory.is_dir() else None)
        return create_git_command_manager(
            working_directory,
            config.lfs if lfs is None else lfs,
            config.sparse_checkout if sparse_checkout is None else sparse_checkout,
            config=config,
            emitter=build_dispatcher(),
        )
    except CheckoutError as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(code=1)
