from __future__ import annotations

import logging
from typing import Protocol

import typer

from repocheckout.events.types import (
    Event,
    FetchCompleted,
    GitCommandCompleted,
    GitVersionDetected,
    RetryAttemptFailed,
    RetryWaiting,
)

logger = logging.getLogger("repocheckout.events")


class EventObserver(Protocol):
    def on_event(self, event: Event) -> None: ...


def format_event(event: Event) -> str | None:
    if isinstance(event, RetryAttemptFailed):
        return f"[Retry] Attempt {event.attempt}/{event.max_attempts} failed: {event.error}"
    if isinstance(event, RetryWaiting):
        return f"[Retry] Waiting {event.delay_seconds} seconds before trying again"
    if isinstance(event, GitVersionDetected):
        return f"[Git] {event.tool} {event.version} ({event.path})"
    if isinstance(event, GitCommandCompleted):
        return f"[Git] git {' '.join(event.args)} exited with {event.exit_code}"
    if isinstance(event, FetchCompleted):
        line = f"[Fetch] {event.remote} {' '.join(event.ref_spec)}: {event.status}"
        if event.error:
            line += f" ({event.error})"
        return line
    return None


class StdoutObserver:
    def on_event(self, event: Event) -> None:
        # Per-command completions are too chatty for the console.
        if isinstance(event, GitCommandCompleted):
            return
        line = format_event(event)
        if line is not None:
            typer.echo(line)


class LoggingObserver:
    """Logs the events no module logs itself.

    RetryHelper logs each failed attempt and wait, exec_git logs every
    command, and fetch_remote logs its failures as warnings. Only detected
    tool versions and successful fetches are left for this observer.
    """

    def on_event(self, event: Event) -> None:
        if isinstance(event, (RetryAttemptFailed, RetryWaiting, GitCommandCompleted)):
            return
        if isinstance(event, FetchCompleted) and event.error:
            return
        line = format_event(event)
        if line is not None:
            logger.info(line)
