from __future__ import annotations

import logging
import math
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from repocheckout.git.errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MIN_SECONDS = 10
DEFAULT_MAX_SECONDS = 20


class EventEmitter(Protocol):
    def emit(self, event_type: str, **data: Any) -> object: ...


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    min_seconds: int = DEFAULT_MIN_SECONDS
    max_seconds: int = DEFAULT_MAX_SECONDS
    attempts_interval: int | None = None

    def __post_init__(self) -> None:
        # Zero on either side disables the bounds check.
        if self.min_seconds and self.max_seconds and self.min_seconds > self.max_seconds:
            raise ConfigurationError("min seconds should be less than or equal to max seconds")


def error_message(err: BaseException) -> str:
    message = str(err)
    return message if message else type(err).__name__


class RetryHelper:
    """Runs an action up to ``policy.max_attempts`` times.

    Every attempt but the last logs its failure and sleeps before trying
    again. The last attempt is not guarded: whatever it raises reaches the
    caller unchanged.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        emitter: EventEmitter | None = None,
        sleep_fn: Callable[[float], None] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.policy = policy
        self._emitter = emitter
        self._sleep = sleep_fn if sleep_fn is not None else time.sleep
        self._rng = rng if rng is not None else random.Random()

    def execute(self, action: Callable[[], T]) -> T:
        attempt = 1
        while attempt < self.policy.max_attempts:
            try:
                return action()
            except Exception as e:
                logger.info(error_message(e))
                self._emit("RetryAttemptFailed", attempt=attempt, error=error_message(e))

            seconds = self.get_sleep_amount()
            logger.info("Waiting %d seconds before trying again", seconds)
            self._emit("RetryWaiting", attempt=attempt, delay_seconds=seconds)
            self._sleep(seconds)
            attempt += 1

        # Last attempt
        try:
            return action()
        except Exception as e:
            logger.info(error_message(e))
            self._emit("RetryAttemptFailed", attempt=attempt, error=error_message(e))
            raise

    def get_sleep_amount(self) -> int:
        if self.policy.attempts_interval is not None:
            return self.policy.attempts_interval
        return self._rng.randint(self.policy.min_seconds, self.policy.max_seconds)

    def _emit(self, event_type: str, **data: Any) -> None:
        if self._emitter:
            self._emitter.emit(event_type, max_attempts=self.policy.max_attempts, **data)


def _floor(value: float | None, default: int | None) -> int | None:
    return default if value is None else math.floor(value)


def create_retry_helper(
    max_attempts: float | None = None,
    min_seconds: float | None = None,
    max_seconds: float | None = None,
    attempts_interval: float | None = None,
    *,
    emitter: EventEmitter | None = None,
    sleep_fn: Callable[[float], None] | None = None,
    rng: random.Random | None = None,
) -> RetryHelper:
    policy = RetryPolicy(
        max_attempts=_floor(max_attempts, DEFAULT_MAX_ATTEMPTS),  # type: ignore[arg-type]
        min_seconds=_floor(min_seconds, DEFAULT_MIN_SECONDS),  # type: ignore[arg-type]
        max_seconds=_floor(max_seconds, DEFAULT_MAX_SECONDS),  # type: ignore[arg-type]
        attempts_interval=_floor(attempts_interval, None),
    )
    return RetryHelper(policy, emitter=emitter, sleep_fn=sleep_fn, rng=rng)


def create_retry_helper_with_defaults(emitter: EventEmitter | None = None) -> RetryHelper:
    return create_retry_helper(emitter=emitter)


def execute_with_defaults(action: Callable[[], T]) -> T:
    return create_retry_helper_with_defaults().execute(action)


def execute_with_customised(
    max_attempts: float | None,
    min_seconds: float | None,
    max_seconds: float | None,
    attempts_interval: float | None,
    action: Callable[[], T],
) -> T:
    helper = create_retry_helper(max_attempts, min_seconds, max_seconds, attempts_interval)
    return helper.execute(action)
