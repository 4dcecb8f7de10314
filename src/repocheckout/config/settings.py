from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError, model_validator

from repocheckout.engine.retry import DEFAULT_MAX_ATTEMPTS, DEFAULT_MAX_SECONDS, DEFAULT_MIN_SECONDS
from repocheckout.git.errors import ConfigurationError

CONFIG_FILE_NAME = "repocheckout.yaml"
DEFAULT_SERVER_URL = "https://github.com"


class RetryConfig(BaseModel):
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    min_seconds: int = DEFAULT_MIN_SECONDS
    max_seconds: int = DEFAULT_MAX_SECONDS
    attempts_interval: int | None = None

    @model_validator(mode="after")
    def _check_bounds(self) -> RetryConfig:
        if self.min_seconds and self.max_seconds and self.min_seconds > self.max_seconds:
            raise ValueError("min_seconds should be less than or equal to max_seconds")
        return self


class CheckoutConfig(BaseModel):
    server_url: str = DEFAULT_SERVER_URL
    ref: str = ""
    lfs: bool = False
    sparse_checkout: bool = False
    retry: RetryConfig = RetryConfig()
    config_dir: Path | None = None


def _find_config_file(start: Path | None = None) -> Path | None:
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def load_config(start: Path | None = None) -> CheckoutConfig:
    """Load ``repocheckout.yaml`` (if any) and apply environment overrides.

    Invalid values, from the file or the environment, raise ConfigurationError.
    """
    config_path = _find_config_file(start)

    if config_path is not None:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        try:
            config = CheckoutConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in '{config_path}': {e}") from e
        config.config_dir = config_path.parent
    else:
        config = CheckoutConfig()

    server_url_env = os.environ.get("GITHUB_SERVER_URL")
    if server_url_env:
        config.server_url = server_url_env

    ref_env = os.environ.get("GITHUB_REF")
    if ref_env is not None:
        config.ref = ref_env

    max_attempts_env = os.environ.get("REPOCHECKOUT_MAX_ATTEMPTS")
    if max_attempts_env:
        try:
            config.retry.max_attempts = int(max_attempts_env)
        except ValueError as e:
            raise ConfigurationError(
                f"REPOCHECKOUT_MAX_ATTEMPTS must be an integer, got '{max_attempts_env}'"
            ) from e

    return config
