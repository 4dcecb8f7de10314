from __future__ import annotations

import os
import stat
from pathlib import Path

from repocheckout.git.errors import ConfigurationError


def _stat(path: str | Path) -> os.stat_result | None:
    if not path:
        raise ValueError("Arg 'path' must not be empty")
    try:
        return os.stat(path)
    except FileNotFoundError:
        return None
    except OSError as e:
        raise ConfigurationError(
            f"Encountered an error when checking whether path '{path}' exists: {e.strerror or e}"
        ) from e


def directory_exists(path: str | Path, required: bool = False) -> bool:
    stats = _stat(path)
    if stats is not None and stat.S_ISDIR(stats.st_mode):
        return True
    if not required:
        return False
    raise ConfigurationError(f"Directory '{path}' does not exist")


def file_exists(path: str | Path) -> bool:
    stats = _stat(path)
    if stats is None:
        return False
    return not stat.S_ISDIR(stats.st_mode)
