from __future__ import annotations

import re

_VERSION_PATTERN = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")


class GitVersion:
    """A dotted ``major[.minor[.patch]]`` version, e.g. from ``git version`` output."""

    def __init__(self, version: str = "") -> None:
        self.major: int | None = None
        self.minor: int | None = None
        self.patch: int | None = None

        match = _VERSION_PATTERN.search(version) if version else None
        if match:
            major, minor, patch = match.groups()
            self.major = int(major)
            self.minor = int(minor) if minor is not None else None
            self.patch = int(patch) if patch is not None else None

    def is_valid(self) -> bool:
        return self.major is not None

    def check_minimum(self, minimum: GitVersion) -> bool:
        """Return True when this version is at least ``minimum``."""
        if not minimum.is_valid():
            raise ValueError("Arg minimum is not a valid version")
        if not self.is_valid():
            return False

        for current, required in zip(self._components(), minimum._components()):
            if current < required:
                return False
            if current > required:
                return True
        return True

    def _components(self) -> tuple[int, int, int]:
        return (self.major or 0, self.minor or 0, self.patch or 0)

    def __str__(self) -> str:
        if not self.is_valid():
            return ""
        parts = [self.major, self.minor, self.patch]
        parsed = [str(p) for p in parts if p is not None]
        return ".".join(parsed)

    def __repr__(self) -> str:
        return f"GitVersion({str(self)!r})"
