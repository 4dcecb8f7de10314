"""Error types raised while driving git for a checkout."""

from __future__ import annotations


class CheckoutError(Exception):
    """Base error for checkout operations."""

    pass


class ConfigurationError(CheckoutError):
    """Invalid settings or a precondition the caller failed to establish."""

    pass


class ToolNotFoundError(CheckoutError):
    """An executable could not be found on PATH."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unable to locate executable file: {name}")
        self.name = name


# =============================================================================
# Version Errors
# =============================================================================


class GitVersionError(CheckoutError):
    """Installed tool version cannot be used."""

    pass


class GitVersionUndeterminedError(GitVersionError):
    def __init__(self, tool: str) -> None:
        super().__init__(f"Unable to determine {tool} version")
        self.tool = tool


class UnsupportedGitVersionError(GitVersionError):
    """Installed version is below a required minimum."""

    def __init__(self, tool: str, minimum: str, actual: str, path: str, purpose: str = "") -> None:
        if purpose:
            requirement = f"Minimum {tool} version required for {purpose}"
        else:
            requirement = f"Minimum required {tool} version"
        super().__init__(f"{requirement} is {minimum}. Your {tool} ('{path}') is {actual}")
        self.tool = tool
        self.minimum = minimum
        self.actual = actual
        self.path = path


# =============================================================================
# Command Errors
# =============================================================================


class GitCommandError(CheckoutError):
    """git exited with a code the operation does not accept."""

    def __init__(self, command: list[str], exit_code: int, stderr: str) -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"The process '{command[0]}' failed with exit code {exit_code}\n{stderr}".rstrip())


# =============================================================================
# Parse Errors
# =============================================================================


class GitParseError(CheckoutError):
    """git output or a git URL did not have the expected shape."""

    pass


class InvalidRemoteUrlError(GitParseError):
    def __init__(self, url: str, message: str | None = None) -> None:
        super().__init__(message or f"The format of '{url}' is not a valid GitHub repository URL")
        self.url = url


class UnexpectedOutputError(GitParseError):
    pass
