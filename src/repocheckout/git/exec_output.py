from __future__ import annotations


class GitExecOutput:
    """Exit code and captured lines of a single git invocation."""

    def __init__(self) -> None:
        self._exit_code: int | None = None
        self._stdout: list[str] = []
        self._stderr: list[str] = []
        self._debug: list[str] = []

    @property
    def exit_code(self) -> int | None:
        return self._exit_code

    @exit_code.setter
    def exit_code(self, value: int) -> None:
        if self._exit_code is not None:
            raise RuntimeError("exit code is already set")
        self._exit_code = value

    def add_stdout_line(self, line: str) -> None:
        self._stdout.append(line)

    def add_stderr_line(self, line: str) -> None:
        self._stderr.append(line)

    def add_debug_line(self, line: str) -> None:
        self._debug.append(line)

    def get_stdout(self) -> str:
        return "\n".join(self._stdout)

    def get_stderr(self) -> str:
        return "\n".join(self._stderr)

    def get_debug(self) -> str:
        return "\n".join(self._debug)
