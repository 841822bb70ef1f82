from __future__ import annotations


class UsageError(Exception):
    """Base class for every failure surfaced by Sampler.sample()."""


class ProcessNotFoundError(UsageError):
    def __init__(self, pid: int, detail: str = "") -> None:
        self.pid = pid
        message = f"process {pid} not found"
        super().__init__(f"{message}: {detail}" if detail else message)


class ParseError(UsageError):
    pass


class ReadError(UsageError):
    """Transient failure reading an accounting record."""


class CommandError(UsageError):
    def __init__(
        self,
        argv: list[str],
        exit_code: int | None,
        stdout: str = "",
        stderr: str = "",
        message: str | None = None,
    ) -> None:
        self.argv = argv
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(message or f"command {' '.join(argv)!r} exited with code {exit_code}")


class ConstantsUnavailableError(UsageError):
    pass


class UnsupportedPlatformError(UsageError):
    pass
