"""Exception types for statwatch.

Every runtime failure is fatal. Each error carries the errno of the
operation that failed so the CLI can use it as the process exit status.
"""

from __future__ import annotations

import errno as _errno
import os


class StatWatchError(Exception):
    """Base class for all statwatch errors."""

    operation = "statwatch"

    def __init__(self, message: str, errno: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errno = errno

    @classmethod
    def from_os_error(cls, exc: OSError, detail: str = "") -> StatWatchError:
        code = exc.errno if exc.errno is not None else _errno.EIO
        reason = exc.strerror or os.strerror(code)
        message = f"{cls.operation} failed: {reason}"
        if detail:
            message = f"{message} ({detail})"
        return cls(message, errno=code)

    @property
    def exit_status(self) -> int:
        return self.errno or 1

    def __str__(self) -> str:
        if self.errno is not None:
            return f"[{_errno.errorcode.get(self.errno, self.errno)}] {self.message}"
        return self.message


class InvalidArgumentError(StatWatchError):
    """Raised when command-line input is malformed."""

    operation = "argument parsing"

    def __init__(self, message: str) -> None:
        super().__init__(message, errno=_errno.EINVAL)


class ConfigurationError(StatWatchError):
    """Raised when the config file or a config value is invalid."""

    operation = "configuration"

    def __init__(self, message: str, config_key: str | None = None) -> None:
        super().__init__(message, errno=_errno.EINVAL)
        self.config_key = config_key


class ChannelCreationError(StatWatchError):
    operation = "inotify channel creation"


class RegistrationError(StatWatchError):
    operation = "watch registration"


class WaitError(StatWatchError):
    operation = "event wait"


class ReadError(StatWatchError):
    operation = "event read"


class NotifyError(StatWatchError):
    operation = "signal delivery"
