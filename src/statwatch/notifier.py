"""Signal delivery to the consumer process."""

from __future__ import annotations

import logging
import os
import signal
from typing import Callable

from statwatch.errors import ConfigurationError, NotifyError
from statwatch.models import EventRecord

logger = logging.getLogger(__name__)

DEFAULT_SIGNAL = signal.SIGUSR1


def resolve_signal(name: str | int) -> signal.Signals:
    """Turn ``"SIGUSR1"``, ``"usr1"`` or ``10`` into a Signals member."""
    if isinstance(name, int):
        try:
            return signal.Signals(name)
        except ValueError:
            raise ConfigurationError(f"Unknown signal number: {name}", config_key="signal") from None
    key = str(name).strip().upper()
    if not key.startswith("SIG"):
        key = "SIG" + key
    try:
        return signal.Signals[key]
    except KeyError:
        raise ConfigurationError(f"Unknown signal: {name!r}", config_key="signal") from None


class SignalNotifier:
    """Sends one signal to a fixed pid for every event record."""

    def __init__(
        self,
        pid: int,
        signum: int = DEFAULT_SIGNAL,
        kill: Callable[[int, int], None] = os.kill,
    ) -> None:
        self.pid = pid
        self.signum = signum
        self._kill = kill
        self.sent = 0

    def notify(self, record: EventRecord) -> None:
        """Deliver the signal. Every record notifies, whatever its kind."""
        try:
            self._kill(self.pid, self.signum)
        except OSError as exc:
            raise NotifyError.from_os_error(exc, detail=f"pid {self.pid}") from exc
        self.sent += 1
        logger.debug(
            "Sent %s to pid %d (event mask=0x%08x, total=%d)",
            signal.Signals(self.signum).name, self.pid, record.mask, self.sent,
        )
