"""Event loop: wait, read one record, notify, repeat."""

from __future__ import annotations

import errno
import logging
import select
from typing import Any, Callable, Protocol

from statwatch.errors import WaitError
from statwatch.models import EventRecord
from statwatch.notifier import SignalNotifier
from statwatch.reader import EventRecordReader

logger = logging.getLogger(__name__)


class Channel(Protocol):
    def fileno(self) -> int: ...


class EventLoop:
    """Single-threaded relay from a watch channel to a notifier.

    ``run`` has no exit on the success path. It returns only by raising
    the WaitError, ReadError or NotifyError that ended it.
    """

    def __init__(
        self,
        handle: Channel,
        notifier: SignalNotifier,
        reader: EventRecordReader | None = None,
        poller_factory: Callable[[], Any] = select.poll,
    ) -> None:
        self.handle = handle
        self.notifier = notifier
        self.reader = reader or EventRecordReader(handle.fileno())
        self._poller = poller_factory()
        self._poller.register(handle.fileno(), select.POLLIN)
        self.processed = 0

    def wait(self) -> None:
        """Block with no timeout until the channel is readable."""
        try:
            ready = self._poller.poll()
        except OSError as exc:
            raise WaitError.from_os_error(exc) from exc
        for _fd, revents in ready:
            if revents & (select.POLLERR | select.POLLNVAL):
                raise WaitError(
                    f"event wait failed: channel reported poll events 0x{revents:x}",
                    errno=errno.EBADF,
                )

    def step(self) -> EventRecord:
        """One iteration: wait, read exactly one record, notify once.

        A record left over from an earlier multi-event read is already
        ready, so the wait is skipped for it.
        """
        if not self.reader.has_record():
            self.wait()
        record = self.reader.read_record()
        self.notifier.notify(record)
        self.processed += 1
        return record

    def run(self) -> None:
        logger.info(
            "Relaying events on fd %d to pid %d", self.handle.fileno(), self.notifier.pid,
        )
        while True:
            self.step()
