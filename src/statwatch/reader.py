"""Framing of inotify event records.

The kernel only hands out whole events and fails a ``read`` with EINVAL
when the buffer cannot hold the next one, so every read asks for room
for at least one maximal event. A single read may return several
events; the surplus is kept and handed out one record per call. Short
deliveries (pipes, test doubles) are accumulated until the record is
complete.
"""

from __future__ import annotations

import errno
import logging
import os
from typing import Callable

from statwatch.errors import ReadError
from statwatch.inotify import EVENT_HEADER, EVENT_HEADER_SIZE, NAME_MAX
from statwatch.models import EventRecord

logger = logging.getLogger(__name__)

ReadFunc = Callable[[int, int], bytes]

# Room for one event carrying the longest possible name
READ_SIZE = EVENT_HEADER_SIZE + NAME_MAX + 1


class EventRecordReader:
    """Reads one complete EventRecord per call from a channel fd."""

    def __init__(self, fd: int, read: ReadFunc = os.read) -> None:
        self.fd = fd
        self._read = read
        self._pending = bytearray()

    @property
    def buffered(self) -> int:
        """Bytes already read from the channel but not yet handed out."""
        return len(self._pending)

    def has_record(self) -> bool:
        """True when a complete record is buffered and no read is needed."""
        if len(self._pending) < EVENT_HEADER_SIZE:
            return False
        length = EVENT_HEADER.unpack_from(self._pending)[3]
        return len(self._pending) >= EVENT_HEADER_SIZE + length

    def _fill(self, size: int) -> None:
        while len(self._pending) < size:
            try:
                chunk = self._read(self.fd, max(READ_SIZE, size - len(self._pending)))
            except OSError as exc:
                raise ReadError.from_os_error(exc) from exc
            if not chunk:
                raise ReadError(
                    f"event read failed: channel closed after {len(self._pending)} of {size} bytes",
                    errno=errno.EIO,
                )
            self._pending += chunk

    def read_record(self) -> EventRecord:
        """Block until one full record is available and return it."""
        self._fill(EVENT_HEADER_SIZE)
        length = EVENT_HEADER.unpack_from(self._pending)[3]
        total = EVENT_HEADER_SIZE + length
        self._fill(total)

        data = bytes(self._pending[:total])
        del self._pending[:total]
        record = EventRecord.from_header(data[:EVENT_HEADER_SIZE], data[EVENT_HEADER_SIZE:])
        logger.debug("Read event %s", record.to_dict())
        return record
