"""Kernel watch on a single file path.

Opens an inotify channel, registers interest in the configured event
kinds on the target path and hands back a handle the event loop can
block on.
"""

from __future__ import annotations

import logging
import os

from statwatch import inotify
from statwatch.errors import ChannelCreationError, RegistrationError
from statwatch.models import DEFAULT_MASK

logger = logging.getLogger(__name__)


class WatchHandle:
    """An open inotify channel with one registered watch."""

    def __init__(self, fd: int, wd: int, path: str, mask: int) -> None:
        self.fd = fd
        self.wd = wd
        self.path = path
        self.mask = mask
        self._closed = False

    def fileno(self) -> int:
        return self.fd

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Remove the watch and close the channel. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            inotify.rm_watch(self.fd, self.wd)
        except OSError as exc:
            # EINVAL when the kernel already dropped the watch (file deleted)
            logger.debug("inotify_rm_watch(%d) failed: %s", self.wd, exc)
        os.close(self.fd)
        logger.debug("Released watch on %s", self.path)

    def __enter__(self) -> WatchHandle:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"fd={self.fd} wd={self.wd}"
        return f"WatchHandle({self.path!r}, {state})"


def establish_watch(path: str | os.PathLike, mask: int = DEFAULT_MASK) -> WatchHandle:
    """Open a channel and register *mask* on *path*.

    Raises ChannelCreationError when the channel cannot be opened (no
    registration is attempted) and RegistrationError when the path
    cannot be watched (the channel is closed before raising).
    """
    path = os.fspath(path)
    try:
        fd = inotify.init(inotify.IN_CLOEXEC)
    except OSError as exc:
        raise ChannelCreationError.from_os_error(exc) from exc

    try:
        wd = inotify.add_watch(fd, path, int(mask))
    except OSError as exc:
        os.close(fd)
        raise RegistrationError.from_os_error(exc, detail=path) from exc

    logger.info("Watching %s (mask=0x%08x)", path, int(mask))
    return WatchHandle(fd, wd, path, int(mask))
