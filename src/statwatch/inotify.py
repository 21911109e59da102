"""ctypes bindings for the Linux inotify API.

Only the three calls statwatch needs are bound. Each wrapper retries on
EINTR and raises ``OSError`` with the C errno on any other failure.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import errno
import os
import struct

# Event bits, see inotify(7)
IN_ACCESS = 0x00000001
IN_MODIFY = 0x00000002
IN_ATTRIB = 0x00000004
IN_CLOSE_WRITE = 0x00000008
IN_CLOSE_NOWRITE = 0x00000010
IN_OPEN = 0x00000020
IN_MOVED_FROM = 0x00000040
IN_MOVED_TO = 0x00000080
IN_CREATE = 0x00000100
IN_DELETE = 0x00000200
IN_DELETE_SELF = 0x00000400
IN_MOVE_SELF = 0x00000800
IN_UNMOUNT = 0x00002000
IN_Q_OVERFLOW = 0x00004000
IN_IGNORED = 0x00008000
IN_ISDIR = 0x40000000

# Bits a watch can register interest in
IN_ALL_EVENTS = (
    IN_ACCESS | IN_MODIFY | IN_ATTRIB | IN_CLOSE_WRITE | IN_CLOSE_NOWRITE | IN_OPEN
    | IN_MOVED_FROM | IN_MOVED_TO | IN_CREATE | IN_DELETE | IN_DELETE_SELF | IN_MOVE_SELF
)

# inotify_init1 flag
IN_CLOEXEC = 0o2000000

# struct inotify_event { int wd; uint32_t mask; uint32_t cookie; uint32_t len; char name[]; }
EVENT_HEADER = struct.Struct("iIII")
EVENT_HEADER_SIZE = EVENT_HEADER.size
NAME_MAX = 255

_libc = None


def _get_libc() -> ctypes.CDLL:
    global _libc
    if _libc is None:
        # None works too when the interpreter is dynamically linked against libc
        libc = ctypes.CDLL(ctypes.util.find_library("c"), use_errno=True)
        libc.inotify_init1.argtypes = [ctypes.c_int]
        libc.inotify_init1.restype = ctypes.c_int
        libc.inotify_add_watch.argtypes = [ctypes.c_int, ctypes.c_char_p, ctypes.c_uint32]
        libc.inotify_add_watch.restype = ctypes.c_int
        libc.inotify_rm_watch.argtypes = [ctypes.c_int, ctypes.c_int]
        libc.inotify_rm_watch.restype = ctypes.c_int
        _libc = libc
    return _libc


def _call(name: str, *args) -> int:
    func = getattr(_get_libc(), name)
    while True:
        res = func(*args)
        if res >= 0:
            return res
        err = ctypes.get_errno()
        if err != errno.EINTR:
            raise OSError(err, os.strerror(err))


def init(flags: int = IN_CLOEXEC) -> int:
    """Open a new inotify channel and return its file descriptor."""
    return _call("inotify_init1", flags)


def add_watch(fd: int, path: str | os.PathLike, mask: int) -> int:
    """Register *mask* on *path* and return the watch descriptor."""
    return _call("inotify_add_watch", fd, os.fsencode(path), mask)


def rm_watch(fd: int, wd: int) -> int:
    """Remove watch descriptor *wd* from the channel."""
    return _call("inotify_rm_watch", fd, wd)
