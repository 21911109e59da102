"""Core data models for statwatch."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from typing import Any, Iterable

from statwatch import inotify
from statwatch.errors import ConfigurationError


class EventKind(enum.IntFlag):
    ACCESS = inotify.IN_ACCESS
    MODIFY = inotify.IN_MODIFY
    ATTRIB = inotify.IN_ATTRIB
    CLOSE_WRITE = inotify.IN_CLOSE_WRITE
    CLOSE_NOWRITE = inotify.IN_CLOSE_NOWRITE
    OPEN = inotify.IN_OPEN
    MOVED_FROM = inotify.IN_MOVED_FROM
    MOVED_TO = inotify.IN_MOVED_TO
    CREATE = inotify.IN_CREATE
    DELETE = inotify.IN_DELETE
    DELETE_SELF = inotify.IN_DELETE_SELF
    MOVE_SELF = inotify.IN_MOVE_SELF
    UNMOUNT = inotify.IN_UNMOUNT
    Q_OVERFLOW = inotify.IN_Q_OVERFLOW
    IGNORED = inotify.IN_IGNORED
    ISDIR = inotify.IN_ISDIR

    @classmethod
    def from_names(cls, names: Iterable[str]) -> EventKind:
        """Build a mask from names like ``["modify", "create"]``."""
        if isinstance(names, str):
            names = [names]
        mask = cls(0)
        for name in names:
            try:
                kind = cls[str(name).strip().upper()]
            except KeyError:
                raise ConfigurationError(
                    f"Unknown event kind: {name!r}", config_key="events",
                ) from None
            if not kind & inotify.IN_ALL_EVENTS:
                raise ConfigurationError(
                    f"{name!r} is reported by the kernel but cannot be watched for",
                    config_key="events",
                )
            mask |= kind
        if not mask:
            raise ConfigurationError("At least one event kind is required", config_key="events")
        return mask


DEFAULT_MASK = EventKind.MODIFY | EventKind.CREATE


@dataclass(frozen=True)
class EventRecord:
    """One record drained from the inotify channel."""

    wd: int
    mask: int
    cookie: int
    length: int
    name: str = ""

    @classmethod
    def from_header(cls, header: bytes, name: bytes = b"") -> EventRecord:
        wd, mask, cookie, length = inotify.EVENT_HEADER.unpack(header)
        # The kernel pads the name with NULs up to an alignment boundary
        return cls(
            wd=wd,
            mask=mask,
            cookie=cookie,
            length=length,
            name=os.fsdecode(name.rstrip(b"\x00")),
        )

    @property
    def kinds(self) -> EventKind:
        return EventKind(self.mask)

    def to_dict(self) -> dict[str, Any]:
        return {
            "wd": self.wd,
            "mask": self.mask,
            "kinds": [k.name for k in EventKind if k & self.mask],
            "cookie": self.cookie,
            "length": self.length,
            "name": self.name,
        }
