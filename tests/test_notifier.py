"""Tests for signal delivery."""

from __future__ import annotations

import errno
import os
import signal
import time

import pytest

from statwatch import inotify
from statwatch.errors import ConfigurationError, NotifyError
from statwatch.models import EventRecord
from statwatch.notifier import DEFAULT_SIGNAL, SignalNotifier, resolve_signal


def _make_record(mask: int = inotify.IN_MODIFY) -> EventRecord:
    return EventRecord(wd=1, mask=mask, cookie=0, length=0)


class RecordingKill:
    def __init__(self) -> None:
        self.calls: list[tuple[int, int]] = []

    def __call__(self, pid: int, signum: int) -> None:
        self.calls.append((pid, signum))


class TestResolveSignal:
    def test_default_is_sigusr1(self):
        assert DEFAULT_SIGNAL == signal.SIGUSR1

    def test_full_name(self):
        assert resolve_signal("SIGUSR2") == signal.SIGUSR2

    def test_short_lowercase_name(self):
        assert resolve_signal("usr1") == signal.SIGUSR1

    def test_number(self):
        assert resolve_signal(int(signal.SIGTERM)) == signal.SIGTERM

    def test_unknown_name(self):
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_signal("SIGNOPE")
        assert exc_info.value.config_key == "signal"

    def test_unknown_number(self):
        with pytest.raises(ConfigurationError):
            resolve_signal(9999)


class TestSignalNotifier:
    def test_sends_sigusr1(self):
        kill = RecordingKill()
        notifier = SignalNotifier(4242, kill=kill)
        notifier.notify(_make_record())
        assert kill.calls == [(4242, signal.SIGUSR1)]
        assert notifier.sent == 1

    def test_every_kind_notifies(self):
        kill = RecordingKill()
        notifier = SignalNotifier(4242, kill=kill)
        for mask in (inotify.IN_MODIFY, inotify.IN_CREATE, inotify.IN_ATTRIB, inotify.IN_IGNORED):
            notifier.notify(_make_record(mask))
        assert len(kill.calls) == 4

    def test_custom_signal(self):
        kill = RecordingKill()
        SignalNotifier(77, signum=signal.SIGUSR2, kill=kill).notify(_make_record())
        assert kill.calls == [(77, signal.SIGUSR2)]

    def test_missing_process(self):
        def kill(pid, signum):
            raise ProcessLookupError(errno.ESRCH, "No such process")

        notifier = SignalNotifier(4242, kill=kill)
        with pytest.raises(NotifyError) as exc_info:
            notifier.notify(_make_record())
        assert exc_info.value.errno == errno.ESRCH
        assert notifier.sent == 0

    def test_permission_denied(self):
        def kill(pid, signum):
            raise PermissionError(errno.EPERM, "Operation not permitted")

        with pytest.raises(NotifyError) as exc_info:
            SignalNotifier(1, kill=kill).notify(_make_record())
        assert exc_info.value.errno == errno.EPERM


class TestRealSignal:
    def test_signal_reaches_own_process(self):
        received = []
        previous = signal.signal(signal.SIGUSR1, lambda signum, frame: received.append(signum))
        try:
            SignalNotifier(os.getpid()).notify(_make_record())
            deadline = time.monotonic() + 2.0
            while not received and time.monotonic() < deadline:
                time.sleep(0.01)
        finally:
            signal.signal(signal.SIGUSR1, previous)
        assert received == [signal.SIGUSR1]
