"""Tests for establishing and releasing the inotify watch."""

from __future__ import annotations

import errno
import os
import select
import sys
from unittest.mock import patch

import pytest

from statwatch import inotify
from statwatch.errors import ChannelCreationError, RegistrationError
from statwatch.models import DEFAULT_MASK
from statwatch.watcher import WatchHandle, establish_watch

linux_only = pytest.mark.skipif(not sys.platform.startswith("linux"), reason="inotify is Linux-only")


def _fd_is_open(fd: int) -> bool:
    try:
        os.fstat(fd)
    except OSError:
        return False
    return True


class TestChannelCreationFailure:
    def test_raises_and_skips_registration(self, tmp_path):
        with patch(
            "statwatch.watcher.inotify.init",
            side_effect=OSError(errno.EMFILE, "Too many open files"),
        ), patch("statwatch.watcher.inotify.add_watch") as add_watch:
            with pytest.raises(ChannelCreationError) as exc_info:
                establish_watch(tmp_path / "stats.txt")

        assert exc_info.value.errno == errno.EMFILE
        add_watch.assert_not_called()


class TestRegistrationFailure:
    def test_channel_closed_on_failure(self, tmp_path):
        r, w = os.pipe()
        os.close(w)
        with patch("statwatch.watcher.inotify.init", return_value=r), patch(
            "statwatch.watcher.inotify.add_watch",
            side_effect=OSError(errno.ENOSPC, "No space left on device"),
        ):
            with pytest.raises(RegistrationError) as exc_info:
                establish_watch(tmp_path / "stats.txt")

        assert exc_info.value.errno == errno.ENOSPC
        assert not _fd_is_open(r)

    @linux_only
    def test_missing_path(self, tmp_path):
        missing = tmp_path / "nope" / "stats.txt"
        with pytest.raises(RegistrationError) as exc_info:
            establish_watch(missing)
        assert exc_info.value.errno == errno.ENOENT
        assert str(missing) in exc_info.value.message


@linux_only
class TestRealWatch:
    def test_establish_and_release(self, tmp_path):
        stats = tmp_path / "stats.txt"
        stats.write_text("")

        handle = establish_watch(stats)
        fd = handle.fileno()
        assert _fd_is_open(fd)
        assert handle.mask == int(DEFAULT_MASK)
        assert handle.path == str(stats)
        assert handle.wd >= 1

        handle.close()
        assert handle.closed
        assert not _fd_is_open(fd)
        # Second close is a no-op
        handle.close()

    def test_context_manager_releases_on_error(self, tmp_path):
        stats = tmp_path / "stats.txt"
        stats.write_text("")

        with pytest.raises(RuntimeError):
            with establish_watch(stats) as handle:
                fd = handle.fileno()
                raise RuntimeError("boom")
        assert not _fd_is_open(fd)

    def test_no_event_until_write(self, tmp_path):
        stats = tmp_path / "stats.txt"
        stats.write_text("")

        with establish_watch(stats) as handle:
            assert select.select([handle], [], [], 0)[0] == []
            with stats.open("a") as f:
                f.write("abc")
            assert select.select([handle], [], [], 1.0)[0] == [handle]

    def test_close_after_watched_file_deleted(self, tmp_path):
        stats = tmp_path / "stats.txt"
        stats.write_text("")
        handle = establish_watch(stats)
        stats.unlink()
        # Kernel drops the watch on its own; close must still succeed
        handle.close()
        assert handle.closed


class TestWatchHandle:
    def test_repr(self):
        handle = WatchHandle(fd=5, wd=1, path="/tmp/stats.txt", mask=inotify.IN_MODIFY)
        assert "fd=5" in repr(handle)
        assert "/tmp/stats.txt" in repr(handle)

    def test_close_removes_watch_then_closes_fd(self):
        r, w = os.pipe()
        os.close(w)
        handle = WatchHandle(fd=r, wd=3, path="/tmp/stats.txt", mask=inotify.IN_MODIFY)
        with patch("statwatch.watcher.inotify.rm_watch") as rm_watch:
            handle.close()
        rm_watch.assert_called_once_with(r, 3)
        assert not _fd_is_open(r)
        assert "closed" in repr(handle)
