"""statwatch CLI: command-line interface."""

from __future__ import annotations

import argparse
import errno
import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml

import statwatch
from statwatch.engine import EventLoop
from statwatch.errors import ConfigurationError, InvalidArgumentError, StatWatchError
from statwatch.models import EventKind
from statwatch.notifier import SignalNotifier, resolve_signal
from statwatch.reader import EventRecordReader
from statwatch.simulator import StatsDumpSimulator
from statwatch.watcher import establish_watch

logger = logging.getLogger("statwatch")

DEFAULT_CONFIG: dict[str, Any] = {
    "signal": "SIGUSR1",
    "events": ["modify", "create"],
    "log_level": "INFO",
    "log_format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
}

_DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "configs" / "default-config.yaml"

EXIT_INTERRUPTED = 130

_USAGE_EPILOG = """\
PATH   Path to the stats file to watch (e.g. m5out/stats.txt)
PID    PID of the process to notify. On each modification or creation
       of PATH the configured signal (SIGUSR1) is sent to PID.
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Reports usage errors with EINVAL instead of argparse's 2."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(errno.EINVAL, f"{self.prog}: error: {message}\n")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot load config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {path} must be a mapping, got {type(data).__name__}")
    return data


def _load_config(config_path: str | None) -> dict[str, Any]:
    """Load config from YAML file, layered over the built-in defaults."""
    config = dict(DEFAULT_CONFIG)
    config_path = config_path or os.environ.get("STATWATCH_CONFIG")
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        config.update(_read_yaml(path))
    elif _DEFAULT_CONFIG_PATH.exists():
        config.update(_read_yaml(_DEFAULT_CONFIG_PATH))
    return config


def parse_pid(text: str) -> int:
    """Parse the PID argument, rejecting anything but a positive integer."""
    try:
        pid = int(text, 10)
    except ValueError:
        raise InvalidArgumentError(f"PID must be a positive integer, got {text!r}") from None
    if pid <= 0:
        raise InvalidArgumentError(f"PID must be a positive integer, got {text!r}")
    return pid


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="statwatch",
        description="Send a signal to a process whenever a file is modified or created.",
        epilog=_USAGE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("path", metavar="PATH", help="File to watch")
    parser.add_argument("pid", metavar="PID", help="Process to notify")
    parser.add_argument("--config", metavar="FILE", help="Path to config YAML")
    parser.add_argument("--signal", metavar="NAME", help="Signal to send (default: SIGUSR1)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every event")
    parser.add_argument("--version", action="version", version=f"statwatch {statwatch.__version__}")
    return parser


def _fail(parser: argparse.ArgumentParser, exc: StatWatchError) -> int:
    parser.print_usage(sys.stderr)
    print(f"{parser.prog}: error: {exc.message}", file=sys.stderr)
    return exc.exit_status


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns the process exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = _load_config(args.config)
        pid = parse_pid(args.pid)
        signum = resolve_signal(args.signal or config["signal"])
        mask = EventKind.from_names(config["events"])
        level = "DEBUG" if args.verbose else str(config["log_level"]).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigurationError(f"Unknown log level: {config['log_level']!r}", config_key="log_level")
    except StatWatchError as exc:
        return _fail(parser, exc)

    logging.basicConfig(level=level, format=config["log_format"])

    logger.info("statwatch v%s starting: %s -> pid %d (%s)", statwatch.__version__, args.path, pid, signum.name)
    try:
        with establish_watch(args.path, mask) as handle:
            reader = EventRecordReader(handle.fileno())
            loop = EventLoop(handle, SignalNotifier(pid, signum), reader=reader)
            loop.run()
    except StatWatchError as exc:
        logger.error("%s", exc)
        return exc.exit_status
    except KeyboardInterrupt:
        logger.info("Interrupted, watch released")
        return EXIT_INTERRUPTED
    # run() only ends by raising
    return 1


def simulate_main(argv: list[str] | None = None) -> int:
    """Entry point for statwatch-simulate: append stats dumps to a file."""
    parser = argparse.ArgumentParser(
        prog="statwatch-simulate",
        description="Periodically append simulated stats dumps to a file",
    )
    parser.add_argument("path", metavar="PATH", help="Stats file to append to")
    parser.add_argument("--interval", type=float, default=1.0, metavar="SEC", help="Seconds between dumps (default: 1.0)")
    parser.add_argument("--count", type=int, default=None, metavar="N", help="Stop after N dumps (default: run forever)")
    parser.add_argument("--bytes", type=int, default=None, metavar="N", dest="dump_bytes", help="Write N filler bytes per dump instead of a stats block")
    args = parser.parse_args(argv)
    if args.dump_bytes is not None and args.dump_bytes <= 0:
        parser.error("--bytes must be a positive integer")

    logging.basicConfig(
        level=logging.INFO,
        format=DEFAULT_CONFIG["log_format"],
    )
    sim = StatsDumpSimulator(args.path, interval=args.interval, dump_bytes=args.dump_bytes)
    try:
        sim.run(count=args.count)
    except KeyboardInterrupt:
        print(f"\nWrote {sim.dumps} dumps.")
    except OSError as exc:
        logger.error("Cannot write %s: %s", args.path, exc)
        return exc.errno or 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
