"""statwatch: relay file-change events to a process as signals."""

__version__ = "0.1.0"
